"""
Maintenance contract test factory.
"""

import factory
from faker import Faker
import uuid

fake = Faker()


class MaintenanceFactory(factory.Factory):
    """
    Factory for active maintenance contracts.

    Usage:
        maintenance = MaintenanceFactory(next_service_date="2024-06-18")
    """

    class Meta:
        model = dict

    id = factory.LazyFunction(lambda: str(uuid.uuid4()))
    client_id = None
    service_type = factory.LazyFunction(
        lambda: fake.random_element(["Revisión caldera", "Aire acondicionado", "Extintores"])
    )
    status = "active"
    frequency_days = 90
    next_service_date = "2024-09-01"
