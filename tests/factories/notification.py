"""
Notification test factory.

Generates request bodies for the notifications API.
"""

import factory
from faker import Faker

fake = Faker()


class NotificationCreateFactory(factory.Factory):
    """
    Factory for POST /notifications bodies.

    Usage:
        body = NotificationCreateFactory()
        body = NotificationCreateFactory(type="error", persistent=True)
    """

    class Meta:
        model = dict

    message = factory.LazyFunction(fake.sentence)
    type = factory.LazyFunction(lambda: fake.random_element(["success", "warning", "info"]))
    title = factory.LazyFunction(lambda: fake.sentence(nb_words=3))
    persistent = False
    metadata = factory.LazyFunction(lambda: {"source": fake.random_element(["system", "user"])})


class PersistentNotificationFactory(NotificationCreateFactory):
    persistent = True
