"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation. Every factory
produces plain dict records shaped like the rows the snapshot loader returns.
"""

from .client import ClientFactory
from .order import OrderFactory, OrderItemFactory, ProductFactory
from .inventory import InventoryItemFactory, LowStockItemFactory, OutOfStockItemFactory
from .invoice import InvoiceFactory, PaidInvoiceFactory
from .maintenance import MaintenanceFactory
from .notification import NotificationCreateFactory, PersistentNotificationFactory

__all__ = [
    "ClientFactory",
    "ProductFactory",
    "OrderFactory",
    "OrderItemFactory",
    "InventoryItemFactory",
    "LowStockItemFactory",
    "OutOfStockItemFactory",
    "InvoiceFactory",
    "PaidInvoiceFactory",
    "MaintenanceFactory",
    # Notifications
    "NotificationCreateFactory",
    "PersistentNotificationFactory",
]
