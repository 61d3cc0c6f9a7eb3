from bizpulse.models.client import Client
from bizpulse.models.product import Product
from bizpulse.models.inventory import InventoryItem
from bizpulse.models.order import Order, OrderItem
from bizpulse.models.invoice import Invoice
from bizpulse.models.maintenance import Maintenance

__all__ = [
    "Client",
    "Product",
    "InventoryItem",
    "Order",
    "OrderItem",
    "Invoice",
    "Maintenance",
]
