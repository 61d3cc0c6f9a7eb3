"""Load domain collections from the database as plain records.

Each collection is fetched independently. A collection whose query fails is
returned as ``None`` so the watcher can keep its previous version instead of
diffing against an empty or partial result.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizpulse.models import Client, InventoryItem, Invoice, Maintenance, Order, OrderItem, Product
from bizpulse.notifications.watcher import BusinessSnapshot

logger = logging.getLogger(__name__)

# Row caps per collection
COLLECTION_SOURCES = {
    "orders": (Order, 10000),
    "order_items": (OrderItem, 20000),
    "inventory": (InventoryItem, 5000),
    "products": (Product, 1000),
    "clients": (Client, 1000),
    "invoices": (Invoice, 5000),
    "maintenances": (Maintenance, 5000),
}

WATCHED_COLLECTIONS = ("orders", "inventory", "products", "invoices", "maintenances", "clients")
REPORT_COLLECTIONS = ("orders", "order_items", "products", "clients", "inventory")


def to_record(instance: Any) -> Dict[str, Any]:
    """Column values of a model instance as a dictionary."""
    return {attr.key: getattr(instance, attr.key) for attr in inspect(instance).mapper.column_attrs}


async def load_collection(db: AsyncSession, name: str) -> Optional[List[Dict[str, Any]]]:
    """Fetch one collection; returns None when the query fails."""
    model, limit = COLLECTION_SOURCES[name]
    try:
        result = await db.execute(select(model).limit(limit))
        return [to_record(row) for row in result.scalars().all()]
    except Exception as e:
        logger.error(f"Failed to load {name}: {type(e).__name__}: {e}")
        await db.rollback()
        return None


async def load_collections(db: AsyncSession, names) -> Dict[str, Optional[List[Dict[str, Any]]]]:
    return {name: await load_collection(db, name) for name in names}


async def load_business_snapshot(db: AsyncSession) -> BusinessSnapshot:
    return BusinessSnapshot.from_mapping(await load_collections(db, WATCHED_COLLECTIONS))
