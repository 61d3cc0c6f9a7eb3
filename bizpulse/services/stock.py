"""Low-stock classification shared by the event watcher and the reports summary."""

from typing import Any, Mapping, Optional

DEFAULT_MIN_STOCK = 5

STOCK_CRITICAL = "critical"
STOCK_WARNING = "warning"


def resolve_min_stock(product: Optional[Mapping[str, Any]], default: int = DEFAULT_MIN_STOCK) -> int:
    """Return the product's ``min_stock``, or ``default`` when unset."""
    if not product or product.get("min_stock") is None:
        return default
    return int(product["min_stock"])


def classify_stock(quantity: int, min_stock: int) -> Optional[str]:
    """
    Classify a stock level against its minimum.

    Returns:
        "critical" when out of stock, "warning" when at or below the
        minimum, None when stock is healthy
    """
    if quantity > min_stock:
        return None
    return STOCK_CRITICAL if quantity == 0 else STOCK_WARNING
