"""
Reports summary aggregation.

Rolls raw collections up into the dashboard summary:
- sales: order totals for today, yesterday, month-to-date, year-to-date
- orders: order counts for today, month-to-date, year-to-date
- top_products: line items grouped by product, ranked by revenue
- top_clients: orders grouped by client, ranked by total value
- inventory_alerts: inventory rows at or below their product's min_stock

Pure function of its inputs and ``now``. Rows that cannot be read (missing
ids, unparseable dates or numbers) are skipped and logged; one bad row never
aborts the summary.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from bizpulse.services.stock import classify_stock, resolve_min_stock
from bizpulse.utils.dates import ONE_DAY, parse_datetime, start_of_day

logger = logging.getLogger(__name__)

SUMMARY_METRICS = ("sales", "orders", "top_products", "top_clients", "inventory_alerts")
DEFAULT_TOP_LIMIT = 5

Record = Mapping[str, Any]


def _number(value: Any) -> float:
    """Numeric value of a field; missing values count as zero."""
    if value is None:
        return 0
    return float(value) if not isinstance(value, (int, float)) else value


def _in_range(created_at: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    # Rows without a creation date are kept, as the date filter cannot exclude them
    if created_at is None:
        return True
    if start is not None and created_at < start:
        return False
    if end is not None and created_at > end:
        return False
    return True


def _parse_range(date_range: Optional[Mapping[str, Any]]):
    if not date_range:
        return None, None
    start = date_range.get("startDate") or date_range.get("start_date")
    end = date_range.get("endDate") or date_range.get("end_date")
    return (
        parse_datetime(start) if start else None,
        parse_datetime(end) if end else None,
    )


def _dated_orders(orders: Iterable[Record]) -> List[tuple]:
    dated = []
    for order in orders:
        try:
            dated.append((parse_datetime(order["created_at"]), _number(order.get("total")), order))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping order {order.get('id')!r} in summary: {e}")
    return dated


def summarize_sales(orders: Iterable[Record], now: datetime) -> Dict[str, float]:
    today = start_of_day(now)
    yesterday = today - ONE_DAY
    month = today.replace(day=1)
    year = today.replace(month=1, day=1)

    sales = {"today": 0, "yesterday": 0, "month": 0, "year": 0}
    for created_at, total, _ in _dated_orders(orders):
        if created_at >= today:
            sales["today"] += total
        if yesterday <= created_at < today:
            sales["yesterday"] += total
        if created_at >= month:
            sales["month"] += total
        if created_at >= year:
            sales["year"] += total
    return sales


def summarize_order_counts(orders: Iterable[Record], now: datetime) -> Dict[str, int]:
    today = start_of_day(now)
    month = today.replace(day=1)
    year = today.replace(month=1, day=1)

    counts = {"count_today": 0, "count_month": 0, "count_year": 0}
    for created_at, _, _ in _dated_orders(orders):
        if created_at >= today:
            counts["count_today"] += 1
        if created_at >= month:
            counts["count_month"] += 1
        if created_at >= year:
            counts["count_year"] += 1
    return counts


def summarize_top_products(
    order_items: Iterable[Record],
    orders: Iterable[Record],
    products: Mapping[Any, Record],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = DEFAULT_TOP_LIMIT,
) -> List[Dict[str, Any]]:
    order_dates: Dict[Any, Optional[datetime]] = {}
    for order in orders:
        try:
            order_dates[order["id"]] = parse_datetime(order["created_at"])
        except (KeyError, TypeError, ValueError):
            order_dates[order.get("id")] = None

    by_product: Dict[Any, Dict[str, float]] = defaultdict(lambda: {"quantity": 0, "revenue": 0})
    for item in order_items:
        product_id = item.get("product_id")
        if not product_id:
            continue
        if not _in_range(order_dates.get(item.get("order_id")), start, end):
            continue
        try:
            quantity = _number(item.get("quantity"))
            price = _number(item.get("price"))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping order item {item.get('id')!r} in summary: {e}")
            continue
        by_product[product_id]["quantity"] += quantity
        by_product[product_id]["revenue"] += quantity * price

    ranked = [
        {
            "product_id": product_id,
            "name": (products.get(product_id) or {}).get("name"),
            "revenue": totals["revenue"],
            "quantity": totals["quantity"],
        }
        for product_id, totals in by_product.items()
    ]
    ranked.sort(key=lambda row: row["revenue"], reverse=True)
    return ranked[:limit]


def summarize_top_clients(
    orders: Iterable[Record],
    clients: Mapping[Any, Record],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = DEFAULT_TOP_LIMIT,
) -> List[Dict[str, Any]]:
    by_client: Dict[Any, Dict[str, float]] = defaultdict(lambda: {"total_value": 0, "order_count": 0})
    for created_at, total, order in _dated_orders(orders):
        client_id = order.get("client_id")
        if not client_id or not _in_range(created_at, start, end):
            continue
        by_client[client_id]["total_value"] += total
        by_client[client_id]["order_count"] += 1

    ranked = [
        {
            "client_id": client_id,
            "name": (clients.get(client_id) or {}).get("name"),
            "total_value": totals["total_value"],
            "order_count": totals["order_count"],
        }
        for client_id, totals in by_client.items()
    ]
    ranked.sort(key=lambda row: row["total_value"], reverse=True)
    return ranked[:limit]


def summarize_inventory_alerts(
    inventory: Iterable[Record], products: Mapping[Any, Record]
) -> List[Dict[str, Any]]:
    alerts = []
    for item in inventory:
        product_id = item.get("product_id")
        if not product_id:
            continue
        product = products.get(product_id)
        try:
            stock = int(item["quantity"])
            min_stock = resolve_min_stock(product)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping inventory row {item.get('id')!r} in summary: {e}")
            continue
        status = classify_stock(stock, min_stock)
        if status is None:
            continue
        alerts.append(
            {
                "product_id": product_id,
                "name": (product or {}).get("name"),
                "stock": stock,
                "min_stock": min_stock,
                "status": status,
            }
        )
    return alerts


def build_summary(
    collections: Mapping[str, Optional[Sequence[Record]]],
    metrics: Optional[Iterable[str]] = None,
    date_range: Optional[Mapping[str, Any]] = None,
    limits: Optional[Mapping[str, int]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Compute the requested summary metrics.

    Args:
        collections: Raw rows keyed by ``orders``, ``order_items``,
            ``products``, ``clients`` and ``inventory``
        metrics: Subset of :data:`SUMMARY_METRICS`; empty or None computes all
        date_range: Optional ``startDate``/``endDate`` bounding top_products
            and top_clients
        limits: Optional ``top_products``/``top_clients`` list sizes
        now: Reference instant for the calendar windows (defaults to now, UTC)

    Returns:
        Dictionary holding only the requested metrics

    Raises:
        ValueError: unknown metric name or unparseable date range
    """
    requested = list(metrics or []) or list(SUMMARY_METRICS)
    unknown = [m for m in requested if m not in SUMMARY_METRICS]
    if unknown:
        raise ValueError(f"Unknown summary metrics: {', '.join(unknown)}")

    now = parse_datetime(now) if now is not None else datetime.now(timezone.utc)
    start, end = _parse_range(date_range)
    limits = limits or {}

    orders = list(collections.get("orders") or [])
    products = {p.get("id"): p for p in collections.get("products") or [] if p.get("id")}
    clients = {c.get("id"): c for c in collections.get("clients") or [] if c.get("id")}

    summary: Dict[str, Any] = {}
    if "sales" in requested:
        summary["sales"] = summarize_sales(orders, now)
    if "orders" in requested:
        summary["orders"] = summarize_order_counts(orders, now)
    if "top_products" in requested:
        summary["top_products"] = summarize_top_products(
            collections.get("order_items") or [],
            orders,
            products,
            start,
            end,
            limits.get("top_products") or DEFAULT_TOP_LIMIT,
        )
    if "top_clients" in requested:
        summary["top_clients"] = summarize_top_clients(
            orders,
            clients,
            start,
            end,
            limits.get("top_clients") or DEFAULT_TOP_LIMIT,
        )
    if "inventory_alerts" in requested:
        summary["inventory_alerts"] = summarize_inventory_alerts(
            collections.get("inventory") or [], products
        )
    return summary
