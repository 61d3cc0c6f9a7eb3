"""
Business Event Watcher

Turns periodic snapshots of the domain collections into notifications:

1. New orders (id present now, absent in the previous orders snapshot)
2. Order status transitions on orders present in both snapshots
3. Low inventory, gated by a per-item cooldown
4. Overdue invoices, gated by a per-invoice cooldown
5. Maintenance due within a week, gated by a per-maintenance cooldown

Order events depend only on the previous snapshot, so they are never
repeated. Alerts 3-5 are re-evaluated every tick and rely on the
:class:`CooldownRegistry` for deduplication.

A collection whose refresh failed is delivered as ``None``. The watcher then
keeps the last good version and skips every check that needs the collection
for that tick.
"""

import asyncio
import logging
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from bizpulse.notifications.cooldown import AlertKind, CooldownRegistry
from bizpulse.notifications.store import NotificationStore
from bizpulse.notifications.timers import Clock, SystemClock
from bizpulse.notifications.types import ActionKind, NotificationAction
from bizpulse.services.stock import STOCK_CRITICAL, classify_stock, resolve_min_stock
from bizpulse.utils.dates import parse_datetime, whole_days_between

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

ORDER_STATUS_LABELS = {
    "confirmed": "confirmado",
    "in_progress": "en progreso",
    "completed": "completado",
    "cancelled": "cancelado",
    "delivered": "entregado",
}

SUCCESS_ORDER_STATUSES = {"completed", "delivered"}
PAID_INVOICE_STATUSES = {"paid"}
ACTIVE_MAINTENANCE_STATUS = "active"
MAINTENANCE_LOOKAHEAD_DAYS = 7

# Products without min_stock only alert once they run out. Alert metadata
# still shows the usual minimum of 5 for them.
WATCHER_DEFAULT_MIN_STOCK = 0


@dataclass
class BusinessSnapshot:
    """
    One refresh tick worth of domain collections.

    ``None`` marks a collection whose fetch failed this tick; an empty list is
    a successful fetch that returned no rows.
    """

    orders: Optional[List[Record]] = None
    inventory: Optional[List[Record]] = None
    products: Optional[List[Record]] = None
    invoices: Optional[List[Record]] = None
    maintenances: Optional[List[Record]] = None
    clients: Optional[List[Record]] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Optional[List[Record]]]) -> "BusinessSnapshot":
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def failed_collections(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]


def order_label(order: Mapping[str, Any]) -> str:
    """Display number of an order: its order_number or the tail of its id."""
    return str(order.get("order_number") or str(order.get("id", ""))[-6:])


def _index_by_id(records: List[Record]) -> Dict[Any, Record]:
    indexed = {}
    for record in records:
        record_id = record.get("id")
        if record_id is None:
            logger.warning("Skipping record without id")
            continue
        indexed[record_id] = record
    return indexed


class BusinessEventWatcher:
    """
    Diff snapshots and raise deduplicated business alerts.

    Example:
        watcher = BusinessEventWatcher(store, cooldowns)
        await watcher.process(BusinessSnapshot(orders=[...], clients=[...]))
    """

    def __init__(
        self,
        store: NotificationStore,
        cooldowns: CooldownRegistry,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._cooldowns = cooldowns
        self._clock = clock or SystemClock()

        self._previous_orders: Optional[Dict[Any, Record]] = None
        # Last good lookup tables, reused when a tick fails to refresh them
        self._products: Dict[Any, Record] = {}
        self._clients: Dict[Any, Record] = {}

        self._lock = asyncio.Lock()
        self._stats = {
            "runs": 0,
            "emitted_total": 0,
            "last_run": None,
            "last_emitted": {},
            "last_failed_collections": [],
        }

    @property
    def has_order_baseline(self) -> bool:
        return self._previous_orders is not None

    def status(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "last_emitted": dict(self._stats["last_emitted"]),
            "has_order_baseline": self.has_order_baseline,
        }

    def reset(self) -> None:
        """Forget every retained snapshot; the next orders snapshot becomes the baseline."""
        self._previous_orders = None
        self._products = {}
        self._clients = {}

    async def process(self, snapshot: BusinessSnapshot) -> List[str]:
        """
        Run one tick over ``snapshot``.

        Returns:
            Ids of the notifications emitted during this tick
        """
        async with self._lock:
            now = self._clock.now()
            failed = snapshot.failed_collections()
            if failed:
                logger.warning(f"Refresh failed for {', '.join(failed)}; keeping previous data")

            if snapshot.products is not None:
                self._products = _index_by_id(snapshot.products)
            if snapshot.clients is not None:
                self._clients = _index_by_id(snapshot.clients)

            emitted: Dict[str, List[str]] = {
                "new_order": [],
                "order_status_change": [],
                AlertKind.INVENTORY_ALERT.value: [],
                AlertKind.OVERDUE_INVOICE.value: [],
                AlertKind.UPCOMING_MAINTENANCE.value: [],
            }

            if snapshot.orders is not None:
                current_orders = _index_by_id(snapshot.orders)
                if self._previous_orders is not None:
                    emitted["new_order"] = self._check_new_orders(current_orders)
                    emitted["order_status_change"] = self._check_status_changes(current_orders)
                else:
                    logger.info(f"Order baseline set with {len(current_orders)} orders")
                self._previous_orders = current_orders

            if snapshot.inventory is not None:
                emitted[AlertKind.INVENTORY_ALERT.value] = await self._check_inventory(
                    snapshot.inventory
                )
            if snapshot.invoices is not None:
                emitted[AlertKind.OVERDUE_INVOICE.value] = await self._check_overdue_invoices(
                    snapshot.invoices, now
                )
            if snapshot.maintenances is not None:
                emitted[AlertKind.UPCOMING_MAINTENANCE.value] = await self._check_maintenances(
                    snapshot.maintenances, now
                )

            ids = [nid for kind_ids in emitted.values() for nid in kind_ids]
            self._stats["runs"] += 1
            self._stats["emitted_total"] += len(ids)
            self._stats["last_run"] = now.isoformat()
            self._stats["last_emitted"] = {kind: len(kind_ids) for kind, kind_ids in emitted.items()}
            self._stats["last_failed_collections"] = failed

            logger.info(f"Business event check complete. Emitted: {len(ids)}")
            return ids

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def _client_name(self, client_id: Any) -> Optional[str]:
        client = self._clients.get(client_id)
        return client.get("name") if client else None

    def _check_new_orders(self, current: Dict[Any, Record]) -> List[str]:
        emitted = []
        for order_id, order in current.items():
            if order_id in self._previous_orders:
                continue
            client_id = order.get("client_id")
            emitted.append(
                self._store.notify.success(
                    f"Nuevo pedido #{order_label(order)} de {self._client_name(client_id) or 'Cliente'}",
                    title="Nuevo Pedido",
                    persistent=True,
                    metadata={
                        "type": "new_order",
                        "orderId": order_id,
                        "clientId": client_id,
                        "total": order.get("total"),
                    },
                    actions=[
                        NotificationAction(
                            label="Ver Pedido",
                            kind=ActionKind.VIEW_ORDER,
                            payload={"orderId": order_id},
                            primary=True,
                        )
                    ],
                )
            )
        return emitted

    def _check_status_changes(self, current: Dict[Any, Record]) -> List[str]:
        emitted = []
        for order_id, order in current.items():
            previous = self._previous_orders.get(order_id)
            if previous is None or previous.get("status") == order.get("status"):
                continue

            new_status = order.get("status")
            status_text = ORDER_STATUS_LABELS.get(new_status, str(new_status))
            producer = (
                self._store.notify.success
                if new_status in SUCCESS_ORDER_STATUSES
                else self._store.notify.info
            )
            emitted.append(
                producer(
                    f"Pedido #{order_label(order)} {status_text}",
                    title="Estado de Pedido Actualizado",
                    metadata={
                        "type": "order_status_change",
                        "orderId": order_id,
                        "oldStatus": previous.get("status"),
                        "newStatus": new_status,
                        "clientName": self._client_name(order.get("client_id")),
                    },
                )
            )
        return emitted

    # ------------------------------------------------------------------
    # Cooldown-gated alerts
    # ------------------------------------------------------------------

    async def _gated(
        self, kind: AlertKind, entity_id: Any, emit: Callable[[], str]
    ) -> Optional[str]:
        key = self._cooldowns.make_key(kind, entity_id)
        window = self._cooldowns.window_for(kind)
        if not await self._cooldowns.should_notify(key, window):
            return None
        notification_id = emit()
        await self._cooldowns.record_notified(key, window)
        return notification_id

    async def _collect(
        self, records: List[Record], check: Callable[[Record], Awaitable[Optional[str]]]
    ) -> List[str]:
        emitted = []
        for record in records:
            try:
                notification_id = await check(record)
            except (TypeError, ValueError, KeyError) as e:
                logger.warning(f"Skipping malformed record {record.get('id')!r}: {e}")
                continue
            if notification_id:
                emitted.append(notification_id)
        return emitted

    async def _check_inventory(self, inventory: List[Record]) -> List[str]:
        async def check(item: Record) -> Optional[str]:
            product = self._products.get(item.get("product_id"))
            if product is None:
                return None

            quantity = int(item["quantity"])
            min_stock = resolve_min_stock(product, default=WATCHER_DEFAULT_MIN_STOCK)
            severity = classify_stock(quantity, min_stock)
            if severity is None:
                return None

            critical = severity == STOCK_CRITICAL
            producer = self._store.notify.error if critical else self._store.notify.warning
            return await self._gated(
                AlertKind.INVENTORY_ALERT,
                item["id"],
                lambda: producer(
                    f"{product.get('name')} {'agotado' if critical else 'stock bajo'} ({quantity} unidades)",
                    title="Alerta de Inventario",
                    persistent=True,
                    metadata={
                        "type": AlertKind.INVENTORY_ALERT.value,
                        "inventoryId": item["id"],
                        "productId": product.get("id"),
                        "currentStock": quantity,
                        "minStock": resolve_min_stock(product),
                        "severity": severity,
                    },
                    actions=[
                        NotificationAction(
                            label="Ver Inventario",
                            kind=ActionKind.VIEW_INVENTORY,
                            payload={"inventoryId": item["id"], "productId": product.get("id")},
                            primary=True,
                        )
                    ],
                ),
            )

        return await self._collect(inventory, check)

    async def _check_overdue_invoices(self, invoices: List[Record], now: datetime) -> List[str]:
        async def check(invoice: Record) -> Optional[str]:
            if invoice.get("status") in PAID_INVOICE_STATUSES or not invoice.get("due_date"):
                return None

            due_date = parse_datetime(invoice["due_date"])
            if due_date >= now:
                return None

            days_past_due = whole_days_between(due_date, now)
            client_id = invoice.get("client_id")
            return await self._gated(
                AlertKind.OVERDUE_INVOICE,
                invoice["id"],
                lambda: self._store.notify.warning(
                    f"Factura {invoice.get('invoice_number')} vencida hace {days_past_due} días",
                    title="Factura Vencida",
                    persistent=True,
                    metadata={
                        "type": AlertKind.OVERDUE_INVOICE.value,
                        "invoiceId": invoice["id"],
                        "clientId": client_id,
                        "clientName": self._client_name(client_id),
                        "daysPastDue": days_past_due,
                        "amount": invoice.get("total"),
                    },
                    actions=[
                        NotificationAction(
                            label="Ver Factura",
                            kind=ActionKind.VIEW_INVOICE,
                            payload={"invoiceId": invoice["id"]},
                            primary=True,
                        )
                    ],
                ),
            )

        return await self._collect(invoices, check)

    async def _check_maintenances(self, maintenances: List[Record], now: datetime) -> List[str]:
        async def check(maintenance: Record) -> Optional[str]:
            if (
                maintenance.get("status") != ACTIVE_MAINTENANCE_STATUS
                or not maintenance.get("next_service_date")
            ):
                return None

            days_until = whole_days_between(now, parse_datetime(maintenance["next_service_date"]))
            if not 0 <= days_until <= MAINTENANCE_LOOKAHEAD_DAYS:
                return None

            client_id = maintenance.get("client_id")
            client_name = self._client_name(client_id)
            producer = self._store.notify.warning if days_until <= 1 else self._store.notify.info
            when = "hoy" if days_until == 0 else f"en {days_until} días"
            return await self._gated(
                AlertKind.UPCOMING_MAINTENANCE,
                maintenance["id"],
                lambda: producer(
                    f"Mantenimiento programado {when} para {client_name or 'cliente'}",
                    title="Mantenimiento Próximo",
                    persistent=True,
                    metadata={
                        "type": AlertKind.UPCOMING_MAINTENANCE.value,
                        "maintenanceId": maintenance["id"],
                        "clientId": client_id,
                        "clientName": client_name,
                        "daysUntilService": days_until,
                        "serviceType": maintenance.get("service_type"),
                    },
                    actions=[
                        NotificationAction(
                            label="Ver Mantenimiento",
                            kind=ActionKind.VIEW_MAINTENANCE,
                            payload={"maintenanceId": maintenance["id"]},
                            primary=True,
                        )
                    ],
                ),
            )

        return await self._collect(maintenances, check)
