import asyncio
import logging
import traceback
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.config import settings
from app.connectors.base import PosOrder, PosPayment, PosOrderLine
from app.connectors.odoo_connector import OdooConnector
from app.constants.sync_policy import (
    CLOSED_ORDER_STATES,
    ORDER_FIELDS,
    ORDER_LINE_FIELDS,
    PAYMENT_FIELDS,
    TOP_PRODUCTS_LIMIT,
    is_denied,
    round_amount,
    round_quantity,
)
from app.exceptions import AuthenticationFailure, PersistenceError
from app.models.connection import Connection
from app.services.normalizer import NormalizerService
from app.services.store import SyncStore
from app.utils.encrypt import decrypt_data

log = logging.getLogger(__name__)

# Serializes runs of the same (connection, date) inside this process.
# Each entry is [lock, holders and waiters]; dropped once nobody uses it.
_run_locks: Dict[Tuple[int, date], list] = {}


@asynccontextmanager
async def _run_lock(key: Tuple[int, date]):
    entry = _run_locks.setdefault(key, [asyncio.Lock(), 0])
    entry[1] += 1
    try:
        async with entry[0]:
            yield
    finally:
        entry[1] -= 1
        if not entry[1]:
            del _run_locks[key]


def resolve_sync_date(value: Union[str, date, None] = None) -> date:
    """Given date, or today in the configured timezone."""
    if value is None:
        return datetime.now(ZoneInfo(settings.timezone)).date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


class LocationAggregate:
    """Running totals for one POS location during a sync."""

    def __init__(self, location_id: int, name: str):
        self.location_id = location_id
        self.name = name
        self.total = 0.0
        self.orders = 0
        self.payments: Dict[str, float] = {}
        # Insertion order is the tie-breaker when ranking products
        self.products: Dict[str, Dict[str, float]] = {}

    def add_order(self, order: PosOrder, payments: List[PosPayment], lines: List[PosOrderLine]) -> None:
        self.total += order.amount_total
        self.orders += 1
        for payment in payments:
            self.payments[payment.method_name] = self.payments.get(payment.method_name, 0.0) + payment.amount
        for line in lines:
            product = self.products.setdefault(line.product_name, {"qty": 0.0, "total": 0.0})
            product["qty"] += line.qty
            product["total"] += line.price_subtotal_incl

    def top_products(self, limit: int = TOP_PRODUCTS_LIMIT) -> List[Dict[str, Any]]:
        ranked = [
            {"name": name, "qty": round_quantity(data["qty"]), "total": round_amount(data["total"])}
            for name, data in self.products.items()
        ]
        ranked.sort(key=lambda p: p["qty"], reverse=True)
        return ranked[:limit]

    def summary_fields(self, connection_id: int) -> Dict[str, Any]:
        return {
            "pos_name": self.name,
            "connection_id": connection_id,
            "total_amount": round_amount(self.total),
            "order_count": self.orders,
            "payments": {method: round_amount(amount) for method, amount in self.payments.items()},
            "top_products": self.top_products(),
            "delivered": False,
        }


class SyncService:
    """
    Pulls one day of closed POS orders from an Odoo connection, aggregates
    them per POS location and upserts one DailySummary per (location, date).

    Authenticate -> fetch orders -> (return early when none) -> fetch payments
    and lines -> aggregate -> filter and upsert -> record success. Any failure
    after the date is resolved is recorded as an error job and re-raised.
    """

    def __init__(
        self,
        connector: OdooConnector,
        store: SyncStore,
        normalizer_service: Optional[NormalizerService] = None
    ):
        self.connector = connector
        self.store = store
        self.normalizer_service = normalizer_service or NormalizerService()

    def _order_domain(self, sync_date: date, company_ids: Optional[List[int]]) -> List[Any]:
        day = sync_date.isoformat()
        domain: List[Any] = [
            ['date_order', '>=', f"{day} 00:00:00"],
            ['date_order', '<=', f"{day} 23:59:59"],
            ['state', 'in', CLOSED_ORDER_STATES],
        ]
        if company_ids:
            domain.append(['company_id', 'in', list(company_ids)])
        return domain

    def aggregate(
        self,
        orders: List[PosOrder],
        payments: List[PosPayment],
        lines: List[PosOrderLine]
    ) -> Dict[int, LocationAggregate]:
        """Group orders by POS location in a single pass."""
        payments_by_order: Dict[int, List[PosPayment]] = defaultdict(list)
        for payment in payments:
            payments_by_order[payment.order_id].append(payment)
        lines_by_order: Dict[int, List[PosOrderLine]] = defaultdict(list)
        for line in lines:
            lines_by_order[line.order_id].append(line)

        locations: Dict[int, LocationAggregate] = {}
        for order in orders:
            if order.location_id is None:
                log.warning(f"Order {order.name or order.id} has no POS config, skipping")
                continue
            location = locations.get(order.location_id)
            if location is None:
                location = LocationAggregate(order.location_id, order.location_name or f"POS {order.location_id}")
                locations[order.location_id] = location
            location.add_order(order, payments_by_order.get(order.id, []), lines_by_order.get(order.id, []))
        return locations

    async def sync_daily_sales(self, connection: Connection, sync_date: date, api_key: str) -> dict:
        """
        Runs one sync of `connection` for `sync_date`.
        Returns stats: {'success', 'date', 'orders', 'synced', 'locations'}
        """
        day = sync_date.isoformat()
        stats = {"success": True, "date": day, "orders": 0, "synced": 0, "locations": []}

        try:
            log.info(f"Starting daily sync for connection {connection.id} ({connection.name}) on {day}")

            if not api_key:
                raise AuthenticationFailure("Authentication failed: stored API key could not be decrypted")
            uid = await self.connector.authenticate()
            if not uid:
                raise AuthenticationFailure("Authentication failed", {"connection_id": connection.id})

            # 1. Closed orders of the day
            order_records = await self.connector.search_read(
                uid, 'pos.order', self._order_domain(sync_date, connection.company_ids), ORDER_FIELDS
            )
            if not order_records:
                log.info(f"No orders found for connection {connection.id} on {day}")
                stats["message"] = "No orders found for this date"
                return stats

            orders = self.normalizer_service.normalize_orders(order_records)
            stats["orders"] = len(orders)
            order_ids = [order.id for order in orders]

            # 2. Payments and lines for all matched orders, in one batch each
            payment_records = await self.connector.search_read(
                uid, 'pos.payment', [['pos_order_id', 'in', order_ids]], PAYMENT_FIELDS
            )
            line_records = await self.connector.search_read(
                uid, 'pos.order.line', [['order_id', 'in', order_ids]], ORDER_LINE_FIELDS
            )
            payments = self.normalizer_service.normalize_payments(payment_records)
            lines = self.normalizer_service.normalize_order_lines(line_records)

            # 3. Aggregate, filter and persist
            locations = self.aggregate(orders, payments, lines)
            written = []
            for location_id, location in locations.items():
                if is_denied(location.name):
                    continue
                self.store.upsert_summary(location_id, sync_date, location.summary_fields(connection.id))
                written.append(location.name)
                log.debug(f"Saved summary for '{location.name}' on {day}: {location.orders} orders, total {round_amount(location.total)}")

            message = f"Synced {len(written)} locations: {', '.join(written)}"
            self.store.append_sync_job(connection.id, 'success', message, sync_date)

            stats["synced"] = len(written)
            stats["locations"] = written
            stats["message"] = message
            log.info(f"Daily sync completed for connection {connection.id} on {day}: {message}")
            return stats

        except Exception as e:
            log.error(f"Sync failed for connection {connection.id} on {day}: {e}")
            log.debug(traceback.format_exc())
            try:
                self.store.append_sync_job(connection.id, 'error', str(e), sync_date)
            except PersistenceError as record_error:
                log.error(f"Could not record failed sync for connection {connection.id}: {record_error}")
            raise


def build_connector(connection: Connection, api_key: str) -> OdooConnector:
    return OdooConnector({
        "base_url": connection.base_url,
        "database": connection.database,
        "username": connection.username,
        "api_key": api_key,
    })


async def run_daily_sync(db: Session, connection_id: int, sync_date: Union[str, date, None] = None) -> dict:
    """
    Sync one connection for one date (today when omitted).

    Raises NotFound for an unknown connection id; every failure after that is
    recorded as an error sync job and re-raised.
    """
    target = resolve_sync_date(sync_date)
    store = SyncStore(db)
    connection = store.get_connection(connection_id)
    api_key = decrypt_data(connection.api_key)

    async with _run_lock((connection.id, target)):
        connector = build_connector(connection, api_key)
        try:
            service = SyncService(connector=connector, store=store)
            return await service.sync_daily_sales(connection, target, api_key)
        finally:
            await connector.close()
