import logging
from typing import Any, List, Optional, Tuple

from app.connectors.base import PosOrder, PosPayment, PosOrderLine

log = logging.getLogger(__name__)


def many2one(value: Any) -> Tuple[Optional[int], Optional[str]]:
    """
    Splits an Odoo many2one value.

    search_read returns `[id, "Display Name"]` for a set relation and `False`
    for an empty one.
    """
    if isinstance(value, (list, tuple)) and value:
        name = value[1] if len(value) > 1 else None
        return int(value[0]), (str(name) if name not in (None, False) else None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value, None
    return None, None


def _float(value: Any) -> float:
    # Odoo sends False for unset numeric fields
    if value in (None, False):
        return 0.0
    return float(value)


def _ids(value: Any) -> List[int]:
    if isinstance(value, (list, tuple)):
        return [int(v) for v in value]
    return []


class NormalizerService:
    """
    Turns raw search_read records into PosOrder / PosPayment / PosOrderLine.
    """

    def normalize_order(self, record: dict) -> PosOrder:
        location_id, location_name = many2one(record.get("config_id"))
        return PosOrder(
            id=int(record["id"]),
            name=record.get("name") or None,
            location_id=location_id,
            location_name=location_name,
            amount_total=_float(record.get("amount_total")),
            amount_tax=_float(record.get("amount_tax")),
            line_ids=_ids(record.get("lines")),
            payment_ids=_ids(record.get("payment_ids")),
        )

    def normalize_payment(self, record: dict) -> PosPayment:
        order_id, _ = many2one(record.get("pos_order_id"))
        _, method_name = many2one(record.get("payment_method_id"))
        return PosPayment(
            order_id=order_id,
            method_name=method_name or "Unknown",
            amount=_float(record.get("amount")),
        )

    def normalize_order_line(self, record: dict) -> PosOrderLine:
        order_id, _ = many2one(record.get("order_id"))
        _, product_name = many2one(record.get("product_id"))
        return PosOrderLine(
            order_id=order_id,
            product_name=product_name or "Unknown product",
            qty=_float(record.get("qty")),
            price_subtotal_incl=_float(record.get("price_subtotal_incl")),
        )

    def normalize_orders(self, records: List[dict]) -> List[PosOrder]:
        return [self.normalize_order(r) for r in records]

    def normalize_payments(self, records: List[dict]) -> List[PosPayment]:
        return [self.normalize_payment(r) for r in records]

    def normalize_order_lines(self, records: List[dict]) -> List[PosOrderLine]:
        return [self.normalize_order_line(r) for r in records]
