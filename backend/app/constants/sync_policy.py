"""Fixed business rules applied by the daily sync."""

from decimal import Decimal, ROUND_HALF_UP

# POS locations whose name contains any of these (case-insensitive) are never persisted
DENY_LIST = ('CRUZ', 'CHALPON', 'INDACOCHEA', 'AMAY', 'P&P')

TOP_PRODUCTS_LIMIT = 10
AMOUNT_PRECISION = Decimal('0.01')

# pos.order states that count as a closed sale
CLOSED_ORDER_STATES = ['paid', 'done', 'invoiced']

ORDER_FIELDS = ['id', 'name', 'amount_total', 'amount_tax', 'pos_reference', 'session_id', 'config_id', 'lines', 'payment_ids']
PAYMENT_FIELDS = ['amount', 'payment_method_id', 'pos_order_id']
ORDER_LINE_FIELDS = ['product_id', 'qty', 'price_subtotal_incl', 'order_id']


def is_denied(location_name: str) -> bool:
    name = (location_name or '').upper()
    return any(entry.upper() in name for entry in DENY_LIST)


def round_amount(value: float) -> float:
    """Half-up rounding to cents."""
    return float(Decimal(str(value)).quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_UP))


def round_quantity(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
