import pytest

from app.services.normalizer import NormalizerService, many2one


@pytest.fixture
def normalizer():
    return NormalizerService()


def test_many2one_variants():
    assert many2one([10, "Central"]) == (10, "Central")
    assert many2one([10]) == (10, None)
    assert many2one(7) == (7, None)
    assert many2one(False) == (None, None)
    assert many2one(None) == (None, None)
    assert many2one(True) == (None, None)


def test_normalize_order(normalizer):
    order = normalizer.normalize_order({
        "id": 1, "name": "Central/0001", "amount_total": 100.0, "amount_tax": 15.25,
        "config_id": [10, "Central"], "lines": [11, 12], "payment_ids": [21],
    })
    assert order.id == 1
    assert order.location_id == 10
    assert order.location_name == "Central"
    assert order.amount_total == 100.0
    assert order.line_ids == [11, 12]
    assert order.payment_ids == [21]


def test_normalize_order_with_unset_fields(normalizer):
    order = normalizer.normalize_order({"id": 5, "config_id": False, "amount_total": False})
    assert order.location_id is None
    assert order.amount_total == 0.0
    assert order.line_ids == []


def test_normalize_payment_and_line(normalizer):
    payment = normalizer.normalize_payment({"amount": 12, "payment_method_id": [1, "Cash"], "pos_order_id": [3, "S/3"]})
    assert (payment.order_id, payment.method_name, payment.amount) == (3, "Cash", 12.0)

    unknown = normalizer.normalize_payment({"amount": 1.0, "payment_method_id": False, "pos_order_id": [3, "S/3"]})
    assert unknown.method_name == "Unknown"

    line = normalizer.normalize_order_line({"product_id": [9, "[ESP] Espresso"], "qty": 2, "price_subtotal_incl": 9.0, "order_id": [3, "S/3"]})
    assert (line.order_id, line.product_name, line.qty, line.price_subtotal_incl) == (3, "[ESP] Espresso", 2.0, 9.0)
