import re

import pytest

from terminal_bridge.checkout import process_order_request
from terminal_bridge.config import BridgeConfig
from terminal_bridge.errors import (
    BadAmount,
    ComputeDueFailed,
    ConfigError,
    UpstreamCheckoutError,
    UpstreamOrderError,
)
from terminal_bridge.square import CheckoutResult, OrderResult

CONFIG = BridgeConfig(access_token="tok", location_id="LOC1", device_id="dev-1")


class FakePlatform:
    """Echoes the order back with an id, like the Orders API does."""

    def __init__(self, due=None, checkout_error=None, order_id="ord-1"):
        self.due = due
        self.checkout_error = checkout_error
        self.order_id = order_id
        self.orders = []
        self.checkouts = []

    def create_order(self, order):
        self.orders.append(order)
        created = dict(order, id=self.order_id)
        if self.due is not None:
            created["net_amount_due_money"] = {"amount": self.due, "currency": "USD"}
        return OrderResult(order=created)

    def create_checkout(self, request):
        self.checkouts.append(request)
        if self.checkout_error:
            raise self.checkout_error
        return CheckoutResult(checkout={"id": "chk-1", "status": "PENDING"})


def test_line_items_end_to_end_uses_recomputed_due():
    platform = FakePlatform()
    body = process_order_request({"lineItems": [{"name": "Latte", "quantity": 2, "price": 450}]}, CONFIG, platform)
    # 900 + 7.25% (65.25 -> 65)
    assert body["dueCents"] == 965
    wire = platform.checkouts[0].to_wire()
    assert wire["amount_money"]["amount"] == body["dueCents"]
    assert re.fullmatch(r"HB-\d{6}", wire["reference_id"])
    assert wire["device_options"]["device_id"] == "dev-1"
    assert body == {
        "ok": True,
        "orderId": "ord-1",
        "dueCents": 965,
        "checkoutId": "chk-1",
        "status": "PENDING",
        "referenceId": wire["reference_id"],
    }


def test_platform_due_preferred():
    platform = FakePlatform(due=1234)
    body = process_order_request({"amountCents": 500}, CONFIG, platform)
    assert body["dueCents"] == 1234
    assert platform.checkouts[0].amount == 1234


def test_bad_amount_makes_no_calls():
    platform = FakePlatform()
    with pytest.raises(BadAmount):
        process_order_request({}, CONFIG, platform)
    assert platform.orders == []
    assert platform.checkouts == []


def test_zero_due_blocks_checkout():
    platform = FakePlatform()
    with pytest.raises(ComputeDueFailed):
        process_order_request({"lineItems": [{"name": "Water", "price": 0}]}, CONFIG, platform)
    assert len(platform.orders) == 1
    assert platform.checkouts == []


def test_missing_order_id():
    platform = FakePlatform(order_id=None)
    with pytest.raises(UpstreamOrderError) as exc:
        process_order_request({"amountCents": 100}, CONFIG, platform)
    assert exc.value.status_code == 502
    assert platform.checkouts == []


def test_checkout_failure_reports_orphaned_order(caplog):
    platform = FakePlatform(checkout_error=UpstreamCheckoutError({"errors": []}, status_code=400))
    with caplog.at_level("WARNING", logger="bridge.checkout"):
        with pytest.raises(UpstreamCheckoutError) as exc:
            process_order_request({"amountCents": 100}, CONFIG, platform)
    assert exc.value.order_id == "ord-1"
    assert exc.value.to_body()["orderId"] == "ord-1"
    assert "orphaned order order_id=ord-1" in caplog.text


def test_missing_config():
    with pytest.raises(ConfigError) as exc:
        process_order_request({"amountCents": 100}, BridgeConfig(access_token="tok"), FakePlatform())
    assert exc.value.status_code == 500
    assert "SQUARE_LOCATION_ID" in exc.value.error


def test_reference_prefix_from_config():
    cfg = BridgeConfig(access_token="tok", location_id="L", reference_prefix="KIOSK")
    body = process_order_request({"amountCents": 100}, cfg, FakePlatform())
    assert re.fullmatch(r"KIOSK-\d{6}", body["referenceId"])
