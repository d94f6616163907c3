from __future__ import annotations

from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

from .config import BridgeConfig
from .errors import UpstreamCheckoutError, UpstreamOrderError
from .logging_config import get_logger
from .normalize import CURRENCY
from .utils import new_idempotency_key

ORDERS_PATH = "/v2/orders"
TERMINAL_CHECKOUTS_PATH = "/v2/terminals/checkouts"

logger = get_logger("square")


class OrderResult(BaseModel):
    order: dict[str, Any] = Field(default_factory=dict)

    @property
    def order_id(self) -> str | None:
        return self.order.get("id")


class CheckoutRequest(BaseModel):
    order_id: str
    amount: int
    reference_id: str
    device_id: str
    currency: str = CURRENCY

    def to_wire(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "amount_money": {"amount": self.amount, "currency": self.currency},
            "reference_id": self.reference_id,
            "device_options": {"device_id": self.device_id},
        }


class CheckoutResult(BaseModel):
    checkout: dict[str, Any] = Field(default_factory=dict)

    @property
    def checkout_id(self) -> str | None:
        return self.checkout.get("id")

    @property
    def status(self) -> str | None:
        return self.checkout.get("status")


class PaymentsPlatform(Protocol):
    def create_order(self, order: dict[str, Any]) -> OrderResult: ...

    def create_checkout(self, request: CheckoutRequest) -> CheckoutResult: ...


def _body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class SquareClient:
    """Orders + Terminal API calls against one Square environment.

    Every call carries a fresh idempotency key. Non-2xx answers raise the
    matching upstream error with Square's error body untouched.
    """

    def __init__(self, config: BridgeConfig, transport: httpx.BaseTransport | None = None):
        self.config = config
        self._transport = transport  # tests inject httpx.MockTransport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.access_token}",
            "Square-Version": self.config.api_version,
            "Content-Type": "application/json",
        }

    def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        with httpx.Client(
            base_url=self.config.base_url,
            timeout=self.config.http_timeout,
            transport=self._transport,
        ) as client:
            return client.post(path, json=body, headers=self._headers())

    def create_order(self, order: dict[str, Any]) -> OrderResult:
        resp = self._post(ORDERS_PATH, {"idempotency_key": new_idempotency_key(), "order": order})
        payload = _body(resp)
        if resp.is_error:
            logger.warning(f"create-order rejected status={resp.status_code}")
            raise UpstreamOrderError(payload, status_code=resp.status_code)
        if not isinstance(payload, dict):
            raise UpstreamOrderError("Order response was not a JSON object", status_code=502)
        return OrderResult(order=payload.get("order") or {})

    def create_checkout(self, request: CheckoutRequest) -> CheckoutResult:
        resp = self._post(
            TERMINAL_CHECKOUTS_PATH,
            {"idempotency_key": new_idempotency_key(), "checkout": request.to_wire()},
        )
        payload = _body(resp)
        if resp.is_error:
            logger.warning(f"create-checkout rejected status={resp.status_code} order_id={request.order_id}")
            raise UpstreamCheckoutError(payload, status_code=resp.status_code, order_id=request.order_id)
        if not isinstance(payload, dict):
            raise UpstreamCheckoutError(
                "Checkout response was not a JSON object", status_code=502, order_id=request.order_id
            )
        return CheckoutResult(checkout=payload.get("checkout") or {})
