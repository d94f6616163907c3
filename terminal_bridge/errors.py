from __future__ import annotations

from typing import Any

STEP_CREATE_ORDER = "create-order"
STEP_COMPUTE_DUE = "compute-due"
STEP_CREATE_CHECKOUT = "create-checkout"


class BridgeError(Exception):
    """Base for failures that end a checkout request.

    ``error`` is what the caller sees; upstream failures carry the platform's
    error payload verbatim.
    """

    step: str | None = None
    status_code: int = 400

    def __init__(self, error: Any, status_code: int | None = None):
        super().__init__(error if isinstance(error, str) else repr(error))
        self.error = error
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.step:
            body["step"] = self.step
        body["error"] = self.error
        return body


class BadAmount(BridgeError):
    step = STEP_CREATE_ORDER

    def __init__(self, error: Any = "Bad amount"):
        super().__init__(error)


class InvalidPayload(BridgeError):
    step = STEP_CREATE_ORDER

    def __init__(self, error: Any = "Invalid payload"):
        super().__init__(error)


class UpstreamOrderError(BridgeError):
    step = STEP_CREATE_ORDER


class ComputeDueFailed(BridgeError):
    step = STEP_COMPUTE_DUE

    def __init__(self, error: Any = "Computed amount must be > 0"):
        super().__init__(error)


class UpstreamCheckoutError(BridgeError):
    step = STEP_CREATE_CHECKOUT

    def __init__(self, error: Any, status_code: int | None = None, order_id: str | None = None):
        super().__init__(error, status_code)
        self.order_id = order_id

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        # order exists upstream without a checkout; reconcile out of band
        if self.order_id:
            body["orderId"] = self.order_id
        return body


class ConfigError(BridgeError):
    status_code = 500
