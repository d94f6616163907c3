from __future__ import annotations

from typing import Any

from .config import BridgeConfig
from .due import resolve_due
from .errors import ConfigError, UpstreamCheckoutError, UpstreamOrderError
from .logging_config import get_logger
from .normalize import normalize
from .square import CheckoutRequest, PaymentsPlatform
from .utils import make_reference_id

logger = get_logger("checkout")


def process_order_request(raw: Any, config: BridgeConfig, platform: PaymentsPlatform) -> dict[str, Any]:
    """Normalize, create the order, resolve the due amount, start the terminal checkout.

    Steps run strictly in sequence and the first failure propagates as a
    BridgeError subclass. A checkout failure leaves the created order in
    place; its id travels with the error for reconciliation.
    """
    missing = config.missing()
    if missing:
        raise ConfigError(f"Server config invalid: missing {', '.join(missing)}")

    order = normalize(raw, config.location_id or "", config.default_tax_percent)
    logger.debug(f"normalized order line_items={len(order.get('line_items') or [])}")

    created = platform.create_order(order)
    order_id = created.order_id
    if not order_id:
        raise UpstreamOrderError("Order response missing order id", status_code=502)

    due_cents = resolve_due(created.order)
    reference_id = make_reference_id(config.reference_prefix)
    logger.info(f"order created order_id={order_id} due_cents={due_cents} reference_id={reference_id}")

    request = CheckoutRequest(
        order_id=order_id,
        amount=due_cents,
        reference_id=reference_id,
        device_id=config.device_id,
    )
    try:
        result = platform.create_checkout(request)
    except UpstreamCheckoutError as e:
        e.order_id = e.order_id or order_id
        logger.warning(f"orphaned order order_id={order_id} reference_id={reference_id} status={e.status_code}")
        raise

    logger.info(f"checkout created checkout_id={result.checkout_id} status={result.status} order_id={order_id}")
    return {
        "ok": True,
        "orderId": order_id,
        "dueCents": due_cents,
        "checkoutId": result.checkout_id,
        "status": result.status,
        "referenceId": reference_id,
    }
