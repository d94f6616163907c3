"""Order normalization.

Turns whatever a point-of-sale client posted into an order the platform
accepts. Two input schemas are supported:

  pass-through  {"order": {...}}              already shaped like a platform order
  simplified    {"lineItems": [...]}          casual item list
                {"amountCents": 500, ...}     single item (older clients)

Every default lives in a named constant below and every field goes through
exactly one coercion helper.
"""

from __future__ import annotations

import copy
import enum
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import BadAmount, InvalidPayload

CURRENCY = "USD"
ORDER_STATE_OPEN = "OPEN"
ITEM_TYPE = "ITEM"
TAX_TYPE = "ADDITIVE"
TAX_NAME = "STATE"

DEFAULT_ITEM_NAME = "Item"
DEFAULT_MODIFIER_NAME = "Modifier"
DEFAULT_QUANTITY = "1"
DEFAULT_PRICE_CENTS = 0
DEFAULT_TAX_PERCENT = "7.25"

# $999,999,999.99; anything larger is rejected before it becomes an int
MAX_CENTS = 99_999_999_999

# single-item amount aliases, first present wins
SINGLE_ITEM_AMOUNT_FIELDS: tuple[tuple[str, ...], ...] = (
    ("amountCents",),
    ("priceCents",),
    ("amount",),
    ("amount_money", "amount"),
)
LINE_ITEM_PRICE_FIELDS: tuple[tuple[str, ...], ...] = (("price",), ("amount",))


class PayloadShape(str, enum.Enum):
    PASS_THROUGH = "pass_through"
    LINE_ITEMS = "line_items"
    SINGLE_ITEM = "single_item"
    INVALID = "invalid"


def classify(raw: Any) -> PayloadShape:
    """Decide which input schema a payload uses before touching it."""
    if not isinstance(raw, dict):
        return PayloadShape.INVALID
    order = raw.get("order")
    if isinstance(order, dict):
        return PayloadShape.PASS_THROUGH
    # false, 0 and "" mean "no order"; an empty list still counts as something sent
    if isinstance(order, list) or order:
        return PayloadShape.INVALID
    items = raw.get("lineItems")
    if isinstance(items, list) and items:
        return PayloadShape.LINE_ITEMS
    return PayloadShape.SINGLE_ITEM


# --- field coercion -----------------------------------------------------------

def parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            d = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        except InvalidOperation:
            return None
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return d if d.is_finite() else None


def _format_number(value: Any) -> str | None:
    """String form of a numeric value (``2`` -> ``"2"``, ``2.0`` -> ``"2"``)."""
    d = parse_decimal(value)
    if d is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_cents(value: Any) -> int | None:
    """Integer cents, or None when the value is not a whole number within MAX_CENTS."""
    d = parse_decimal(value)
    if d is None or abs(d) > MAX_CENTS or d != d.to_integral_value():
        return None
    return int(d)


def coerce_quantity(value: Any) -> str:
    if value is None:
        return DEFAULT_QUANTITY
    return _format_number(value) or DEFAULT_QUANTITY


def coerce_name(value: Any, default: str) -> str:
    return str(value) if value else default


def coerce_price(value: Any, what: str) -> int:
    """Non-negative cents for an explicit price; missing means free."""
    if value is None:
        return DEFAULT_PRICE_CENTS
    cents = coerce_cents(value)
    if cents is None or cents < 0:
        raise BadAmount(f"Bad price for {what}")
    return cents


def coerce_tax_percent(value: Any, default: str = DEFAULT_TAX_PERCENT) -> str:
    if value is None:
        return default
    pct = _format_number(value)
    if pct is None or Decimal(pct) < 0:
        raise BadAmount("Bad tax percent")
    return pct


def _first(obj: dict[str, Any], paths: tuple[tuple[str, ...], ...]) -> Any:
    for path in paths:
        cur: Any = obj
        for key in path:
            cur = cur.get(key) if isinstance(cur, dict) else None
        if cur is not None:
            return cur
    return None


def _money(cents: int) -> dict[str, Any]:
    return {"amount": cents, "currency": CURRENCY}


# --- order assembly -----------------------------------------------------------

def _normalize_pass_through(order: dict[str, Any], default_location_id: str) -> dict[str, Any]:
    out = copy.deepcopy(order)
    if not out.get("location_id"):
        out["location_id"] = default_location_id
    if not out.get("state"):
        out["state"] = ORDER_STATE_OPEN
    if isinstance(out.get("line_items"), list):
        out["line_items"] = [
            {**li, "quantity": coerce_quantity(li.get("quantity"))} if isinstance(li, dict) else li
            for li in out["line_items"]
        ]
    return out


def _single_item(raw: dict[str, Any]) -> dict[str, Any]:
    cents = coerce_cents(_first(raw, SINGLE_ITEM_AMOUNT_FIELDS))
    if cents is None or cents <= 0:
        raise BadAmount()
    return {
        "name": raw.get("itemName") or DEFAULT_ITEM_NAME,
        "quantity": raw.get("qty"),
        "price": cents,
    }


def _line_item(item: Any, index: int) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise InvalidPayload(f"lineItems[{index}] must be an object")
    price = _first(item, LINE_ITEM_PRICE_FIELDS)
    modifiers = item.get("modifiers")
    return {
        "name": coerce_name(item.get("name"), DEFAULT_ITEM_NAME),
        "quantity": coerce_quantity(item.get("quantity")),
        "base_price_money": _money(coerce_price(price, f"lineItems[{index}]")),
        "modifiers": [
            _modifier(m, index, j) for j, m in enumerate(modifiers)
        ] if isinstance(modifiers, list) else [],
        "item_type": ITEM_TYPE,
    }


def _modifier(mod: Any, index: int, mod_index: int) -> dict[str, Any]:
    where = f"lineItems[{index}].modifiers[{mod_index}]"
    if not isinstance(mod, dict):
        raise InvalidPayload(f"{where} must be an object")
    return {
        "name": coerce_name(mod.get("name"), DEFAULT_MODIFIER_NAME),
        "base_price_money": _money(coerce_price(mod.get("price"), where)),
    }


def normalize(
    raw: Any,
    default_location_id: str,
    default_tax_percent: str = DEFAULT_TAX_PERCENT,
) -> dict[str, Any]:
    """Build a platform order from a client payload.

    Raises BadAmount when no positive charge can come out of the payload and
    InvalidPayload when the payload is not an object at all.
    """
    shape = classify(raw)
    if shape is PayloadShape.INVALID:
        raise InvalidPayload("Body must be a JSON object with an optional 'order' object")
    if shape is PayloadShape.PASS_THROUGH:
        return _normalize_pass_through(raw["order"], default_location_id)

    items = raw["lineItems"] if shape is PayloadShape.LINE_ITEMS else [_single_item(raw)]
    return {
        # simplified shapes never choose their own location
        "location_id": default_location_id,
        "line_items": [_line_item(it, i) for i, it in enumerate(items)],
        "taxes": [
            {
                "type": TAX_TYPE,
                "name": TAX_NAME,
                "percentage": coerce_tax_percent(raw.get("taxPercent"), default_tax_percent),
            }
        ],
        "state": ORDER_STATE_OPEN,
    }
