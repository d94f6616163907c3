from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import Any

from .errors import ComputeDueFailed
from .normalize import MAX_CENTS, coerce_cents, parse_decimal

_CENT = Decimal(1)


def _round_cents(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _money_amount(obj: Any, field: str = "base_price_money") -> Decimal:
    money = obj.get(field) if isinstance(obj, dict) else None
    amount = money.get("amount") if isinstance(money, dict) else None
    if amount is None:
        return Decimal(0)
    d = parse_decimal(amount)
    if d is None:
        raise ComputeDueFailed(f"Unreadable amount in {field}: {amount!r}")
    return d


def _quantity(item: dict[str, Any]) -> Decimal:
    q = item.get("quantity")
    d = parse_decimal(str(q)) if q is not None else None
    return Decimal(1) if d is None else d


def platform_due(order: dict[str, Any]) -> int | None:
    """Platform computed amount due, when it is a positive integer."""
    money = order.get("net_amount_due_money")
    amount = money.get("amount") if isinstance(money, dict) else None
    cents = coerce_cents(amount)
    if cents is None or cents <= 0:
        return None
    return cents


def compute_subtotal(line_items: list[Any]) -> Decimal:
    subtotal = Decimal(0)
    for item in line_items:
        if not isinstance(item, dict):
            continue
        mods = item.get("modifiers")
        mod_total = sum((_money_amount(m) for m in mods), Decimal(0)) if isinstance(mods, list) else Decimal(0)
        subtotal += _round_cents((_money_amount(item) + mod_total) * _quantity(item))
    return subtotal


def combined_tax_rate(taxes: list[Any]) -> Decimal:
    rate = Decimal(0)
    for tax in taxes:
        pct = tax.get("percentage") if isinstance(tax, dict) else None
        if pct is None:
            continue
        d = parse_decimal(pct)
        if d is None:
            raise ComputeDueFailed(f"Unreadable tax percentage: {pct!r}")
        rate += d
    return rate


def recompute_due(order: dict[str, Any]) -> int:
    """subtotal + round_half_up(subtotal * rate / 100), all in cents.

    Raises ComputeDueFailed when the totals leave the MAX_CENTS range.
    """
    items = order.get("line_items")
    taxes = order.get("taxes")
    try:
        subtotal = compute_subtotal(items if isinstance(items, list) else [])
        rate = combined_tax_rate(taxes if isinstance(taxes, list) else [])
        total = subtotal + _round_cents(subtotal * rate / 100)
    except DecimalException as e:
        raise ComputeDueFailed(f"Order totals out of range: {e.__class__.__name__}")
    if abs(total) > MAX_CENTS:
        raise ComputeDueFailed("Order totals out of range")
    return int(total)


def resolve_due(order: dict[str, Any]) -> int:
    """Amount to charge for a created order.

    Prefers the platform's net amount due; recomputes from line items and
    taxes when that is missing or not positive. Raises ComputeDueFailed if
    the result is still not a positive number of cents.
    """
    due = platform_due(order)
    if due is not None:
        return due
    due = recompute_due(order)
    if due <= 0:
        raise ComputeDueFailed()
    return due
