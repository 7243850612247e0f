from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .services.errors import ValidationError, NoItemsToSell


# Maximum stock, quantity or id: 999,999,999
# Keeps every value and every stock + delta inside SQLite INTEGER range
MAX_STOCK_QUANTITY = 999_999_999

ADJUST_ADD = "add"
ADJUST_SUBTRACT = "subtract"
ADJUST_DIRECTIONS = (ADJUST_ADD, ADJUST_SUBTRACT)


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for request fields.

    Accepts ints (not bools) and plain digit strings; rejects floats,
    decimals, scientific notation and magnitudes above MAX_STOCK_QUANTITY.
    """
    number = _parse_int(value, field)
    if abs(number) > MAX_STOCK_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_STOCK_QUANTITY:,}")
    return number


def _parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str) -> int:
    number = coerce_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return number


def _require_fields(payload: Any, fields: tuple[str, ...]) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = [f for f in fields if payload.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


@dataclass(frozen=True)
class Actor:
    """Authenticated identity attached to a mutation for the audit trail."""
    user_id: str
    username: str


@dataclass(frozen=True)
class ProductionRequest:
    product_id: int
    quantity: int

    @classmethod
    def from_payload(cls, payload: Any) -> "ProductionRequest":
        payload = _require_fields(payload, ("product_id", "quantity"))
        return cls(
            product_id=coerce_int(payload["product_id"], "product_id"),
            quantity=require_positive_int(payload["quantity"], "quantity"),
        )


@dataclass(frozen=True)
class SaleItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class SaleRequest:
    items: tuple[SaleItem, ...]

    @classmethod
    def from_payload(cls, payload: Any) -> "SaleRequest":
        payload = _require_fields(payload, ("items",))
        raw_items = payload["items"]
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        items = []
        for index, raw in enumerate(raw_items):
            raw = _require_fields(raw, ("product_id", "quantity"))
            items.append(SaleItem(
                product_id=coerce_int(raw["product_id"], f"items[{index}].product_id"),
                quantity=coerce_int(raw["quantity"], f"items[{index}].quantity"),
            ))
        return cls(items=tuple(items))


def normalize_sale_items(items) -> list[SaleItem]:
    """
    Drop zero-quantity lines; reject negative quantities and empty carts.

    Lines keep their cart order (the sale summary follows it).
    """
    kept = []
    for index, item in enumerate(items or ()):
        quantity = coerce_int(item.quantity, f"items[{index}].quantity")
        if quantity < 0:
            raise ValidationError(f"items[{index}].quantity must not be negative")
        if quantity == 0:
            continue
        kept.append(SaleItem(product_id=coerce_int(item.product_id, f"items[{index}].product_id"), quantity=quantity))
    if not kept:
        raise NoItemsToSell()
    return kept


@dataclass(frozen=True)
class AdjustmentRequest:
    component_id: int
    direction: str
    amount: int

    @classmethod
    def from_payload(cls, component_id: int, payload: Any) -> "AdjustmentRequest":
        payload = _require_fields(payload, ("direction", "amount"))
        return cls(
            component_id=component_id,
            direction=normalize_direction(payload["direction"]),
            amount=require_positive_int(payload["amount"], "amount"),
        )


def normalize_direction(direction: Any) -> str:
    value = str(direction or "").strip().lower()
    if value not in ADJUST_DIRECTIONS:
        raise ValidationError("direction must be 'add' or 'subtract'")
    return value
