# Overview: Recipe resolver; bill-of-materials lookup for production and sale.

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Component, Product, RecipeEntry, PROCESS_TYPES
from .errors import NotFound, ValidationError
from ..validation import MAX_STOCK_QUANTITY


@dataclass(frozen=True)
class RecipeLine:
    component_id: int
    quantity_per_unit: int

    def to_dict(self) -> dict:
        return {"component_id": self.component_id, "quantity_per_unit": self.quantity_per_unit}


def normalize_process_type(process_type: str) -> str:
    value = (process_type or "").strip().upper()
    if value not in PROCESS_TYPES:
        raise ValidationError(f"process_type must be one of {', '.join(PROCESS_TYPES)}")
    return value


def resolve_recipe(product_id: int, process_type: str) -> list[RecipeLine]:
    """
    Ordered list of (component, quantity per unit) consumed by one unit of product.

    Recipes come from reference data only (recipe_entries), keyed by product id.
    An empty list means no recipe is defined; the caller decides whether that
    is an error.

    Rows for the same component are merged into one line (quantities summed,
    first position wins), so callers never see a component twice.
    """
    process_type = normalize_process_type(process_type)

    rows = (
        db.session.query(RecipeEntry)
        .filter_by(product_id=product_id, process_type=process_type)
        .order_by(RecipeEntry.position, RecipeEntry.id)
        .all()
    )

    merged: dict[int, int] = {}
    for row in rows:
        merged[row.component_id] = merged.get(row.component_id, 0) + row.quantity_needed

    return [RecipeLine(component_id=cid, quantity_per_unit=qty) for cid, qty in merged.items()]


def set_recipe(product_id: int, process_type: str, lines: list[tuple[int, int]]) -> list[RecipeLine]:
    """
    Replace the recipe for (product, process_type) with the given lines.

    lines: [(component_id, quantity_per_unit), ...] in recipe order. Duplicate
    components are merged before writing. Does not commit.
    """
    process_type = normalize_process_type(process_type)

    if db.session.query(Product.id).filter_by(id=product_id).first() is None:
        raise NotFound("Product", product_id)

    merged: dict[int, int] = {}
    for component_id, quantity in lines:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("quantity_per_unit must be a positive integer")
        if quantity > MAX_STOCK_QUANTITY:
            raise ValidationError(f"quantity_per_unit cannot exceed {MAX_STOCK_QUANTITY:,}")
        merged[component_id] = merged.get(component_id, 0) + quantity

    known = {
        cid for (cid,) in db.session.query(Component.id).filter(Component.id.in_(list(merged))).all()
    } if merged else set()
    missing = [cid for cid in merged if cid not in known]
    if missing:
        raise NotFound("Component", missing[0])

    db.session.query(RecipeEntry).filter_by(
        product_id=product_id, process_type=process_type
    ).delete(synchronize_session=False)

    for position, (component_id, quantity) in enumerate(merged.items()):
        db.session.add(RecipeEntry(
            product_id=product_id,
            component_id=component_id,
            quantity_needed=quantity,
            process_type=process_type,
            position=position,
        ))
    db.session.flush()

    return [RecipeLine(component_id=cid, quantity_per_unit=qty) for cid, qty in merged.items()]
