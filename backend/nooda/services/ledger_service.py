# Overview: Ledger engine; recipe-driven production runs and sale transactions with impact summaries.

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..models import ACTION_PRODUCTION, ACTION_SALE, PROCESS_PRODUCTION, PROCESS_SALE
from ..validation import MAX_STOCK_QUANTITY, coerce_int, normalize_sale_items, require_positive_int
from . import stock_repository
from .activity_service import append_activity_best_effort
from .concurrency import run_in_transaction
from .errors import InsufficientStock, NoRecipeDefined, NotFound, StorageConflict
from .recipe_service import resolve_recipe
from .stock_repository import ENTITY_COMPONENT, ENTITY_PRODUCT, stock_limit_exceeded
"""
Ledger invariants (authoritative)

- No component or product stock ever goes negative.
- Every check happens before any write: a run is planned (recipe resolution,
  batch stock read, aggregation, validation) and only then applied.
- Validation collects every shortfall instead of stopping at the first one.
  Sales report product shortfalls and component shortfalls as two blocks
  separated by a blank line.
- Sale ingredient requirements are aggregated across the whole cart in one map
  keyed by component id, so a shared component (tape, boxes) is validated and
  deducted once with its summed total.
- All deltas of one run are applied in one database transaction through
  conditional updates. If any row rejects its delta at apply time (a concurrent
  mutation got there first) the whole run is rolled back and reported as
  StorageConflict.
- Impact summary lines read "name: before -> after". Production lists the
  ingredients in recipe order, then the product; sales list the products in
  cart order, then the aggregated components.
- Preview runs the same planning code without applying, so with unchanged
  stock the preview summaries are identical to what the real run logs.
- The activity entry is written after commit; failing to write it never fails
  the run (logged as a warning instead).
"""


def impact_line(name: str, before: int, after: int) -> str:
    return f"{name}: {before} -> {after}"


def shortfall_line(name: str, required: int, available: int) -> str:
    return f"Insufficient stock for {name}. Required: {required}, Available: {available}"


@dataclass(frozen=True)
class StockChange:
    entity_type: str
    entity_id: int
    name: str
    delta: int
    before: int

    @property
    def after(self) -> int:
        return self.before + self.delta


@dataclass
class LedgerPlan:
    action_type: str
    description: str
    changes: list[StockChange]
    production_summary: list[str] = field(default_factory=list)
    sale_summary: list[str] = field(default_factory=list)

    def impact_summary(self) -> list[str]:
        return [impact_line(c.name, c.before, c.after) for c in self.changes]


@dataclass(frozen=True)
class ProductionResult:
    production_summary: list[str]
    impact_summary: list[str]

    def to_details(self) -> dict:
        """Activity log payload."""
        return {
            "production_summary": list(self.production_summary),
            "impact_summary": list(self.impact_summary),
        }

    def to_dict(self) -> dict:
        return self.to_details()


@dataclass(frozen=True)
class SaleResult:
    sale_summary: list[str]
    impact_summary: list[str]

    def to_details(self) -> dict:
        """Activity log payload."""
        return {
            "sale_summary": list(self.sale_summary),
            "impact_summary": list(self.impact_summary),
        }

    def to_dict(self) -> dict:
        return self.to_details()


def _shortfall(row, required: int) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "required": required,
        "available": int(row.stock),
    }


def _read_all(entity_type: str, ids: list[int], *, lock: bool) -> dict:
    """Batch read; single-cause NotFound for the first id storage does not know."""
    rows = stock_repository.read_many(entity_type, ids, lock=lock)
    for entity_id in ids:
        if entity_id not in rows:
            raise NotFound("Product" if entity_type == ENTITY_PRODUCT else "Component", entity_id)
    return rows


def _plan_production(product_id: int, quantity: int, *, lock: bool) -> LedgerPlan:
    product = stock_repository.read_one(ENTITY_PRODUCT, product_id, lock=lock)

    recipe = resolve_recipe(product_id, PROCESS_PRODUCTION)
    if not recipe:
        raise NoRecipeDefined(product.name, PROCESS_PRODUCTION, product_id)

    components = _read_all(ENTITY_COMPONENT, [line.component_id for line in recipe], lock=lock)

    changes: list[StockChange] = []
    shortfalls: list[dict] = []
    for line in recipe:
        component = components[line.component_id]
        needed = line.quantity_per_unit * quantity
        if component.stock < needed:
            shortfalls.append(_shortfall(component, needed))
        changes.append(StockChange(ENTITY_COMPONENT, component.id, component.name, -needed, int(component.stock)))

    if shortfalls:
        raise InsufficientStock(
            "\n".join(shortfall_line(s["name"], s["required"], s["available"]) for s in shortfalls),
            details={"products": [], "components": shortfalls},
        )

    if product.stock + quantity > MAX_STOCK_QUANTITY:
        raise stock_limit_exceeded(product.name, int(product.stock), quantity)

    changes.append(StockChange(ENTITY_PRODUCT, product.id, product.name, quantity, int(product.stock)))

    return LedgerPlan(
        action_type=ACTION_PRODUCTION,
        description=f"Produced {quantity}x {product.name}",
        changes=changes,
        production_summary=[f"{quantity}x {product.name}"],
    )


def _plan_sale(items, *, lock: bool) -> LedgerPlan:
    cart = normalize_sale_items(items)

    # Product totals per distinct product, in first-appearance order
    product_totals: dict[int, int] = {}
    for item in cart:
        product_totals[item.product_id] = product_totals.get(item.product_id, 0) + item.quantity

    products = _read_all(ENTITY_PRODUCT, list(product_totals), lock=lock)

    product_shortfalls = [
        _shortfall(products[pid], qty)
        for pid, qty in product_totals.items()
        if products[pid].stock < qty
    ]

    # Whole-cart ingredient aggregation: one total per component
    component_totals: dict[int, int] = {}
    for pid, qty in product_totals.items():
        for line in resolve_recipe(pid, PROCESS_SALE):
            component_totals[line.component_id] = (
                component_totals.get(line.component_id, 0) + line.quantity_per_unit * qty
            )

    components = _read_all(ENTITY_COMPONENT, list(component_totals), lock=lock)

    component_shortfalls = [
        _shortfall(components[cid], total)
        for cid, total in component_totals.items()
        if components[cid].stock < total
    ]

    if product_shortfalls or component_shortfalls:
        blocks = [
            "\n".join(shortfall_line(s["name"], s["required"], s["available"]) for s in group)
            for group in (product_shortfalls, component_shortfalls)
            if group
        ]
        raise InsufficientStock(
            "\n\n".join(blocks),
            details={"products": product_shortfalls, "components": component_shortfalls},
        )

    changes = [
        StockChange(ENTITY_PRODUCT, pid, products[pid].name, -qty, int(products[pid].stock))
        for pid, qty in product_totals.items()
    ] + [
        StockChange(ENTITY_COMPONENT, cid, components[cid].name, -total, int(components[cid].stock))
        for cid, total in component_totals.items()
    ]

    total_units = sum(item.quantity for item in cart)
    return LedgerPlan(
        action_type=ACTION_SALE,
        description=f"Sold {total_units} item(s)",
        changes=changes,
        sale_summary=[f"{item.quantity}x {products[item.product_id].name}" for item in cart],
    )


def _apply_plan(plan: LedgerPlan) -> list[str]:
    """
    Apply every delta of the plan; must run inside run_in_transaction.

    Returns the impact summary built from the values storage actually wrote.
    """
    impact = []
    for change in plan.changes:
        try:
            after = stock_repository.apply_delta(change.entity_type, change.entity_id, change.delta)
        except InsufficientStock as exc:
            raise StorageConflict(
                f"Stock changed while applying '{plan.description}'; nothing was applied. {exc.message}",
                details=exc.details,
            ) from exc
        impact.append(impact_line(change.name, after - change.delta, after))
    return impact


def _commit_plan(build_plan) -> tuple[LedgerPlan, list[str]]:
    def _op():
        plan = build_plan()
        return plan, _apply_plan(plan)

    try:
        return run_in_transaction(_op)
    except StorageConflict as exc:
        current_app.logger.warning("Ledger run rolled back: %s", exc.message)
        raise


def preview_produce(product_id, quantity) -> ProductionResult:
    """Summaries of a production run without applying it."""
    quantity = require_positive_int(quantity, "quantity")
    product_id = coerce_int(product_id, "product_id")

    plan = _plan_production(product_id, quantity, lock=False)
    return ProductionResult(plan.production_summary, plan.impact_summary())


def produce(product_id, quantity, actor=None) -> ProductionResult:
    """
    Run production: consume the PRODUCTION recipe times quantity, add quantity to the product.

    Raises ValidationError (StockLimitExceeded when the product would pass
    MAX_STOCK_QUANTITY), NotFound, NoRecipeDefined, InsufficientStock or
    StorageConflict; stored stock is unchanged whenever an error is raised.
    """
    quantity = require_positive_int(quantity, "quantity")
    product_id = coerce_int(product_id, "product_id")

    plan, impact = _commit_plan(lambda: _plan_production(product_id, quantity, lock=True))
    result = ProductionResult(plan.production_summary, impact)

    current_app.logger.info("Ledger commit: %s", plan.description)
    append_activity_best_effort(
        action_type=plan.action_type,
        description=plan.description,
        details=result.to_details(),
        actor=actor,
    )
    return result


def preview_sell(items) -> SaleResult:
    """Summaries of a sale without applying it."""
    plan = _plan_sale(items, lock=False)
    return SaleResult(plan.sale_summary, plan.impact_summary())


def sell(items, actor=None) -> SaleResult:
    """
    Record a sale: deduct sold products and their aggregated SALE-recipe components.

    items: iterable of validation.SaleItem. Zero-quantity lines are dropped;
    an empty cart raises NoItemsToSell.
    """
    cart = normalize_sale_items(items)

    plan, impact = _commit_plan(lambda: _plan_sale(cart, lock=True))
    result = SaleResult(plan.sale_summary, impact)

    current_app.logger.info("Ledger commit: %s", plan.description)
    append_activity_best_effort(
        action_type=plan.action_type,
        description=plan.description,
        details=result.to_details(),
        actor=actor,
    )
    return result
