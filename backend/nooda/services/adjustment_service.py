# Overview: Manual component stock adjustments (corrections, deliveries, breakage).

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..models import ACTION_STOCK_ADJUSTMENT
from ..validation import ADJUST_ADD, MAX_STOCK_QUANTITY, coerce_int, normalize_direction, require_positive_int
from . import stock_repository
from .activity_service import append_activity_best_effort
from .concurrency import run_in_transaction
from .errors import InsufficientStock, StorageConflict
from .ledger_service import impact_line, shortfall_line
from .stock_repository import ENTITY_COMPONENT, stock_limit_exceeded


@dataclass(frozen=True)
class AdjustmentResult:
    component_id: int
    name: str
    unit: str
    old_stock: int
    new_stock: int

    @property
    def impact_summary(self) -> list[str]:
        return [impact_line(self.name, self.old_stock, self.new_stock)]

    @property
    def description(self) -> str:
        return (
            f"Stock of {self.name} changed from {self.old_stock} {self.unit} "
            f"to {self.new_stock} {self.unit}."
        )

    def to_dict(self) -> dict:
        return {
            "component_id": self.component_id,
            "old_stock": self.old_stock,
            "new_stock": self.new_stock,
            "impact_summary": self.impact_summary,
        }


def adjust_stock(component_id, direction, amount, actor=None) -> AdjustmentResult:
    """
    Add to or subtract from one component's stock outside any recipe.

    Subtracting more than the current stock raises InsufficientStock and leaves
    the stock untouched; adding past MAX_STOCK_QUANTITY raises StockLimitExceeded.
    The write goes through the same conditional update as
    ledger runs, so a concurrent deduction cannot push it below zero.
    """
    component_id = coerce_int(component_id, "component_id")
    direction = normalize_direction(direction)
    amount = require_positive_int(amount, "amount")
    delta = amount if direction == ADJUST_ADD else -amount

    def _op():
        row = stock_repository.read_one(ENTITY_COMPONENT, component_id, lock=True)
        if row.stock + delta < 0:
            raise InsufficientStock(
                shortfall_line(row.name, amount, int(row.stock)),
                details={"products": [], "components": [{
                    "id": row.id, "name": row.name, "required": amount, "available": int(row.stock),
                }]},
            )
        if row.stock + delta > MAX_STOCK_QUANTITY:
            raise stock_limit_exceeded(row.name, int(row.stock), delta)
        try:
            new_stock = stock_repository.apply_delta(ENTITY_COMPONENT, component_id, delta)
        except InsufficientStock as exc:
            raise StorageConflict(
                f"Stock of {row.name} changed during adjustment; nothing was applied. {exc.message}",
                details=exc.details,
            ) from exc
        return AdjustmentResult(
            component_id=row.id,
            name=row.name,
            unit=row.unit,
            old_stock=new_stock - delta,
            new_stock=new_stock,
        )

    try:
        result = run_in_transaction(_op)
    except StorageConflict as exc:
        current_app.logger.warning("Stock adjustment rolled back: %s", exc.message)
        raise

    current_app.logger.info("Ledger commit: %s", result.description)
    append_activity_best_effort(
        action_type=ACTION_STOCK_ADJUSTMENT,
        description=result.description,
        details={
            "component_id": result.component_id,
            "direction": direction,
            "amount": amount,
            "old_stock": result.old_stock,
            "new_stock": result.new_stock,
            "impact_summary": result.impact_summary,
        },
        actor=actor,
    )
    return result
