# Overview: Stock repository; read and conditional-write access to component and product stock.

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select, update

from ..extensions import db
from ..models import Component, Product
from .concurrency import lock_for_update
from .errors import InsufficientStock, NotFound, StockLimitExceeded, ValidationError
from ..validation import MAX_STOCK_QUANTITY
"""
Stock repository contract (authoritative)

- Two collections, keyed by numeric id: components and products.
- stock is an integer >= 0; the repository never writes a negative value.
- apply_delta checks against the value stored AT APPLY TIME, inside the same
  UPDATE statement (stock = stock + delta WHERE stock + delta >= 0), never
  against a value the caller read earlier. Two concurrent deltas therefore
  cannot both pass against one stale reading.
- The repository does not commit. Callers group several apply_delta calls into
  one transaction (see concurrency.run_in_transaction).
"""


ENTITY_COMPONENT = "component"
ENTITY_PRODUCT = "product"

_MODELS = {
    ENTITY_COMPONENT: Component,
    ENTITY_PRODUCT: Product,
}

_LABELS = {
    ENTITY_COMPONENT: "Component",
    ENTITY_PRODUCT: "Product",
}


def _model_for(entity_type: str):
    model = _MODELS.get(entity_type)
    if model is None:
        raise ValidationError(f"Unknown entity type: {entity_type}")
    return model


def read_one(entity_type: str, entity_id: int, *, lock: bool = False):
    """Current row (all columns) for one entity; NotFound if the id is unknown."""
    rows = read_many(entity_type, [entity_id], lock=lock)
    if entity_id not in rows:
        raise NotFound(_LABELS[entity_type], entity_id)
    return rows[entity_id]


def read_many(entity_type: str, ids: Iterable[int], *, lock: bool = False) -> dict:
    """
    Batch read of current rows (id, name, stock, ...) straight from storage.

    Missing ids are absent from the result. Reads bypass the ORM identity map,
    so the values are never older than the current transaction.
    """
    table = _model_for(entity_type).__table__
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return {}
    stmt = select(table).where(table.c.id.in_(wanted))
    if lock:
        stmt = lock_for_update(stmt)
    return {row.id: row for row in db.session.execute(stmt).all()}


def get_stock(entity_type: str, entity_id: int) -> int:
    """Current persisted stock; NotFound if the id is unknown."""
    table = _model_for(entity_type).__table__
    stock = db.session.execute(
        select(table.c.stock).where(table.c.id == entity_id)
    ).scalar()
    if stock is None:
        raise NotFound(_LABELS[entity_type], entity_id)
    return int(stock)


def get_many_stock(entity_type: str, ids: Iterable[int]) -> dict[int, int]:
    """
    Batch read of current stock.

    Missing ids are simply absent from the result; the caller must detect gaps.
    """
    table = _model_for(entity_type).__table__
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return {}
    rows = db.session.execute(
        select(table.c.id, table.c.stock).where(table.c.id.in_(wanted))
    ).all()
    return {row.id: int(row.stock) for row in rows}


def stock_limit_exceeded(name: str, stock: int, delta: int) -> StockLimitExceeded:
    return StockLimitExceeded(
        f"Stock of {name} cannot exceed {MAX_STOCK_QUANTITY:,} (current {stock}, adding {delta})",
        details={"name": name, "stock": stock, "delta": delta, "max": MAX_STOCK_QUANTITY},
    )


def apply_delta(entity_type: str, entity_id: int, delta: int) -> int:
    """
    Atomically add delta (may be negative) to stored stock and return the new value.

    The non-negative check and the write are one conditional UPDATE against the
    current stored value. Zero affected rows means the row is missing
    (NotFound), the result would exceed MAX_STOCK_QUANTITY (StockLimitExceeded)
    or the result would be negative (InsufficientStock).
    """
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("delta must be an integer")
    if abs(delta) > MAX_STOCK_QUANTITY:
        raise ValidationError(f"delta cannot exceed {MAX_STOCK_QUANTITY:,}")

    table = _model_for(entity_type).__table__
    result = db.session.execute(
        update(table)
        .where(
            table.c.id == entity_id,
            table.c.stock + delta >= 0,
            table.c.stock + delta <= MAX_STOCK_QUANTITY,
        )
        .values(stock=table.c.stock + delta)
    )

    current = db.session.execute(
        select(table.c.stock, table.c.name).where(table.c.id == entity_id)
    ).first()
    if current is None:
        raise NotFound(_LABELS[entity_type], entity_id)

    if result.rowcount == 0 and current.stock + delta > MAX_STOCK_QUANTITY:
        raise stock_limit_exceeded(current.name, int(current.stock), delta)

    if result.rowcount == 0:
        raise InsufficientStock(
            f"Insufficient stock for {current.name}. Required: {-delta}, Available: {current.stock}",
            details={
                f"{entity_type}s": [{
                    "id": entity_id,
                    "name": current.name,
                    "required": -delta,
                    "available": int(current.stock),
                }],
            },
        )

    return int(current.stock)
