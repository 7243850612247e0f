# Overview: Read-only stock overview, critical-stock list and daily digest data.

from __future__ import annotations

import re
from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Component, Product, ACTION_PRODUCTION, ACTION_SALE
from nooda.time_utils import local_day_bounds, local_today
from .activity_service import list_activity_between


STATUS_OK = "ok"
STATUS_WARNING = "warning"
STATUS_DANGER = "danger"

_LEADING_QTY = re.compile(r"^\s*(\d+)\s*x")


def stock_status(stock: int, warning_limit: int | None = None) -> str:
    """danger at zero, warning below the limit (row override, else STOCK_WARNING_LIMIT), else ok."""
    if warning_limit is None:
        warning_limit = current_app.config.get("STOCK_WARNING_LIMIT", 20)
    if stock <= 0:
        return STATUS_DANGER
    if stock < warning_limit:
        return STATUS_WARNING
    return STATUS_OK


def _with_status(row, entity_type: str) -> dict:
    data = row.to_dict()
    data["entity_type"] = entity_type
    data["stock_status"] = stock_status(row.stock, row.warning_limit)
    return data


def list_components() -> list[Component]:
    return db.session.query(Component).order_by(Component.name).all()


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.sort_order, Product.name).all()


def stock_overview() -> dict:
    return {
        "components": [_with_status(c, "component") for c in list_components()],
        "products": [_with_status(p, "product") for p in list_products()],
    }


def list_critical_stock() -> list[dict]:
    """Every component and product currently in warning or danger status."""
    rows = [_with_status(c, "component") for c in list_components()]
    rows += [_with_status(p, "product") for p in list_products()]
    return [
        {
            "entity_type": r["entity_type"],
            "id": r["id"],
            "name": r["name"],
            "stock": r["stock"],
            "warning_limit": (
                r["warning_limit"]
                if r["warning_limit"] is not None
                else current_app.config.get("STOCK_WARNING_LIMIT", 20)
            ),
            "stock_status": r["stock_status"],
        }
        for r in rows
        if r["stock_status"] != STATUS_OK
    ]


def summary_units(line: str) -> int:
    """Units in a summary line such as '3x DCP Mini'; 0 if it has no leading count."""
    match = _LEADING_QTY.match(line or "")
    return int(match.group(1)) if match else 0


def build_daily_digest(day: date | None = None, tz_name: str | None = None) -> dict:
    """
    Data for the end-of-day report: what was sold, what was produced, what runs low.

    Reads the activity log and current stock only. Rendering and delivery
    belong to the notifier that consumes this dict.
    """
    tz_name = tz_name or current_app.config.get("DIGEST_TIMEZONE", "UTC")
    day = day or local_today(tz_name)
    start, end = local_day_bounds(day, tz_name)

    sale_lines: list[str] = []
    for entry in list_activity_between(start, end, ACTION_SALE):
        sale_lines.extend((entry.details or {}).get("sale_summary") or [])

    production_lines: list[str] = []
    for entry in list_activity_between(start, end, ACTION_PRODUCTION):
        production_lines.extend((entry.details or {}).get("production_summary") or [])

    critical = list_critical_stock()

    return {
        "date": day.isoformat(),
        "timezone": tz_name,
        "sales": sale_lines,
        "total_units_sold": sum(summary_units(line) for line in sale_lines),
        "production": production_lines,
        "total_units_produced": sum(summary_units(line) for line in production_lines),
        "critical_stock": critical,
        "warnings": {
            "no_sales": not sale_lines,
            "critical_stock": bool(critical),
        },
    }
