# Overview: Flask API routes for read-only stock views and recipe lookup.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_actor
from ..services import reporting_service, stock_repository
from ..services.errors import LedgerError
from ..services.recipe_service import resolve_recipe
from ..services.stock_repository import ENTITY_COMPONENT, ENTITY_PRODUCT
from ..validation import coerce_int


stock_bp = Blueprint("stock", __name__, url_prefix="/api")


@stock_bp.get("/stock")
@require_actor
def stock_overview_route():
    """Components by name and products by sort order, each with stock_status."""
    try:
        return jsonify(reporting_service.stock_overview()), 200
    except Exception:
        current_app.logger.exception("Failed to load stock overview")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/stock/critical")
@require_actor
def critical_stock_route():
    try:
        items = reporting_service.list_critical_stock()
    except Exception:
        current_app.logger.exception("Failed to load critical stock")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"items": items, "count": len(items)}), 200


@stock_bp.get("/products/<int:product_id>/recipe")
@require_actor
def product_recipe_route(product_id: int):
    """
    Resolved recipe for one product.

    Query: process_type=PRODUCTION|SALE (default PRODUCTION).
    Lines carry the component name, unit and current stock alongside the quantity.
    """
    process_type = request.args.get("process_type", "PRODUCTION")

    try:
        product_id = coerce_int(product_id, "product_id")
        product = stock_repository.read_one(ENTITY_PRODUCT, product_id)
        lines = resolve_recipe(product_id, process_type)
        components = stock_repository.read_many(
            ENTITY_COMPONENT, [line.component_id for line in lines]
        )
    except LedgerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to resolve recipe")
        return jsonify({"error": "Internal server error"}), 500

    items = []
    for line in lines:
        component = components.get(line.component_id)
        data = line.to_dict()
        if component is not None:
            data.update({"name": component.name, "unit": component.unit, "stock": int(component.stock)})
        items.append(data)

    return jsonify({
        "product_id": product.id,
        "product_name": product.name,
        "process_type": process_type.strip().upper(),
        "items": items,
    }), 200
