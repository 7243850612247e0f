# Overview: Flask API routes for ledger mutations (production, sales, manual adjustments) and their previews.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_actor
from ..validation import AdjustmentRequest, ProductionRequest, SaleRequest
from ..services import adjustment_service, ledger_service
from ..services.errors import LedgerError

"""
Error mapping:
- LedgerError subclasses carry their own HTTP status and serialize as
  {"error", "code", "details"}; stock is unchanged whenever one is returned.
- Anything else is logged with traceback and reported as a generic 500.
"""

ledger_bp = Blueprint("ledger", __name__, url_prefix="/api")


def _error_response(exc: LedgerError):
    return jsonify(exc.to_dict()), exc.http_status


@ledger_bp.post("/production")
@require_actor
def produce_route():
    """Run production for one product. Body: {product_id, quantity}."""
    payload = request.get_json(silent=True) or {}

    try:
        req = ProductionRequest.from_payload(payload)
        result = ledger_service.produce(req.product_id, req.quantity, actor=g.actor)
        return jsonify(result.to_dict()), 201
    except LedgerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to run production")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/production/preview")
@require_actor
def preview_production_route():
    payload = request.get_json(silent=True) or {}

    try:
        req = ProductionRequest.from_payload(payload)
        result = ledger_service.preview_produce(req.product_id, req.quantity)
        return jsonify(result.to_dict()), 200
    except LedgerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to preview production")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/sales")
@require_actor
def sell_route():
    """Record a sale. Body: {items: [{product_id, quantity}, ...]}."""
    payload = request.get_json(silent=True) or {}

    try:
        req = SaleRequest.from_payload(payload)
        result = ledger_service.sell(req.items, actor=g.actor)
        return jsonify(result.to_dict()), 201
    except LedgerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/sales/preview")
@require_actor
def preview_sale_route():
    payload = request.get_json(silent=True) or {}

    try:
        req = SaleRequest.from_payload(payload)
        result = ledger_service.preview_sell(req.items)
        return jsonify(result.to_dict()), 200
    except LedgerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to preview sale")
        return jsonify({"error": "Internal server error"}), 500


@ledger_bp.post("/components/<int:component_id>/adjust")
@require_actor
def adjust_component_route(component_id: int):
    """Manual stock correction. Body: {direction: add|subtract, amount}."""
    payload = request.get_json(silent=True) or {}

    try:
        req = AdjustmentRequest.from_payload(component_id, payload)
        result = adjustment_service.adjust_stock(
            req.component_id, req.direction, req.amount, actor=g.actor
        )
        return jsonify(result.to_dict()), 200
    except LedgerError as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust component stock")
        return jsonify({"error": "Internal server error"}), 500
