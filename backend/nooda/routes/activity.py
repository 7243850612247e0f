# Overview: Flask API routes for reading the activity log.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_actor
from ..services.activity_service import list_recent_activity


activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity")


@activity_bp.get("")
@require_actor
def list_activity_route():
    """
    Most recent activity entries, newest first.

    Query: limit (default ACTIVITY_LOG_DEFAULT_LIMIT, clamped to ACTIVITY_LOG_MAX_LIMIT).
    """
    limit_raw = request.args.get("limit")
    limit = None
    if limit_raw is not None:
        try:
            limit = int(limit_raw)
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400

    try:
        rows = list_recent_activity(limit)
    except Exception:
        current_app.logger.exception("Failed to list activity")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"items": [r.to_dict() for r in rows], "count": len(rows)}), 200
