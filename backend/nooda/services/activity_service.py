# Overview: Audit log writer and reader for stock mutations.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ActivityLog, ACTION_TYPES
from .errors import AuditLogWriteFailure, ValidationError
"""
Activity log invariants (authoritative)

- Append-only: entries are inserted, never updated or deleted.
- Written AFTER the mutation it describes has committed, in its own
  transaction. A failed write never undoes the mutation; the ledger reports
  it as an operational warning instead.
- Read order is newest first (created_at desc, id desc).
"""


def append_activity(
    *,
    action_type: str,
    description: str,
    details: dict | None = None,
    actor=None,
) -> ActivityLog:
    """
    Insert and commit one activity entry.

    actor: object with user_id/username (validation.Actor) or None for system actions.

    Raises AuditLogWriteFailure if the entry could not be stored.
    """
    if action_type not in ACTION_TYPES:
        raise ValidationError(f"Unknown action_type: {action_type}")

    entry = ActivityLog(
        action_type=action_type,
        description=description,
        details=details or {},
        user_id=actor.user_id if actor is not None else None,
        username=actor.username if actor is not None else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AuditLogWriteFailure(
            f"Failed to write {action_type} activity entry: {exc}",
            details={"action_type": action_type, "description": description},
        ) from exc
    return entry


def append_activity_best_effort(**kwargs) -> ActivityLog | None:
    """
    append_activity for use after a committed mutation.

    A write failure is logged as a warning for out-of-band follow-up and
    None is returned; the mutation stands.
    """
    try:
        return append_activity(**kwargs)
    except AuditLogWriteFailure as exc:
        current_app.logger.warning(
            "Stock mutation committed but activity entry was not written: %s", exc.message
        )
        return None


def list_recent_activity(limit: int | None = None) -> list[ActivityLog]:
    """Most recent entries, newest first. limit is clamped to [1, ACTIVITY_LOG_MAX_LIMIT]."""
    if limit is None:
        limit = current_app.config.get("ACTIVITY_LOG_DEFAULT_LIMIT", 20)
    max_limit = current_app.config.get("ACTIVITY_LOG_MAX_LIMIT", 500)
    limit = max(1, min(int(limit), max_limit))

    return (
        db.session.query(ActivityLog)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )


def list_activity_between(start, end, action_type: str | None = None) -> list[ActivityLog]:
    """Entries with start <= created_at < end (UTC-naive bounds), oldest first."""
    q = db.session.query(ActivityLog).filter(
        ActivityLog.created_at >= start,
        ActivityLog.created_at < end,
    )
    if action_type is not None:
        q = q.filter(ActivityLog.action_type == action_type)
    return q.order_by(ActivityLog.created_at, ActivityLog.id).all()
