from __future__ import annotations

from ..extensions import db
from nooda.time_utils import utcnow, to_utc_z


ACTION_PRODUCTION = "PRODUCTION"
ACTION_SALE = "SALE"
ACTION_STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT"
ACTION_TYPES = (ACTION_PRODUCTION, ACTION_SALE, ACTION_STOCK_ADJUSTMENT)


class ActivityLog(db.Model):
    """
    Append-only audit trail of stock mutations.

    - One row per completed mutation, written after the mutation commits.
    - Rows are never updated or deleted by the application.
    - user_id/username are null for system actions (CLI, scheduled jobs).
    - details holds the human-readable summaries:
        production_summary: ["5x DCP Pro"]
        sale_summary:       ["3x DCP Mini", "2x DCP Core"]
        impact_summary:     ["Botol Pro: 25 -> 15", ...]
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_created", "created_at", "id"),
        db.Index("ix_activity_logs_action_created", "action_type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Set in Python so ordering is stable at sub-second resolution
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    action_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=False)

    user_id = db.Column(db.String(64), nullable=True, index=True)
    username = db.Column(db.String(128), nullable=True)

    details = db.Column(db.JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<ActivityLog id={self.id} action_type={self.action_type!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "action_type": self.action_type,
            "description": self.description,
            "user_id": self.user_id,
            "username": self.username,
            "details": self.details or {},
        }
