from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z


ALERT_INFO = "info"
ALERT_WARNING = "warning"
ALERT_ERROR = "error"
ALERT_SUCCESS = "success"
VALID_ALERT_TYPES = (ALERT_INFO, ALERT_WARNING, ALERT_ERROR, ALERT_SUCCESS)


class Alert(db.Model):
    """
    Notification emitted by rendition and bonus transitions.

    Optionally scoped to a business unit and/or a user; unscoped alerts
    are company-wide.
    """
    __tablename__ = "alerts"
    __table_args__ = (
        db.Index("ix_alerts_unit_read", "business_unit_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), nullable=False, default=ALERT_INFO)

    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "business_unit_id": self.business_unit_id,
            "user_id": self.user_id,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
