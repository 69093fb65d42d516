# Overview: Best-effort alert feed; alerts are written after the transition they report has committed.

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import Alert
from ..models.alerts import ALERT_INFO, VALID_ALERT_TYPES


def emit_alert(
    *,
    title: str,
    message: str,
    alert_type: str = ALERT_INFO,
    business_unit_id: int | None = None,
    user_id: int | None = None,
) -> Alert | None:
    """
    Record an alert, best effort.

    Called after the state transition has been committed, so a failing
    alert sink can never undo or block it. Failures are logged and
    reported as None.
    """
    if alert_type not in VALID_ALERT_TYPES:
        current_app.logger.warning("Unknown alert type %r, storing as info", alert_type)
        alert_type = ALERT_INFO

    try:
        alert = Alert(
            title=title,
            message=message,
            type=alert_type,
            business_unit_id=business_unit_id,
            user_id=user_id,
            is_read=False,
        )
        db.session.add(alert)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to emit alert %r", title)
        return None

    current_app.logger.info("Alert emitted: id=%s type=%s title=%r", alert.id, alert.type, alert.title)
    return alert


def list_alerts(
    *,
    business_unit_id: int | None = None,
    unread_only: bool = False,
    limit: int = 100,
) -> list[Alert]:
    """
    List alerts newest first.

    When business_unit_id is given, company-wide alerts (no unit) are
    included alongside the unit's own.
    """
    q = db.session.query(Alert)
    if business_unit_id:
        q = q.filter((Alert.business_unit_id == business_unit_id) | (Alert.business_unit_id.is_(None)))
    if unread_only:
        q = q.filter_by(is_read=False)
    return q.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit).all()


def mark_alert_read(alert_id: int) -> Alert:
    alert = db.session.query(Alert).filter_by(id=alert_id).first()
    if not alert:
        raise NotFoundError(f"Alert {alert_id} not found", details={"id": alert_id})
    if not alert.is_read:
        alert.is_read = True
        db.session.commit()
    return alert


def mark_all_read(business_unit_id: int | None = None) -> int:
    q = db.session.query(Alert).filter_by(is_read=False)
    if business_unit_id:
        q = q.filter_by(business_unit_id=business_unit_id)
    updated = q.update({Alert.is_read: True}, synchronize_session=False)
    db.session.commit()
    return updated
