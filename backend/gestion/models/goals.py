from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z


class Goal(db.Model):
    """
    Monthly sales target for a business unit with its bonus rate.

    One goal per (business_unit, month_year); bonus_service.set_goal upserts.
    """
    __tablename__ = "goals"
    __table_args__ = (
        db.UniqueConstraint("business_unit_id", "month_year", name="uq_goals_unit_month"),
        db.CheckConstraint("target_amount > 0", name="ck_goals_target_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    # "YYYY-MM"
    month_year = db.Column(db.String(7), nullable=False)

    target_amount = db.Column(db.Numeric(12, 2), nullable=False)
    bonus_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=5)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    business_unit = db.relationship("BusinessUnit", backref=db.backref("goals", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "month_year": self.month_year,
            "target_amount": str(self.target_amount),
            "bonus_percentage": str(self.bonus_percentage),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Bonus(db.Model):
    """
    Payout snapshot for a unit/month, taken at calculation time.

    LIFECYCLE: pending -> approved -> paid (admin only, no reversal).

    Later sales do not change the snapshot; a new calculation refreshes a
    pending bonus in place and is refused once the bonus is approved or paid.
    """
    __tablename__ = "bonuses"
    __table_args__ = (
        db.UniqueConstraint("business_unit_id", "month", name="uq_bonuses_unit_month"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)
    month = db.Column(db.String(7), nullable=False, index=True)

    goal_amount = db.Column(db.Numeric(12, 2), nullable=False)
    actual_amount = db.Column(db.Numeric(12, 2), nullable=False)
    bonus_percentage = db.Column(db.Numeric(5, 2), nullable=False)
    percentage_achieved = db.Column(db.Integer, nullable=False, default=0)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # pending, approved, paid
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    calculated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    calculated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    business_unit = db.relationship("BusinessUnit", backref=db.backref("bonuses", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def qualifies(self) -> bool:
        return self.actual_amount >= self.goal_amount

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "month": self.month,
            "goal_amount": str(self.goal_amount),
            "actual_amount": str(self.actual_amount),
            "bonus_percentage": str(self.bonus_percentage),
            "percentage_achieved": self.percentage_achieved,
            "amount": str(self.amount),
            "qualifies": self.qualifies,
            "status": self.status,
            "calculated_by_user_id": self.calculated_by_user_id,
            "calculated_at": to_utc_z(self.calculated_at),
            "approved_by_user_id": self.approved_by_user_id,
            "approved_at": to_utc_z(self.approved_at),
            "paid_by_user_id": self.paid_by_user_id,
            "paid_at": to_utc_z(self.paid_at),
            "version_id": self.version_id,
        }
