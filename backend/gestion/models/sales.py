from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z

class Sale(db.Model):
    """
    Recorded sale for a business unit.

    Immutable once created: there is no update or delete path. The payment
    breakdown (cash/card/transfer) must add up to amount within the
    configured tolerance; sales_service.record_sale enforces it.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_sales_amount_positive"),
        # Monthly aggregation filters by unit then date
        db.Index("ix_sales_unit_date", "business_unit_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    sale_date = db.Column(db.Date, nullable=False, index=True)

    # Payment breakdown
    cash_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    card_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    transfer_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    description = db.Column(db.String(255), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    business_unit = db.relationship("BusinessUnit", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "amount": str(self.amount),
            "sale_date": self.sale_date.isoformat() if self.sale_date else None,
            "payment_methods": {
                "cash": str(self.cash_amount),
                "card": str(self.card_amount),
                "transfer": str(self.transfer_amount),
            },
            "description": self.description,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
