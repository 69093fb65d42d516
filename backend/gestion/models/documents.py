from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z


def _money(value) -> str | None:
    return str(value) if value is not None else None


class Transfer(db.Model):
    """
    Cash transfer from the central fund to a business unit.

    LIFECYCLE:
    1. pending: Transfer created by an admin/manager
    2. received: Unit confirmed the cash arrived
    3. rendition_pending: A rendition was created against it
    4. completed: Rendition approved, transfer closed (immutable)

    A draft rendition being deleted moves it back from rendition_pending
    to received. Status is written only by transfer_service.transition_transfer.
    """
    __tablename__ = "transfers"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_transfers_amount_positive"),
        db.Index("ix_transfers_unit_week", "to_business_unit_id", "week_identifier"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    from_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    to_business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Weekly cycle key, e.g. "2025-W14"
    week_identifier = db.Column(db.String(100), nullable=False)

    # pending, received, rendition_pending, completed
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    received_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    from_user = db.relationship("User", foreign_keys=[from_user_id])
    to_business_unit = db.relationship("BusinessUnit", foreign_keys=[to_business_unit_id])
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Transfer id={self.id} unit={self.to_business_unit_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_user_id": self.from_user_id,
            "to_business_unit_id": self.to_business_unit_id,
            "amount": _money(self.amount),
            "week_identifier": self.week_identifier,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "received_at": to_utc_z(self.received_at),
            "completed_at": to_utc_z(self.completed_at),
            "version_id": self.version_id,
        }


class Rendition(db.Model):
    """
    Reconciliation report accounting for how a transfer's cash was spent.

    INVARIANTS:
    - Exactly one rendition per transfer (uq_renditions_transfer)
    - total_expenses == sum(expense.amount)
    - remaining_amount == transfer_amount - total_expenses (negative = overspend)

    Both totals are denormalized and recomputed by rendition_service on
    every expense insert/update/delete.
    """
    __tablename__ = "renditions"
    __table_args__ = (
        db.UniqueConstraint("transfer_id", name="uq_renditions_transfer"),
        db.Index("ix_renditions_unit_status", "business_unit_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transfer_id = db.Column(db.Integer, db.ForeignKey("transfers.id"), nullable=False)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Copied from the transfer at creation
    week_identifier = db.Column(db.String(100), nullable=False)
    transfer_amount = db.Column(db.Numeric(12, 2), nullable=False)

    total_expenses = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    remaining_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    # draft, submitted, approved, rejected
    status = db.Column(db.String(20), nullable=False, default="draft", index=True)
    notes = db.Column(db.Text, nullable=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)

    transfer = db.relationship("Transfer", backref=db.backref("rendition", uselist=False))
    business_unit = db.relationship("BusinessUnit")
    user = db.relationship("User", foreign_keys=[user_id])
    reviewed_by = db.relationship("User", foreign_keys=[reviewed_by_user_id])
    expenses = db.relationship(
        "RenditionExpense",
        back_populates="rendition",
        cascade="all, delete-orphan",
        order_by="RenditionExpense.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Rendition id={self.id} transfer_id={self.transfer_id} status={self.status}>"

    def to_dict(self, include_expenses: bool = False) -> dict:
        data = {
            "id": self.id,
            "transfer_id": self.transfer_id,
            "business_unit_id": self.business_unit_id,
            "user_id": self.user_id,
            "week_identifier": self.week_identifier,
            "transfer_amount": _money(self.transfer_amount),
            "total_expenses": _money(self.total_expenses),
            "remaining_amount": _money(self.remaining_amount),
            "status": self.status,
            "notes": self.notes,
            "submitted_at": to_utc_z(self.submitted_at),
            "reviewed_by_user_id": self.reviewed_by_user_id,
            "reviewed_at": to_utc_z(self.reviewed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_expenses:
            data["expenses"] = [e.to_dict() for e in self.expenses]
        return data


class RenditionExpense(db.Model):
    """
    One line-item cost charged against a rendition.

    Owned exclusively by its rendition and deleted with it.
    """
    __tablename__ = "rendition_expenses"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_rendition_expenses_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    rendition_id = db.Column(
        db.Integer,
        db.ForeignKey("renditions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    description = db.Column(db.Text, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Free-form tag: maintenance, supplies, services, transport, food, other
    category = db.Column(db.String(64), nullable=False, default="other")

    provider = db.Column(db.String(255), nullable=True)
    provider_type = db.Column(db.String(100), nullable=True)
    payment_method = db.Column(db.String(50), nullable=False, default="efectivo")
    document_type = db.Column(db.String(20), nullable=False, default="boleta")  # boleta, factura
    document_number = db.Column(db.String(100), nullable=True)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    expense_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    rendition = db.relationship("Rendition", back_populates="expenses")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rendition_id": self.rendition_id,
            "description": self.description,
            "amount": _money(self.amount),
            "category": self.category,
            "provider": self.provider,
            "provider_type": self.provider_type,
            "payment_method": self.payment_method,
            "document_type": self.document_type,
            "document_number": self.document_number,
            "is_paid": self.is_paid,
            "expense_date": self.expense_date.isoformat() if self.expense_date else None,
            "created_at": to_utc_z(self.created_at),
        }
