from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z

class Company(db.Model):
    """
    Company owning one or more business units.

    Business units, users and their data all hang off a company; reports
    and alerts are scoped through the business unit, not the company.
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }

class BusinessUnit(db.Model):
    """
    Store/branch/location scoping sales, transfers and goals.

    Unit names are unique within a company, not globally.
    """
    __tablename__ = "business_units"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_business_units_company_name"),
        db.Index("ix_business_units_company_id", "company_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    address = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    company = db.relationship("Company", backref=db.backref("business_units", lazy=True))

    def __repr__(self) -> str:
        return f"<BusinessUnit id={self.id} name={self.name!r} company_id={self.company_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "address": self.address,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
