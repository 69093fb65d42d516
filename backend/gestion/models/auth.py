from __future__ import annotations

from ..extensions import db
from gestion.time_utils import to_utc_z


ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
VALID_ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER)


class User(db.Model):
    """
    Actor identity for attribution and role checks.

    Credentials live with the external identity provider; this row only
    carries what the state transitions need: the role and, for managers
    and cashiers, the business unit they work in.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(64), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=True)

    # admin, manager, cashier
    role = db.Column(db.String(16), nullable=False, default=ROLE_CASHIER, index=True)

    # Unit association (nullable for company-wide admins)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    business_unit = db.relationship("BusinessUnit", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "business_unit_id": self.business_unit_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
