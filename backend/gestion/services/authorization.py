# Overview: Authorization collaborator; the single role check consulted by every state transition.

"""
Role-based access checks.

DESIGN PRINCIPLES:
- Fail closed: inactive or missing actors are denied
- Log denials only: grants are not logged
- One place: services call require_role/require_unit_access instead of
  inspecting roles ad hoc
"""

from __future__ import annotations

from flask import current_app

from ..errors import AuthorizationError
from ..models import User
from ..models.auth import ROLE_ADMIN, VALID_ROLES


def current_user_role(actor: User | None) -> str | None:
    """Return the actor's role, or None when there is no usable actor."""
    if actor is None or not actor.is_active:
        return None
    if actor.role not in VALID_ROLES:
        return None
    return actor.role


def _deny(actor: User | None, reason: str, action: str | None) -> None:
    current_app.logger.warning(
        "Authorization denied: user_id=%s role=%s action=%s reason=%s",
        getattr(actor, "id", None),
        getattr(actor, "role", None),
        action,
        reason,
    )
    raise AuthorizationError(
        reason,
        details={"user_id": getattr(actor, "id", None), "action": action},
    )


def require_role(actor: User | None, *roles: str, action: str | None = None) -> str:
    """
    Require the actor to hold one of roles; returns the role.

    Raises AuthorizationError otherwise.
    """
    role = current_user_role(actor)
    if role is None:
        _deny(actor, "Active user required", action)
    if role not in roles:
        _deny(actor, f"Requires role: {', '.join(roles)}", action)
    return role


def require_unit_access(actor: User, business_unit_id: int, *, action: str | None = None) -> None:
    """
    Require the actor to work in the given business unit.

    Admins reach every unit. Managers and cashiers without a unit
    assignment are company-wide; otherwise the unit must match.
    """
    role = current_user_role(actor)
    if role is None:
        _deny(actor, "Active user required", action)
    if role == ROLE_ADMIN or actor.business_unit_id is None:
        return
    if actor.business_unit_id != business_unit_id:
        _deny(actor, f"No access to business unit {business_unit_id}", action)
