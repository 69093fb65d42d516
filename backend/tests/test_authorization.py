"""
Authorization tests.

Verifies:
- Missing, inactive or unknown-role actors are denied
- Role requirements per transition
- Unit scoping for managers and cashiers
- Denials are logged
"""

import logging

import pytest

from gestion.errors import AuthorizationError
from gestion.models import User
from gestion.services.authorization import current_user_role, require_role, require_unit_access


# =============================================================================
# ACTOR RESOLUTION
# =============================================================================


class TestCurrentUserRole:
    """current_user_role fails closed."""

    def test_no_actor(self, app):
        assert current_user_role(None) is None

    def test_inactive_actor(self, db_session, inactive_admin):
        assert current_user_role(inactive_admin) is None

    def test_unknown_role(self, app):
        assert current_user_role(User(username="x", email="x@x", role="developer", is_active=True)) is None

    def test_active_actor(self, db_session, manager):
        assert current_user_role(manager) == "manager"


# =============================================================================
# ROLE CHECKS
# =============================================================================


class TestRequireRole:
    def test_allowed_role_returns_it(self, db_session, admin):
        assert require_role(admin, "admin", "manager") == "admin"

    def test_disallowed_role_raises(self, db_session, cashier):
        with pytest.raises(AuthorizationError) as exc:
            require_role(cashier, "admin", action="rendition.review")
        assert exc.value.details["action"] == "rendition.review"

    def test_missing_actor_raises(self, app):
        with pytest.raises(AuthorizationError):
            require_role(None, "admin")

    def test_denial_is_logged(self, db_session, cashier, caplog):
        caplog.set_level(logging.WARNING)
        with pytest.raises(AuthorizationError):
            require_role(cashier, "admin", action="bonus.approved")
        assert "Authorization denied" in caplog.text
        assert "bonus.approved" in caplog.text


# =============================================================================
# UNIT SCOPING
# =============================================================================


class TestRequireUnitAccess:
    def test_admin_reaches_every_unit(self, db_session, admin, other_unit):
        require_unit_access(admin, other_unit.id)

    def test_cashier_own_unit(self, db_session, cashier, unit):
        require_unit_access(cashier, unit.id)

    def test_cashier_other_unit_denied(self, db_session, cashier, other_unit):
        with pytest.raises(AuthorizationError):
            require_unit_access(cashier, other_unit.id)

    def test_unassigned_manager_is_company_wide(self, db_session, other_unit):
        manager = User(username="regional", email="regional@walker.local", role="manager", is_active=True)
        db_session.add(manager)
        db_session.commit()
        require_unit_access(manager, other_unit.id)
