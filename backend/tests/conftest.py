"""
Pytest fixtures for WalkerGestion backend tests.

Provides the test application, per-test table cleanup, and a small company
with two business units and one user per role.
"""

import pytest
from decimal import Decimal

from gestion import create_app
from gestion.config import TestConfig
from gestion.extensions import db
from gestion.models import BusinessUnit, Company, User
from gestion.services import transfer_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def company(db_session):
    company = Company(name="Walker SpA")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def unit(db_session, company):
    """Business unit the manager and cashier work in."""
    unit = BusinessUnit(company_id=company.id, name="Sucursal Centro")
    db_session.add(unit)
    db_session.commit()
    return unit


@pytest.fixture(scope='function')
def other_unit(db_session, company):
    unit = BusinessUnit(company_id=company.id, name="Sucursal Norte")
    db_session.add(unit)
    db_session.commit()
    return unit


def _make_user(db_session, username, role, business_unit_id=None, is_active=True):
    user = User(
        username=username,
        email=f"{username}@walker.local",
        role=role,
        business_unit_id=business_unit_id,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session):
    """Company-wide admin."""
    return _make_user(db_session, "admin", "admin")


@pytest.fixture(scope='function')
def manager(db_session, unit):
    return _make_user(db_session, "manager", "manager", unit.id)


@pytest.fixture(scope='function')
def cashier(db_session, unit):
    return _make_user(db_session, "cashier", "cashier", unit.id)


@pytest.fixture(scope='function')
def other_cashier(db_session, other_unit):
    """Cashier of a different unit."""
    return _make_user(db_session, "cashier_norte", "cashier", other_unit.id)


@pytest.fixture(scope='function')
def inactive_admin(db_session):
    return _make_user(db_session, "former_admin", "admin", is_active=False)


@pytest.fixture(scope='function')
def received_transfer(db_session, unit, admin, cashier):
    """Transfer of 100000 to the unit, confirmed by its cashier."""
    transfer = transfer_service.create_transfer(unit.id, Decimal("100000"), "2025-W14", admin)
    return transfer_service.confirm_transfer_receipt(transfer.id, cashier)
