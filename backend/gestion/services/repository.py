# Overview: Persistence collaborator; entity lookups and filtered loads over the SQLAlchemy session.

"""
Read/write access to transfers, renditions, sales, goals and bonuses.

Lookups raise NotFoundError for missing rows; database failures surface as
StorageUnavailableError so callers can tell "absent" from "unreachable".
Status columns are never written here: transfer_service, rendition_service
and bonus_service own every status transition.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import NotFoundError, StorageUnavailableError, ValidationError
from ..extensions import db
from ..models import Bonus, BusinessUnit, Goal, Rendition, Sale, Transfer, User
from ..time_utils import is_month_key
from .concurrency import lock_for_update


@contextmanager
def storage_guard(operation: str):
    """Translate driver/ORM failures into StorageUnavailableError."""
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as exc:
        raise StorageUnavailableError(
            f"Storage unavailable during {operation}",
            details={"operation": operation, "error": str(exc)},
        ) from exc


def month_bounds(month_key: str) -> tuple[date, date]:
    """Return [first day, first day of next month) for a YYYY-MM key."""
    if not is_month_key(month_key):
        raise ValidationError("month must use the YYYY-MM format", details={"month": month_key})
    year, month = (int(part) for part in month_key.split("-"))
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def _get_or_404(model, entity_id: int, label: str, *, for_update: bool = False):
    with storage_guard(f"load {label}"):
        query = db.session.query(model).filter_by(id=entity_id)
        if for_update:
            query = lock_for_update(query)
        obj = query.first()
    if obj is None:
        raise NotFoundError(f"{label.capitalize()} {entity_id} not found", details={"id": entity_id})
    return obj


def get_business_unit(unit_id: int) -> BusinessUnit:
    return _get_or_404(BusinessUnit, unit_id, "business unit")


def get_user(user_id: int) -> User:
    return _get_or_404(User, user_id, "user")


def get_user_by_username(username: str) -> User:
    with storage_guard("load user"):
        user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        raise NotFoundError(f"User '{username}' not found", details={"username": username})
    return user


def get_transfer(transfer_id: int, *, for_update: bool = False) -> Transfer:
    return _get_or_404(Transfer, transfer_id, "transfer", for_update=for_update)


def get_rendition(rendition_id: int, *, for_update: bool = False) -> Rendition:
    return _get_or_404(Rendition, rendition_id, "rendition", for_update=for_update)


def get_bonus(bonus_id: int, *, for_update: bool = False) -> Bonus:
    return _get_or_404(Bonus, bonus_id, "bonus", for_update=for_update)


def find_goal(business_unit_id: int, month_key: str) -> Goal | None:
    with storage_guard("load goal"):
        return db.session.query(Goal).filter_by(
            business_unit_id=business_unit_id,
            month_year=month_key,
        ).first()


def get_goal(business_unit_id: int, month_key: str) -> Goal:
    goal = find_goal(business_unit_id, month_key)
    if goal is None:
        raise NotFoundError(
            f"No goal configured for business unit {business_unit_id} in {month_key}",
            details={"business_unit_id": business_unit_id, "month": month_key},
        )
    return goal


def find_bonus(business_unit_id: int, month_key: str, *, for_update: bool = False) -> Bonus | None:
    with storage_guard("load bonus"):
        query = db.session.query(Bonus).filter_by(business_unit_id=business_unit_id, month=month_key)
        if for_update:
            query = lock_for_update(query)
        return query.first()


def load_transfers(
    *,
    status: str | None = None,
    business_unit_id: int | None = None,
    week_identifier: str | None = None,
) -> list[Transfer]:
    with storage_guard("load transfers"):
        query = db.session.query(Transfer)
        if status:
            query = query.filter_by(status=status)
        if business_unit_id:
            query = query.filter_by(to_business_unit_id=business_unit_id)
        if week_identifier:
            query = query.filter_by(week_identifier=week_identifier)
        return query.order_by(Transfer.created_at.desc(), Transfer.id.desc()).all()


def load_renditions(
    *,
    status: str | None = None,
    business_unit_id: int | None = None,
) -> list[Rendition]:
    with storage_guard("load renditions"):
        query = db.session.query(Rendition)
        if status:
            query = query.filter_by(status=status)
        if business_unit_id:
            query = query.filter_by(business_unit_id=business_unit_id)
        return query.order_by(Rendition.created_at.desc(), Rendition.id.desc()).all()


def load_sales(
    *,
    business_unit_id: int | None = None,
    month_key: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Sale]:
    """
    Load sales filtered by unit and either a YYYY-MM month or a date range.

    end is exclusive.
    """
    if month_key:
        start, end = month_bounds(month_key)

    with storage_guard("load sales"):
        query = db.session.query(Sale)
        if business_unit_id:
            query = query.filter(Sale.business_unit_id == business_unit_id)
        if start:
            query = query.filter(Sale.sale_date >= start)
        if end:
            query = query.filter(Sale.sale_date < end)
        return query.order_by(Sale.sale_date.asc(), Sale.id.asc()).all()


def load_goals(*, month_key: str | None = None, business_unit_id: int | None = None) -> list[Goal]:
    with storage_guard("load goals"):
        query = db.session.query(Goal)
        if month_key:
            query = query.filter_by(month_year=month_key)
        if business_unit_id:
            query = query.filter_by(business_unit_id=business_unit_id)
        return query.order_by(Goal.month_year.desc(), Goal.business_unit_id.asc()).all()


def load_bonuses(
    *,
    month_key: str | None = None,
    status: str | None = None,
    business_unit_id: int | None = None,
) -> list[Bonus]:
    with storage_guard("load bonuses"):
        query = db.session.query(Bonus)
        if month_key:
            query = query.filter_by(month=month_key)
        if status:
            query = query.filter_by(status=status)
        if business_unit_id:
            query = query.filter_by(business_unit_id=business_unit_id)
        return query.order_by(Bonus.month.desc(), Bonus.business_unit_id.asc()).all()


def save_rendition(rendition: Rendition) -> Rendition:
    """Stage a rendition (and its expenses) in the current unit of work."""
    db.session.add(rendition)
    db.session.flush()
    return rendition


def save_bonus(bonus: Bonus) -> Bonus:
    db.session.add(bonus)
    db.session.flush()
    return bonus
