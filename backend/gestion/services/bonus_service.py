# backend/gestion/services/bonus_service.py
"""
Monthly goals and bonus payouts.

WHY: Each business unit gets a monthly sales target. Sales above it earn a
bonus: a percentage of the excess, in whole currency units.

LIFECYCLE (bonus):
1. pending: Calculated snapshot, may be refreshed by recalculation
2. approved: Admin accepted the amount (frozen)
3. paid: Admin recorded the payout (terminal)
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from flask import current_app

from ..errors import InvalidStateError, ValidationError
from ..extensions import db
from ..models import Bonus, Goal
from ..models.alerts import ALERT_INFO, ALERT_SUCCESS
from ..models.auth import ROLE_ADMIN, ROLE_MANAGER
from ..money import DEC_0, to_money, to_positive_money, round_units
from ..time_utils import is_month_key, utcnow
from . import repository
from .alert_service import emit_alert
from .authorization import require_role
from .concurrency import run_in_transaction
from .sales_service import sum_by_unit_and_month


# Bonus status constants
BONUS_STATUS_PENDING = "pending"
BONUS_STATUS_APPROVED = "approved"
BONUS_STATUS_PAID = "paid"

BONUS_STATUSES = (BONUS_STATUS_PENDING, BONUS_STATUS_APPROVED, BONUS_STATUS_PAID)

GOAL_STATUS_ACHIEVED = "achieved"
GOAL_STATUS_IN_PROGRESS = "in_progress"


def _require_month(month_key: str) -> str:
    if not is_month_key(month_key):
        raise ValidationError("month must use the YYYY-MM format", details={"month": month_key})
    return month_key


def _finite_or_zero(value) -> Decimal:
    try:
        value = Decimal(value or 0)
    except (InvalidOperation, TypeError, ValueError):
        return DEC_0
    return value if value.is_finite() else DEC_0


def percentage_achieved(actual, goal) -> int:
    """
    round(actual / goal * 100) half-up; never raises.

    0 when goal <= 0. Non-numeric or non-finite inputs count as 0.
    """
    actual = _finite_or_zero(actual)
    goal = _finite_or_zero(goal)
    if goal <= 0:
        return 0
    return int((actual / goal * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def qualifies(actual, goal) -> bool:
    return Decimal(actual) >= Decimal(goal)


def compute_bonus(actual, goal, pct) -> Decimal:
    """
    Bonus on the excess over goal, rounded to whole units.

    0 when actual <= goal; non-decreasing in actual.
    """
    actual = Decimal(actual)
    goal = Decimal(goal)
    if actual <= goal:
        return round_units(DEC_0)
    return round_units((actual - goal) * Decimal(pct) / 100)


def validate_bonus_percentage(pct) -> Decimal:
    pct = to_money(pct, "bonus_percentage")
    max_pct = Decimal(current_app.config.get("MAX_BONUS_PERCENTAGE", Decimal("50")))
    if pct <= 0 or pct > max_pct:
        raise ValidationError(
            f"bonus_percentage must be greater than 0 and at most {max_pct}",
            details={"bonus_percentage": str(pct)},
        )
    return pct


def set_goal(unit_id: int, month_key: str, target, actor, bonus_percentage=None) -> Goal:
    """
    Create or update the goal of a unit for a month.

    bonus_percentage defaults to DEFAULT_BONUS_PERCENTAGE on creation and is
    kept as is on update when omitted.
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="goal.set")
    _require_month(month_key)
    target = to_positive_money(target, "target_amount")
    pct = validate_bonus_percentage(bonus_percentage) if bonus_percentage is not None else None

    def _op():
        unit = repository.get_business_unit(unit_id)
        goal = repository.find_goal(unit.id, month_key)
        if goal is None:
            goal = Goal(
                business_unit_id=unit.id,
                month_year=month_key,
                bonus_percentage=pct if pct is not None else Decimal(
                    current_app.config.get("DEFAULT_BONUS_PERCENTAGE", Decimal("5.00"))
                ),
            )
            db.session.add(goal)
        elif pct is not None:
            goal.bonus_percentage = pct
        goal.target_amount = target
        goal.updated_at = utcnow()
        db.session.flush()
        return goal

    goal = run_in_transaction(_op)
    current_app.logger.info(
        "Goal %s set: unit=%s month=%s target=%s pct=%s",
        goal.id, goal.business_unit_id, goal.month_year, goal.target_amount, goal.bonus_percentage,
    )
    return goal


def create_bonus_record(unit_id: int, month_key: str, goal, actual, pct, actor) -> Bonus:
    """
    Store a pending bonus snapshot and announce it.

    An existing pending bonus for the same unit/month is refreshed in
    place; an approved or paid one is frozen.

    Raises:
        InvalidStateError: Bonus already approved or paid
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="bonus.calculate")
    _require_month(month_key)
    goal = to_positive_money(goal, "goal_amount")
    actual = to_money(actual, "actual_amount")
    pct = validate_bonus_percentage(pct)

    amount = compute_bonus(actual, goal, pct)
    achieved = percentage_achieved(actual, goal)

    def _op():
        repository.get_business_unit(unit_id)
        bonus = repository.find_bonus(unit_id, month_key, for_update=True)
        if bonus is None:
            bonus = Bonus(business_unit_id=unit_id, month=month_key)
        elif bonus.status != BONUS_STATUS_PENDING:
            raise InvalidStateError(
                f"Bonus for unit {unit_id} in {month_key} is already {bonus.status}",
                details={"bonus_id": bonus.id, "status": bonus.status},
            )

        bonus.goal_amount = goal
        bonus.actual_amount = actual
        bonus.bonus_percentage = pct
        bonus.percentage_achieved = achieved
        bonus.amount = amount
        bonus.status = BONUS_STATUS_PENDING
        bonus.calculated_by_user_id = actor.id
        bonus.calculated_at = utcnow()
        return repository.save_bonus(bonus)

    bonus = run_in_transaction(_op)
    current_app.logger.info(
        "Bonus %s calculated: unit=%s month=%s achieved=%s%% amount=%s",
        bonus.id, unit_id, month_key, achieved, amount,
    )

    if qualifies(actual, goal):
        emit_alert(
            title="Nuevo Bono Calculado",
            message=f"Bono de ${amount:,.0f} calculado para {month_key} ({achieved}% de la meta)",
            alert_type=ALERT_SUCCESS,
            business_unit_id=unit_id,
        )
    else:
        emit_alert(
            title="Meta No Alcanzada",
            message=f"Se alcanzó el {achieved}% de la meta de {month_key}, sin bono",
            alert_type=ALERT_INFO,
            business_unit_id=unit_id,
        )
    return bonus


def calculate_bonus(unit_id: int, month_key: str, actor) -> Bonus:
    """
    Calculate the bonus of a unit for a month from its goal and sales.

    Raises:
        NotFoundError: No goal for the unit/month
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="bonus.calculate")
    _require_month(month_key)

    goal = repository.get_goal(unit_id, month_key)
    sales = repository.load_sales(business_unit_id=unit_id, month_key=month_key)
    actual = sum_by_unit_and_month(sales, unit_id, month_key)

    return create_bonus_record(unit_id, month_key, goal.target_amount, actual, goal.bonus_percentage, actor)


def _advance(bonus_id: int, actor, expected: str, target: str) -> Bonus:
    require_role(actor, ROLE_ADMIN, action=f"bonus.{target}")

    def _op():
        bonus = repository.get_bonus(bonus_id, for_update=True)
        if bonus.status != expected:
            raise InvalidStateError(
                f"Bonus {bonus.id} must be {expected} to become {target} (status: {bonus.status})",
                details={"bonus_id": bonus.id, "status": bonus.status},
            )
        now = utcnow()
        bonus.status = target
        if target == BONUS_STATUS_APPROVED:
            bonus.approved_by_user_id = actor.id
            bonus.approved_at = now
        else:
            bonus.paid_by_user_id = actor.id
            bonus.paid_at = now
        return bonus

    bonus = run_in_transaction(_op)
    current_app.logger.info("Bonus %s: %s -> %s by user %s", bonus.id, expected, target, actor.id)
    return bonus


def approve_bonus(bonus_id: int, actor) -> Bonus:
    bonus = _advance(bonus_id, actor, BONUS_STATUS_PENDING, BONUS_STATUS_APPROVED)
    emit_alert(
        title="Bono Aprobado",
        message=f"El bono de ${bonus.amount:,.0f} para {bonus.month} ha sido aprobado",
        alert_type=ALERT_SUCCESS,
        business_unit_id=bonus.business_unit_id,
    )
    return bonus


def mark_bonus_paid(bonus_id: int, actor) -> Bonus:
    return _advance(bonus_id, actor, BONUS_STATUS_APPROVED, BONUS_STATUS_PAID)


def goal_progress(goal: Goal, sales: Iterable[Any]) -> dict:
    """Progress of one goal against a set of sales, as shown on the goal card."""
    actual = sum_by_unit_and_month(sales, goal.business_unit_id, goal.month_year)
    achieved = percentage_achieved(actual, goal.target_amount)
    reached = qualifies(actual, goal.target_amount)
    return {
        "goal_id": goal.id,
        "business_unit_id": goal.business_unit_id,
        "month": goal.month_year,
        "target_amount": goal.target_amount,
        "actual_amount": actual,
        "percentage_achieved": achieved,
        "progress": min(achieved, 100),
        "estimated_bonus": compute_bonus(actual, goal.target_amount, goal.bonus_percentage),
        "status": GOAL_STATUS_ACHIEVED if reached else GOAL_STATUS_IN_PROGRESS,
    }


def list_bonuses(*, month_key: str | None = None, status: str | None = None,
                 business_unit_id: int | None = None) -> list[Bonus]:
    if status and status not in BONUS_STATUSES:
        raise ValidationError(f"Unknown bonus status: {status}")
    return repository.load_bonuses(month_key=month_key, status=status, business_unit_id=business_unit_id)
