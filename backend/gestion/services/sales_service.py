# backend/gestion/services/sales_service.py
"""
Sales recording and monthly aggregation.

Sales are immutable once recorded. Monthly totals feed goal progress and
bonus calculation.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import Sale
from ..models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_MANAGER
from ..money import DEC_0, to_money, to_positive_money
from ..time_utils import iso_day, is_month_key, parse_iso_date, today
from . import repository
from .authorization import require_role, require_unit_access
from .concurrency import run_in_transaction


def _payment_tolerance() -> Decimal:
    return Decimal(current_app.config.get("PAYMENT_TOLERANCE", Decimal("1")))


def _attr(sale: Any, name: str):
    if isinstance(sale, dict):
        return sale.get(name)
    return getattr(sale, name, None)


def _sale_day(sale: Any) -> str:
    # Stored sales carry sale_date; imported rows may only have date/created_at
    for name in ("sale_date", "date", "created_at"):
        value = _attr(sale, name)
        if value:
            return iso_day(value)
    return ""


def _sale_unit(sale: Any):
    return _attr(sale, "business_unit_id")


def sum_by_unit_and_month(sales: Iterable[Any], unit_id: int, month_key: str) -> Decimal:
    """
    Sum sale amounts of one unit whose date falls in a YYYY-MM month.

    Returns Decimal("0.00") when nothing matches.
    """
    if not is_month_key(month_key):
        raise ValidationError("month must use the YYYY-MM format", details={"month": month_key})

    total = DEC_0
    for sale in sales:
        if _sale_unit(sale) != unit_id:
            continue
        if not _sale_day(sale).startswith(month_key):
            continue
        total += to_money(_attr(sale, "amount"), "amount")
    return total


def validate_payment_breakdown(amount, cash, card, transfer) -> tuple[Decimal, Decimal, Decimal]:
    """
    Check a sale's payment breakdown.

    Each part must be >= 0 and their sum within PAYMENT_TOLERANCE of amount.
    Returns the normalized (cash, card, transfer).
    """
    amount = to_money(amount, "amount")
    parts = []
    for field, value in (("cash_amount", cash), ("card_amount", card), ("transfer_amount", transfer)):
        part = DEC_0 if value is None or value == "" else to_money(value, field)
        if part < DEC_0:
            raise ValidationError(f"{field} cannot be negative", details={field: str(part)})
        parts.append(part)

    breakdown_total = sum(parts, DEC_0)
    if abs(breakdown_total - amount) > _payment_tolerance():
        raise ValidationError(
            "Payment breakdown does not add up to the sale amount",
            details={"amount": str(amount), "breakdown_total": str(breakdown_total)},
        )
    return parts[0], parts[1], parts[2]


def record_sale(
    business_unit_id: int,
    amount,
    actor,
    *,
    sale_date=None,
    cash_amount=None,
    card_amount=None,
    transfer_amount=None,
    description: str | None = None,
) -> Sale:
    """
    Record an immutable sale.

    Without a breakdown the whole amount is taken as cash.

    Raises:
        ValidationError: Bad amount, breakdown or date, inactive unit
        NotFoundError: Unknown business unit
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER, action="sale.create")
    require_unit_access(actor, business_unit_id, action="sale.create")

    amount = to_positive_money(amount, "amount")
    if cash_amount is None and card_amount is None and transfer_amount is None:
        cash_amount = amount
    cash, card, transfer = validate_payment_breakdown(amount, cash_amount, card_amount, transfer_amount)

    try:
        day = parse_iso_date(sale_date) or today()
    except ValueError:
        raise ValidationError("sale_date must be an ISO date (YYYY-MM-DD)", details={"sale_date": sale_date})

    def _op():
        unit = repository.get_business_unit(business_unit_id)
        if not unit.is_active:
            raise ValidationError(f"Business unit {unit.id} is inactive")

        sale = Sale(
            business_unit_id=unit.id,
            amount=amount,
            sale_date=day,
            cash_amount=cash,
            card_amount=card,
            transfer_amount=transfer,
            description=(description or "").strip() or None,
            created_by_user_id=actor.id,
        )
        db.session.add(sale)
        db.session.flush()
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info(
        "Sale %s recorded: unit=%s amount=%s date=%s", sale.id, sale.business_unit_id, sale.amount, sale.sale_date,
    )
    return sale


def monthly_sales_total(unit_id: int, month_key: str) -> Decimal:
    sales = repository.load_sales(business_unit_id=unit_id, month_key=month_key)
    return sum_by_unit_and_month(sales, unit_id, month_key)


def payment_method_totals(sales: Iterable[Any]) -> dict:
    """Totals per payment method plus the overall total and count."""
    totals = {"cash": DEC_0, "card": DEC_0, "transfer": DEC_0, "total": DEC_0, "count": 0}
    for sale in sales:
        totals["cash"] += to_money(_attr(sale, "cash_amount") or 0, "cash_amount")
        totals["card"] += to_money(_attr(sale, "card_amount") or 0, "card_amount")
        totals["transfer"] += to_money(_attr(sale, "transfer_amount") or 0, "transfer_amount")
        totals["total"] += to_money(_attr(sale, "amount"), "amount")
        totals["count"] += 1
    return totals
