import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from gestion.errors import AuthorizationError, ValidationError
from gestion.services import sales_service


def _sale(unit_id, day, amount):
    return SimpleNamespace(business_unit_id=unit_id, sale_date=day, amount=Decimal(amount))


def test_sum_by_unit_and_month_filters_unit_and_month(app):
    sales = [
        _sale(1, date(2025, 4, 1), "1000"),
        _sale(1, date(2025, 4, 30), "2500.50"),
        _sale(1, date(2025, 5, 1), "9999"),
        _sale(2, date(2025, 4, 15), "7777"),
    ]
    assert sales_service.sum_by_unit_and_month(sales, 1, "2025-04") == Decimal("3500.50")


def test_sum_by_unit_and_month_empty_is_zero(app):
    assert sales_service.sum_by_unit_and_month([], 1, "2025-04") == Decimal("0.00")
    assert sales_service.sum_by_unit_and_month([_sale(2, date(2025, 4, 1), "10")], 1, "2025-04") == Decimal("0.00")


def test_sum_accepts_dicts_and_alternate_date_fields(app):
    sales = [
        {"business_unit_id": 1, "date": "2025-04-03", "amount": "100"},
        {"business_unit_id": 1, "created_at": datetime(2025, 4, 20, 13, 5), "amount": 50},
        {"business_unit_id": 1, "date": "2025-03-31", "amount": 1000},
    ]
    assert sales_service.sum_by_unit_and_month(sales, 1, "2025-04") == Decimal("150.00")


def test_sum_rejects_bad_month(app):
    with pytest.raises(ValidationError):
        sales_service.sum_by_unit_and_month([], 1, "2025-4")


def test_payment_breakdown_within_tolerance(app):
    cash, card, transfer = sales_service.validate_payment_breakdown("1000", "500", "499.50", None)
    assert (cash, card, transfer) == (Decimal("500.00"), Decimal("499.50"), Decimal("0.00"))


def test_payment_breakdown_outside_tolerance(app):
    with pytest.raises(ValidationError):
        sales_service.validate_payment_breakdown("1000", "500", "498", "0")


def test_payment_breakdown_rejects_negative_part(app):
    with pytest.raises(ValidationError):
        sales_service.validate_payment_breakdown("1000", "1100", "-100", "0")


def test_record_sale_defaults_to_cash(db_session, unit, cashier):
    sale = sales_service.record_sale(unit.id, "25000", cashier, sale_date="2025-04-03")

    assert sale.amount == Decimal("25000")
    assert sale.cash_amount == Decimal("25000")
    assert sale.card_amount == Decimal("0")
    assert sale.sale_date == date(2025, 4, 3)
    assert sale.created_by_user_id == cashier.id


def test_record_sale_with_breakdown(db_session, unit, cashier):
    sale = sales_service.record_sale(
        unit.id, 1000, cashier, sale_date="2025-04-03", cash_amount=400, card_amount=300, transfer_amount=300,
    )
    assert sale.transfer_amount == Decimal("300")


def test_record_sale_rejects_mismatched_breakdown(db_session, unit, cashier):
    with pytest.raises(ValidationError):
        sales_service.record_sale(unit.id, 1000, cashier, cash_amount=100, card_amount=100)


def test_record_sale_rejects_other_unit(db_session, other_unit, cashier):
    with pytest.raises(AuthorizationError):
        sales_service.record_sale(other_unit.id, 1000, cashier)


def test_record_sale_rejects_bad_date(db_session, unit, cashier):
    with pytest.raises(ValidationError):
        sales_service.record_sale(unit.id, 1000, cashier, sale_date="04/03/2025")


def test_monthly_sales_total(db_session, unit, other_unit, admin):
    sales_service.record_sale(unit.id, 1000, admin, sale_date="2025-04-01")
    sales_service.record_sale(unit.id, 2000, admin, sale_date="2025-04-30")
    sales_service.record_sale(unit.id, 4000, admin, sale_date="2025-05-01")
    sales_service.record_sale(other_unit.id, 8000, admin, sale_date="2025-04-10")

    assert sales_service.monthly_sales_total(unit.id, "2025-04") == Decimal("3000.00")
    assert sales_service.monthly_sales_total(unit.id, "2025-06") == Decimal("0.00")


def test_payment_method_totals(app):
    sales = [
        {"amount": 1000, "cash_amount": 1000, "card_amount": 0, "transfer_amount": 0},
        {"amount": 500, "cash_amount": 0, "card_amount": 200, "transfer_amount": 300},
    ]
    totals = sales_service.payment_method_totals(sales)

    assert totals["cash"] == Decimal("1000.00")
    assert totals["card"] == Decimal("200.00")
    assert totals["transfer"] == Decimal("300.00")
    assert totals["total"] == Decimal("1500.00")
    assert totals["count"] == 2
