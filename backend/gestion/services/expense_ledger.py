# Overview: Pure validation and summing of rendition expense line items.

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from ..errors import ValidationError
from ..money import DEC_0, to_money
from ..time_utils import parse_iso_date


DOCUMENT_TYPES = ("boleta", "factura")
DEFAULT_CATEGORY = "other"
DEFAULT_PAYMENT_METHOD = "efectivo"
DEFAULT_DOCUMENT_TYPE = "boleta"


@dataclass
class ExpenseEntry:
    """A validated expense line, not yet persisted."""
    description: str
    amount: Decimal
    category: str = DEFAULT_CATEGORY
    provider: str | None = None
    provider_type: str | None = None
    payment_method: str = DEFAULT_PAYMENT_METHOD
    document_type: str = DEFAULT_DOCUMENT_TYPE
    document_number: str | None = None
    is_paid: bool = False
    expense_date: date | None = None

    def as_columns(self) -> dict:
        return asdict(self)


def _field(entry: Any, name: str, default=None):
    if isinstance(entry, dict):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _clean_str(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_expense(entry: Any) -> ExpenseEntry:
    """
    Validate one expense (dict, ExpenseEntry or ORM row) into an ExpenseEntry.

    Raises ValidationError for an empty description, a non-positive amount
    or an unknown document type.
    """
    description = _clean_str(_field(entry, "description"))
    if not description:
        raise ValidationError("Expense description is required")

    amount = to_money(_field(entry, "amount"), "amount")
    if amount <= DEC_0:
        raise ValidationError(
            "Expense amount must be greater than 0",
            details={"description": description, "amount": str(amount)},
        )

    document_type = (_clean_str(_field(entry, "document_type")) or DEFAULT_DOCUMENT_TYPE).lower()
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError(
            f"document_type must be one of: {', '.join(DOCUMENT_TYPES)}",
            details={"document_type": document_type},
        )

    try:
        expense_date = parse_iso_date(_field(entry, "expense_date"))
    except ValueError:
        raise ValidationError("expense_date must be an ISO date (YYYY-MM-DD)")

    return ExpenseEntry(
        description=description,
        amount=amount,
        category=_clean_str(_field(entry, "category")) or DEFAULT_CATEGORY,
        provider=_clean_str(_field(entry, "provider")),
        provider_type=_clean_str(_field(entry, "provider_type")),
        payment_method=_clean_str(_field(entry, "payment_method")) or DEFAULT_PAYMENT_METHOD,
        document_type=document_type,
        document_number=_clean_str(_field(entry, "document_number")),
        is_paid=bool(_field(entry, "is_paid", False)),
        expense_date=expense_date,
    )


def add_expense(entries: list, entry: Any) -> ExpenseEntry:
    """
    Append a validated entry to an in-memory expense list.

    The list is left untouched when validation fails. Persisting the entry
    and recomputing the owning rendition's totals is the caller's job.
    """
    normalized = normalize_expense(entry)
    entries.append(normalized)
    return normalized


def total_of(entries: Iterable[Any]) -> Decimal:
    """Sum of amounts; an empty list sums to 0.00."""
    total = DEC_0
    for entry in entries:
        total += to_money(_field(entry, "amount"), "amount")
    return total


def validate(entries: Iterable[Any] | None) -> list[ExpenseEntry]:
    """
    Validate the expenses of a rendition before creation or submission.

    Every entry present must be valid and there must be at least one.
    Returns the normalized entries.
    """
    entries = list(entries or [])
    if not entries:
        raise ValidationError("at least one valid expense required")

    normalized = []
    for index, entry in enumerate(entries):
        try:
            normalized.append(normalize_expense(entry))
        except ValidationError as e:
            raise ValidationError(
                f"Expense #{index + 1}: {e.message}",
                details={"index": index, **e.details},
            ) from e
    return normalized
