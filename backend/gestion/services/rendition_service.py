# backend/gestion/services/rendition_service.py
"""
Rendition reconciliation.

WHY: A rendition is how a business unit accounts for the cash of one
transfer. It carries the expenses, the derived totals and the review
outcome, and it drives the transfer through the rest of its lifecycle.

LIFECYCLE:
1. draft: Created against a received transfer, expenses editable
2. submitted: Handed in for review (optional, drafts can be reviewed directly)
3. approved: Admin accepted it; transfer completed (terminal)
4. rejected: Admin refused it; reopen_rendition brings it back to draft

INVARIANTS:
- total_expenses == sum(expense.amount)
- remaining_amount == transfer_amount - total_expenses (may be negative)
- Only draft renditions are deleted; deletion frees the transfer

Alerts are emitted after the transition commits.
"""
from __future__ import annotations

from typing import Any, Iterable

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import InvalidStateError, NotFoundError, TransferStateError, ValidationError
from ..extensions import db
from ..models import Rendition, RenditionExpense
from ..models.alerts import ALERT_SUCCESS, ALERT_WARNING
from ..models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_MANAGER
from ..money import DEC_0
from ..time_utils import today, utcnow
from . import expense_ledger, repository
from .alert_service import emit_alert
from .authorization import require_role, require_unit_access
from .concurrency import run_in_transaction
from .transfer_service import (
    TRANSFER_STATUS_COMPLETED,
    TRANSFER_STATUS_RECEIVED,
    TRANSFER_STATUS_RENDITION_PENDING,
    transition_transfer,
)


# Rendition status constants
RENDITION_STATUS_DRAFT = "draft"
RENDITION_STATUS_SUBMITTED = "submitted"
RENDITION_STATUS_APPROVED = "approved"
RENDITION_STATUS_REJECTED = "rejected"

RENDITION_STATUSES = (
    RENDITION_STATUS_DRAFT,
    RENDITION_STATUS_SUBMITTED,
    RENDITION_STATUS_APPROVED,
    RENDITION_STATUS_REJECTED,
)

REVIEW_STATUSES = (RENDITION_STATUS_APPROVED, RENDITION_STATUS_REJECTED)

_WRITER_ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER)


def _expense_row(entry: expense_ledger.ExpenseEntry) -> RenditionExpense:
    columns = entry.as_columns()
    if columns["expense_date"] is None:
        columns["expense_date"] = today()
    return RenditionExpense(**columns)


def _recompute_totals(rendition: Rendition) -> Rendition:
    """Restore total_expenses/remaining_amount from the current expenses."""
    total = expense_ledger.total_of(rendition.expenses)
    rendition.total_expenses = total
    rendition.remaining_amount = rendition.transfer_amount - total
    rendition.updated_at = utcnow()
    return rendition


def _require_draft(rendition: Rendition, action: str) -> None:
    if rendition.status != RENDITION_STATUS_DRAFT:
        raise InvalidStateError(
            f"Cannot {action} rendition {rendition.id} in status {rendition.status}",
            details={"rendition_id": rendition.id, "status": rendition.status},
        )


def _load_for_write(rendition_id: int, actor, action: str) -> Rendition:
    rendition = repository.get_rendition(rendition_id, for_update=True)
    require_unit_access(actor, rendition.business_unit_id, action=action)
    return rendition


def create_rendition(
    transfer_id: int,
    expenses: Iterable[Any],
    actor,
    notes: str | None = None,
) -> Rendition:
    """
    Create a draft rendition against a received transfer.

    Computes the totals, stores copies of the expenses and moves the
    transfer to rendition_pending in one unit of work.

    Raises:
        ValidationError: No valid expenses
        NotFoundError: Unknown transfer
        TransferStateError: Transfer not received or already rendered
        AuthorizationError: Actor may not work on the transfer's unit
    """
    require_role(actor, *_WRITER_ROLES, action="rendition.create")
    entries = expense_ledger.validate(expenses)

    def _op():
        transfer = repository.get_transfer(transfer_id, for_update=True)
        require_unit_access(actor, transfer.to_business_unit_id, action="rendition.create")

        if transfer.rendition is not None:
            raise TransferStateError(
                f"Transfer {transfer.id} already has rendition {transfer.rendition.id}",
                details={"transfer_id": transfer.id, "rendition_id": transfer.rendition.id},
            )
        if transfer.status != TRANSFER_STATUS_RECEIVED:
            raise TransferStateError(
                f"Transfer {transfer.id} must be received before rendering (status: {transfer.status})",
                details={"transfer_id": transfer.id, "status": transfer.status},
            )
        if transfer.amount is None or transfer.amount <= DEC_0:
            raise ValidationError("Transfer amount must be greater than 0", details={"transfer_id": transfer.id})

        rendition = Rendition(
            transfer=transfer,
            business_unit_id=transfer.to_business_unit_id,
            user_id=actor.id,
            week_identifier=transfer.week_identifier,
            transfer_amount=transfer.amount,
            status=RENDITION_STATUS_DRAFT,
            notes=notes,
        )
        rendition.expenses = [_expense_row(e) for e in entries]
        _recompute_totals(rendition)

        transition_transfer(transfer, TRANSFER_STATUS_RENDITION_PENDING)
        repository.save_rendition(rendition)
        return rendition

    try:
        rendition = run_in_transaction(_op)
    except IntegrityError as e:
        raise TransferStateError(
            f"Transfer {transfer_id} already has a rendition",
            details={"transfer_id": transfer_id},
        ) from e

    current_app.logger.info(
        "Rendition %s created for transfer %s: expenses=%s remaining=%s",
        rendition.id, rendition.transfer_id, rendition.total_expenses, rendition.remaining_amount,
    )
    return rendition


def add_expense_to_rendition(rendition_id: int, expense: Any, actor) -> RenditionExpense:
    """Add one expense to a draft rendition and recompute its totals."""
    require_role(actor, *_WRITER_ROLES, action="rendition.expense.add")
    entry = expense_ledger.normalize_expense(expense)

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.expense.add")
        _require_draft(rendition, "add expenses to")
        row = _expense_row(entry)
        rendition.expenses.append(row)
        _recompute_totals(rendition)
        db.session.flush()
        return row

    return run_in_transaction(_op)


def _find_expense(rendition: Rendition, expense_id: int) -> RenditionExpense:
    for expense in rendition.expenses:
        if expense.id == expense_id:
            return expense
    raise NotFoundError(
        f"Expense {expense_id} not found in rendition {rendition.id}",
        details={"rendition_id": rendition.id, "expense_id": expense_id},
    )


def update_rendition_expense(rendition_id: int, expense_id: int, changes: dict, actor) -> RenditionExpense:
    """
    Update fields of one expense of a draft rendition.

    The merged expense is validated as a whole before anything is written.
    """
    require_role(actor, *_WRITER_ROLES, action="rendition.expense.update")

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.expense.update")
        _require_draft(rendition, "edit expenses of")
        expense = _find_expense(rendition, expense_id)

        merged = {**expense.to_dict(), **(changes or {})}
        entry = expense_ledger.normalize_expense(merged)
        for column, value in entry.as_columns().items():
            if column == "expense_date" and value is None:
                continue
            setattr(expense, column, value)

        _recompute_totals(rendition)
        return expense

    return run_in_transaction(_op)


def remove_rendition_expense(rendition_id: int, expense_id: int, actor) -> Rendition:
    """Remove one expense from a draft rendition; totals follow."""
    require_role(actor, *_WRITER_ROLES, action="rendition.expense.remove")

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.expense.remove")
        _require_draft(rendition, "remove expenses from")
        expense = _find_expense(rendition, expense_id)
        rendition.expenses.remove(expense)
        _recompute_totals(rendition)
        return rendition

    return run_in_transaction(_op)


def submit_rendition(rendition_id: int, actor) -> Rendition:
    """
    Hand a draft rendition in for review (draft -> submitted).

    The stored expenses must still pass ledger validation.
    """
    require_role(actor, *_WRITER_ROLES, action="rendition.submit")

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.submit")
        _require_draft(rendition, "submit")
        expense_ledger.validate(rendition.expenses)

        now = utcnow()
        rendition.status = RENDITION_STATUS_SUBMITTED
        rendition.submitted_at = now
        rendition.updated_at = now
        return rendition

    rendition = run_in_transaction(_op)
    current_app.logger.info("Rendition %s submitted by user %s", rendition.id, actor.id)
    return rendition


def update_rendition_status(rendition_id: int, new_status: str, actor) -> Rendition:
    """
    Review a draft or submitted rendition (admin only).

    approved: transfer -> completed, success alert.
    rejected: transfer stays rendition_pending, warning alert.

    Repeating the current status rewrites the review stamp without a second
    cascade or alert. An approved rendition cannot be rejected because its
    transfer is already completed.

    Raises:
        ValidationError: new_status is not approved/rejected
        InvalidStateError: approved -> rejected
        TransferStateError: Transfer cannot follow the approval
    """
    require_role(actor, ROLE_ADMIN, action="rendition.review")

    if new_status not in REVIEW_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(REVIEW_STATUSES)}",
            details={"status": new_status},
        )

    def _op():
        rendition = repository.get_rendition(rendition_id, for_update=True)
        previous = rendition.status

        if previous == RENDITION_STATUS_APPROVED and new_status == RENDITION_STATUS_REJECTED:
            raise InvalidStateError(
                f"Rendition {rendition.id} is approved and its transfer completed",
                details={"rendition_id": rendition.id, "status": previous},
            )

        now = utcnow()
        rendition.status = new_status
        rendition.reviewed_by_user_id = actor.id
        rendition.reviewed_at = now
        rendition.updated_at = now

        if previous != new_status and new_status == RENDITION_STATUS_APPROVED:
            transfer = repository.get_transfer(rendition.transfer_id, for_update=True)
            if transfer.status != TRANSFER_STATUS_COMPLETED:
                transition_transfer(transfer, TRANSFER_STATUS_COMPLETED)

        return rendition, previous

    rendition, previous = run_in_transaction(_op)

    if previous == new_status:
        current_app.logger.info("Rendition %s already %s, nothing to cascade", rendition.id, new_status)
        return rendition

    current_app.logger.info(
        "Rendition %s: %s -> %s by user %s", rendition.id, previous, new_status, actor.id,
    )

    if new_status == RENDITION_STATUS_APPROVED:
        emit_alert(
            title="Rendición Aprobada",
            message=f"La rendición de la semana {rendition.week_identifier} ha sido aprobada",
            alert_type=ALERT_SUCCESS,
            business_unit_id=rendition.business_unit_id,
            user_id=rendition.user_id,
        )
    else:
        emit_alert(
            title="Rendición Rechazada",
            message=f"La rendición de la semana {rendition.week_identifier} ha sido rechazada",
            alert_type=ALERT_WARNING,
            business_unit_id=rendition.business_unit_id,
            user_id=rendition.user_id,
        )
    return rendition


def reopen_rendition(rendition_id: int, actor) -> Rendition:
    """
    Bring a rejected rendition back to draft for correction.

    The transfer stays rendition_pending; the reopened draft can be
    resubmitted or deleted.
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="rendition.reopen")

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.reopen")
        if rendition.status != RENDITION_STATUS_REJECTED:
            raise InvalidStateError(
                f"Only rejected renditions can be reopened (status: {rendition.status})",
                details={"rendition_id": rendition.id, "status": rendition.status},
            )
        rendition.status = RENDITION_STATUS_DRAFT
        rendition.submitted_at = None
        rendition.updated_at = utcnow()
        return rendition

    rendition = run_in_transaction(_op)
    current_app.logger.info("Rendition %s reopened by user %s", rendition.id, actor.id)
    return rendition


def delete_rendition(rendition_id: int, actor) -> int:
    """
    Delete a draft rendition and its expenses; the transfer returns to received.

    Admins and managers delete any draft on their units; other writers
    only the drafts they created. Returns the freed transfer id.

    Raises:
        InvalidStateError: Rendition is not draft
        AuthorizationError: Actor is neither admin/manager nor the owner
    """
    role = require_role(actor, *_WRITER_ROLES, action="rendition.delete")

    def _op():
        rendition = _load_for_write(rendition_id, actor, "rendition.delete")
        if role not in (ROLE_ADMIN, ROLE_MANAGER) and rendition.user_id != actor.id:
            require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="rendition.delete")
        if rendition.status != RENDITION_STATUS_DRAFT:
            raise InvalidStateError(
                f"Only draft renditions can be deleted (status: {rendition.status})",
                details={"rendition_id": rendition.id, "status": rendition.status},
            )

        transfer = repository.get_transfer(rendition.transfer_id, for_update=True)
        transition_transfer(transfer, TRANSFER_STATUS_RECEIVED)
        db.session.delete(rendition)
        db.session.flush()
        return transfer.id

    transfer_id = run_in_transaction(_op)
    current_app.logger.info("Rendition %s deleted, transfer %s freed", rendition_id, transfer_id)
    return transfer_id


def get_rendition_detail(rendition_id: int) -> dict:
    rendition = repository.get_rendition(rendition_id)
    return rendition.to_dict(include_expenses=True)


def list_renditions(*, status: str | None = None, business_unit_id: int | None = None) -> list[Rendition]:
    if status and status not in RENDITION_STATUSES:
        raise ValidationError(f"Unknown rendition status: {status}")
    return repository.load_renditions(status=status, business_unit_id=business_unit_id)
