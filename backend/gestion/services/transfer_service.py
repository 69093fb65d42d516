# backend/gestion/services/transfer_service.py
"""
Cash transfer workflow.

WHY: A transfer is cash handed to a business unit that must later be
accounted for by a rendition. Its status is the single source of truth for
where that cash is in the weekly cycle.

LIFECYCLE:
1. pending: Created by an admin/manager
2. received: Unit confirmed the cash arrived
3. rendition_pending: A rendition was created against it
4. completed: The rendition was approved (terminal, immutable)

The only backward move is rendition_pending -> received, taken when a draft
rendition is deleted. transition_transfer is the only writer of
Transfer.status; renditions drive it through rendition_service.
"""
from __future__ import annotations

from flask import current_app

from ..errors import TransferStateError, ValidationError
from ..extensions import db
from ..models import Transfer
from ..models.auth import ROLE_ADMIN, ROLE_CASHIER, ROLE_MANAGER
from ..money import to_positive_money
from ..time_utils import utcnow
from . import repository
from .authorization import require_role, require_unit_access
from .concurrency import run_in_transaction


# Transfer status constants
TRANSFER_STATUS_PENDING = "pending"
TRANSFER_STATUS_RECEIVED = "received"
TRANSFER_STATUS_RENDITION_PENDING = "rendition_pending"
TRANSFER_STATUS_COMPLETED = "completed"

TRANSFER_STATUSES = (
    TRANSFER_STATUS_PENDING,
    TRANSFER_STATUS_RECEIVED,
    TRANSFER_STATUS_RENDITION_PENDING,
    TRANSFER_STATUS_COMPLETED,
)

TRANSFER_TRANSITIONS = {
    TRANSFER_STATUS_PENDING: {TRANSFER_STATUS_RECEIVED},
    TRANSFER_STATUS_RECEIVED: {TRANSFER_STATUS_RENDITION_PENDING},
    TRANSFER_STATUS_RENDITION_PENDING: {TRANSFER_STATUS_COMPLETED, TRANSFER_STATUS_RECEIVED},
    TRANSFER_STATUS_COMPLETED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSFER_TRANSITIONS.get(current, set())


def transition_transfer(transfer: Transfer, target: str) -> Transfer:
    """
    Move a transfer to target within the caller's unit of work.

    Raises TransferStateError for moves outside TRANSFER_TRANSITIONS.
    Does not commit.
    """
    if target not in TRANSFER_STATUSES:
        raise ValidationError(f"Unknown transfer status: {target}")

    if not can_transition(transfer.status, target):
        raise TransferStateError(
            f"Cannot move transfer {transfer.id} from {transfer.status} to {target}",
            details={"transfer_id": transfer.id, "status": transfer.status, "target": target},
        )

    previous = transfer.status
    transfer.status = target
    transfer.updated_at = utcnow()

    if target == TRANSFER_STATUS_RECEIVED and transfer.received_at is None:
        transfer.received_at = transfer.updated_at
    if target == TRANSFER_STATUS_COMPLETED:
        transfer.completed_at = transfer.updated_at

    current_app.logger.info("Transfer %s: %s -> %s", transfer.id, previous, target)
    return transfer


def create_transfer(
    to_business_unit_id: int,
    amount,
    week_identifier: str,
    actor,
    notes: str | None = None,
) -> Transfer:
    """
    Create a new transfer (status: pending).

    Args:
        to_business_unit_id: Destination business unit
        amount: Cash amount, strictly positive
        week_identifier: Weekly cycle key
        actor: Admin or manager creating the transfer
        notes: Optional free text

    Raises:
        AuthorizationError: Actor is not admin/manager
        ValidationError: Bad amount or week identifier, inactive unit
        NotFoundError: Unknown business unit
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="transfer.create")

    amount = to_positive_money(amount, "amount")
    week_identifier = (week_identifier or "").strip()
    if not week_identifier:
        raise ValidationError("week_identifier is required")

    def _op():
        unit = repository.get_business_unit(to_business_unit_id)
        if not unit.is_active:
            raise ValidationError(f"Business unit {unit.id} is inactive")

        transfer = Transfer(
            from_user_id=actor.id,
            to_business_unit_id=unit.id,
            amount=amount,
            week_identifier=week_identifier,
            status=TRANSFER_STATUS_PENDING,
            notes=notes,
        )
        db.session.add(transfer)
        db.session.flush()
        return transfer

    transfer = run_in_transaction(_op)
    current_app.logger.info(
        "Transfer %s created: unit=%s amount=%s week=%s by user %s",
        transfer.id, transfer.to_business_unit_id, transfer.amount, transfer.week_identifier, actor.id,
    )
    return transfer


def confirm_transfer_receipt(transfer_id: int, actor) -> Transfer:
    """
    Confirm the unit received the cash (pending -> received).

    Raises:
        TransferStateError: Transfer is not pending
    """
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER, action="transfer.receive")

    def _op():
        transfer = repository.get_transfer(transfer_id, for_update=True)
        require_unit_access(actor, transfer.to_business_unit_id, action="transfer.receive")
        return transition_transfer(transfer, TRANSFER_STATUS_RECEIVED)

    return run_in_transaction(_op)


def update_transfer_notes(transfer_id: int, notes: str | None, actor) -> Transfer:
    """Edit transfer notes; completed transfers are immutable."""
    require_role(actor, ROLE_ADMIN, ROLE_MANAGER, action="transfer.update")

    def _op():
        transfer = repository.get_transfer(transfer_id, for_update=True)
        require_unit_access(actor, transfer.to_business_unit_id, action="transfer.update")
        if transfer.status == TRANSFER_STATUS_COMPLETED:
            raise TransferStateError(
                f"Transfer {transfer.id} is completed and cannot be modified",
                details={"transfer_id": transfer.id},
            )
        transfer.notes = notes
        transfer.updated_at = utcnow()
        return transfer

    return run_in_transaction(_op)


def list_available_transfers(business_unit_id: int | None = None) -> list[Transfer]:
    """Transfers a rendition can be created against: received and without one."""
    transfers = repository.load_transfers(
        status=TRANSFER_STATUS_RECEIVED,
        business_unit_id=business_unit_id,
    )
    return [t for t in transfers if t.rendition is None]


def get_transfer_summary(transfer_id: int) -> dict:
    """
    Get transfer with its rendition (if any).

    Raises:
        NotFoundError: If transfer not found
    """
    transfer = repository.get_transfer(transfer_id)

    return {
        **transfer.to_dict(),
        "rendition": transfer.rendition.to_dict(include_expenses=True) if transfer.rendition else None,
    }
