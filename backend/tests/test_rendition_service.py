import pytest
from decimal import Decimal

from gestion.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    TransferStateError,
    ValidationError,
)
from gestion.models import Alert, Rendition, RenditionExpense, Transfer, User
from gestion.services import alert_service, rendition_service, transfer_service
from gestion.services.rendition_service import (
    RENDITION_STATUS_APPROVED,
    RENDITION_STATUS_DRAFT,
    RENDITION_STATUS_REJECTED,
    RENDITION_STATUS_SUBMITTED,
)


EXPENSES = [
    {"description": "Materiales", "amount": 40000, "category": "supplies"},
    {"description": "Fletes", "amount": 10000, "category": "transport"},
]


def _assert_reconciled(rendition):
    total = sum((e.amount for e in rendition.expenses), Decimal("0"))
    assert rendition.total_expenses == total
    assert rendition.remaining_amount == rendition.transfer_amount - total


def _submitted(transfer, cashier):
    rendition = rendition_service.create_rendition(transfer.id, EXPENSES, cashier)
    return rendition_service.submit_rendition(rendition.id, cashier)


def test_create_rendition_reconciles_and_moves_transfer(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    assert rendition.status == RENDITION_STATUS_DRAFT
    assert rendition.transfer_amount == Decimal("100000")
    assert rendition.total_expenses == Decimal("50000")
    assert rendition.remaining_amount == Decimal("50000")
    assert rendition.week_identifier == "2025-W14"
    assert rendition.user_id == cashier.id
    assert len(rendition.expenses) == 2
    _assert_reconciled(rendition)

    transfer = db_session.get(Transfer, received_transfer.id)
    assert transfer.status == transfer_service.TRANSFER_STATUS_RENDITION_PENDING


def test_full_cycle_completes_transfer(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    assert rendition.status == RENDITION_STATUS_APPROVED
    assert rendition.reviewed_by_user_id == admin.id
    transfer = db_session.get(Transfer, received_transfer.id)
    assert transfer.status == transfer_service.TRANSFER_STATUS_COMPLETED
    assert transfer.completed_at is not None

    alerts = db_session.query(Alert).all()
    assert [(a.type, a.title) for a in alerts] == [("success", "Rendición Aprobada")]


def test_overspend_gives_negative_remaining(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(
        received_transfer.id, [{"description": "Reparación", "amount": 120000}], cashier
    )
    assert rendition.remaining_amount == Decimal("-20000")


def test_create_requires_expenses(db_session, received_transfer, cashier):
    with pytest.raises(ValidationError):
        rendition_service.create_rendition(received_transfer.id, [], cashier)

    transfer = db_session.get(Transfer, received_transfer.id)
    assert transfer.status == transfer_service.TRANSFER_STATUS_RECEIVED
    assert db_session.query(Rendition).count() == 0


def test_create_rejects_invalid_expense(db_session, received_transfer, cashier):
    with pytest.raises(ValidationError):
        rendition_service.create_rendition(
            received_transfer.id, [{"description": "Materiales", "amount": 100}, {"description": "", "amount": 5}], cashier
        )
    assert db_session.query(Rendition).count() == 0


def test_create_on_pending_transfer_fails(db_session, unit, admin, cashier):
    transfer = transfer_service.create_transfer(unit.id, 1000, "2025-W14", admin)
    with pytest.raises(TransferStateError):
        rendition_service.create_rendition(transfer.id, EXPENSES, cashier)


def test_create_unknown_transfer(db_session, cashier):
    with pytest.raises(NotFoundError):
        rendition_service.create_rendition(4242, EXPENSES, cashier)


def test_one_rendition_per_transfer(db_session, received_transfer, cashier, manager):
    rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    with pytest.raises(TransferStateError):
        rendition_service.create_rendition(received_transfer.id, EXPENSES, manager)
    assert db_session.query(Rendition).count() == 1


def test_cashier_of_other_unit_cannot_create(db_session, received_transfer, other_cashier):
    with pytest.raises(AuthorizationError):
        rendition_service.create_rendition(received_transfer.id, EXPENSES, other_cashier)


def test_expense_changes_keep_totals(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    added = rendition_service.add_expense_to_rendition(rendition.id, {"description": "Aseo", "amount": 5000}, cashier)
    rendition = db_session.get(Rendition, rendition.id)
    assert rendition.total_expenses == Decimal("55000")
    _assert_reconciled(rendition)

    rendition_service.update_rendition_expense(rendition.id, added.id, {"amount": 7500}, cashier)
    rendition = db_session.get(Rendition, rendition.id)
    assert rendition.total_expenses == Decimal("57500")
    _assert_reconciled(rendition)

    rendition = rendition_service.remove_rendition_expense(rendition.id, added.id, cashier)
    assert rendition.total_expenses == Decimal("50000")
    assert rendition.remaining_amount == Decimal("50000")
    _assert_reconciled(rendition)


def test_update_expense_validates_merged_values(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    expense_id = rendition.expenses[0].id

    with pytest.raises(ValidationError):
        rendition_service.update_rendition_expense(rendition.id, expense_id, {"amount": 0}, cashier)

    expense = db_session.get(RenditionExpense, expense_id)
    assert expense.amount == Decimal("40000")


def test_remove_unknown_expense(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    with pytest.raises(NotFoundError):
        rendition_service.remove_rendition_expense(rendition.id, 999, cashier)


def test_expenses_locked_after_submit(db_session, received_transfer, cashier):
    rendition = _submitted(received_transfer, cashier)
    assert rendition.status == RENDITION_STATUS_SUBMITTED
    assert rendition.submitted_at is not None

    with pytest.raises(InvalidStateError):
        rendition_service.add_expense_to_rendition(rendition.id, {"description": "Aseo", "amount": 10}, cashier)


def test_submit_without_expenses_fails(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, [EXPENSES[0]], cashier)
    rendition_service.remove_rendition_expense(rendition.id, rendition.expenses[0].id, cashier)

    with pytest.raises(ValidationError):
        rendition_service.submit_rendition(rendition.id, cashier)
    assert db_session.get(Rendition, rendition.id).status == RENDITION_STATUS_DRAFT


def test_only_admin_reviews(db_session, received_transfer, cashier, manager):
    rendition = _submitted(received_transfer, cashier)
    with pytest.raises(AuthorizationError):
        rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, manager)


def test_review_rejects_unknown_status(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    with pytest.raises(ValidationError):
        rendition_service.update_rendition_status(rendition.id, "archived", admin)


def test_draft_approved_directly_completes_transfer(db_session, received_transfer, cashier, admin):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    assert rendition.status == RENDITION_STATUS_APPROVED
    assert rendition.submitted_at is None
    assert rendition.reviewed_by_user_id == admin.id
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_COMPLETED
    assert db_session.query(Alert).one().title == "Rendición Aprobada"


def test_draft_can_be_rejected_directly(db_session, received_transfer, cashier, admin):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_REJECTED, admin)

    assert rendition.status == RENDITION_STATUS_REJECTED
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_RENDITION_PENDING


def test_reject_keeps_transfer_pending_and_warns(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_REJECTED, admin)

    assert rendition.status == RENDITION_STATUS_REJECTED
    transfer = db_session.get(Transfer, received_transfer.id)
    assert transfer.status == transfer_service.TRANSFER_STATUS_RENDITION_PENDING

    alert = db_session.query(Alert).one()
    assert alert.type == "warning"
    assert alert.title == "Rendición Rechazada"


def test_repeated_approval_is_a_noop(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    assert rendition.status == RENDITION_STATUS_APPROVED
    assert db_session.query(Alert).count() == 1
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_COMPLETED


def test_approved_cannot_be_rejected(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    with pytest.raises(InvalidStateError):
        rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_REJECTED, admin)
    assert db_session.get(Rendition, rendition.id).status == RENDITION_STATUS_APPROVED


def test_rejected_can_be_approved_later(db_session, received_transfer, cashier, admin):
    rendition = _submitted(received_transfer, cashier)
    rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_REJECTED, admin)
    rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_COMPLETED


def test_reopen_rejected_then_delete_frees_transfer(db_session, received_transfer, cashier, admin, manager):
    rendition = _submitted(received_transfer, cashier)
    rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_REJECTED, admin)

    rendition = rendition_service.reopen_rendition(rendition.id, manager)
    assert rendition.status == RENDITION_STATUS_DRAFT
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_RENDITION_PENDING

    transfer_id = rendition_service.delete_rendition(rendition.id, manager)
    assert transfer_id == received_transfer.id
    assert db_session.get(Transfer, transfer_id).status == transfer_service.TRANSFER_STATUS_RECEIVED


def test_reopen_requires_rejected(db_session, received_transfer, cashier, manager):
    rendition = _submitted(received_transfer, cashier)
    with pytest.raises(InvalidStateError):
        rendition_service.reopen_rendition(rendition.id, manager)


def test_delete_draft_cascades_and_reverts_transfer(db_session, received_transfer, cashier, manager):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    rendition_service.delete_rendition(rendition.id, manager)

    assert db_session.query(Rendition).count() == 0
    assert db_session.query(RenditionExpense).count() == 0
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_RECEIVED

    # The freed transfer accepts a new rendition
    again = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)
    assert again.status == RENDITION_STATUS_DRAFT


@pytest.mark.parametrize("review", [RENDITION_STATUS_APPROVED, RENDITION_STATUS_REJECTED])
def test_reviewed_rendition_cannot_be_deleted(db_session, received_transfer, cashier, admin, review):
    rendition = _submitted(received_transfer, cashier)
    rendition_service.update_rendition_status(rendition.id, review, admin)

    with pytest.raises(InvalidStateError):
        rendition_service.delete_rendition(rendition.id, admin)
    assert db_session.query(Rendition).count() == 1


def test_owner_can_delete_own_draft(db_session, received_transfer, cashier):
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    transfer_id = rendition_service.delete_rendition(rendition.id, cashier)

    assert db_session.query(Rendition).count() == 0
    assert db_session.get(Transfer, transfer_id).status == transfer_service.TRANSFER_STATUS_RECEIVED


def test_cashier_cannot_delete_someone_elses_draft(db_session, unit, received_transfer, cashier):
    colleague = User(username="cajero_turno_b", email="turno_b@walker.local", role="cashier", business_unit_id=unit.id)
    db_session.add(colleague)
    db_session.commit()
    rendition = rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    with pytest.raises(AuthorizationError):
        rendition_service.delete_rendition(rendition.id, colleague)
    assert db_session.get(Rendition, rendition.id).status == RENDITION_STATUS_DRAFT
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_RENDITION_PENDING


def test_alert_failure_does_not_block_approval(db_session, received_transfer, cashier, admin, monkeypatch):
    rendition = _submitted(received_transfer, cashier)

    def broken_alert(**kwargs):
        raise RuntimeError("alert sink down")

    monkeypatch.setattr(alert_service, "Alert", broken_alert)
    rendition = rendition_service.update_rendition_status(rendition.id, RENDITION_STATUS_APPROVED, admin)

    assert rendition.status == RENDITION_STATUS_APPROVED
    assert db_session.get(Transfer, received_transfer.id).status == transfer_service.TRANSFER_STATUS_COMPLETED


def test_list_renditions_filters(db_session, received_transfer, cashier):
    rendition_service.create_rendition(received_transfer.id, EXPENSES, cashier)

    assert len(rendition_service.list_renditions(status=RENDITION_STATUS_DRAFT)) == 1
    assert rendition_service.list_renditions(status=RENDITION_STATUS_APPROVED) == []
    with pytest.raises(ValidationError):
        rendition_service.list_renditions(status="archived")
