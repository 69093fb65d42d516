# Overview: Read-only reports and CSV exports over renditions, transfers, goals and bonuses.

from __future__ import annotations

import csv
from io import StringIO

from ..money import DEC_0
from . import repository
from .bonus_service import (
    BONUS_STATUS_APPROVED,
    BONUS_STATUS_PAID,
    BONUS_STATUS_PENDING,
    BONUS_STATUSES,
    GOAL_STATUS_ACHIEVED,
    goal_progress,
)
from .transfer_service import TRANSFER_STATUSES


RENDITION_STATUS_LABELS = {
    "draft": "Borrador",
    "submitted": "Pendiente",
    "approved": "Aprobada",
    "rejected": "Rechazada",
}

BONUS_STATUS_LABELS = {
    BONUS_STATUS_PENDING: "Pendiente",
    BONUS_STATUS_APPROVED: "Aprobado",
    BONUS_STATUS_PAID: "Pagado",
}

RENDITION_EXPORT_COLUMNS = (
    "Semana",
    "Unidad de Negocio",
    "Monto Transferencia",
    "Total Gastos",
    "Saldo",
    "Estado",
    "Creado por",
    "Notas",
)

BONUS_EXPORT_COLUMNS = (
    "Mes",
    "Unidad de Negocio",
    "Meta",
    "Ventas Reales",
    "Porcentaje Logrado",
    "Monto Bono",
    "Estado",
)


def _write_csv(columns, rows) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue()


def _unit_name(entity) -> str:
    unit = entity.business_unit
    return unit.name if unit else ""


def export_renditions_csv(*, status: str | None = None, business_unit_id: int | None = None) -> str:
    """Renditions as CSV text, newest first."""
    renditions = repository.load_renditions(status=status, business_unit_id=business_unit_id)
    rows = [
        (
            r.week_identifier,
            _unit_name(r),
            r.transfer_amount,
            r.total_expenses,
            r.remaining_amount,
            RENDITION_STATUS_LABELS.get(r.status, r.status),
            (r.user.full_name or r.user.username) if r.user else "",
            r.notes or "",
        )
        for r in renditions
    ]
    return _write_csv(RENDITION_EXPORT_COLUMNS, rows)


def export_bonuses_csv(*, month_key: str | None = None, status: str | None = None) -> str:
    """Bonuses as CSV text, newest month first."""
    bonuses = repository.load_bonuses(month_key=month_key, status=status)
    rows = [
        (
            b.month,
            _unit_name(b),
            b.goal_amount,
            b.actual_amount,
            b.percentage_achieved,
            b.amount,
            BONUS_STATUS_LABELS.get(b.status, b.status),
        )
        for b in bonuses
    ]
    return _write_csv(BONUS_EXPORT_COLUMNS, rows)


def bonus_summary(*, month_key: str | None = None) -> dict:
    """
    Counts and amounts per bonus status.

    total_amount covers every bonus; paid_amount and pending_amount split it
    for the summary cards.
    """
    bonuses = repository.load_bonuses(month_key=month_key)
    summary = {
        "count": len(bonuses),
        "by_status": {status: 0 for status in BONUS_STATUSES},
        "total_amount": DEC_0,
        "pending_amount": DEC_0,
        "approved_amount": DEC_0,
        "paid_amount": DEC_0,
    }
    for bonus in bonuses:
        summary["by_status"][bonus.status] = summary["by_status"].get(bonus.status, 0) + 1
        summary["total_amount"] += bonus.amount
        summary[f"{bonus.status}_amount"] += bonus.amount
    return summary


def transfer_summary(*, business_unit_id: int | None = None) -> dict:
    """Count and amount of transfers per status."""
    transfers = repository.load_transfers(business_unit_id=business_unit_id)
    by_status = {status: {"count": 0, "amount": DEC_0} for status in TRANSFER_STATUSES}
    for transfer in transfers:
        bucket = by_status.setdefault(transfer.status, {"count": 0, "amount": DEC_0})
        bucket["count"] += 1
        bucket["amount"] += transfer.amount
    return {
        "count": len(transfers),
        "total_amount": sum((t.amount for t in transfers), DEC_0),
        "by_status": by_status,
    }


def goal_dashboard(month_key: str) -> dict:
    """
    Progress of every goal of a month.

    Sales are loaded once per goal's unit; units without a goal are not
    listed.
    """
    goals = repository.load_goals(month_key=month_key)
    cards = []
    for goal in goals:
        sales = repository.load_sales(business_unit_id=goal.business_unit_id, month_key=month_key)
        cards.append(goal_progress(goal, sales))

    achieved = [c for c in cards if c["status"] == GOAL_STATUS_ACHIEVED]
    return {
        "month": month_key,
        "goals": cards,
        "goals_count": len(cards),
        "achieved_count": len(achieved),
        "total_target": sum((c["target_amount"] for c in cards), DEC_0),
        "total_actual": sum((c["actual_amount"] for c in cards), DEC_0),
        "estimated_bonus_total": sum((c["estimated_bonus"] for c in cards), DEC_0),
    }
