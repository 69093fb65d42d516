import json

from gestion.models import Alert, Rendition, Transfer, User


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


def test_system_init_is_idempotent(app, db_session):
    result = _invoke(app, "system", "init")
    assert result.exit_code == 0, result.output
    assert "PASS Created user: admin" in result.output

    result = _invoke(app, "system", "init")
    assert result.exit_code == 0, result.output
    assert "already exists" in result.output
    assert db_session.query(User).count() == 3


def test_transfer_and_rendition_cycle(app, db_session, unit, admin, cashier):
    result = _invoke(app, "transfers", "create", "--unit-id", str(unit.id), "--amount", "100000",
                     "--week", "2025-W14", "--actor", "admin")
    assert result.exit_code == 0, result.output
    transfer = db_session.query(Transfer).one()

    result = _invoke(app, "transfers", "receive", str(transfer.id), "--actor", "cashier")
    assert result.exit_code == 0, result.output
    assert "received" in result.output

    result = _invoke(app, "renditions", "create", str(transfer.id),
                     "--expense", "40000:Materiales", "--expense", "10000:Fletes:transport",
                     "--actor", "cashier")
    assert result.exit_code == 0, result.output
    assert "remaining 50000.00" in result.output
    rendition = db_session.query(Rendition).one()

    assert _invoke(app, "renditions", "submit", str(rendition.id), "--actor", "cashier").exit_code == 0

    result = _invoke(app, "renditions", "review", str(rendition.id), "approved", "--actor", "admin")
    assert result.exit_code == 0, result.output
    assert db_session.get(Transfer, transfer.id).status == "completed"
    assert db_session.query(Alert).count() == 1

    result = _invoke(app, "transfers", "show", str(transfer.id))
    assert json.loads(result.output)["rendition"]["status"] == "approved"


def test_domain_error_fails_command(app, db_session, received_transfer, cashier):
    result = _invoke(app, "renditions", "create", str(received_transfer.id), "--actor", "cashier")
    assert result.exit_code != 0
    assert "FAIL at least one valid expense required" in result.output


def test_unknown_actor_fails(app, db_session, unit):
    result = _invoke(app, "transfers", "create", "--unit-id", str(unit.id), "--amount", "1",
                     "--week", "2025-W14", "--actor", "nobody")
    assert result.exit_code != 0
    assert "FAIL User 'nobody' not found" in result.output


def test_role_denied_fails(app, db_session, received_transfer, cashier):
    result = _invoke(app, "renditions", "create", str(received_transfer.id), "--expense", "100:Aseo",
                     "--actor", "cashier")
    rendition = db_session.query(Rendition).one()
    _invoke(app, "renditions", "submit", str(rendition.id), "--actor", "cashier")

    result = _invoke(app, "renditions", "review", str(rendition.id), "approved", "--actor", "cashier")
    assert result.exit_code != 0
    assert "FAIL Requires role: admin" in result.output


def test_goal_bonus_and_reports(app, db_session, unit, admin):
    month = "2025-04"
    assert _invoke(app, "goals", "set", "--unit-id", str(unit.id), "--month", month, "--target", "1000000",
                   "--pct", "10", "--actor", "admin").exit_code == 0
    assert _invoke(app, "sales", "record", "--unit-id", str(unit.id), "--amount", "1200000",
                   "--date", "2025-04-10", "--actor", "admin").exit_code == 0

    result = _invoke(app, "bonuses", "calculate", "--unit-id", str(unit.id), "--month", month, "--actor", "admin")
    assert result.exit_code == 0, result.output
    assert "120% of goal, amount 20000.00" in result.output

    result = _invoke(app, "reports", "bonuses-csv", "--month", month)
    assert result.exit_code == 0
    assert result.output.splitlines()[0].startswith("Mes,Unidad de Negocio")

    result = _invoke(app, "reports", "goals", "--month", month)
    assert "1/1 goals achieved" in result.output

    result = _invoke(app, "alerts", "list", "--unit-id", str(unit.id))
    assert "Nuevo Bono Calculado" in result.output


def test_reset_db_requires_confirmation(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "reset-db"], input="n\n")
    assert result.exit_code != 0
