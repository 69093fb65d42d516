# Overview: Flask CLI command groups for bootstrap, the transfer/rendition cycle, goals, bonuses and reports.

# backend/gestion/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Use: flask --app gestion <group> <command> [options]
# - State-changing commands take --actor <username>; the user's role decides.
#
# System bootstrap/repair:
# - flask --app gestion system init-db
#   Create all tables (use "flask --app gestion db upgrade" for migrations).
# - flask --app gestion system init [--company "Walker"] [--unit "Casa Matriz"]
#   Idempotent bootstrap: default company, unit and admin/manager/cashier users.
# - flask --app gestion system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Units and users:
# - flask --app gestion units list
# - flask --app gestion units create --company-id 1 --name "Sucursal Centro"
# - flask --app gestion users list
# - flask --app gestion users create --username ana --email ana@walker.local --role cashier --unit-id 1
#
# Transfers and renditions:
# - flask --app gestion transfers create --unit-id 1 --amount 100000 --week 2025-W14 --actor admin
# - flask --app gestion transfers receive 1 --actor cashier
# - flask --app gestion transfers available [--unit-id 1]
# - flask --app gestion renditions create 1 --expense "40000:Materiales" --expense "10000:Fletes:transport" --actor cashier
# - flask --app gestion renditions submit 1 --actor cashier
# - flask --app gestion renditions review 1 approved --actor admin
# - flask --app gestion renditions reopen 1 --actor manager
# - flask --app gestion renditions delete 1 --actor manager
#
# Sales, goals and bonuses:
# - flask --app gestion sales record --unit-id 1 --amount 50000 --date 2025-04-03 --actor cashier
# - flask --app gestion goals set --unit-id 1 --month 2025-04 --target 1000000 --pct 10 --actor admin
# - flask --app gestion bonuses calculate --unit-id 1 --month 2025-04 --actor admin
# - flask --app gestion bonuses approve 1 --actor admin
# - flask --app gestion bonuses pay 1 --actor admin
#
# Reports and alerts:
# - flask --app gestion reports renditions-csv [--output rendiciones.csv]
# - flask --app gestion reports bonuses-csv [--month 2025-04]
# - flask --app gestion reports bonus-summary | transfer-summary | goals --month 2025-04
# - flask --app gestion alerts list [--unit-id 1] [--unread]

import functools
import json

import click
from flask.cli import with_appcontext

from .errors import GestionError, ValidationError
from .extensions import db
from .models import BusinessUnit, Company, User
from .models.auth import VALID_ROLES
from .services import (
    alert_service,
    bonus_service,
    rendition_service,
    reporting_service,
    repository,
    sales_service,
    transfer_service,
)
from .time_utils import current_month_key


def _handle_errors(func):
    """Report domain errors as a failed command instead of a traceback."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GestionError as e:
            db.session.rollback()
            raise click.ClickException(f"FAIL {e.message}")
    return wrapper


def _actor(username):
    return repository.get_user_by_username(username)


actor_option = click.option('--actor', 'actor_name', required=True, help='Username performing the action')


def _parse_expense(raw):
    """Parse "amount:description[:category]"."""
    parts = raw.split(':', 2)
    if len(parts) < 2:
        raise ValidationError(f"Expense '{raw}' must look like amount:description[:category]")
    expense = {"amount": parts[0].strip(), "description": parts[1]}
    if len(parts) == 3 and parts[2].strip():
        expense["category"] = parts[2].strip()
    return expense


def _load_expenses(raw_expenses, expenses_file):
    expenses = [_parse_expense(raw) for raw in raw_expenses]
    if expenses_file:
        data = json.load(expenses_file)
        if not isinstance(data, list):
            raise ValidationError("Expenses file must contain a JSON list")
        expenses.extend(data)
    return expenses


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('init')
@click.option('--company', 'company_name', default='Walker', help='Company name')
@click.option('--unit', 'unit_name', default='Casa Matriz', help='Default business unit name')
@with_appcontext
def init_system(company_name, unit_name):
    """
    Initialize a usable system: company, default unit and users.

    Creates (when missing):
    - Company and one business unit
    - Users: admin (company-wide), manager and cashier on the default unit
    """
    click.echo("START Initializing WalkerGestion...")
    db.create_all()

    company = db.session.query(Company).filter_by(name=company_name).first()
    if not company:
        company = Company(name=company_name)
        db.session.add(company)
        db.session.commit()
        click.echo(f"PASS Created company: {company.name} (ID: {company.id})")
    else:
        click.echo(f"PASS Using existing company: {company.name} (ID: {company.id})")

    unit = db.session.query(BusinessUnit).filter_by(company_id=company.id, name=unit_name).first()
    if not unit:
        unit = BusinessUnit(company_id=company.id, name=unit_name)
        db.session.add(unit)
        db.session.commit()
        click.echo(f"PASS Created business unit: {unit.name} (ID: {unit.id})")
    else:
        click.echo(f"PASS Using existing business unit: {unit.name} (ID: {unit.id})")

    default_users = [
        ("admin", "admin@walker.local", "admin", None),
        ("manager", "manager@walker.local", "manager", unit.id),
        ("cashier", "cashier@walker.local", "cashier", unit.id),
    ]
    for username, email, role, unit_id in default_users:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        db.session.add(User(username=username, email=email, role=role, business_unit_id=unit_id))
        db.session.commit()
        click.echo(f"PASS Created user: {username} with role '{role}'")

    click.echo("DONE WalkerGestion initialized.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'flask --app gestion system init' to initialize.")


# =============================================================================
# UNITS / USERS
# =============================================================================

@click.group('units')
def units_group():
    """Business unit management."""


@units_group.command('list')
@with_appcontext
def list_units():
    """List business units."""
    units = db.session.query(BusinessUnit).order_by(BusinessUnit.id).all()
    if not units:
        click.echo("No business units found.")
        return

    click.echo(f"{'ID':<5} {'Company':<8} {'Name':<30} {'Active'}")
    for unit in units:
        click.echo(f"{unit.id:<5} {unit.company_id:<8} {unit.name:<30} {'Yes' if unit.is_active else 'No'}")


@units_group.command('create')
@click.option('--company-id', type=int, required=True)
@click.option('--name', required=True)
@click.option('--address', default=None)
@with_appcontext
@_handle_errors
def create_unit(company_id, name, address):
    """Create a business unit in a company."""
    if not db.session.query(Company).filter_by(id=company_id).first():
        raise click.ClickException(f"FAIL Company {company_id} not found")
    if db.session.query(BusinessUnit).filter_by(company_id=company_id, name=name).first():
        raise click.ClickException(f"FAIL Business unit '{name}' already exists in company {company_id}")

    unit = BusinessUnit(company_id=company_id, name=name, address=address)
    db.session.add(unit)
    db.session.commit()
    click.echo(f"PASS Created business unit: {unit.name} (ID: {unit.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@click.option('--unit-id', type=int, help='Filter by business unit ID')
@with_appcontext
def list_users(unit_id):
    """List users with their roles."""
    query = db.session.query(User)
    if unit_id:
        query = query.filter_by(business_unit_id=unit_id)
    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<10} {'Unit':<6} {'Active'}")
    for user in users:
        unit = user.business_unit_id if user.business_unit_id else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<10} {unit!s:<6} {'Yes' if user.is_active else 'No'}")


@users_group.command('create')
@click.option('--username', required=True)
@click.option('--email', required=True)
@click.option('--role', type=click.Choice(VALID_ROLES), required=True)
@click.option('--unit-id', type=int, default=None, help='Business unit (omit for company-wide)')
@click.option('--full-name', default=None)
@with_appcontext
@_handle_errors
def create_user(username, email, role, unit_id, full_name):
    """Create a user."""
    if db.session.query(User).filter_by(username=username).first():
        raise click.ClickException(f"FAIL User '{username}' already exists")
    if unit_id is not None:
        repository.get_business_unit(unit_id)

    user = User(username=username, email=email, role=role, business_unit_id=unit_id, full_name=full_name)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


# =============================================================================
# TRANSFERS
# =============================================================================

@click.group('transfers')
def transfers_group():
    """Cash transfers to business units."""


def _echo_transfers(transfers):
    if not transfers:
        click.echo("No transfers found.")
        return
    click.echo(f"{'ID':<5} {'Unit':<6} {'Week':<12} {'Amount':>14} {'Status'}")
    for t in transfers:
        click.echo(f"{t.id:<5} {t.to_business_unit_id:<6} {t.week_identifier:<12} {t.amount!s:>14} {t.status}")


@transfers_group.command('list')
@click.option('--status', type=click.Choice(transfer_service.TRANSFER_STATUSES), default=None)
@click.option('--unit-id', type=int, default=None)
@click.option('--week', default=None)
@with_appcontext
@_handle_errors
def list_transfers(status, unit_id, week):
    """List transfers, newest first."""
    _echo_transfers(repository.load_transfers(status=status, business_unit_id=unit_id, week_identifier=week))


@transfers_group.command('available')
@click.option('--unit-id', type=int, default=None)
@with_appcontext
@_handle_errors
def available_transfers(unit_id):
    """List received transfers still waiting for a rendition."""
    _echo_transfers(transfer_service.list_available_transfers(unit_id))


@transfers_group.command('create')
@click.option('--unit-id', type=int, required=True)
@click.option('--amount', required=True)
@click.option('--week', required=True, help='Week identifier, e.g. 2025-W14')
@click.option('--notes', default=None)
@actor_option
@with_appcontext
@_handle_errors
def create_transfer(unit_id, amount, week, notes, actor_name):
    """Create a pending transfer."""
    transfer = transfer_service.create_transfer(unit_id, amount, week, _actor(actor_name), notes=notes)
    click.echo(f"PASS Created transfer {transfer.id}: {transfer.amount} to unit {transfer.to_business_unit_id}")


@transfers_group.command('receive')
@click.argument('transfer_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def receive_transfer(transfer_id, actor_name):
    """Confirm a transfer was received."""
    transfer = transfer_service.confirm_transfer_receipt(transfer_id, _actor(actor_name))
    click.echo(f"PASS Transfer {transfer.id} is now {transfer.status}")


@transfers_group.command('notes')
@click.argument('transfer_id', type=int)
@click.argument('notes')
@actor_option
@with_appcontext
@_handle_errors
def transfer_notes(transfer_id, notes, actor_name):
    """Replace the notes of a transfer."""
    transfer_service.update_transfer_notes(transfer_id, notes, _actor(actor_name))
    click.echo(f"PASS Notes updated on transfer {transfer_id}")


@transfers_group.command('show')
@click.argument('transfer_id', type=int)
@with_appcontext
@_handle_errors
def show_transfer(transfer_id):
    """Show a transfer and its rendition as JSON."""
    click.echo(json.dumps(transfer_service.get_transfer_summary(transfer_id), indent=2, ensure_ascii=False))


# =============================================================================
# RENDITIONS
# =============================================================================

@click.group('renditions')
def renditions_group():
    """Renditions reconciling transfers against expenses."""


@renditions_group.command('list')
@click.option('--status', type=click.Choice(rendition_service.RENDITION_STATUSES), default=None)
@click.option('--unit-id', type=int, default=None)
@with_appcontext
@_handle_errors
def list_renditions(status, unit_id):
    """List renditions, newest first."""
    renditions = rendition_service.list_renditions(status=status, business_unit_id=unit_id)
    if not renditions:
        click.echo("No renditions found.")
        return
    click.echo(f"{'ID':<5} {'Transfer':<9} {'Week':<12} {'Transfer $':>12} {'Expenses':>12} {'Remaining':>12} {'Status'}")
    for r in renditions:
        click.echo(
            f"{r.id:<5} {r.transfer_id:<9} {r.week_identifier:<12} {r.transfer_amount!s:>12} "
            f"{r.total_expenses!s:>12} {r.remaining_amount!s:>12} {r.status}"
        )


@renditions_group.command('create')
@click.argument('transfer_id', type=int)
@click.option('--expense', 'raw_expenses', multiple=True, help='amount:description[:category] (repeatable)')
@click.option('--expenses-file', type=click.File('r'), default=None, help='JSON list of expense objects')
@click.option('--notes', default=None)
@actor_option
@with_appcontext
@_handle_errors
def create_rendition(transfer_id, raw_expenses, expenses_file, notes, actor_name):
    """Create a draft rendition for a received transfer."""
    expenses = _load_expenses(raw_expenses, expenses_file)
    rendition = rendition_service.create_rendition(transfer_id, expenses, _actor(actor_name), notes=notes)
    click.echo(
        f"PASS Created rendition {rendition.id}: expenses {rendition.total_expenses}, "
        f"remaining {rendition.remaining_amount}"
    )


@renditions_group.command('add-expense')
@click.argument('rendition_id', type=int)
@click.argument('raw_expense')
@actor_option
@with_appcontext
@_handle_errors
def add_expense(rendition_id, raw_expense, actor_name):
    """Add an expense (amount:description[:category]) to a draft rendition."""
    expense = rendition_service.add_expense_to_rendition(rendition_id, _parse_expense(raw_expense), _actor(actor_name))
    click.echo(f"PASS Added expense {expense.id} to rendition {rendition_id}")


@renditions_group.command('remove-expense')
@click.argument('rendition_id', type=int)
@click.argument('expense_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def remove_expense(rendition_id, expense_id, actor_name):
    """Remove an expense from a draft rendition."""
    rendition = rendition_service.remove_rendition_expense(rendition_id, expense_id, _actor(actor_name))
    click.echo(f"PASS Removed expense {expense_id}; remaining {rendition.remaining_amount}")


@renditions_group.command('submit')
@click.argument('rendition_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def submit_rendition(rendition_id, actor_name):
    """Submit a draft rendition for review."""
    rendition_service.submit_rendition(rendition_id, _actor(actor_name))
    click.echo(f"PASS Rendition {rendition_id} submitted")


@renditions_group.command('review')
@click.argument('rendition_id', type=int)
@click.argument('status', type=click.Choice(rendition_service.REVIEW_STATUSES))
@actor_option
@with_appcontext
@_handle_errors
def review_rendition(rendition_id, status, actor_name):
    """Approve or reject a submitted rendition."""
    rendition = rendition_service.update_rendition_status(rendition_id, status, _actor(actor_name))
    click.echo(f"PASS Rendition {rendition.id} is now {rendition.status}")


@renditions_group.command('reopen')
@click.argument('rendition_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def reopen_rendition(rendition_id, actor_name):
    """Return a rejected rendition to draft."""
    rendition_service.reopen_rendition(rendition_id, _actor(actor_name))
    click.echo(f"PASS Rendition {rendition_id} reopened as draft")


@renditions_group.command('delete')
@click.argument('rendition_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def delete_rendition(rendition_id, actor_name):
    """Delete a draft rendition; its transfer returns to received."""
    transfer_id = rendition_service.delete_rendition(rendition_id, _actor(actor_name))
    click.echo(f"PASS Rendition {rendition_id} deleted; transfer {transfer_id} is received again")


@renditions_group.command('show')
@click.argument('rendition_id', type=int)
@with_appcontext
@_handle_errors
def show_rendition(rendition_id):
    """Show a rendition with its expenses as JSON."""
    click.echo(json.dumps(rendition_service.get_rendition_detail(rendition_id), indent=2, ensure_ascii=False))


# =============================================================================
# SALES / GOALS / BONUSES
# =============================================================================

@click.group('sales')
def sales_group():
    """Sales recording and totals."""


@sales_group.command('record')
@click.option('--unit-id', type=int, required=True)
@click.option('--amount', required=True)
@click.option('--date', 'sale_date', default=None, help='YYYY-MM-DD (default: today)')
@click.option('--cash', default=None)
@click.option('--card', default=None)
@click.option('--transfer', 'transfer_amount', default=None)
@click.option('--description', default=None)
@actor_option
@with_appcontext
@_handle_errors
def record_sale(unit_id, amount, sale_date, cash, card, transfer_amount, description, actor_name):
    """Record a sale."""
    sale = sales_service.record_sale(
        unit_id,
        amount,
        _actor(actor_name),
        sale_date=sale_date,
        cash_amount=cash,
        card_amount=card,
        transfer_amount=transfer_amount,
        description=description,
    )
    click.echo(f"PASS Recorded sale {sale.id}: {sale.amount} on {sale.sale_date.isoformat()}")


@sales_group.command('total')
@click.option('--unit-id', type=int, required=True)
@click.option('--month', default=None, help='YYYY-MM (default: current month)')
@with_appcontext
@_handle_errors
def sales_total(unit_id, month):
    """Show the sales total of a unit for a month."""
    month = month or current_month_key()
    sales = repository.load_sales(business_unit_id=unit_id, month_key=month)
    totals = sales_service.payment_method_totals(sales)
    click.echo(f"Unit {unit_id} {month}: {totals['total']} in {totals['count']} sales")
    click.echo(f"  cash {totals['cash']}  card {totals['card']}  transfer {totals['transfer']}")


@click.group('goals')
def goals_group():
    """Monthly sales goals."""


@goals_group.command('set')
@click.option('--unit-id', type=int, required=True)
@click.option('--month', required=True, help='YYYY-MM')
@click.option('--target', required=True)
@click.option('--pct', default=None, help='Bonus percentage (0, 50]')
@actor_option
@with_appcontext
@_handle_errors
def set_goal(unit_id, month, target, pct, actor_name):
    """Create or update a unit's goal for a month."""
    goal = bonus_service.set_goal(unit_id, month, target, _actor(actor_name), bonus_percentage=pct)
    click.echo(f"PASS Goal {goal.id}: unit {goal.business_unit_id} {goal.month_year} target {goal.target_amount} at {goal.bonus_percentage}%")


@goals_group.command('list')
@click.option('--month', default=None)
@click.option('--unit-id', type=int, default=None)
@with_appcontext
@_handle_errors
def list_goals(month, unit_id):
    """List goals."""
    goals = repository.load_goals(month_key=month, business_unit_id=unit_id)
    if not goals:
        click.echo("No goals found.")
        return
    click.echo(f"{'ID':<5} {'Unit':<6} {'Month':<8} {'Target':>14} {'Pct':>6}")
    for g in goals:
        click.echo(f"{g.id:<5} {g.business_unit_id:<6} {g.month_year:<8} {g.target_amount!s:>14} {g.bonus_percentage!s:>6}")


@click.group('bonuses')
def bonuses_group():
    """Bonus calculation and payout."""


@bonuses_group.command('calculate')
@click.option('--unit-id', type=int, required=True)
@click.option('--month', default=None, help='YYYY-MM (default: current month)')
@actor_option
@with_appcontext
@_handle_errors
def calculate_bonus(unit_id, month, actor_name):
    """Calculate the bonus of a unit from its goal and sales."""
    bonus = bonus_service.calculate_bonus(unit_id, month or current_month_key(), _actor(actor_name))
    click.echo(
        f"PASS Bonus {bonus.id}: {bonus.percentage_achieved}% of goal, amount {bonus.amount} ({bonus.status})"
    )


@bonuses_group.command('approve')
@click.argument('bonus_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def approve_bonus(bonus_id, actor_name):
    """Approve a pending bonus."""
    bonus = bonus_service.approve_bonus(bonus_id, _actor(actor_name))
    click.echo(f"PASS Bonus {bonus.id} approved")


@bonuses_group.command('pay')
@click.argument('bonus_id', type=int)
@actor_option
@with_appcontext
@_handle_errors
def pay_bonus(bonus_id, actor_name):
    """Mark an approved bonus as paid."""
    bonus = bonus_service.mark_bonus_paid(bonus_id, _actor(actor_name))
    click.echo(f"PASS Bonus {bonus.id} paid")


@bonuses_group.command('list')
@click.option('--month', default=None)
@click.option('--status', type=click.Choice(bonus_service.BONUS_STATUSES), default=None)
@with_appcontext
@_handle_errors
def list_bonuses(month, status):
    """List bonuses."""
    bonuses = bonus_service.list_bonuses(month_key=month, status=status)
    if not bonuses:
        click.echo("No bonuses found.")
        return
    click.echo(f"{'ID':<5} {'Unit':<6} {'Month':<8} {'Goal':>12} {'Actual':>12} {'%':>5} {'Amount':>10} {'Status'}")
    for b in bonuses:
        click.echo(
            f"{b.id:<5} {b.business_unit_id:<6} {b.month:<8} {b.goal_amount!s:>12} {b.actual_amount!s:>12} "
            f"{b.percentage_achieved:>5} {b.amount!s:>10} {b.status}"
        )


# =============================================================================
# REPORTS / ALERTS
# =============================================================================

@click.group('reports')
def reports_group():
    """Exports and summaries."""


def _emit(text, output):
    if output:
        output.write(text)
        click.echo(f"PASS Written to {output.name}")
    else:
        click.echo(text, nl=False)


@reports_group.command('renditions-csv')
@click.option('--status', default=None)
@click.option('--unit-id', type=int, default=None)
@click.option('--output', type=click.File('w', encoding='utf-8'), default=None)
@with_appcontext
@_handle_errors
def renditions_csv(status, unit_id, output):
    """Export renditions as CSV."""
    _emit(reporting_service.export_renditions_csv(status=status, business_unit_id=unit_id), output)


@reports_group.command('bonuses-csv')
@click.option('--month', default=None)
@click.option('--status', default=None)
@click.option('--output', type=click.File('w', encoding='utf-8'), default=None)
@with_appcontext
@_handle_errors
def bonuses_csv(month, status, output):
    """Export bonuses as CSV."""
    _emit(reporting_service.export_bonuses_csv(month_key=month, status=status), output)


@reports_group.command('bonus-summary')
@click.option('--month', default=None)
@with_appcontext
@_handle_errors
def bonus_summary(month):
    """Bonus counts and amounts per status."""
    summary = reporting_service.bonus_summary(month_key=month)
    click.echo(f"Bonuses: {summary['count']}  total {summary['total_amount']}")
    for status, count in summary["by_status"].items():
        click.echo(f"  {status:<10} {count:>4}  {summary[status + '_amount']}")


@reports_group.command('transfer-summary')
@click.option('--unit-id', type=int, default=None)
@with_appcontext
@_handle_errors
def transfer_summary(unit_id):
    """Transfer counts and amounts per status."""
    summary = reporting_service.transfer_summary(business_unit_id=unit_id)
    click.echo(f"Transfers: {summary['count']}  total {summary['total_amount']}")
    for status, bucket in summary["by_status"].items():
        click.echo(f"  {status:<18} {bucket['count']:>4}  {bucket['amount']}")


@reports_group.command('goals')
@click.option('--month', default=None, help='YYYY-MM (default: current month)')
@with_appcontext
@_handle_errors
def goals_report(month):
    """Progress of every goal in a month."""
    dashboard = reporting_service.goal_dashboard(month or current_month_key())
    click.echo(
        f"{dashboard['month']}: {dashboard['achieved_count']}/{dashboard['goals_count']} goals achieved, "
        f"estimated bonus {dashboard['estimated_bonus_total']}"
    )
    for card in dashboard["goals"]:
        click.echo(
            f"  unit {card['business_unit_id']:<4} {card['actual_amount']!s:>14} / {card['target_amount']!s:<14} "
            f"{card['percentage_achieved']:>4}%  {card['status']}"
        )


@click.group('alerts')
def alerts_group():
    """Alert inbox."""


@alerts_group.command('list')
@click.option('--unit-id', type=int, default=None)
@click.option('--unread', is_flag=True, help='Only unread alerts')
@click.option('--limit', type=int, default=50)
@with_appcontext
def list_alerts(unit_id, unread, limit):
    """List alerts, newest first."""
    alerts = alert_service.list_alerts(business_unit_id=unit_id, unread_only=unread, limit=limit)
    if not alerts:
        click.echo("No alerts found.")
        return
    for a in alerts:
        marker = " " if a.is_read else "*"
        click.echo(f"{marker} {a.id:<5} [{a.type:<7}] {a.title}: {a.message}")


@alerts_group.command('read')
@click.argument('alert_id', type=int)
@with_appcontext
@_handle_errors
def read_alert(alert_id):
    """Mark an alert as read."""
    alert_service.mark_alert_read(alert_id)
    click.echo(f"PASS Alert {alert_id} marked as read")


@alerts_group.command('read-all')
@click.option('--unit-id', type=int, default=None)
@with_appcontext
def read_all_alerts(unit_id):
    """Mark every unread alert as read."""
    updated = alert_service.mark_all_read(unit_id)
    click.echo(f"PASS {updated} alerts marked as read")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(units_group)
    app.cli.add_command(users_group)
    app.cli.add_command(transfers_group)
    app.cli.add_command(renditions_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(goals_group)
    app.cli.add_command(bonuses_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(alerts_group)
