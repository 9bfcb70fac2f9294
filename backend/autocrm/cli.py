# Overview: Flask CLI command groups for inspecting the store and the role table.

# backend/autocrm/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# The database is in memory, so every command sees a freshly seeded store
# (unless SEED_FIXTURES=0, in which case it sees an empty one).
#
# Store inspection:
# - python -m flask store stats
#   Record count per collection and the next work order number.
# - python -m flask store low-stock --branch branch-1
#   Parts below their minimum quantity at a branch.
#
# Permission inspection:
# - python -m flask perms list [--role staff]
#   List permissions (optionally only those granted to a role).
# - python -m flask perms check user-3 MANAGE_INVENTORY
#   Check whether a user's role grants a permission.
#
# Reports:
# - python -m flask reports dashboard --branch branch-1
#   Dashboard KPIs for a branch.

import click
from flask.cli import with_appcontext

from . import permissions
from .services import inventory_service, reporting_service
from .store import get_store


@click.group('store')
def store_group():
    """Entity store inspection commands."""


@store_group.command('stats')
@with_appcontext
def store_stats_cli():
    """Show how many records each collection holds."""
    store = get_store()
    sizes = store.collection_sizes()

    click.echo(f"\n{'Collection':<30} {'Records':>8}")
    click.echo("-"*40)
    for name, count in sizes.items():
        click.echo(f"{name:<30} {count:>8}")

    click.echo(f"\n Next work order number: {store.next_work_order_number}\n")


@store_group.command('low-stock')
@click.option('--branch', 'branch_id', required=True, help='Branch id')
@with_appcontext
def low_stock_cli(branch_id):
    """List parts below their minimum quantity at a branch."""
    store = get_store()
    if store.get_branch_by_id(branch_id) is None:
        click.echo(f"FAIL Branch '{branch_id}' not found")
        return

    parts = inventory_service.list_low_stock(store, branch_id)
    if not parts:
        click.echo("OK No low stock items")
        return

    click.echo(f"{'SKU':<16} {'Name':<30} {'Stock':>6} {'Min':>6}")
    click.echo("-"*62)
    for part in parts:
        click.echo(f"{part.sku:<16} {part.name:<30} {part.stock_at(branch_id):>6} {part.min_qty_at(branch_id):>6}")

    click.echo(f"\n Total: {len(parts)} items\n")


@click.group('perms')
def perms_group():
    """Role permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
def list_permissions_cli(role):
    """List all permissions, optionally only those granted to a role."""
    if role:
        if role not in permissions.DEFAULT_ROLE_PERMISSIONS:
            click.echo(f"FAIL Role '{role}' not found")
            return
        codes = permissions.get_role_permissions(role)
        click.echo(f"\nPermissions for role: {role.upper()}\n")
    else:
        codes = permissions.get_all_permission_codes()

    click.echo(f"{'Code':<24} {'Name':<24} {'Category'}")
    click.echo("-"*64)
    for code in codes:
        perm = permissions.get_permission_definition(code)
        click.echo(f"{perm['code']:<24} {perm['name']:<24} {perm['category']}")

    click.echo(f"\n Total: {len(codes)} permissions\n")


@perms_group.command('check')
@click.argument('user_id')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(user_id, permission_code):
    """Check whether a user's role grants a permission."""
    user = get_store().get_user_by_id(user_id)
    if user is None:
        click.echo(f"FAIL User '{user_id}' not found")
        return
    if permissions.get_permission_definition(permission_code) is None:
        click.echo(f"FAIL Unknown permission '{permission_code}'")
        return

    if permissions.role_has_permission(user.role, permission_code):
        click.echo(f"OK {user.name} ({user.role}) HAS {permission_code}")
    else:
        click.echo(f"NO {user.name} ({user.role}) does NOT have {permission_code}")


@click.group('reports')
def reports_group():
    """Reporting commands."""


@reports_group.command('dashboard')
@click.option('--branch', 'branch_id', required=True, help='Branch id')
@with_appcontext
def dashboard_cli(branch_id):
    """Print the dashboard KPIs of a branch."""
    summary = reporting_service.dashboard_summary(get_store(), branch_id)
    click.echo(f"Appointments today: {summary['appointments_today']}")
    click.echo(f"Open work orders:   {summary['open_work_orders']}")
    click.echo(f"Low stock items:    {summary['low_stock_items']}")
    click.echo(f"Revenue:            {summary['revenue']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(reports_group)
