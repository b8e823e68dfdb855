# Overview: Flask CLI command groups for bootstrap, slot scheduling and stock setup.

# backend/timeseats/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Sales slots:
# - python -m flask slots list [--active]
# - python -m flask slots create --start 2026-05-01T10:00 --end 2026-05-01T10:30 [--active]
#
# Products and stock:
# - python -m flask products create --name "Yakisoba" --price 500
# - python -m flask stock set --product-id 1 --slot-id 1 --quantity 40

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services.factory import build_services
from .time_utils import parse_iso_datetime, to_utc_z


def _services():
    return build_services(db.session, current_app.config)


def _fail(result):
    """Print a domain error and exit non-zero."""
    raise click.ClickException(f"{result.kind.value}: {result.error.message}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401

    click.echo("BUILD  Creating tables...")
    db.create_all()
    click.echo("PASS Database ready.")


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

    click.echo("PASS Database reset complete.")


@click.group('slots')
def slots_group():
    """Sales slot scheduling."""


@slots_group.command('list')
@click.option('--active', 'active_only', is_flag=True, help='Only active slots')
@with_appcontext
def list_slots_cli(active_only):
    """
    List sales slots.

    Example:
        flask slots list
        flask slots list --active
    """
    slots = _services().slots.list_slots(active_only=active_only)

    if not slots:
        click.echo("No sales slots found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Start':<24} {'End':<24} {'Active'}")
    click.echo("="*72)

    for slot in slots:
        active_str = "Yes" if slot.is_active else "No"
        click.echo(f"{slot.id:<5} {to_utc_z(slot.start_time):<24} {to_utc_z(slot.end_time):<24} {active_str}")

    click.echo("="*72 + "\n")


@slots_group.command('create')
@click.option('--start', required=True, help='ISO-8601 start time (UTC if no offset)')
@click.option('--end', required=True, help='ISO-8601 end time (UTC if no offset)')
@click.option('--active', is_flag=True, help='Activate immediately')
@with_appcontext
def create_slot_cli(start, end, active):
    """
    Create a sales slot.

    Example:
        flask slots create --start 2026-05-01T10:00 --end 2026-05-01T10:30 --active
    """
    try:
        start_time = parse_iso_datetime(start)
        end_time = parse_iso_datetime(end)
    except ValueError as e:
        raise click.BadParameter(str(e))
    if start_time is None or end_time is None:
        raise click.BadParameter("start and end are required")

    result = _services().slots.create_slot(start_time, end_time, is_active=active)
    if not result.ok:
        _fail(result)

    slot = result.value
    click.echo(f"PASS Created slot {slot.id}: {to_utc_z(slot.start_time)} - {to_utc_z(slot.end_time)}")


@click.group('products')
def products_group():
    """Product catalog."""


@products_group.command('create')
@click.option('--name', required=True, help='Product name')
@click.option('--price', 'price_cents', required=True, type=click.IntRange(min=0), help='Price in minor units')
@click.option('--description', default=None, help='Optional description')
@with_appcontext
def create_product_cli(name, price_cents, description):
    """
    Create a product.

    Example:
        flask products create --name "Yakisoba" --price 500
    """
    patch = {"name": name.strip(), "price_cents": price_cents}
    if description:
        patch["description"] = description.strip()

    result = _services().products.create_product(patch)
    if not result.ok:
        _fail(result)

    click.echo(f"PASS Created product {result.value.id}: {result.value.name}")


@click.group('stock')
def stock_group():
    """Per-slot stock levels."""


@stock_group.command('set')
@click.option('--product-id', required=True, type=int)
@click.option('--slot-id', required=True, type=int)
@click.option('--quantity', required=True, type=click.IntRange(min=0))
@with_appcontext
def set_stock_cli(product_id, slot_id, quantity):
    """
    Set how many units of a product are on sale in a slot.

    Example:
        flask stock set --product-id 1 --slot-id 1 --quantity 40
    """
    result = _services().products.set_stock(product_id, slot_id, quantity)
    if not result.ok:
        _fail(result)

    row = result.value
    click.echo(
        f"PASS Product {product_id} in slot {slot_id}: "
        f"initial={row.initial_quantity} reserved={row.reserved_quantity} "
        f"sold={row.sold_quantity} available={row.available_quantity}"
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(slots_group)
    app.cli.add_command(products_group)
    app.cli.add_command(stock_group)
