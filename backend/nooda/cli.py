# Overview: Flask CLI command groups for bootstrap, stock operations, and reporting.

# backend/nooda/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--demo]
#   Create all tables (idempotent); --demo also seeds the demo catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed
#   Idempotently create the demo components, products and recipes.
#
# Stock:
# - python -m flask stock list [--critical]
#   Components and products with stock status.
# - python -m flask stock adjust 3 add 25 --user-id 7 --username ayu
#   Manual correction of one component's stock.
#
# Ledger:
# - python -m flask produce 1 10
#   Production run: 10 units of product 1.
# - python -m flask sell --item 1:2 --item 3:1 [--preview]
#   Sale of 2x product 1 and 1x product 3.
#
# Reporting:
# - python -m flask activity list --limit 20
# - python -m flask digest show [--date 2026-10-19] [--tz Asia/Jakarta]

import json
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import adjustment_service, ledger_service, reporting_service
from .services.activity_service import list_recent_activity
from .services.catalog_service import seed_demo_catalog
from .services.errors import LedgerError
from .time_utils import parse_iso_date, to_utc_z
from .validation import Actor, SaleItem, ValidationError


def _actor(user_id, username):
    if not user_id and not username:
        return None
    if not user_id or not username:
        raise click.UsageError("--user-id and --username must be given together")
    return Actor(user_id=str(user_id), username=username)


def _fail(exc: LedgerError):
    click.echo(f"FAIL {exc.message}", err=True)
    raise click.exceptions.Exit(1)


def _echo_lines(title: str, lines):
    click.echo(title)
    for line in lines:
        click.echo(f"  {line}")


actor_options = [
    click.option('--user-id', default=None, help='Actor user id recorded in the activity log'),
    click.option('--username', default=None, help='Actor username recorded in the activity log'),
]


def with_actor_options(f):
    for option in reversed(actor_options):
        f = option(f)
    return f


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--demo', is_flag=True, help='Also seed the demo catalog')
@with_appcontext
def init_system(demo):
    """Create all tables (idempotent) and optionally seed demo data."""
    click.echo("START Initializing inventory database...")
    db.create_all()
    click.echo("PASS Tables ready")

    if demo:
        created = seed_demo_catalog()
        click.echo(
            f"PASS Demo catalog seeded ({created['components']} components, "
            f"{created['products']} products created)"
        )


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

    click.echo("PASS Database reset complete. Run 'python -m flask catalog seed' for demo data.")


@click.group('catalog')
def catalog_group():
    """Catalog reference data commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Create the demo components, products and recipes (existing rows keep their stock)."""
    created = seed_demo_catalog()
    click.echo(
        f"PASS Seeded demo catalog: {created['components']} components, "
        f"{created['products']} products created"
    )


@click.group('stock')
def stock_group():
    """Stock inspection and manual adjustment."""


@stock_group.command('list')
@click.option('--critical', is_flag=True, help='Only rows in warning or danger status')
@with_appcontext
def list_stock(critical):
    """List components and products with stock status."""
    if critical:
        rows = reporting_service.list_critical_stock()
        if not rows:
            click.echo("No critical stock.")
            return
    else:
        overview = reporting_service.stock_overview()
        rows = overview["components"] + overview["products"]
        if not rows:
            click.echo("No stock rows found.")
            return

    click.echo("\n" + "="*80)
    click.echo(f"{'Type':<10} {'ID':<5} {'Name':<30} {'Stock':>8}  {'Status'}")
    click.echo("="*80)
    for row in rows:
        click.echo(
            f"{row['entity_type']:<10} {row['id']:<5} {row['name']:<30} "
            f"{row['stock']:>8}  {row['stock_status']}"
        )
    click.echo("="*80 + "\n")


@stock_group.command('adjust')
@click.argument('component_id', type=int)
@click.argument('direction', type=click.Choice(['add', 'subtract'], case_sensitive=False))
@click.argument('amount', type=int)
@with_actor_options
@with_appcontext
def adjust_stock_cli(component_id, direction, amount, user_id, username):
    """Add to or subtract from one component's stock."""
    actor = _actor(user_id, username)
    try:
        result = adjustment_service.adjust_stock(component_id, direction, amount, actor=actor)
    except LedgerError as e:
        _fail(e)

    click.echo(f"PASS {result.description}")


@click.command('produce')
@click.argument('product_id', type=int)
@click.argument('quantity', type=int)
@click.option('--preview', is_flag=True, help='Show the summaries without applying')
@with_actor_options
@with_appcontext
def produce_cli(product_id, quantity, preview, user_id, username):
    """Run production of QUANTITY units of PRODUCT_ID."""
    actor = _actor(user_id, username)
    try:
        if preview:
            result = ledger_service.preview_produce(product_id, quantity)
        else:
            result = ledger_service.produce(product_id, quantity, actor=actor)
    except LedgerError as e:
        _fail(e)

    click.echo("PREVIEW" if preview else "PASS Production recorded")
    _echo_lines("Production:", result.production_summary)
    _echo_lines("Impact:", result.impact_summary)


def _parse_item(raw: str) -> SaleItem:
    product_id, sep, quantity = raw.partition(":")
    if not sep:
        raise ValidationError(f"Item must look like PRODUCT_ID:QUANTITY, got '{raw}'")
    try:
        return SaleItem(product_id=int(product_id), quantity=int(quantity))
    except ValueError:
        raise ValidationError(f"Item must look like PRODUCT_ID:QUANTITY, got '{raw}'")


@click.command('sell')
@click.option('--item', 'raw_items', multiple=True, required=True, help='PRODUCT_ID:QUANTITY (repeatable)')
@click.option('--preview', is_flag=True, help='Show the summaries without applying')
@with_actor_options
@with_appcontext
def sell_cli(raw_items, preview, user_id, username):
    """Record a sale of one or more products."""
    actor = _actor(user_id, username)
    try:
        items = [_parse_item(raw) for raw in raw_items]
        if preview:
            result = ledger_service.preview_sell(items)
        else:
            result = ledger_service.sell(items, actor=actor)
    except LedgerError as e:
        _fail(e)

    click.echo("PREVIEW" if preview else "PASS Sale recorded")
    _echo_lines("Sold:", result.sale_summary)
    _echo_lines("Impact:", result.impact_summary)


@click.group('activity')
def activity_group():
    """Activity log commands."""


@activity_group.command('list')
@click.option('--limit', type=int, default=None, help='Number of entries (newest first)')
@with_appcontext
def list_activity_cli(limit):
    entries = list_recent_activity(limit)
    if not entries:
        click.echo("No activity recorded.")
        return

    for entry in entries:
        who = entry.username or "system"
        click.echo(f"{to_utc_z(entry.created_at)}  {entry.action_type:<17} {who:<15} {entry.description}")


@click.group('digest')
def digest_group():
    """Daily digest data."""


@digest_group.command('show')
@click.option('--date', 'day_raw', default=None, help='YYYY-MM-DD (default: today in the digest timezone)')
@click.option('--tz', 'tz_name', default=None, help='IANA timezone (default: DIGEST_TIMEZONE)')
@click.option('--json', 'as_json', is_flag=True, help='Print the raw digest as JSON')
@with_appcontext
def show_digest(day_raw, tz_name, as_json):
    """Sales, production and critical stock for one day."""
    try:
        day = parse_iso_date(day_raw)
    except ValueError:
        click.echo("FAIL --date must be YYYY-MM-DD", err=True)
        raise click.exceptions.Exit(1)

    tz_name = tz_name or current_app.config.get("DIGEST_TIMEZONE", "UTC")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        click.echo(f"FAIL --tz must be an IANA timezone (got '{tz_name}')", err=True)
        raise click.exceptions.Exit(1)

    digest = reporting_service.build_daily_digest(day, tz_name)
    if as_json:
        click.echo(json.dumps(digest, indent=2))
        return

    click.echo(f"Digest for {digest['date']} ({digest['timezone']})")
    if digest["warnings"]["no_sales"]:
        click.echo("WARN No sales recorded today")
    _echo_lines(f"Sales ({digest['total_units_sold']} units):", digest["sales"])
    _echo_lines(f"Production ({digest['total_units_produced']} units):", digest["production"])
    _echo_lines(
        "Critical stock:",
        [f"{c['name']}: {c['stock']} ({c['stock_status']})" for c in digest["critical_stock"]],
    )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(stock_group)
    app.cli.add_command(produce_cli)
    app.cli.add_command(sell_cli)
    app.cli.add_command(activity_group)
    app.cli.add_command(digest_group)
