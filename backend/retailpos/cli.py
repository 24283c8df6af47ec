# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--shop "Main Shop"]
#   Idempotent bootstrap: creates tables, seeds OHADA codes, creates a default shop.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Ledger:
# - python -m flask ledger seed-codes
#   Insert any missing default OHADA codes (701 sales revenue included).
# - python -m flask ledger codes [--type income]
#   List OHADA codes.
#
# Shops / products:
# - python -m flask shops list
# - python -m flask shops create --name "Douala Centre" --code "DLA"
# - python -m flask products create --shop-id <id> --name "Rice 5kg" --price 1000 --cost 600 --quantity 10

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Shop
from .services import inventory_service, ledger_service, shop_service
from .services.exceptions import NotFoundError
from .validation import ConflictError, ValidationError, enforce_rules_product


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--shop', 'shop_name', default='Main Shop', help='Default shop name')
@click.option('--shop-code', default='MAIN', help='Default shop code')
@with_appcontext
def init_system(shop_name, shop_code):
    """
    Initialize the POS backend: schema, OHADA chart, default shop.

    Safe to run repeatedly.
    """
    click.echo("START Initializing system...")

    db.create_all()
    click.echo("PASS Tables created")

    created = ledger_service.seed_default_codes()
    click.echo(f"PASS Seeded {created} OHADA codes")

    shop = db.session.query(Shop).first()
    if not shop:
        shop = Shop(name=shop_name, code=shop_code)
        db.session.add(shop)
        db.session.commit()
        click.echo(f"PASS Created default shop: {shop.name} (ID: {shop.id})")
    else:
        click.echo(f"PASS Using existing shop: {shop.name} (ID: {shop.id})")

    click.echo("DONE System initialized")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('ledger')
def ledger_group():
    """OHADA chart of accounts."""


@ledger_group.command('seed-codes')
@with_appcontext
def seed_codes():
    created = ledger_service.seed_default_codes()
    click.echo(f"PASS Inserted {created} OHADA codes")


@ledger_group.command('codes')
@click.option('--type', 'code_type', type=click.Choice(['income', 'expense']), default=None)
@with_appcontext
def list_codes(code_type):
    for c in ledger_service.list_codes(code_type):
        click.echo(f"{c['code']:>6}  {c['type']:<8} {c['name']}")


@click.group('shops')
def shops_group():
    """Shop management."""


@shops_group.command('list')
@with_appcontext
def list_shops():
    shops = shop_service.list_shops()
    if not shops:
        click.echo("No shops found")
        return
    for s in shops:
        click.echo(f"{s['id']}  {s['name']} ({s['code'] or '-'})")


@shops_group.command('create')
@click.option('--name', required=True)
@click.option('--code', default=None)
@click.option('--currency', default='XAF')
@with_appcontext
def create_shop(name, code, currency):
    try:
        shop = shop_service.create_shop(name, code=code, currency=currency)
    except (ConflictError, ValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created shop {shop['name']} (ID: {shop['id']})")


@click.group('products')
def products_group():
    """Product catalogue helpers."""


@products_group.command('create')
@click.option('--shop-id', required=True)
@click.option('--name', required=True)
@click.option('--price', 'selling_price_cents', type=int, required=True, help='Selling price in cents')
@click.option('--cost', 'purchase_price_cents', type=int, required=True, help='Purchase price in cents')
@click.option('--quantity', type=int, default=0)
@click.option('--reorder-point', type=int, default=None)
@click.option('--sku', default=None)
@with_appcontext
def create_product(shop_id, name, selling_price_cents, purchase_price_cents, quantity, reorder_point, sku):
    patch = {
        "name": name,
        "selling_price_cents": selling_price_cents,
        "purchase_price_cents": purchase_price_cents,
        "quantity": quantity,
    }
    if reorder_point is not None:
        patch["reorder_point"] = reorder_point
    if sku:
        patch["sku"] = sku

    try:
        enforce_rules_product(patch)
        product = inventory_service.create_product(shop_id=shop_id, patch=patch)
    except (ValueError, NotFoundError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created product {product['sku']} {product['name']} qty={product['quantity']} ({product['status']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(products_group)
