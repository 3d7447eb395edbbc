# Overview: Flask CLI command groups for bootstrap, balance repair and report exports.

# backend/wholesale/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent). Use `flask db upgrade` for migrated deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Insert a demo catalog and client if the catalog is empty.
#
# Balances:
# - python -m flask balances resync
#   Recompute every client balance from orders (repairs failed balance writes).
# - python -m flask balances show --client-id 1
#   Print a client's statement with running balance.
#
# Reports:
# - python -m flask reports export SALES_ALL --lang en --out ./exports
#   Write a localized CSV report (CLIENT_LEDGER accepts --client ALL|<id>).

import os

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Client, Order, Product, ProductVariant
from .models.catalog import PRODUCT_TYPE_FABRIC, PRODUCT_TYPE_HARDWARE
from .services.balance_service import LEDGER_ALL_CLIENTS, generate_ledger, resync_all_balances
from .services.export_service import SUPPORTED_LANGS, export_report
from .services.reporting_service import REPORT_TYPES, ReportError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' to add demo data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Insert a small demo catalog and one client.

    Skipped when any product already exists.
    """
    if db.session.query(Product.id).first():
        click.echo("SKIP Catalog is not empty; nothing seeded.")
        return

    denim = Product(
        sku="FAB-DEN-001",
        title="Heavy Denim 12oz",
        description="Indigo cotton denim, twill weave",
        type=PRODUCT_TYPE_FABRIC,
        category="Denim",
        price=5.0,
        unit="m",
        moq=50,
        factory_moq=300,
        available_qty=100,
        gsm=400,
        width_cm=150,
        supplier_name="Guangzhou Textile Co",
        supplier_wechat="gz_textile",
        purchase_price=3.0,
        logistics_cost=0.4,
    )
    linen = Product(
        sku="FAB-LIN-002",
        title="Washed Linen",
        description="Lightweight linen with soft finish",
        type=PRODUCT_TYPE_FABRIC,
        category="Linen",
        price=7.5,
        unit="m",
        moq=20,
        gsm=140,
        width_cm=140,
        supplier_name="Shaoxing Mills",
        purchase_price=4.2,
        logistics_cost=0.5,
        variants=[
            ProductVariant(code="A", name="Natural", color="#E8DCC4", stock=80),
            ProductVariant(code="B", name="Navy", color="#000080", stock=25),
        ],
    )
    zipper = Product(
        sku="HW-ZIP-010",
        title="Metal Zipper 20cm",
        description="Brass teeth, auto-lock slider",
        type=PRODUCT_TYPE_HARDWARE,
        category="Zippers",
        price=0.35,
        unit="pcs",
        moq=100,
        available_qty=5000,
        supplier_name="YKK Dongguan",
        purchase_price=0.18,
        logistics_cost=0.02,
    )
    client = Client(
        telegram_id="100000001",
        username="demo_brand",
        name="Demo Client",
        brand="Demo Brand",
        phone="+996555000000",
        balance=0.0,
    )
    db.session.add_all([denim, linen, zipper, client])
    db.session.commit()
    click.echo("PASS Seeded 3 products and 1 client.")


@click.group('balances')
def balances_group():
    """Client balance maintenance."""


@balances_group.command('resync')
@with_appcontext
def resync_balances_cli():
    """Recompute every client balance from its non-cancelled orders."""
    results = resync_all_balances()
    for client_id, balance in results.items():
        click.echo(f"  client {client_id:<6} balance {balance:>12.2f}")
    click.echo(f"PASS Resynced {len(results)} client balances.")


@balances_group.command('show')
@click.option('--client-id', type=int, required=True)
@with_appcontext
def show_balance_cli(client_id):
    """Print a client's statement."""
    client = db.session.get(Client, client_id)
    if client is None:
        raise click.ClickException(f"Client {client_id} not found")

    orders = db.session.query(Order).filter_by(client_id=client_id).all()
    rows = generate_ledger(orders, [client], client_id)
    if not rows:
        click.echo("No transactions.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'Date':<20} {'Type':<8} {'Description':<32} {'Amount':>12} {'Balance':>12}")
    click.echo("="*90)
    for row in rows:
        date = row["date"].strftime("%Y-%m-%d %H:%M") if row["date"] else "-"
        click.echo(
            f"{date:<20} {row['type']:<8} {row['description'][:32]:<32} "
            f"{row['amount']:>12.2f} {row['running_balance']:>12.2f}"
        )
    click.echo("="*90)
    click.echo(f"Stored balance: {client.balance:.2f}")


@click.group('reports')
def reports_group():
    """Report exports."""


@reports_group.command('export')
@click.argument('report_type', type=click.Choice(REPORT_TYPES, case_sensitive=False))
@click.option('--lang', type=click.Choice(SUPPORTED_LANGS), default=None, help='Header/format language')
@click.option('--client', 'client_target', default=LEDGER_ALL_CLIENTS, show_default=True,
              help='Ledger target for CLIENT_LEDGER (ALL or a client id)')
@click.option('--out', 'out_dir', type=click.Path(file_okay=False), default='.', show_default=True)
@with_appcontext
def export_report_cli(report_type, lang, client_target, out_dir):
    """
    Write a localized CSV report to disk.

    Example:
        flask reports export SALES_ALL --lang en
        flask reports export CLIENT_LEDGER --client 3 --out ./exports
    """
    from flask import current_app

    lang = lang or current_app.config.get("DEFAULT_REPORT_LANG", "ru")
    if client_target != LEDGER_ALL_CLIENTS:
        try:
            client_target = int(client_target)
        except ValueError:
            raise click.BadParameter("must be ALL or a client id", param_hint="--client")

    try:
        filename, document = export_report(report_type.upper(), lang, client_target)
    except ReportError as e:
        raise click.ClickException(str(e))

    if not document:
        click.echo("SKIP No data for this report; nothing written.")
        return

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, filename)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(document)
    click.echo(f"PASS Wrote {path}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(balances_group)
    app.cli.add_command(reports_group)
