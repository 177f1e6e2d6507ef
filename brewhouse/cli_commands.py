"""
Flask CLI commands.

Commands:
- flask init-db: Create the database tables (--reset drops them first)
- flask seed-demo: Load a demo customer, catalog, kegs and stock
- flask set-setting KEY VALUE: Create or update a system setting
"""

import click
from decimal import Decimal
from flask import current_app
from brewhouse import database
from brewhouse.exceptions import BrewhouseError
from brewhouse.models import (
    Customer, Product, PackageType, Keg, KegStatus, InventoryRecord, InventoryType,
    KEG_DEPOSIT_PRICE_KEY, INVOICE_EMAIL_BODY_KEY
)
from brewhouse.services import settings_service


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--reset', is_flag=True, help='Drop every table before creating them')
    def init_db_command(reset):
        """Create the database tables."""
        if reset:
            click.confirm('This deletes ALL data. Continue?', abort=True)
            database.drop_all()
            click.echo(click.style('Tables dropped.', fg='yellow'))
        database.create_all()
        click.echo(click.style('Database initialized.', fg='green', bold=True))

    @app.cli.command('seed-demo')
    def seed_demo():
        """Load demo data: one customer, IPA/Stout with keg and can pricing, kegs and stock."""
        session = database.get_session()

        if session.query(Product).filter(Product.name == 'IPA').first():
            click.echo(click.style('Demo data already present, nothing to do.', fg='yellow'))
            return

        try:
            customer = Customer(name='Dothan Taproom', email='orders@dothantaproom.example', enabled=True)
            ipa = Product(name='IPA', abbreviation='IPA', product_class='Beer', type='Ale', style='American IPA',
                          abv=Decimal('6.8'), ibu=65)
            ipa.package_types = [
                PackageType(type='1/2 BBL Keg', price=Decimal('150.00'), is_keg_deposit_item=True),
                PackageType(type='1/6 BBL Keg', price=Decimal('65.00'), is_keg_deposit_item=True),
                PackageType(type='12oz Aluminum Can', price=Decimal('2.50'), is_keg_deposit_item=False),
            ]
            stout = Product(name='Stout', abbreviation='STT', product_class='Beer', type='Ale', style='Dry Stout',
                            abv=Decimal('5.2'), ibu=35)
            stout.package_types = [
                PackageType(type='1/2 BBL Keg', price=Decimal('160.00'), is_keg_deposit_item=True),
            ]
            session.add_all([customer, ipa, stout])
            session.flush()

            for code in ('K001', 'K002', 'K003'):
                session.add(Keg(code=code, status=KegStatus.FILLED, product_id=ipa.id, packaging_type='1/2 BBL Keg'))
            session.add(Keg(code='K101', status=KegStatus.FILLED, product_id=stout.id, packaging_type='1/2 BBL Keg'))
            session.add(Keg(code='K900', status=KegStatus.EMPTY))

            session.add(InventoryRecord(
                identifier='IPA 12oz Aluminum Can', type=InventoryType.FINISHED_GOODS,
                quantity=Decimal('480'), unit='cans', price=Decimal('2.50'), total_cost=Decimal('0')
            ))
            session.add(InventoryRecord(
                identifier='Whiskey 750ml Bottle', type=InventoryType.FINISHED_GOODS,
                quantity=Decimal('24'), unit='bottles', price=Decimal('35.00'), proof=Decimal('90'),
                proof_gallons=Decimal('21.60'), total_cost=Decimal('0')
            ))
            session.commit()
        except Exception as e:
            session.rollback()
            click.echo(click.style(f'Error loading demo data: {e}', fg='red'))
            raise SystemExit(1)

        try:
            if settings_service.get_setting(session, KEG_DEPOSIT_PRICE_KEY) is None:
                settings_service.set_setting(
                    session, KEG_DEPOSIT_PRICE_KEY, current_app.config['DEFAULT_KEG_DEPOSIT_PRICE']
                )
            if settings_service.get_setting(session, INVOICE_EMAIL_BODY_KEY) is None:
                settings_service.set_setting(
                    session, INVOICE_EMAIL_BODY_KEY, 'Thank you for your order. Your invoice is below.'
                )
        except BrewhouseError as e:
            click.echo(click.style(f'Error saving settings: {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('Demo data loaded.', fg='green', bold=True))
        click.echo(f'   Customer ID: {customer.id}')
        click.echo('   Kegs: K001-K003 (IPA), K101 (Stout), K900 (empty)')

    @app.cli.command('set-setting')
    @click.argument('key')
    @click.argument('value')
    def set_setting(key, value):
        """Create or update a system setting (e.g. keg_deposit_price 30.00)."""
        try:
            setting = settings_service.set_setting(database.get_session(), key, value)
        except BrewhouseError as e:
            click.echo(click.style(f'Error: {e.message}', fg='red'))
            raise SystemExit(1)
        click.echo(click.style(f"{setting['key']} = {setting['value']}", fg='green'))
