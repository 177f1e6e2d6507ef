import pytest
from decimal import Decimal

from brewhouse import create_app, database
from brewhouse.models import (
    Customer, Product, PackageType, Keg, KegStatus, InventoryRecord, InventoryType,
    SystemSetting, KEG_DEPOSIT_PRICE_KEY
)


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema and database session for every test."""
    database.drop_all()
    database.create_all()
    session = database.get_session()
    yield session
    session.rollback()
    database.db_session.remove()


@pytest.fixture(scope='function')
def customer(session):
    """Enabled customer."""
    customer = Customer(name='Dothan Taproom', email='orders@taproom.example', enabled=True)
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def disabled_customer(session):
    customer = Customer(name='Closed Bar', email='closed@bar.example', enabled=False)
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def ipa(session):
    """IPA with a 1/2 BBL keg at 150.00 (deposit item) and a can at 2.50."""
    product = Product(name='IPA', abbreviation='IPA', product_class='Beer', type='Ale')
    product.package_types = [
        PackageType(type='1/2 BBL Keg', price=Decimal('150.00'), is_keg_deposit_item=True),
        PackageType(type='12oz Aluminum Can', price=Decimal('2.50'), is_keg_deposit_item=False),
    ]
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def stout(session):
    product = Product(name='Stout', abbreviation='STT', product_class='Beer', type='Ale')
    product.package_types = [
        PackageType(type='1/2 BBL Keg', price=Decimal('160.00'), is_keg_deposit_item=True),
    ]
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def kegs(session, ipa):
    """K001/K002 Filled with IPA, K003 Empty."""
    kegs = [
        Keg(code='K001', status=KegStatus.FILLED, product_id=ipa.id, packaging_type='1/2 BBL Keg'),
        Keg(code='K002', status=KegStatus.FILLED, product_id=ipa.id, packaging_type='1/2 BBL Keg'),
        Keg(code='K003', status=KegStatus.EMPTY, product_id=ipa.id, packaging_type='1/2 BBL Keg'),
    ]
    session.add_all(kegs)
    session.commit()
    return kegs


@pytest.fixture(scope='function')
def inventory(session):
    """Sellable stock: 10 finished + 5 marketing IPA cans, 24 whiskey bottles."""
    records = [
        InventoryRecord(identifier='IPA 12oz Aluminum Can', type=InventoryType.FINISHED_GOODS,
                        quantity=Decimal('10'), unit='cans', price=Decimal('2.50'), total_cost=Decimal('0')),
        InventoryRecord(identifier='IPA 12oz Aluminum Can', type=InventoryType.MARKETING,
                        quantity=Decimal('5'), unit='cans', total_cost=Decimal('0')),
        InventoryRecord(identifier='Whiskey 750ml Bottle', type=InventoryType.FINISHED_GOODS,
                        quantity=Decimal('24'), unit='bottles', price=Decimal('35.00'),
                        proof=Decimal('90'), proof_gallons=Decimal('21.60'), total_cost=Decimal('0')),
    ]
    session.add_all(records)
    session.commit()
    return records


@pytest.fixture(scope='function')
def deposit_price(session):
    """keg_deposit_price system setting = 30.00."""
    session.add(SystemSetting(key=KEG_DEPOSIT_PRICE_KEY, value='30.00'))
    session.commit()
    return Decimal('30.00')


@pytest.fixture(scope='function')
def keg_order_payload(customer, ipa, kegs):
    """Two IPA half-barrels on kegs K001/K002."""
    return {
        'customerId': customer.id,
        'poNumber': 'PO-1001',
        'items': [{
            'itemName': 'IPA 1/2 BBL Keg',
            'quantity': 2,
            'unit': 'keg',
            'hasKegDeposit': True,
            'kegCodes': ['K001', 'K002'],
        }],
    }
