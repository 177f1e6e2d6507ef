"""
Integration tests for the inventory ledger, keg registry, customers and
the product catalog.
"""

import pytest
from decimal import Decimal
from brewhouse.exceptions import ValidationError, NotFoundError, ErrorKind
from brewhouse.models import InventoryRecord, InventoryTransaction, InventoryAction, InventoryType, Keg, KegStatus
from brewhouse.services import catalog_service, customer_service, inventory_service, keg_service


class TestReceiveStock:
    """Tests for receive_stock."""

    def test_receive_into_existing_row(self, session, inventory):
        record = inventory_service.receive_stock(session, {
            'identifier': 'Whiskey  750ml Bottle',
            'quantity': '6',
            'cost': '10.00',
            'reference': 'PO-77',
        })

        assert record['quantity'] == '30'
        assert record['proofGallons'] == '27'
        assert record['totalCost'] == '60.00'
        assert session.query(InventoryRecord).filter(
            InventoryRecord.identifier == 'Whiskey 750ml Bottle').count() == 1

        entry = session.query(InventoryTransaction).one()
        assert entry.action == InventoryAction.RECEIVED
        assert entry.quantity == Decimal('6')
        assert entry.proof_gallons == Decimal('5.40')
        assert entry.reference == 'PO-77'

    def test_receive_creates_row_per_type(self, session, inventory):
        record = inventory_service.receive_stock(session, {
            'identifier': 'Whiskey 750ml Bottle',
            'type': InventoryType.MARKETING,
            'quantity': 2,
            'unit': 'bottles',
        })
        assert record['type'] == 'Marketing'
        assert record['quantity'] == '2'
        assert inventory_service.available_quantity(session, 'Whiskey 750ml Bottle') == Decimal('26')

    @pytest.mark.parametrize('payload', [
        {'quantity': 5},
        {'identifier': 'Pils 12oz Can', 'quantity': 0},
        {'identifier': 'Pils 12oz Can', 'quantity': 'lots'},
        {'identifier': 'Pils 12oz Can', 'quantity': 5, 'price': '-1'},
    ])
    def test_invalid_payloads(self, session, payload):
        with pytest.raises(ValidationError) as exc:
            inventory_service.receive_stock(session, payload)
        assert exc.value.kind == ErrorKind.INVALID_ITEM
        assert session.query(InventoryRecord).count() == 0


class TestAdjustStock:
    """Tests for adjust_stock and the ledger listing."""

    def _whiskey(self, session):
        return session.query(InventoryRecord).filter(InventoryRecord.identifier == 'Whiskey 750ml Bottle').one()

    def test_loss_is_logged(self, session, inventory):
        record_id = self._whiskey(session).id
        result = inventory_service.adjust_stock(session, {
            'inventoryId': record_id, 'quantity': '-4', 'action': 'Lost', 'reference': 'Breakage'
        })

        assert result['quantity'] == '20'
        assert result['proofGallons'] == '18'
        ledger = inventory_service.list_inventory_transactions(session, record_id)
        assert [(t['action'], t['quantity'], t['reference']) for t in ledger] == [('Lost', '-4', 'Breakage')]

    def test_cannot_go_negative(self, session, inventory):
        record_id = self._whiskey(session).id
        with pytest.raises(ValidationError) as exc:
            inventory_service.adjust_stock(session, {'inventoryId': record_id, 'quantity': -25})
        assert exc.value.kind == ErrorKind.INSUFFICIENT_INVENTORY
        assert self._whiskey(session).quantity == Decimal('24')
        assert session.query(InventoryTransaction).count() == 0

    @pytest.mark.parametrize('payload', [
        {'quantity': 0},
        {'quantity': 3, 'action': 'Sold'},
        {'quantity': 'x'},
    ])
    def test_invalid_adjustments(self, session, inventory, payload):
        payload = dict(payload, inventoryId=self._whiskey(session).id)
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(session, payload)

    def test_missing_inventory_id(self, session):
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(session, {'quantity': 1})
        with pytest.raises(NotFoundError):
            inventory_service.adjust_stock(session, {'inventoryId': 999, 'quantity': 1})

    def test_list_inventory_by_type(self, session, inventory):
        rows = inventory_service.list_inventory(session, InventoryType.FINISHED_GOODS)
        assert [r['identifier'] for r in rows] == ['IPA 12oz Aluminum Can', 'Whiskey 750ml Bottle']
        assert len(inventory_service.list_inventory(session)) == 3


class TestKegRegistry:
    """Tests for keg registration, updates and history."""

    def test_register_logs_creation(self, session, ipa):
        keg = keg_service.register_keg(session, {
            'code': 'K500', 'status': 'Filled', 'productId': ipa.id, 'packagingType': '1/2 BBL Keg'
        })

        assert keg['status'] == 'Filled'
        assert keg['productName'] == 'IPA'
        history = keg_service.list_keg_transactions(session, keg['id'])
        assert [t['action'] for t in history] == ['Created']

    def test_register_defaults_to_empty(self, session):
        assert keg_service.register_keg(session, {'code': 'K501'})['status'] == 'Empty'

    @pytest.mark.parametrize('payload, kind', [
        ({}, ErrorKind.INVALID_KEG_CODES),
        ({'code': 'k-lower'}, ErrorKind.INVALID_KEG_CODES),
        ({'code': 'K001'}, ErrorKind.INVALID_KEG_CODES),
        ({'code': 'K600', 'status': 'Lost'}, ErrorKind.INVALID_STATUS),
    ])
    def test_register_rejects(self, session, kegs, payload, kind):
        with pytest.raises(ValidationError) as exc:
            keg_service.register_keg(session, payload)
        assert exc.value.kind == kind

    def test_register_unknown_product(self, session):
        with pytest.raises(ValidationError) as exc:
            keg_service.register_keg(session, {'code': 'K502', 'productId': 404})
        assert exc.value.kind == ErrorKind.INVALID_ITEM

    def test_status_change_is_logged(self, session, kegs):
        keg_id = session.query(Keg).filter(Keg.code == 'K003').one().id
        keg = keg_service.update_keg(session, keg_id, {'status': 'Filled', 'location': 'Cold room'})

        assert keg['status'] == 'Filled'
        assert keg['lastScanned'] is not None
        history = keg_service.list_keg_transactions(session, keg_id)
        assert [(t['action'], t['location']) for t in history] == [('Filled', 'Cold room')]

    def test_update_without_status_change_not_logged(self, session, kegs):
        keg_id = session.query(Keg).filter(Keg.code == 'K001').one().id
        keg_service.update_keg(session, keg_id, {'status': 'Filled', 'packagingType': '1/6 BBL Keg'})

        assert keg_service.get_keg(session, keg_id).packaging_type == '1/6 BBL Keg'
        assert keg_service.list_keg_transactions(session, keg_id) == []

    def test_list_filters(self, session, kegs, customer):
        assert [k['code'] for k in keg_service.list_kegs(session, status='Filled')] == ['K001', 'K002']
        assert keg_service.list_kegs(session, customer_id=customer.id) == []
        assert len(keg_service.list_kegs(session)) == 3
        with pytest.raises(ValidationError) as exc:
            keg_service.list_kegs(session, status='Lost')
        assert exc.value.kind == ErrorKind.INVALID_STATUS

    def test_lookup_by_code(self, session, kegs):
        assert keg_service.get_keg_by_code(session, 'K002').status == KegStatus.FILLED
        with pytest.raises(NotFoundError):
            keg_service.get_keg_by_code(session, 'K999')


class TestCustomers:
    """Tests for customer CRUD."""

    def test_create_and_update(self, session):
        created = customer_service.create_customer(session, {
            'name': '  Cahaba Club ', 'email': 'buyer@cahaba.example', 'phone': '555-0100'
        })
        assert created['name'] == 'Cahaba Club'
        assert created['enabled'] is True

        updated = customer_service.update_customer(session, created['customerId'], {'contactPerson': 'Dana'})
        assert updated['contactPerson'] == 'Dana'
        assert updated['phone'] == '555-0100'

    @pytest.mark.parametrize('payload', [
        {'email': 'a@b.example'},
        {'name': 'No Mail'},
        {'name': 'Bad Mail', 'email': 'nowhere'},
    ])
    def test_create_rejects(self, session, payload):
        with pytest.raises(ValidationError) as exc:
            customer_service.create_customer(session, payload)
        assert exc.value.kind == ErrorKind.INVALID_CUSTOMER

    def test_disable_hides_customer(self, session, customer):
        customer_id = customer.id
        customer_service.disable_customer(session, customer_id)

        assert customer_service.list_customers(session) == []
        assert len(customer_service.list_customers(session, include_disabled=True)) == 1
        assert customer_service.get_enabled_customer(session, customer_id) is None

    def test_get_enabled_customer_input(self, session, customer):
        assert customer_service.get_enabled_customer(session, str(customer.id)).name == 'Dothan Taproom'
        assert customer_service.get_enabled_customer(session, True) is None
        assert customer_service.get_enabled_customer(session, 'abc') is None

    def test_missing_customer(self, session):
        with pytest.raises(NotFoundError):
            customer_service.update_customer(session, 77, {'name': 'Ghost'})


class TestProducts:
    """Tests for the product catalog."""

    def test_create_product_with_package_types(self, session):
        product = catalog_service.create_product(session, {
            'name': 'Porter',
            'class': 'Beer',
            'abv': '5.6',
            'packageTypes': [
                {'type': '1/2 BBL Keg', 'price': '155', 'isKegDepositItem': True},
                {'type': '16oz Can', 'price': 3},
            ],
        })

        assert product['name'] == 'Porter'
        assert [(p['type'], p['price'], p['isKegDepositItem']) for p in product['packageTypes']] == [
            ('1/2 BBL Keg', '155.00', True), ('16oz Can', '3.00', False)
        ]
        quote = catalog_service.resolve_price(session, 'Porter 1/2 BBL Keg')
        assert quote.price == Decimal('155.00')
        assert quote.is_keg_deposit_item is True

    def test_duplicate_product(self, session, ipa):
        with pytest.raises(ValidationError):
            catalog_service.create_product(session, {'name': 'IPA'})

    def test_invalid_package_types(self, session):
        with pytest.raises(ValidationError) as exc:
            catalog_service.create_product(session, {
                'name': 'Lager',
                'packageTypes': [{'type': '', 'price': 1}, {'type': 'Can', 'price': 'free'}],
            })
        assert len(exc.value.errors) == 2

    def test_upsert_package_type_reprices(self, session, ipa):
        ipa_id = ipa.id
        catalog_service.upsert_package_type(session, ipa_id, {'type': '12oz Aluminum Can', 'price': '2.75'})
        catalog_service.upsert_package_type(session, ipa_id, {'type': '1/6 BBL Keg', 'price': '65',
                                                              'isKegDepositItem': True})

        assert catalog_service.resolve_price(session, 'IPA 12oz Aluminum Can').price == Decimal('2.75')
        assert len(catalog_service.get_product(session, ipa_id).package_types) == 3
