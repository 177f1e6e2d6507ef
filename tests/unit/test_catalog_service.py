"""
Unit tests for item name parsing and price resolution.
"""

import pytest
from decimal import Decimal
from brewhouse.exceptions import ValidationError, NotFoundError, ErrorKind
from brewhouse.models import InventoryRecord, InventoryType
from brewhouse.services.catalog_service import (
    parse_item_name, keg_product_name, resolve_price, create_product, upsert_package_type, list_products
)


class TestParseItemName:
    """Tests for parse_item_name."""

    @pytest.mark.parametrize('item_name,expected', [
        ('IPA 1/2 BBL Keg', ('IPA', '1/2 BBL Keg')),
        ('IPA 1/ 2 Keg', ('IPA', '1/2 Keg')),
        ('Hazy Double IPA 1/6 BBL keg', ('Hazy Double IPA', '1/6 BBL keg')),
        ('IPA 12oz Aluminum Can', ('IPA', '12oz Aluminum Can')),
        ('Whiskey 750ml Bottle', ('', 'Whiskey 750ml Bottle')),
        ('Bourbon 750ml Case', ('Bourbon', '750ml Case')),
        ('Gin  1L   Case', ('Gin', '1L Case')),
        ('', ('', '')),
    ])
    def test_positional_split(self, item_name, expected):
        assert parse_item_name(item_name) == expected

    def test_slash_spacing_collapsed(self):
        _, package_type = parse_item_name('Porter 1 /2 BBL Keg')
        assert package_type == '/2 BBL Keg'
        _, package_type = parse_item_name('Porter Big 1/ 2 Keg')
        assert package_type == '1/2 Keg'

    def test_keg_product_name(self):
        assert keg_product_name('IPA 1/2 BBL Keg') == 'IPA'
        assert keg_product_name('Hazy Double IPA 1/6 BBL Keg') == 'Hazy Double IPA'
        assert keg_product_name('Keg') == ''


class TestResolvePrice:
    """Tests for resolve_price."""

    def test_package_type_price(self, session, ipa):
        quote = resolve_price(session, 'IPA 1/2 BBL Keg')
        assert quote.price == Decimal('150.00')
        assert quote.is_keg_deposit_item is True
        assert quote.source == 'package_type'

    def test_inventory_fallback(self, session, inventory):
        quote = resolve_price(session, 'Whiskey 750ml Bottle')
        assert quote.price == Decimal('35.00')
        assert quote.is_keg_deposit_item is False
        assert quote.source == 'inventory'

    def test_inventory_fallback_ignores_marketing_rows(self, session):
        session.add(InventoryRecord(identifier='Swag 1L Growler', type=InventoryType.MARKETING,
                                    quantity=Decimal('3'), price=Decimal('9.00'), total_cost=Decimal('0')))
        session.commit()
        assert resolve_price(session, 'Swag 1L Growler') is None

    def test_not_found(self, session, ipa):
        assert resolve_price(session, 'IPA 1/6 BBL Keg') is None
        assert resolve_price(session, 'Mystery 1L Jug') is None


class TestProductCatalog:
    """Tests for product and package type maintenance."""

    def test_create_product_with_package_types(self, session):
        product = create_product(session, {
            'name': 'Pilsner',
            'abv': '4.9',
            'packageTypes': [
                {'type': '1/2 BBL Keg', 'price': '140', 'isKegDepositItem': True},
                {'type': '12oz Aluminum Can', 'price': 2.25},
            ],
        })
        assert product['name'] == 'Pilsner'
        assert [p['type'] for p in product['packageTypes']] == ['1/2 BBL Keg', '12oz Aluminum Can']
        assert product['packageTypes'][0]['price'] == '140.00'
        assert resolve_price(session, 'Pilsner 12oz Aluminum Can').price == Decimal('2.25')

    def test_create_product_collects_errors(self, session, ipa):
        with pytest.raises(ValidationError) as exc:
            create_product(session, {'name': '', 'packageTypes': [{'type': 'Keg', 'price': '-1'}]})
        assert len(exc.value.errors) == 2
        assert exc.value.kind == ErrorKind.INVALID_ITEM

        with pytest.raises(ValidationError):
            create_product(session, {'name': 'IPA'})

    def test_upsert_package_type_reprices(self, session, ipa):
        upsert_package_type(session, ipa.id, {'type': '1/2 BBL Keg', 'price': '155.00', 'isKegDepositItem': True})
        upsert_package_type(session, ipa.id, {'type': '1/6 BBL Keg', 'price': '70'})

        assert resolve_price(session, 'IPA 1/2 BBL Keg').price == Decimal('155.00')
        assert resolve_price(session, 'IPA 1/6 BBL Keg').price == Decimal('70.00')

    def test_upsert_package_type_missing_product(self, session):
        with pytest.raises(NotFoundError):
            upsert_package_type(session, 999, {'type': '1/2 BBL Keg', 'price': '1'})

    def test_list_products_hides_disabled(self, session, ipa, stout):
        stout.enabled = False
        session.commit()
        assert [p['name'] for p in list_products(session)] == ['IPA']
        assert [p['name'] for p in list_products(session, include_disabled=True)] == ['IPA', 'Stout']
