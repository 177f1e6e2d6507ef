"""
Catalog service - products, package types and line-item price resolution.

Order lines identify what is sold only by a display name such as
"IPA 1/2 BBL Keg": the product name followed by the package type.
"""
import logging
import re
from collections import namedtuple
from typing import Optional, Tuple, List, Dict, Any
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from brewhouse.models import Product, PackageType, InventoryRecord, InventoryType
from brewhouse.exceptions import BrewhouseError, DatabaseError, NotFoundError, ValidationError, ErrorKind
from brewhouse.utils.number_format import parse_money, parse_decimal

logger = logging.getLogger(__name__)

# Final words that mark a three-word package type ("1/2 BBL Keg", "12oz Aluminum Can")
PACKAGE_CONTAINER_WORDS = ('keg', 'bottle', 'can')

PriceQuote = namedtuple('PriceQuote', ['price', 'is_keg_deposit_item', 'source'])


def parse_item_name(item_name: str) -> Tuple[str, str]:
    """
    Split an order item name into (product_name, package_type).

    The last three words are the package type when the final word is a
    container (keg, bottle, can), otherwise the last two. Spacing around
    the first slash of the package type is collapsed ("1 / 2" -> "1/2").

        >>> parse_item_name('IPA 1/2 BBL Keg')
        ('IPA', '1/2 BBL Keg')
        >>> parse_item_name('Bourbon 750ml Case')
        ('Bourbon', '750ml Case')
    """
    parts = (item_name or '').split()
    if not parts:
        return '', ''

    size = 3 if parts[-1].lower() in PACKAGE_CONTAINER_WORDS else 2
    package_type = re.sub(r'\s*/\s*', '/', ' '.join(parts[-size:]), count=1)
    product_name = ' '.join(parts[:-size])
    return product_name, package_type


def keg_product_name(item_name: str) -> str:
    """Product name of a keg line: the item name minus its last three words."""
    return ' '.join((item_name or '').split()[:-3])


def resolve_price(session, item_name: str) -> Optional[PriceQuote]:
    """
    Find the unit price of an order line.

    Looks up the product's package type first and falls back to a
    Finished Goods inventory row whose identifier is the full item name.
    Returns None when neither source prices the item.
    """
    product_name, package_type = parse_item_name(item_name)

    package = (session.query(PackageType)
               .join(Product, PackageType.product_id == Product.id)
               .filter(Product.name == product_name, PackageType.type == package_type)
               .first())
    if package:
        return PriceQuote(package.price, bool(package.is_keg_deposit_item), 'package_type')

    logger.debug(f"No package type for {item_name!r}, falling back to inventory for price")
    inventory = (session.query(InventoryRecord)
                 .filter(InventoryRecord.identifier == item_name,
                         InventoryRecord.type == InventoryType.FINISHED_GOODS,
                         InventoryRecord.price.isnot(None))
                 .order_by(InventoryRecord.id)
                 .first())
    if inventory:
        return PriceQuote(inventory.price, bool(inventory.is_keg_deposit_item), 'inventory')

    return None


def find_product_by_name(session, name: str) -> Optional[Product]:
    return session.query(Product).filter(Product.name == name).first()


# =====================================================
# PRODUCT CATALOG
# =====================================================

def list_products(session, include_disabled: bool = False) -> List[Dict[str, Any]]:
    query = session.query(Product)
    if not include_disabled:
        query = query.filter(Product.enabled == True)
    return [p.to_dict() for p in query.order_by(Product.name).all()]


def get_product(session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError(f'Product {product_id} not found')
    return product


def _parse_package_type(index: int, data: Any) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Validate one package type payload; returns (values, error_message)."""
    if not isinstance(data, dict):
        return None, f'Invalid package type at index {index}'
    type_name = ' '.join(str(data.get('type') or '').split())
    if not type_name:
        return None, f'Invalid package type at index {index}: type is required'
    try:
        price = parse_money(data.get('price'))
    except ValueError as e:
        return None, f'Invalid package type {type_name}: {e}'
    return {
        'type': type_name,
        'price': price,
        'is_keg_deposit_item': bool(data.get('isKegDepositItem', False)),
    }, None


def create_product(session, payload: dict) -> Dict[str, Any]:
    """Create a product together with its priced package types."""
    name = ' '.join(str(payload.get('name') or '').split())
    errors = []
    if not name:
        errors.append((ErrorKind.INVALID_ITEM, 'Product name is required'))

    abv = None
    if payload.get('abv') not in (None, ''):
        try:
            abv = parse_decimal(payload.get('abv'))
        except ValueError as e:
            errors.append((ErrorKind.INVALID_ITEM, f'Invalid abv: {e}'))

    packages = []
    seen_types = set()
    for index, data in enumerate(payload.get('packageTypes') or []):
        values, error = _parse_package_type(index, data)
        if error:
            errors.append((ErrorKind.INVALID_ITEM, error))
        elif values['type'] in seen_types:
            errors.append((ErrorKind.INVALID_ITEM, f'Duplicate package type {values["type"]}'))
        else:
            seen_types.add(values['type'])
            packages.append(values)

    if errors:
        raise ValidationError(errors)

    try:
        if find_product_by_name(session, name):
            raise ValidationError.single(ErrorKind.INVALID_ITEM, f'Product {name} already exists')

        product = Product(
            name=name,
            abbreviation=payload.get('abbreviation') or None,
            product_class=payload.get('class') or None,
            type=payload.get('type') or None,
            style=payload.get('style') or None,
            abv=abv,
            ibu=payload.get('ibu') or None,
            enabled=bool(payload.get('enabled', True)),
        )
        product.package_types = [PackageType(**values) for values in packages]
        session.add(product)
        session.commit()
        logger.info(f"Product created: {product.name} with {len(packages)} package types")
        return product.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except IntegrityError as e:
        session.rollback()
        raise ValidationError.single(ErrorKind.INVALID_ITEM, f'Product {name} could not be saved: {e.orig}')
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Error creating product")
        raise DatabaseError(str(e))


def upsert_package_type(session, product_id: int, payload: dict) -> Dict[str, Any]:
    """Add a package type to a product, or reprice an existing one."""
    values, error = _parse_package_type(0, payload)
    if error:
        raise ValidationError.single(ErrorKind.INVALID_ITEM, error)

    try:
        product = get_product(session, product_id)
        package = next((p for p in product.package_types if p.type == values['type']), None)
        if package:
            package.price = values['price']
            package.is_keg_deposit_item = values['is_keg_deposit_item']
        else:
            product.package_types.append(PackageType(**values))
        session.commit()
        logger.info(f"Package type {values['type']} saved for product {product.name}")
        return product.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Error saving package type")
        raise DatabaseError(str(e))
