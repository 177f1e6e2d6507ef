"""
Line item validation shared by sales orders and invoices.

A line arrives as JSON ({itemName, quantity, unit, price?, hasKegDeposit?,
kegCodes?}) and leaves as an OrderLine with its price and deposit flag
resolved through the catalog.
"""
import logging
from collections import namedtuple
from brewhouse.exceptions import ErrorKind
from brewhouse.services.catalog_service import resolve_price
from brewhouse.services.keg_service import keg_code_errors
from brewhouse.utils.number_format import parse_money, parse_quantity

logger = logging.getLogger(__name__)

OrderLine = namedtuple(
    'OrderLine',
    ['item_name', 'quantity', 'unit', 'price', 'has_keg_deposit', 'keg_codes']
)


def validate_line_items(session, items, accept_client_price=False):
    """
    Validate and price a list of line items.

    Every problem is collected instead of stopping at the first one so the
    caller can report all of them together.

    Args:
        session: SQLAlchemy session
        items: list of item payloads
        accept_client_price: keep a "price" sent by the client instead of
            resolving it from the catalog

    Returns:
        (lines, errors): lines is a list of OrderLine for the valid items,
        errors a list of (ErrorKind, message)
    """
    if not isinstance(items, list) or not items:
        return [], [(ErrorKind.INVALID_ITEM, 'At least one item is required')]

    lines = []
    errors = []
    for index, item in enumerate(items):
        line, item_errors = _validate_line(session, index, item, accept_client_price)
        errors.extend(item_errors)
        if line:
            lines.append(line)
    return lines, errors


def _validate_line(session, index, item, accept_client_price):
    label = f'Item {index}'
    if not isinstance(item, dict):
        return None, [(ErrorKind.INVALID_ITEM, f'{label}: must be an object')]

    errors = []
    item_name = item.get('itemName')
    item_name = ' '.join(item_name.split()) if isinstance(item_name, str) else ''
    if item_name:
        label = f'{label} ({item_name})'
    else:
        errors.append((ErrorKind.INVALID_ITEM, f'{label}: itemName is required'))

    quantity = parse_quantity(item.get('quantity'))
    if quantity is None or quantity <= 0:
        errors.append((ErrorKind.INVALID_ITEM, f'{label}: quantity must be a whole number greater than 0'))

    unit = item.get('unit')
    unit = unit.strip() if isinstance(unit, str) else ''
    if not unit:
        errors.append((ErrorKind.INVALID_ITEM, f'{label}: unit is required'))

    keg_codes = item.get('kegCodes')
    for message in keg_code_errors(keg_codes, label):
        errors.append((ErrorKind.INVALID_KEG_CODES, message))

    price = None
    if accept_client_price and item.get('price') is not None:
        try:
            price = parse_money(item.get('price'))
        except ValueError as e:
            errors.append((ErrorKind.INVALID_ITEM, f'{label}: {e}'))

    has_keg_deposit = item.get('hasKegDeposit')
    if has_keg_deposit is not None and not isinstance(has_keg_deposit, bool):
        errors.append((ErrorKind.INVALID_ITEM, f'{label}: hasKegDeposit must be true or false'))

    if errors:
        return None, errors

    if price is None or has_keg_deposit is None:
        quote = resolve_price(session, item_name)
        if price is None:
            if quote is None:
                return None, [(ErrorKind.PRICE_NOT_FOUND, f'Price not found for {item_name}')]
            price = quote.price
            logger.debug(f"Resolved price {price} for {item_name} from {quote.source}")
        if has_keg_deposit is None:
            has_keg_deposit = quote.is_keg_deposit_item if quote else False

    return OrderLine(
        item_name=item_name,
        quantity=quantity,
        unit=unit,
        price=price,
        has_keg_deposit=has_keg_deposit,
        keg_codes=list(keg_codes) if keg_codes is not None else None,
    ), []
