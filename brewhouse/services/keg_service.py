"""
Keg registry service.

Kegs move Empty -> Filled -> Allocated (claimed by an approved order)
-> Shipped (invoice posted). An Allocated keg belongs to the order of its
latest Allocated transaction until it ships or is released back to
Filled. Every move is logged as a KegTransaction. The Allocated, Shipped
and Released moves are conditional updates so two orders can never claim
the same keg.
"""
import logging
from datetime import date
from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import Keg, KegTransaction, KegStatus, KEG_CODE_PATTERN, Product, Customer
from brewhouse.exceptions import BrewhouseError, DatabaseError, NotFoundError, ValidationError, ErrorKind
from brewhouse.services.catalog_service import keg_product_name, find_product_by_name

logger = logging.getLogger(__name__)

ACTION_CREATED = 'Created'
ACTION_ALLOCATED = KegStatus.ALLOCATED.value
ACTION_SHIPPED = KegStatus.SHIPPED.value
ACTION_RELEASED = 'Released'


def keg_code_errors(keg_codes, label: str) -> List[str]:
    """
    Format check for a kegCodes value.

    Returns a list of messages (empty when valid). None means "no keg
    codes" and is always valid.
    """
    if keg_codes is None:
        return []
    if not isinstance(keg_codes, list):
        return [f'{label}: kegCodes must be a list']
    bad = [c for c in keg_codes if not isinstance(c, str) or not KEG_CODE_PATTERN.match(c)]
    if bad:
        return [f'{label}: invalid keg codes {", ".join(str(c) for c in bad)}']
    return []


def parse_keg_status(value) -> Optional[KegStatus]:
    try:
        return KegStatus(value)
    except ValueError:
        return None


def find_kegs(session, codes: Iterable[str]) -> Dict[str, Keg]:
    """Load the kegs for the given codes, keyed by code (missing codes are absent)."""
    codes = list(set(codes))
    if not codes:
        return {}
    return {k.code: k for k in session.query(Keg).filter(Keg.code.in_(codes)).all()}


def allocation_order_id(session, keg: Keg) -> Optional[int]:
    """Order holding an Allocated keg (its latest Allocated transaction), or None."""
    if keg.status != KegStatus.ALLOCATED:
        return None
    entry = session.query(KegTransaction).filter(
        KegTransaction.keg_id == keg.id,
        KegTransaction.action == ACTION_ALLOCATED
    ).order_by(KegTransaction.id.desc()).first()
    return entry.order_id if entry else None


def line_keg_errors(session, lines, order_id: Optional[int] = None):
    """
    Check the keg codes of order lines against the registry.

    A code is usable when its keg is Filled, or already Allocated to
    order_id, and holds the product named by the line. A code may appear
    only once across all lines.

    Args:
        session: SQLAlchemy session
        lines: OrderLine-like objects (item_name, keg_codes)
        order_id: order whose own allocations are accepted

    Returns:
        (errors, to_claim): errors as (ErrorKind, message), to_claim the
        Filled codes still to be allocated
    """
    errors = []
    to_claim = []
    kegs = find_kegs(session, [code for line in lines for code in (line.keg_codes or [])])
    seen_codes = set()

    for line in lines:
        if not line.keg_codes:
            continue
        product_name = keg_product_name(line.item_name)
        product = find_product_by_name(session, product_name)
        for code in line.keg_codes:
            keg = kegs.get(code)
            if code in seen_codes:
                errors.append((ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} is listed more than once'))
            elif keg is None:
                errors.append((ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} not found'))
            elif keg.status != KegStatus.FILLED and (
                    order_id is None or allocation_order_id(session, keg) != order_id):
                errors.append((ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} not available ({keg.status.value})'))
            elif product is None or keg.product_id != product.id:
                errors.append((
                    ErrorKind.KEG_PRODUCT_MISMATCH,
                    f'Keg {code} does not hold {product_name or line.item_name}'
                ))
            elif keg.status == KegStatus.FILLED:
                to_claim.append(code)
            seen_codes.add(code)

    return errors, to_claim


# =====================================================
# REGISTRY
# =====================================================

def list_kegs(session, status: Optional[str] = None, customer_id: Optional[int] = None,
              product_id: Optional[int] = None) -> List[Dict[str, Any]]:
    query = session.query(Keg)
    if status:
        keg_status = parse_keg_status(status)
        if keg_status is None:
            raise ValidationError.single(ErrorKind.INVALID_STATUS, f'Invalid keg status: {status}')
        query = query.filter(Keg.status == keg_status)
    if customer_id is not None:
        query = query.filter(Keg.customer_id == customer_id)
    if product_id is not None:
        query = query.filter(Keg.product_id == product_id)
    return [k.to_dict() for k in query.order_by(Keg.code).all()]


def get_keg_by_code(session, code: str) -> Keg:
    keg = session.query(Keg).filter(Keg.code == code).first()
    if not keg:
        raise NotFoundError(f'Keg {code} not found')
    return keg


def get_keg(session, keg_id: int) -> Keg:
    keg = session.get(Keg, keg_id)
    if not keg:
        raise NotFoundError(f'Keg {keg_id} not found')
    return keg


def _validate_references(session, payload: dict, errors: list):
    """Check productId/customerId, when given, point at existing rows."""
    product_id = payload.get('productId')
    if product_id is not None and not session.get(Product, product_id):
        errors.append((ErrorKind.INVALID_ITEM, f'Product {product_id} not found'))
    customer_id = payload.get('customerId')
    if customer_id is not None and not session.get(Customer, customer_id):
        errors.append((ErrorKind.INVALID_CUSTOMER, f'Customer {customer_id} not found'))


def register_keg(session, payload: dict) -> Dict[str, Any]:
    """
    Register a new keg.

    Args:
        session: SQLAlchemy session
        payload: code (required, unique, [A-Z0-9-]+), status (default Empty),
            productId, customerId, packagingType

    Returns:
        Serialized keg
    """
    code = (payload.get('code') or '').strip() if isinstance(payload.get('code'), str) else payload.get('code')
    errors = []
    if not code:
        errors.append((ErrorKind.INVALID_KEG_CODES, 'Keg code is required'))
    else:
        for message in keg_code_errors([code], 'Keg'):
            errors.append((ErrorKind.INVALID_KEG_CODES, message))

    status = parse_keg_status(payload.get('status') or KegStatus.EMPTY.value)
    if status is None:
        errors.append((ErrorKind.INVALID_STATUS, f'Invalid keg status: {payload.get("status")}'))

    try:
        _validate_references(session, payload, errors)
        if not errors and find_kegs(session, [code]):
            errors.append((ErrorKind.INVALID_KEG_CODES, f'Keg {code} already exists'))
        if errors:
            raise ValidationError(errors)

        keg = Keg(
            code=code,
            status=status,
            product_id=payload.get('productId'),
            customer_id=payload.get('customerId'),
            packaging_type=payload.get('packagingType'),
        )
        session.add(keg)
        session.flush()
        session.add(KegTransaction(
            keg_id=keg.id,
            action=ACTION_CREATED,
            product_id=keg.product_id,
            customer_id=keg.customer_id,
        ))
        session.commit()
        logger.info(f"Keg registered: {keg.code} ({keg.status.value})")
        return keg.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error registering keg {code}")
        raise DatabaseError(str(e))


def update_keg(session, keg_id: int, payload: dict) -> Dict[str, Any]:
    """Change a keg's status and/or contents; a status change is logged."""
    errors = []
    status = None
    if 'status' in payload:
        status = parse_keg_status(payload.get('status'))
        if status is None:
            errors.append((ErrorKind.INVALID_STATUS, f'Invalid keg status: {payload.get("status")}'))

    try:
        keg = get_keg(session, keg_id)
        _validate_references(session, payload, errors)
        if errors:
            raise ValidationError(errors)

        if 'productId' in payload:
            keg.product_id = payload['productId']
        if 'customerId' in payload:
            keg.customer_id = payload['customerId']
        if 'packagingType' in payload:
            keg.packaging_type = payload['packagingType']

        if status is not None and status != keg.status:
            keg.status = status
            keg.last_scanned = date.today()
            session.add(KegTransaction(
                keg_id=keg.id,
                action=status.value,
                product_id=keg.product_id,
                customer_id=keg.customer_id,
                location=payload.get('location'),
            ))

        session.commit()
        logger.info(f"Keg updated: {keg.code} ({keg.status.value})")
        return keg.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error updating keg {keg_id}")
        raise DatabaseError(str(e))


def list_keg_transactions(session, keg_id: int) -> List[Dict[str, Any]]:
    keg = get_keg(session, keg_id)
    return [t.to_dict() for t in keg.transactions]


# =====================================================
# GUARDED TRANSITIONS (no commit, caller owns the transaction)
# =====================================================

def allocate_kegs(session, keg_codes: Iterable[str], order_id: int, customer_id: int) -> int:
    """
    Claim Filled kegs for an approved order.

    Each keg is moved Filled -> Allocated with an UPDATE guarded by
    status = 'Filled'; a keg claimed by someone else since validation
    makes the guard miss.

    Returns:
        Number of kegs allocated

    Raises:
        ValidationError(KegNotAvailable): if any keg could not be claimed
    """
    allocated = 0
    for code in keg_codes:
        result = session.execute(
            update(Keg)
            .where(Keg.code == code, Keg.status == KegStatus.FILLED)
            .values(status=KegStatus.ALLOCATED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Keg {code} was claimed concurrently, aborting allocation")
            raise ValidationError.single(ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} not available')

        keg = session.query(Keg).filter(Keg.code == code).one()
        session.refresh(keg, ['status'])
        session.add(KegTransaction(
            keg_id=keg.id,
            action=ACTION_ALLOCATED,
            product_id=keg.product_id,
            customer_id=customer_id,
            order_id=order_id,
        ))
        allocated += 1

    return allocated


def ship_kegs(session, keg_codes: Iterable[str], invoice_id: int, order_id: int, customer) -> int:
    """
    Mark kegs Shipped to the invoice customer.

    Only kegs Allocated to the invoice's own order can ship.

    Raises:
        ValidationError(KegNotAvailable): if a keg is missing, not Allocated,
            or Allocated to another order
    """
    shipped = 0
    today = date.today()
    for code in keg_codes:
        keg = session.query(Keg).filter(Keg.code == code).first()
        if keg is None or allocation_order_id(session, keg) != order_id:
            raise ValidationError.single(ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} not available for shipping')

        result = session.execute(
            update(Keg)
            .where(Keg.code == code, Keg.status == KegStatus.ALLOCATED)
            .values(status=KegStatus.SHIPPED, customer_id=customer.id, last_scanned=today)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValidationError.single(ErrorKind.KEG_NOT_AVAILABLE, f'Keg {code} not available for shipping')

        session.refresh(keg, ['status', 'customer_id', 'last_scanned'])
        session.add(KegTransaction(
            keg_id=keg.id,
            action=ACTION_SHIPPED,
            product_id=keg.product_id,
            customer_id=customer.id,
            invoice_id=invoice_id,
            location=f'Customer: {customer.name}',
        ))
        shipped += 1

    return shipped


def release_kegs(session, keg_codes: Iterable[str], order_id: int) -> int:
    """
    Return kegs Allocated to an order to Filled.

    Codes that are not Allocated to order_id are left alone.

    Returns:
        Number of kegs released
    """
    released = 0
    for code in keg_codes:
        keg = session.query(Keg).filter(Keg.code == code).first()
        if keg is None or allocation_order_id(session, keg) != order_id:
            continue

        result = session.execute(
            update(Keg)
            .where(Keg.code == code, Keg.status == KegStatus.ALLOCATED)
            .values(status=KegStatus.FILLED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            continue

        session.refresh(keg, ['status'])
        session.add(KegTransaction(
            keg_id=keg.id,
            action=ACTION_RELEASED,
            product_id=keg.product_id,
            order_id=order_id,
        ))
        released += 1
        logger.info(f"Keg {code} released from order {order_id}")

    return released
