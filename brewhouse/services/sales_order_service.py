"""
Sales order service with transactional logic.
Handles order creation, full-replacement updates, approval into an
invoice (keg allocation included) and cancellation.
"""
import logging
from decimal import Decimal
from typing import Dict, Any, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import SalesOrder, SalesOrderItem, SalesOrderStatus, Invoice, InvoiceStatus
from brewhouse.exceptions import (
    BrewhouseError, ConfigMissingError, DatabaseError, NotFoundError, ValidationError, ErrorKind
)
from brewhouse.services import inventory_service, keg_service
from brewhouse.services.customer_service import get_enabled_customer
from brewhouse.services.invoice_service import calculate_totals, build_invoice_items
from brewhouse.services.order_line_service import validate_line_items
from brewhouse.services.settings_service import get_keg_deposit_price, get_keg_deposit_price_display
from brewhouse.utils.number_format import parse_money
from brewhouse.utils.pagination import paginate, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)


def create_sales_order(session, payload: dict) -> Dict[str, Any]:
    """
    Create a Draft sales order with priced items.

    Prices always come from the catalog (package type, then Finished Goods
    inventory); hasKegDeposit defaults to the flag of the same source.

    Args:
        session: SQLAlchemy session
        payload: Dictionary with:
            - customerId: int (enabled customer)
            - poNumber: str | None
            - items: list of {itemName, quantity, unit, hasKegDeposit?, kegCodes?}

    Returns:
        Serialized order with items and keg_deposit_price

    Raises:
        ValidationError: InvalidCustomer / InvalidItem / InvalidKegCodes / PriceNotFound,
            every failing item reported together; nothing is stored
        DatabaseError: on storage failure
    """
    payload = payload or {}
    try:
        errors = []
        customer = get_enabled_customer(session, payload.get('customerId'))
        if not customer:
            errors.append((ErrorKind.INVALID_CUSTOMER, f'Invalid customer: {payload.get("customerId")}'))

        lines, item_errors = validate_line_items(session, payload.get('items'))
        errors.extend(item_errors)
        if errors:
            raise ValidationError(errors)

        order = SalesOrder(
            customer_id=customer.id,
            po_number=payload.get('poNumber') or None,
            status=SalesOrderStatus.DRAFT,
        )
        order.items = _order_items(lines)
        session.add(order)
        session.commit()

        logger.info(f"Sales order {order.id} created for customer {customer.id} with {len(lines)} items")
        return order_to_dict(session, order)

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Error creating sales order")
        raise DatabaseError(str(e))


def update_sales_order(session, order_id: int, payload: dict, keg_deposit_price=None) -> Dict[str, Any]:
    """
    Replace a Draft order's header and items, optionally changing its status.

    Steps:
    1. Load the order; only Draft orders can change
    2. Validate customer, status and every item
    3. For status Approved, check keg code counts, keg availability and
       ownership, and sellable inventory for the other items
    4. Replace items and header
    5. For status Approved, claim the kegs and create the invoice

    Every validation error is collected and reported together before
    anything is written; any later failure rolls back the whole update.

    Args:
        session: SQLAlchemy session
        order_id: Sales order ID
        payload: {customerId, poNumber?, items[], status?}; the header is
            replaced, so a missing poNumber clears it. An item "price" is
            kept as sent, missing prices are resolved from the catalog
        keg_deposit_price: deposit per keg; defaults to the keg_deposit_price
            setting

    Returns:
        Serialized order, with invoiceId when approved

    Raises:
        NotFoundError: if the order does not exist
        ValidationError: OrderNotEditable, InvalidStatus, the item errors of
            create_sales_order, KegCodeCountMismatch, KegNotAvailable,
            KegProductMismatch, InsufficientInventory
        ConfigMissingError: approving without a keg deposit price
        DatabaseError: on storage failure
    """
    payload = payload or {}
    try:
        order = session.get(SalesOrder, order_id)
        if not order:
            raise NotFoundError(f'Sales order {order_id} not found')
        if not order.is_draft:
            raise ValidationError.single(
                ErrorKind.ORDER_NOT_EDITABLE,
                f'Sales order {order_id} is {order.status.value} and can no longer be edited'
            )

        errors = []
        customer = get_enabled_customer(session, payload.get('customerId'))
        if not customer:
            errors.append((ErrorKind.INVALID_CUSTOMER, f'Invalid customer: {payload.get("customerId")}'))

        status = _parse_order_status(payload.get('status'))
        if status is None:
            errors.append((ErrorKind.INVALID_STATUS, f'Invalid status: {payload.get("status")}'))

        lines, item_errors = validate_line_items(session, payload.get('items'), accept_client_price=True)
        errors.extend(item_errors)

        approving = status == SalesOrderStatus.APPROVED
        if approving:
            errors.extend(_approval_errors(session, lines))

        if errors:
            raise ValidationError(errors)

        if approving:
            deposit_price = _resolve_deposit_price(session, keg_deposit_price)
            totals = calculate_totals(lines, deposit_price)

        order.customer_id = customer.id
        order.po_number = payload.get('poNumber') or None
        order.status = status
        order.items = _order_items(lines)

        if approving:
            keg_codes = [code for line in lines for code in (line.keg_codes or [])]
            keg_service.allocate_kegs(session, keg_codes, order.id, customer.id)

            invoice = Invoice(
                customer_id=customer.id,
                status=InvoiceStatus.DRAFT,
                subtotal=totals.subtotal,
                keg_deposit_total=totals.keg_deposit_total,
                total=totals.total,
                keg_deposit_price=deposit_price,
            )
            invoice.items = build_invoice_items(lines, totals, deposit_price)
            order.invoice = invoice

        session.commit()

        if approving:
            logger.info(f"Sales order {order.id} approved: invoice {order.invoice.id}, total {totals.total}")
        else:
            logger.info(f"Sales order {order.id} updated ({status.value})")
        return order_to_dict(session, order)

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error updating sales order {order_id}")
        raise DatabaseError(str(e))


def list_sales_orders(session, page=1, limit=DEFAULT_PAGE_SIZE, max_limit=MAX_PAGE_SIZE) -> Dict[str, Any]:
    """Paginated orders ordered by id, Cancelled ones excluded."""
    query = (session.query(SalesOrder)
             .filter(SalesOrder.status != SalesOrderStatus.CANCELLED)
             .order_by(SalesOrder.id))
    result = paginate(query, page, limit, max_limit)
    deposit_price = get_keg_deposit_price_display(session)
    return {
        'orders': [order_to_dict(session, order, deposit_price) for order in result.items],
        'totalPages': result.total_pages,
    }


def get_sales_order(session, order_id: int) -> Dict[str, Any]:
    order = session.get(SalesOrder, order_id)
    if not order:
        raise NotFoundError(f'Sales order {order_id} not found')
    return order_to_dict(session, order)


def order_to_dict(session, order: SalesOrder, keg_deposit_price: Optional[str] = None) -> Dict[str, Any]:
    data = order.to_dict()
    data['items'] = [item.to_dict() for item in order.items]
    data['keg_deposit_price'] = (keg_deposit_price if keg_deposit_price is not None
                                 else get_keg_deposit_price_display(session))
    data['invoiceId'] = order.invoice.id if order.invoice else None
    return data


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _parse_order_status(value) -> Optional[SalesOrderStatus]:
    if value is None:
        return SalesOrderStatus.DRAFT
    return next((s for s in SalesOrderStatus if s.value == value), None)


def _order_items(lines) -> List[SalesOrderItem]:
    return [
        SalesOrderItem(
            item_name=line.item_name,
            quantity=line.quantity,
            unit=line.unit,
            price=line.price,
            has_keg_deposit=line.has_keg_deposit,
            keg_codes=line.keg_codes,
        )
        for line in lines
    ]


def _resolve_deposit_price(session, keg_deposit_price) -> Decimal:
    if keg_deposit_price is None:
        return get_keg_deposit_price(session)
    try:
        return parse_money(keg_deposit_price)
    except ValueError:
        raise ConfigMissingError(f'Keg deposit price is not a valid amount: {keg_deposit_price}')


def _approval_errors(session, lines) -> list:
    """
    Checks that only apply when an order is approved.

    Deposit lines need one keg code per unit. Every keg code must name a
    Filled keg holding the product of its line. Lines without a deposit
    need enough sellable stock; lines for the same item are counted together.
    """
    errors = []
    requested = {}

    for line in lines:
        codes = line.keg_codes or []
        if line.has_keg_deposit and len(codes) != line.quantity:
            errors.append((
                ErrorKind.KEG_CODE_COUNT_MISMATCH,
                f'{line.item_name}: {len(codes)} keg codes for quantity {line.quantity}'
            ))
        if not line.has_keg_deposit:
            requested[line.item_name] = requested.get(line.item_name, 0) + line.quantity

    keg_errors, _ = keg_service.line_keg_errors(session, lines)
    errors.extend(keg_errors)

    for identifier, quantity in requested.items():
        available = inventory_service.available_quantity(session, identifier)
        if available < quantity:
            errors.append((
                ErrorKind.INSUFFICIENT_INVENTORY,
                f'Insufficient inventory for {identifier}: requested {quantity}, available {available}'
            ))

    return errors
