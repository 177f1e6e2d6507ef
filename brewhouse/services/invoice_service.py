"""
Invoice service with transactional logic.

Invoices are created by sales order approval (see sales_order_service)
and live here afterwards: they can be edited while Draft, posted against
inventory and kegs, and e-mailed to the customer.
"""
import logging
from collections import namedtuple
from datetime import date
from decimal import Decimal
from typing import Dict, Any, List
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import (
    Invoice, InvoiceItem, InvoiceStatus,
    KEG_DEPOSIT_ITEM_NAME, KEG_DEPOSIT_UNIT, INVOICE_EMAIL_BODY_KEY
)
from brewhouse.exceptions import (
    BrewhouseError, DatabaseError, NotFoundError, ValidationError, MailDeliveryError, ErrorKind
)
from brewhouse.services import email_service, inventory_service, keg_service
from brewhouse.services.order_line_service import validate_line_items
from brewhouse.services.settings_service import get_keg_deposit_price, get_setting
from brewhouse.utils.number_format import quantize_money, format_money
from brewhouse.utils.pagination import paginate, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

Totals = namedtuple('Totals', ['subtotal', 'keg_deposit_count', 'keg_deposit_total', 'total'])


def calculate_totals(lines, keg_deposit_price) -> Totals:
    """
    Compute invoice totals for a set of lines.

    Lines are anything with item_name, quantity, price and has_keg_deposit
    (OrderLine, SalesOrderItem, InvoiceItem). A synthetic "Keg Deposit"
    line is skipped; the deposit is derived from the deposit-bearing lines.

        subtotal          = sum(price * quantity)
        keg_deposit_total = sum(quantity * keg_deposit_price) over deposit lines
        total             = subtotal + keg_deposit_total
    """
    keg_deposit_price = Decimal(keg_deposit_price)
    subtotal = Decimal('0.00')
    keg_deposit_count = 0

    for line in lines:
        if line.item_name == KEG_DEPOSIT_ITEM_NAME:
            continue
        subtotal += Decimal(line.price) * line.quantity
        if line.has_keg_deposit:
            keg_deposit_count += line.quantity

    subtotal = quantize_money(subtotal)
    keg_deposit_total = quantize_money(keg_deposit_price * keg_deposit_count)
    return Totals(subtotal, keg_deposit_count, keg_deposit_total, subtotal + keg_deposit_total)


def build_invoice_items(lines, totals: Totals, keg_deposit_price) -> List[InvoiceItem]:
    """One InvoiceItem per line plus the synthetic Keg Deposit line when deposits apply."""
    items = [
        InvoiceItem(
            item_name=line.item_name,
            quantity=line.quantity,
            unit=line.unit,
            price=line.price,
            has_keg_deposit=bool(line.has_keg_deposit),
            keg_codes=list(line.keg_codes) if line.keg_codes is not None else None,
        )
        for line in lines
        if line.item_name != KEG_DEPOSIT_ITEM_NAME
    ]
    if totals.keg_deposit_count > 0:
        items.append(InvoiceItem(
            item_name=KEG_DEPOSIT_ITEM_NAME,
            quantity=totals.keg_deposit_count,
            unit=KEG_DEPOSIT_UNIT,
            price=quantize_money(Decimal(keg_deposit_price)),
            has_keg_deposit=False,
            keg_codes=None,
        ))
    return items


def _apply_totals(invoice: Invoice, totals: Totals, keg_deposit_price):
    invoice.subtotal = totals.subtotal
    invoice.keg_deposit_total = totals.keg_deposit_total
    invoice.total = totals.total
    invoice.keg_deposit_price = quantize_money(Decimal(keg_deposit_price))


def _get_invoice(session, invoice_id: int) -> Invoice:
    invoice = session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError(f'Invoice {invoice_id} not found')
    return invoice


def _get_draft_invoice(session, invoice_id: int) -> Invoice:
    invoice = _get_invoice(session, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT:
        raise NotFoundError(f'Draft invoice {invoice_id} not found')
    return invoice


def invoice_to_dict(invoice: Invoice) -> Dict[str, Any]:
    """
    Serialize an invoice with its items.

    The synthetic deposit row is folded back into the lines it came from:
    each deposit-bearing item carries a kegDeposit sub-charge priced at the
    invoice's snapshot deposit price.
    """
    data = invoice.to_dict()
    deposit_price = Decimal(invoice.keg_deposit_price or 0)
    items = []
    for item in invoice.items:
        if item.is_keg_deposit_line:
            continue
        row = item.to_dict()
        if item.has_keg_deposit:
            row['kegDeposit'] = {
                'quantity': item.quantity,
                'price': format_money(deposit_price),
                'total': format_money(deposit_price * item.quantity),
            }
        items.append(row)
    data['items'] = items
    return data


# =====================================================
# READ
# =====================================================

def list_invoices(session, page=1, limit=DEFAULT_PAGE_SIZE, max_limit=MAX_PAGE_SIZE) -> Dict[str, Any]:
    """Paginated invoices ordered by id, Cancelled ones excluded."""
    query = (session.query(Invoice)
             .filter(Invoice.status != InvoiceStatus.CANCELLED)
             .order_by(Invoice.id))
    result = paginate(query, page, limit, max_limit)
    return {
        'invoices': [invoice.to_dict() for invoice in result.items],
        'totalPages': result.total_pages,
    }


def get_invoice(session, invoice_id: int) -> Dict[str, Any]:
    return invoice_to_dict(_get_invoice(session, invoice_id))


# =====================================================
# WRITE
# =====================================================

def update_invoice(session, invoice_id: int, items) -> Dict[str, Any]:
    """
    Replace the items of a Draft invoice and recompute its totals.

    Keg codes are checked as on approval, except that kegs already
    Allocated to the invoice's order stay usable. Newly listed Filled kegs
    are claimed for the order; kegs dropped from the invoice go back to
    Filled.

    Args:
        session: SQLAlchemy session
        invoice_id: Invoice ID
        items: full replacement list of line items; a client price is kept

    Returns:
        Serialized invoice

    Raises:
        NotFoundError: if the invoice does not exist or is not Draft
        ValidationError: InvalidItem / InvalidKegCodes / KegCodeCountMismatch /
            PriceNotFound / KegNotAvailable / KegProductMismatch
        ConfigMissingError: if the keg deposit price is not configured
    """
    try:
        invoice = _get_draft_invoice(session, invoice_id)

        # The deposit row is derived, never edited directly
        if isinstance(items, list):
            items = [i for i in items
                     if not (isinstance(i, dict) and i.get('itemName') == KEG_DEPOSIT_ITEM_NAME)]
        lines, errors = validate_line_items(session, items, accept_client_price=True)
        for line in lines:
            if line.has_keg_deposit and len(line.keg_codes or []) != line.quantity:
                errors.append((
                    ErrorKind.KEG_CODE_COUNT_MISMATCH,
                    f'{line.item_name}: {len(line.keg_codes or [])} keg codes for quantity {line.quantity}'
                ))
        keg_errors, to_claim = keg_service.line_keg_errors(session, lines, invoice.order_id)
        errors.extend(keg_errors)
        if errors:
            raise ValidationError(errors)

        deposit_price = get_keg_deposit_price(session)

        old_codes = {code for item in invoice.items for code in (item.keg_codes or [])}
        new_codes = {code for line in lines for code in (line.keg_codes or [])}
        keg_service.release_kegs(session, sorted(old_codes - new_codes), invoice.order_id)
        keg_service.allocate_kegs(session, to_claim, invoice.order_id, invoice.customer_id)

        totals = calculate_totals(lines, deposit_price)
        invoice.items = build_invoice_items(lines, totals, deposit_price)
        _apply_totals(invoice, totals, deposit_price)

        session.commit()
        logger.info(f"Invoice {invoice.id} updated: total {totals.total}")
        return invoice_to_dict(invoice)

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error updating invoice {invoice_id}")
        raise DatabaseError(str(e))


def post_invoice(session, invoice_id: int) -> Dict[str, Any]:
    """
    Post a Draft invoice.

    Steps:
    1. Check sellable inventory for every item without a keg deposit
    2. Consume that inventory through the ledger (Sold, "Invoice #id")
    3. Ship the kegs listed on the items (Allocated to the invoice order)
    4. Recompute totals, mark Posted, commit

    All or nothing: any failure rolls back the whole posting.

    Returns:
        Posting summary: invoiceId, status, postedDate, total, kegsShipped,
        itemsConsumed

    Raises:
        NotFoundError: if the invoice does not exist or is not Draft
        ValidationError: InsufficientInventory / KegNotAvailable
    """
    try:
        invoice = _get_draft_invoice(session, invoice_id)
        reference = f'Invoice #{invoice.id}'
        sold_items = [i for i in invoice.items if not i.is_keg_deposit_line and not i.has_keg_deposit]
        keg_items = [i for i in invoice.items if not i.is_keg_deposit_line and i.keg_codes]

        # Validate everything before touching stock
        requested = {}
        for item in sold_items:
            requested[item.item_name] = requested.get(item.item_name, 0) + item.quantity
        errors = []
        for identifier, quantity in requested.items():
            available = inventory_service.available_quantity(session, identifier)
            if available < quantity:
                errors.append((
                    ErrorKind.INSUFFICIENT_INVENTORY,
                    f'Insufficient inventory for {identifier}: requested {quantity}, available {available}'
                ))
        if errors:
            raise ValidationError(errors)

        for identifier, quantity in requested.items():
            inventory_service.consume_stock(session, identifier, quantity, reference)

        kegs_shipped = 0
        for item in keg_items:
            kegs_shipped += keg_service.ship_kegs(
                session, item.keg_codes, invoice.id, invoice.order_id, invoice.customer
            )

        deposit_price = invoice.keg_deposit_price
        totals = calculate_totals(invoice.items, deposit_price)
        _apply_totals(invoice, totals, deposit_price)
        invoice.status = InvoiceStatus.POSTED
        invoice.posted_date = date.today()

        session.commit()
        logger.info(f"Invoice {invoice.id} posted: {len(requested)} items consumed, {kegs_shipped} kegs shipped")
        return {
            'invoiceId': invoice.id,
            'status': invoice.status.value,
            'postedDate': invoice.posted_date.isoformat(),
            'total': format_money(invoice.total),
            'itemsConsumed': len(requested),
            'kegsShipped': kegs_shipped,
        }

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error posting invoice {invoice_id}")
        raise DatabaseError(str(e))


def email_invoice(session, invoice_id: int, business_name: str = 'Brewhouse') -> Dict[str, str]:
    """
    E-mail an invoice summary to the customer.

    Raises:
        NotFoundError: if the invoice does not exist
        MailDeliveryError: if the mail server rejected the message
    """
    invoice = _get_invoice(session, invoice_id)
    customer = invoice.customer
    data = invoice_to_dict(invoice)
    lead = get_setting(session, INVOICE_EMAIL_BODY_KEY, 'Please find your invoice below.')

    sent = email_service.send_invoice_email(
        to_email=customer.email,
        customer_name=customer.name,
        invoice=data,
        lead=lead,
        business_name=business_name,
    )
    if not sent:
        raise MailDeliveryError(f'Invoice {invoice.id} could not be emailed to {customer.email}')

    logger.info(f"Invoice {invoice.id} emailed to {customer.email}")
    return {'message': f'Invoice {invoice.id} sent to {customer.email}'}
