"""
Inventory ledger service.

Every change to an inventory row's quantity goes through this module and
is recorded as an InventoryTransaction, so the ledger always explains the
stock on hand.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional, List, Dict, Any
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import InventoryRecord, InventoryTransaction, InventoryAction, InventoryType
from brewhouse.exceptions import BrewhouseError, DatabaseError, NotFoundError, ValidationError, ErrorKind
from brewhouse.utils.number_format import parse_decimal, parse_money, quantize_money, format_quantity

logger = logging.getLogger(__name__)

ADJUSTMENT_ACTIONS = (InventoryAction.ADJUSTED, InventoryAction.LOST)


def _proof_gallons(quantity: Decimal, proof) -> Optional[Decimal]:
    """Proof gallons for a quantity of spirits (quantity * proof / 100)."""
    if proof is None:
        return None
    return quantize_money(Decimal(quantity) * Decimal(proof) / Decimal(100))


def _log(session, record: InventoryRecord, action: InventoryAction, delta: Decimal, reference: Optional[str]):
    entry = InventoryTransaction(
        inventory_id=record.id,
        identifier=record.identifier,
        action=action,
        quantity=delta,
        proof_gallons=_proof_gallons(delta, record.proof),
        reference=reference,
    )
    session.add(entry)
    return entry


def available_quantity(session, identifier: str) -> Decimal:
    """Sellable stock for an item: Finished Goods plus Marketing rows."""
    total = session.query(func.coalesce(func.sum(InventoryRecord.quantity), 0)).filter(
        InventoryRecord.identifier == identifier,
        InventoryRecord.type.in_(InventoryType.SELLABLE)
    ).scalar()
    return Decimal(str(total))


def consume_stock(session, identifier: str, quantity, reference: str) -> List[InventoryTransaction]:
    """
    Take sold stock out of inventory (no commit, caller owns the transaction).

    Finished Goods rows are drawn down before Marketing rows; each row
    touched gets a Sold ledger entry with a negative quantity.

    Raises:
        ValidationError(InsufficientInventory): if sellable stock is short
    """
    remaining = Decimal(quantity)
    rows = session.query(InventoryRecord).filter(
        InventoryRecord.identifier == identifier,
        InventoryRecord.type.in_(InventoryType.SELLABLE),
        InventoryRecord.quantity > 0
    ).order_by(InventoryRecord.id).all()
    rows.sort(key=lambda r: InventoryType.SELLABLE.index(r.type))

    if sum((Decimal(r.quantity) for r in rows), Decimal(0)) < remaining:
        raise ValidationError.single(
            ErrorKind.INSUFFICIENT_INVENTORY,
            f'Insufficient inventory for {identifier}'
        )

    entries = []
    for record in rows:
        if remaining <= 0:
            break
        taken = min(Decimal(record.quantity), remaining)
        record.quantity = Decimal(record.quantity) - taken
        if record.proof is not None:
            record.proof_gallons = _proof_gallons(record.quantity, record.proof)
        entries.append(_log(session, record, InventoryAction.SOLD, -taken, reference))
        remaining -= taken
        logger.debug(f"Consumed {taken} of {identifier} from {record.type} ({reference})")

    return entries


# =====================================================
# STOCK ENDPOINTS
# =====================================================

def list_inventory(session, inventory_type: Optional[str] = None) -> List[Dict[str, Any]]:
    query = session.query(InventoryRecord)
    if inventory_type:
        query = query.filter(InventoryRecord.type == inventory_type)
    return [r.to_dict() for r in query.order_by(InventoryRecord.identifier, InventoryRecord.id).all()]


def get_inventory_record(session, inventory_id: int) -> InventoryRecord:
    record = session.get(InventoryRecord, inventory_id)
    if not record:
        raise NotFoundError(f'Inventory record {inventory_id} not found')
    return record


def list_inventory_transactions(session, inventory_id: int) -> List[Dict[str, Any]]:
    record = get_inventory_record(session, inventory_id)
    return [t.to_dict() for t in record.transactions]


def _optional_decimal(payload: dict, key: str, parser, errors: list):
    if payload.get(key) in (None, ''):
        return None
    try:
        return parser(payload.get(key))
    except ValueError as e:
        errors.append((ErrorKind.INVALID_ITEM, f'Invalid {key}: {e}'))
        return None


def receive_stock(session, payload: dict) -> Dict[str, Any]:
    """
    Receive stock into inventory.

    Adds to the row matching (identifier, type, account), creating it when
    needed, and logs a Received ledger entry.

    Args:
        session: SQLAlchemy session
        payload: identifier, quantity (> 0), type (default Finished Goods),
            account, unit, price, cost (per unit), proof, description,
            isKegDepositItem

    Returns:
        Serialized inventory record
    """
    errors = []
    identifier = ' '.join(str(payload.get('identifier') or '').split())
    if not identifier:
        errors.append((ErrorKind.INVALID_ITEM, 'Inventory identifier is required'))

    quantity = _optional_decimal(payload, 'quantity', parse_decimal, errors)
    if quantity is None or quantity <= 0:
        if not any('quantity' in message for _, message in errors):
            errors.append((ErrorKind.INVALID_ITEM, 'Quantity must be greater than 0'))

    price = _optional_decimal(payload, 'price', parse_money, errors)
    cost = _optional_decimal(payload, 'cost', parse_money, errors)
    proof = _optional_decimal(payload, 'proof', parse_decimal, errors)

    if errors:
        raise ValidationError(errors)

    inventory_type = payload.get('type') or InventoryType.FINISHED_GOODS
    account = payload.get('account') or None

    try:
        record = session.query(InventoryRecord).filter(
            InventoryRecord.identifier == identifier,
            InventoryRecord.type == inventory_type,
            InventoryRecord.account.is_(None) if account is None else InventoryRecord.account == account
        ).first()

        if not record:
            record = InventoryRecord(
                identifier=identifier,
                type=inventory_type,
                account=account,
                quantity=Decimal(0),
                total_cost=Decimal(0),
            )
            session.add(record)

        record.quantity = Decimal(record.quantity or 0) + quantity
        record.unit = payload.get('unit') or record.unit
        if price is not None:
            record.price = price
        if proof is not None:
            record.proof = proof
        if record.proof is not None:
            record.proof_gallons = _proof_gallons(record.quantity, record.proof)
        if cost is not None:
            record.total_cost = quantize_money(Decimal(record.total_cost or 0) + quantity * cost)
        if 'isKegDepositItem' in payload:
            record.is_keg_deposit_item = bool(payload['isKegDepositItem'])
        if payload.get('description'):
            record.description = payload['description']
        record.received_date = date.today()

        session.flush()
        _log(session, record, InventoryAction.RECEIVED, quantity, payload.get('reference'))
        session.commit()
        logger.info(f"Received {format_quantity(quantity)} of {identifier} into {inventory_type}")
        return record.to_dict()

    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error receiving stock for {identifier}")
        raise DatabaseError(str(e))


def adjust_stock(session, payload: dict) -> Dict[str, Any]:
    """
    Apply a signed correction to an inventory row.

    payload: inventoryId, quantity (non-zero delta), action ("Adjusted" or
    "Lost", default Adjusted), reference. Stock cannot go below zero.
    """
    errors = []
    quantity = _optional_decimal(payload, 'quantity', parse_decimal, errors)
    if not errors and (quantity is None or quantity == 0):
        errors.append((ErrorKind.INVALID_ITEM, 'Adjustment quantity must be a non-zero number'))

    inventory_id = payload.get('inventoryId')
    if not isinstance(inventory_id, int) or isinstance(inventory_id, bool):
        errors.append((ErrorKind.INVALID_ITEM, 'inventoryId is required'))

    action_name = payload.get('action') or InventoryAction.ADJUSTED.value
    action = next((a for a in ADJUSTMENT_ACTIONS if a.value == action_name), None)
    if action is None:
        errors.append((ErrorKind.INVALID_ITEM, f'Invalid adjustment action: {action_name}'))

    if errors:
        raise ValidationError(errors)

    try:
        record = get_inventory_record(session, inventory_id)
        new_quantity = Decimal(record.quantity) + quantity
        if new_quantity < 0:
            raise ValidationError.single(
                ErrorKind.INSUFFICIENT_INVENTORY,
                f'Insufficient inventory for {record.identifier}'
            )

        record.quantity = new_quantity
        if record.proof is not None:
            record.proof_gallons = _proof_gallons(new_quantity, record.proof)
        _log(session, record, action, quantity, payload.get('reference'))
        session.commit()
        logger.info(f"Inventory {record.identifier} {action.value} by {format_quantity(quantity)}")
        return record.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Error adjusting inventory")
        raise DatabaseError(str(e))
