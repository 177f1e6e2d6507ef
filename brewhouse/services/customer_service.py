"""Customer service - the accounts sales orders are placed for."""
import logging
from typing import List, Dict, Any
from sqlalchemy.exc import SQLAlchemyError
from brewhouse.models import Customer
from brewhouse.exceptions import BrewhouseError, DatabaseError, NotFoundError, ValidationError, ErrorKind

logger = logging.getLogger(__name__)

# Optional text fields accepted from payloads, JSON key -> column
OPTIONAL_FIELDS = {
    'address': 'address',
    'phone': 'phone',
    'contactPerson': 'contact_person',
    'licenseNumber': 'license_number',
    'notes': 'notes',
}


def get_enabled_customer(session, customer_id):
    """Return the enabled customer with this id, or None."""
    if customer_id is None or isinstance(customer_id, bool):
        return None
    try:
        customer_id = int(customer_id)
    except (TypeError, ValueError):
        return None
    return session.query(Customer).filter(
        Customer.id == customer_id,
        Customer.enabled == True
    ).first()


def list_customers(session, include_disabled: bool = False) -> List[Dict[str, Any]]:
    query = session.query(Customer)
    if not include_disabled:
        query = query.filter(Customer.enabled == True)
    return [c.to_dict() for c in query.order_by(Customer.name, Customer.id).all()]


def get_customer(session, customer_id: int) -> Customer:
    customer = session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f'Customer {customer_id} not found')
    return customer


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _validate_required(payload: dict, partial: bool = False):
    """Collect errors for name/email; with partial=True only present keys are checked."""
    errors = []
    for key, label in (('name', 'Customer name'), ('email', 'Customer email')):
        if partial and key not in payload:
            continue
        if not _clean(payload.get(key)):
            errors.append((ErrorKind.INVALID_CUSTOMER, f'{label} is required'))
    email = _clean(payload.get('email'))
    if email and '@' not in email:
        errors.append((ErrorKind.INVALID_CUSTOMER, f'Invalid customer email: {email}'))
    if errors:
        raise ValidationError(errors)


def create_customer(session, payload: dict) -> Dict[str, Any]:
    """
    Create a customer.

    Args:
        session: SQLAlchemy session
        payload: name and email (required) plus optional address, phone,
            contactPerson, licenseNumber and notes

    Returns:
        Serialized customer

    Raises:
        ValidationError: if name or email is missing
        DatabaseError: on storage failure
    """
    _validate_required(payload)

    try:
        customer = Customer(
            name=_clean(payload.get('name')),
            email=_clean(payload.get('email')),
            enabled=True,
        )
        for key, column in OPTIONAL_FIELDS.items():
            setattr(customer, column, _clean(payload.get(key)))

        session.add(customer)
        session.commit()
        logger.info(f"Customer created: {customer.id} {customer.name}")
        return customer.to_dict()

    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Error creating customer")
        raise DatabaseError(str(e))


def update_customer(session, customer_id: int, payload: dict) -> Dict[str, Any]:
    """Update the fields present in payload."""
    _validate_required(payload, partial=True)

    try:
        customer = get_customer(session, customer_id)
        for key in ('name', 'email'):
            if key in payload:
                setattr(customer, key, _clean(payload[key]))
        for key, column in OPTIONAL_FIELDS.items():
            if key in payload:
                setattr(customer, column, _clean(payload[key]))
        if 'enabled' in payload:
            customer.enabled = bool(payload['enabled'])

        session.commit()
        logger.info(f"Customer updated: {customer.id}")
        return customer.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error updating customer {customer_id}")
        raise DatabaseError(str(e))


def disable_customer(session, customer_id: int) -> Dict[str, Any]:
    """
    Soft-delete a customer.

    Orders and invoices keep pointing at the row; a disabled customer
    simply cannot be used on new or updated orders.
    """
    try:
        customer = get_customer(session, customer_id)
        customer.enabled = False
        session.commit()
        logger.info(f"Customer disabled: {customer.id}")
        return customer.to_dict()

    except BrewhouseError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error disabling customer {customer_id}")
        raise DatabaseError(str(e))
