"""Custom exceptions for the brewhouse sales service."""
from collections import namedtuple
import enum


class ErrorKind(str, enum.Enum):
    """Machine-readable error kinds returned in the `code` field."""
    INVALID_CUSTOMER = 'InvalidCustomer'
    INVALID_ITEM = 'InvalidItem'
    INVALID_KEG_CODES = 'InvalidKegCodes'
    INVALID_STATUS = 'InvalidStatus'
    PRICE_NOT_FOUND = 'PriceNotFound'
    ORDER_NOT_EDITABLE = 'OrderNotEditable'
    KEG_CODE_COUNT_MISMATCH = 'KegCodeCountMismatch'
    KEG_NOT_AVAILABLE = 'KegNotAvailable'
    KEG_PRODUCT_MISMATCH = 'KegProductMismatch'
    INSUFFICIENT_INVENTORY = 'InsufficientInventory'
    CONFIG_MISSING = 'ConfigMissing'
    DATABASE_ERROR = 'DatabaseError'
    NOT_FOUND = 'NotFound'
    MAIL_DELIVERY = 'MailDeliveryError'
    INTERNAL = 'InternalError'


ErrorDetail = namedtuple('ErrorDetail', ['kind', 'message'])


class BrewhouseError(Exception):
    """Base exception for all application errors."""
    kind = ErrorKind.INTERNAL

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['code'] = self.kind.value
        return rv


class BusinessLogicError(BrewhouseError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """
    One or more validation failures, reported together.

    The message is every detail joined with '; ' so callers see all
    problems of a request at once.
    """

    def __init__(self, errors):
        self.errors = [ErrorDetail(ErrorKind(kind), message) for kind, message in errors]
        if not self.errors:
            raise ValueError('ValidationError requires at least one error')
        payload = {
            'details': [{'kind': e.kind.value, 'message': e.message} for e in self.errors]
        }
        super().__init__('; '.join(e.message for e in self.errors), payload=payload)

    @classmethod
    def single(cls, kind, message):
        return cls([(kind, message)])

    @property
    def kinds(self):
        return {e.kind for e in self.errors}

    @property
    def kind(self):
        kinds = self.kinds
        if len(kinds) == 1:
            return next(iter(kinds))
        return _MixedKind.VALIDATION


class _MixedKind(str, enum.Enum):
    """Reported when a ValidationError carries more than one kind."""
    VALIDATION = 'ValidationError'


class NotFoundError(BrewhouseError):
    """Exception raised when a resource is not found."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ConfigMissingError(BrewhouseError):
    """Raised when a required system setting is absent or unusable."""
    kind = ErrorKind.CONFIG_MISSING

    def __init__(self, message):
        super().__init__(message, 500)


class DatabaseError(BrewhouseError):
    """Wraps a driver/ORM failure; the raw message is surfaced to the caller."""
    kind = ErrorKind.DATABASE_ERROR

    def __init__(self, message):
        super().__init__(message, 500)


class MailDeliveryError(BrewhouseError):
    """Raised when an outgoing email could not be handed to the SMTP server."""
    kind = ErrorKind.MAIL_DELIVERY

    def __init__(self, message):
        super().__init__(message, 502)
