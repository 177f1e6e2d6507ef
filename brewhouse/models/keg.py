"""Keg and keg transaction models."""
from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brewhouse.database import Base
import enum
import re

KEG_CODE_PATTERN = re.compile(r'^[A-Z0-9-]+$')


class KegStatus(enum.Enum):
    """Keg status enum."""
    EMPTY = "Empty"
    FILLED = "Filled"
    ALLOCATED = "Allocated"
    SHIPPED = "Shipped"
    RETIRED = "Retired"


class Keg(Base):
    """Returnable keg, tracked by the code printed on it."""

    __tablename__ = 'kegs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    status = Column(
        Enum(KegStatus, name='keg_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=KegStatus.EMPTY
    )
    product_id = Column(Integer, ForeignKey('products.id'), nullable=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=True)
    packaging_type = Column(String(100), nullable=True)
    last_scanned = Column(Date, nullable=True)

    # Relationships
    product = relationship('Product')
    customer = relationship('Customer')
    transactions = relationship(
        'KegTransaction', back_populates='keg', cascade='all, delete-orphan',
        order_by='KegTransaction.id'
    )

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'status': self.status.value,
            'productId': self.product_id,
            'productName': self.product.name if self.product else None,
            'customerId': self.customer_id,
            'customerName': self.customer.name if self.customer else None,
            'packagingType': self.packaging_type,
            'lastScanned': self.last_scanned.isoformat() if self.last_scanned else None,
        }

    def __repr__(self):
        return f"<Keg(id={self.id}, code='{self.code}', status={self.status.value})>"


class KegTransaction(Base):
    """Keg history row (created, filled, allocated, shipped, returned...)."""

    __tablename__ = 'keg_transactions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    keg_id = Column(Integer, ForeignKey('kegs.id'), nullable=False, index=True)
    action = Column(String(30), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=True)
    order_id = Column(Integer, ForeignKey('sales_orders.id'), nullable=True)
    invoice_id = Column(Integer, ForeignKey('invoices.id'), nullable=True)
    location = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    keg = relationship('Keg', back_populates='transactions')

    def to_dict(self):
        return {
            'id': self.id,
            'kegId': self.keg_id,
            'action': self.action,
            'productId': self.product_id,
            'customerId': self.customer_id,
            'orderId': self.order_id,
            'invoiceId': self.invoice_id,
            'location': self.location,
            'date': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<KegTransaction(id={self.id}, keg_id={self.keg_id}, action='{self.action}')>"
