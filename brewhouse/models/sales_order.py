"""Sales order model."""
from sqlalchemy import Column, Integer, String, Date, Enum, ForeignKey
from sqlalchemy.orm import relationship
from brewhouse.database import Base
from datetime import date
import enum


class SalesOrderStatus(enum.Enum):
    """Sales order status enum."""
    DRAFT = "Draft"
    APPROVED = "Approved"
    CANCELLED = "Cancelled"


class SalesOrder(Base):
    """Sales order (Draft until approved into an invoice)."""

    __tablename__ = 'sales_orders'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False)
    po_number = Column(String(100), nullable=True)
    status = Column(
        Enum(SalesOrderStatus, name='sales_order_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SalesOrderStatus.DRAFT
    )
    created_date = Column(Date, nullable=False, default=date.today)

    # Relationships
    customer = relationship('Customer', back_populates='sales_orders')
    items = relationship(
        'SalesOrderItem', back_populates='order', cascade='all, delete-orphan',
        order_by='SalesOrderItem.id'
    )
    invoice = relationship('Invoice', back_populates='order', uselist=False)

    @property
    def is_draft(self):
        return self.status == SalesOrderStatus.DRAFT

    def to_dict(self):
        return {
            'orderId': self.id,
            'customerId': self.customer_id,
            'customerName': self.customer.name if self.customer else None,
            'poNumber': self.po_number,
            'status': self.status.value,
            'createdDate': self.created_date.isoformat() if self.created_date else None,
        }

    def __repr__(self):
        return f"<SalesOrder(id={self.id}, customer_id={self.customer_id}, status={self.status.value})>"
