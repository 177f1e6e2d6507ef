"""Invoice model."""
from sqlalchemy import Column, Integer, Numeric, Date, Enum, ForeignKey
from sqlalchemy.orm import relationship
from brewhouse.database import Base
from brewhouse.utils.number_format import format_money
from datetime import date
import enum


class InvoiceStatus(enum.Enum):
    """Invoice status enum."""
    DRAFT = "Draft"
    POSTED = "Posted"
    CANCELLED = "Cancelled"


class Invoice(Base):
    """Customer invoice, generated when a sales order is approved."""

    __tablename__ = 'invoices'

    id = Column(Integer, primary_key=True, autoincrement=True)
    # A sales order has at most one invoice
    order_id = Column(Integer, ForeignKey('sales_orders.id'), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False)
    status = Column(
        Enum(InvoiceStatus, name='invoice_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=InvoiceStatus.DRAFT
    )
    created_date = Column(Date, nullable=False, default=date.today)
    posted_date = Column(Date, nullable=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    keg_deposit_total = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    # Deposit price in force when the totals were computed
    keg_deposit_price = Column(Numeric(10, 2), nullable=False, default=0)

    # Relationships
    order = relationship('SalesOrder', back_populates='invoice')
    customer = relationship('Customer')
    items = relationship(
        'InvoiceItem', back_populates='invoice', cascade='all, delete-orphan',
        order_by='InvoiceItem.id'
    )

    def to_dict(self):
        return {
            'invoiceId': self.id,
            'orderId': self.order_id,
            'customerId': self.customer_id,
            'customerName': self.customer.name if self.customer else None,
            'customerEmail': self.customer.email if self.customer else None,
            'status': self.status.value,
            'createdDate': self.created_date.isoformat() if self.created_date else None,
            'postedDate': self.posted_date.isoformat() if self.posted_date else None,
            'subtotal': format_money(self.subtotal),
            'keg_deposit_total': format_money(self.keg_deposit_total),
            'total': format_money(self.total),
            'keg_deposit_price': format_money(self.keg_deposit_price),
        }

    def __repr__(self):
        return f"<Invoice(id={self.id}, order_id={self.order_id}, total={self.total}, status={self.status.value})>"
