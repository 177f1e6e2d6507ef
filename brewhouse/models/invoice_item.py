"""Invoice Item model."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship
from brewhouse.database import Base
from brewhouse.utils.number_format import format_money

KEG_DEPOSIT_ITEM_NAME = 'Keg Deposit'
KEG_DEPOSIT_UNIT = 'Units'


class InvoiceItem(Base):
    """Invoice Item (copy of an order line, or the synthetic keg deposit line)."""

    __tablename__ = 'invoice_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey('invoices.id'), nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit = Column(String(30), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    has_keg_deposit = Column(Boolean, nullable=False, default=False, server_default='0')
    keg_codes = Column(JSON, nullable=True)

    # Relationships
    invoice = relationship('Invoice', back_populates='items')

    @property
    def is_keg_deposit_line(self):
        return self.item_name == KEG_DEPOSIT_ITEM_NAME

    def to_dict(self):
        return {
            'id': self.id,
            'itemName': self.item_name,
            'quantity': self.quantity,
            'unit': self.unit,
            'price': format_money(self.price),
            'hasKegDeposit': bool(self.has_keg_deposit),
            'kegCodes': list(self.keg_codes) if self.keg_codes is not None else None,
        }

    def __repr__(self):
        return f"<InvoiceItem(id={self.id}, item_name='{self.item_name}', quantity={self.quantity})>"
