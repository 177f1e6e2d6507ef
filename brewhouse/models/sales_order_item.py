"""Sales Order Item model."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship
from brewhouse.database import Base
from brewhouse.utils.number_format import format_money


class SalesOrderItem(Base):
    """Sales Order Item (line of a sales order)."""

    __tablename__ = 'sales_order_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey('sales_orders.id'), nullable=False, index=True)
    item_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit = Column(String(30), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    has_keg_deposit = Column(Boolean, nullable=False, default=False, server_default='0')
    # One keg code per unit when the line carries a keg deposit
    keg_codes = Column(JSON, nullable=True)

    # Relationships
    order = relationship('SalesOrder', back_populates='items')

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
        return f"<SalesOrderItem(id={self.id}, item_name='{self.item_name}', quantity={self.quantity})>"
