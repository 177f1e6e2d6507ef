"""Inventory record and inventory ledger models."""
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, Date, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brewhouse.database import Base
from brewhouse.utils.number_format import format_money, format_quantity
import enum


class InventoryType:
    """Inventory classes used by the sales workflow."""
    FINISHED_GOODS = 'Finished Goods'
    MARKETING = 'Marketing'

    # Stock that may be sold on an order
    SELLABLE = (FINISHED_GOODS, MARKETING)


class InventoryAction(enum.Enum):
    """Inventory ledger action enum."""
    RECEIVED = "Received"
    ADJUSTED = "Adjusted"
    SOLD = "Sold"
    LOST = "Lost"


class InventoryRecord(Base):
    """Stock on hand for one identifier/type/account combination."""

    __tablename__ = 'inventory'
    __table_args__ = (
        UniqueConstraint('identifier', 'type', 'account', name='uq_inventory_identifier_type_account'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(200), nullable=False, index=True)
    account = Column(String(50), nullable=True)
    type = Column(String(50), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False, default=0)
    unit = Column(String(30), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    is_keg_deposit_item = Column(Boolean, nullable=False, default=False, server_default='0')
    proof = Column(Numeric(5, 1), nullable=True)
    proof_gallons = Column(Numeric(12, 2), nullable=True)
    total_cost = Column(Numeric(12, 2), nullable=False, default=0, server_default='0')
    description = Column(Text, nullable=True)
    received_date = Column(Date, nullable=True)

    # Relationships
    transactions = relationship(
        'InventoryTransaction', back_populates='inventory',
        order_by='InventoryTransaction.id'
    )

    def to_dict(self):
        return {
            'id': self.id,
            'identifier': self.identifier,
            'account': self.account,
            'type': self.type,
            'quantity': format_quantity(self.quantity),
            'unit': self.unit,
            'price': format_money(self.price),
            'isKegDepositItem': bool(self.is_keg_deposit_item),
            'proof': format_quantity(self.proof),
            'proofGallons': format_quantity(self.proof_gallons),
            'totalCost': format_money(self.total_cost),
            'description': self.description,
            'receivedDate': self.received_date.isoformat() if self.received_date else None,
        }

    def __repr__(self):
        return f"<InventoryRecord(id={self.id}, identifier='{self.identifier}', type='{self.type}', quantity={self.quantity})>"


class InventoryTransaction(Base):
    """Inventory ledger row (audit trail of every stock change)."""

    __tablename__ = 'inventory_transactions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    inventory_id = Column(Integer, ForeignKey('inventory.id'), nullable=False, index=True)
    identifier = Column(String(200), nullable=False)
    action = Column(Enum(InventoryAction, name='inventory_action'), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    proof_gallons = Column(Numeric(12, 2), nullable=True)
    reference = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    inventory = relationship('InventoryRecord', back_populates='transactions')

    def to_dict(self):
        return {
            'id': self.id,
            'inventoryId': self.inventory_id,
            'identifier': self.identifier,
            'action': self.action.value,
            'quantity': format_quantity(self.quantity),
            'proofGallons': format_quantity(self.proof_gallons),
            'reference': self.reference,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<InventoryTransaction(id={self.id}, action={self.action.value}, quantity={self.quantity})>"
