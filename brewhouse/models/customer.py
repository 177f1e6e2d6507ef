"""Customer model."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brewhouse.database import Base


class Customer(Base):
    """Customer (bar, restaurant, distributor)."""

    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    contact_person = Column(String(200), nullable=True)
    license_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True, server_default='1')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    sales_orders = relationship('SalesOrder', back_populates='customer')

    def to_dict(self):
        return {
            'customerId': self.id,
            'name': self.name,
            'email': self.email,
            'address': self.address,
            'phone': self.phone,
            'contactPerson': self.contact_person,
            'licenseNumber': self.license_number,
            'notes': self.notes,
            'enabled': bool(self.enabled),
        }

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', enabled={self.enabled})>"
