"""Product and package type models."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from brewhouse.database import Base
from brewhouse.utils.number_format import format_money


class Product(Base):
    """Product (a beer or spirit, independent of how it is packaged)."""

    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    abbreviation = Column(String(20), nullable=True)
    enabled = Column(Boolean, nullable=False, default=True, server_default='1')
    product_class = Column('class', String(50), nullable=True)
    type = Column(String(50), nullable=True)
    style = Column(String(100), nullable=True)
    abv = Column(Numeric(5, 2), nullable=True)
    ibu = Column(Integer, nullable=True)

    # Relationships
    package_types = relationship(
        'PackageType', back_populates='product', cascade='all, delete-orphan',
        order_by='PackageType.id'
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'abbreviation': self.abbreviation,
            'enabled': bool(self.enabled),
            'class': self.product_class,
            'type': self.type,
            'style': self.style,
            'abv': float(self.abv) if self.abv is not None else None,
            'ibu': self.ibu,
            'packageTypes': [p.to_dict() for p in self.package_types],
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"


class PackageType(Base):
    """Priced package of a product, e.g. "1/2 BBL Keg" or "750ml Bottle"."""

    __tablename__ = 'product_package_types'
    __table_args__ = (
        UniqueConstraint('product_id', 'type', name='uq_package_type_product_type'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    type = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_keg_deposit_item = Column(Boolean, nullable=False, default=False, server_default='0')

    # Relationships
    product = relationship('Product', back_populates='package_types')

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'type': self.type,
            'price': format_money(self.price),
            'isKegDepositItem': bool(self.is_keg_deposit_item),
        }

    def __repr__(self):
        return f"<PackageType(id={self.id}, product_id={self.product_id}, type='{self.type}')>"
