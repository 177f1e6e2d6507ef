"""System setting model."""
from sqlalchemy import Column, Integer, String, Text
from brewhouse.database import Base

KEG_DEPOSIT_PRICE_KEY = 'keg_deposit_price'
INVOICE_EMAIL_BODY_KEY = 'invoice_email_body'


class SystemSetting(Base):
    """Key/value application setting."""

    __tablename__ = 'system_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=False)

    def to_dict(self):
        return {'key': self.key, 'value': self.value}

    def __repr__(self):
        return f"<SystemSetting(key='{self.key}', value='{self.value}')>"
