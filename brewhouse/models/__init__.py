"""Models package - exports all SQLAlchemy models."""
# Catalog
from brewhouse.models.customer import Customer
from brewhouse.models.product import Product, PackageType
from brewhouse.models.system_setting import SystemSetting, KEG_DEPOSIT_PRICE_KEY, INVOICE_EMAIL_BODY_KEY

# Stock
from brewhouse.models.inventory import InventoryRecord, InventoryTransaction, InventoryAction, InventoryType
from brewhouse.models.keg import Keg, KegTransaction, KegStatus, KEG_CODE_PATTERN

# Sales
from brewhouse.models.sales_order import SalesOrder, SalesOrderStatus
from brewhouse.models.sales_order_item import SalesOrderItem
from brewhouse.models.invoice import Invoice, InvoiceStatus
from brewhouse.models.invoice_item import InvoiceItem, KEG_DEPOSIT_ITEM_NAME, KEG_DEPOSIT_UNIT

__all__ = [
    # Catalog
    'Customer', 'Product', 'PackageType',
    'SystemSetting', 'KEG_DEPOSIT_PRICE_KEY', 'INVOICE_EMAIL_BODY_KEY',
    # Stock
    'InventoryRecord', 'InventoryTransaction', 'InventoryAction', 'InventoryType',
    'Keg', 'KegTransaction', 'KegStatus', 'KEG_CODE_PATTERN',
    # Sales
    'SalesOrder', 'SalesOrderStatus', 'SalesOrderItem',
    'Invoice', 'InvoiceStatus', 'InvoiceItem', 'KEG_DEPOSIT_ITEM_NAME', 'KEG_DEPOSIT_UNIT',
]
