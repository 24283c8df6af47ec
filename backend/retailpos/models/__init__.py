from .tenancy import Shop, new_id
from .customers import Customer
from .inventory import (
    Category, Product, StockMovement,
    STOCK_STATUSES, MOVEMENT_TYPES, MOVEMENT_DIRECTIONS,
)
from .suppliers import Supplier, SupplierProduct
from .sales import (
    Sale, OrderLine, Receipt,
    SALE_STATUSES, DELIVERY_STATUSES, PAYMENT_METHODS, LINE_PAYMENT_STATUSES,
)
from .ledger import OhadaCode, IncomeEntry, ExpenseEntry, OHADA_CODE_TYPES
from .returns import ReturnRequest, RETURN_STATUSES

__all__ = [
    'Shop', 'new_id',
    'Customer',
    'Category', 'Product', 'StockMovement',
    'STOCK_STATUSES', 'MOVEMENT_TYPES', 'MOVEMENT_DIRECTIONS',
    'Supplier', 'SupplierProduct',
    'Sale', 'OrderLine', 'Receipt',
    'SALE_STATUSES', 'DELIVERY_STATUSES', 'PAYMENT_METHODS', 'LINE_PAYMENT_STATUSES',
    'OhadaCode', 'IncomeEntry', 'ExpenseEntry', 'OHADA_CODE_TYPES',
    'ReturnRequest', 'RETURN_STATUSES',
]
