from .tenancy import Tenant
from .inventory import Item, StockAdjustment, QuantityOverride
from .customers import Customer, CustomerPayment, BalanceAdjustment
from .suppliers import Supplier, SupplierPayment
from .sales import Sale, SaleItem
from .purchases import Purchase, PurchaseItem
from .documents import Quotation, QuotationItem, PurchaseOrder, PurchaseOrderItem
from .auth import SessionToken
from .security import SecurityEvent
from .audit import AuditLog

__all__ = [
    'Tenant',
    'Item', 'StockAdjustment', 'QuantityOverride',
    'Customer', 'CustomerPayment', 'BalanceAdjustment',
    'Supplier', 'SupplierPayment',
    'Sale', 'SaleItem',
    'Purchase', 'PurchaseItem',
    'Quotation', 'QuotationItem', 'PurchaseOrder', 'PurchaseOrderItem',
    'SessionToken', 'SecurityEvent', 'AuditLog',
]
