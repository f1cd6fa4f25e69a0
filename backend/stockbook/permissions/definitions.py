# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- USERS & TENANT --

USER_PERMISSIONS = [
    ("manage_users", "Manage Users", "Administer user accounts", PermissionCategory.USERS),
    ("create_users", "Create Users", "Create new user accounts", PermissionCategory.USERS),
    ("delete_users", "Delete Users", "Remove user accounts", PermissionCategory.USERS),
    ("update_user_roles", "Update User Roles", "Change the role assigned to a user", PermissionCategory.USERS),
    ("manage_settings", "Manage Settings", "Edit business settings", PermissionCategory.USERS),
    ("manage_tenant", "Manage Tenant", "Tenant-level administration", PermissionCategory.USERS),
    ("view_audit_logs", "View Audit Logs", "Read the tenant audit log (owner only)", PermissionCategory.USERS),
]


# -- FINANCIAL --

FINANCIAL_PERMISSIONS = [
    (
        "view_all_reports",
        "View All Reports",
        "Access every financial report",
        PermissionCategory.FINANCIAL,
    ),
    (
        "view_profit_margins",
        "View Profit Margins",
        "See cost prices and margins",
        PermissionCategory.FINANCIAL,
    ),
    (
        "delete_transactions",
        "Delete Transactions",
        "Delete committed transactions",
        PermissionCategory.FINANCIAL,
    ),
    (
        "void_sales",
        "Void Sales",
        "Void or edit committed sales, reversing stock and balances (owner only)",
        PermissionCategory.FINANCIAL,
    ),
    (
        "void_purchases",
        "Void Purchases",
        "Void or edit committed purchases, reversing stock and balances",
        PermissionCategory.FINANCIAL,
    ),
    (
        "record_payments",
        "Record Payments",
        "Record customer and supplier payments",
        PermissionCategory.FINANCIAL,
    ),
    (
        "adjust_balances",
        "Adjust Balances",
        "Set absolute customer balances (administrative override)",
        PermissionCategory.FINANCIAL,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    ("create_items", "Create Items", "Add items to the catalogue", PermissionCategory.INVENTORY),
    ("update_items", "Update Items", "Edit items, including quantity overrides", PermissionCategory.INVENTORY),
    ("delete_items", "Delete Items", "Remove items from the catalogue", PermissionCategory.INVENTORY),
    ("adjust_stock", "Adjust Stock", "Record INCREASE/DECREASE stock adjustments", PermissionCategory.INVENTORY),
    ("manage_manufacturers", "Manage Manufacturers", "Maintain manufacturer records", PermissionCategory.INVENTORY),
]


# -- CUSTOMERS & SUPPLIERS --

PARTY_PERMISSIONS = [
    ("create_customers", "Create Customers", "Add customers", PermissionCategory.PARTIES),
    ("update_customers", "Update Customers", "Edit customer details", PermissionCategory.PARTIES),
    ("delete_customers", "Delete Customers", "Remove customers", PermissionCategory.PARTIES),
    ("create_suppliers", "Create Suppliers", "Add suppliers", PermissionCategory.PARTIES),
    ("update_suppliers", "Update Suppliers", "Edit supplier details", PermissionCategory.PARTIES),
    ("delete_suppliers", "Delete Suppliers", "Remove suppliers", PermissionCategory.PARTIES),
]


# -- SALES & PURCHASES --

SALES_PERMISSIONS = [
    (
        "create_sale",
        "Create Sale",
        "Create sales and convert quotations into sales",
        PermissionCategory.SALES,
    ),
    (
        "create_purchase",
        "Create Purchase",
        "Create purchases and receive purchase orders",
        PermissionCategory.SALES,
    ),
    (
        "process_returns",
        "Process Returns",
        "Process customer and supplier returns",
        PermissionCategory.SALES,
    ),
]


# -- EXPENSES --

EXPENSE_PERMISSIONS = [
    ("create_expenses", "Create Expenses", "Record expenses", PermissionCategory.EXPENSES),
    ("view_expenses", "View Expenses", "View expenses", PermissionCategory.EXPENSES),
    ("delete_expenses", "Delete Expenses", "Remove expenses", PermissionCategory.EXPENSES),
]


# -- TILL --

TILL_PERMISSIONS = [
    ("manage_till", "Manage Till", "Open, count and close the till", PermissionCategory.TILL),
]


# -- QUOTATIONS --

QUOTATION_PERMISSIONS = [
    (
        "create_quotation",
        "Create Quotation",
        "Create quotations and update their status",
        PermissionCategory.QUOTATIONS,
    ),
    (
        "view_quotations",
        "View Quotations",
        "View quotations",
        PermissionCategory.QUOTATIONS,
    ),
    (
        "delete_quotation",
        "Delete Quotation",
        "Delete unconverted quotations",
        PermissionCategory.QUOTATIONS,
    ),
]


# -- PURCHASE ORDERS --

PURCHASE_ORDER_PERMISSIONS = [
    (
        "create_purchase_order",
        "Create Purchase Order",
        "Create purchase orders and update their status",
        PermissionCategory.PURCHASE_ORDERS,
    ),
    (
        "view_purchase_orders",
        "View Purchase Orders",
        "View purchase orders",
        PermissionCategory.PURCHASE_ORDERS,
    ),
    (
        "delete_purchase_order",
        "Delete Purchase Order",
        "Delete DRAFT purchase orders",
        PermissionCategory.PURCHASE_ORDERS,
    ),
]


# -- VIEW --

VIEW_PERMISSIONS = [
    ("view_basic_reports", "View Basic Reports", "Daily summaries", PermissionCategory.VIEW),
    ("view_items", "View Items", "Browse items and stock levels", PermissionCategory.VIEW),
    ("view_customers", "View Customers", "Browse customers and balances", PermissionCategory.VIEW),
    ("view_suppliers", "View Suppliers", "Browse suppliers and balances", PermissionCategory.VIEW),
]


# Combined list of all permissions (preserves original ordering)
PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + FINANCIAL_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + PARTY_PERMISSIONS
    + SALES_PERMISSIONS
    + EXPENSE_PERMISSIONS
    + TILL_PERMISSIONS
    + QUOTATION_PERMISSIONS
    + PURCHASE_ORDER_PERMISSIONS
    + VIEW_PERMISSIONS
)
