# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    USERS = "USERS"
    FINANCIAL = "FINANCIAL"
    INVENTORY = "INVENTORY"
    PARTIES = "PARTIES"
    SALES = "SALES"
    EXPENSES = "EXPENSES"
    TILL = "TILL"
    QUOTATIONS = "QUOTATIONS"
    PURCHASE_ORDERS = "PURCHASE_ORDERS"
    VIEW = "VIEW"
