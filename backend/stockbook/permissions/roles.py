# Overview: Closed role set and the static role -> permission table.

"""
Role Hierarchy (highest to lowest):
- OWNER:             Full access to all features and settings
- STORE_MANAGER:     Everything except user management & system settings
- CASHIER:           Sales & customer payments only
- INVENTORY_MANAGER: Stock/items/purchases management
- ACCOUNTANT:        Financial reports, payments & balances (read-heavy)
- STAFF:             Basic day-to-day operations

The table is checked when this module is imported: a Role member without an
entry, an unknown permission code, or an OWNER set that is not a superset of
every other role's set fails the import.
"""

from __future__ import annotations

import enum

from .definitions import PERMISSION_DEFINITIONS


class Role(str, enum.Enum):
    OWNER = "OWNER"
    STORE_MANAGER = "STORE_MANAGER"
    CASHIER = "CASHIER"
    INVENTORY_MANAGER = "INVENTORY_MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    STAFF = "STAFF"

    @classmethod
    def parse(cls, value) -> "Role | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


# Decided by role identity, not by the table below
OWNER_ONLY_ACTIONS = frozenset({"void_sales", "void_purchases", "view_audit_logs"})


ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.OWNER: frozenset({
        # User & Tenant Management
        "manage_users",
        "create_users",
        "delete_users",
        "update_user_roles",
        "manage_settings",
        "manage_tenant",
        "view_audit_logs",
        # Financial
        "view_all_reports",
        "view_profit_margins",
        "delete_transactions",
        "void_sales",
        "void_purchases",
        "record_payments",
        "adjust_balances",
        # Inventory
        "create_items",
        "update_items",
        "delete_items",
        "adjust_stock",
        "manage_manufacturers",
        # Customers & Suppliers
        "create_customers",
        "update_customers",
        "delete_customers",
        "create_suppliers",
        "update_suppliers",
        "delete_suppliers",
        # Sales & Purchases
        "create_sale",
        "create_purchase",
        "process_returns",
        # Expenses
        "create_expenses",
        "view_expenses",
        "delete_expenses",
        # Till
        "manage_till",
        # Quotations
        "create_quotation",
        "view_quotations",
        "delete_quotation",
        # Purchase Orders
        "create_purchase_order",
        "view_purchase_orders",
        "delete_purchase_order",
        # View
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),

    Role.STORE_MANAGER: frozenset({
        # Listed for display; OWNER_ONLY_ACTIONS still deny these
        "view_audit_logs",
        "void_sales",
        "view_all_reports",
        "view_profit_margins",
        "void_purchases",
        "record_payments",
        "adjust_balances",
        "create_items",
        "update_items",
        "delete_items",
        "adjust_stock",
        "manage_manufacturers",
        "create_customers",
        "update_customers",
        "delete_customers",
        "create_suppliers",
        "update_suppliers",
        "delete_suppliers",
        "create_sale",
        "create_purchase",
        "process_returns",
        "create_expenses",
        "view_expenses",
        "delete_expenses",
        "manage_till",
        "create_quotation",
        "view_quotations",
        "delete_quotation",
        "create_purchase_order",
        "view_purchase_orders",
        "delete_purchase_order",
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),

    Role.CASHIER: frozenset({
        "create_sale",
        "record_payments",
        "manage_till",
        "create_quotation",
        "view_quotations",
        "create_customers",
        "update_customers",
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),

    Role.INVENTORY_MANAGER: frozenset({
        "create_items",
        "update_items",
        "adjust_stock",
        "manage_manufacturers",
        "create_purchase",
        "create_suppliers",
        "update_suppliers",
        "create_purchase_order",
        "view_purchase_orders",
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),

    Role.ACCOUNTANT: frozenset({
        "view_audit_logs",
        "view_all_reports",
        "view_profit_margins",
        "record_payments",
        "adjust_balances",
        "view_expenses",
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),

    Role.STAFF: frozenset({
        "create_sale",
        "create_purchase",
        "record_payments",
        "update_items",
        "create_customers",
        "update_customers",
        "create_suppliers",
        "update_suppliers",
        "view_basic_reports",
        "view_items",
        "view_customers",
        "view_suppliers",
    }),
}


def _check_role_table() -> None:
    missing = [role.value for role in Role if role not in ROLE_PERMISSIONS]
    if missing:
        raise RuntimeError(f"Roles without a permission set: {', '.join(missing)}")

    known = {perm[0] for perm in PERMISSION_DEFINITIONS}
    for role, codes in ROLE_PERMISSIONS.items():
        unknown = codes - known
        if unknown:
            raise RuntimeError(f"{role.value} lists unknown permissions: {', '.join(sorted(unknown))}")

    owner = ROLE_PERMISSIONS[Role.OWNER]
    for role, codes in ROLE_PERMISSIONS.items():
        if not codes <= owner:
            extra = ", ".join(sorted(codes - owner))
            raise RuntimeError(f"{role.value} grants permissions OWNER lacks: {extra}")


_check_role_table()


def get_permissions_for_role(role: Role) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


ALL_ROLES = tuple(Role)
