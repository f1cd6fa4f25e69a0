# Overview: Permission system package.
# Re-exports all public APIs for backwards-compatible imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    USER_PERMISSIONS,
    FINANCIAL_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    PARTY_PERMISSIONS,
    SALES_PERMISSIONS,
    EXPENSE_PERMISSIONS,
    TILL_PERMISSIONS,
    QUOTATION_PERMISSIONS,
    PURCHASE_ORDER_PERMISSIONS,
    VIEW_PERMISSIONS,
)
from .roles import Role, ROLE_PERMISSIONS, OWNER_ONLY_ACTIONS, ALL_ROLES, get_permissions_for_role
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "USER_PERMISSIONS",
    "FINANCIAL_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "PARTY_PERMISSIONS",
    "SALES_PERMISSIONS",
    "EXPENSE_PERMISSIONS",
    "TILL_PERMISSIONS",
    "QUOTATION_PERMISSIONS",
    "PURCHASE_ORDER_PERMISSIONS",
    "VIEW_PERMISSIONS",
    "Role",
    "ROLE_PERMISSIONS",
    "OWNER_ONLY_ACTIONS",
    "ALL_ROLES",
    "get_permissions_for_role",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
]
