# Overview: Lookups over the permission table (codes, categories, role grants).

from .definitions import PERMISSION_DEFINITIONS
from .roles import ALL_ROLES, OWNER_ONLY_ACTIONS, ROLE_PERMISSIONS

_BY_CODE = {perm[0]: perm for perm in PERMISSION_DEFINITIONS}


def get_all_permission_codes():
    """Every known permission code, in definition order."""
    return list(_BY_CODE)


def validate_permission_code(code):
    return code in _BY_CODE


def get_permissions_by_category(category):
    """Definitions in a category; the category name is matched case-insensitively."""
    wanted = (category or "").strip().upper()
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == wanted]


def get_permission_definition(code):
    """
    Full definition for a permission code, with the roles that hold it.

    Owner-only actions list OWNER alone whatever the role table says.
    Unknown codes return None.
    """
    perm = _BY_CODE.get(code)
    if perm is None:
        return None
    if code in OWNER_ONLY_ACTIONS:
        roles = ["OWNER"]
    else:
        roles = [role.value for role in ALL_ROLES if code in ROLE_PERMISSIONS[role]]
    return {
        "code": perm[0],
        "name": perm[1],
        "description": perm[2],
        "category": perm[3],
        "owner_only": code in OWNER_ONLY_ACTIONS,
        "roles": roles,
    }
