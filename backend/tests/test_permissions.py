# Overview: Pytest coverage for the role table and the permission gate.

import pytest
from sqlalchemy import select

from stockbook.extensions import db
from stockbook.models import SecurityEvent
from stockbook.permissions import (
    ALL_ROLES,
    OWNER_ONLY_ACTIONS,
    ROLE_PERMISSIONS,
    Role,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    validate_permission_code,
)
from stockbook.results import ErrorKind
from stockbook.services import permission_service


class TestRoleTable:

    def test_every_role_has_an_entry(self):
        assert set(ROLE_PERMISSIONS) == set(ALL_ROLES)

    def test_owner_is_a_superset(self):
        owner = ROLE_PERMISSIONS[Role.OWNER]
        for role, codes in ROLE_PERMISSIONS.items():
            assert codes <= owner, role

    def test_all_codes_are_catalogued(self):
        known = set(get_all_permission_codes())
        for codes in ROLE_PERMISSIONS.values():
            assert codes <= known

    @pytest.mark.parametrize(
        "role,action,allowed",
        [
            (Role.OWNER, "void_sales", True),
            (Role.STORE_MANAGER, "void_sales", False),
            (Role.STORE_MANAGER, "view_audit_logs", False),
            (Role.ACCOUNTANT, "view_audit_logs", False),
            (Role.STORE_MANAGER, "void_purchases", False),
            (Role.OWNER, "void_purchases", True),
            (Role.CASHIER, "create_sale", True),
            (Role.CASHIER, "create_purchase", False),
            (Role.CASHIER, "delete_quotation", False),
            (Role.INVENTORY_MANAGER, "adjust_stock", True),
            (Role.INVENTORY_MANAGER, "create_sale", False),
            (Role.ACCOUNTANT, "adjust_balances", True),
            (Role.ACCOUNTANT, "create_sale", False),
            (Role.STAFF, "create_purchase", True),
            (Role.STAFF, "adjust_stock", False),
        ],
    )
    def test_has_permission(self, role, action, allowed):
        assert permission_service.has_permission(role, action) is allowed

    def test_owner_only_actions_ignore_the_table(self):
        for action in OWNER_ONLY_ACTIONS:
            assert permission_service.roles_allowed(action) == ["OWNER"]

    @pytest.mark.parametrize("raw,expected", [("owner", Role.OWNER), ("Cashier", Role.CASHIER), ("ADMIN", None), (None, None)])
    def test_role_parse(self, raw, expected):
        assert Role.parse(raw) is expected


class TestPermissionGate:

    def test_missing_principal_is_unauthenticated(self, db_session):
        assert permission_service.check(None, "create_sale").kind is ErrorKind.UNAUTHENTICATED

    def test_principal_without_tenant(self, db_session, principal_for):
        principal = principal_for(None, Role.OWNER, principal_id="drifter")

        result = permission_service.check(principal, "create_sale")

        assert result.kind is ErrorKind.NO_TENANT
        event = db.session.execute(select(SecurityEvent)).scalar_one()
        assert event.event_type == "TENANT_CONTEXT_MISSING"
        assert event.principal_id == "drifter"

    def test_denial_is_recorded(self, tenant_a, principal_for):
        cashier = principal_for(tenant_a, Role.CASHIER)

        result = permission_service.check(cashier, "void_sales", resource="/api/sales/1")

        assert result.kind is ErrorKind.FORBIDDEN
        assert result.error.details == {
            "required_permission": "void_sales",
            "role": "CASHIER",
            "allowed_roles": ["OWNER"],
        }
        event = db.session.execute(select(SecurityEvent)).scalar_one()
        assert (event.event_type, event.action, event.resource, event.tenant_id) == (
            "PERMISSION_DENIED", "void_sales", "/api/sales/1", tenant_a.id,
        )

    def test_unknown_action_is_a_programming_error(self, owner_a):
        with pytest.raises(ValueError):
            permission_service.check(owner_a, "launch_rockets")


class TestPermissionLookups:

    def test_definition_lists_granting_roles(self):
        definition = get_permission_definition("adjust_balances")

        assert definition["category"] == "FINANCIAL"
        assert "OWNER" in definition["roles"]
        assert "ACCOUNTANT" in definition["roles"]
        assert "CASHIER" not in definition["roles"]
        assert definition["owner_only"] is False

    def test_owner_only_definition(self):
        definition = get_permission_definition("void_sales")

        assert definition["owner_only"] is True
        assert definition["roles"] == ["OWNER"]

    def test_unknown_code(self):
        assert get_permission_definition("launch_rockets") is None
        assert validate_permission_code("launch_rockets") is False

    def test_category_match_is_case_insensitive(self):
        upper = get_permissions_by_category("SALES")

        assert upper
        assert get_permissions_by_category("sales") == upper
        assert get_permissions_by_category(None) == []
