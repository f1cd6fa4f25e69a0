# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for core resources.

These tests create two tenants with their own items, customers and
documents, then verify that:
1. A principal of Tenant A cannot read or mutate rows of Tenant B
2. A foreign id is answered exactly like a missing id (NOT_FOUND)
3. No stock or balance of Tenant B moves when Tenant A names its rows
4. Sessions carry an immutable tenant binding
"""

import pytest

from stockbook.extensions import db
from stockbook.models import Customer, Item, Sale
from stockbook.permissions import Role
from stockbook.results import ErrorKind
from stockbook.services import (
    customer_service,
    inventory_service,
    payment_service,
    quotation_service,
    sales_service,
)
from stockbook.services.session_service import create_session, validate_session
from stockbook.services.tenant_service import get_scoped, list_scoped
from stockbook.validation import LineInput

from conftest import reload


class TestTenantServiceHelpers:

    def test_get_scoped_own_row(self, tenant_a, make_item):
        item = make_item(tenant_a)

        assert get_scoped(Item, tenant_a.id, item.id).value.id == item.id

    def test_foreign_and_missing_rows_look_the_same(self, tenant_a, tenant_b, make_item):
        foreign = make_item(tenant_b)

        cross = get_scoped(Item, tenant_a.id, foreign.id)
        missing = get_scoped(Item, tenant_a.id, 987654)

        assert cross.kind is missing.kind is ErrorKind.NOT_FOUND
        assert cross.error.message == missing.error.message

    def test_list_scoped_filters_by_tenant(self, tenant_a, tenant_b, make_item):
        make_item(tenant_a, name="Mine")
        make_item(tenant_b, name="Theirs")

        assert [i.name for i in list_scoped(Item, tenant_a.id)] == ["Mine"]


class TestCrossTenantOperations:

    def test_cannot_sell_foreign_item(self, owner_a, tenant_b, make_item):
        foreign = make_item(tenant_b, quantity=5)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=foreign.id, quantity=1)], paid_amount_cents=1000)

        assert result.kind is ErrorKind.NOT_FOUND
        assert reload(Item, foreign.id).quantity == 5

    def test_cannot_put_credit_on_foreign_customer(self, owner_a, tenant_a, tenant_b, make_item, make_customer):
        item = make_item(tenant_a, quantity=5)
        foreign = make_customer(tenant_b)

        result = sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=1)], customer_id=foreign.id, paid_amount_cents=0
        )

        assert result.kind is ErrorKind.NOT_FOUND
        assert reload(Item, item.id).quantity == 5
        assert reload(Customer, foreign.id).balance_cents == 0

    def test_cannot_void_foreign_sale(self, owner_a, owner_b, tenant_b, make_item):
        item = make_item(tenant_b, quantity=5)
        sale = sales_service.create_sale(owner_b, lines=[LineInput(item_id=item.id, quantity=2)], paid_amount_cents=2000).unwrap()

        result = sales_service.void_sale(owner_a, sale.id)

        assert result.kind is ErrorKind.NOT_FOUND
        assert reload(Sale, sale.id) is not None
        assert reload(Item, item.id).quantity == 3

    def test_cannot_pay_foreign_customer(self, owner_a, tenant_b, make_customer):
        foreign = make_customer(tenant_b, balance_cents=500)

        result = payment_service.record_customer_payment(owner_a, customer_id=foreign.id, amount_cents=100)

        assert result.kind is ErrorKind.NOT_FOUND
        assert reload(Customer, foreign.id).balance_cents == 500

    def test_cannot_override_foreign_stock_or_balance(self, owner_a, tenant_b, make_item, make_customer):
        item = make_item(tenant_b, quantity=5)
        customer = make_customer(tenant_b, balance_cents=500)

        assert inventory_service.override_quantity(owner_a, item_id=item.id, mode="SET", quantity=0).kind is ErrorKind.NOT_FOUND
        assert customer_service.set_customer_balance(owner_a, customer_id=customer.id, balance_cents=0).kind is ErrorKind.NOT_FOUND
        assert reload(Item, item.id).quantity == 5
        assert reload(Customer, customer.id).balance_cents == 500

    def test_cannot_convert_foreign_quotation(self, owner_a, owner_b, tenant_b, make_item):
        item = make_item(tenant_b, quantity=5)
        quotation = quotation_service.create_quotation(owner_b, lines=[LineInput(item_id=item.id, quantity=1)]).unwrap()

        assert quotation_service.convert_quotation(owner_a, quotation.id).kind is ErrorKind.NOT_FOUND
        assert reload(Item, item.id).quantity == 5

    def test_listing_never_leaks(self, owner_a, owner_b, tenant_b, make_customer):
        make_customer(tenant_b)

        assert customer_service.list_customers(owner_a).value == []
        assert len(customer_service.list_customers(owner_b).value) == 1


class TestSessionTenantContext:

    def test_session_captures_tenant(self, tenant_a):
        _session, token = create_session("clerk", Role.CASHIER, tenant_a.id)

        principal = validate_session(token)

        assert principal.tenant_id == tenant_a.id
        assert principal.role is Role.CASHIER

    def test_session_invalid_when_tenant_deactivated(self, tenant_a):
        _session, token = create_session("clerk", Role.CASHIER, tenant_a.id)
        tenant_a.is_active = False
        db.session.commit()

        assert validate_session(token) is None

    def test_cannot_issue_session_for_inactive_tenant(self, tenant_a):
        tenant_a.is_active = False
        db.session.commit()

        with pytest.raises(ValueError):
            create_session("clerk", Role.CASHIER, tenant_a.id)
