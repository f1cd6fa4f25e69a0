# Overview: Pytest coverage for the sale transaction engine (create, edit, void).

"""
Sale Transaction Tests

Verifies stock and customer balance move together with the sale record:
- Create decrements stock and books credit on the customer
- Void restores both and removes the sale
- Edit checks stock against current + old quantity before replacing lines
- Nothing is written when any check fails
"""

import pytest
from sqlalchemy import func, select

from stockbook.extensions import db
from stockbook.models import Item, Customer, Sale, SaleItem
from stockbook.permissions import Role
from stockbook.results import ErrorKind
from stockbook.services import sales_service
from stockbook.validation import LineInput

from conftest import reload


def _sale_count(tenant_id):
    return db.session.execute(select(func.count(Sale.id)).where(Sale.tenant_id == tenant_id)).scalar_one()


class TestCreateSale:

    def test_round_trip_create_then_void(self, owner_a, tenant_a, make_item, make_customer):
        item = make_item(tenant_a, quantity=10, selling_price_cents=2000)
        customer = make_customer(tenant_a)

        result = sales_service.create_sale(
            owner_a,
            lines=[LineInput(item_id=item.id, quantity=5, price_cents=2000)],
            customer_id=customer.id,
            paid_amount_cents=4000,
        )
        assert result.ok, result.error
        sale = result.value
        assert sale.total_amount_cents == 10000
        assert sale.paid_amount_cents == 4000
        assert sale.credit_amount_cents == 6000
        assert sale.payment_type == "CREDIT"
        assert reload(Item, item.id).quantity == 5
        assert reload(Customer, customer.id).balance_cents == 6000

        voided = sales_service.void_sale(owner_a, sale.id)
        assert voided.ok, voided.error
        assert voided.value["id"] == sale.id
        assert reload(Item, item.id).quantity == 10
        assert reload(Customer, customer.id).balance_cents == 0
        assert _sale_count(tenant_a.id) == 0
        assert db.session.execute(select(func.count(SaleItem.id))).scalar_one() == 0

    def test_line_without_price_uses_selling_price(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=4, selling_price_cents=750)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=2)], paid_amount_cents=1500)

        assert result.ok
        assert result.value.total_amount_cents == 1500
        assert result.value.items[0].price_cents == 750
        assert result.value.payment_type == "CASH"

    def test_paid_is_clamped_to_total(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=4, selling_price_cents=500)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=99999)

        assert result.ok
        assert result.value.paid_amount_cents == 500
        assert result.value.credit_amount_cents == 0

    def test_insufficient_stock_writes_nothing(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=3)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=4)], paid_amount_cents=4000)

        assert result.kind is ErrorKind.INSUFFICIENT_STOCK
        assert result.error.details["items"][0] == {
            "item_id": item.id,
            "name": "Widget",
            "requested": 4,
            "available": 3,
        }
        assert reload(Item, item.id).quantity == 3
        assert _sale_count(tenant_a.id) == 0

    def test_one_short_line_rejects_the_whole_sale(self, owner_a, tenant_a, make_item, make_customer):
        plenty = make_item(tenant_a, name="Rice", quantity=50)
        scarce = make_item(tenant_a, name="Oil", quantity=1)
        customer = make_customer(tenant_a)

        result = sales_service.create_sale(
            owner_a,
            lines=[LineInput(item_id=plenty.id, quantity=5), LineInput(item_id=scarce.id, quantity=2)],
            customer_id=customer.id,
            paid_amount_cents=0,
        )

        assert result.kind is ErrorKind.INSUFFICIENT_STOCK
        assert [row["item_id"] for row in result.error.details["items"]] == [scarce.id]
        assert reload(Item, plenty.id).quantity == 50
        assert reload(Item, scarce.id).quantity == 1
        assert reload(Customer, customer.id).balance_cents == 0
        assert _sale_count(tenant_a.id) == 0

    def test_credit_without_customer_is_rejected(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=5, selling_price_cents=1000)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=200)

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Item, item.id).quantity == 5

    def test_unknown_item_is_not_found(self, owner_a, tenant_a):
        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=424242, quantity=1)])

        assert result.kind is ErrorKind.NOT_FOUND
        assert result.error.details["item_ids"] == [424242]

    def test_cashier_may_sell(self, tenant_a, principal_for, make_item):
        item = make_item(tenant_a, quantity=2)
        cashier = principal_for(tenant_a, Role.CASHIER)

        result = sales_service.create_sale(cashier, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=1000)

        assert result.ok
        assert result.value.created_by == cashier.principal_id


class TestLineRules:

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_is_rejected(self, owner_a, tenant_a, make_item, quantity):
        item = make_item(tenant_a, quantity=5)

        result = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=quantity)])

        assert result.kind is ErrorKind.VALIDATION
        assert result.error.details == {"item_id": item.id, "quantity": quantity}
        assert reload(Item, item.id).quantity == 5

    def test_empty_sale_is_rejected(self, owner_a, tenant_a):
        result = sales_service.create_sale(owner_a, lines=[])

        assert result.kind is ErrorKind.VALIDATION
        assert _sale_count(tenant_a.id) == 0

    def test_negative_price_is_rejected(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=5)

        result = sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=1, price_cents=-100)], paid_amount_cents=0
        )

        assert result.kind is ErrorKind.VALIDATION
        assert _sale_count(tenant_a.id) == 0

    def test_duplicate_item_is_rejected(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=5)

        result = sales_service.create_sale(
            owner_a,
            lines=[LineInput(item_id=item.id, quantity=1), LineInput(item_id=item.id, quantity=2)],
            paid_amount_cents=3000,
        )

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Item, item.id).quantity == 5

    def test_edit_to_no_lines_keeps_the_sale(self, owner_a, tenant_a, make_item):
        item = make_item(tenant_a, quantity=5, selling_price_cents=100)
        sale = sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=2)], paid_amount_cents=200
        ).unwrap()

        result = sales_service.edit_sale(owner_a, sale.id, lines=[])

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Item, item.id).quantity == 3
        assert reload(Sale, sale.id).total_amount_cents == 200


class TestEditSale:

    def _sell_five(self, owner, tenant, make_item):
        item = make_item(tenant, quantity=10, selling_price_cents=1000)
        sale = sales_service.create_sale(
            owner, lines=[LineInput(item_id=item.id, quantity=5)], paid_amount_cents=5000
        ).unwrap()
        assert reload(Item, item.id).quantity == 5
        return item, sale

    def test_edit_up_to_restored_stock_succeeds(self, owner_a, tenant_a, make_item):
        item, sale = self._sell_five(owner_a, tenant_a, make_item)

        result = sales_service.edit_sale(
            owner_a, sale.id, lines=[LineInput(item_id=item.id, quantity=8)], paid_amount_cents=8000
        )

        assert result.ok, result.error
        assert reload(Item, item.id).quantity == 2
        edited = reload(Sale, sale.id)
        assert edited.total_amount_cents == 8000
        assert [(line.item_id, line.quantity) for line in edited.items] == [(item.id, 8)]

    def test_edit_beyond_restored_stock_is_rejected(self, owner_a, tenant_a, make_item):
        item, sale = self._sell_five(owner_a, tenant_a, make_item)

        result = sales_service.edit_sale(
            owner_a, sale.id, lines=[LineInput(item_id=item.id, quantity=11)], paid_amount_cents=11000
        )

        assert result.kind is ErrorKind.INSUFFICIENT_STOCK
        assert reload(Item, item.id).quantity == 5
        unchanged = reload(Sale, sale.id)
        assert unchanged.total_amount_cents == 5000
        assert [line.quantity for line in unchanged.items] == [5]

    def test_edit_swaps_items_and_moves_credit(self, owner_a, tenant_a, make_item, make_customer):
        first = make_item(tenant_a, name="Sugar", quantity=10, selling_price_cents=1000)
        second = make_item(tenant_a, name="Salt", quantity=10, selling_price_cents=300)
        old_customer = make_customer(tenant_a, name="Old")
        new_customer = make_customer(tenant_a, name="New")
        sale = sales_service.create_sale(
            owner_a,
            lines=[LineInput(item_id=first.id, quantity=3)],
            customer_id=old_customer.id,
            paid_amount_cents=1000,
        ).unwrap()
        assert reload(Customer, old_customer.id).balance_cents == 2000

        result = sales_service.edit_sale(
            owner_a,
            sale.id,
            lines=[LineInput(item_id=second.id, quantity=4)],
            customer_id=new_customer.id,
            paid_amount_cents=200,
        )

        assert result.ok, result.error
        assert reload(Item, first.id).quantity == 10
        assert reload(Item, second.id).quantity == 6
        assert reload(Customer, old_customer.id).balance_cents == 0
        assert reload(Customer, new_customer.id).balance_cents == 1000

    def test_edit_rejected_when_credit_already_paid_down(self, owner_a, tenant_a, make_item, make_customer):
        item = make_item(tenant_a, quantity=10, selling_price_cents=1000)
        customer = make_customer(tenant_a)
        sale = sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=2)], customer_id=customer.id, paid_amount_cents=0
        ).unwrap()
        # Customer paid 1500 of the 2000 owed
        db.session.get(Customer, customer.id).balance_cents = 500
        db.session.commit()

        result = sales_service.edit_sale(owner_a, sale.id, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=1000)

        assert result.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert reload(Item, item.id).quantity == 8
        assert reload(Customer, customer.id).balance_cents == 500

    def test_store_manager_cannot_edit(self, owner_a, tenant_a, principal_for, make_item):
        item, sale = self._sell_five(owner_a, tenant_a, make_item)
        manager = principal_for(tenant_a, Role.STORE_MANAGER)

        result = sales_service.edit_sale(manager, sale.id, lines=[LineInput(item_id=item.id, quantity=1)])

        assert result.kind is ErrorKind.FORBIDDEN
        assert reload(Item, item.id).quantity == 5


class TestVoidSale:

    def test_only_owner_can_void(self, owner_a, tenant_a, principal_for, make_item):
        item = make_item(tenant_a, quantity=3)
        sale = sales_service.create_sale(owner_a, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=1000).unwrap()

        for role in (Role.STORE_MANAGER, Role.CASHIER, Role.ACCOUNTANT, Role.STAFF):
            result = sales_service.void_sale(principal_for(tenant_a, role), sale.id)
            assert result.kind is ErrorKind.FORBIDDEN, role

        assert _sale_count(tenant_a.id) == 1
        assert reload(Item, item.id).quantity == 2

    def test_void_rejected_when_customer_already_paid(self, owner_a, tenant_a, make_item, make_customer):
        item = make_item(tenant_a, quantity=3, selling_price_cents=1000)
        customer = make_customer(tenant_a)
        sale = sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=1)], customer_id=customer.id, paid_amount_cents=0
        ).unwrap()
        db.session.get(Customer, customer.id).balance_cents = 0
        db.session.commit()

        result = sales_service.void_sale(owner_a, sale.id)

        assert result.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert result.error.details["credit_amount_cents"] == 1000
        assert reload(Item, item.id).quantity == 2
        assert _sale_count(tenant_a.id) == 1

    def test_void_missing_sale_is_not_found(self, owner_a):
        assert sales_service.void_sale(owner_a, 999).kind is ErrorKind.NOT_FOUND
