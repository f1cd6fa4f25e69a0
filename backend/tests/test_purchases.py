# Overview: Pytest coverage for purchases (create, edit, void) against stock and supplier balance.

from sqlalchemy import func, select

from stockbook.extensions import db
from stockbook.models import Item, Purchase, Supplier
from stockbook.permissions import Role
from stockbook.results import ErrorKind
from stockbook.services import purchase_service, sales_service
from stockbook.validation import LineInput

from conftest import reload


def _purchase_count():
    return db.session.execute(select(func.count(Purchase.id))).scalar_one()


class TestCreatePurchase:

    def test_purchase_adds_stock_and_supplier_credit(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=2, cost_price_cents=400)
        supplier = make_supplier(tenant_a)

        result = purchase_service.create_purchase(
            owner_a,
            supplier_id=supplier.id,
            lines=[LineInput(item_id=item.id, quantity=10, price_cents=450)],
            paid_amount_cents=1500,
        )

        assert result.ok, result.error
        assert result.value.total_amount_cents == 4500
        assert result.value.payment_type == "CREDIT"
        assert reload(Item, item.id).quantity == 12
        assert reload(Supplier, supplier.id).balance_cents == 3000

    def test_unpaid_defaults_to_full_credit(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0, cost_price_cents=250)
        supplier = make_supplier(tenant_a)

        result = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=4)]
        )

        assert result.value.paid_amount_cents == 0
        assert reload(Supplier, supplier.id).balance_cents == 1000

    def test_supplier_from_other_tenant_is_not_found(self, owner_a, tenant_a, tenant_b, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0)
        foreign = make_supplier(tenant_b)

        result = purchase_service.create_purchase(
            owner_a, supplier_id=foreign.id, lines=[LineInput(item_id=item.id, quantity=1)]
        )

        assert result.kind is ErrorKind.NOT_FOUND
        assert reload(Item, item.id).quantity == 0
        assert _purchase_count() == 0

    def test_cashier_cannot_purchase(self, tenant_a, principal_for, make_item, make_supplier):
        item = make_item(tenant_a)
        supplier = make_supplier(tenant_a)

        result = purchase_service.create_purchase(
            principal_for(tenant_a, Role.CASHIER), supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=1)]
        )

        assert result.kind is ErrorKind.FORBIDDEN


class TestEditAndVoidPurchase:

    def test_edit_reduces_received_quantity(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0, cost_price_cents=100)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=5)]
        ).unwrap()

        result = purchase_service.edit_purchase(
            owner_a, purchase.id, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=3)]
        )

        assert result.ok, result.error
        assert reload(Item, item.id).quantity == 3
        assert reload(Supplier, supplier.id).balance_cents == 300

    def test_edit_rejected_when_received_stock_was_sold(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0, cost_price_cents=100, selling_price_cents=150)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=5)], paid_amount_cents=500
        ).unwrap()
        assert sales_service.create_sale(
            owner_a, lines=[LineInput(item_id=item.id, quantity=4)], paid_amount_cents=600
        ).ok

        result = purchase_service.edit_purchase(
            owner_a, purchase.id, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=2)],
            paid_amount_cents=200,
        )

        assert result.kind is ErrorKind.INSUFFICIENT_STOCK
        assert reload(Item, item.id).quantity == 1

    def test_void_takes_stock_and_credit_back(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=1, cost_price_cents=100)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=5)]
        ).unwrap()

        result = purchase_service.void_purchase(owner_a, purchase.id)

        assert result.ok, result.error
        assert result.value["items"][0]["quantity"] == 5
        assert reload(Item, item.id).quantity == 1
        assert reload(Supplier, supplier.id).balance_cents == 0
        assert _purchase_count() == 0

    def test_void_rejected_after_supplier_was_paid(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0, cost_price_cents=100)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=5)]
        ).unwrap()
        reload(Supplier, supplier.id).balance_cents = 200
        db.session.commit()

        result = purchase_service.void_purchase(owner_a, purchase.id)

        assert result.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert reload(Item, item.id).quantity == 5
        assert _purchase_count() == 1

    def test_inventory_manager_cannot_void(self, owner_a, tenant_a, principal_for, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=1)], paid_amount_cents=600
        ).unwrap()

        result = purchase_service.void_purchase(principal_for(tenant_a, Role.INVENTORY_MANAGER), purchase.id)

        assert result.kind is ErrorKind.FORBIDDEN

    def test_store_manager_cannot_void_or_edit(self, owner_a, tenant_a, principal_for, make_item, make_supplier):
        item = make_item(tenant_a, quantity=0, cost_price_cents=100)
        supplier = make_supplier(tenant_a)
        purchase = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=4)]
        ).unwrap()
        manager = principal_for(tenant_a, Role.STORE_MANAGER)

        voided = purchase_service.void_purchase(manager, purchase.id)
        edited = purchase_service.edit_purchase(
            manager, purchase.id, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=1)],
        )

        assert voided.kind is ErrorKind.FORBIDDEN
        assert voided.error.details["allowed_roles"] == ["OWNER"]
        assert edited.kind is ErrorKind.FORBIDDEN
        assert reload(Item, item.id).quantity == 4
        assert reload(Supplier, supplier.id).balance_cents == 400
        assert _purchase_count() == 1


class TestPurchaseLineRules:

    def test_zero_quantity_is_rejected(self, owner_a, tenant_a, make_item, make_supplier):
        item = make_item(tenant_a, quantity=2)
        supplier = make_supplier(tenant_a)

        result = purchase_service.create_purchase(
            owner_a, supplier_id=supplier.id, lines=[LineInput(item_id=item.id, quantity=0)]
        )

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Item, item.id).quantity == 2
        assert _purchase_count() == 0

    def test_empty_purchase_is_rejected(self, owner_a, tenant_a, make_supplier):
        supplier = make_supplier(tenant_a)

        result = purchase_service.create_purchase(owner_a, supplier_id=supplier.id, lines=[])

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Supplier, supplier.id).balance_cents == 0
        assert _purchase_count() == 0
