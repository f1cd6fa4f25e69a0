from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class Quotation(db.Model):
    """
    Draft pricing document for a (possibly anonymous) customer.

    LIFECYCLE: DRAFT, SENT, ACCEPTED, REJECTED, EXPIRED.
    A quotation never moves stock or balances itself; only its one-time
    conversion into a Sale does. converted_at is the idempotency marker: it is
    set by the conditional write that claims the conversion.
    """
    __tablename__ = "quotations"
    __table_args__ = (
        db.Index("ix_quotations_tenant_status", "tenant_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="DRAFT")
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    note = db.Column(db.Text, nullable=True)
    valid_until = db.Column(db.DateTime(timezone=True), nullable=True)

    converted_sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True)
    converted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer")

    @property
    def is_converted(self) -> bool:
        return self.converted_at is not None

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "customer_id": self.customer_id,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "note": self.note,
            "valid_until": to_utc_z(self.valid_until) if self.valid_until else None,
            "converted_sale_id": self.converted_sale_id,
            "converted_at": to_utc_z(self.converted_at) if self.converted_at else None,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [line.to_dict() for line in self.items]
        return data


class QuotationItem(db.Model):
    """Snapshot line: item name and price are frozen when the quotation is written."""
    __tablename__ = "quotation_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_quotation_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)

    quotation = db.relationship("Quotation", backref=db.backref("items", lazy=True, order_by="QuotationItem.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "line_total_cents": self.quantity * self.price_cents,
        }


class PurchaseOrder(db.Model):
    """
    Draft procurement document.

    LIFECYCLE: DRAFT, SENT, RECEIVED (via conversion only), CANCELLED.
    RECEIVED and CANCELLED are terminal. Receiving needs a bound supplier.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_tenant_status", "tenant_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="DRAFT")
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    note = db.Column(db.Text, nullable=True)
    expected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    converted_purchase_id = db.Column(db.Integer, db.ForeignKey("purchases.id"), nullable=True)
    received_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    supplier = db.relationship("Supplier")

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "supplier_id": self.supplier_id,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "note": self.note,
            "expected_at": to_utc_z(self.expected_at) if self.expected_at else None,
            "converted_purchase_id": self.converted_purchase_id,
            "received_at": to_utc_z(self.received_at) if self.received_at else None,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [line.to_dict() for line in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)

    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=False)

    purchase_order = db.relationship(
        "PurchaseOrder",
        backref=db.backref("items", lazy=True, order_by="PurchaseOrderItem.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "cost_price_cents": self.cost_price_cents,
            "line_total_cents": self.quantity * self.cost_price_cents,
        }
