# Overview: Pytest coverage for customer/supplier payments and post-commit notifications.

import pytest
from sqlalchemy import func, select

from stockbook.extensions import db
from stockbook.models import Customer, CustomerPayment, Supplier, SupplierPayment
from stockbook.permissions import Role
from stockbook.results import ErrorKind
from stockbook.services import notification_service, payment_service

from conftest import reload


class RecordingNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_sms(self, to, message, sender_id=None):
        if self.fail:
            raise RuntimeError("gateway down")
        self.sent.append((to, message, sender_id))


@pytest.fixture
def notifier(app, monkeypatch):
    recorder = RecordingNotifier()
    monkeypatch.setitem(app.extensions, notification_service.EXTENSION_KEY, recorder)
    return recorder


def _payment_count(model):
    return db.session.execute(select(func.count(model.id))).scalar_one()


class TestCustomerPayments:

    def test_payment_equal_to_balance_clears_it(self, owner_a, tenant_a, make_customer):
        customer = make_customer(tenant_a, balance_cents=6000)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=6000)

        assert result.ok, result.error
        assert result.value.payment.amount_cents == 6000
        assert reload(Customer, customer.id).balance_cents == 0

    def test_one_cent_over_balance_is_rejected(self, owner_a, tenant_a, make_customer):
        customer = make_customer(tenant_a, balance_cents=6000)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=6001)

        assert result.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert result.error.details == {
            "customer_id": customer.id,
            "balance_cents": 6000,
            "requested_cents": 6001,
        }
        assert reload(Customer, customer.id).balance_cents == 6000
        assert _payment_count(CustomerPayment) == 0

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount_is_rejected(self, owner_a, tenant_a, make_customer, amount):
        customer = make_customer(tenant_a, balance_cents=500)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=amount)

        assert result.kind is ErrorKind.VALIDATION
        assert reload(Customer, customer.id).balance_cents == 500

    def test_unknown_method_is_rejected(self, owner_a, tenant_a, make_customer):
        customer = make_customer(tenant_a, balance_cents=500)

        result = payment_service.record_customer_payment(
            owner_a, customer_id=customer.id, amount_cents=100, method="CHEQUE"
        )

        assert result.kind is ErrorKind.VALIDATION

    def test_inventory_manager_cannot_record_payments(self, tenant_a, principal_for, make_customer):
        customer = make_customer(tenant_a, balance_cents=500)

        result = payment_service.record_customer_payment(
            principal_for(tenant_a, Role.INVENTORY_MANAGER), customer_id=customer.id, amount_cents=100
        )

        assert result.kind is ErrorKind.FORBIDDEN
        assert reload(Customer, customer.id).balance_cents == 500


class TestSupplierPayments:

    def test_payment_reduces_what_we_owe(self, owner_a, tenant_a, make_supplier):
        supplier = make_supplier(tenant_a, balance_cents=2500)

        result = payment_service.record_supplier_payment(
            owner_a, supplier_id=supplier.id, amount_cents=1000, method="MOMO", note="Part payment"
        )

        assert result.ok
        assert result.value.notification is None
        assert result.value.payment.method == "MOMO"
        assert reload(Supplier, supplier.id).balance_cents == 1500

    def test_overpayment_is_rejected(self, owner_a, tenant_a, make_supplier):
        supplier = make_supplier(tenant_a, balance_cents=2500)

        result = payment_service.record_supplier_payment(owner_a, supplier_id=supplier.id, amount_cents=2501)

        assert result.kind is ErrorKind.INSUFFICIENT_BALANCE
        assert result.error.details["supplier_id"] == supplier.id
        assert _payment_count(SupplierPayment) == 0


class TestPaymentNotifications:

    def test_receipt_skipped_when_sms_disabled(self, owner_a, tenant_a, make_customer, notifier):
        customer = make_customer(tenant_a, balance_cents=1000)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=400)

        assert result.ok
        assert result.value.notification.status == notification_service.SKIPPED
        assert notifier.sent == []

    def test_receipt_sent_after_commit(self, owner_a, tenant_a, make_customer, notifier):
        tenant_a.enable_sms_notifications = True
        db.session.commit()
        customer = make_customer(tenant_a, phone="024 123 4567", balance_cents=1000)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=400)

        assert result.value.notification.status == notification_service.SENT
        [(to, message, _sender)] = notifier.sent
        assert to == "233241234567"
        assert "GHS 4.00" in message
        assert "Outstanding balance: GHS 6.00" in message

    def test_failed_delivery_keeps_the_payment(self, app, owner_a, tenant_a, make_customer, monkeypatch):
        monkeypatch.setitem(app.extensions, notification_service.EXTENSION_KEY, RecordingNotifier(fail=True))
        tenant_a.enable_sms_notifications = True
        db.session.commit()
        customer = make_customer(tenant_a, balance_cents=1000)

        result = payment_service.record_customer_payment(owner_a, customer_id=customer.id, amount_cents=1000)

        assert result.ok
        assert result.value.notification.status == notification_service.FAILED
        assert reload(Customer, customer.id).balance_cents == 0
        assert _payment_count(CustomerPayment) == 1


class TestBalanceReminder:

    def test_reminder_sent(self, owner_a, tenant_a, make_customer, notifier):
        tenant_a.enable_sms_notifications = True
        db.session.commit()
        customer = make_customer(tenant_a, balance_cents=123456)

        result = notification_service.send_balance_reminder(owner_a, customer.id)

        assert result.ok
        assert result.value.status == notification_service.SENT
        assert "GHS 1,234.56" in notifier.sent[0][1]

    def test_reminder_needs_positive_balance(self, owner_a, tenant_a, make_customer, notifier):
        tenant_a.enable_sms_notifications = True
        db.session.commit()
        customer = make_customer(tenant_a, balance_cents=0)

        result = notification_service.send_balance_reminder(owner_a, customer.id)

        assert result.kind is ErrorKind.VALIDATION
        assert notifier.sent == []

    def test_reminder_needs_phone(self, owner_a, tenant_a, make_customer, notifier):
        tenant_a.enable_sms_notifications = True
        db.session.commit()
        customer = make_customer(tenant_a, phone=None, balance_cents=100)

        assert notification_service.send_balance_reminder(owner_a, customer.id).kind is ErrorKind.VALIDATION

    def test_reminder_needs_sms_enabled(self, owner_a, tenant_a, make_customer, notifier):
        customer = make_customer(tenant_a, balance_cents=100)

        assert notification_service.send_balance_reminder(owner_a, customer.id).kind is ErrorKind.VALIDATION


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("0244123456", "233244123456"),
        ("+233 244 123 456", "233244123456"),
        ("244123456", "233244123456"),
        ("12345", None),
        (None, None),
    ],
)
def test_normalise_phone(raw, expected):
    assert notification_service.normalise_phone(raw) == expected
