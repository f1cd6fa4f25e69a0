"""
Pytest fixtures for stockbook backend tests.

Provides test database setup, tenant/item/party factories, principals per
role and bearer headers issued through the session service.
"""

import pytest
from stockbook import create_app
from stockbook.extensions import db
from stockbook.models import Item, Customer, Supplier
from stockbook.permissions import Role
from stockbook.services.session_service import Principal, create_session
from stockbook.services.tenant_service import create_tenant


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TX_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """Tenant A (first tenant)."""
    return create_tenant("Tenant A - Acme Traders", "ACME")


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Tenant B (second tenant)."""
    return create_tenant("Tenant B - Beta Stores", "BETA")


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory: make_item(tenant, quantity=10, selling_price_cents=1000, ...)."""
    def _make(tenant, *, name="Widget", quantity=10, cost_price_cents=600, selling_price_cents=1000, sku=None):
        item = Item(
            tenant_id=tenant.id,
            name=name,
            sku=sku,
            quantity=quantity,
            cost_price_cents=cost_price_cents,
            selling_price_cents=selling_price_cents,
        )
        db_session.add(item)
        db_session.commit()
        return item
    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(tenant, *, name="Ama Mensah", phone="0241234567", balance_cents=0):
        customer = Customer(tenant_id=tenant.id, name=name, phone=phone, balance_cents=balance_cents)
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


@pytest.fixture(scope='function')
def make_supplier(db_session):
    def _make(tenant, *, name="Kofi Wholesale", balance_cents=0):
        supplier = Supplier(tenant_id=tenant.id, name=name, balance_cents=balance_cents)
        db_session.add(supplier)
        db_session.commit()
        return supplier
    return _make


@pytest.fixture(scope='function')
def principal_for():
    """Factory: principal_for(tenant, Role.OWNER) -> Principal bound to that tenant."""
    def _make(tenant, role=Role.OWNER, principal_id=None):
        tenant_id = tenant.id if tenant is not None else None
        return Principal(
            principal_id=principal_id or f"{role.value.lower()}-{tenant_id}",
            tenant_id=tenant_id,
            role=role,
        )
    return _make


@pytest.fixture(scope='function')
def owner_a(tenant_a, principal_for):
    return principal_for(tenant_a, Role.OWNER)


@pytest.fixture(scope='function')
def owner_b(tenant_b, principal_for):
    return principal_for(tenant_b, Role.OWNER)


@pytest.fixture(scope='function')
def headers_for(db_session):
    """Factory: headers_for(tenant, Role.CASHIER) -> Authorization headers."""
    def _make(tenant, role=Role.OWNER, principal_id=None):
        tenant_id = tenant.id if tenant is not None else None
        _session, token = create_session(principal_id or f"{role.value.lower()}-{tenant_id}", role, tenant_id)
        return auth_headers(token)
    return _make


@pytest.fixture(scope='function')
def owner_headers(tenant_a, headers_for):
    return headers_for(tenant_a, Role.OWNER)


@pytest.fixture(scope='function')
def cashier_headers(tenant_a, headers_for):
    return headers_for(tenant_a, Role.CASHIER)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def reload(model, entity_id):
    """Fresh read of a row, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(model, entity_id)
