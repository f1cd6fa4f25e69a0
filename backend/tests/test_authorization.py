"""
Authorization tests for the HTTP layer.

Verifies:
- Unauthenticated requests return 401
- A session without a tenant returns 401 NO_TENANT
- Cashier role denied high-risk operations (403)
- Owner can perform privileged operations
- Owner-only actions stay owner-only for STORE_MANAGER
"""

import pytest

from stockbook.permissions import Role
from stockbook.services.session_service import create_session, revoke_session

from conftest import auth_headers


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("PUT", "/api/sales/1"),
            ("DELETE", "/api/sales/1"),
            ("GET", "/api/purchases"),
            ("POST", "/api/purchases"),
            ("GET", "/api/quotations"),
            ("POST", "/api/quotations/1/convert"),
            ("GET", "/api/purchase-orders"),
            ("POST", "/api/purchase-orders/1/convert"),
            ("POST", "/api/payments/customers"),
            ("POST", "/api/payments/suppliers"),
            ("GET", "/api/items"),
            ("POST", "/api/adjustments"),
            ("POST", "/api/items/1/adjust"),
            ("GET", "/api/customers"),
            ("POST", "/api/customers/adjust-balance"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/audit-logs"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["error"] == "UNAUTHENTICATED"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/items", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401

    def test_revoked_token(self, client, tenant_a):
        _session, token = create_session("owner", Role.OWNER, tenant_a.id)
        assert revoke_session(token)

        resp = client.get("/api/items", headers=auth_headers(token))
        assert resp.status_code == 401

    def test_session_without_tenant(self, client, db_session, headers_for):
        resp = client.get("/api/items", headers=headers_for(None, Role.OWNER))
        assert resp.status_code == 401
        assert resp.json["error"] == "NO_TENANT"


# =============================================================================
# CASHIER DENIED HIGH-RISK OPERATIONS - 403
# =============================================================================


class TestCashierDeniedHighRisk:
    """Cashier role cannot perform privileged operations."""

    def test_cannot_void_sale(self, client, cashier_headers):
        resp = client.delete("/api/sales/1", headers=cashier_headers)
        assert resp.status_code == 403
        assert resp.json["details"]["allowed_roles"] == ["OWNER"]

    def test_cannot_purchase(self, client, cashier_headers):
        resp = client.post("/api/purchases", json={}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_adjust_stock(self, client, cashier_headers):
        resp = client.post(
            "/api/adjustments",
            json={"item_id": 1, "type": "INCREASE", "quantity": 10, "reason": "x"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_override_balances(self, client, cashier_headers):
        resp = client.post(
            "/api/customers/adjust-balance",
            json={"customer_id": 1, "balance_cents": 0},
            headers=cashier_headers,
        )
        assert resp.status_code == 403

    def test_cannot_view_audit_log(self, client, cashier_headers):
        resp = client.get("/api/audit-logs", headers=cashier_headers)
        assert resp.status_code == 403

    def test_cannot_delete_quotation(self, client, cashier_headers):
        resp = client.delete("/api/quotations/1", headers=cashier_headers)
        assert resp.status_code == 403


# =============================================================================
# OWNER-ONLY ACTIONS
# =============================================================================


class TestOwnerOnly:

    def test_store_manager_cannot_void_or_read_audit(self, client, tenant_a, headers_for):
        headers = headers_for(tenant_a, Role.STORE_MANAGER)
        assert client.delete("/api/sales/1", headers=headers).status_code == 403
        assert client.delete("/api/purchases/1", headers=headers).status_code == 403
        assert client.put("/api/purchases/1", json={}, headers=headers).status_code == 403
        assert client.get("/api/audit-logs", headers=headers).status_code == 403

    def test_owner_reaches_the_service(self, client, owner_headers):
        # Passes the gate; the sale simply does not exist
        resp = client.delete("/api/sales/1", headers=owner_headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "NOT_FOUND"

    def test_owner_reads_audit_log(self, client, owner_headers):
        resp = client.get("/api/audit-logs", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["audit_logs"] == []


# =============================================================================
# SYSTEM ENDPOINTS (public)
# =============================================================================


class TestSystemEndpoints:

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
        assert resp.json["checks"]["permissions"]["roles"] == 6

    def test_cors_allowed_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_other_origin(self, client, db_session):
        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
