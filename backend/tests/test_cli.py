# Overview: Pytest coverage for the flask CLI command groups.

import pytest
from sqlalchemy import select

from stockbook.extensions import db
from stockbook.models import Tenant

from conftest import auth_headers


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


class TestPermsCommands:

    def test_check_allowed(self, runner):
        result = runner.invoke(args=["perms", "check", "cashier", "create_sale"])
        assert "PASS CASHIER may create_sale" in result.output

    def test_check_owner_only(self, runner):
        result = runner.invoke(args=["perms", "check", "STORE_MANAGER", "void_sales"])
        assert "FAIL STORE_MANAGER may not void_sales (allowed: OWNER)" in result.output

    def test_check_unknown_code(self, runner):
        result = runner.invoke(args=["perms", "check", "OWNER", "launch_rockets"])
        assert "FAIL Unknown permission" in result.output

    def test_list_by_category(self, runner):
        result = runner.invoke(args=["perms", "list", "--category", "sales"])

        assert "create_sale" in result.output
        assert "adjust_balances" not in result.output

    def test_list_by_unknown_role(self, runner):
        result = runner.invoke(args=["perms", "list", "--role", "ADMIN"])
        assert "FAIL Role 'ADMIN' not found" in result.output


class TestTenantAndSessionCommands:

    def test_init_is_idempotent(self, runner):
        first = runner.invoke(args=["system", "init", "--tenant", "Corner Shop", "--code", "CORNER"])
        second = runner.invoke(args=["system", "init", "--tenant", "Corner Shop", "--code", "CORNER"])

        assert "PASS Created tenant: Corner Shop" in first.output
        assert "PASS Tenant already exists" in second.output
        assert db.session.execute(select(Tenant).where(Tenant.code == "CORNER")).scalars().all()

    def test_create_duplicate_code(self, runner, tenant_a):
        result = runner.invoke(args=["tenants", "create", "--name", "Copycat", "--code", "ACME"])
        assert "FAIL Tenant with code 'ACME' already exists" in result.output

    def test_list_tenants(self, runner, tenant_a, tenant_b):
        result = runner.invoke(args=["tenants", "list"])

        assert "ACME" in result.output
        assert "BETA" in result.output

    def test_issued_token_authenticates(self, runner, client, tenant_a):
        result = runner.invoke(args=["sessions", "issue", "--principal", "alice", "--role", "owner",
                                     "--tenant-id", str(tenant_a.id)])
        token = result.output.strip().splitlines()[-1]

        assert "PASS Session issued for alice (OWNER)" in result.output
        assert client.get("/api/sales", headers=auth_headers(token)).status_code == 200

        revoked = runner.invoke(args=["sessions", "revoke", token])
        assert "PASS Session revoked" in revoked.output
        assert client.get("/api/sales", headers=auth_headers(token)).status_code == 401

    def test_issue_for_missing_tenant(self, runner, db_session):
        result = runner.invoke(args=["sessions", "issue", "--principal", "bob", "--role", "OWNER",
                                     "--tenant-id", "999"])
        assert "FAIL Tenant is not active" in result.output
