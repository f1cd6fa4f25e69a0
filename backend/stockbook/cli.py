# Overview: Flask CLI command groups for bootstrap, sessions, and permission inspection.

# backend/stockbook/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--tenant "Tenant Name"] [--code DEFAULT]
#   Idempotent bootstrap: creates tables and a default tenant.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.
#
# Tenant management (MULTI-TENANT):
# - python -m flask tenants list
#   List all tenants.
# - python -m flask tenants create --name "Acme Traders" --code "ACME" [--sms]
#   Create a new tenant.
#
# Sessions (identity boundary):
# - python -m flask sessions issue --principal alice --role OWNER --tenant-id 1
#   Issue a bearer token for a principal. The token is printed once.
# - python -m flask sessions revoke <token>
#   Revoke a bearer token.
#
# Permission inspection:
# - python -m flask perms list [--role CASHIER] [--category SALES]
#   List permissions (optionally filtered by role or category).
# - python -m flask perms check CASHIER create_sale
#   Check whether a role may perform an action.

import click
from flask.cli import with_appcontext
from sqlalchemy import delete, func, select

from .extensions import db
from .models import Tenant, Item, Customer, Supplier, SecurityEvent
from .permissions import (
    ALL_ROLES,
    Role,
    PERMISSION_DEFINITIONS,
    get_permission_definition,
    get_permissions_by_category,
    get_permissions_for_role,
    validate_permission_code,
)
from .services import permission_service, session_service
from .services.tenant_service import create_tenant
from .time_utils import days_ago


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--tenant', 'tenant_name', default='Default Tenant', help='Tenant name')
@click.option('--code', 'tenant_code', default='DEFAULT', help='Tenant code')
@with_appcontext
def init_system(tenant_name, tenant_code):
    """
    Create tables and a default tenant.

    Safe to run repeatedly: an existing tenant with the same code is kept.
    """
    db.create_all()
    click.echo("PASS Schema ready")

    existing = db.session.execute(select(Tenant).where(Tenant.code == tenant_code)).scalar_one_or_none()
    if existing:
        click.echo(f"PASS Tenant already exists: {existing.name} (ID: {existing.id})")
        return

    tenant = create_tenant(tenant_name, tenant_code)
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Code: {tenant.code})")
    click.echo("Next: python -m flask sessions issue --principal <name> --role OWNER --tenant-id "
               f"{tenant.id}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """Delete security events older than the retention window."""
    if retention_days < 1:
        click.echo("FAIL --retention-days must be at least 1")
        return
    cutoff = days_ago(retention_days)
    result = db.session.execute(delete(SecurityEvent).where(SecurityEvent.occurred_at < cutoff))
    db.session.commit()
    click.echo(f"PASS Deleted {result.rowcount} security events older than {retention_days} days")


@click.group('tenants')
def tenants_group():
    """Tenant management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    """List all tenants."""
    tenants = db.session.execute(select(Tenant).order_by(Tenant.id)).scalars().all()

    if not tenants:
        click.echo("No tenants found.")
        return

    def _count(model, tenant_id):
        return db.session.execute(
            select(func.count(model.id)).where(model.tenant_id == tenant_id)
        ).scalar_one()

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<12} {'Active':<8} {'SMS':<5} {'Items':<7} {'Customers':<10} {'Suppliers'}")
    click.echo("="*90)

    for tenant in tenants:
        active_str = "Yes" if tenant.is_active else "No"
        sms_str = "Yes" if tenant.enable_sms_notifications else "No"
        click.echo(
            f"{tenant.id:<5} {tenant.name:<30} {tenant.code or '-':<12} {active_str:<8} {sms_str:<5} "
            f"{_count(Item, tenant.id):<7} {_count(Customer, tenant.id):<10} {_count(Supplier, tenant.id)}"
        )

    click.echo("="*90 + "\n")


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant name')
@click.option('--code', required=True, help='Short code (unique)')
@click.option('--sms', is_flag=True, help='Enable SMS notifications')
@with_appcontext
def create_tenant_cli(name, code, sms):
    """Create a new tenant."""
    existing = db.session.execute(select(Tenant).where(Tenant.code == code)).scalar_one_or_none()
    if existing:
        click.echo(f"FAIL Tenant with code '{code}' already exists")
        return

    tenant = create_tenant(name, code, enable_sms_notifications=sms)
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Code: {tenant.code})")


@click.group('sessions')
def sessions_group():
    """Bearer session commands."""


@sessions_group.command('issue')
@click.option('--principal', 'principal_id', required=True, help='Principal identifier')
@click.option('--role', type=click.Choice([r.value for r in ALL_ROLES], case_sensitive=False), required=True)
@click.option('--tenant-id', type=int, help='Tenant the session is bound to')
@with_appcontext
def issue_session_cli(principal_id, role, tenant_id):
    """
    Issue a session token.

    SECURITY: The plaintext token is shown once; only its hash is stored.
    """
    try:
        session, token = session_service.create_session(principal_id, role, tenant_id)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Session issued for {principal_id} ({session.role}), expires {session.expires_at}")
    click.echo(token)


@sessions_group.command('revoke')
@click.argument('token')
@click.option('--reason', default='Revoked via CLI', show_default=True)
@with_appcontext
def revoke_session_cli(token, reason):
    """Revoke a session token."""
    if session_service.revoke_session(token, reason=reason):
        click.echo("PASS Session revoked")
    else:
        click.echo("FAIL No active session for that token")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
def list_permissions_cli(role, category):
    """List all permissions, optionally filtered by role or category."""
    perms = get_permissions_by_category(category) if category else PERMISSION_DEFINITIONS
    if role:
        role_obj = Role.parse(role)
        if role_obj is None:
            click.echo(f"FAIL Role '{role}' not found")
            return
        granted = get_permissions_for_role(role_obj)
        perms = [p for p in perms if p[0] in granted and permission_service.has_permission(role_obj, p[0])]
        click.echo(f"\n{'='*80}")
        click.echo(f"Permissions for role: {role_obj.value}")
        click.echo(f"{'='*80}\n")

    click.echo(f"{'Code':<30} {'Name':<35} {'Category'}")
    click.echo("-"*80)
    for code, name, _description, cat in perms:
        click.echo(f"{code:<30} {name:<35} {cat}")
    click.echo(f"\nTotal: {len(perms)} permissions\n")


@perms_group.command('check')
@click.argument('role')
@click.argument('action')
def check_permission_cli(role, action):
    """Check whether a role may perform an action."""
    role_obj = Role.parse(role)
    if role_obj is None:
        click.echo(f"FAIL Role '{role}' not found")
        return
    if not validate_permission_code(action):
        click.echo(f"FAIL Unknown permission '{action}'")
        return

    if permission_service.has_permission(role_obj, action):
        click.echo(f"PASS {role_obj.value} may {action}")
    else:
        allowed = ", ".join(get_permission_definition(action)["roles"])
        click.echo(f"FAIL {role_obj.value} may not {action} (allowed: {allowed})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)  # Multi-tenant management
    app.cli.add_command(sessions_group)
    app.cli.add_command(perms_group)
