# Overview: Flask CLI command groups for bootstrap, inspection, and reports.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# With REPOSITORY_BACKEND=memory every command sees a fresh store, so these
# are mostly useful with REPOSITORY_BACKEND=sql.
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: creates tables (sql), the admin account, default categories and sample products.
#
# Users:
# - python -m flask users list
# - python -m flask users create --email a@b.com --password secret1 --full-name "A B" --role USER
# - python -m flask users set-enabled a@b.com --disable
#
# Reports:
# - python -m flask reports low-stock [--threshold 10]

import click
from flask import current_app
from flask.cli import with_appcontext

from .domain import Role
from .extensions import db
from .services import get_services
from .services.seed_service import seed_demo_data
from .validation import ValidationError


@click.group("system")
def system_group():
    """System bootstrap commands."""


@system_group.command("init")
@with_appcontext
def init_system():
    """Create the admin account, default categories and sample products if missing."""
    click.echo("START Initializing pharmacy storefront...")

    if current_app.config["REPOSITORY_BACKEND"] == "sql":
        db.create_all()
        click.echo("PASS Database tables ready")

    services = get_services()
    created = seed_demo_data(
        services.auth,
        services.catalog,
        admin_email=current_app.config["DEFAULT_ADMIN_EMAIL"],
        admin_password=current_app.config["DEFAULT_ADMIN_PASSWORD"],
    )
    click.echo(
        f"PASS Created {created['users']} users, {created['categories']} categories, "
        f"{created['products']} products"
    )
    click.echo(f"     Admin login: {current_app.config['DEFAULT_ADMIN_EMAIL']}")


@click.group("users")
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command("list")
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = get_services().auth.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<30} {'Role':<7} {'Enabled'}")
    click.echo("=" * 90)
    for user in users:
        enabled_str = "Yes" if user.enabled else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.full_name:<30} {user.role.value:<7} {enabled_str}")
    click.echo("=" * 90 + "\n")


@users_group.command("create")
@click.option("--email", prompt=True, help="Email address")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password")
@click.option("--full-name", prompt=True, help="Full name")
@click.option("--role", type=click.Choice([r.value for r in Role]), default=Role.USER.value, show_default=True)
@with_appcontext
def create_user_cli(email, password, full_name, role):
    """Create a user (prompts if options are omitted)."""
    try:
        result = get_services().auth.register(
            email=email,
            password=password,
            full_name=full_name,
            role=Role(role),
        )
    except ValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        raise SystemExit(1)

    if not result.ok:
        click.echo(f"FAIL Failed to create user: {result.error.message}")
        raise SystemExit(1)

    user = result.value
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role.value}'")


@users_group.command("set-enabled")
@click.argument("email")
@click.option("--enable/--disable", "enabled", default=True, help="Enable or disable the account")
@with_appcontext
def set_enabled_cli(email, enabled):
    """Enable or disable an account by email."""
    auth = get_services().auth
    found = auth.get_user_by_email(email)
    if not found.ok:
        click.echo(f"FAIL User '{email}' not found")
        raise SystemExit(1)

    auth.set_enabled(found.value.id, enabled).unwrap()
    click.echo(f"PASS {email} {'enabled' if enabled else 'disabled'}")


@click.group("reports")
def reports_group():
    """Read-only reports."""


@reports_group.command("low-stock")
@click.option("--threshold", type=int, default=None, help="Stock level at or below which a product is listed")
@with_appcontext
def low_stock_cli(threshold):
    """List enabled products at or below the low-stock threshold."""
    rows = get_services().reports.low_stock_products(threshold)
    if not rows:
        click.echo("No low-stock products.")
        return

    click.echo(f"{'ID':<5} {'Name':<40} {'Stock':>6}")
    for row in rows:
        click.echo(f"{row['id']:<5} {row['name']:<40} {row['stockQuantity']:>6}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reports_group)
