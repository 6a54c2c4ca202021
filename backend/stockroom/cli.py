# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/stockroom/cli.py
# Commands Legend (run from the repository root):
# - flask --app stockroom system init-db
#   Create all tables in the persistent database.
# - flask --app stockroom system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask --app stockroom system seed
#   Load the demo categories and products through the active store.
# - flask --app stockroom system store-status
#   Show which backend (persistent / memory) would serve requests.
#
# - flask --app stockroom users create --email admin@example.com --name Admin --password secret1 --role admin
# - flask --app stockroom users list
# - flask --app stockroom users promote someone@example.com

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import auth_service
from .storage import current_store, get_selector
from .storage.seed import seed_demo_catalog
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and inspection commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (no-op for tables that already exist)."""
    click.echo("BUILD  Creating all tables...")
    db.create_all()
    if get_selector().connectivity.probe():
        click.echo("PASS Database ready")
    else:
        click.echo("FAIL Database unreachable; tables were not verified")


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

    click.echo("PASS Database reset complete. Run 'flask --app stockroom system seed' to load demo data.")


@system_group.command('seed')
@with_appcontext
def seed():
    """Seed demo categories and products (idempotent on category name / SKU)."""
    store = current_store()
    categories, products = seed_demo_catalog(store)
    click.echo(f"PASS Seeded {categories} categories and {products} products into {store.name} store")


@system_group.command('store-status')
@with_appcontext
def store_status():
    """Probe the database and report the backend that would serve requests."""
    selector = get_selector()
    selector.connectivity.probe()
    status = selector.status()
    connected = "yes" if status["persistent_connected"] else "no"
    click.echo(f"Active store: {status['store']}")
    click.echo(f"Persistent store reachable: {connected}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['user', 'admin']), default='user', show_default=True, help='Role')
@with_appcontext
def create_user_cli(email, name, password, role):
    """Create a local account in the active store."""
    try:
        user = auth_service.register_user(email=email, password=password, name=name, role=role)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        return
    except ConflictError:
        click.echo(f"FAIL User already exists: {email}")
        return

    click.echo(f"PASS Created user {user['email']} (ID: {user['id']}, role: {user['role']})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users in the active store."""
    users = current_store().list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<10} {'Email':<35} {'Name':<25} {'Role':<8} {'Provider'}")
    click.echo("="*90)

    for user in users:
        click.echo(
            f"{user['id']:<10} {user['email']:<35} {user['name']:<25} "
            f"{user['role']:<8} {user.get('provider') or 'local'}"
        )

    click.echo("="*90 + "\n")


@users_group.command('promote')
@click.argument('email')
@with_appcontext
def promote_user(email):
    """Give EMAIL the admin role."""
    user = auth_service.set_role(email, "admin")
    if user is None:
        click.echo(f"FAIL User not found: {email}")
        return
    click.echo(f"PASS {user['email']} is now an admin")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
