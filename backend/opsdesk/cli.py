# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates permission rows and the admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with type, leader and active status.
# - python -m flask users create --username alice --password "secret1" --user-type salesman --perm stock_reduce
#   Create a user (prompts if options are omitted).
#
# Permission inspection/repair:
# - python -m flask perms list [--user alice] [--category STOCK]
#   List catalogue permissions, or the codes a user holds.
# - python -m flask perms grant alice stock_approve
# - python -m flask perms revoke alice stock_approve
#
# Maintenance:
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, USER_TYPES
from .permissions import PermissionCategory, get_all_permission_codes, get_permissions_by_category
from .services import permission_service, user_service
from .validation import OpsdeskError


DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"


def _find_user(username: str) -> User:
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        raise click.ClickException(f"User '{username}' not found")
    return user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize permissions and the bootstrap administrator.

    Creates:
    - One Permission row per catalogue code
    - User admin / admin123 holding every permission

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing opsdesk...")

    perm_count = permission_service.initialize_permissions()
    click.echo(f"PASS Created {perm_count} permissions")

    existing = db.session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).first()
    if existing:
        click.echo(f"WARN  User '{DEFAULT_ADMIN_USERNAME}' already exists, skipping...")
    else:
        user_service.create_user(
            username=DEFAULT_ADMIN_USERNAME,
            password=DEFAULT_ADMIN_PASSWORD,
            real_name="Administrator",
            user_type="admin",
            permissions=get_all_permission_codes(),
        )
        db.session.commit()
        click.echo(f"PASS Created user: {DEFAULT_ADMIN_USERNAME} with all permissions")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {DEFAULT_ADMIN_USERNAME} / {DEFAULT_ADMIN_PASSWORD}")


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


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--real-name', help='Display name')
@click.option('--user-type', type=click.Choice(USER_TYPES), default='salesman', show_default=True)
@click.option('--leader', 'leader_username', help='Username of the leader')
@click.option('--perm', 'perms', multiple=True, help='Permission code (repeatable)')
@with_appcontext
def create_user_cli(username, password, real_name, user_type, leader_username, perms):
    """Create a user with an initial permission set."""
    leader_id = _find_user(leader_username).id if leader_username else None
    try:
        user = user_service.create_user(
            username=username,
            password=password,
            real_name=real_name,
            user_type=user_type,
            leader_id=leader_id,
            permissions=list(perms),
        )
        db.session.commit()
    except OpsdeskError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user {user.username} (ID: {user.id}, type: {user.user_type})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with type, leader and status."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<20} {'Type':<10} {'Leader':<15} {'Active':<8}")
    click.echo("=" * 90)

    for user in users:
        leader = user.leader.username if user.leader else "-"
        active_str = "Yes" if user.is_active else "No"
        click.echo(
            f"{user.id:<5} {user.username:<20} {(user.real_name or '-'):<20} "
            f"{user.user_type:<10} {leader:<15} {active_str:<8}"
        )

    click.echo("=" * 90 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


@perms_group.command('list')
@click.option('--user', 'username', help='Show the codes held by this user')
@click.option('--category', type=click.Choice(PermissionCategory.ORDER), help='Filter by category')
@with_appcontext
def list_permissions(username, category):
    """List permissions from the catalogue, or those a user holds."""
    if username:
        user = _find_user(username)
        codes = sorted(permission_service.get_user_permissions(user.id))
        click.echo(f"\nPermissions for {user.username}:")
        for code in codes:
            click.echo(f"  - {code}")
        if not codes:
            click.echo("  (none)")
        return

    categories = [category] if category else PermissionCategory.ORDER
    for cat in categories:
        click.echo(f"\n{cat}")
        for code, name, description, _ in get_permissions_by_category(cat):
            click.echo(f"  {code:<20} {name:<22} {description}")
    click.echo("")


@perms_group.command('grant')
@click.argument('username')
@click.argument('permission_code')
@with_appcontext
def grant_permission_cli(username, permission_code):
    """Grant a permission to a user."""
    user = _find_user(username)
    try:
        granted = permission_service.grant_permission(user, permission_code)
    except OpsdeskError as e:
        raise click.ClickException(e.message)
    if granted:
        click.echo(f"PASS Granted {permission_code} to {username}")
    else:
        click.echo(f"WARN  {username} already has {permission_code}")


@perms_group.command('revoke')
@click.argument('username')
@click.argument('permission_code')
@with_appcontext
def revoke_permission_cli(username, permission_code):
    """Revoke a permission from a user."""
    user = _find_user(username)
    try:
        revoked = permission_service.revoke_permission(user, permission_code)
    except OpsdeskError as e:
        raise click.ClickException(e.message)
    if revoked:
        click.echo(f"PASS Revoked {permission_code} from {username}")
    else:
        click.echo(f"WARN  {username} does not have {permission_code}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """Delete security events older than the retention window."""
    deleted = permission_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} security events older than {retention_days} days")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
