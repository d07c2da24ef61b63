# Overview: Flask CLI command groups for bootstrap, inspection and the hold-expiry scheduler.

# backend/plots_erp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create tables if missing and seed the settings singleton from config.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --name "Asha" --email asha@example.com --role sales
# - python -m flask users list
#
# Permission inspection:
# - python -m flask perms list [--role sales] [--category SALES]
# - python -m flask perms check 3 HOLD_PLOT
#
# Hold expiry (schedule `expire` from cron, or run `watch` as a worker):
# - python -m flask holds expire [--now 2024-05-01T10:00:00Z] [--force]
# - python -m flask holds watch [--interval 15] [--max-ticks N]

import time

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .constants import UserRole
from .permissions import (
    PERMISSION_DEFINITIONS,
    get_role_permissions,
    get_permission_definition,
)
from .services import hold_expiry_service, permission_service
from .services.settings_service import get_settings
from .time_utils import parse_iso_datetime, to_utc_z


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables and seed the settings row. Idempotent."""
    click.echo("START Initializing plots ERP...")
    db.create_all()
    settings = get_settings()
    click.echo(
        f"PASS Settings ready: hold {settings.default_hold_hours}h, "
        f"auto-expire {'on' if settings.auto_expire_hold else 'off'}"
    )


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
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--phone', default=None, help='Phone (used for notifications)')
@click.option('--role', type=click.Choice(sorted(UserRole.ALL)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, phone, role):
    """Create a staff user."""
    email = email.strip().lower()
    if db.session.query(User).filter_by(email=email).first():
        click.echo(f"FAIL User with email '{email}' already exists")
        return

    user = User(name=name.strip(), email=email, phone=phone, role=role, active=True)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user {user.id}: {user.name} ({user.email}) with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with roles and active status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found. Create one with 'python -m flask users create'.")
        return

    click.echo(f"{'ID':<6} {'Name':<24} {'Email':<32} {'Role':<10} {'Active'}")
    click.echo("-"*80)
    for user in users:
        click.echo(
            f"{user.id:<6} {user.name:<24} {user.email:<32} {user.role:<10} "
            f"{'yes' if user.active else 'no'}"
        )


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--category', help='Filter by category')
def list_permissions_cli(role, category):
    """List capabilities, optionally filtered by role or category."""
    perms = PERMISSION_DEFINITIONS
    if role:
        if role not in UserRole.ALL:
            click.echo(f"FAIL Role '{role}' not found")
            return
        granted = get_role_permissions(role)
        perms = [p for p in perms if p[0] in granted]
        click.echo(f"Permissions for role: {role.upper()}")
    if category:
        perms = [p for p in perms if p[3] == category]

    click.echo(f"{'Code':<20} {'Name':<24} {'Category'}")
    click.echo("-"*60)
    for code, name, _description, cat in perms:
        click.echo(f"{code:<20} {name:<24} {cat}")
    click.echo(f"\n Total: {len(perms)} permissions")


@perms_group.command('check')
@click.argument('user_id', type=int)
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(user_id, permission_code):
    """Check if a user has a specific capability."""
    if get_permission_definition(permission_code) is None:
        click.echo(f"FAIL Unknown permission '{permission_code}'")
        return

    user = db.session.get(User, user_id)
    if not user:
        click.echo(f"FAIL User {user_id} not found")
        return

    if permission_service.user_has_capability(user, permission_code):
        click.echo(f"PASS User {user_id} ({user.role}) HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL User {user_id} ({user.role}) DOES NOT HAVE permission '{permission_code}'")


@click.group('holds')
def holds_group():
    """Hold-expiry scheduler commands."""


@holds_group.command('expire')
@click.option('--now', 'now_raw', default=None, help='Evaluate as of this ISO-8601 time (default: current UTC)')
@click.option('--force', is_flag=True, help='Run even if auto_expire_hold is disabled')
@with_appcontext
def expire_holds_cli(now_raw, force):
    """Release every hold whose token is overdue. Safe to run repeatedly."""
    try:
        now = parse_iso_datetime(now_raw)
    except ValueError:
        raise click.BadParameter("must be an ISO-8601 datetime", param_hint="--now")

    plots = hold_expiry_service.expire_overdue_holds(now=now, force=force)
    for plot in plots:
        click.echo(f"RELEASED plot {plot.id} ({plot.plot_no})")
    click.echo(f"PASS Released {len(plots)} plot(s)")


@holds_group.command('watch')
@click.option('--interval', type=float, default=None, help='Seconds between sweeps (default: HOLD_EXPIRY_INTERVAL_SECONDS)')
@click.option('--max-ticks', type=int, default=None, help='Stop after N sweeps (default: run until interrupted)')
@with_appcontext
def watch_holds_cli(interval, max_ticks):
    """
    Run the hold-expiry sweep in a loop.

    A failing tick is logged and rolled back; the next tick re-evaluates
    everything, so nothing is lost.
    """
    if interval is None:
        interval = current_app.config["HOLD_EXPIRY_INTERVAL_SECONDS"]
    if interval < 0:
        raise click.BadParameter("must be >= 0", param_hint="--interval")

    click.echo(f"START Watching holds every {interval}s")
    ticks = 0
    try:
        while max_ticks is None or ticks < max_ticks:
            ticks += 1
            try:
                plots = hold_expiry_service.expire_overdue_holds()
            except Exception:
                db.session.rollback()
                current_app.logger.exception("Hold expiry tick %d failed", ticks)
            else:
                if plots:
                    click.echo(f"{to_utc_z(plots[0].last_status_change_at)} released {len(plots)} plot(s)")
            finally:
                db.session.remove()

            if max_ticks is None or ticks < max_ticks:
                time.sleep(interval)
    except KeyboardInterrupt:
        click.echo("STOP Interrupted")

    click.echo(f"PASS Completed {ticks} tick(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(holds_group)
