# Overview: Flask CLI command groups for bootstrap and user administration.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "stockroom:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User administration:
# - python -m flask users list
#   List profiles with resolved role and verification status.
# - python -m flask users create --email a@b.com --name "Ama" --password "Password123" --role MANAGER
#   Create a verified account (prompts if options are omitted).
# - python -m flask users set-role a@b.com STAFF
#   Assign an explicit role.
# - python -m flask users confirm a@b.com
#   Mark an email as verified.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import UserProfile, ROLES
from .services import auth_service
from .services.auth_service import SignUpError
from .services.role_service import resolve_role


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables if they do not exist."""
    db.create_all()
    click.echo("PASS Database tables ready")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User administration commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    profiles = db.session.query(UserProfile).order_by(UserProfile.id.asc()).all()
    if not profiles:
        click.echo("No users found")
        return
    for p in profiles:
        verified = "verified" if p.email_verified else "unverified"
        click.echo(f"{p.id:>4}  {p.email:<40} {p.name:<24} {resolve_role(p):<8} {verified}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default=None)
@with_appcontext
def create_user(email, name, password, role):
    """Create a verified account, optionally with an explicit role."""
    try:
        profile = auth_service.sign_up(email, password, name)
    except SignUpError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    profile.email_verified = True
    if role:
        profile.role = role
    db.session.commit()
    click.echo(f"PASS Created {profile.email} (ID: {profile.id}, role: {resolve_role(profile)})")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice(ROLES))
@with_appcontext
def set_role(email, role):
    profile = auth_service.find_profile(email)
    if profile is None:
        click.echo(f"FAIL No user with email {email}")
        raise SystemExit(1)
    profile.role = role
    db.session.commit()
    click.echo(f"PASS {profile.email} is now {role}")


@users_group.command('confirm')
@click.argument('email')
@with_appcontext
def confirm_user(email):
    profile = auth_service.find_profile(email)
    if profile is None:
        click.echo(f"FAIL No user with email {email}")
        raise SystemExit(1)
    auth_service.confirm_email(email)
    click.echo(f"PASS {profile.email} verified")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
