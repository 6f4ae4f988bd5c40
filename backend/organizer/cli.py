# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/organizer/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --email owner@example.com --password "Password123"
#
# Workspaces:
# - python -m flask workspaces list [--user-id 1]
# - python -m flask workspaces create --owner-id 1 --name "Dom"
# - python -m flask workspaces delete --workspace-id 1 --yes
#   Runs the full cascade (QR codes released, boxes, locations, QR codes,
#   memberships and the workspace removed).
#
# QR codes:
# - python -m flask qr generate --workspace-id 1 --quantity 20

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import OrganizerError
from .extensions import db
from .models import User, Workspace
from .services import cascade_service, qr_code_service, workspace_service
from .services.auth_service import create_user


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users_cli():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:>4}  {user.email:<40} {status}")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, password):
    """
    Create a new user.

    Password must be 8+ characters with upper case, lower case and a digit.
    """
    try:
        user = create_user(email=email, password=password)
    except OrganizerError as exc:
        click.echo(f"FAIL Failed to create user: {exc.message}")
        return
    click.echo(f"PASS Created user: {user.email} (ID: {user.id})")


@click.group('workspaces')
def workspaces_group():
    """Workspace inspection and maintenance commands."""


@workspaces_group.command('list')
@click.option('--user-id', type=int, help='Only workspaces this user belongs to')
@with_appcontext
def list_workspaces_cli(user_id):
    if user_id is not None:
        workspaces = workspace_service.list_user_workspaces(user_id)
    else:
        workspaces = db.session.query(Workspace).order_by(Workspace.id).all()

    if not workspaces:
        click.echo("No workspaces found.")
        return
    for workspace in workspaces:
        click.echo(f"{workspace.id:>4}  {workspace.name:<40} owner={workspace.owner_id}")


@workspaces_group.command('create')
@click.option('--owner-id', type=int, required=True, help='Owning user ID')
@click.option('--name', required=True, help='Workspace name')
@with_appcontext
def create_workspace_cli(owner_id, name):
    if not db.session.query(User).filter_by(id=owner_id).first():
        click.echo(f"FAIL User ID {owner_id} not found")
        return
    try:
        workspace = workspace_service.create_workspace(owner_id, name)
    except OrganizerError as exc:
        click.echo(f"FAIL {exc.message}")
        return
    click.echo(f"PASS Created workspace: {workspace.name} (ID: {workspace.id})")


@workspaces_group.command('delete')
@click.option('--workspace-id', type=int, required=True, help='Workspace ID')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def delete_workspace_cli(workspace_id, yes):
    """Delete a workspace and everything in it (acts as the owner)."""
    workspace = db.session.query(Workspace).filter_by(id=workspace_id).first()
    if not workspace:
        click.echo(f"FAIL Workspace ID {workspace_id} not found")
        return

    if not yes:
        click.confirm(
            f"WARN This will DELETE workspace '{workspace.name}' and all of its data. Are you sure?",
            abort=True,
        )

    try:
        summary = cascade_service.delete_workspace(workspace.id, workspace.owner_id)
    except OrganizerError as exc:
        current_app.logger.error("CLI workspace delete failed: %s", exc.message)
        click.echo(f"FAIL {exc.message}")
        return

    click.echo(f"PASS Deleted workspace {workspace_id}")
    for key, value in summary.to_dict().items():
        if key != "workspace_id":
            click.echo(f"     {key}: {value}")


@click.group('qr')
def qr_group():
    """QR code commands."""


@qr_group.command('generate')
@click.option('--workspace-id', type=int, required=True, help='Workspace ID')
@click.option('--quantity', type=click.IntRange(min=1), default=10, show_default=True)
@with_appcontext
def generate_qr_cli(workspace_id, quantity):
    max_quantity = current_app.config["QR_BATCH_MAX"]
    if quantity > max_quantity:
        click.echo(f"FAIL quantity cannot exceed {max_quantity}")
        return
    if not db.session.query(Workspace).filter_by(id=workspace_id).first():
        click.echo(f"FAIL Workspace ID {workspace_id} not found")
        return

    codes = qr_code_service.generate_batch(workspace_id, quantity)
    click.echo(f"PASS Generated {len(codes)} QR codes for workspace {workspace_id}")
    for code in codes:
        click.echo(f"     {code.short_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(workspaces_group)
    app.cli.add_command(qr_group)
