# Overview: Service-layer operations for workspaces; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app

from ..errors import OrganizerError
from ..extensions import db
from ..models import Workspace, WorkspaceMember
from ..validation import ValidationError


WORKSPACE_NAME_MAX = 64


class WorkspaceNotFoundError(OrganizerError):
    status_code = 404
    default_message = "Workspace not found"


class WorkspaceOwnershipError(OrganizerError):
    status_code = 403
    default_message = "Only the workspace owner can perform this action"


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    if len(name) > WORKSPACE_NAME_MAX:
        raise ValidationError(f"name exceeds max length {WORKSPACE_NAME_MAX}")
    return name


def create_workspace(owner_id: int, name: str) -> Workspace:
    """Create a workspace and its owner membership in one transaction."""
    workspace = Workspace(owner_id=owner_id, name=_clean_name(name))
    db.session.add(workspace)
    db.session.flush()
    db.session.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner_id, role="owner"))
    db.session.commit()

    current_app.logger.info("Workspace created: id=%s owner=%s", workspace.id, owner_id)
    return workspace


def list_user_workspaces(user_id: int) -> list[Workspace]:
    return (
        db.session.query(Workspace)
        .join(WorkspaceMember, WorkspaceMember.workspace_id == Workspace.id)
        .filter(WorkspaceMember.user_id == user_id)
        .order_by(Workspace.created_at.desc(), Workspace.id.desc())
        .all()
    )


def get_workspace(workspace_id: int) -> Workspace:
    workspace = db.session.query(Workspace).filter_by(id=workspace_id).first()
    if workspace is None:
        raise WorkspaceNotFoundError()
    return workspace


def require_owner(workspace_id: int, user_id: int) -> Workspace:
    workspace = get_workspace(workspace_id)
    if workspace.owner_id != user_id:
        current_app.logger.warning(
            "Owner-only action rejected: user=%s workspace=%s", user_id, workspace_id
        )
        raise WorkspaceOwnershipError()
    return workspace


def update_workspace(workspace_id: int, user_id: int, name: str) -> Workspace:
    workspace = require_owner(workspace_id, user_id)
    workspace.name = _clean_name(name)
    db.session.commit()
    return workspace
