"""
Workspace Scoping Helpers

WHY: Every location, box and QR code belongs to exactly one workspace, and a
caller may only touch workspaces they are a member of. Routes resolve the
workspace from client input and validate it here before calling any other
service.

SECURITY INVARIANTS:
1. Every authenticated request has g.current_user set
2. Workspace IDs from client input are validated against workspace_members
3. Unknown and foreign workspaces produce the same error (no existence leak)

USAGE:
    from organizer.services.tenant_service import require_workspace_member

    membership = require_workspace_member(workspace_id, g.current_user.id)
"""

from flask import current_app

from ..errors import OrganizerError
from ..extensions import db
from ..models import WorkspaceMember


READ_ONLY_ROLE = "read_only"


class WorkspaceAccessError(OrganizerError):
    """Raised when a user references a workspace they do not belong to."""

    status_code = 403
    default_message = "Access to this workspace is denied"


def get_membership(workspace_id: int, user_id: int) -> WorkspaceMember | None:
    return db.session.query(WorkspaceMember).filter_by(
        workspace_id=workspace_id,
        user_id=user_id,
    ).first()


def require_workspace_member(workspace_id: int, user_id: int, *, write: bool = False) -> WorkspaceMember:
    """
    Validate that user_id is a member of workspace_id.

    write=True additionally rejects read_only members.
    Returns the membership row.

    Raises:
        WorkspaceAccessError if the workspace does not exist or the user is
        not a member of it.
    """
    membership = get_membership(workspace_id, user_id)
    if membership is None:
        current_app.logger.warning(
            "Workspace access denied: user=%s workspace=%s", user_id, workspace_id
        )
        raise WorkspaceAccessError()
    if write and membership.role == READ_ONLY_ROLE:
        raise WorkspaceAccessError("Read-only members cannot modify this workspace")
    return membership
