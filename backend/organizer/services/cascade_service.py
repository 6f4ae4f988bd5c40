# Overview: Service-layer orchestration of ordered, all-or-nothing deletions across workspace data.

"""
Cascade Deletion

WHY: A workspace owns locations, boxes, QR codes and memberships, and the
rows reference each other (qr_codes.box_id -> boxes, boxes.location_id ->
locations). Removing them in the wrong order leaves codes pointing at deleted
boxes or boxes pointing at deleted locations, so the order below is part of
the contract:

    1. release_qr_codes     every assigned code goes back to generated
    2. delete_boxes
    3. delete_locations     hard delete, soft-deleted rows included
    4. delete_qr_codes
    5. delete_memberships
    6. delete_workspace

Each step is verified (no matching rows left) before the next one starts.
Everything runs in one transaction: a failing step rolls the whole cascade
back and surfaces as a single CascadeDeletionError naming that step. Nothing
is retried automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import OrganizerError
from ..extensions import db
from ..models import Box, Location, QRCode, Workspace, WorkspaceMember, QR_STATUS_GENERATED
from . import location_service
from .location_service import DeletionResult
from .workspace_service import require_owner


class CascadeDeletionError(OrganizerError):
    status_code = 500
    default_message = "Workspace deletion failed"

    def __init__(self, step: str, message: str | None = None):
        self.step = step
        super().__init__(message or f"Workspace deletion failed at step '{step}'")

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["step"] = self.step
        return payload


@dataclass
class CascadeSummary:
    workspace_id: int
    released_qr_codes: int = 0
    deleted_boxes: int = 0
    deleted_locations: int = 0
    deleted_qr_codes: int = 0
    deleted_memberships: int = 0
    deleted_workspace: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _release_qr_codes(workspace_id: int) -> int:
    return (
        db.session.query(QRCode)
        .filter(QRCode.workspace_id == workspace_id, QRCode.box_id.isnot(None))
        .update(
            {QRCode.box_id: None, QRCode.status: QR_STATUS_GENERATED},
            synchronize_session=False,
        )
    )


def _remaining_assigned_qr_codes(workspace_id: int) -> int:
    return (
        db.session.query(QRCode)
        .filter(QRCode.workspace_id == workspace_id, QRCode.box_id.isnot(None))
        .count()
    )


def _delete_rows(model, column: str):
    def _run(workspace_id: int) -> int:
        return (
            db.session.query(model)
            .filter_by(**{column: workspace_id})
            .delete(synchronize_session=False)
        )
    return _run


def _count_rows(model, column: str):
    def _run(workspace_id: int) -> int:
        return db.session.query(model).filter_by(**{column: workspace_id}).count()
    return _run


# (step name, summary field, action, remaining-rows check)
CASCADE_STEPS = (
    ("release_qr_codes", "released_qr_codes", _release_qr_codes, _remaining_assigned_qr_codes),
    ("delete_boxes", "deleted_boxes",
     _delete_rows(Box, "workspace_id"), _count_rows(Box, "workspace_id")),
    ("delete_locations", "deleted_locations",
     _delete_rows(Location, "workspace_id"), _count_rows(Location, "workspace_id")),
    ("delete_qr_codes", "deleted_qr_codes",
     _delete_rows(QRCode, "workspace_id"), _count_rows(QRCode, "workspace_id")),
    ("delete_memberships", "deleted_memberships",
     _delete_rows(WorkspaceMember, "workspace_id"), _count_rows(WorkspaceMember, "workspace_id")),
    ("delete_workspace", "deleted_workspace",
     _delete_rows(Workspace, "id"), _count_rows(Workspace, "id")),
)


def delete_workspace(workspace_id: int, user_id: int) -> CascadeSummary:
    """
    Remove a workspace and everything it owns.

    Raises:
        WorkspaceNotFoundError: unknown workspace
        WorkspaceOwnershipError: user_id is not the owner
        CascadeDeletionError: a step failed; nothing was deleted
    """
    require_owner(workspace_id, user_id)

    summary = CascadeSummary(workspace_id=workspace_id)
    step = None
    try:
        for step, field_name, action, remaining in CASCADE_STEPS:
            affected = action(workspace_id)
            if remaining(workspace_id):
                raise CascadeDeletionError(step)
            setattr(summary, field_name, affected)
            current_app.logger.info(
                "Workspace %s cascade step %s: %d rows", workspace_id, step, affected
            )
        db.session.commit()
    except CascadeDeletionError:
        db.session.rollback()
        current_app.logger.error("Workspace %s cascade aborted at step %s", workspace_id, step)
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Workspace %s cascade failed at step %s", workspace_id, step)
        raise CascadeDeletionError(step) from exc

    current_app.logger.info("Workspace deleted: %s", summary.to_dict())
    return summary


def delete_location_with_reassignment(workspace_id: int, location_id: int) -> DeletionResult:
    """Soft-delete a location subtree and unassign its boxes (see location_service)."""
    return location_service.delete_location(workspace_id, location_id)
