# Overview: Service-layer operations for boxes; encapsulates business logic and database work.

from __future__ import annotations

import secrets
import string

from flask import current_app

from ..errors import OrganizerError
from ..extensions import db
from ..models import Box, Location, QRCode
from ..validation import ModelValidationPolicy
from . import qr_code_service
from .location_service import LocationNotFoundError
from .qr_code_service import WorkspaceMismatchError


BOX_SHORT_ID_LENGTH = 10
BOX_SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits

DEFAULT_PAGE_SIZE = 50

LIKE_ESCAPE = "\\"

# qr_code_id is accepted on input but stored on the qr_codes row.
BOX_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "tags", "location_id"},
    required_on_create={"name"},
    passthrough_fields={"workspace_id", "qr_code_id"},
)

BOX_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "tags", "location_id"},
    passthrough_fields={"qr_code_id"},
)


class BoxNotFoundError(OrganizerError):
    status_code = 404
    default_message = "Box not found"


def _generate_short_id() -> str:
    while True:
        candidate = "".join(secrets.choice(BOX_SHORT_ID_ALPHABET) for _ in range(BOX_SHORT_ID_LENGTH))
        if not db.session.query(Box.id).filter_by(short_id=candidate).first():
            return candidate


def _escape_like(text: str) -> str:
    """Match % and _ literally in user search text."""
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _require_location(workspace_id: int, location_id: int) -> Location:
    location = db.session.query(Location).filter_by(id=location_id).first()
    if location is None or location.is_deleted:
        raise LocationNotFoundError()
    if location.workspace_id != workspace_id:
        current_app.logger.warning(
            "Cross-workspace location reference rejected: location=%s workspace=%s",
            location_id,
            workspace_id,
        )
        raise WorkspaceMismatchError("Location belongs to a different workspace")
    return location


def get_workspace_id(box_id: int) -> int:
    row = db.session.query(Box.workspace_id).filter_by(id=box_id).first()
    if row is None:
        raise BoxNotFoundError()
    return row.workspace_id


def get_box(workspace_id: int, box_id: int) -> Box:
    box = db.session.query(Box).filter_by(workspace_id=workspace_id, id=box_id).first()
    if box is None:
        raise BoxNotFoundError()
    return box


def list_boxes(
    workspace_id: int,
    q: str | None = None,
    location_id: int | None = None,
    is_assigned: bool | None = None,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
) -> list[Box]:
    """
    Boxes of a workspace, newest first.

    q matches name, description or any tag, case-insensitively.
    is_assigned filters on whether the box sits in a location.
    """
    query = db.session.query(Box).filter(Box.workspace_id == workspace_id)

    if q:
        pattern = f"%{_escape_like(q.strip())}%"
        query = query.filter(
            db.or_(
                Box.name.ilike(pattern, escape=LIKE_ESCAPE),
                Box.description.ilike(pattern, escape=LIKE_ESCAPE),
                db.cast(Box.tags, db.String).ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if location_id is not None:
        query = query.filter(Box.location_id == location_id)
    if is_assigned is True:
        query = query.filter(Box.location_id.isnot(None))
    elif is_assigned is False:
        query = query.filter(Box.location_id.is_(None))

    return (
        query.order_by(Box.created_at.desc(), Box.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def create_box(
    workspace_id: int,
    name: str,
    description: str | None = None,
    tags: list[str] | None = None,
    location_id: int | None = None,
    qr_code_id: int | None = None,
) -> Box:
    """
    Insert a box and optionally bind a QR code to it.

    The box insert and the QR assignment share one transaction: if the code
    cannot be assigned, no box is created.
    """
    try:
        if location_id is not None:
            _require_location(workspace_id, location_id)

        box = Box(
            workspace_id=workspace_id,
            short_id=_generate_short_id(),
            name=name,
            description=description,
            tags=list(tags or []),
            location_id=location_id,
        )
        db.session.add(box)
        db.session.flush()

        if qr_code_id is not None:
            qr_code_service.assign(qr_code_id, box.id, workspace_id, commit=False)

        db.session.commit()
    except OrganizerError:
        db.session.rollback()
        raise

    current_app.logger.info("Box created: workspace=%s box=%s", workspace_id, box.id)
    return box


def update_box(workspace_id: int, box_id: int, patch: dict) -> Box:
    """
    Partial update.

    A "qr_code_id" key only touches the qr_codes table: None detaches the
    current code, another id swaps the current code for that one.
    """
    box = get_box(workspace_id, box_id)
    patch = dict(patch)
    has_qr_change = "qr_code_id" in patch
    qr_code_id = patch.pop("qr_code_id", None)

    try:
        if patch.get("location_id") is not None:
            _require_location(workspace_id, patch["location_id"])

        for key, value in patch.items():
            setattr(box, key, value)

        if has_qr_change:
            current = db.session.query(QRCode).filter_by(box_id=box.id).first()
            if qr_code_id is None:
                qr_code_service.release_for_box(box.id, commit=False)
            elif current is None or current.id != qr_code_id:
                qr_code_service.release_for_box(box.id, commit=False)
                qr_code_service.assign(qr_code_id, box.id, workspace_id, commit=False)

        db.session.commit()
    except OrganizerError:
        db.session.rollback()
        raise

    return box


def delete_box(workspace_id: int, box_id: int) -> None:
    """Release the box's QR code back to generated, then delete the box."""
    box = get_box(workspace_id, box_id)
    released = qr_code_service.release_for_box(box.id, commit=False)
    db.session.delete(box)
    db.session.commit()

    current_app.logger.info(
        "Box deleted: workspace=%s box=%s released_qr=%s",
        workspace_id,
        box_id,
        released.short_id if released is not None else None,
    )


def check_duplicate_name(workspace_id: int, name: str, exclude_box_id: int | None = None) -> dict:
    query = db.session.query(Box).filter(
        Box.workspace_id == workspace_id,
        db.func.lower(Box.name) == name.strip().lower(),
    )
    if exclude_box_id is not None:
        query = query.filter(Box.id != exclude_box_id)
    count = query.count()
    return {"is_duplicate": count > 0, "count": count}
