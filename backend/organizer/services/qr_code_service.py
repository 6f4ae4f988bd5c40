# Overview: Service-layer operations for QR codes; encapsulates business logic and database work.

"""
QR Code Lifecycle

STATES:
    generated  printed label, not bound to anything (box_id IS NULL)
    assigned   bound to exactly one box of the same workspace

TRANSITIONS:
    generate_batch         -> generated
    assign(code, box)      generated -> assigned   (same box again: no-op)
    release(code)          assigned -> generated   (already generated: no-op)
    release_for_box(box)   release whatever code the box holds, if any

The association lives on qr_codes.box_id only; boxes never store a QR id.
"""

from __future__ import annotations

import secrets
import string

from flask import current_app

from ..errors import OrganizerError
from ..extensions import db
from ..models import Box, QRCode, QR_STATUS_ASSIGNED, QR_STATUS_GENERATED, QR_STATUSES
from ..validation import ValidationError
from .concurrency import lock_for_update, run_with_retry


SHORT_ID_PREFIX = "QR-"
SHORT_ID_LENGTH = 6
SHORT_ID_ALPHABET = string.ascii_uppercase + string.digits


class QrCodeNotFoundError(OrganizerError):
    status_code = 404
    default_message = "QR code not found"


class WorkspaceMismatchError(OrganizerError):
    status_code = 403
    default_message = "QR code and box belong to different workspaces"


class QrCodeAlreadyAssignedError(OrganizerError):
    status_code = 409
    default_message = "QR code is already assigned to another box"


def generate_short_id() -> str:
    return SHORT_ID_PREFIX + "".join(
        secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH)
    )


def _unique_short_ids(quantity: int) -> list[str]:
    """
    Draw quantity short ids that collide neither with each other nor with
    existing rows (short ids are globally unique).
    """
    chosen: set[str] = set()
    while len(chosen) < quantity:
        batch = set()
        while len(batch) < quantity - len(chosen):
            candidate = generate_short_id()
            if candidate not in chosen:
                batch.add(candidate)
        taken = {
            row.short_id
            for row in db.session.query(QRCode.short_id).filter(QRCode.short_id.in_(batch)).all()
        }
        chosen |= batch - taken
    return sorted(chosen)


def generate_batch(workspace_id: int, quantity: int) -> list[QRCode]:
    """
    Create quantity unassigned codes for a workspace.

    Bounds on quantity are enforced by the caller.
    """
    def _op():
        codes = [
            QRCode(
                workspace_id=workspace_id,
                short_id=short_id,
                status=QR_STATUS_GENERATED,
                box_id=None,
            )
            for short_id in _unique_short_ids(quantity)
        ]
        db.session.add_all(codes)
        db.session.commit()
        return codes

    codes = run_with_retry(_op)
    current_app.logger.info(
        "QR batch generated: workspace=%s quantity=%d", workspace_id, len(codes)
    )
    return codes


def get_qr_code(qr_code_id: int, *, lock: bool = False) -> QRCode:
    query = db.session.query(QRCode).filter_by(id=qr_code_id)
    if lock:
        query = lock_for_update(query)
    qr_code = query.first()
    if qr_code is None:
        raise QrCodeNotFoundError()
    return qr_code


def get_by_short_id(short_id: str) -> QRCode:
    """Scan lookup. Workspace membership is checked by the caller."""
    qr_code = db.session.query(QRCode).filter_by(short_id=short_id).first()
    if qr_code is None:
        raise QrCodeNotFoundError()
    return qr_code


def list_qr_codes(workspace_id: int, status: str | None = None) -> list[QRCode]:
    query = db.session.query(QRCode).filter_by(workspace_id=workspace_id)
    if status is not None:
        if status not in QR_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(QR_STATUSES)}")
        query = query.filter_by(status=status)
    return query.order_by(QRCode.created_at.desc(), QRCode.id.desc()).all()


def assign(qr_code_id: int, box_id: int, workspace_id: int, *, commit: bool = True) -> QRCode:
    """
    Bind a code to a box.

    Raises:
        QrCodeNotFoundError: unknown code
        BoxNotFoundError: unknown box
        WorkspaceMismatchError: code, box and caller are not all in one workspace
        QrCodeAlreadyAssignedError: code is bound to a different box, or the
            box already carries a different code
    """
    # box_service imports this module
    from .box_service import BoxNotFoundError

    qr_code = get_qr_code(qr_code_id, lock=True)
    box = db.session.query(Box).filter_by(id=box_id).first()
    if box is None:
        raise BoxNotFoundError()

    if qr_code.workspace_id != workspace_id or box.workspace_id != qr_code.workspace_id:
        current_app.logger.warning(
            "Cross-workspace QR assignment rejected: qr=%s (workspace %s) box=%s (workspace %s) caller workspace=%s",
            qr_code.id,
            qr_code.workspace_id,
            box_id,
            box.workspace_id,
            workspace_id,
        )
        raise WorkspaceMismatchError()

    if qr_code.box_id == box_id:
        return qr_code
    if qr_code.box_id is not None:
        raise QrCodeAlreadyAssignedError()

    current = db.session.query(QRCode).filter_by(box_id=box_id).first()
    if current is not None:
        raise QrCodeAlreadyAssignedError("Box already has a QR code assigned")

    qr_code.box_id = box_id
    qr_code.status = QR_STATUS_ASSIGNED

    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return qr_code


def _release(qr_code: QRCode) -> None:
    qr_code.box_id = None
    qr_code.status = QR_STATUS_GENERATED


def release(qr_code_id: int, *, commit: bool = True) -> QRCode:
    """Unbind a code. Releasing an unbound code changes nothing."""
    qr_code = get_qr_code(qr_code_id, lock=True)
    if qr_code.box_id is not None:
        _release(qr_code)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
    return qr_code


def release_for_box(box_id: int, *, commit: bool = True) -> QRCode | None:
    """Release the code bound to box_id, if there is one."""
    qr_code = lock_for_update(db.session.query(QRCode).filter_by(box_id=box_id)).first()
    if qr_code is None:
        return None
    _release(qr_code)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return qr_code
