# Overview: Flask API routes for box operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import OrganizerError
from ..models import Box
from ..services import box_service, tenant_service
from ..services.box_service import BOX_CREATE_POLICY, BOX_UPDATE_POLICY
from ..validation import ValidationError, optional_int, parse_bool_arg, required_int, validate_payload


boxes_bp = Blueprint("boxes", __name__, url_prefix="/api/boxes")


def _authorize(workspace_id: int, *, write: bool = False) -> None:
    tenant_service.require_workspace_member(workspace_id, g.current_user.id, write=write)


def _page_args() -> tuple[int, int]:
    limit = optional_int(request.args, "limit")
    offset = optional_int(request.args, "offset") or 0
    if limit is None:
        limit = box_service.DEFAULT_PAGE_SIZE
    max_limit = current_app.config["BOX_PAGE_MAX"]
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")
    if offset < 0:
        raise ValidationError("offset must be >= 0")
    return limit, offset


@boxes_bp.get("")
@require_auth
def list_boxes():
    """
    GET /api/boxes?workspace_id=1[&q=...][&location_id=..][&is_assigned=true|false][&limit=50][&offset=0]
    """
    try:
        workspace_id = required_int(request.args, "workspace_id")
        _authorize(workspace_id)
        limit, offset = _page_args()
        boxes = box_service.list_boxes(
            workspace_id,
            q=request.args.get("q") or None,
            location_id=optional_int(request.args, "location_id"),
            is_assigned=parse_bool_arg("is_assigned", request.args.get("is_assigned")),
            limit=limit,
            offset=offset,
        )
        return jsonify([box.to_dict() for box in boxes]), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to list boxes")
        return jsonify({"error": "Internal server error"}), 500


@boxes_bp.post("")
@require_auth
def create_box():
    """
    POST /api/boxes {workspace_id, name, description?, tags?, location_id?, qr_code_id?}
    """
    data = request.get_json(silent=True) or {}
    try:
        workspace_id = required_int(data, "workspace_id")
        _authorize(workspace_id, write=True)
        patch = validate_payload(model=Box, payload=data, policy=BOX_CREATE_POLICY, partial=False)
        box = box_service.create_box(
            workspace_id,
            qr_code_id=optional_int(data, "qr_code_id"),
            **patch,
        )
        return jsonify(box.to_dict()), 201
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to create box")
        return jsonify({"error": "Internal server error"}), 500


@boxes_bp.post("/check-duplicate")
@require_auth
def check_duplicate():
    data = request.get_json(silent=True) or {}
    try:
        workspace_id = required_int(data, "workspace_id")
        _authorize(workspace_id)
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")
        result = box_service.check_duplicate_name(
            workspace_id,
            name,
            exclude_box_id=optional_int(data, "exclude_box_id"),
        )
        return jsonify(result), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@boxes_bp.get("/<int:box_id>")
@require_auth
def get_box(box_id: int):
    try:
        workspace_id = box_service.get_workspace_id(box_id)
        _authorize(workspace_id)
        return jsonify(box_service.get_box(workspace_id, box_id).to_dict()), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@boxes_bp.patch("/<int:box_id>")
@require_auth
def update_box(box_id: int):
    """
    Partial update. "qr_code_id": null detaches the current QR code,
    an id swaps it; the id is stored on the QR code, not on the box.
    """
    data = request.get_json(silent=True) or {}
    try:
        workspace_id = box_service.get_workspace_id(box_id)
        _authorize(workspace_id, write=True)
        patch = validate_payload(model=Box, payload=data, policy=BOX_UPDATE_POLICY, partial=True)
        if "qr_code_id" in data:
            patch["qr_code_id"] = optional_int(data, "qr_code_id")
        box = box_service.update_box(workspace_id, box_id, patch)
        return jsonify(box.to_dict()), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to update box")
        return jsonify({"error": "Internal server error"}), 500


@boxes_bp.delete("/<int:box_id>")
@require_auth
def delete_box(box_id: int):
    try:
        workspace_id = box_service.get_workspace_id(box_id)
        _authorize(workspace_id, write=True)
        box_service.delete_box(workspace_id, box_id)
        return jsonify({"message": "Box deleted", "box_id": box_id}), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to delete box")
        return jsonify({"error": "Internal server error"}), 500
