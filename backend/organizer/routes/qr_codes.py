# Overview: Flask API routes for QR code operations; parses input and returns JSON responses.

import re

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import OrganizerError
from ..services import qr_code_service, tenant_service
from ..validation import ValidationError, required_int


qr_codes_bp = Blueprint("qr_codes", __name__, url_prefix="/api/qr-codes")

SHORT_ID_PATTERN = re.compile(r"^QR-[A-Z0-9]{6}$")


@qr_codes_bp.get("")
@require_auth
def list_qr_codes():
    """GET /api/qr-codes?workspace_id=1[&status=generated|assigned], newest first."""
    try:
        workspace_id = required_int(request.args, "workspace_id")
        tenant_service.require_workspace_member(workspace_id, g.current_user.id)
        codes = qr_code_service.list_qr_codes(workspace_id, status=request.args.get("status") or None)
        return jsonify([code.to_dict() for code in codes]), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@qr_codes_bp.post("/batch")
@require_auth
def generate_batch():
    data = request.get_json(silent=True) or {}
    try:
        workspace_id = required_int(data, "workspace_id")
        quantity = required_int(data, "quantity")
        max_quantity = current_app.config["QR_BATCH_MAX"]
        if quantity < 1 or quantity > max_quantity:
            raise ValidationError(f"quantity must be between 1 and {max_quantity}")
        tenant_service.require_workspace_member(workspace_id, g.current_user.id, write=True)
        codes = qr_code_service.generate_batch(workspace_id, quantity)
        return jsonify([code.to_dict() for code in codes]), 201
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to generate QR codes")
        return jsonify({"error": "Internal server error"}), 500


@qr_codes_bp.get("/<short_id>")
@require_auth
def get_by_short_id(short_id: str):
    """
    Scan lookup. Returns the code and, when assigned, the box it labels.
    """
    try:
        if not SHORT_ID_PATTERN.match(short_id):
            raise ValidationError("Invalid QR code format")
        code = qr_code_service.get_by_short_id(short_id)
        tenant_service.require_workspace_member(code.workspace_id, g.current_user.id)
        payload = code.to_dict()
        payload["box"] = code.box.to_dict() if code.box is not None else None
        return jsonify(payload), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
