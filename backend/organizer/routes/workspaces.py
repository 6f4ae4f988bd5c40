# Overview: Flask API routes for workspace operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import OrganizerError
from ..services import cascade_service, tenant_service, workspace_service


workspaces_bp = Blueprint("workspaces", __name__, url_prefix="/api/workspaces")


@workspaces_bp.get("")
@require_auth
def list_workspaces():
    workspaces = workspace_service.list_user_workspaces(g.current_user.id)
    return jsonify([w.to_dict() for w in workspaces]), 200


@workspaces_bp.post("")
@require_auth
def create_workspace():
    data = request.get_json(silent=True) or {}
    try:
        workspace = workspace_service.create_workspace(g.current_user.id, data.get("name"))
        return jsonify(workspace.to_dict()), 201
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to create workspace")
        return jsonify({"error": "Internal server error"}), 500


@workspaces_bp.get("/<int:workspace_id>")
@require_auth
def get_workspace(workspace_id: int):
    try:
        membership = tenant_service.require_workspace_member(workspace_id, g.current_user.id)
        workspace = workspace_service.get_workspace(workspace_id)
        payload = workspace.to_dict()
        payload["role"] = membership.role
        return jsonify(payload), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@workspaces_bp.patch("/<int:workspace_id>")
@require_auth
def update_workspace(workspace_id: int):
    data = request.get_json(silent=True) or {}
    try:
        workspace = workspace_service.update_workspace(workspace_id, g.current_user.id, data.get("name"))
        return jsonify(workspace.to_dict()), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to update workspace")
        return jsonify({"error": "Internal server error"}), 500


@workspaces_bp.delete("/<int:workspace_id>")
@require_auth
def delete_workspace(workspace_id: int):
    """
    Delete a workspace with all of its locations, boxes, QR codes and
    memberships. Owner only.
    """
    try:
        summary = cascade_service.delete_workspace(workspace_id, g.current_user.id)
        return jsonify({
            "message": "Workspace deleted",
            "workspace_id": workspace_id,
            "summary": summary.to_dict(),
        }), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to delete workspace")
        return jsonify({"error": "Internal server error"}), 500
