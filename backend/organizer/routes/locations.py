# Overview: Flask API routes for location operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import OrganizerError
from ..models import Location
from ..services import cascade_service, location_service, tenant_service
from ..validation import ModelValidationPolicy, optional_int, required_int, validate_payload


locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


LOCATION_UPDATE_POLICY = ModelValidationPolicy(writable_fields={"name", "description"})


def _authorize(workspace_id: int, *, write: bool = False) -> None:
    tenant_service.require_workspace_member(workspace_id, g.current_user.id, write=write)


@locations_bp.get("")
@require_auth
def list_locations():
    """
    GET /api/locations?workspace_id=1[&parent_id=5]

    Top-level locations, or the direct children of parent_id.
    """
    try:
        workspace_id = required_int(request.args, "workspace_id")
        parent_id = optional_int(request.args, "parent_id")
        _authorize(workspace_id)
        nodes = location_service.list_locations(workspace_id, parent_id=parent_id)
        return jsonify([node.to_dict() for node in nodes]), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to list locations")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/tree")
@require_auth
def get_location_tree():
    try:
        workspace_id = required_int(request.args, "workspace_id")
        _authorize(workspace_id)
        return jsonify(location_service.get_location_tree(workspace_id)), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to build location tree")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/<int:location_id>")
@require_auth
def get_location(location_id: int):
    try:
        workspace_id = location_service.get_workspace_id(location_id)
        _authorize(workspace_id)
        node = location_service.get_location(workspace_id, location_id)
        return jsonify(node.to_dict()), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code


@locations_bp.post("")
@require_auth
def create_location():
    """
    POST /api/locations {workspace_id, name, parent_id?, description?}

    404 parent not found, 400 too deep / invalid, 409 duplicate sibling.
    """
    data = request.get_json(silent=True) or {}
    try:
        workspace_id = required_int(data, "workspace_id")
        _authorize(workspace_id, write=True)
        node = location_service.create_location(
            workspace_id,
            data.get("name"),
            parent_id=optional_int(data, "parent_id"),
            description=data.get("description"),
        )
        return jsonify(node.to_dict()), 201
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to create location")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.patch("/<int:location_id>")
@require_auth
def update_location(location_id: int):
    try:
        workspace_id = location_service.get_workspace_id(location_id)
        _authorize(workspace_id, write=True)
        patch = validate_payload(
            model=Location,
            payload=request.get_json(silent=True),
            policy=LOCATION_UPDATE_POLICY,
            partial=True,
        )
        node = location_service.update_location(workspace_id, location_id, **patch)
        return jsonify(node.to_dict()), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to update location")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.delete("/<int:location_id>")
@require_auth
def delete_location(location_id: int):
    """
    Soft-delete the location and its sub-locations; their boxes become
    unassigned.
    """
    try:
        workspace_id = location_service.get_workspace_id(location_id)
        _authorize(workspace_id, write=True)
        result = cascade_service.delete_location_with_reassignment(workspace_id, location_id)
        payload = {"message": "Location deleted"}
        payload.update(result.to_dict())
        return jsonify(payload), 200
    except OrganizerError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except Exception:
        current_app.logger.exception("Failed to delete location")
        return jsonify({"error": "Internal server error"}), 500
