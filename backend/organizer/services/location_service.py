# Overview: Service-layer operations for the location hierarchy; encapsulates business logic and database work.

"""
Location Hierarchy Service

WHY: Locations form a tree (Garaż > Półka A > ...) that is stored flat. Each
row carries a materialized path and nothing else; parent_id is derived by
matching get_parent_path(path) against the other rows of the workspace.

DESIGN:
- Every read loads all live locations of ONE workspace with a single
  equality-filtered query, then filters in memory. No hierarchical predicate
  is ever sent to the database.
- Structural rules are enforced here, not by the database:
    depth <= MAX_DEPTH, unique live path per workspace, no cycles.
  The partial unique index on (workspace_id, path) is the backstop for two
  concurrent creates racing past the sibling check.
- Deleting a location cascades: the location and all of its live
  descendants are soft-deleted and every box in any of them becomes
  unassigned, in one commit. Rows are only hard-deleted together with their
  workspace (see cascade_service).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import OrganizerError
from ..extensions import db
from ..models import Box, Location
from ..validation import ValidationError
from .concurrency import atomic
from .location_paths import (
    MAX_DEPTH,
    ROOT_SEGMENT,
    build_path,
    get_parent_path,
    is_descendant_path,
    is_direct_child_path,
    normalize_name,
    path_depth,
    rebase_path,
    replace_last_segment,
)


LOCATION_NAME_MAX = 64
LOCATION_DESCRIPTION_MAX = 500

# Marks "not provided" on partial updates, where None means "clear".
UNSET = object()


class ParentNotFoundError(OrganizerError):
    status_code = 404
    default_message = "Parent location not found"


class MaxDepthExceededError(OrganizerError):
    status_code = 400
    default_message = f"Locations cannot be nested deeper than {MAX_DEPTH} levels"


class SiblingConflictError(OrganizerError):
    status_code = 409
    default_message = "A location with this name already exists at this level"


class CircularHierarchyError(OrganizerError):
    status_code = 400
    default_message = "A location cannot be placed under itself"


class LocationNotFoundError(OrganizerError):
    status_code = 404
    default_message = "Location not found"


@dataclass
class LocationNode:
    """A live location plus its derived parent id."""
    location: Location
    parent_id: int | None

    def to_dict(self) -> dict:
        return self.location.to_dict(parent_id=self.parent_id)


@dataclass
class DeletionResult:
    location_id: int
    deleted_location_ids: list[int] = field(default_factory=list)
    unassigned_box_count: int = 0

    def to_dict(self) -> dict:
        return {
            "location_id": self.location_id,
            "deleted_location_ids": list(self.deleted_location_ids),
            "unassigned_box_count": self.unassigned_box_count,
        }


# ---------------------------------------------------------------------------
# In-memory tree queries (operate on one workspace-wide fetch)
# ---------------------------------------------------------------------------

def get_children_of(rows: list[Location], path: str) -> list[Location]:
    """Direct children only: path + "." + exactly one segment."""
    return [row for row in rows if is_direct_child_path(row.path, path)]


def get_all_descendants_of(rows: list[Location], path: str) -> list[Location]:
    """Every row below path, at any depth."""
    return [row for row in rows if is_descendant_path(row.path, path)]


def _fetch_live(workspace_id: int) -> list[Location]:
    return (
        db.session.query(Location)
        .filter_by(workspace_id=workspace_id, is_deleted=False)
        .order_by(Location.path)
        .all()
    )


def _derive_parent_id(by_path: dict[str, Location], path: str) -> int | None:
    parent = by_path.get(get_parent_path(path))
    return parent.id if parent is not None else None


def _to_nodes(rows: list[Location], selected: list[Location]) -> list[LocationNode]:
    by_path = {row.path: row for row in rows}
    selected = sorted(selected, key=lambda row: (row.name.casefold(), row.id))
    return [LocationNode(row, _derive_parent_id(by_path, row.path)) for row in selected]


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    name = name.strip()
    if len(name) > LOCATION_NAME_MAX:
        raise ValidationError(f"name exceeds max length {LOCATION_NAME_MAX}")
    return name


def _clean_description(description) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    description = description.strip()
    if len(description) > LOCATION_DESCRIPTION_MAX:
        raise ValidationError(f"description exceeds max length {LOCATION_DESCRIPTION_MAX}")
    return description or None


def _slug_for(name: str) -> str:
    slug = normalize_name(name)
    if not slug:
        raise ValidationError("name must contain at least one letter or digit")
    return slug


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_locations(workspace_id: int, parent_id: int | None = None) -> list[LocationNode]:
    """
    Live locations of a workspace, one level at a time.

    Without parent_id: root-level locations (root.<slug>).
    With parent_id: direct children of that location.

    Raises ParentNotFoundError if parent_id is not a live location of the
    workspace.
    """
    rows = _fetch_live(workspace_id)

    if parent_id is None:
        selected = [row for row in rows if path_depth(row.path) == 2]
    else:
        parent = next((row for row in rows if row.id == parent_id), None)
        if parent is None:
            raise ParentNotFoundError()
        selected = get_children_of(rows, parent.path)

    return _to_nodes(rows, selected)


def get_location(workspace_id: int, location_id: int) -> LocationNode:
    location = db.session.query(Location).filter_by(
        id=location_id,
        workspace_id=workspace_id,
        is_deleted=False,
    ).first()
    if location is None:
        raise LocationNotFoundError()

    parent = db.session.query(Location).filter_by(
        workspace_id=workspace_id,
        path=get_parent_path(location.path),
        is_deleted=False,
    ).first()
    return LocationNode(location, parent.id if parent is not None else None)


def get_workspace_id(location_id: int) -> int:
    """Owning workspace of a live location; routes check membership against it."""
    row = db.session.query(Location.workspace_id).filter_by(id=location_id, is_deleted=False).first()
    if row is None:
        raise LocationNotFoundError()
    return row.workspace_id


def get_location_tree(workspace_id: int) -> list[dict]:
    """Nested {"location": dto, "children": [...]} forest, siblings by name."""
    rows = _fetch_live(workspace_id)
    by_path = {row.path: row for row in rows}

    children: dict[str | None, list[Location]] = {}
    for row in rows:
        parent = by_path.get(get_parent_path(row.path))
        children.setdefault(parent.path if parent else None, []).append(row)

    def _build(row: Location, parent_id: int | None) -> dict:
        kids = sorted(children.get(row.path, []), key=lambda r: (r.name.casefold(), r.id))
        return {
            "location": row.to_dict(parent_id=parent_id),
            "children": [_build(kid, row.id) for kid in kids],
        }

    roots = sorted(children.get(None, []), key=lambda r: (r.name.casefold(), r.id))
    return [_build(row, None) for row in roots]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_location(
    workspace_id: int,
    name: str,
    parent_id: int | None = None,
    description: str | None = None,
) -> LocationNode:
    """
    Create a location under parent_id (or at the top level).

    The stored name keeps the original characters; only the path segment is
    normalized ("Półka A" -> "polka_a").

    Raises:
        ParentNotFoundError: parent_id is not a live location of the workspace
        ValidationError: bad name/description, or a name with no usable characters
        MaxDepthExceededError: the new location would be deeper than MAX_DEPTH
        CircularHierarchyError: the new path would contain its own parent
        SiblingConflictError: a live location already has the same path
    """
    name = _clean_name(name)
    description = _clean_description(description)

    rows = _fetch_live(workspace_id)

    parent = None
    if parent_id is not None:
        parent = next((row for row in rows if row.id == parent_id), None)
        if parent is None:
            raise ParentNotFoundError()
    parent_path = parent.path if parent is not None else ROOT_SEGMENT

    slug = _slug_for(name)

    if path_depth(parent_path) + 1 > MAX_DEPTH:
        raise MaxDepthExceededError()

    candidate = build_path(parent.path if parent is not None else None, slug)

    # Only reachable through a forged or corrupted parent path.
    if candidate == parent_path or is_descendant_path(parent_path, candidate):
        raise CircularHierarchyError()

    if any(row.path == candidate for row in rows):
        raise SiblingConflictError()

    location = Location(
        workspace_id=workspace_id,
        name=name,
        description=description,
        path=candidate,
        is_deleted=False,
    )
    db.session.add(location)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost the race against a concurrent create of the same sibling.
        db.session.rollback()
        raise SiblingConflictError()

    return LocationNode(location, parent.id if parent is not None else None)


def update_location(
    workspace_id: int,
    location_id: int,
    name=UNSET,
    description=UNSET,
) -> LocationNode:
    """
    Rename and/or re-describe a location.

    A rename regenerates the last path segment and rebases every live
    descendant onto the new prefix in the same commit, so children keep
    resolving their parent.
    """
    rows = _fetch_live(workspace_id)
    location = next((row for row in rows if row.id == location_id), None)
    if location is None:
        raise LocationNotFoundError()

    # Validate every field before the row is touched.
    if description is not UNSET:
        description = _clean_description(description)
    if name is not UNSET:
        name = _clean_name(name)
        slug = _slug_for(name)

    if description is not UNSET:
        location.description = description

    if name is not UNSET:
        old_path = location.path
        new_path = replace_last_segment(old_path, slug)

        if new_path != old_path:
            if any(row.path == new_path for row in rows if row.id != location.id):
                db.session.rollback()
                raise SiblingConflictError()
            for descendant in get_all_descendants_of(rows, old_path):
                descendant.path = rebase_path(descendant.path, old_path, new_path)
            location.path = new_path
        location.name = name

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise SiblingConflictError()

    return get_location(workspace_id, location_id)


def delete_location(workspace_id: int, location_id: int) -> DeletionResult:
    """
    Soft-delete a location together with all of its live descendants.

    Every box whose location_id points at any of the deleted locations is
    set back to unassigned (location_id = NULL). Nothing is visible to other
    requests until the single commit at the end.

    Raises LocationNotFoundError if the location is unknown, belongs to a
    different workspace, or is already deleted.
    """
    rows = _fetch_live(workspace_id)
    target = next((row for row in rows if row.id == location_id), None)
    if target is None:
        raise LocationNotFoundError()

    affected = [target] + get_all_descendants_of(rows, target.path)
    affected_ids = [row.id for row in affected]

    with atomic():
        unassigned = (
            db.session.query(Box)
            .filter(Box.workspace_id == workspace_id, Box.location_id.in_(affected_ids))
            .update({Box.location_id: None}, synchronize_session=False)
        )
        for row in affected:
            row.is_deleted = True

    current_app.logger.info(
        "Location deleted: workspace=%s location=%s cascaded=%d unassigned_boxes=%d",
        workspace_id,
        location_id,
        len(affected_ids) - 1,
        unassigned,
    )
    return DeletionResult(
        location_id=location_id,
        deleted_location_ids=affected_ids,
        unassigned_box_count=unassigned,
    )
