# Overview: Pytest coverage for the all-or-nothing workspace cascade and location reassignment.

import pytest
from sqlalchemy.exc import OperationalError

from organizer.extensions import db
from organizer.models import Box, Location, QRCode, Workspace, WorkspaceMember
from organizer.services import cascade_service, qr_code_service
from organizer.services.cascade_service import CascadeDeletionError
from organizer.services.workspace_service import WorkspaceNotFoundError, WorkspaceOwnershipError

from conftest import add_member, make_box, make_location


def _populate(workspace, location):
    """Two boxes (one in a location), three codes (one assigned), a soft-deleted location."""
    codes = qr_code_service.generate_batch(workspace.id, 3)
    placed = make_box(workspace, "Elektronika", "BOX0000001", location=location)
    make_box(workspace, "Luźne", "BOX0000002")
    qr_code_service.assign(codes[0].id, placed.id, workspace.id)
    make_location(workspace, "Stare", "root.stare", is_deleted=True)


def _count(model, **filters):
    return db.session.query(model).filter_by(**filters).count()


class TestDeleteWorkspace:
    def test_summary_counts(self, db_session, user_a, user_b, workspace_a, garage, shelf):
        add_member(workspace_a, user_b)
        _populate(workspace_a, shelf)
        workspace_id = workspace_a.id

        summary = cascade_service.delete_workspace(workspace_id, user_a.id)

        assert summary.to_dict() == {
            "workspace_id": workspace_id,
            "released_qr_codes": 1,
            "deleted_boxes": 2,
            "deleted_locations": 3,
            "deleted_qr_codes": 3,
            "deleted_memberships": 2,
            "deleted_workspace": 1,
        }

    def test_nothing_left_behind(self, db_session, user_a, workspace_a, garage):
        _populate(workspace_a, garage)
        workspace_id = workspace_a.id

        cascade_service.delete_workspace(workspace_id, user_a.id)

        assert _count(Box, workspace_id=workspace_id) == 0
        assert _count(Location, workspace_id=workspace_id) == 0
        assert _count(QRCode, workspace_id=workspace_id) == 0
        assert _count(WorkspaceMember, workspace_id=workspace_id) == 0
        assert db.session.get(Workspace, workspace_id) is None

    def test_other_workspace_untouched(self, db_session, user_a, workspace_a, workspace_b, garage):
        other_location = make_location(workspace_b, "Szafa", "root.szafa")
        _populate(workspace_b, other_location)
        workspace_id = workspace_a.id

        cascade_service.delete_workspace(workspace_id, user_a.id)

        assert _count(Box, workspace_id=workspace_b.id) == 2
        assert _count(Location, workspace_id=workspace_b.id) == 2
        assert _count(QRCode, workspace_id=workspace_b.id, status="assigned") == 1

    def test_member_who_is_not_owner(self, db_session, user_b, workspace_a):
        add_member(workspace_a, user_b)
        with pytest.raises(WorkspaceOwnershipError):
            cascade_service.delete_workspace(workspace_a.id, user_b.id)
        assert db.session.get(Workspace, workspace_a.id) is not None

    def test_unknown_workspace(self, db_session, user_a):
        with pytest.raises(WorkspaceNotFoundError):
            cascade_service.delete_workspace(123456, user_a.id)

    def test_failed_step_rolls_everything_back(self, db_session, user_a, workspace_a, garage, monkeypatch):
        _populate(workspace_a, garage)
        workspace_id = workspace_a.id

        def _explode(workspace_id):
            raise OperationalError("DELETE FROM qr_codes", {}, Exception("disk I/O error"))

        steps = list(cascade_service.CASCADE_STEPS)
        name, field_name, _, remaining = steps[3]
        steps[3] = (name, field_name, _explode, remaining)
        monkeypatch.setattr(cascade_service, "CASCADE_STEPS", tuple(steps))

        with pytest.raises(CascadeDeletionError) as excinfo:
            cascade_service.delete_workspace(workspace_id, user_a.id)

        assert excinfo.value.step == "delete_qr_codes"
        assert excinfo.value.to_dict()["step"] == "delete_qr_codes"
        assert excinfo.value.status_code == 500
        assert _count(Box, workspace_id=workspace_id) == 2
        assert _count(Location, workspace_id=workspace_id) == 2
        assert _count(QRCode, workspace_id=workspace_id, status="assigned") == 1
        assert db.session.get(Workspace, workspace_id) is not None

    def test_unverified_step_aborts(self, db_session, user_a, workspace_a, garage, monkeypatch):
        _populate(workspace_a, garage)
        workspace_id = workspace_a.id

        steps = list(cascade_service.CASCADE_STEPS)
        name, field_name, _, remaining = steps[1]
        steps[1] = (name, field_name, lambda workspace_id: 0, remaining)
        monkeypatch.setattr(cascade_service, "CASCADE_STEPS", tuple(steps))

        with pytest.raises(CascadeDeletionError) as excinfo:
            cascade_service.delete_workspace(workspace_id, user_a.id)

        assert excinfo.value.step == "delete_boxes"
        assert _count(QRCode, workspace_id=workspace_id, status="assigned") == 1


class TestLocationReassignment:
    def test_boxes_become_unassigned(self, db_session, workspace_a, garage, shelf):
        box = make_box(workspace_a, "Kable", "BOX0000001", location=shelf)

        result = cascade_service.delete_location_with_reassignment(workspace_a.id, garage.id)

        assert set(result.deleted_location_ids) == {garage.id, shelf.id}
        assert result.unassigned_box_count == 1
        assert db.session.get(Box, box.id).location_id is None
