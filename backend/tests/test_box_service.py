# Overview: Pytest coverage for box CRUD, search and QR code binding through the box service.

import re

import pytest

from organizer.extensions import db
from organizer.models import Box, QRCode
from organizer.services import box_service, qr_code_service
from organizer.services.box_service import BoxNotFoundError
from organizer.services.location_service import LocationNotFoundError
from organizer.services.qr_code_service import QrCodeAlreadyAssignedError, WorkspaceMismatchError

from conftest import make_box, make_location


class TestCreateBox:
    def test_minimal_box_is_unassigned(self, db_session, workspace_a):
        box = box_service.create_box(workspace_a.id, "Elektronika")

        assert re.match(r"^[A-Z0-9]{10}$", box.short_id)
        assert box.location_id is None
        assert box.tags == []
        assert box.to_dict()["qr_code"] is None
        assert box.to_dict()["location"] is None

    def test_with_location_and_tags(self, db_session, workspace_a, shelf):
        box = box_service.create_box(
            workspace_a.id,
            "Kable",
            description="USB i HDMI",
            tags=["kable", "usb"],
            location_id=shelf.id,
        )

        payload = box.to_dict()
        assert payload["location_id"] == shelf.id
        assert payload["location"]["path"] == "root.garaz.polka_a"
        assert payload["tags"] == ["kable", "usb"]

    def test_with_qr_code(self, db_session, workspace_a):
        code = qr_code_service.generate_batch(workspace_a.id, 1)[0]

        box = box_service.create_box(workspace_a.id, "Elektronika", qr_code_id=code.id)

        refreshed = db.session.get(QRCode, code.id)
        assert refreshed.box_id == box.id
        assert refreshed.status == "assigned"
        assert box.to_dict()["qr_code"]["short_id"] == code.short_id

    def test_taken_qr_code_creates_nothing(self, db_session, workspace_a):
        code = qr_code_service.generate_batch(workspace_a.id, 1)[0]
        box_service.create_box(workspace_a.id, "Pierwsze", qr_code_id=code.id)

        with pytest.raises(QrCodeAlreadyAssignedError):
            box_service.create_box(workspace_a.id, "Drugie", qr_code_id=code.id)

        names = [box.name for box in db.session.query(Box).all()]
        assert names == ["Pierwsze"]

    def test_foreign_qr_code_creates_nothing(self, db_session, workspace_a, workspace_b):
        foreign = qr_code_service.generate_batch(workspace_b.id, 1)[0]

        with pytest.raises(WorkspaceMismatchError):
            box_service.create_box(workspace_a.id, "Elektronika", qr_code_id=foreign.id)

        assert db.session.query(Box).count() == 0

    def test_deleted_location_rejected(self, db_session, workspace_a):
        gone = make_location(workspace_a, "Stare", "root.stare", is_deleted=True)
        with pytest.raises(LocationNotFoundError):
            box_service.create_box(workspace_a.id, "X", location_id=gone.id)

    def test_foreign_location_rejected(self, db_session, workspace_a, workspace_b):
        foreign = make_location(workspace_b, "Szafa", "root.szafa")
        with pytest.raises(WorkspaceMismatchError):
            box_service.create_box(workspace_a.id, "X", location_id=foreign.id)


class TestListBoxes:
    def test_newest_first_and_workspace_scoped(self, db_session, workspace_a, workspace_b):
        first = make_box(workspace_a, "Pierwsze", "BOX0000001")
        second = make_box(workspace_a, "Drugie", "BOX0000002")
        make_box(workspace_b, "Obce", "BOX0000003")

        ids = [box.id for box in box_service.list_boxes(workspace_a.id)]

        assert ids == [second.id, first.id]

    def test_search_name_description_and_tags(self, db_session, workspace_a):
        by_name = make_box(workspace_a, "Kable USB", "BOX0000001")
        by_description = make_box(workspace_a, "Szuflada", "BOX0000002", description="stare kable")
        by_tag = make_box(workspace_a, "Pudełko", "BOX0000003", tags=["kable"])
        make_box(workspace_a, "Książki", "BOX0000004")

        found = {box.id for box in box_service.list_boxes(workspace_a.id, q="KABLE")}

        assert found == {by_name.id, by_description.id, by_tag.id}

    def test_search_polish_tag(self, db_session, workspace_a):
        tagged = make_box(workspace_a, "Pudełko", "BOX0000001", tags=["półka", "łódź"])
        make_box(workspace_a, "Książki", "BOX0000002", tags=["polka"])

        found = [box.id for box in box_service.list_boxes(workspace_a.id, q="półka")]

        assert found == [tagged.id]

    def test_search_folds_polish_case(self, db_session, workspace_a):
        upper = make_box(workspace_a, "ŁÓDKA", "BOX0000001")
        by_tag = make_box(workspace_a, "Kajak", "BOX0000002", tags=["ŻAGLE"])

        assert [b.id for b in box_service.list_boxes(workspace_a.id, q="łódka")] == [upper.id]
        assert [b.id for b in box_service.list_boxes(workspace_a.id, q="żagle")] == [by_tag.id]

    def test_search_wildcards_are_literal(self, db_session, workspace_a):
        make_box(workspace_a, "Kable", "BOX0000001")
        make_box(workspace_a, "Sto procent", "BOX0000002", description="bawełna")
        underscored = make_box(workspace_a, "a_b", "BOX0000003")
        percent = make_box(workspace_a, "100% wełna", "BOX0000004")

        assert [b.id for b in box_service.list_boxes(workspace_a.id, q="_")] == [underscored.id]
        assert [b.id for b in box_service.list_boxes(workspace_a.id, q="%")] == [percent.id]
        assert box_service.list_boxes(workspace_a.id, q="\\") == []

    def test_filter_by_location(self, db_session, workspace_a, garage, shelf):
        in_garage = make_box(workspace_a, "Opony", "BOX0000001", location=garage)
        make_box(workspace_a, "Kable", "BOX0000002", location=shelf)

        found = box_service.list_boxes(workspace_a.id, location_id=garage.id)

        assert [box.id for box in found] == [in_garage.id]

    def test_filter_by_assignment(self, db_session, workspace_a, garage):
        placed = make_box(workspace_a, "Opony", "BOX0000001", location=garage)
        loose = make_box(workspace_a, "Kable", "BOX0000002")

        assert [b.id for b in box_service.list_boxes(workspace_a.id, is_assigned=True)] == [placed.id]
        assert [b.id for b in box_service.list_boxes(workspace_a.id, is_assigned=False)] == [loose.id]

    def test_pagination(self, db_session, workspace_a):
        for index in range(5):
            make_box(workspace_a, f"Pudło {index}", f"BOX000000{index}")

        page = box_service.list_boxes(workspace_a.id, limit=2, offset=2)

        assert len(page) == 2


class TestUpdateBox:
    def test_fields_and_location(self, db_session, workspace_a, garage):
        box = make_box(workspace_a, "Stara nazwa", "BOX0000001")

        updated = box_service.update_box(
            workspace_a.id,
            box.id,
            {"name": "Nowa nazwa", "tags": ["zima"], "location_id": garage.id},
        )

        assert updated.name == "Nowa nazwa"
        assert updated.tags == ["zima"]
        assert updated.location_id == garage.id

    def test_clear_location(self, db_session, workspace_a, garage):
        box = make_box(workspace_a, "Opony", "BOX0000001", location=garage)
        updated = box_service.update_box(workspace_a.id, box.id, {"location_id": None})
        assert updated.location_id is None

    def test_swap_qr_code(self, db_session, workspace_a):
        old, new = qr_code_service.generate_batch(workspace_a.id, 2)
        box = box_service.create_box(workspace_a.id, "Elektronika", qr_code_id=old.id)

        box_service.update_box(workspace_a.id, box.id, {"qr_code_id": new.id})

        assert db.session.get(QRCode, old.id).status == "generated"
        assert db.session.get(QRCode, new.id).box_id == box.id

    def test_detach_qr_code(self, db_session, workspace_a):
        code = qr_code_service.generate_batch(workspace_a.id, 1)[0]
        box = box_service.create_box(workspace_a.id, "Elektronika", qr_code_id=code.id)

        box_service.update_box(workspace_a.id, box.id, {"qr_code_id": None})

        refreshed = db.session.get(QRCode, code.id)
        assert refreshed.box_id is None
        assert refreshed.status == "generated"

    def test_failed_swap_keeps_current_code(self, db_session, workspace_a):
        mine, theirs = qr_code_service.generate_batch(workspace_a.id, 2)
        box = box_service.create_box(workspace_a.id, "Moje", qr_code_id=mine.id)
        box_service.create_box(workspace_a.id, "Cudze", qr_code_id=theirs.id)

        with pytest.raises(QrCodeAlreadyAssignedError):
            box_service.update_box(workspace_a.id, box.id, {"qr_code_id": theirs.id})

        assert db.session.get(QRCode, mine.id).box_id == box.id

    def test_wrong_workspace(self, db_session, workspace_a, workspace_b):
        box = make_box(workspace_a, "Opony", "BOX0000001")
        with pytest.raises(BoxNotFoundError):
            box_service.update_box(workspace_b.id, box.id, {"name": "X"})


class TestDeleteBox:
    def test_releases_qr_code(self, db_session, workspace_a):
        code = qr_code_service.generate_batch(workspace_a.id, 1)[0]
        box = box_service.create_box(workspace_a.id, "Elektronika", qr_code_id=code.id)
        box_id = box.id

        box_service.delete_box(workspace_a.id, box_id)

        assert db.session.get(Box, box_id) is None
        refreshed = db.session.get(QRCode, code.id)
        assert refreshed.status == "generated"
        assert refreshed.box_id is None

    def test_unknown_box(self, db_session, workspace_a):
        with pytest.raises(BoxNotFoundError):
            box_service.delete_box(workspace_a.id, 999)


class TestDuplicateName:
    def test_case_insensitive_count(self, db_session, workspace_a, workspace_b):
        make_box(workspace_a, "Kable", "BOX0000001")
        make_box(workspace_a, "kable", "BOX0000002")
        make_box(workspace_b, "Kable", "BOX0000003")

        assert box_service.check_duplicate_name(workspace_a.id, " KABLE ") == {"is_duplicate": True, "count": 2}

    def test_polish_letters_fold_case(self, db_session, workspace_a):
        make_box(workspace_a, "PÓŁKA", "BOX0000001")

        assert box_service.check_duplicate_name(workspace_a.id, "półka") == {"is_duplicate": True, "count": 1}
        assert box_service.check_duplicate_name(workspace_a.id, "Półka") == {"is_duplicate": True, "count": 1}

    def test_exclude_current_box(self, db_session, workspace_a):
        box = make_box(workspace_a, "Kable", "BOX0000001")
        result = box_service.check_duplicate_name(workspace_a.id, "Kable", exclude_box_id=box.id)
        assert result == {"is_duplicate": False, "count": 0}
