from __future__ import annotations

from ..extensions import db
from organizer.time_utils import to_utc_z


QR_STATUS_GENERATED = "generated"
QR_STATUS_ASSIGNED = "assigned"
QR_STATUSES = (QR_STATUS_GENERATED, QR_STATUS_ASSIGNED)


class Location(db.Model):
    """
    Node of a workspace's storage hierarchy, encoded as a materialized path.

    path is ASCII only ("root.garaz.polka_a"); name keeps what the user typed
    ("Półka A"). There is deliberately no parent_id column: the parent is
    derived from the path by location_service, which keeps every hierarchy
    read to a single workspace-scoped query.

    Uniqueness of live paths is enforced by a partial index so a soft-deleted
    location does not block re-creating a sibling with the same name.
    """
    __tablename__ = "locations"
    __table_args__ = (
        db.Index(
            "uq_locations_workspace_path_live",
            "workspace_id",
            "path",
            unique=True,
            sqlite_where=db.text("is_deleted = 0"),
            postgresql_where=db.text("is_deleted = false"),
        ),
        db.CheckConstraint("length(path) > 0", name="ck_locations_path_not_empty"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    path = db.Column(db.String(1024), nullable=False)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Location id={self.id} path={self.path!r} deleted={self.is_deleted}>"

    def to_dict(self, parent_id: int | None = None) -> dict:
        return {
            "id": self.id,
            "workspace_id": self.workspace_id,
            "parent_id": parent_id,
            "name": self.name,
            "description": self.description,
            "path": self.path,
            "is_deleted": self.is_deleted,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Box(db.Model):
    """
    Physical storage box.

    location_id is a weak reference: a NULL value means "Unassigned". The
    QR code association is stored on the qr_codes row (QRCode.box_id) only,
    so the two tables never point at each other.
    """
    __tablename__ = "boxes"
    __table_args__ = (
        db.Index("ix_boxes_workspace_location", "workspace_id", "location_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id"), nullable=False, index=True)
    location_id = db.Column(
        db.Integer,
        db.ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    short_id = db.Column(db.String(20), nullable=False, unique=True, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(10000), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    location = db.relationship("Location")

    def __repr__(self) -> str:
        return f"<Box id={self.id} short_id={self.short_id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        location = None
        if self.location is not None and not self.location.is_deleted:
            location = {
                "id": self.location.id,
                "name": self.location.name,
                "path": self.location.path,
            }
        qr_code = None
        if self.qr_code is not None:
            qr_code = {"id": self.qr_code.id, "short_id": self.qr_code.short_id}
        return {
            "id": self.id,
            "short_id": self.short_id,
            "workspace_id": self.workspace_id,
            "location_id": self.location_id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags or []),
            "location": location,
            "qr_code": qr_code,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class QRCode(db.Model):
    """
    Printable QR label.

    STATE MACHINE (see qr_code_service):
        generated -> assigned -> generated

    INVARIANT: status == "assigned" if and only if box_id is not NULL.
    box_id is unique, so a box carries at most one code.
    """
    __tablename__ = "qr_codes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id"), nullable=False, index=True)
    short_id = db.Column(db.String(20), nullable=False, unique=True, index=True)
    box_id = db.Column(
        db.Integer,
        db.ForeignKey("boxes.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    status = db.Column(db.String(16), nullable=False, default=QR_STATUS_GENERATED, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    box = db.relationship(
        "Box",
        backref=db.backref("qr_code", uselist=False, passive_deletes=True),
    )

    def __repr__(self) -> str:
        return f"<QRCode id={self.id} short_id={self.short_id!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "short_id": self.short_id,
            "box_id": self.box_id,
            "status": self.status,
            "workspace_id": self.workspace_id,
            "created_at": to_utc_z(self.created_at),
        }
