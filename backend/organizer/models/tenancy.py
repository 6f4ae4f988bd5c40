from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from organizer.time_utils import to_utc_z


MEMBER_ROLES = ("owner", "admin", "member", "read_only")


class Workspace(db.Model):
    """
    Multi-tenant root: every location, box and QR code belongs to exactly one
    workspace. No data may cross workspace boundaries.

    DESIGN:
    - owner_id is the only user allowed to rename or delete the workspace
    - membership (including the owner's) lives in workspace_members
    - child rows are removed by cascade_service.delete_workspace in a fixed
      order, never by database-level ON DELETE CASCADE
    """
    __tablename__ = "workspaces"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    owner = db.relationship("User")

    def __repr__(self) -> str:
        return f"<Workspace id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class WorkspaceMember(db.Model):
    __tablename__ = "workspace_members"

    workspace_id = db.Column(db.Integer, db.ForeignKey("workspaces.id"), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True, index=True)
    role = db.Column(db.String(16), nullable=False, default="member")
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")

    @validates("role")
    def _validate_role(self, key, value):
        if value not in MEMBER_ROLES:
            raise ValueError(f"role must be one of: {', '.join(MEMBER_ROLES)}")
        return value

    def to_dict(self) -> dict:
        return {
            "workspace_id": self.workspace_id,
            "user_id": self.user_id,
            "role": self.role,
            "joined_at": to_utc_z(self.joined_at),
        }
