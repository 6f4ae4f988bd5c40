"""
Pytest fixtures for organizer backend tests.

Provides an in-memory database, users, workspaces, locations and an
authenticated test client.
"""

import bcrypt
import pytest

from organizer import create_app
from organizer.extensions import db
from organizer.models import Box, Location, User, Workspace, WorkspaceMember
from organizer.services import session_service


TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """One bcrypt hash for every test user (hashing per test is slow)."""
    return bcrypt.hashpw(TEST_PASSWORD.encode('utf-8'), bcrypt.gensalt(rounds=4)).decode('utf-8')


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()
    db.session.remove()


def make_user(email: str, password_hash: str) -> User:
    user = User(email=email, password_hash=password_hash, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def make_workspace(owner: User, name: str) -> Workspace:
    workspace = Workspace(owner_id=owner.id, name=name)
    db.session.add(workspace)
    db.session.flush()
    db.session.add(WorkspaceMember(workspace_id=workspace.id, user_id=owner.id, role="owner"))
    db.session.commit()
    return workspace


def add_member(workspace: Workspace, user: User, role: str = "member") -> WorkspaceMember:
    membership = WorkspaceMember(workspace_id=workspace.id, user_id=user.id, role=role)
    db.session.add(membership)
    db.session.commit()
    return membership


def make_location(workspace: Workspace, name: str, path: str, is_deleted: bool = False) -> Location:
    """Insert a location row directly, bypassing the hierarchy checks."""
    location = Location(workspace_id=workspace.id, name=name, path=path, is_deleted=is_deleted)
    db.session.add(location)
    db.session.commit()
    return location


def make_box(workspace: Workspace, name: str, short_id: str, location: Location | None = None, **extra) -> Box:
    box = Box(
        workspace_id=workspace.id,
        name=name,
        short_id=short_id,
        location_id=location.id if location is not None else None,
        tags=extra.pop("tags", []),
        **extra,
    )
    db.session.add(box)
    db.session.commit()
    return box


@pytest.fixture(scope='function')
def user_a(db_session, password_hash):
    """Owner of workspace A."""
    return make_user("owner_a@example.com", password_hash)


@pytest.fixture(scope='function')
def user_b(db_session, password_hash):
    """Owner of workspace B; not a member of A."""
    return make_user("owner_b@example.com", password_hash)


@pytest.fixture(scope='function')
def workspace_a(db_session, user_a):
    return make_workspace(user_a, "Dom")


@pytest.fixture(scope='function')
def workspace_b(db_session, user_b):
    return make_workspace(user_b, "Biuro")


@pytest.fixture(scope='function')
def garage(db_session, workspace_a):
    """Top-level location "Garaż" (root.garaz) in workspace A."""
    return make_location(workspace_a, "Garaż", "root.garaz")


@pytest.fixture(scope='function')
def shelf(db_session, workspace_a, garage):
    """"Półka A" under "Garaż" (root.garaz.polka_a)."""
    return make_location(workspace_a, "Półka A", "root.garaz.polka_a")


def get_auth_token(user: User) -> str:
    """Issue a session token without going through bcrypt on /login."""
    _, token = session_service.create_session(user_id=user.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_a(db_session, user_a):
    return auth_headers(get_auth_token(user_a))


@pytest.fixture(scope='function')
def headers_b(db_session, user_b):
    return auth_headers(get_auth_token(user_b))
