"""Shared fixtures: a fresh app per test on a temporary SQLite file and upload dir."""

import io
import os
import sys

# Add parent dir to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.models.grade import Grade
from app.models.resource_type import ResourceType
from app.models.subject import Subject
from app.models.tag import Tag
from app.models.user import User
from app.middleware.auth import hash_password
from app.schemas.resource import ResourceCreate
from app.services import resource_service
from app.services.resource_service import IncomingFile

ADMIN_EMAIL = "admin@test.local"
ADMIN_PASSWORD = "admin-pass"
SCHOOL_PASSWORD = "school-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        RATE_LIMIT_ENABLED=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def storage(app):
    return app.state.storage


@pytest.fixture
def upload_dir(settings):
    return settings.UPLOAD_DIR


@pytest.fixture
def db_session(app, client):
    """A session on the test database; ``client`` has already created and seeded it."""
    db = app.state.db.session()
    yield db
    db.close()


def login(client, email, password) -> dict:
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def school_user(client, admin_headers):
    resp = client.post(
        "/api/users/schools",
        json={
            "name": "Hillside Primary",
            "email": "office@hillside.test",
            "password": SCHOOL_PASSWORD,
            "organization": "Hillside Primary School",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def school_headers(client, school_user):
    return login(client, school_user["email"], SCHOOL_PASSWORD)


@pytest.fixture
def catalog(db_session):
    """Seeded reference ids by display name."""
    return {
        "grades": {g.grade_level: g.id for g in db_session.query(Grade).all()},
        "subjects": {s.subject_name: s.id for s in db_session.query(Subject).all()},
        "types": {t.type_name: t.id for t in db_session.query(ResourceType).all()},
        "tags": {t.tag_name: t.id for t in db_session.query(Tag).all()},
    }


@pytest.fixture
def upload(client, catalog):
    """Post a resource through the API and return the response."""

    def _upload(
        headers,
        filename="lesson.pdf",
        content=b"%PDF-1.4 lesson",
        grade="Grade 3",
        subject="Mathematics",
        type_name="Document",
        tags=(),
        preview=None,
        **fields,
    ):
        data = {
            "title": fields.pop("title", "Fractions made simple"),
            "grade_id": catalog["grades"][grade],
            "subject_id": catalog["subjects"][subject],
            "type_id": catalog["types"][type_name],
            **fields,
        }
        if tags:
            data["tags"] = [catalog["tags"][t] for t in tags]
        files = [("file", (filename, content, "application/octet-stream"))]
        if preview is not None:
            files.append(("preview_image", preview))
        return client.post("/api/resources", data=data, files=files, headers=headers)

    return _upload


@pytest.fixture
def admin_user(db_session):
    return db_session.query(User).filter(User.email == ADMIN_EMAIL).one()


@pytest.fixture
def make_user(db_session):
    def _make(email="teacher@school.test", role="school", status="active"):
        user = User(
            name=email.split("@")[0],
            email=email,
            password_hash=hash_password(SCHOOL_PASSWORD),
            role=role,
            status=status,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_resource(db_session, storage, settings, catalog, admin_user):
    """Create a resource through the service layer."""

    def _make(
        title="Fractions made simple",
        filename="lesson.pdf",
        content=b"%PDF-1.4 lesson",
        grade="Grade 3",
        subject="Mathematics",
        type_name="Document",
        tags=(),
        owner=None,
        **fields,
    ):
        data = ResourceCreate(
            title=title,
            grade_id=catalog["grades"][grade],
            subject_id=catalog["subjects"][subject],
            type_id=catalog["types"][type_name],
            tag_ids=[catalog["tags"][t] for t in tags],
            **fields,
        )
        incoming = IncomingFile(filename=filename, size=len(content), stream=io.BytesIO(content))
        return resource_service.create_resource(
            db_session, storage, settings, data, incoming, None, owner or admin_user
        )

    return _make
