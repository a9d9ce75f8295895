"""
Shared fixtures: in-memory database, app factories and logged-in clients.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from volunteerflow.api.app import create_app
from volunteerflow.database import create_schema
from volunteerflow.permissions import build_permission_table
from volunteerflow.rbac import PermissionEvaluator
from volunteerflow.storage import Storage

API_KEYS = {
    "recruiter": "vf_recruiter_key",
    "placement_officer": "vf_placement_key",
    "medical_screener": "vf_medical_key",
    "country_officer": "vf_country_key",
    None: "vf_norole_key",
}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def storage(engine):
    return Storage(engine)


@pytest.fixture
def evaluator():
    return PermissionEvaluator(build_permission_table())


def _seed_staff(storage):
    for role, key in API_KEYS.items():
        name = role or "norole"
        storage.upsert_user({
            "id": f"{name}_user",
            "email": f"{name}@example.org",
            "first_name": name.title(),
            "last_name": "Tester",
            "role": role,
            "api_key": key,
        })


@pytest.fixture
def app(engine):
    application = create_app(
        {"TESTING": True, "AUTH_PROVIDER": "api_key", "APP_ENV": "test",
         "SECRET_KEY": "test-secret"},
        engine=engine,
    )
    _seed_staff(application.extensions["volunteerflow"].storage)
    return application


@pytest.fixture
def dev_app(engine):
    return create_app(
        {"TESTING": True, "AUTH_PROVIDER": "dev", "APP_ENV": "development",
         "SECRET_KEY": "test-secret"},
        engine=engine,
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Return a function role -> Authorization headers for a fresh session."""
    def _login(role):
        resp = client.post("/api/auth/login", json={"api_key": API_KEYS[role]})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}
    return _login


@pytest.fixture
def ui_login(client):
    """Log the test client in through the HTML form (sets the cookie)."""
    def _login(role):
        resp = client.post("/login", data={"api_key": API_KEYS[role]})
        assert resp.status_code == 302
        return client
    return _login


@pytest.fixture
def volunteer(storage):
    return storage.create_volunteer({
        "first_name": "Ada",
        "last_name": "Mensah",
        "email": "ada.mensah@example.org",
        "status": "interested",
    })


@pytest.fixture
def screening(storage, volunteer):
    record = storage.create_medical_screening({
        "volunteer_id": volunteer["id"],
        "status": "completed",
        "medical_clearance": True,
        "outcome_notes": "Cleared for field service",
    })
    storage.save_medical_screening_details(record["id"], {
        "medical_history": "Asthma, well controlled",
        "clearance_reasoning": "Stable on inhaler",
        "emergency_contact": {"name": "Kofi Mensah", "phone": "+233 555 0100"},
    })
    return record
