"""
Storage tests against an in-memory SQLite database.
"""

from datetime import date

import pytest

from volunteerflow.errors import ValidationError
from volunteerflow.storage import default_end_date, serialize


# ── Tests: helpers ───────────────────────────────────────────────────

def test_default_end_date_adds_term():
    assert default_end_date(date(2025, 1, 15)) == date(2027, 4, 15)


def test_default_end_date_clamps_month_end():
    assert default_end_date(date(2024, 11, 30), months=3) == date(2025, 2, 28)


def test_serialize_dates():
    assert serialize({"d": date(2025, 1, 2), "n": 1}) == {"d": "2025-01-02", "n": 1}
    assert serialize(None) is None


# ── Tests: users ─────────────────────────────────────────────────────

def test_upsert_user_insert_then_update(storage):
    user = storage.upsert_user({"id": "u1", "email": "a@example.org", "role": "recruiter"})
    assert user.role == "recruiter"
    user = storage.upsert_user({"id": "u1", "role": "country_officer"})
    assert user.role == "country_officer"
    assert user.email == "a@example.org"


def test_user_without_role(storage):
    storage.upsert_user({"id": "u2", "email": "b@example.org", "role": None, "api_key": "k2"})
    user = storage.get_user_by_api_key("k2")
    assert user.id == "u2"
    assert user.role is None


def test_unknown_user(storage):
    assert storage.get_user("ghost") is None
    assert storage.get_user_by_api_key("ghost") is None


# ── Tests: volunteers ────────────────────────────────────────────────

def test_create_volunteer_records_activity(storage, volunteer):
    activities = storage.list_activities(volunteer_id=volunteer["id"])
    assert len(activities) == 1
    assert activities[0]["description"] == "New volunteer Ada Mensah added to system"


def test_list_activities_hides_referenced_records(storage, volunteer):
    storage.create_activity({"type": "note", "description": "Orientation week scheduled"})
    visible = storage.list_activities(hidden_references=["volunteer_id"])
    assert [a["type"] for a in visible] == ["note"]
    assert len(storage.list_activities()) == 2


def test_duplicate_volunteer_email(storage, volunteer):
    with pytest.raises(ValidationError) as e:
        storage.create_volunteer({"first_name": "A", "last_name": "B", "email": volunteer["email"]})
    assert "email" in e.value.errors


def test_update_missing_volunteer(storage):
    assert storage.update_volunteer("missing", {"status": "applied"}) is None
    assert storage.delete_volunteer("missing") is False


def test_list_volunteers_paging(storage):
    for i in range(5):
        storage.create_volunteer({"first_name": f"V{i}", "last_name": "X", "email": f"v{i}@example.org"})
    assert len(storage.list_volunteers(limit=2)) == 2
    assert len(storage.list_volunteers(limit=2, offset=4)) == 1
    assert len(storage.list_volunteers(status="interested")) == 5


# ── Tests: positions / applications ──────────────────────────────────

def test_create_position_term(storage):
    position = storage.create_position({
        "title": "Engineer", "description": "Water systems", "sector": "technology",
        "country": "Nepal", "start_date": date(2025, 6, 1),
    }, term_months=12)
    assert position["end_date"] == "2026-06-01"


def test_application_requires_volunteer(storage):
    with pytest.raises(ValidationError) as e:
        storage.create_application({"volunteer_id": "nope", "position_id": "nope"})
    assert "volunteer_id" in e.value.errors


# ── Tests: medical layers ────────────────────────────────────────────

def test_details_stored_separately(storage, screening):
    public = storage.get_medical_screening(screening["id"])
    assert "medical_history" not in public
    details = storage.get_medical_screening_details(screening["id"])
    assert details["medical_history"] == "Asthma, well controlled"


def test_save_details_updates_existing(storage, screening):
    first = storage.get_medical_screening_details(screening["id"])
    saved = storage.save_medical_screening_details(screening["id"], {"medications": "Salbutamol"})
    assert saved["id"] == first["id"]
    assert saved["medications"] == "Salbutamol"
    assert saved["medical_history"] == "Asthma, well controlled"


def test_list_screenings_by_status(storage, screening):
    assert len(storage.list_medical_screenings(status="completed")) == 1
    assert storage.list_medical_screenings(status="in_progress") == []
