"""
Unit tests for medical-detail redaction.
"""

import pytest

from volunteerflow.errors import Forbidden
from volunteerflow.models import User
from volunteerflow.redaction import PUBLIC_SCREENING_FIELDS, MedicalDetailsPolicy


class SpyStorage:
    """Records restricted-record reads and writes."""
    def __init__(self, details=None):
        self.details = details
        self.reads = []
        self.writes = []

    def get_medical_screening_details(self, screening_id):
        self.reads.append(screening_id)
        return self.details

    def save_medical_screening_details(self, screening_id, values):
        self.writes.append((screening_id, values))
        return dict(values, medical_screening_id=screening_id)


SCREENER = User(id="m1", role="medical_screener")
RECRUITER = User(id="r1", role="recruiter")


# ── Tests: public view ───────────────────────────────────────────────

def test_public_view_drops_restricted_fields():
    screening = {f: "x" for f in PUBLIC_SCREENING_FIELDS}
    screening["medical_history"] = "secret"
    screening["clearance_reasoning"] = "secret"
    view = MedicalDetailsPolicy.public_view(screening)
    assert set(view) == set(PUBLIC_SCREENING_FIELDS)
    assert "secret" not in view.values()


def test_public_view_none():
    assert MedicalDetailsPolicy.public_view(None) is None


# ── Tests: fetch ─────────────────────────────────────────────────────

def test_screener_reads_details(evaluator):
    spy = SpyStorage({"medical_history": "asthma"})
    policy = MedicalDetailsPolicy(evaluator, spy)
    assert policy.fetch_medical_details(SCREENER, "s1") == {"medical_history": "asthma"}
    assert spy.reads == ["s1"]


def test_screener_without_record_gets_none(evaluator):
    policy = MedicalDetailsPolicy(evaluator, SpyStorage(None))
    assert policy.fetch_medical_details(SCREENER, "s1") is None


@pytest.mark.parametrize("who", [
    RECRUITER,
    User(id="p1", role="placement_officer"),
    User(id="c1", role="country_officer"),
    User(id="n1"),
    None,
])
def test_denied_without_reading_storage(evaluator, who, capsys):
    spy = SpyStorage({"medical_history": "asthma"})
    policy = MedicalDetailsPolicy(evaluator, spy)
    with pytest.raises(Forbidden) as e:
        policy.fetch_medical_details(who, "s1")
    assert e.value.status_code == 403
    assert "restricted to medical screeners" in e.value.message
    assert spy.reads == []
    assert "[rbac] denied read" in capsys.readouterr().err


def test_denial_is_not_empty_result(evaluator):
    # "no record" and "not allowed" must stay distinguishable
    policy = MedicalDetailsPolicy(evaluator, SpyStorage(None))
    assert policy.fetch_medical_details(SCREENER, "s1") is None
    with pytest.raises(Forbidden):
        policy.fetch_medical_details(RECRUITER, "s1")


# ── Tests: save ──────────────────────────────────────────────────────

def test_screener_saves_details(evaluator):
    spy = SpyStorage()
    policy = MedicalDetailsPolicy(evaluator, spy)
    saved = policy.save_medical_details(SCREENER, "s1", {"medications": "none"})
    assert saved["medical_screening_id"] == "s1"
    assert spy.writes == [("s1", {"medications": "none"})]


def test_recruiter_cannot_save_details(evaluator):
    spy = SpyStorage()
    policy = MedicalDetailsPolicy(evaluator, spy)
    with pytest.raises(Forbidden):
        policy.save_medical_details(RECRUITER, "s1", {"medications": "none"})
    assert spy.writes == []
