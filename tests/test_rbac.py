"""
Unit tests for the permission evaluator.
"""

import pytest

from volunteerflow.models import User
from volunteerflow.permissions import CAPABILITIES, ROLES
from volunteerflow.rbac import SECTIONS, role_of, section_capability


def user(role, uid="u1"):
    return User(id=uid, role=role, first_name="Test", last_name="User")


# ── Tests: role_of ───────────────────────────────────────────────────

def test_role_of_object_and_mapping():
    assert role_of(user("recruiter")) == "recruiter"
    assert role_of({"id": "x", "role": "country_officer"}) == "country_officer"


@pytest.mark.parametrize("candidate", [
    None,
    User(id="x"),
    User(id="x", role="admin"),
    {"id": "x"},
    {"id": "x", "role": 3},
    object(),
])
def test_role_of_unrecognised_is_none(candidate):
    assert role_of(candidate) is None


# ── Tests: has_capability ────────────────────────────────────────────

@pytest.mark.parametrize("capability", CAPABILITIES)
def test_no_user_has_nothing(evaluator, capability):
    assert evaluator.has_capability(None, capability) is False
    assert evaluator.has_capability(User(id="x"), capability) is False
    assert evaluator.has_capability(User(id="x", role="superuser"), capability) is False


def test_has_capability_follows_table(evaluator):
    assert evaluator.has_capability(user("recruiter"), "manage_leads")
    assert not evaluator.has_capability(user("recruiter"), "view_medical_details")
    assert evaluator.has_capability(user("medical_screener"), "view_medical_details")
    assert not evaluator.has_capability(user("medical_screener"), "view_leads")


def test_unknown_capability_is_false(evaluator):
    assert evaluator.has_capability(user("recruiter"), "viewLeads") is False


# ── Tests: requirement lists ─────────────────────────────────────────

def test_empty_capability_list_passes(evaluator):
    assert evaluator.has_all_capabilities(user("medical_screener"), []) is True
    assert evaluator.has_all_capabilities(user("medical_screener"), None) is True


def test_all_capabilities_is_conjunction(evaluator):
    screener = user("medical_screener")
    assert evaluator.has_all_capabilities(screener, ["view_medical_screenings", "view_medical_details"])
    assert not evaluator.has_all_capabilities(screener, ["view_medical_details", "view_leads"])


def test_empty_role_list_passes(evaluator):
    assert evaluator.has_any_role(user("recruiter"), []) is True
    assert evaluator.has_any_role(user("recruiter"), None) is True


def test_any_role_is_disjunction(evaluator):
    officer = user("country_officer")
    assert evaluator.has_any_role(officer, ["recruiter", "country_officer"])
    assert not evaluator.has_any_role(officer, ["recruiter", "medical_screener"])


def test_any_role_without_role_fails(evaluator):
    assert evaluator.has_any_role(User(id="x"), ["recruiter"]) is False
    assert evaluator.has_any_role(None, ["recruiter"]) is False


@pytest.mark.parametrize("malformed", [42, 3.5, True])
def test_malformed_requirements_fail_closed(evaluator, malformed):
    assert evaluator.has_all_capabilities(user("recruiter"), malformed) is False
    assert evaluator.has_any_role(user("recruiter"), malformed) is False


def test_allows_needs_both_requirements(evaluator):
    recruiter = user("recruiter")
    assert evaluator.allows(recruiter)
    assert evaluator.allows(recruiter, capabilities=["view_leads"], roles=["recruiter"])
    assert not evaluator.allows(recruiter, capabilities=["view_leads"], roles=["country_officer"])
    assert not evaluator.allows(recruiter, capabilities=["manage_positions"], roles=["recruiter"])


def test_evaluator_is_deterministic(evaluator):
    recruiter = user("recruiter")
    first = evaluator.capabilities_for(recruiter)
    for _ in range(3):
        assert evaluator.capabilities_for(recruiter) == first


# ── Tests: sections ──────────────────────────────────────────────────

def test_visible_sections_in_canonical_order(evaluator):
    assert evaluator.visible_sections(user("recruiter")) == [
        "leads", "positions", "applications", "medical-screening", "placements", "reports",
    ]
    assert evaluator.visible_sections(user("medical_screener")) == [
        "applications", "medical-screening",
    ]
    assert evaluator.visible_sections(user("country_officer")) == [
        "positions", "applications", "medical-screening", "placements", "reports",
    ]


def test_visible_sections_empty_without_role(evaluator):
    assert evaluator.visible_sections(None) == []
    assert evaluator.visible_sections(User(id="x")) == []


@pytest.mark.parametrize("role", ROLES)
def test_every_role_sees_at_least_one_section(evaluator, role):
    assert evaluator.visible_sections(user(role))


def test_section_capability():
    assert [section_capability(name) for name, _ in SECTIONS] == [cap for _, cap in SECTIONS]
    assert section_capability("settings") is None


# ── Tests: activity visibility ───────────────────────────────────────

def test_hidden_activity_references(evaluator):
    assert evaluator.hidden_activity_references(user("recruiter")) == []
    assert evaluator.hidden_activity_references(user("medical_screener")) == [
        "volunteer_id", "position_id",
    ]
    assert evaluator.hidden_activity_references(user("country_officer")) == ["volunteer_id"]


def test_hidden_activity_references_without_role(evaluator):
    assert evaluator.hidden_activity_references(None) == [
        "volunteer_id", "position_id", "application_id",
    ]
