"""
Tests for the UI-side gate: guard rendering, navigation redirects and pages.
"""

from markupsafe import Markup

from volunteerflow.models import User
from volunteerflow.ui.guard import (
    HOME_PATH,
    AuthState,
    RoleGuard,
    guard_helper,
    landing_path,
    navigation_redirect,
)

RECRUITER = User(id="r1", role="recruiter", first_name="Sarah", last_name="Johnson")
SCREENER = User(id="m1", role="medical_screener")
PLACEMENT = User(id="p1", role="placement_officer")
NO_ROLE = User(id="n1")


# ── Tests: RoleGuard ─────────────────────────────────────────────────

def test_guard_renders_children_when_allowed(evaluator):
    guard = RoleGuard(evaluator, required_capabilities=["manage_leads"])
    assert guard.render(AuthState(user=RECRUITER), "<b>Add</b>") == "&lt;b&gt;Add&lt;/b&gt;"
    assert guard.render(AuthState(user=RECRUITER), Markup("<b>Add</b>")) == "<b>Add</b>"


def test_guard_renders_fallback_when_denied(evaluator):
    guard = RoleGuard(evaluator, required_capabilities=["manage_leads"], fallback="hidden")
    assert guard.render(AuthState(user=PLACEMENT), "Add") == "hidden"


def test_guard_renders_nothing_while_loading(evaluator):
    guard = RoleGuard(evaluator, required_capabilities=["manage_leads"], fallback="hidden")
    state = AuthState(user=RECRUITER, is_loading=True)
    assert guard.allows(state) is None
    assert guard.render(state, "Add") == ""


def test_guard_without_role_shows_fallback(evaluator):
    guard = RoleGuard(evaluator, fallback="no access")
    assert guard.allows(AuthState(user=NO_ROLE)) is False
    assert guard.render(AuthState(user=None), "x") == "no access"


def test_guard_without_requirements_allows_any_role(evaluator):
    assert RoleGuard(evaluator).allows(AuthState(user=SCREENER)) is True


def test_guard_role_requirement(evaluator):
    guard = RoleGuard(evaluator, required_roles=["medical_screener"])
    assert guard.allows(AuthState(user=SCREENER)) is True
    assert guard.allows(AuthState(user=RECRUITER)) is False


def test_guard_helper_uses_caller(evaluator):
    guard = guard_helper(evaluator, AuthState(user=RECRUITER))
    out = guard(required_capabilities=["view_reports"], caller=lambda: Markup("<a>r</a>"))
    assert out == "<a>r</a>"


# ── Tests: navigation ────────────────────────────────────────────────

def test_landing_path(evaluator):
    assert landing_path(evaluator, RECRUITER) == "/leads"
    assert landing_path(evaluator, SCREENER) == "/applications"
    assert landing_path(evaluator, NO_ROLE) == HOME_PATH
    assert landing_path(evaluator, None) == HOME_PATH


def test_allowed_section_stays(evaluator):
    assert navigation_redirect(evaluator, AuthState(user=RECRUITER), "/leads") is None
    assert navigation_redirect(evaluator, AuthState(user=SCREENER), "/medical-screening/abc") is None


def test_forbidden_section_redirects(evaluator):
    assert navigation_redirect(evaluator, AuthState(user=SCREENER), "/placements") == "/applications"
    assert navigation_redirect(evaluator, AuthState(user=None), "/placements") == HOME_PATH


def test_non_section_paths_untouched(evaluator):
    for path in ("/", "/login", "/logout"):
        assert navigation_redirect(evaluator, AuthState(user=None), path) is None


def test_no_redirect_while_loading(evaluator):
    assert navigation_redirect(evaluator, AuthState(is_loading=True), "/placements") is None


def test_redirect_target_is_stable(evaluator):
    for user in (RECRUITER, SCREENER, PLACEMENT, NO_ROLE, None):
        state = AuthState(user=user)
        for path in ("/leads", "/positions", "/medical-screening", "/placements", "/reports"):
            target = navigation_redirect(evaluator, state, path)
            if target is not None:
                assert navigation_redirect(evaluator, state, target) is None


# ── Tests: pages ─────────────────────────────────────────────────────

def test_anonymous_section_redirects_home(client):
    resp = client.get("/placements")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")


def test_anonymous_home_is_landing(client):
    html = client.get("/").get_data(as_text=True)
    assert 'data-testid="button-login"' in html


def test_failed_ui_login(client):
    resp = client.post("/login", data={"api_key": "wrong"})
    assert resp.status_code == 401
    assert "Login failed." in resp.get_data(as_text=True)


def test_placement_officer_cannot_add_leads(ui_login):
    client = ui_login("placement_officer")
    resp = client.get("/leads")
    assert resp.status_code == 200
    assert 'data-testid="button-new-lead"' not in resp.get_data(as_text=True)


def test_recruiter_can_add_leads(ui_login):
    client = ui_login("recruiter")
    assert 'data-testid="button-new-lead"' in client.get("/leads").get_data(as_text=True)


def test_navigation_lists_visible_sections_only(ui_login):
    html = ui_login("medical_screener").get("/").get_data(as_text=True)
    assert 'data-testid="nav-link-applications"' in html
    assert 'data-testid="nav-link-medical-screening"' in html
    assert 'data-testid="nav-link-leads"' not in html
    assert 'data-testid="nav-link-reports"' not in html
    assert 'data-testid="link-screening-queue"' in html


def test_screener_redirected_from_placements(ui_login):
    resp = ui_login("medical_screener").get("/placements")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/applications")


def test_no_role_dashboard_shows_access_denied(ui_login):
    client = ui_login(None)
    html = client.get("/").get_data(as_text=True)
    assert 'data-testid="access-denied"' in html
    assert client.get("/leads").status_code == 302


def test_screening_detail_redacted_for_recruiter(ui_login, screening):
    html = ui_login("recruiter").get(f"/medical-screening/{screening['id']}").get_data(as_text=True)
    assert "Cleared for field service" in html
    assert "restricted to medical screeners" in html
    assert "Asthma" not in html
    assert 'data-testid="button-edit-details"' not in html


def test_screening_detail_full_for_screener(ui_login, screening):
    html = ui_login("medical_screener").get(f"/medical-screening/{screening['id']}").get_data(as_text=True)
    assert "Asthma, well controlled" in html
    assert 'data-testid="button-edit-details"' in html


def test_screening_detail_empty_record(ui_login, storage, volunteer):
    bare = storage.create_medical_screening({"volunteer_id": volunteer["id"]})
    html = ui_login("medical_screener").get(f"/medical-screening/{bare['id']}").get_data(as_text=True)
    assert 'data-testid="medical-details-empty"' in html
    assert 'data-testid="access-denied"' not in html


def test_logout_clears_cookie(ui_login):
    client = ui_login("recruiter")
    client.get("/logout")
    assert client.get("/leads").status_code == 302
