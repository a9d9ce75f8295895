"""
Tests for the development identity provider and its isolation.
"""

import pytest

from volunteerflow.api.app import create_app
from volunteerflow.api.dev_auth import DevAuthNotAllowed, check_dev_auth_allowed


def _rules(app):
    return {r.rule for r in app.url_map.iter_rules()}


def test_dev_routes_absent_in_api_key_mode(app):
    rules = _rules(app)
    assert "/api/dev/login" not in rules
    assert "/api/auth/login" in rules


def test_real_login_absent_in_dev_mode(dev_app):
    rules = _rules(dev_app)
    assert "/api/dev/login" in rules
    assert "/api/auth/login" not in rules


def test_dev_mode_refused_in_production(engine):
    with pytest.raises(DevAuthNotAllowed):
        create_app({"AUTH_PROVIDER": "dev", "APP_ENV": "production"}, engine=engine)


def test_check_requires_dev_provider():
    with pytest.raises(DevAuthNotAllowed):
        check_dev_auth_allowed({"AUTH_PROVIDER": "api_key", "APP_ENV": "development"})


def test_unknown_provider_rejected(engine):
    with pytest.raises(ValueError):
        create_app({"AUTH_PROVIDER": "magic"}, engine=engine)


def test_dev_users_listed(dev_app):
    users = dev_app.test_client().get("/api/dev/users").get_json()
    assert [u["role"] for u in users] == [
        "recruiter", "placement_officer", "medical_screener", "country_officer",
    ]


def test_dev_login_and_gate(dev_app):
    client = dev_app.test_client()
    resp = client.post("/api/dev/login", json={"user_id": "user_3"})
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.get_json()['token']}"}
    assert resp.get_json()["user"]["role"] == "medical_screener"

    assert client.get("/api/medical-screenings", headers=headers).status_code == 200
    assert client.get("/api/volunteers", headers=headers).status_code == 403


@pytest.mark.parametrize("payload", [{"user_id": "user_99"}, {"user_id": ["user_1"]}, {}])
def test_dev_login_rejects_unknown(dev_app, payload):
    resp = dev_app.test_client().post("/api/dev/login", json=payload)
    assert resp.status_code == 400


def test_dev_ui_login(dev_app):
    client = dev_app.test_client()
    assert client.post("/login", data={"user_id": "user_4"}).status_code == 302
    html = client.get("/positions").get_data(as_text=True)
    assert 'data-testid="button-new-position"' in html
