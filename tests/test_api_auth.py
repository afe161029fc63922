"""Tests for sign-in, session handling and access gates."""
from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from magic_yarn.auth.google import GoogleOAuthError, GoogleUser
from magic_yarn.db import models


class _FakeProvider:
    configured = True

    def __init__(self, account: GoogleUser | None = None, error: str | None = None):
        self.account = account
        self.error = error
        self.codes: list[str] = []

    def get_authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    def authenticate(self, code: str) -> GoogleUser:
        self.codes.append(code)
        if self.error:
            raise GoogleOAuthError(self.error)
        return self.account


def _account(email: str = "dana@example.org") -> GoogleUser:
    return GoogleUser(
        google_sub="sub-dana",
        email=email,
        email_verified=True,
        full_name="Dana Coordinator",
        avatar_url=None,
    )


@pytest.fixture()
def use_provider(client):
    from magic_yarn.api.main import app
    from magic_yarn.api.routes.auth import get_google_provider

    def _use(provider: _FakeProvider) -> _FakeProvider:
        app.dependency_overrides[get_google_provider] = lambda: provider
        return provider

    return _use


def _state() -> str:
    from magic_yarn.core.security import get_token_service

    return get_token_service().issue_state()


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


def test_login_redirects_with_signed_state(client, use_provider):
    use_provider(_FakeProvider())

    response = client.get("/auth/google/login", follow_redirects=False)

    assert response.status_code == 302
    state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
    from magic_yarn.core.security import get_token_service

    get_token_service().verify_state(state)


def test_login_without_google_credentials_is_unavailable(client):
    response = client.get("/auth/google/login", follow_redirects=False)
    assert response.status_code == 503


def test_callback_creates_unapproved_profile_and_sets_cookie(client, use_provider, db_session):
    provider = use_provider(_FakeProvider(account=_account()))

    response = client.get(
        "/auth/google/callback", params={"code": "abc", "state": _state()}, follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:5173"
    assert "magic_yarn_session" in response.headers["set-cookie"]
    assert "HttpOnly" in response.headers["set-cookie"]
    assert provider.codes == ["abc"]
    profile = db_session.execute(select(models.UserProfile)).scalar_one()
    assert (profile.email, profile.role, profile.is_approved) == ("dana@example.org", "view_only", False)

    me = client.get("/auth/me")
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "dana@example.org"
    assert body["awaiting_approval"] is True
    assert body["permissions"] == []


def test_bootstrap_admin_is_created_approved(client, use_provider, db_session, monkeypatch):
    monkeypatch.setenv("BOOTSTRAP_ADMIN_EMAILS", "someone@example.org, Dana@Example.org")
    from magic_yarn.core.settings import get_settings

    get_settings.cache_clear()
    use_provider(_FakeProvider(account=_account()))

    client.get("/auth/google/callback", params={"code": "abc", "state": _state()}, follow_redirects=False)

    profile = db_session.execute(select(models.UserProfile)).scalar_one()
    assert profile.role == "admin"
    assert profile.is_approved is True


def test_returning_user_keeps_role_and_updates_name(client, use_provider, make_user, db_session):
    existing = make_user(role="contacts_manager", email="dana@example.org", full_name="Old Name")
    use_provider(_FakeProvider(account=_account()))

    client.get("/auth/google/callback", params={"code": "abc", "state": _state()}, follow_redirects=False)

    db_session.refresh(existing)
    assert existing.full_name == "Dana Coordinator"
    assert existing.google_sub == "sub-dana"
    assert existing.role == "contacts_manager"
    assert db_session.execute(select(models.UserProfile)).scalars().all() == [existing]


@pytest.mark.parametrize(
    "params",
    [
        {"code": "abc", "state": "forged"},
        {"code": "abc"},
        {"error": "access_denied"},
    ],
)
def test_callback_rejects_bad_requests(client, use_provider, params):
    use_provider(_FakeProvider(account=_account()))

    response = client.get("/auth/google/callback", params=params, follow_redirects=False)

    assert response.status_code == 400


def test_callback_reports_google_failure(client, use_provider):
    use_provider(_FakeProvider(error="Token exchange failed with status 400"))

    response = client.get(
        "/auth/google/callback", params={"code": "abc", "state": _state()}, follow_redirects=False
    )

    assert response.status_code == 400
    assert "Token exchange failed" in response.json()["detail"]


def test_logout_clears_cookie(client):
    response = client.post("/auth/logout")

    assert response.status_code == 204
    assert 'magic_yarn_session=""' in response.headers["set-cookie"]


# ---------------------------------------------------------------------------
# Access gates
# ---------------------------------------------------------------------------


def test_data_endpoints_require_sign_in(client):
    for path in ("/recipients", "/deliveries", "/planner/due", "/dashboard", "/admin/users", "/auth/me"):
        assert client.get(path).status_code == 401


def test_invalid_token_is_rejected(client):
    response = client.get("/recipients", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_unapproved_user_is_forbidden(client, make_user, auth_headers):
    pending = make_user(role="admin", is_approved=False)

    assert client.get("/recipients", headers=auth_headers(pending)).status_code == 403
    assert client.get("/dashboard", headers=auth_headers(pending)).status_code == 403
    assert client.get("/auth/me", headers=auth_headers(pending)).status_code == 200


def test_permission_gates_follow_the_matrix(client, make_user, auth_headers):
    viewer = make_user(role="view_only")
    headers = auth_headers(viewer)

    assert client.get("/recipients", headers=headers).status_code == 200
    assert client.post("/recipients", json={"name": "New"}, headers=headers).status_code == 403
    assert client.get("/admin/users", headers=headers).status_code == 403

    me = client.get("/auth/me", headers=headers).json()
    assert me["permissions"] == ["recipients.read", "deliveries.read"]
