"""API tests for school onboarding, login and user management."""

import pytest

from conftest import API, PASSWORD, bearer, login, setup_payload
from school_api.core.config import settings
from school_api.core.rate_limit import limiter

pytestmark = pytest.mark.api


class TestSetup:
    def test_setup_bootstraps_school(self, client, school, admin_headers):
        assert school["roles"] == ["ADMIN"]
        assert school["school"]["slug"] == "greenfield-academy"
        assert school["token_type"] == "bearer"

        years = client.get(f"{API}/academic/years-with-terms", headers=admin_headers).json()
        assert len(years) == 1
        terms = years[0]["terms"]
        assert sorted(t["term_number"] for t in terms) == [1, 2, 3]
        assert [t["term_number"] for t in terms if t["is_current"]] == [1]

        grouped = client.get(f"{API}/grading/systems/grouped", headers=admin_headers).json()
        assert {k: len(v) for k, v in grouped.items()} == {"subject": 1, "overall_points": 1, "cbc": 1}

        codes = {s["code"] for s in client.get(f"{API}/subjects", headers=admin_headers).json()}
        assert {"ENG", "KIS", "MAT"} <= codes

    def test_duplicate_slug_conflicts(self, client, school):
        resp = client.post(f"{API}/setup", json=setup_payload(code="GFA002", email="other@greenfield.ac.ke"))
        assert resp.status_code == 409

    def test_duplicate_admin_email_conflicts(self, client, school):
        resp = client.post(f"{API}/setup", json=setup_payload(slug="hillside-school", code="HSS001"))
        assert resp.status_code == 409

    def test_invalid_slug_rejected(self, client):
        resp = client.post(f"{API}/setup", json=setup_payload(slug="Bad Slug!"))
        assert resp.status_code == 400

    def test_check_slug_and_public_info(self, client, school):
        taken = client.get(f"{API}/setup/check-slug/greenfield-academy").json()
        assert taken == {"slug": "greenfield-academy", "valid": True, "available": False}
        assert client.get(f"{API}/setup/check-slug/new-school").json()["available"] is True
        assert client.get(f"{API}/setup/check-slug/x").json()["valid"] is False

        assert client.get(f"{API}/schools/check/greenfield-academy").json()["exists"] is True
        info = client.get(f"{API}/schools/greenfield-academy").json()
        assert info["name"] == "Greenfield Academy"
        assert client.get(f"{API}/schools/unknown-school").status_code == 404

    def test_suggest_school_code(self, client):
        code = client.get(f"{API}/setup/suggest-school-code").json()["school_code"]
        assert code.startswith("SCH") and len(code) == 7


class TestLogin:
    def test_login_returns_tokens_and_audits(self, client, school, admin_headers):
        resp = client.post(
            f"{API}/auth/login",
            json={"email": "head@greenfield.ac.ke", "password": PASSWORD, "slug": "greenfield-academy"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["roles"] == ["ADMIN"]
        assert body["school"]["curriculum_type"] == "CBC"

        logs = client.get(f"{API}/audit-logs", params={"search": "LOGIN"}, headers=admin_headers).json()
        assert any(i["action"] == "LOGIN" and i["severity"] == "SUCCESS" for i in logs["items"])

    def test_bad_password_is_401_and_audited(self, client, school, admin_headers):
        resp = client.post(
            f"{API}/auth/login",
            json={"email": "head@greenfield.ac.ke", "password": "not-the-password", "slug": "greenfield-academy"},
        )
        assert resp.status_code == 401

        logs = client.get(f"{API}/audit-logs", params={"severity": "CRITICAL"}, headers=admin_headers).json()
        assert logs["items"][0]["action"] == "LOGIN_FAILED"
        assert logs["items"][0]["actor_name"] == "head@greenfield.ac.ke"

    def test_unknown_school_is_404(self, client, school):
        resp = client.post(
            f"{API}/auth/login",
            json={"email": "head@greenfield.ac.ke", "password": PASSWORD, "slug": "nowhere"},
        )
        assert resp.status_code == 404

    def test_member_of_another_school_is_403(self, client, school):
        client.post(
            f"{API}/setup",
            json=setup_payload(slug="hillside-school", code="HSS001", email="head@hillside.ac.ke"),
        )
        resp = client.post(
            f"{API}/auth/login",
            json={"email": "head@greenfield.ac.ke", "password": PASSWORD, "slug": "hillside-school"},
        )
        assert resp.status_code == 403
        assert "access to this school" in resp.json()["detail"]

    def test_login_is_rate_limited(self, client, school, monkeypatch):
        monkeypatch.setattr(limiter, "enabled", True)
        limiter.reset()
        allowed = int(settings.LOGIN_RATE_LIMIT.split("/")[0])
        body = {"email": "head@greenfield.ac.ke", "password": PASSWORD, "slug": "greenfield-academy"}
        try:
            codes = [client.post(f"{API}/auth/login", json=body).status_code for _ in range(allowed + 1)]
        finally:
            limiter.reset()
        assert codes[:allowed] == [200] * allowed
        assert codes[-1] == 429

    def test_refresh_and_me(self, client, school):
        refreshed = client.post(f"{API}/auth/refresh", json={"refresh_token": school["refresh_token"]})
        assert refreshed.status_code == 200
        me = client.get(f"{API}/auth/me", headers=bearer(refreshed.json()["access_token"])).json()
        assert me["user"]["email"] == "head@greenfield.ac.ke"
        assert me["school"]["slug"] == "greenfield-academy"

    def test_refresh_token_cannot_be_used_as_access(self, client, school):
        resp = client.get(f"{API}/auth/me", headers=bearer(school["refresh_token"]))
        assert resp.status_code == 401

    def test_access_token_cannot_refresh(self, client, school):
        resp = client.post(f"{API}/auth/refresh", json={"refresh_token": school["access_token"]})
        assert resp.status_code == 401

    def test_missing_and_garbage_tokens(self, client, school):
        assert client.get(f"{API}/auth/me").status_code == 401
        assert client.get(f"{API}/auth/me", headers=bearer("not-a-jwt")).status_code == 401


class TestUsers:
    def test_admin_creates_and_deactivates_user(self, client, admin_headers):
        created = client.post(
            f"{API}/auth/users",
            json={
                "email": "bursar@greenfield.ac.ke",
                "password": PASSWORD,
                "first_name": "Peter",
                "last_name": "Kamau",
                "role": "BURSAR",
            },
            headers=admin_headers,
        )
        assert created.status_code == 201
        user_id = created.json()["id"]
        bursar = login(client, "bursar@greenfield.ac.ke")

        listed = client.get(f"{API}/auth/users", params={"role": "bursar"}, headers=admin_headers).json()
        assert [u["id"] for u in listed] == [user_id]

        resp = client.patch(f"{API}/auth/users/{user_id}/status", json={"is_active": False}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        # existing tokens stop working and new logins are refused
        assert client.get(f"{API}/auth/me", headers=bursar).status_code == 403
        resp = client.post(
            f"{API}/auth/login",
            json={"email": "bursar@greenfield.ac.ke", "password": PASSWORD, "slug": "greenfield-academy"},
        )
        assert resp.status_code == 403

    def test_admin_cannot_deactivate_self(self, client, school, admin_headers):
        resp = client.patch(
            f"{API}/auth/users/{school['user']['id']}/status", json={"is_active": False}, headers=admin_headers
        )
        assert resp.status_code == 400

    def test_non_admin_cannot_manage_users(self, client, bursar_headers):
        assert client.get(f"{API}/auth/users", headers=bursar_headers).status_code == 403


class TestProfile:
    def test_update_profile(self, client, admin_headers):
        resp = client.put(f"{API}/users/profile", json={"phone": "+254712345678"}, headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"{API}/users/profile", headers=admin_headers).json()["phone"] == "+254712345678"

    def test_change_password(self, client, admin_headers):
        resp = client.post(
            f"{API}/users/change-password",
            json={"current_password": PASSWORD, "new_password": "An0ther-Secret"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        login(client, "head@greenfield.ac.ke", password="An0ther-Secret")

    def test_change_password_requires_current(self, client, admin_headers):
        resp = client.post(
            f"{API}/users/change-password",
            json={"current_password": "wrong-one", "new_password": "An0ther-Secret"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
