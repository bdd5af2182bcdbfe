"""
Login, token and staff account tests
"""
import pytest
from jose import jwt

from federation import auth, models
from federation.main import seed_admin_if_enabled


class TestTokens:
    def test_roundtrip_claims(self):
        token = auth.create_access_token(user_id=7, subject="a@federation.org", role="admin")
        payload = jwt.decode(token, auth.SECRET_KEY, algorithms=[auth.ALGORITHM])
        assert payload["uid"] == 7
        assert payload["rol"] == "ADMIN"
        assert payload["sub"] == "a@federation.org"

    def test_garbage_token(self):
        with pytest.raises(ValueError):
            auth.decode_token("not.a.token")

    def test_normalize_role(self):
        assert auth.normalize_role(" admin ") == "ADMIN"
        assert auth.normalize_role("OWNER") == "USER"
        assert auth.normalize_role(None) == "USER"


class TestLogin:
    def test_login_success(self, client, admin_user):
        res = client.post("/auth/login", data={"username": "ADMIN@federation.org", "password": "Password123!"})
        assert res.status_code == 200
        data = res.json()
        assert data["token_type"] == "bearer"
        assert data["role"] == "ADMIN"

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == "admin@federation.org"

    def test_wrong_password(self, client, admin_user):
        res = client.post("/auth/login", data={"username": "admin@federation.org", "password": "nope"})
        assert res.status_code == 401

    def test_inactive_user(self, client, staff_user, db_session):
        staff_user.is_active = False
        db_session.commit()
        res = client.post("/auth/login", data={"username": "clerk@federation.org", "password": "Password123!"})
        assert res.status_code == 403

    def test_invalid_bearer(self, client):
        res = client.get("/persons", headers={"Authorization": "Bearer broken"})
        assert res.status_code == 401
        assert res.json() == {"detail": "Not authenticated"}

    def test_browser_redirected_to_login(self, client):
        res = client.get("/persons", headers={"accept": "text/html"}, follow_redirects=False)
        assert res.status_code == 303
        assert res.headers["location"] == "/login"


class TestAdminUsers:
    def test_create_and_list(self, client, admin_headers):
        res = client.post(
            "/admin/users",
            json={"email": "New.Clerk@federation.org", "password": "LongEnough1", "full_name": "New Clerk"},
            headers=admin_headers,
        )
        assert res.status_code == 201
        assert res.json()["email"] == "new.clerk@federation.org"
        assert res.json()["role"] == "USER"

        res = client.get("/admin/users", headers=admin_headers)
        assert len(res.json()) == 2

    def test_duplicate_email(self, client, admin_headers):
        body = {"email": "admin@federation.org", "password": "LongEnough1"}
        assert client.post("/admin/users", json=body, headers=admin_headers).status_code == 400

    def test_staff_forbidden(self, client, staff_headers):
        assert client.get("/admin/users", headers=staff_headers).status_code == 403

    def test_cannot_demote_or_deactivate_self(self, client, admin_headers, admin_user):
        res = client.patch(f"/admin/users/{admin_user.id}", json={"role": "USER"}, headers=admin_headers)
        assert res.status_code == 400
        res = client.patch(f"/admin/users/{admin_user.id}/active", json={"is_active": False}, headers=admin_headers)
        assert res.status_code == 400

    def test_promote_and_reset_password(self, client, admin_headers, staff_user, db_session):
        res = client.patch(f"/admin/users/{staff_user.id}", json={"role": "ADMIN"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.json()["role"] == "ADMIN"

        res = client.patch(
            f"/admin/users/{staff_user.id}/password", json={"password": "BrandNewPass9"}, headers=admin_headers
        )
        assert res.json() == {"ok": True}
        db_session.refresh(staff_user)
        assert auth.verify_password("BrandNewPass9", staff_user.hashed_password)

    def test_deactivated_token_is_refused(self, client, admin_headers, staff_user, staff_headers):
        res = client.patch(f"/admin/users/{staff_user.id}/active", json={"is_active": False}, headers=admin_headers)
        assert res.status_code == 200
        assert client.get("/persons", headers=staff_headers).status_code == 403


class TestSeedAdmin:
    def test_disabled_by_default(self, db_session, monkeypatch):
        monkeypatch.delenv("SEED_ADMIN", raising=False)
        assert seed_admin_if_enabled(db_session) is False

    def test_seeds_once(self, db_session, monkeypatch):
        monkeypatch.setenv("SEED_ADMIN", "1")
        monkeypatch.setenv("SEED_ADMIN_EMAIL", "Boss@federation.org")
        monkeypatch.setenv("SEED_ADMIN_PASSWORD", "SeedPass123!")

        assert seed_admin_if_enabled(db_session) is True
        assert seed_admin_if_enabled(db_session) is False

        users = db_session.query(models.User).all()
        assert [u.email for u in users] == ["boss@federation.org"]
        assert users[0].role == "ADMIN"
