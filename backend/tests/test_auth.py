from datetime import timedelta

from jose import jwt

from conftest import NOW, auth_headers, make_business
from marketplace import auth
from marketplace.config import settings

HTML = {"Accept": "text/html,application/xhtml+xml"}


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestTokens:
    def test_round_trip(self):
        token = auth.create_access_token(user_id="user-1", email="someone@example.com")
        payload = auth.decode_token(token)
        assert payload["sub"] == "user-1"
        assert payload["aud"] == settings.auth_jwt_audience

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "user-1", "aud": settings.auth_jwt_audience},
            "not-the-secret",
            algorithm="HS256",
        )
        try:
            auth.decode_token(token)
        except ValueError:
            pass
        else:
            raise AssertionError("token signed with another secret was accepted")

    def test_normalize_role(self):
        assert auth.normalize_role("Business_Owner") == "business-owner"
        assert auth.normalize_role("ADMIN") == "admin"
        assert auth.normalize_role("superuser") == "customer"
        assert auth.normalize_role(None) == "customer"


class TestRequestAuth:
    def test_missing_token(self, client):
        res = client.get("/business/me")
        assert res.status_code == 401
        assert res.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        assert client.get("/business/me", headers=bearer("abc.def.ghi")).status_code == 401

    def test_unknown_user(self, client):
        token = auth.create_access_token(user_id="ghost", email="ghost@example.com")
        assert client.get("/business/me", headers=bearer(token)).status_code == 401

    def test_wrong_role(self, client, customer):
        res = client.get("/business/me", headers=auth_headers(customer))
        assert res.status_code == 403
        assert res.json()["detail"] == "Business owner account required"

    def test_public_needs_no_token(self, client):
        assert client.get("/public/businesses").status_code == 200
        assert client.get("/health").json() == {"status": "ok"}


class TestBrowserRedirects:
    def test_unauthenticated_browser_goes_to_login(self, client):
        res = client.get("/business/me", headers=HTML, follow_redirects=False)
        assert res.status_code == 303
        assert res.headers["location"] == "/login"

    def test_locked_feature_goes_to_subscription(self, client, db, owner):
        make_business(db, owner, trial_end_date=NOW - timedelta(days=1))
        res = client.post(
            "/business/services",
            json={"name": "Full Valet", "price": 120.0},
            headers={**auth_headers(owner), **HTML},
            follow_redirects=False,
        )
        assert res.status_code == 303
        assert res.headers["location"] == "/business/subscription"

    def test_unverified_browser_gets_json(self, client, db, owner):
        make_business(db, owner, verification_status="pending")
        res = client.post(
            "/business/services",
            json={"name": "Full Valet", "price": 120.0},
            headers={**auth_headers(owner), **HTML},
            follow_redirects=False,
        )
        assert res.status_code == 403
        assert res.json()["detail"]["code"] == "BUSINESS_NOT_VERIFIED"
