"""Tests for bearer-token authentication and profile resolution."""

from fastapi.testclient import TestClient

from app.main import create_app
from tests.helpers import bearer, make_settings, make_token


class TestPing:

    def test_ping_needs_no_token(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert response.text == "Pong"

    def test_request_id_is_echoed(self, client):
        response = client.get("/ping", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_is_generated(self, client):
        response = client.get("/ping")

        assert response.headers["X-Request-ID"]


class TestBearerToken:

    def test_missing_header(self, client):
        response = client.get("/users/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"detail": "Not authenticated"}

    def test_wrong_scheme(self, client):
        response = client.get("/users/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_bad_signature(self, client):
        response = client.get("/users/me", headers=bearer("alice", secret="other-secret"))

        assert response.status_code == 401

    def test_expired_token(self, client):
        response = client.get("/users/me", headers=bearer("alice", expires_in=-60))

        assert response.status_code == 401

    def test_token_without_subject(self, client):
        token = make_token(None)
        response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_valid_token_without_profile(self, client):
        """A verified subject with no profile yet is a missing profile, not an auth failure."""
        response = client.get("/users/me", headers=bearer("alice"))

        assert response.status_code == 404
        assert response.json() == {"detail": "User profile not found"}

    def test_profile_required_on_other_routes(self, client):
        response = client.get("/groups", headers=bearer("alice"))

        assert response.status_code == 404

    def test_auth_checked_on_every_router(self, client):
        for path in ("/users/search?q=a", "/groups", "/games"):
            assert client.get(path).status_code == 401


class TestAudience:

    def test_audience_checked_when_configured(self):
        settings = make_settings(jwt_audience="authenticated")
        with TestClient(create_app(settings)) as client:
            without_aud = client.get("/users/me", headers=bearer("alice"))
            with_aud = client.get("/users/me", headers=bearer("alice", aud="authenticated"))
            wrong_aud = client.get("/users/me", headers=bearer("alice", aud="someone-else"))

        assert without_aud.status_code == 401
        assert with_aud.status_code == 404
        assert wrong_aud.status_code == 401

    def test_audience_ignored_when_not_configured(self, client):
        response = client.get("/users/me", headers=bearer("alice", aud="anything"))

        assert response.status_code == 404
