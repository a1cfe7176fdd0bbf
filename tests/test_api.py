"""
Tests for the HTTP API, with the in-memory store and a stubbed identity provider.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from guardmogo.api.dependencies import auth_service, get_optional_user, report_service
from guardmogo.clients.memory_store import InMemoryDatabase
from guardmogo.config import settings
from guardmogo.main import app
from guardmogo.models.internal_models import AuthSession, CurrentUser, UserProfile
from guardmogo.services.auth_service import AuthServiceError
from guardmogo.services.report_service import ReportService
from guardmogo.utils.auth_messages import AuthErrorKind

DESCRIPTION = "Caller claimed to have sent money by mistake and asked for a refund."

REPORT = {
    "number": "024 412 3456",
    "carrier": "MTN",
    "fraudType": "Fake reversal",
    "description": DESCRIPTION,
}


def make_user(user_id: str = "user-1", role: str = "user") -> CurrentUser:
    profile = UserProfile(
        id=user_id,
        email=f"{user_id}@example.com",
        display_name="Ama Mensah",
        role=role,
        created_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
    )
    return CurrentUser(id=user_id, email=profile.email, role=role, profile=profile)


@pytest.fixture
def service():
    return ReportService(InMemoryDatabase())


@pytest.fixture
def mock_auth():
    auth = Mock()
    auth.sign_up = AsyncMock()
    auth.sign_in = AsyncMock()
    auth.sign_out = AsyncMock()
    auth.reset_password = AsyncMock()
    auth.complete_oauth_sign_in = AsyncMock()
    return auth


@pytest.fixture
def client(service, mock_auth):
    app.dependency_overrides[report_service] = lambda: service
    app.dependency_overrides[auth_service] = lambda: mock_auth
    app.dependency_overrides[get_optional_user] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def sign_in_as(user):
    app.dependency_overrides[get_optional_user] = lambda: user


class TestApplication:

    def test_app_creation(self):
        assert app.title == "GuardMoGo API"

    def test_health_check(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_request_id_and_security_headers(self, client):
        response = client.get("/api/v1/safety-tips", headers={"X-Request-ID": "req_test_1"})

        assert response.headers["X-Request-ID"] == "req_test_1"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_metrics(self, client):
        client.get("/healthz")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.json()["metrics"]["total_requests"] >= 1

    def test_component_health(self, client, service):
        with patch.object(settings, "store_backend", "memory"), \
                patch("guardmogo.api.auth.get_report_service", return_value=service):
            response = client.get("/api/v1/health")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"]["backend"] == "memory"

    def test_missing_configuration_blocks_requests(self, client):
        app.dependency_overrides.pop(report_service)
        with patch.object(settings, "store_backend", "supabase"), \
                patch.object(settings, "supabase_url", None), \
                patch.object(settings, "supabase_key", None):
            response = client.get("/api/v1/numbers/check", params={"number": "0244123456"})
            health = client.get("/api/v1/health").json()

        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "BackendNotConfigured"
        assert body["missing"] == ["SUPABASE_URL", "SUPABASE_KEY"]
        assert "SUPABASE_URL" in body["message"]
        assert health["status"] == "unhealthy"


class TestReports:

    def test_guest_cannot_submit(self, client):
        response = client.post("/api/v1/reports", json=REPORT)

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "AuthenticationRequired"
        assert datetime.fromisoformat(body["timestamp"]).utcoffset() == timedelta(0)

    def test_submit_and_check(self, client):
        sign_in_as(make_user())

        response = client.post("/api/v1/reports", json=REPORT)

        assert response.status_code == 201
        created = response.json()
        assert created["number"] == "0244123456"
        assert created["status"] == "active"
        assert created["message"] == "Fraud report submitted successfully!"

        check = client.get("/api/v1/numbers/check", params={"number": "+233244123456"}).json()
        assert check["found"] is True
        assert check["flagged"] is True
        assert check["reportsCount"] == 1
        assert check["reports"][0]["id"] == created["id"]

    def test_snake_case_fields_accepted(self, client):
        sign_in_as(make_user())
        body = {"number": "0551234567", "fraud_type": "Fake reversal", "description": DESCRIPTION}

        response = client.post("/api/v1/reports", json=body)

        assert response.status_code == 201

    def test_invalid_report_lists_fields(self, client):
        sign_in_as(make_user())

        response = client.post("/api/v1/reports", json={**REPORT, "number": "0204123456", "description": "short"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "ValidationError"
        assert body["message"] == "Please fix the errors in the form before submitting"
        assert set(body["fields"]) == {"number", "description"}

    def test_store_failure(self, client, service):
        sign_in_as(make_user())

        with patch.object(service.db, "submit_report", AsyncMock(side_effect=RuntimeError("down"))):
            response = client.post("/api/v1/reports", json=REPORT)

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to submit report. Please try again."

    def test_list_and_get_reports(self, client):
        sign_in_as(make_user())
        created = client.post("/api/v1/reports", json=REPORT).json()

        listed = client.get("/api/v1/reports", params={"limit": 10}).json()
        assert [r["id"] for r in listed] == [created["id"]]

        report = client.get(f"/api/v1/reports/{created['id']}").json()
        assert report["fraudType"] == "Fake reversal"
        assert report["userId"] == "user-1"

    def test_unknown_report(self, client):
        response = client.get("/api/v1/reports/missing", headers={"X-Request-ID": "req_404"})

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "ReportNotFound"
        assert body["correlation_id"] == "req_404"
        assert datetime.fromisoformat(body["timestamp"]).utcoffset() == timedelta(0)

    def test_bad_ordering(self, client):
        response = client.get("/api/v1/reports", params={"order_by": "password"})
        assert response.status_code == 422
        assert "order_by" in response.json()["fields"]

    def test_comments(self, client):
        sign_in_as(make_user())
        created = client.post("/api/v1/reports", json=REPORT).json()

        sign_in_as(make_user("user-2"))
        response = client.post(f"/api/v1/reports/{created['id']}/comments", json={"text": "Same caller tried me."})
        assert response.status_code == 201

        comments = client.get(f"/api/v1/reports/{created['id']}/comments").json()
        assert [c["text"] for c in comments] == ["Same caller tried me."]
        assert client.get(f"/api/v1/reports/{created['id']}").json()["commentsCount"] == 1

    def test_comment_on_missing_report(self, client):
        sign_in_as(make_user())
        response = client.post("/api/v1/reports/missing/comments", json={"text": "Hello"})
        assert response.status_code == 404

    def test_my_profile_and_reports(self, client):
        sign_in_as(make_user())
        client.post("/api/v1/reports", json=REPORT)

        profile = client.get("/api/v1/users/me").json()
        assert profile["displayName"] == "Ama Mensah"

        mine = client.get("/api/v1/users/me/reports").json()
        assert len(mine) == 1


class TestNumbers:

    def test_unknown_number(self, client):
        response = client.get("/api/v1/numbers/check", params={"number": "0244123456"})

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is False
        assert data["flagged"] is False
        assert data["reportsCount"] == 0
        assert "reports_count" not in data
        assert data["reports"] == []

    def test_empty_number(self, client):
        response = client.get("/api/v1/numbers/check", params={"number": "   "})

        assert response.status_code == 422
        assert response.json()["fields"] == {"number": "Please enter a MoMo number"}

    def test_dashboard_and_top_numbers(self, client):
        sign_in_as(make_user())
        client.post("/api/v1/reports", json=REPORT)
        client.post("/api/v1/reports", json=REPORT)
        client.post("/api/v1/reports", json={**REPORT, "number": "0551234567"})

        stats = client.get("/api/v1/dashboard/stats").json()
        assert stats["totalReports"] == 3
        assert stats["totalNumbers"] == 2
        assert stats["topNumbers"][0]["number"] == "0244123456"

        top = client.get("/api/v1/numbers/top", params={"limit": 1}).json()
        assert [(r["number"], r["reportsCount"]) for r in top] == [("0244123456", 2)]

    def test_reconcile_requires_admin(self, client):
        sign_in_as(make_user())
        client.post("/api/v1/reports", json=REPORT)

        response = client.post("/api/v1/numbers/0244123456/reconcile")
        assert response.status_code == 403

        sign_in_as(make_user("admin-1", role="admin"))
        response = client.post("/api/v1/numbers/0244123456/reconcile")
        assert response.status_code == 200
        assert response.json()["reportsCount"] == 1

        response = client.post("/api/v1/numbers/0201234567/reconcile")
        assert response.status_code == 404

    def test_safety_tips(self, client):
        tips = client.get("/api/v1/safety-tips").json()

        assert tips
        assert all(tip["title"] and tip["body"] for tip in tips)


class TestAuthentication:

    def test_guest_session(self, client):
        data = client.get("/api/v1/auth/session").json()

        assert data["authenticated"] is False
        assert data["role"] == "guest"

    def test_signed_in_session(self, client):
        sign_in_as(make_user())
        data = client.get("/api/v1/auth/session").json()

        assert data["authenticated"] is True
        assert data["user_id"] == "user-1"
        assert data["profile"]["displayName"] == "Ama Mensah"

    def test_sign_up(self, client, mock_auth):
        mock_auth.sign_up.return_value = AuthSession(user_id="user-1", email="ama@example.com", access_token="token")

        response = client.post("/api/v1/auth/signup", json={
            "email": "ama@example.com",
            "password": "Passw0rd!",
            "first_name": "Ama",
            "last_name": "Mensah",
        })

        assert response.status_code == 201
        assert response.json()["access_token"] == "token"
        mock_auth.sign_up.assert_awaited_once_with(
            email="ama@example.com", password="Passw0rd!", first_name="Ama", last_name="Mensah"
        )

    @pytest.mark.parametrize("kind,status", [
        (AuthErrorKind.INVALID_CREDENTIALS, 401),
        (AuthErrorKind.DUPLICATE_ACCOUNT, 409),
        (AuthErrorKind.TOO_MANY_ATTEMPTS, 429),
        (AuthErrorKind.UNKNOWN, 400),
    ])
    def test_sign_in_errors(self, client, mock_auth, kind, status):
        mock_auth.sign_in.side_effect = AuthServiceError(kind)

        response = client.post("/api/v1/auth/signin", json={"email": "ama@example.com", "password": "x"})

        assert response.status_code == status
        body = response.json()
        assert body["error"] == kind.value
        assert body["message"] == AuthServiceError(kind).message

    def test_sign_out(self, client, mock_auth):
        assert client.post("/api/v1/auth/signout").status_code == 401

        response = client.post("/api/v1/auth/signout", headers={"Authorization": "Bearer token-1"})

        assert response.status_code == 204
        mock_auth.sign_out.assert_awaited_once_with("token-1")

    def test_reset_password(self, client, mock_auth):
        response = client.post("/api/v1/auth/reset-password", json={"email": "ama@example.com"})

        assert response.status_code == 202
        mock_auth.reset_password.assert_awaited_once_with("ama@example.com")

    def test_google_callback(self, client, mock_auth):
        mock_auth.complete_oauth_sign_in.return_value = AuthSession(
            user_id="google-1", email="kofi@gmail.com", access_token="token"
        )

        response = client.post("/api/v1/auth/google/callback", json={"auth_code": "code", "code_verifier": "v"})

        assert response.status_code == 200
        assert response.json()["user_id"] == "google-1"
