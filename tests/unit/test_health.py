"""
Tests for health check endpoints.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)

FACTORY = "0x4444444444444444444444444444444444444444"
VERIFIER = "0x5555555555555555555555555555555555555555"


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "alpha-builder-backend"


def test_healthz_echoes_request_id():
    response = client.get("/healthz", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_readyz_endpoint_all_services_healthy():
    """Test readiness endpoint with RPC reachable and contracts configured."""
    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=True)),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", VERIFIER),
        patch("app.routes.health.settings.SESSION_STORE_BACKEND", "memory"),
        patch("app.routes.health.settings.USER_STORE_BACKEND", "memory"),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True

    checks = data["checks"]
    assert checks["ethereum_rpc"]["ok"] is True
    assert isinstance(checks["ethereum_rpc"]["latency_ms"], (int, float))
    assert checks["session_store"] == {"ok": True, "backend": "memory"}
    assert checks["configuration"]["ok"] is True


def test_readyz_endpoint_rpc_unreachable():
    """Should still return 200, but overall_ok should be False."""
    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=False)),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", VERIFIER),
    ):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["ethereum_rpc"]["ok"] is False


def test_readyz_endpoint_redis_unhealthy():
    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=True)),
        patch("app.routes.health.fast_redis.ping", AsyncMock(return_value=False)),
        patch("app.routes.health.settings.SESSION_STORE_BACKEND", "redis"),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", VERIFIER),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["session_store"]["backend"] == "redis"
    assert data["checks"]["session_store"]["ok"] is False


def test_readyz_endpoint_postgres_unhealthy():
    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=True)),
        patch(
            "app.routes.health.db_health_check",
            AsyncMock(return_value={"healthy": False, "error": "Connection failed"}),
        ),
        patch("app.routes.health.settings.USER_STORE_BACKEND", "postgres"),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", VERIFIER),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["user_store"]["ok"] is False
    assert data["checks"]["user_store"]["error"] == "Connection failed"


def test_readyz_missing_verifier_is_an_issue_unless_allowed():
    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=True)),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", None),
        patch("app.routes.health.settings.ALLOW_UNVERIFIED_PROOFS", False),
    ):
        strict = client.get("/readyz").json()

    with (
        patch("app.routes.health.ethereum_service.is_connected", AsyncMock(return_value=True)),
        patch("app.routes.health.settings.EMAIL_AA_FACTORY_ADDRESS", FACTORY),
        patch("app.routes.health.settings.ZK_EMAIL_VERIFIER_ADDRESS", None),
        patch("app.routes.health.settings.ALLOW_UNVERIFIED_PROOFS", True),
    ):
        relaxed = client.get("/readyz").json()

    assert strict["checks"]["configuration"]["ok"] is False
    assert "ZK_EMAIL_VERIFIER_ADDRESS not set" in strict["checks"]["configuration"]["issues"]
    assert relaxed["checks"]["configuration"]["ok"] is True
    assert relaxed["checks"]["configuration"]["warnings"]
