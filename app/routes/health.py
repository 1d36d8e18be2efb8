"""
Health check endpoints: liveness plus readiness of the backing services.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check
from app.services.ethereum_service import ethereum_service
from app.services.infrastructure.redis_client import fast_redis

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "alpha-builder-backend"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check for the RPC node, the selected stores and configuration.
    Always 200; callers read overall_ok.
    """
    checks = {}
    overall_ok = True

    # 1) Ethereum RPC
    t0 = time.time()
    rpc_ok = await ethereum_service.is_connected()
    checks["ethereum_rpc"] = {"ok": rpc_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
    overall_ok = overall_ok and rpc_ok

    # 2) Session store
    if settings.SESSION_STORE_BACKEND == "redis":
        t0 = time.time()
        redis_ok = await fast_redis.ping()
        checks["session_store"] = {
            "ok": redis_ok,
            "backend": "redis",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = overall_ok and redis_ok
    else:
        checks["session_store"] = {"ok": True, "backend": "memory"}

    # 3) User store
    if settings.USER_STORE_BACKEND == "postgres":
        db_health = await db_health_check()
        checks["user_store"] = {"ok": db_health.get("healthy", False), "backend": "postgres"}
        if not db_health.get("healthy", False):
            checks["user_store"]["error"] = db_health.get("error", "Database unhealthy")
        overall_ok = overall_ok and checks["user_store"]["ok"]
    else:
        checks["user_store"] = {"ok": True, "backend": "memory"}

    # 4) Configuration
    config_issues = []
    warnings = []

    if not settings.EMAIL_AA_FACTORY_ADDRESS:
        config_issues.append("EMAIL_AA_FACTORY_ADDRESS not set")
    if not settings.ZK_EMAIL_VERIFIER_ADDRESS:
        if settings.ALLOW_UNVERIFIED_PROOFS:
            warnings.append("zk-email proofs are accepted without verification")
        else:
            config_issues.append("ZK_EMAIL_VERIFIER_ADDRESS not set")
    if not settings.ETHEREUM_OPERATOR_KEY:
        warnings.append("ETHEREUM_OPERATOR_KEY not set; accounts are predicted, not created")

    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "warnings": warnings or None,
        "environment": settings.environment,
    }
    overall_ok = overall_ok and not config_issues

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
