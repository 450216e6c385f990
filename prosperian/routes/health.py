# prosperian/routes/health.py
from __future__ import annotations

import time
from datetime import datetime
from typing import Dict, List

import psutil
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from prosperian import __version__
from prosperian.core.config import settings
from prosperian.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    version: str
    timestamp: str
    uptime: float
    checks: Dict[str, Dict[str, str]]
    dependencies: List[str]


def check_pronto_configuration() -> Dict[str, str]:
    """Static check that the Pronto upstream is configured; no network call."""
    if not settings.pronto_api_key:
        return {"status": "unhealthy", "error": "PRONTO_API_KEY is not set"}
    return {
        "status": "healthy",
        "base_url": settings.pronto_base_url,
        "timeout_seconds": str(settings.pronto_timeout_seconds),
    }


def check_external_services() -> Dict[str, Dict[str, str]]:
    checks = {"pronto": check_pronto_configuration()}

    if settings.sentry_dsn:
        try:
            import sentry_sdk
            checks["sentry"] = {
                "status": "healthy" if sentry_sdk.get_client().is_active() else "unhealthy",
                "dsn_configured": "true",
            }
        except Exception as e:
            checks["sentry"] = {"status": "unhealthy", "error": str(e)}

    return checks


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check():
    """Service health with upstream configuration checks."""
    checks = check_external_services()
    overall_status = "healthy"
    if any(result.get("status") != "healthy" for result in checks.values()):
        overall_status = "degraded"

    process = psutil.Process()
    dependencies = ["pronto", "prometheus"]
    if settings.sentry_dsn:
        dependencies.append("sentry")

    response = HealthCheckResponse(
        status=overall_status,
        service="prosperian_api",
        environment=settings.environment,
        version=__version__,
        timestamp=datetime.utcnow().isoformat() + "Z",
        uptime=time.time() - process.create_time(),
        checks=checks,
        dependencies=dependencies,
    )

    if overall_status == "healthy":
        logger.info("health.check", status=overall_status)
    else:
        logger.warning("health.check", status=overall_status, checks=checks)
    return response


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_check():
    """Simple liveness check for Kubernetes/containers."""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


@router.get("/health/ready")
async def readiness_check():
    """Ready once the Pronto upstream is configured."""
    pronto = check_pronto_configuration()
    is_ready = pronto["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "checks": {"pronto": pronto["status"]},
        },
    )
