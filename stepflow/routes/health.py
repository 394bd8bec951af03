# stepflow/routes/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Dict, List

import psutil
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stepflow import __version__
from stepflow.core.config import settings
from stepflow.core.logging import get_structlog_logger
from stepflow.services.flow_store import FlowStore, get_flow_store

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


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


async def check_flow_store(store: FlowStore) -> Dict[str, str]:
    try:
        return await store.health()
    except Exception as e:
        return {
            "status": "unhealthy",
            "backend": store.backend,
            "error": str(e),
        }


def check_consultation_endpoint() -> Dict[str, str]:
    # Configuration only; the endpoint is never called outside a submission.
    url = settings.consultation_endpoint_url
    configured = url.startswith(("http://", "https://"))
    return {
        "status": "healthy" if configured else "unhealthy",
        "url": url,
        "timeout_seconds": str(settings.submission_timeout_seconds),
    }


@router.get("/health", response_model=HealthCheckResponse, status_code=status.HTTP_200_OK)
async def health_check(store: FlowStore = Depends(get_flow_store)):
    """Comprehensive health check endpoint."""
    start_time = time.perf_counter()

    all_checks = {
        "flow_store": await check_flow_store(store),
        "consultation_endpoint": check_consultation_endpoint(),
    }

    overall_status = "healthy"
    for service, result in all_checks.items():
        if result.get("status") != "healthy":
            overall_status = "unhealthy" if service == "flow_store" else "degraded"
            if overall_status == "unhealthy":
                break

    process = psutil.Process()
    uptime_seconds = time.time() - process.create_time()

    dependencies_list = [store.backend, "consultation_endpoint"]
    if settings.sentry_dsn:
        dependencies_list.append("sentry")

    response = HealthCheckResponse(
        status=overall_status,
        service="stepflow_api",
        environment=settings.environment,
        version=__version__,
        timestamp=_utcnow(),
        uptime=uptime_seconds,
        checks=all_checks,
        dependencies=dependencies_list,
    )

    log = logger.info if overall_status == "healthy" else logger.warning
    log(
        "health.check",
        status=overall_status,
        response_time_ms=(time.perf_counter() - start_time) * 1000,
        checks=all_checks,
    )

    return response


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe():
    """Simple liveness probe for Kubernetes/containers."""
    return {
        "status": "alive",
        "timestamp": _utcnow(),
    }


@router.get("/health/ready")
async def readiness_probe(store: FlowStore = Depends(get_flow_store)):
    """Readiness probe that checks the flow store."""
    flow_store = await check_flow_store(store)
    is_ready = flow_store.get("status") == "healthy"

    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "timestamp": _utcnow(),
            "checks": {"flow_store": flow_store.get("status", "unknown")},
        },
    )
