"""Service health API route.

GET /health reports uptime and, for each chat provider, whether an API key
is configured. The service is "healthy" when at least one provider is
usable without a per-request key and "degraded" otherwise; per-request keys
still let a degraded service serve analysis requests.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from enum import Enum

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.dependencies import get_provider_manager
from src.core.constants import HEALTH_CHECK_PATH
from src.providers.manager import ProviderManager


logger = logging.getLogger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix=HEALTH_CHECK_PATH,
    tags=["Health"],
)


# =============================================================================
# Enums and Constants
# =============================================================================

class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


SERVICE_NAME = "code-assistant"
SERVICE_VERSION = os.environ.get("SERVICE_VERSION", "1.0.0")


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for health check.

    Attributes:
        status: Overall service status
        service: Service name
        version: Service version
        timestamp: Check timestamp (ISO format)
        uptime_seconds: Service uptime in seconds
        providers: Configured state of each chat provider, by display name
    """

    status: HealthStatus = Field(
        default=HealthStatus.HEALTHY,
        description="Overall service status",
    )
    service: str = Field(
        default=SERVICE_NAME,
        description="Service name",
    )
    version: str = Field(
        default=SERVICE_VERSION,
        description="Service version",
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="Check timestamp",
    )
    uptime_seconds: float | None = Field(
        default=None,
        description="Service uptime in seconds",
    )
    providers: dict[str, bool] = Field(
        default_factory=dict,
        description="Whether each provider has a configured API key",
    )


# =============================================================================
# Service Start Time
# =============================================================================

_service_start_time: datetime | None = None


def set_service_start_time(start_time: datetime | None = None) -> None:
    """Set the service start time for uptime calculation.

    Args:
        start_time: Service start time, defaults to now
    """
    global _service_start_time
    _service_start_time = start_time or datetime.now(UTC)


def get_uptime_seconds() -> float | None:
    """Get service uptime in seconds, or None if the start time is not set."""
    if _service_start_time is None:
        return None

    delta = datetime.now(UTC) - _service_start_time
    return delta.total_seconds()


def calculate_overall_status(providers: dict[str, bool]) -> HealthStatus:
    return HealthStatus.HEALTHY if any(providers.values()) else HealthStatus.DEGRADED


# =============================================================================
# API Endpoints
# =============================================================================

@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns uptime and chat provider availability.",
)
async def health_check(
    provider_manager: ProviderManager = Depends(get_provider_manager),
) -> HealthResponse:
    providers = provider_manager.get_available_services()
    return HealthResponse(
        status=calculate_overall_status(providers),
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        timestamp=datetime.now(UTC).isoformat(),
        uptime_seconds=get_uptime_seconds(),
        providers=providers,
    )


__all__ = [
    "HealthResponse",
    "HealthStatus",
    "calculate_overall_status",
    "get_uptime_seconds",
    "router",
    "set_service_start_time",
]
