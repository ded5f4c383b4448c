"""Health check utilities.

The message store is the only hard dependency; the push transport is
process-local and reported as degraded when it has not been started.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query."""
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


def check_push_transport_health(registry) -> ComponentHealth:
    """Report whether the connection registry is accepting deliveries."""
    if registry.is_running:
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message=f"{registry.connection_count()} live connection(s)"
        )
    return ComponentHealth(
        status=HealthStatus.DEGRADED,
        message="Push transport not started; notifications are dropped"
    )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst component status wins."""
    statuses = [component.status for component in components.values()]
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
