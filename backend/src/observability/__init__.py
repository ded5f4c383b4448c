"""Observability module for Letterbox.

Provides structured logging, metrics, request correlation and health checks.
"""

from .logging_config import configure_logging, get_logger
from .metrics import (
    messages_created_total,
    message_transitions_total,
    push_events_total,
    push_connections,
)
from .request_id import request_id_var, get_request_id, set_request_id, reset_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "messages_created_total",
    "message_transitions_total",
    "push_events_total",
    "push_connections",
    # Request ID
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "reset_request_id",
    "generate_request_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "RequestIDMiddleware",
]
