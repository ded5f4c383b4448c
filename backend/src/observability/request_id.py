"""Request ID management for request correlation.

The id lives in a ContextVar so it follows the request through sync
handlers, async handlers and the log records they emit.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

NO_REQUEST_ID = "no-request-id"


def generate_request_id() -> str:
    """Generate a new unique request ID (UUID v4)."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside of a request."""
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    """Bind a request ID to the current context.

    Returns:
        Token: Pass to reset_request_id() once the request is finished
    """
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    """Restore the request ID that was active before set_request_id()."""
    request_id_var.reset(token)
