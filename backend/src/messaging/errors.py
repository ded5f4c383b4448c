"""Exceptions raised by the messaging layer.

Each exception carries the HTTP status and error code the API maps it to,
so the service stays free of FastAPI imports.
"""


class MessagingError(Exception):
    """Base class for messaging failures (500 unless a subclass says otherwise)."""

    status_code = 500
    error_code = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MessageValidationError(MessagingError):
    """A required field is missing or a transition precondition is not met."""

    status_code = 400
    error_code = "validation_error"


class MessageNotFoundError(MessagingError):
    """Unknown identity, missing message, or a message the caller may not see.

    The last two are deliberately indistinguishable.
    """

    status_code = 404
    error_code = "not_found"
