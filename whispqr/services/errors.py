"""
Error taxonomy for the event and message stores
"""

# Resolution failures share one message so a guest cannot tell an unknown
# code from an expired or deleted event.
EVENT_UNAVAILABLE = "Event not found or has expired"


class WhispqrError(Exception):
    """Base class for store errors."""

    error_code = "error"

    def __init__(self, message: str, details=None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(WhispqrError):
    """Raised when an id or code does not resolve to a live record."""

    error_code = "not_found"


class ValidationError(WhispqrError):
    """Raised when caller-supplied fields violate a length or format constraint."""

    error_code = "validation_error"


class AuthorizationError(WhispqrError):
    """Raised when the viewer is not the host who owns the event."""

    error_code = "forbidden"


class TransportError(WhispqrError):
    """Raised when the underlying persistence call failed."""

    error_code = "transport_error"


def event_unavailable() -> NotFoundError:
    return NotFoundError(EVENT_UNAVAILABLE)
