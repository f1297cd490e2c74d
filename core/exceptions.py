"""Exception hierarchy for the relay.

Every relay error maps to one JSON error response. ``code`` is the stable
machine-readable kind, ``error`` the short human label sent to the caller.
"""

from typing import Any


class RelayError(Exception):
    """Base exception for all relay errors."""

    status_code = 500
    error = "Relay error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message, "code": self.code}


class MissingParameter(RelayError):
    """Raised when the target URL (or wrapper method) is absent."""

    status_code = 400

    def __init__(self, message: str, parameter: str = "URL") -> None:
        super().__init__(message)
        self.parameter = parameter
        self.error = f"Missing {parameter} parameter"


class InvalidURL(RelayError):
    status_code = 400
    error = "Invalid URL"


class UnsupportedProtocol(RelayError):
    status_code = 400
    error = "Unsupported protocol"


class UnsupportedMethod(RelayError):
    status_code = 400
    error = "Unsupported method"


class BlockedHost(RelayError):
    """Raised when the target hostname is in the blocked set."""

    status_code = 400
    error = "Blocked hostname"

    def __init__(self, message: str, hostname: str) -> None:
        super().__init__(message)
        self.hostname = hostname


class BodyParseFailure(RelayError):
    """Inbound body could not be decoded per its declared content type.

    Attributes:
        hint: Human readable suggestion for fixing the body
        received_body: Raw body as received, for debugging
    """

    status_code = 400
    error = "Invalid request body"

    def __init__(self, message: str, hint: str, received_body: str) -> None:
        super().__init__(message)
        self.hint = hint
        self.received_body = received_body

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["hint"] = self.hint
        payload["receivedBody"] = self.received_body
        return payload


class RequestTooLarge(RelayError):
    status_code = 413
    error = "Request body too large"


class RateLimited(RelayError):
    status_code = 429
    error = "Too many requests"

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransportFailure(RelayError):
    """Raised when the upstream target could not be reached.

    Attributes:
        target_url: URL the relay attempted to contact
    """

    status_code = 500
    error = "Proxy request failed"

    def __init__(self, message: str, target_url: str) -> None:
        super().__init__(message)
        self.target_url = target_url


class UpstreamTimeout(TransportFailure):
    """Raised when the upstream call exceeds the relay timeout."""
