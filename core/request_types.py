"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class RelayRequest:
    """Description of one outbound call."""

    target_url: str | None
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None
    content_type: str | None = None

    @property
    def allows_body(self) -> bool:
        return self.method in BODY_METHODS


@dataclass(frozen=True)
class RelayResponse:
    """Normalized result of one outbound call."""

    target_url: str
    method: str
    status: int
    status_text: str
    headers: dict[str, str]
    body: Any
    elapsed_ms: int
