"""Shared protocol definitions."""

from typing import Protocol


class RelayLogger(Protocol):
    """Protocol for relay event logging (Dashboard)."""

    def log_relay(
        self,
        route: str,
        method: str,
        target: str,
        status: int,
        elapsed_ms: int,
        *,
        headers: dict[str, str] | None = None,
    ) -> None: ...
    def log_rejected(self, route: str, code: str, message: str) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
