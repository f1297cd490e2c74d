"""Shared logging utilities."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "relay.log"


def write_relay_log(
    route: str,
    method: str,
    target: str,
    status: int,
    elapsed_ms: int,
    headers: dict[str, str],
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single relay call log entry."""
    payload = {
        "timestamp": _utc_now(),
        "route": route,
        "method": method,
        "target": target,
        "status": status,
        "elapsed_ms": elapsed_ms,
        "headers": _redact_headers(headers),
    }
    return _write_json(log_root / "relay" / _host_folder(target), payload)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path | None = None,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file = log_file or CLI_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> int:
    """Remove per-call JSON logs from a previous run."""
    folder = log_root / "relay"
    if not folder.exists():
        return 0

    deleted = 0
    for old_file in folder.rglob("*.json"):
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(target: str) -> str:
    host = target.split("://", 1)[-1].split("/", 1)[0]
    safe = "".join(c if c.isalnum() or c in ".-" else "_" for c in host)
    return safe or "unknown"


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if "key" in key_lower or "authorization" in key_lower or "token" in key_lower or key_lower == "cookie":
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
