"""Wire-shape adapters for the two relay endpoints.

Each adapter turns its inbound shape into a RelayRequest and renders the
RelayResponse envelope. ``/proxy`` reports timing under ``proxyInfo``,
``/api/wrapper`` under ``wrapperInfo``.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from core.exceptions import MissingParameter
from core.request_types import RelayRequest, RelayResponse


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _content_type(headers: Mapping[str, str]) -> str | None:
    for key, value in headers.items():
        if key.lower() == "content-type":
            return value
    return None


class WrapperPayload(BaseModel):
    """JSON body accepted by POST /api/wrapper."""

    url: str | None = None
    method: str | None = None
    headers: dict[str, Any] | None = None
    body: Any = None


class _EnvelopeAdapter:
    route_name = ""
    info_key = ""
    missing_url_message = ""

    def _require_url(self, target_url: str | None) -> str:
        if target_url is None or not target_url.strip():
            raise MissingParameter(self.missing_url_message)
        return target_url

    def envelope(self, response: RelayResponse) -> dict[str, Any]:
        """Render a successful relay as the JSON envelope."""
        payload: dict[str, Any] = {
            "success": True,
            "status": response.status,
            "statusText": response.status_text,
            "headers": response.headers,
        }
        if response.body is not None:
            payload["data"] = response.body
        payload[self.info_key] = self._info(response)
        return payload

    def _info(self, response: RelayResponse) -> dict[str, Any]:
        return {
            "timestamp": utc_timestamp(),
            "responseTime": response.elapsed_ms,
            "targetUrl": response.target_url,
        }


class PathStyleAdapter(_EnvelopeAdapter):
    """ANY /proxy?url=... - method, headers and body come from the call itself."""

    route_name = "proxy"
    info_key = "proxyInfo"
    missing_url_message = "Please provide a URL parameter: /proxy?url=<target_url>"

    def build(
        self,
        target_url: str | None,
        method: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> RelayRequest:
        return RelayRequest(
            target_url=self._require_url(target_url),
            method=method.upper(),
            headers=dict(headers.items()),
            body=body or None,
            content_type=_content_type(headers),
        )


class WrapperStyleAdapter(_EnvelopeAdapter):
    """POST /api/wrapper - method, headers and body come from the JSON payload."""

    route_name = "wrapper"
    info_key = "wrapperInfo"
    missing_url_message = 'Please provide the target in the "url" field of the JSON payload'

    def build(self, payload: WrapperPayload) -> RelayRequest:
        headers = {key: str(value) for key, value in (payload.headers or {}).items()}
        return RelayRequest(
            target_url=self._require_url(payload.url),
            method=(payload.method or "").strip().upper(),
            headers=headers,
            body=payload.body,
            content_type=_content_type(headers),
        )

    def _info(self, response: RelayResponse) -> dict[str, Any]:
        info = super()._info(response)
        info["method"] = response.method
        return info
