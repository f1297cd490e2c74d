"""Relay orchestration: validate, prepare and dispatch one outbound call."""

import httpx

from core.config import Config
from core.exceptions import MissingParameter, UnsupportedMethod
from core.headers import HeaderBuilder
from core.protocols import RelayLogger
from core.request_types import SUPPORTED_METHODS, RelayRequest, RelayResponse
from core.target_policy import TargetPolicy
from core.transform import BodyEncoder, decode_response_body
from services.upstream import UpstreamClient


class RelayService:
    """Relay a RelayRequest to its target and normalize the result."""

    def __init__(
        self,
        config: Config,
        logger: RelayLogger,
        upstream: UpstreamClient,
        policy: TargetPolicy | None = None,
        header_builder: HeaderBuilder | None = None,
        encoder: BodyEncoder | None = None,
    ) -> None:
        self._logger = logger
        self._upstream = upstream
        self._policy = policy or TargetPolicy(config.blocked_hosts)
        self._headers = header_builder or HeaderBuilder(config.upstream.user_agent)
        self._encoder = encoder or BodyEncoder()

    def validate(self, request: RelayRequest) -> httpx.URL:
        """Check target and method; return the parsed target URL."""
        url = self._policy.check(request.target_url)
        if not request.method:
            raise MissingParameter("Method is required", parameter="method")
        if request.method not in SUPPORTED_METHODS:
            raise UnsupportedMethod(
                f"Method {request.method} is not supported; use one of {', '.join(SUPPORTED_METHODS)}"
            )
        return url

    async def relay(self, request: RelayRequest, route: str) -> RelayResponse:
        """Issue exactly one outbound call for request.

        Upstream 4xx/5xx responses are returned, not raised.
        """
        url = self.validate(request)
        headers = self._headers.build_outbound_headers(request.headers)

        content = None
        if request.allows_body:
            content, content_type = self._encoder.encode(request.body, request.content_type)
            if content is not None and content_type:
                headers["Content-Type"] = content_type

        response, elapsed_ms = await self._upstream.send(request.method, url, headers, content)

        result = RelayResponse(
            target_url=str(url),
            method=request.method,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=self._headers.strip_response_headers(response.headers),
            body=decode_response_body(response),
            elapsed_ms=elapsed_ms,
        )
        self._logger.log_relay(
            route,
            request.method,
            result.target_url,
            result.status,
            elapsed_ms,
            headers=dict(headers),
        )
        return result
