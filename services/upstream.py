"""HTTP dispatch of relay requests to upstream targets."""

import time
from http.cookiejar import CookieJar, DefaultCookiePolicy

import anyio
import httpx

from core.config import Config
from core.exceptions import TransportFailure, UpstreamTimeout
from core.target_policy import TargetPolicy


def build_http_client(
    config: Config,
    policy: TargetPolicy,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared outbound client.

    The cookie jar refuses every cookie so no state survives between relay
    calls. Each redirect hop is re-checked against the target policy.
    """
    settings = config.upstream
    limits = httpx.Limits(
        max_connections=settings.max_connections,
        max_keepalive_connections=settings.max_keepalive_connections,
    )
    return httpx.AsyncClient(
        timeout=settings.timeout,
        limits=limits,
        verify=config.security.verify_tls,
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        event_hooks={"request": [policy.check_redirect_hop]},
        transport=transport,
    )


class UpstreamClient:
    """Send exactly one outbound request per relay call."""

    def __init__(self, client: httpx.AsyncClient, timeout: float) -> None:
        self._client = client
        self._timeout = timeout

    async def send(
        self,
        method: str,
        url: httpx.URL,
        headers: httpx.Headers,
        content: bytes | None,
    ) -> tuple[httpx.Response, int]:
        """Execute the request; return the response and elapsed milliseconds."""
        target = str(url)
        started = time.perf_counter()
        try:
            # Bounds the whole exchange; httpx timeouts only bound single reads
            with anyio.fail_after(self._timeout):
                response = await self._client.request(
                    method,
                    url,
                    headers=headers,
                    content=content,
                )
        except (TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeout(
                f"Upstream request timed out after {self._timeout:g}s",
                target_url=target,
            ) from e
        except httpx.RequestError as e:
            raise TransportFailure(str(e) or type(e).__name__, target_url=target) from e

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return response, elapsed_ms
