"""Header construction for outbound relay requests."""

from collections.abc import Mapping

import httpx

# Never copied from the caller; user-agent is replaced by the relay's own
DENIED_REQUEST_HEADERS = frozenset({"host", "origin", "referer", "user-agent"})

# Meaningful only for the inbound leg
REQUEST_HOP_BY_HOP = frozenset({"connection", "content-length", "transfer-encoding", "keep-alive"})

RESPONSE_HOP_BY_HOP = frozenset({"content-encoding", "transfer-encoding", "connection"})

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]
CORS_ALLOWED_HEADERS = [
    "Content-Type",
    "Authorization",
    "X-Requested-With",
    "Accept",
    "api_key",
    "x-api-key",
    "x-auth-token",
    "x-custom-header",
]

# Every coding httpx can decode with the brotli and zstd extras installed
ACCEPT_ENCODING = "gzip, deflate, br, zstd"

DEFAULT_HEADERS = {
    "Accept": "*/*",
    "Accept-Encoding": ACCEPT_ENCODING,
    "Cache-Control": "no-cache",
}


class HeaderBuilder:
    """Build outbound headers and normalize upstream response headers."""

    def __init__(self, user_agent: str):
        self.user_agent = user_agent

    def build_outbound_headers(self, headers: Mapping[str, str]) -> httpx.Headers:
        """Curate caller headers on top of the relay defaults."""
        upstream = httpx.Headers(DEFAULT_HEADERS)
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in DENIED_REQUEST_HEADERS or key_lower in REQUEST_HOP_BY_HOP:
                continue
            upstream[key] = str(value)
        upstream["User-Agent"] = self.user_agent
        # Responses must be decodable here, whatever the browser advertised
        upstream["Accept-Encoding"] = ACCEPT_ENCODING
        return upstream

    def strip_response_headers(self, headers: httpx.Headers) -> dict[str, str]:
        """Drop hop-by-hop headers from an upstream response."""
        return {
            key: value
            for key, value in headers.items()
            if key.lower() not in RESPONSE_HOP_BY_HOP
        }
