"""Target URL validation - decides whether the relay may contact a URL."""

import httpx

from core.exceptions import BlockedHost, InvalidURL, MissingParameter, UnsupportedProtocol

ALLOWED_SCHEMES = ("http", "https")


class TargetPolicy:
    """Validate relay targets against scheme rules and the blocked-host set."""

    def __init__(self, blocked_hosts: frozenset[str] | set[str]):
        self.blocked_hosts = frozenset(host.lower() for host in blocked_hosts)

    def check(self, target_url: str | None) -> httpx.URL:
        """Return the parsed URL or raise the matching relay error."""
        if target_url is None or not target_url.strip():
            raise MissingParameter("Please provide a target URL")

        try:
            url = httpx.URL(target_url.strip())
        except httpx.InvalidURL as e:
            raise InvalidURL(f"Please provide a valid URL ({e})") from e

        if not url.scheme:
            raise InvalidURL("Please provide a valid absolute URL")
        if url.scheme not in ALLOWED_SCHEMES:
            raise UnsupportedProtocol("Only HTTP and HTTPS protocols are supported")
        if not url.host:
            raise InvalidURL("Please provide a valid URL with a hostname")

        self.check_host(url)
        return url

    def check_host(self, url: httpx.URL) -> None:
        """Raise BlockedHost when the URL's hostname is not allowed."""
        hostname = url.host.lower().rstrip(".")
        if hostname in self.blocked_hosts:
            raise BlockedHost(
                f"Cannot proxy requests to {hostname} for security reasons",
                hostname=hostname,
            )

    async def check_redirect_hop(self, request: httpx.Request) -> None:
        """httpx request hook: re-check every outbound hop, redirects included."""
        self.check_host(request.url)
