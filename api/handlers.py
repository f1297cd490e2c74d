"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.config import Config
from core.exceptions import BodyParseFailure, RateLimited, RequestTooLarge
from core.headers import CORS_ALLOWED_HEADERS, CORS_ALLOWED_METHODS
from core.transform import BodyEncoder
from services.adapters import PathStyleAdapter, WrapperPayload, WrapperStyleAdapter, utc_timestamp

MAX_BODY_SIZE = 10 * 1024 * 1024  # 10MB

SERVICE_NAME = "CORS Relay Server"
SERVICE_VERSION = "1.0.0"

WRAPPER_HINT = 'Send a JSON object such as {"url": "https://...", "method": "GET"}.'

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOWED_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOWED_HEADERS),
    "Access-Control-Allow-Credentials": "true",
}


async def _read_body(request: Request) -> bytes:
    raw_body = await request.body()
    if len(raw_body) > MAX_BODY_SIZE:
        raise RequestTooLarge(f"Request body exceeds {MAX_BODY_SIZE // (1024 * 1024)}MB")
    return raw_body


def _enforce_rate_limit(request: Request) -> None:
    """Spend one request from the caller's budget or raise RateLimited."""
    limiter = request.app.state.rate_limiter
    if limiter is None:
        return
    address = request.client.host if request.client else "unknown"
    wait = limiter.acquire(address)
    if wait:
        raise RateLimited(
            "Too many requests from this IP, please try again later.",
            retry_after=limiter.retry_after(wait),
        )


def _parse_wrapper_payload(raw_body: bytes) -> WrapperPayload:
    """Decode the wrapper JSON envelope or raise BodyParseFailure."""
    text_body = raw_body.decode("utf-8", errors="replace")
    data = BodyEncoder().parse_json_text(text_body)
    try:
        return WrapperPayload.model_validate(data)
    except ValidationError as e:
        raise BodyParseFailure(
            f"Wrapper payload has the wrong shape: {e.error_count()} validation error(s)",
            hint=WRAPPER_HINT,
            received_body=text_body,
        ) from e


async def handle_proxy(request: Request) -> Response:
    """Handle ANY /proxy?url=<target>.

    Browser pre-flights (Origin plus Access-Control-Request-Method) are
    answered by CORSMiddleware before reaching this handler, so the 204
    branch only serves plain OPTIONS calls.
    """
    _enforce_rate_limit(request)
    adapter = PathStyleAdapter()
    relay_request = adapter.build(
        request.query_params.get("url"),
        request.method,
        request.headers,
        await _read_body(request),
    )

    service = request.app.state.relay_service
    service.validate(relay_request)
    if relay_request.method == "OPTIONS":
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    result = await service.relay(relay_request, adapter.route_name)
    return JSONResponse(adapter.envelope(result))


async def handle_wrapper(request: Request) -> Response:
    """Handle POST /api/wrapper with a {url, method, headers, body} payload."""
    _enforce_rate_limit(request)
    adapter = WrapperStyleAdapter()
    payload = _parse_wrapper_payload(await _read_body(request))
    relay_request = adapter.build(payload)

    service = request.app.state.relay_service
    result = await service.relay(relay_request, adapter.route_name)
    return JSONResponse(adapter.envelope(result))


async def handle_health(config: Config) -> dict[str, str]:
    """Liveness probe."""
    return {
        "status": "OK",
        "timestamp": utc_timestamp(),
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": config.server.environment,
        "serverIP": config.server_ip,
    }
