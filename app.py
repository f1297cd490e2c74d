"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.handlers import SERVICE_VERSION, handle_health, handle_proxy, handle_wrapper
from core.config import Config
from core.exceptions import RateLimited, RelayError, TransportFailure
from core.headers import CORS_ALLOWED_HEADERS, CORS_ALLOWED_METHODS
from core.protocols import RelayLogger
from core.rate_limit import TokenBucketLimiter
from core.request_types import SUPPORTED_METHODS
from core.target_policy import TargetPolicy
from services.adapters import utc_timestamp
from services.relay_service import RelayService
from services.upstream import UpstreamClient, build_http_client

AVAILABLE_ENDPOINTS = ["/health", "/proxy", "/api/wrapper"]


def create_app(
    config: Config,
    logger: RelayLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces the network transport of the outbound client.
    """
    policy = TargetPolicy(config.blocked_hosts)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = build_http_client(config, policy, transport)
        app.state.relay_service = RelayService(
            config=config,
            logger=logger,
            upstream=UpstreamClient(client, config.upstream.timeout),
            policy=policy,
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="API Tester Relay", version=SERVICE_VERSION, lifespan=lifespan)

    limits = config.rate_limit
    app.state.rate_limiter = (
        TokenBucketLimiter(limits.max_requests, limits.window_seconds, limits.max_clients)
        if limits.enabled
        else None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
        allow_credentials=True,
        max_age=3600,
    )

    @app.exception_handler(RelayError)
    async def relay_error(request: Request, exc: RelayError):
        route = request.url.path
        if isinstance(exc, TransportFailure):
            logger.log_error(route, exc.status_code, f"{exc.target_url}: {exc.message}")
            content = {
                "success": False,
                "error": exc.error,
                "message": exc.message,
                "code": exc.code,
                "timestamp": utc_timestamp(),
            }
        else:
            logger.log_rejected(route, exc.code, exc.message)
            content = exc.to_payload()

        headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimited) else None
        return JSONResponse(content, status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        if exc.status_code != 404:
            return await http_exception_handler(request, exc)
        return JSONResponse(
            {
                "success": False,
                "error": "Not found",
                "message": "The requested endpoint does not exist",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
            status_code=404,
        )

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.log_error(request.url.path, 500, f"{type(exc).__name__}: {exc}")
        message = str(exc) if config.is_development else "Something went wrong"
        return JSONResponse(
            {
                "success": False,
                "error": "Internal server error",
                "message": message,
                "code": "InternalError",
            },
            status_code=500,
        )

    @app.api_route("/proxy", methods=list(SUPPORTED_METHODS))
    async def proxy(request: Request):
        return await handle_proxy(request)

    @app.post("/api/wrapper")
    async def wrapper(request: Request):
        return await handle_wrapper(request)

    @app.get("/health")
    async def health():
        return await handle_health(config)

    return app
