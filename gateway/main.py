import uuid

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from fastapi.exceptions import RequestValidationError

from gateway.config import Settings, settings as default_settings
from gateway.security.origin_check import normalize_allowlist

# Rate limiting
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from gateway.utils.rate_limit import limiter

# Security headers + logging / errors
from gateway.utils.headers import SecurityHeadersMiddleware
from gateway.utils.logging import logger, request_id_ctx
from gateway.utils.errors import (
    handle_http_exception,
    handle_validation_error,
    handle_rate_limit,
    handle_unhandled,
)

from gateway.control.routes import router as control_router

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # ----- Middleware -----
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=(settings.TRUSTED_HOSTS + ["*"] if settings.APP_ENV == "dev" else settings.TRUSTED_HOSTS),
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(normalize_allowlist(settings.ALLOW_ORIGINS)),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["X-Request-Id"],
        max_age=86400,
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        token = request_id_ctx.set(str(uuid.uuid4())[:8])
        try:
            response = await call_next(request)
            response.headers["X-Request-Id"] = request_id_ctx.get() or "-"
        finally:
            request_id_ctx.reset(token)
        return response

    # ----- Exception Handlers -----
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(RateLimitExceeded, handle_rate_limit)
    app.add_exception_handler(Exception, handle_unhandled)

    # ----- Lifecycle -----
    @app.on_event("startup")
    async def _startup():
        port = settings.gateway_port
        logger.info(
            f"Startup complete: port={settings.APP_PORT} trusted_origins={len(settings.ALLOW_ORIGINS)} "
            f"loopback_port_check={'on' if port is not None else 'off'}"
        )

    # ----- Health -----
    @app.get("/healthz", tags=["system"])
    async def healthz():
        return {
            "status": "ok",
            "app": settings.APP_NAME,
            "env": settings.APP_ENV,
            "version": app.version,
        }

    # ----- Routers -----
    app.include_router(control_router)           # /gateway/info, /gateway/origin/check, /gateway/ws

    return app

app = create_app()
