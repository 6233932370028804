"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Build the FastAPI application (create_app) with metadata and lifespan
  - Own the DB pool and the AppContainer (stored on app.state.container)
  - Configure middleware (CORS, request context, body limit, security
    headers, session)
  - Mount auth routes (root + /api/auth), admin account routes and pages
  - Expose health, readiness and metrics endpoints

Collaborators:
  - app.container.build_container: composition root
  - infrastructure.db.pool: psycopg ConnectionPool lifecycle
  - identity.session.SessionMiddleware: protected prefixes
  - api.exception_handlers: RFC7807 error mapping

Notes:
  - Tests pass a prebuilt container (in-memory repos, fixed clock); the
    lifespan then leaves it untouched.
  - /healthz and /readyz follow the Kubernetes health check convention
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import AppContainer, build_container
from ..crosscutting.config import Settings, get_settings
from ..crosscutting.exceptions import DatabaseError
from ..crosscutting.logger import configure_logging, logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..crosscutting.security import SecurityHeadersMiddleware
from ..identity.session import SessionMiddleware
from ..infrastructure.db.pool import close_pool, create_pool
from ..interfaces.web.pages import router as pages_router
from .admin_routes import router as admin_router
from .auth_routes import include_auth_routes
from .exception_handlers import register_exception_handlers

API_VERSION = "0.1.0"


def _build_runtime_container(settings: Settings) -> AppContainer:
    """Pool (si store=postgres) + container + seed dev opcional."""
    pool = create_pool(settings) if settings.account_store == "postgres" else None
    try:
        container = build_container(settings, pool=pool)
        ensure_dev_admin(
            settings,
            accounts=container.accounts,
            password_hasher=container.verifier.hash,
            env=os.environ,
        )
    except Exception:
        close_pool(pool)
        raise
    return container


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Builds the container unless one was injected."""
    settings: Settings = app.state.settings
    configure_logging(settings)

    owns_container = getattr(app.state, "container", None) is None
    if owns_container:
        try:
            app.state.container = _build_runtime_container(settings)
        except Exception as e:
            logger.error("Startup failed", extra={"error": str(e)})
            raise

    logger.info(
        "Fleet Office API starting up",
        extra={
            "app_env": settings.app_env,
            "account_store": settings.account_store,
            "lockout_max_attempts": settings.lockout_max_attempts,
            "lockout_duration_minutes": settings.lockout_duration_minutes,
            "db_pool_min": settings.db_pool_min_size,
            "db_pool_max": settings.db_pool_max_size,
        },
    )

    try:
        yield
    finally:
        if owns_container:
            close_pool(app.state.container.pool)
            app.state.container = None
        logger.info("Fleet Office API shutting down")


def create_app(
    settings: Settings | None = None,
    *,
    container: AppContainer | None = None,
) -> FastAPI:
    """
    Arma la aplicación.

    - container dado: se usa tal cual (y sus settings).
    - sin container: el lifespan lo construye al arrancar.
    """
    if container is not None:
        settings = container.settings
    settings = settings or get_settings()

    app = FastAPI(
        title="Fleet Office API",
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Login, registro y sesión (JWT en cookie)"},
            {"name": "admin", "description": "Administración de cuentas (role-gated)"},
        ],
    )
    app.state.settings = settings
    app.state.container = container

    # R: Middleware order (bottom = first to execute):
    # 1. CORSMiddleware - handles preflight
    # 2. RequestContextMiddleware - sets request_id, logs, metrics
    # 3. BodyLimitMiddleware - rejects oversized bodies early
    # 4. SecurityHeadersMiddleware - headers on every response
    # 5. SessionMiddleware - decodes session, guards protected prefixes
    app.add_middleware(SessionMiddleware, **SessionMiddleware.options_from_settings(settings))
    app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_production())
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],  # R: Only needed methods
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
    )

    include_auth_routes(app)
    app.include_router(admin_router)
    app.include_router(pages_router)

    register_exception_handlers(app)

    _register_ops_routes(app)
    return app


def _store_status(request: Request) -> str:
    container: AppContainer | None = getattr(request.app.state, "container", None)
    if container is None:
        return "disconnected"
    try:
        return "connected" if container.accounts.ping() else "disconnected"
    except DatabaseError as e:
        logger.warning("Health check: store unavailable", extra={"error": str(e)})
        return "disconnected"


def _register_ops_routes(app: FastAPI) -> None:
    @app.get("/healthz", include_in_schema=False)
    def healthz(request: Request):
        """Liveness + estado del store. Siempre 200; `ok` refleja el store."""
        db_status = _store_status(request)
        return {
            "ok": db_status == "connected",
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/readyz", include_in_schema=False)
    def readyz(request: Request):
        """Readiness: 503 si el store no responde."""
        db_status = _store_status(request)
        body = {"ok": db_status == "connected", "db": db_status}
        return JSONResponse(body, status_code=200 if body["ok"] else 503)

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)


app = create_app()
