"""FastAPI application initialization and configuration."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from wa_panel.auth.resolver import resolve_token
from wa_panel.auth.session import SessionContext, get_principal, sign_out
from wa_panel.auth.tokens import is_token_expired
from wa_panel.config import Settings, get_settings
from wa_panel.constants import ACCOUNT_PREFIX, DASHBOARD_ROUTE, LOGIN_ROUTE
from wa_panel.core.errors import NotAuthenticatedError
from wa_panel.dependencies import login_url, requested_path
from wa_panel.routes import ROUTERS
from wa_panel.services.api_client import create_http_client
from wa_panel.services.scheduler import AutoCloseScheduler

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the panel application.

    Args:
        settings: Optional settings override; defaults to get_settings()

    Returns:
        FastAPI: ASGI application ready for uvicorn
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create the shared HTTP client and scheduler; release them on shutdown."""
        configure_logging(settings)
        logger.info(f"Starting WhatsApp panel against {settings.api_base_url}")

        app.state.http = create_http_client(settings)
        app.state.scheduler = AutoCloseScheduler()

        yield

        logger.info("Shutting down WhatsApp panel...")
        await app.state.scheduler.shutdown()
        await app.state.http.aclose()
        logger.info("Cleanup completed")

    app = FastAPI(
        title="WhatsApp Panel",
        description="Web front-end for the WhatsApp business API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.middleware("http")
    async def expire_stale_tokens(request: Request, call_next):
        """Sign out a signed-in session whose token is missing or expired.

        The token checked is the one outbound calls would send.
        """
        session_ctx = SessionContext.load(request.session)
        principal = get_principal(request.session)
        signed_in = bool(session_ctx.token) or principal is not None
        token = resolve_token(
            session_ctx, principal, request.cookies.get(settings.token_cookie_name)
        )
        if signed_in and (
            not token
            or is_token_expired(token, skew_seconds=settings.token_expiry_skew_seconds)
        ):
            logger.info("Session token missing or expired, signing out")
            sign_out(request.session)
            if not request.url.path.lower().startswith(ACCOUNT_PREFIX):
                return RedirectResponse(
                    login_url(requested_path(request)),
                    status_code=status.HTTP_302_FOUND,
                )
        return await call_next(request)

    # Added last so it wraps the expiry middleware and the session is loaded first
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age_seconds,
        same_site="lax",
        https_only=False,
    )

    @app.exception_handler(NotAuthenticatedError)
    async def redirect_to_login(request: Request, exc: NotAuthenticatedError):
        return RedirectResponse(
            login_url(exc.return_url), status_code=status.HTTP_302_FOUND
        )

    @app.get("/", include_in_schema=False)
    async def root(request: Request):
        target = DASHBOARD_ROUTE if get_principal(request.session) else LOGIN_ROUTE
        return RedirectResponse(target, status_code=status.HTTP_302_FOUND)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    for router in ROUTERS:
        app.include_router(router)

    if settings.enable_monitoring:
        from prometheus_client import make_asgi_app

        app.mount("/metrics", make_asgi_app())
        logger.info("Prometheus metrics exposed at /metrics")

    return app
