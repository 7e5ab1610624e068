"""FastAPI dependencies: per-request service instances and the auth gate.

Long-lived resources (the shared httpx client, the auto-close scheduler,
settings) live on ``app.state`` and are created in the app lifespan.
Services are cheap and built per request, bound to that request's session.
"""

from urllib.parse import urlencode

import httpx
from fastapi import Depends, Request

from wa_panel.auth.resolver import SessionAuthProvider
from wa_panel.auth.session import Principal, get_principal
from wa_panel.config import Settings
from wa_panel.constants import LOGIN_ROUTE
from wa_panel.core.errors import NotAuthenticatedError
from wa_panel.services.account_service import AccountService
from wa_panel.services.api_client import ApiClient
from wa_panel.services.chat_relay import ChatRelay
from wa_panel.services.scheduler import AutoCloseScheduler


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http


def get_scheduler(request: Request) -> AutoCloseScheduler:
    return request.app.state.scheduler


def get_api_client(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> ApiClient:
    """ApiClient resolving credentials from this request's session."""
    auth = SessionAuthProvider(request.session, request.cookies, settings)
    return ApiClient(http, auth, settings)


def get_account_service(
    settings: Settings = Depends(get_app_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> AccountService:
    return AccountService(http, settings)


def get_chat_relay(
    api: ApiClient = Depends(get_api_client),
    scheduler: AutoCloseScheduler = Depends(get_scheduler),
) -> ChatRelay:
    return ChatRelay(api, scheduler)


def requested_path(request: Request) -> str:
    """Path plus query string of the current request."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


def login_url(return_url: str | None = None) -> str:
    if not return_url:
        return LOGIN_ROUTE
    return f"{LOGIN_ROUTE}?{urlencode({'returnUrl': return_url})}"


def require_principal(request: Request) -> Principal:
    """Signed-in user, or a redirect to the login page.

    Raises:
        NotAuthenticatedError: If the session has no principal
    """
    principal = get_principal(request.session)
    if principal is None:
        raise NotAuthenticatedError(return_url=requested_path(request))
    return principal
