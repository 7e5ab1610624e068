"""Token and tenant resolution for outbound API calls."""

import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from wa_panel.auth.session import Principal, SessionContext, get_principal, sign_out
from wa_panel.auth.tokens import clean_token, get_claim, is_token_expired
from wa_panel.config import Settings, get_settings

logger = logging.getLogger(__name__)

LAST_RESORT_TENANT = "1"
TENANT_CLAIMS = ("empresa_id",)


@dataclass(frozen=True)
class AuthContext:
    """Credentials attached to one outbound call."""

    token: str
    tenant_id: str


def _usable_tenant(value: str | None) -> bool:
    return bool(value and value.strip() and value.strip() != "0")


def resolve_token(
    session_ctx: SessionContext,
    principal: Principal | None,
    cookie_token: str | None = None,
) -> str:
    """Session token, then the principal's ``jwt`` claim, then the token cookie."""
    for candidate in (
        session_ctx.token,
        principal.jwt if principal else None,
        cookie_token,
    ):
        token = clean_token(candidate)
        if token:
            return token
    return ""


def resolve_tenant(
    session_ctx: SessionContext,
    principal: Principal | None,
    token: str,
    fallback: str | None,
) -> str:
    """Session tenant, principal claim, token claim, configured fallback, "1".

    A tenant id of "0" is treated as absent at every step.
    """
    if _usable_tenant(session_ctx.tenant_id):
        return session_ctx.tenant_id.strip()
    if principal and _usable_tenant(principal.empresa_id):
        return principal.empresa_id.strip()
    from_token = get_claim(token, *TENANT_CLAIMS)
    if _usable_tenant(from_token):
        return from_token.strip()  # type: ignore[union-attr]
    if fallback and fallback.strip():
        return fallback.strip()
    return LAST_RESORT_TENANT


def resolve_auth(
    session_ctx: SessionContext,
    principal: Principal | None,
    fallback_tenant: str | None,
    cookie_token: str | None = None,
) -> AuthContext:
    """Resolve token and tenant from session state and claims."""
    token = resolve_token(session_ctx, principal, cookie_token)
    tenant_id = resolve_tenant(session_ctx, principal, token, fallback_tenant)
    return AuthContext(token=token, tenant_id=tenant_id)


class AuthProvider(Protocol):
    """Source of credentials, asked again before every attempt."""

    def resolve(self) -> AuthContext: ...


class SessionAuthProvider:
    """Resolves credentials from the current request's session.

    An expired token is not sent and signs the session out, so the next
    request goes back through login.
    """

    def __init__(
        self,
        session: MutableMapping[str, Any],
        cookies: Mapping[str, str] | None = None,
        settings: Settings | None = None,
        clock: Any = None,
    ) -> None:
        self.session = session
        self.cookies = cookies or {}
        self.settings = settings or get_settings()
        self._clock = clock

    def _now(self) -> datetime | None:
        return self._clock() if self._clock else None

    def resolve(self) -> AuthContext:
        auth = resolve_auth(
            SessionContext.load(self.session),
            get_principal(self.session),
            self.settings.empresa_id_fallback,
            self.cookies.get(self.settings.token_cookie_name),
        )
        if auth.token and is_token_expired(
            auth.token, self._now(), self.settings.token_expiry_skew_seconds
        ):
            logger.info("Session token expired, signing out")
            sign_out(self.session)
            return AuthContext(token="", tenant_id=auth.tenant_id)
        return auth


class StaticAuthProvider:
    """Fixed credentials, for work that outlives the request (auto-close)."""

    def __init__(self, auth: AuthContext) -> None:
        self.auth = auth

    def resolve(self) -> AuthContext:
        return self.auth
