"""Session-scoped auth state.

The session is Starlette's signed-cookie session: a plain mutable mapping.
It holds the bearer token, the tenant id and name, and the principal
(claims of the signed-in user) written at login.
"""

from collections.abc import MutableMapping
from dataclasses import asdict, dataclass
from typing import Any

TOKEN_KEY = "JWT_TOKEN"
TENANT_ID_KEY = "EMPRESA_ID"
TENANT_NAME_KEY = "EMPRESA_NOMBRE"
PRINCIPAL_KEY = "PRINCIPAL"

ROLE_SUPERADMIN = "SuperAdmin"
ROLE_ADMIN = "Admin"
ROLE_AGENT = "Agente"
ROLE_USER = "Usuario"

_PROFILE_ROLES = {3: ROLE_SUPERADMIN, 2: ROLE_ADMIN, 1: ROLE_AGENT}


@dataclass
class Principal:
    """Claims of the signed-in user."""

    id: str = ""
    name: str = ""
    email: str = ""
    role: str = ROLE_USER
    empresa_id: str = ""
    empresa: str = ""
    jwt: str = ""

    def to_claims(self) -> dict[str, str]:
        """Claims kept in the session; the token is stored once, under TOKEN_KEY."""
        claims = asdict(self)
        claims.pop("jwt")
        return claims

    @classmethod
    def from_claims(cls, claims: dict[str, Any] | None) -> "Principal | None":
        if not claims:
            return None
        return cls(**{k: str(v) for k, v in claims.items() if k in cls.__dataclass_fields__})


@dataclass
class SessionContext:
    """View of the auth-related session keys."""

    token: str = ""
    tenant_id: str = ""
    tenant_name: str = ""

    @classmethod
    def load(cls, session: MutableMapping[str, Any]) -> "SessionContext":
        return cls(
            token=session.get(TOKEN_KEY) or "",
            tenant_id=session.get(TENANT_ID_KEY) or "",
            tenant_name=session.get(TENANT_NAME_KEY) or "",
        )


def sign_in(
    session: MutableMapping[str, Any],
    token: str,
    tenant_id: str,
    tenant_name: str,
    principal: Principal,
) -> None:
    """Store the session context and principal after a successful login."""
    session[TOKEN_KEY] = token
    session[TENANT_ID_KEY] = tenant_id
    session[TENANT_NAME_KEY] = tenant_name
    session[PRINCIPAL_KEY] = principal.to_claims()


def sign_out(session: MutableMapping[str, Any]) -> None:
    """Drop everything the session knows about the user."""
    session.clear()


def get_principal(session: MutableMapping[str, Any]) -> Principal | None:
    principal = Principal.from_claims(session.get(PRINCIPAL_KEY))
    if principal is not None:
        principal.jwt = session.get(TOKEN_KEY) or ""
    return principal


def normalize_role(raw: str | None, profile_id: int | None = None) -> str:
    """Map the upstream role/profile to SuperAdmin, Admin, Agente or Usuario."""
    flat = (raw or "").replace(" ", "").strip().lower()
    if not flat and profile_id is not None:
        return _PROFILE_ROLES.get(profile_id, ROLE_USER)
    if flat == "superadmin":
        return ROLE_SUPERADMIN
    if flat in ("admin", "administrador"):
        return ROLE_ADMIN
    if flat in ("agente", "agent"):
        return ROLE_AGENT
    return ROLE_USER
