"""Auth module - session state, bearer tokens, credential resolution."""

from wa_panel.auth.resolver import (
    AuthContext,
    AuthProvider,
    SessionAuthProvider,
    StaticAuthProvider,
    resolve_auth,
)
from wa_panel.auth.session import Principal, SessionContext

__all__ = [
    "AuthContext",
    "AuthProvider",
    "Principal",
    "SessionAuthProvider",
    "SessionContext",
    "StaticAuthProvider",
    "resolve_auth",
]
