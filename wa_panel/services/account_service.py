"""Login against the remote API."""

from dataclasses import dataclass

import httpx

from wa_panel.auth.session import Principal, normalize_role
from wa_panel.auth.tokens import clean_token, get_claim
from wa_panel.config import Settings
from wa_panel.constants import LOGIN_PATH
from wa_panel.core.errors import LoginError
from wa_panel.core.flexjson import find_token, find_user, get_int, get_string, parse_json
from wa_panel.core.messages import ErrorMessages
from wa_panel.services.base import BaseService


@dataclass
class LoginResult:
    """Everything the session needs after a successful login."""

    token: str
    tenant_id: str
    tenant_name: str
    principal: Principal


class AccountService(BaseService):
    """Service for the login exchange.

    The login call goes out without tenant or Authorization headers.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings | None = None) -> None:
        super().__init__(settings)
        self.http = http

    async def login(self, username: str, password: str) -> LoginResult:
        """Authenticate and extract token, tenant and principal.

        Raises:
            LoginError: If the API is unreachable, rejects the credentials,
                or returns no token
        """
        if not username or not username.strip() or not password or not password.strip():
            raise LoginError(ErrorMessages.LOGIN_REQUIRED_FIELDS)

        body = {"nombreUsuario": username, "contrasenia": password, "loginApp": True}
        try:
            response = await self.http.post(
                LOGIN_PATH, json=body, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as e:
            self._log_error("login", e)
            self._track_api_call(LOGIN_PATH, "error")
            raise LoginError(ErrorMessages.LOGIN_API_UNREACHABLE.format(error=e)) from e

        if not response.is_success:
            self._track_api_call(LOGIN_PATH, "error")
            self.logger.warning(f"Login rejected for {username}: {response.status_code}")
            raise LoginError(
                ErrorMessages.LOGIN_REJECTED.format(
                    status=response.status_code, reason=response.text
                ),
                details={"status_code": response.status_code},
            )
        self._track_api_call(LOGIN_PATH, "success")

        payload = parse_json(response.content)
        token = clean_token(find_token(payload))
        if not token:
            raise LoginError(ErrorMessages.LOGIN_NO_TOKEN)

        user = find_user(payload)
        user_id = get_string(user, "id", "usuarioId", "userId")
        if user_id is None:
            numeric_id = get_int(user, "id", "usuarioId", "userId")
            user_id = str(numeric_id) if numeric_id is not None else ""

        profile_id = get_int(user, "idPerfil", "perfilId")
        role = normalize_role(get_string(user, "role", "perfil"), profile_id)

        tenant_id = get_int(user, "empresaId", "empresa_id")
        if tenant_id is None or tenant_id <= 0:
            claim = get_claim(token, "empresa_id", "EmpresaId", "empresaId")
            try:
                tenant_id = int(claim) if claim is not None else 0
            except ValueError:
                tenant_id = 0
        tenant = str(tenant_id) if tenant_id > 0 else ""
        tenant_name = get_string(user, "empresa") or ""

        principal = Principal(
            id=user_id,
            name=get_string(user, "nombre", "name", "nombreUsuario", "usuario") or "",
            email=get_string(user, "correo", "email") or "",
            role=role,
            empresa_id=str(tenant_id if tenant_id > 0 else 0),
            empresa=tenant_name,
            jwt=token,
        )
        self._log_info("User signed in", user=principal.email or username, role=role)
        return LoginResult(
            token=token, tenant_id=tenant, tenant_name=tenant_name, principal=principal
        )
