"""Tests for the login exchange."""

import json

import httpx
import pytest

from wa_panel.config import Settings
from wa_panel.core.errors import LoginError
from wa_panel.core.messages import ErrorMessages
from wa_panel.services.account_service import AccountService
from wa_panel.tests.mocks.mock_services import make_token


def make_service(handler, settings: Settings) -> AccountService:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url=settings.api_base_url
    )
    return AccountService(http, settings)


@pytest.mark.asyncio
async def test_login_with_wrapped_user(settings: Settings) -> None:
    seen: list[httpx.Request] = []
    token = make_token({"empresa_id": 5})

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "data": {
                    "token": f"Bearer {token}",
                    "usuario": {
                        "id": 42,
                        "nombre": "Operadora",
                        "correo": "ops@example.com",
                        "idPerfil": 2,
                        "empresaId": 5,
                        "empresa": "Acme",
                    },
                }
            },
        )

    result = await make_service(handler, settings).login("ops", "secret")

    assert result.token == token
    assert result.tenant_id == "5"
    assert result.tenant_name == "Acme"
    assert result.principal.id == "42"
    assert result.principal.role == "Admin"
    assert result.principal.email == "ops@example.com"

    request = seen[0]
    assert request.url.path == "/api/auth/login"
    assert "Authorization" not in request.headers
    assert "tenant-id" not in request.headers
    assert json.loads(request.content) == {
        "nombreUsuario": "ops",
        "contrasenia": "secret",
        "loginApp": True,
    }


@pytest.mark.asyncio
async def test_tenant_falls_back_to_token_claim(settings: Settings) -> None:
    token = make_token({"empresa_id": "9"})

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": token, "id": 1, "role": "agente"})

    result = await make_service(handler, settings).login("ana", "pw")

    assert result.tenant_id == "9"
    assert result.principal.empresa_id == "9"
    assert result.principal.role == "Agente"


@pytest.mark.asyncio
async def test_missing_tenant_is_blank(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": "opaque", "id": 1})

    result = await make_service(handler, settings).login("ana", "pw")

    assert result.tenant_id == ""
    assert result.principal.empresa_id == "0"
    assert result.principal.role == "Usuario"


@pytest.mark.asyncio
@pytest.mark.parametrize("username,password", [("", "pw"), ("ana", "  "), (None, None)])
async def test_blank_credentials_are_rejected_locally(
    settings: Settings, username, password
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(LoginError) as exc_info:
        await make_service(handler, settings).login(username, password)
    assert exc_info.value.message == ErrorMessages.LOGIN_REQUIRED_FIELDS


@pytest.mark.asyncio
async def test_rejected_credentials(settings: Settings) -> None:
    service = make_service(lambda request: httpx.Response(401, text="nope"), settings)

    with pytest.raises(LoginError) as exc_info:
        await service.login("ana", "bad")
    assert "(401)" in exc_info.value.message


@pytest.mark.asyncio
async def test_response_without_token(settings: Settings) -> None:
    service = make_service(lambda request: httpx.Response(200, json={"ok": True}), settings)

    with pytest.raises(LoginError) as exc_info:
        await service.login("ana", "pw")
    assert exc_info.value.message == ErrorMessages.LOGIN_NO_TOKEN


@pytest.mark.asyncio
async def test_unreachable_api(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LoginError) as exc_info:
        await make_service(handler, settings).login("ana", "pw")
    assert exc_info.value.message.startswith("No se pudo contactar la API")
