"""Remote business API client.

Every call carries the tenant header and, when a token is known, the bearer
Authorization header. Credentials are re-resolved before each attempt, so a
401 followed by the single retry picks up whatever the session holds by then.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from wa_panel.auth.resolver import AuthProvider, StaticAuthProvider
from wa_panel.auth.tokens import clean_token, is_token_expired, preview
from wa_panel.config import Settings, get_settings
from wa_panel.constants import (
    CONTACT_NAME_PATH,
    CONTACTS_PATH,
    CONVERSATION_UPSERT_PATH,
    CONVERSATIONS_PATH,
    MESSAGES_PATH,
    SEND_TEXT_PATH,
    USER_NAME_PATH,
    USER_PATH,
    USERS_BY_ROLE_PATH,
    USERS_PATH,
)
from wa_panel.core.errors import (
    ApiResponseError,
    ApiUnauthorizedError,
    ApiUnavailableError,
)
from wa_panel.core.flexjson import (
    Record,
    extract_records,
    extract_single,
    get_bool,
    get_ci,
    get_int,
    get_string,
    parse_json,
)
from wa_panel.core.messages import ErrorMessages
from wa_panel.core.metrics import API_DURATION
from wa_panel.core.results import Outcome
from wa_panel.records import Agent, Contact, Conversation, Message
from wa_panel.services.base import BaseService

logger = logging.getLogger(__name__)


def make_request_logger(tenant_header: str):
    """httpx request hook: log method, URL, token preview and tenant."""

    async def log_outgoing_request(request: httpx.Request) -> None:
        token = clean_token(request.headers.get("Authorization"))
        logger.info(
            f"CLIENT -> {request.method} {request.url} | Auth={preview(token)} "
            f"| {tenant_header}={request.headers.get(tenant_header, '(none)')}"
        )

    return log_outgoing_request


async def log_incoming_response(response: httpx.Response) -> None:
    """httpx response hook: log status."""
    logger.info(f"CLIENT <- {response.status_code} {response.request.url}")


def create_http_client(settings: Settings | None = None) -> httpx.AsyncClient:
    """Shared client for the application lifetime."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.http_timeout_seconds,
        headers={"Accept": "application/json"},
        event_hooks={
            "request": [make_request_logger(settings.tenant_header_name)],
            "response": [log_incoming_response],
        },
    )


class ApiClient(BaseService):
    """Authorized access to the remote business API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        auth: AuthProvider,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(settings)
        self.http = http
        self.auth = auth

    def _build_headers(self) -> dict[str, str]:
        """Resolve credentials now and build the per-call headers."""
        auth = self.auth.resolve()
        headers = {
            self.settings.tenant_header_name: auth.tenant_id,
            "Accept": "application/json",
        }
        if auth.token:
            headers["Authorization"] = f"Bearer {auth.token}"
        return headers

    def detached(self) -> "ApiClient":
        """Copy bound to the credentials resolved right now.

        Used for deferred work (auto-close) that runs after the request and
        its session are gone.
        """
        auth = self.auth.resolve()
        return ApiClient(self.http, StaticAuthProvider(auth), self.settings)

    def has_live_credentials(self) -> bool:
        """True when a token would be sent and it is not past its exp claim."""
        auth = self.auth.resolve()
        return bool(auth.token) and not is_token_expired(
            auth.token, skew_seconds=self.settings.token_expiry_skew_seconds
        )

    async def _send(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        return await self.http.request(
            method, path, json=json, params=params, headers=self._build_headers()
        )

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        endpoint: str | None = None,
    ) -> httpx.Response:
        """Send one call, retrying exactly once on 401.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            json: Optional JSON body
            params: Optional query parameters
            endpoint: Metric label; defaults to the path

        Returns:
            The final response, whatever its status

        Raises:
            ApiUnavailableError: If the API cannot be reached
        """
        endpoint = endpoint or path
        try:
            with API_DURATION.labels(endpoint=endpoint).time():
                response = await self._send(method, path, json, params)
                if response.status_code == httpx.codes.UNAUTHORIZED:
                    self._track_api_call(endpoint, "unauthorized")
                    self._log_info("Got 401, retrying with refreshed credentials", path=path)
                    response = await self._send(method, path, json, params)
        except httpx.HTTPError as e:
            self._track_api_call(endpoint, "error")
            self._log_error(f"{method} {path}", e)
            raise ApiUnavailableError(
                message=ErrorMessages.API_UNAVAILABLE,
                details={"method": method, "path": path},
            ) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self._track_api_call(endpoint, "unauthorized")
        else:
            self._track_api_call(endpoint, "success" if response.is_success else "error")
        return response

    async def get_records(self, path: str, endpoint: str | None = None) -> list[Record]:
        """GET a collection and unwrap it.

        Non-success statuses yield an empty list, except a persistent 401.

        Raises:
            ApiUnavailableError: If the API cannot be reached
            ApiUnauthorizedError: If the call is still unauthorized after the retry
        """
        response = await self.request("GET", path, endpoint=endpoint)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise ApiUnauthorizedError(
                message=ErrorMessages.API_UNAUTHORIZED,
                details={"path": path},
            )
        if not response.is_success:
            self.logger.warning(f"GET {path} returned {response.status_code}")
            return []
        return extract_records(parse_json(response.content))

    async def get_single(self, path: str, endpoint: str | None = None) -> Record | None:
        """GET one record, tolerating ``data``/``objeto`` wrappers."""
        response = await self.request("GET", path, endpoint=endpoint)
        if not response.is_success:
            return None
        payload = parse_json(response.content)
        record = extract_single(payload)
        if record is None:
            records = extract_records(payload)
            record = records[0] if records else None
        return record

    # ========= Collections =========

    async def list_contacts(self) -> list[Contact]:
        return [Contact.from_record(r) for r in await self.get_records(CONTACTS_PATH)]

    async def list_conversations(self) -> list[Conversation]:
        return [
            Conversation.from_record(r)
            for r in await self.get_records(CONVERSATIONS_PATH)
        ]

    async def list_messages(self) -> list[Message]:
        return [Message.from_record(r) for r in await self.get_records(MESSAGES_PATH)]

    async def list_users(self) -> list[Agent]:
        agents = [Agent.from_record(r) for r in await self.get_records(USERS_PATH)]
        return [a for a in agents if a is not None]

    async def list_agents(self) -> list[Agent]:
        """Users with the agent profile.

        Falls back to filtering all users when the by-role endpoint fails.
        """
        role_id = self.settings.agent_role_id
        path = USERS_BY_ROLE_PATH.format(role_id=role_id)
        response = await self.request("GET", path, endpoint=USERS_BY_ROLE_PATH)
        if not response.is_success:
            self.logger.warning(
                f"GET {path} returned {response.status_code}, filtering all users"
            )
            return [u for u in await self.list_users() if (u.profile_id or 0) == role_id]

        agents = [
            Agent.from_record(r) for r in extract_records(parse_json(response.content))
        ]
        return [a for a in agents if a is not None]

    async def get_user(self, user_id: int) -> Agent | None:
        if user_id <= 0:
            return None
        record = await self.get_single(
            USER_PATH.format(user_id=user_id), endpoint=USER_PATH
        )
        return Agent.from_record(record) if record else None

    # ========= Mutations =========

    async def _patch_name(self, path: str, endpoint: str, body: dict[str, str]) -> None:
        response = await self.request("PATCH", path, json=body, endpoint=endpoint)
        if not response.is_success:
            raise ApiResponseError(
                message=ErrorMessages.NAME_UPDATE_FAILED,
                status_code=response.status_code,
                details={"path": path, "body": response.text[:200]},
            )

    async def update_contact_name(self, contact_id: int, name: str) -> None:
        """Rename a contact.

        Raises:
            ApiUnavailableError: If the API cannot be reached
            ApiResponseError: If the API answers with a non-success status
        """
        await self._patch_name(
            CONTACT_NAME_PATH.format(contact_id=contact_id),
            CONTACT_NAME_PATH,
            {"Name": name},
        )

    async def update_user_name(self, user_id: int, name: str) -> None:
        """Rename a user (agent); same failure modes as update_contact_name."""
        await self._patch_name(
            USER_NAME_PATH.format(user_id=user_id),
            USER_NAME_PATH,
            {"Nombre": name},
        )

    async def upsert_conversation(
        self,
        conversation_id: int,
        contact_id: int | None,
        started_at: datetime | None,
        status: str,
    ) -> Outcome:
        """Write the conversation status with a fresh last-activity time."""
        payload = {
            "Id": conversation_id,
            "Contact_Id": contact_id,
            "Started_At": started_at.isoformat() if started_at else None,
            "Status": status,
            "Last_Activity_At": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = await self.request("POST", CONVERSATION_UPSERT_PATH, json=payload)
        except ApiUnavailableError as e:
            return Outcome.fatal(e.message)
        if not response.is_success:
            return Outcome.fatal(
                ErrorMessages.STATUS_UPDATE_FAILED, status_code=response.status_code
            )
        return Outcome.ok()

    async def send_text(
        self,
        to_phone: str,
        text: str,
        conversation_id: int | None = None,
        contact_id: int | None = None,
    ) -> Outcome:
        """Send a WhatsApp text through the messaging integration.

        Success requires a 2xx status and ``exitoso: true`` in the body.
        """
        payload = {
            "Contact_Id": contact_id if contact_id and contact_id > 0 else None,
            "Conversation_Id": conversation_id,
            "To_Phone": to_phone,
            "Text": text,
            "Create_If_Not_Exists": False,
            "Log": True,
        }
        try:
            response = await self.request("POST", SEND_TEXT_PATH, json=payload)
        except ApiUnavailableError as e:
            return Outcome.fatal(e.message)

        body = parse_json(response.content)
        if not isinstance(body, dict):
            if not response.is_success:
                return Outcome.fatal(
                    ErrorMessages.SEND_FAILED.format(
                        status=response.status_code, message=response.text
                    )
                )
            return Outcome.ok(conversation_id=None, just_created=False)

        _, exitoso = get_ci(body, "exitoso")
        if not response.is_success or exitoso is not True:
            message = get_string(body, "mensaje") or response.text
            return Outcome.fatal(
                ErrorMessages.SEND_FAILED.format(
                    status=response.status_code, message=message
                )
            )

        return Outcome.ok(
            conversation_id=get_int(body, "conversacion_id"),
            just_created=get_bool(body, "just_created") or False,
        )
