"""Chat relay between agents in the panel and contacts on WhatsApp.

Conversation state is owned by the remote API. The only rules applied here
are guards: nothing is sent to a conversation that is not open, and a
conversation can move from open to closed but never back.
"""

import asyncio
from datetime import datetime, timezone
from functools import partial

from wa_panel.config import Settings
from wa_panel.core.errors import PanelError
from wa_panel.core.messages import ErrorMessages
from wa_panel.core.metrics import RELAY_ACTIONS
from wa_panel.core.models import BaseViewModel
from wa_panel.core.results import Outcome
from wa_panel.core.validation import ValidationError, digits_only, sanitize_message_text
from wa_panel.records import (
    STATUS_CLOSED,
    Contact,
    Conversation,
    is_open_status,
)
from wa_panel.services.api_client import ApiClient
from wa_panel.services.base import BaseService
from wa_panel.services.scheduler import AutoCloseScheduler

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class RelayResult(BaseViewModel):
    """Uniform result of send/close actions, always answered with HTTP 200."""

    success: bool
    error: str | None = None
    conversation_id: int | None = None
    just_created: bool | None = None

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ConversationSummary(BaseViewModel):
    """Conversation row of the chat sidebar."""

    id: int
    contact_id: int
    contact_name: str | None = None
    contact_phone: str | None = None
    status: str
    started_at: datetime | None = None
    last_activity_at: datetime | None = None
    total_messages: int = 0
    greeting_sent: bool = False
    agent_requested_at: datetime | None = None


class MessageItem(BaseViewModel):
    """Message bubble of the chat window."""

    id: int
    sender: str
    message: str
    type: str
    sent_at: datetime | None = None


def _latest_activity(summary: ConversationSummary) -> tuple[bool, datetime]:
    when = summary.last_activity_at or summary.started_at
    return when is not None, when or _EPOCH


def _summarize(conversation: Conversation, contact: Contact | None) -> ConversationSummary:
    return ConversationSummary(
        id=conversation.id,
        contact_id=conversation.contact_id,
        contact_name=contact.name if contact else None,
        contact_phone=contact.phone_number if contact else None,
        status=conversation.status or "open",
        started_at=conversation.started_at,
        last_activity_at=conversation.last_activity_at,
        total_messages=conversation.total_messages,
        greeting_sent=conversation.greeting_sent,
        agent_requested_at=conversation.agent_requested_at,
    )


def _fail(action: str, error: str, outcome: str = "rejected") -> RelayResult:
    RELAY_ACTIONS.labels(action=action, outcome=outcome).inc()
    return RelayResult(success=False, error=error)


class ChatRelay(BaseService):
    """Guarded send/close forwarding plus chat listings."""

    def __init__(
        self,
        api: ApiClient,
        scheduler: AutoCloseScheduler,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(settings or api.settings)
        self.api = api
        self.scheduler = scheduler

    # ========= Listings =========

    async def contact_conversations(self, phone: str) -> list[ConversationSummary]:
        """Agent-requested conversations of the contact owning ``phone``.

        The phone is matched on digits only. Newest activity first.
        """
        wanted = digits_only(phone)
        if not wanted:
            return []

        contacts = await self.api.list_contacts()
        contact = next(
            (c for c in contacts if digits_only(c.phone_number) == wanted), None
        )
        if contact is None or contact.id <= 0:
            return []

        conversations = await self.api.list_conversations()
        summaries = [
            _summarize(c, contact)
            for c in conversations
            if c.contact_id == contact.id and c.agent_requested_at is not None
        ]
        return sorted(summaries, key=_latest_activity, reverse=True)

    async def agent_conversations(self) -> list[ConversationSummary]:
        """Every conversation where a contact asked for a human agent."""
        conversations, contacts = await asyncio.gather(
            self.api.list_conversations(),
            self._contacts_or_empty(),
        )
        by_id = {c.id: c for c in contacts if c.id > 0}
        summaries = [
            _summarize(c, by_id.get(c.contact_id))
            for c in conversations
            if c.agent_requested_at is not None
        ]
        return sorted(summaries, key=_latest_activity, reverse=True)

    async def conversation_messages(self, conversation_id: int) -> list[MessageItem]:
        """Messages of one conversation, oldest first.

        Opening an open conversation here arms its auto-close timer.
        """
        if conversation_id <= 0:
            return []

        messages, conversations = await asyncio.gather(
            self.api.list_messages(),
            self.api.list_conversations(),
        )
        conversation = next((c for c in conversations if c.id == conversation_id), None)
        if (
            conversation is not None
            and conversation.is_open
            and not self.scheduler.is_scheduled(conversation_id)
        ):
            self.schedule_auto_close(conversation_id)

        items = [
            MessageItem(
                id=m.id,
                sender=m.sender,
                message=m.body,
                type=m.type,
                sent_at=m.sent_at,
            )
            for m in messages
            if m.conversation_id == conversation_id
        ]
        return sorted(items, key=lambda m: (m.sent_at is not None, m.sent_at or _EPOCH))

    # ========= Actions =========

    async def send_message(
        self,
        conversation_id: int,
        message: str | None,
        contact_id: int | None = None,
        contact_phone: str | None = None,
    ) -> RelayResult:
        """Forward an agent message if the conversation is open right now."""
        if conversation_id <= 0:
            return _fail("send", ErrorMessages.CONVERSATION_ID_REQUIRED)
        try:
            text = sanitize_message_text(message)
        except ValidationError as e:
            return _fail("send", str(e))

        try:
            conversation = await self._find_conversation(conversation_id)
            if conversation is None or not conversation.is_open:
                self._log_info("Send rejected, conversation not open", id=conversation_id)
                return _fail("send", ErrorMessages.CONVERSATION_CLOSED)

            contact_id = contact_id if contact_id and contact_id > 0 else conversation.contact_id
            phone = (contact_phone or "").strip() or None
            if phone is None and contact_id > 0:
                phone = await self._resolve_phone(contact_id)
        except PanelError as e:
            return _fail("send", e.message, outcome="failed")

        if not phone:
            return _fail("send", ErrorMessages.PHONE_UNRESOLVED)

        outcome = await self.api.send_text(
            to_phone=phone,
            text=text,
            conversation_id=conversation_id,
            contact_id=contact_id,
        )
        if not outcome.succeeded:
            return _fail("send", outcome.error or ErrorMessages.API_UNAVAILABLE, "failed")

        self.schedule_auto_close(conversation_id)
        RELAY_ACTIONS.labels(action="send", outcome="ok").inc()
        return RelayResult(
            success=True,
            conversation_id=outcome.data.get("conversation_id") or conversation_id,
            just_created=outcome.data.get("just_created", False),
        )

    async def update_status(
        self,
        conversation_id: int,
        status: str | None,
        contact_id: int | None = None,
        started_at: datetime | None = None,
    ) -> RelayResult:
        """Apply a requested status change; only closing is allowed."""
        if conversation_id <= 0 or not status or not status.strip():
            return _fail("close", ErrorMessages.INVALID_PAYLOAD)
        if is_open_status(status):
            return _fail("close", ErrorMessages.REOPEN_FORBIDDEN)
        return await self.close_conversation(conversation_id, contact_id, started_at)

    async def close_conversation(
        self,
        conversation_id: int,
        contact_id: int | None = None,
        started_at: datetime | None = None,
    ) -> RelayResult:
        """Close, then notify the contact, then drop the auto-close timer.

        The status update must succeed; the notification is best effort.
        """
        try:
            conversation = await self._find_conversation(conversation_id)
        except PanelError as e:
            return _fail("close", e.message, outcome="failed")

        if conversation is None:
            return _fail("close", ErrorMessages.CONVERSATION_NOT_FOUND)
        if (conversation.status or "open").strip().lower() == STATUS_CLOSED:
            return _fail("close", ErrorMessages.CONVERSATION_ALREADY_CLOSED)

        contact_id = conversation.contact_id or contact_id or 0
        phone: str | None = None
        if contact_id > 0:
            try:
                phone = await self._resolve_phone(contact_id)
            except PanelError as e:
                self._log_error("resolve_phone", e, {"conversation_id": conversation_id})

        status_update = await self.api.upsert_conversation(
            conversation_id=conversation_id,
            contact_id=contact_id or None,
            started_at=conversation.started_at or started_at,
            status=STATUS_CLOSED,
        )
        if status_update.is_fatal:
            return _fail("close", status_update.error or ErrorMessages.STATUS_UPDATE_FAILED, "failed")

        notification = await self._notify_closed(conversation_id, contact_id, phone)
        if not notification.succeeded:
            self.logger.warning(
                f"Closing notification for conversation {conversation_id} "
                f"not delivered: {notification.error}"
            )

        self.scheduler.cancel(conversation_id)
        RELAY_ACTIONS.labels(action="close", outcome="ok").inc()
        self._log_info("Conversation closed", id=conversation_id)
        return RelayResult(success=True)

    def schedule_auto_close(self, conversation_id: int) -> None:
        """(Re)arm the auto-close timer with credentials captured now."""
        deferred = ChatRelay(self.api.detached(), self.scheduler, self.settings)
        self.scheduler.schedule(
            conversation_id,
            self.settings.auto_close_after_seconds,
            partial(deferred.auto_close, conversation_id),
        )

    async def auto_close(self, conversation_id: int) -> RelayResult | None:
        """Timer action: close through the normal path while credentials are live."""
        if not self.api.has_live_credentials():
            self.logger.warning(
                f"Auto-close of conversation {conversation_id} skipped: credentials expired"
            )
            RELAY_ACTIONS.labels(action="auto_close", outcome="skipped").inc()
            return None
        return await self.close_conversation(conversation_id)

    # ========= Helpers =========

    async def _find_conversation(self, conversation_id: int) -> Conversation | None:
        """Freshly fetched conversation; never cached."""
        for conversation in await self.api.list_conversations():
            if conversation.id == conversation_id:
                return conversation
        return None

    async def _resolve_phone(self, contact_id: int) -> str | None:
        for contact in await self.api.list_contacts():
            if contact.id == contact_id:
                phone = (contact.phone_number or "").strip()
                return phone or None
        return None

    async def _contacts_or_empty(self) -> list[Contact]:
        try:
            return await self.api.list_contacts()
        except PanelError as e:
            self._log_error("list_contacts", e)
            return []

    async def _notify_closed(
        self, conversation_id: int, contact_id: int, phone: str | None
    ) -> Outcome:
        if not phone:
            return Outcome.ignorable(ErrorMessages.PHONE_UNRESOLVED)
        outcome = await self.api.send_text(
            to_phone=phone,
            text=self.settings.closing_notification_text,
            conversation_id=conversation_id,
            contact_id=contact_id,
        )
        return outcome.as_ignorable()


__all__ = ["ChatRelay", "ConversationSummary", "MessageItem", "RelayResult"]
