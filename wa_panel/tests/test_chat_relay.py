"""Tests for the chat relay guards and auto-close."""

import asyncio
from unittest.mock import MagicMock

import pytest

from wa_panel.core.errors import ApiUnavailableError
from wa_panel.core.messages import ErrorMessages
from wa_panel.core.results import Outcome
from wa_panel.services.chat_relay import ChatRelay
from wa_panel.services.scheduler import AutoCloseScheduler
from wa_panel.tests.mocks.mock_services import ManualSleep, MockApiClient


async def _drain_auto_close_tasks() -> None:
    tasks = [
        t
        for t in asyncio.all_tasks()
        if t.get_name().startswith("auto-close-") and t is not asyncio.current_task()
    ]
    await asyncio.gather(*tasks, return_exceptions=True)


# ========= Send =========


@pytest.mark.asyncio
async def test_send_to_open_conversation_is_forwarded(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    """Phone is resolved from the conversation's contact."""
    result = await relay.send_message(10, "  Hola Ana  ")

    assert result.success is True
    assert result.conversation_id == 10
    mock_api.send_text.assert_awaited_once_with(
        to_phone="+506 8888-1111",
        text="Hola Ana",
        conversation_id=10,
        contact_id=1,
    )


@pytest.mark.asyncio
async def test_send_to_closed_conversation_is_rejected_without_forwarding(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    result = await relay.send_message(11, "Hola")

    assert result.success is False
    assert result.error == ErrorMessages.CONVERSATION_CLOSED
    mock_api.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_status_check_is_case_insensitive(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.conversations[0] = mock_api.conversations[0].model_copy(
        update={"status": " OPEN "}
    )

    result = await relay.send_message(10, "Hola")

    assert result.success is True


@pytest.mark.asyncio
async def test_send_refetches_status_every_time(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    assert (await relay.send_message(10, "uno")).success is True

    mock_api.conversations[0] = mock_api.conversations[0].model_copy(
        update={"status": "closed"}
    )
    result = await relay.send_message(10, "dos")

    assert result.success is False
    assert mock_api.list_conversations.await_count == 2
    assert mock_api.send_text.await_count == 1


@pytest.mark.asyncio
async def test_send_to_unknown_conversation_is_rejected(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    result = await relay.send_message(999, "Hola")

    assert result.success is False
    assert result.error == ErrorMessages.CONVERSATION_CLOSED
    mock_api.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_requires_message_and_id(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    no_text = await relay.send_message(10, "   ")
    no_id = await relay.send_message(0, "Hola")

    assert no_text.error == ErrorMessages.MESSAGE_REQUIRED
    assert no_id.error == ErrorMessages.CONVERSATION_ID_REQUIRED
    mock_api.list_conversations.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_uses_supplied_phone_without_contact_lookup(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    result = await relay.send_message(10, "Hola", contact_phone="50699990000")

    assert result.success is True
    mock_api.list_contacts.assert_not_awaited()
    assert mock_api.send_text.await_args.kwargs["to_phone"] == "50699990000"


@pytest.mark.asyncio
async def test_send_fails_when_phone_cannot_be_resolved(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    result = await relay.send_message(13, "Hola")

    assert result.success is False
    assert result.error == ErrorMessages.PHONE_UNRESOLVED
    mock_api.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_reports_upstream_rejection(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.send_text.return_value = Outcome.fatal("API 400: número inválido")

    result = await relay.send_message(10, "Hola")

    assert result.success is False
    assert result.error == "API 400: número inválido"


@pytest.mark.asyncio
async def test_send_reports_unreachable_api(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.list_conversations.side_effect = ApiUnavailableError(
        ErrorMessages.API_UNAVAILABLE
    )

    result = await relay.send_message(10, "Hola")

    assert result.success is False
    assert result.error == ErrorMessages.API_UNAVAILABLE


@pytest.mark.asyncio
async def test_successful_send_arms_auto_close(
    relay: ChatRelay, scheduler: AutoCloseScheduler, manual_sleep: ManualSleep
) -> None:
    await relay.send_message(10, "Hola")

    assert scheduler.is_scheduled(10)
    await asyncio.sleep(0)
    assert manual_sleep.delays == [23 * 3600]
    await scheduler.shutdown()


# ========= Close =========


@pytest.mark.asyncio
async def test_reopen_is_always_rejected(relay: ChatRelay, mock_api: MockApiClient) -> None:
    for status in ("open", "OPEN", " Open "):
        result = await relay.update_status(11, status)
        assert result.success is False
        assert result.error == ErrorMessages.REOPEN_FORBIDDEN

    mock_api.list_conversations.assert_not_awaited()
    mock_api.upsert_conversation.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_rejects_missing_payload(relay: ChatRelay) -> None:
    assert (await relay.update_status(0, "closed")).error == ErrorMessages.INVALID_PAYLOAD
    assert (await relay.update_status(10, "  ")).error == ErrorMessages.INVALID_PAYLOAD


@pytest.mark.asyncio
async def test_close_already_closed_differs_from_not_found(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    already = await relay.update_status(11, "closed")
    missing = await relay.update_status(999, "closed")

    assert already.error == ErrorMessages.CONVERSATION_ALREADY_CLOSED
    assert missing.error == ErrorMessages.CONVERSATION_NOT_FOUND
    assert already.error != missing.error
    mock_api.upsert_conversation.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_runs_update_then_notify_then_cancel(
    relay: ChatRelay, mock_api: MockApiClient, scheduler: AutoCloseScheduler
) -> None:
    events: list[str] = []
    upsert = mock_api.upsert_conversation.side_effect

    async def record_upsert(**kwargs):
        events.append("status_update")
        return await upsert(**kwargs)

    async def record_notify(**kwargs):
        events.append("notification")
        return Outcome.ok()

    mock_api.upsert_conversation.side_effect = record_upsert
    mock_api.send_text.side_effect = record_notify
    scheduler.cancel = MagicMock(side_effect=lambda key: events.append("cancel"))

    result = await relay.update_status(10, "closed")

    assert result.success is True
    assert events == ["status_update", "notification", "cancel"]
    scheduler.cancel.assert_called_once_with(10)
    assert mock_api.upsert_conversation.await_args.kwargs["status"] == "closed"
    notify = mock_api.send_text.await_args.kwargs
    assert notify["to_phone"] == "+506 8888-1111"
    assert notify["text"] == relay.settings.closing_notification_text


@pytest.mark.asyncio
async def test_close_succeeds_when_notification_fails(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.send_text.return_value = Outcome.fatal("API 500: boom")

    result = await relay.update_status(10, "closed")

    assert result.success is True
    mock_api.send_text.assert_awaited_once()


@pytest.mark.asyncio
async def test_close_without_phone_still_succeeds(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    result = await relay.update_status(13, "cerrada")

    assert result.success is True
    mock_api.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_fails_when_status_update_fails(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.upsert_conversation.side_effect = None
    mock_api.upsert_conversation.return_value = Outcome.fatal(
        ErrorMessages.STATUS_UPDATE_FAILED
    )

    result = await relay.update_status(10, "closed")

    assert result.success is False
    assert result.error == ErrorMessages.STATUS_UPDATE_FAILED
    mock_api.send_text.assert_not_awaited()


@pytest.mark.asyncio
async def test_second_close_is_rejected(relay: ChatRelay) -> None:
    assert (await relay.update_status(10, "closed")).success is True

    second = await relay.update_status(10, "closed")

    assert second.success is False
    assert second.error == ErrorMessages.CONVERSATION_ALREADY_CLOSED


# ========= Auto-close =========


@pytest.mark.asyncio
async def test_auto_close_fires_through_close_path(
    relay: ChatRelay,
    mock_api: MockApiClient,
    scheduler: AutoCloseScheduler,
    manual_sleep: ManualSleep,
) -> None:
    await relay.send_message(10, "Hola")
    mock_api.send_text.reset_mock()

    manual_sleep.release()
    await _drain_auto_close_tasks()

    assert not scheduler.is_scheduled(10)
    assert mock_api.conversations[0].status == "closed"
    assert mock_api.send_text.await_args.kwargs["text"] == (
        relay.settings.closing_notification_text
    )


@pytest.mark.asyncio
async def test_auto_close_skipped_when_credentials_expired(
    relay: ChatRelay,
    mock_api: MockApiClient,
    scheduler: AutoCloseScheduler,
    manual_sleep: ManualSleep,
) -> None:
    await relay.send_message(10, "Hola")
    mock_api.send_text.reset_mock()
    mock_api.has_live_credentials.return_value = False

    manual_sleep.release()
    await _drain_auto_close_tasks()

    assert not scheduler.is_scheduled(10)
    assert mock_api.conversations[0].status == "open"
    mock_api.upsert_conversation.assert_not_awaited()
    mock_api.send_text.assert_not_awaited()

@pytest.mark.asyncio
async def test_explicit_close_cancels_pending_auto_close(
    relay: ChatRelay, scheduler: AutoCloseScheduler
) -> None:
    await relay.send_message(10, "Hola")
    assert scheduler.is_scheduled(10)

    await relay.update_status(10, "closed")

    assert not scheduler.is_scheduled(10)
    assert len(scheduler) == 0


# ========= Listings =========


@pytest.mark.asyncio
async def test_contact_conversations_match_phone_digits(relay: ChatRelay) -> None:
    conversations = await relay.contact_conversations("(506) 8888 1111")

    assert [c.id for c in conversations] == [10]
    assert conversations[0].contact_name == "Ana Mora"
    assert conversations[0].contact_phone == "+506 8888-1111"


@pytest.mark.asyncio
async def test_contact_conversations_only_agent_requested(relay: ChatRelay) -> None:
    conversations = await relay.contact_conversations("50622223333")

    # conversation 12 never asked for an agent
    assert [c.id for c in conversations] == [11]


@pytest.mark.asyncio
async def test_contact_conversations_unknown_phone(relay: ChatRelay) -> None:
    assert await relay.contact_conversations("123") == []
    assert await relay.contact_conversations("abc") == []


@pytest.mark.asyncio
async def test_agent_conversations_newest_activity_first(relay: ChatRelay) -> None:
    conversations = await relay.agent_conversations()

    assert [c.id for c in conversations] == [10, 13, 11]
    assert conversations[0].to_json()["contactName"] == "Ana Mora"


@pytest.mark.asyncio
async def test_agent_conversations_tolerate_contacts_failure(
    relay: ChatRelay, mock_api: MockApiClient
) -> None:
    mock_api.list_contacts.side_effect = ApiUnavailableError(ErrorMessages.API_UNAVAILABLE)

    conversations = await relay.agent_conversations()

    assert len(conversations) == 3
    assert all(c.contact_name is None for c in conversations)


@pytest.mark.asyncio
async def test_conversation_messages_sorted_and_arm_timer(
    relay: ChatRelay, scheduler: AutoCloseScheduler
) -> None:
    messages = await relay.conversation_messages(10)

    assert [m.id for m in messages] == [100, 101]
    assert messages[0].to_json()["message"] == "Bienvenido"
    assert scheduler.is_scheduled(10)
    await scheduler.shutdown()


@pytest.mark.asyncio
async def test_conversation_messages_of_closed_conversation_do_not_arm_timer(
    relay: ChatRelay, scheduler: AutoCloseScheduler
) -> None:
    messages = await relay.conversation_messages(11)

    assert [m.id for m in messages] == [102]
    assert not scheduler.is_scheduled(11)


def test_public_names_are_relay_types_only() -> None:
    from wa_panel.services import chat_relay

    assert sorted(chat_relay.__all__) == [
        "ChatRelay",
        "ConversationSummary",
        "MessageItem",
        "RelayResult",
    ]
