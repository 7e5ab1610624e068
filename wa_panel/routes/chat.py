"""Chat page and relay endpoints.

All JSON endpoints answer 200; failures are carried in the body
(``error`` for listings, ``success: false`` for actions).
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from wa_panel.auth.session import Principal
from wa_panel.core.errors import PanelError
from wa_panel.core.messages import ErrorMessages
from wa_panel.core.validation import digits_only
from wa_panel.dependencies import get_chat_relay, require_principal
from wa_panel.routes.schemas import SendMessageRequest, UpdateStatusRequest
from wa_panel.services.chat_relay import ChatRelay
from wa_panel.templating import render

router = APIRouter(prefix="/chat", tags=["chat"])


def _listing(key: str, items: list, error: str | None = None) -> JSONResponse:
    body: dict = {key: [item.to_json() for item in items]}
    if error:
        body["error"] = error
    return JSONResponse(body)


@router.get("")
async def chat_page(request: Request, principal: Principal = Depends(require_principal)):
    return render(request, "chat.html")


@router.get("/contact-conversations")
async def contact_conversations(
    phone: str | None = Query(None),
    principal: Principal = Depends(require_principal),
    relay: ChatRelay = Depends(get_chat_relay),
):
    if not digits_only(phone):
        return _listing("conversations", [], ErrorMessages.PHONE_REQUIRED)
    try:
        conversations = await relay.contact_conversations(phone)
    except PanelError as e:
        return _listing("conversations", [], e.message)
    return _listing("conversations", conversations)


@router.get("/conversations")
async def agent_conversations(
    principal: Principal = Depends(require_principal),
    relay: ChatRelay = Depends(get_chat_relay),
):
    try:
        conversations = await relay.agent_conversations()
    except PanelError as e:
        return _listing("conversations", [], e.message)
    return _listing("conversations", conversations)


@router.get("/messages")
async def conversation_messages(
    conversation_id: int = Query(0, alias="conversationId"),
    principal: Principal = Depends(require_principal),
    relay: ChatRelay = Depends(get_chat_relay),
):
    if conversation_id <= 0:
        return _listing("messages", [], ErrorMessages.CONVERSATION_ID_INVALID)
    try:
        messages = await relay.conversation_messages(conversation_id)
    except PanelError as e:
        return _listing("messages", [], e.message)
    return _listing("messages", messages)


@router.post("/send")
async def send_message(
    body: SendMessageRequest,
    principal: Principal = Depends(require_principal),
    relay: ChatRelay = Depends(get_chat_relay),
):
    result = await relay.send_message(
        body.conversation_id,
        body.message,
        contact_id=body.contact_id,
        contact_phone=body.contact_phone,
    )
    return JSONResponse(result.to_json())


@router.post("/status")
async def update_status(
    body: UpdateStatusRequest,
    principal: Principal = Depends(require_principal),
    relay: ChatRelay = Depends(get_chat_relay),
):
    result = await relay.update_status(
        body.conversation_id,
        body.status,
        contact_id=body.contact_id,
        started_at=body.started_at,
    )
    return JSONResponse(result.to_json())
