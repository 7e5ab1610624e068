"""Agents page, closures-by-agent query and agent rename."""

import asyncio

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from wa_panel.auth.session import Principal
from wa_panel.core.errors import PanelError
from wa_panel.core.validation import ValidationError, parse_optional_date_param
from wa_panel.dependencies import get_api_client, require_principal
from wa_panel.routes.schemas import (
    INVALID_PARAMETERS,
    NAME_UPDATED_RESPONSE,
    NameUpdateRequest,
)
from wa_panel.services.api_client import ApiClient
from wa_panel.templating import render
from wa_panel.views.agents import (
    AgentsView,
    ClosedByAgentResult,
    build_agents_view,
    closed_by_agent,
)

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("")
async def agents_page(
    request: Request,
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        conversations, agents = await asyncio.gather(
            api.list_conversations(), api.list_agents()
        )
    except PanelError as e:
        return render(request, "agents.html", {"view": AgentsView(), "error": e.message})
    return render(request, "agents.html", {"view": build_agents_view(agents, conversations)})


@router.get("/closed")
async def closed_conversations(
    agent_id: int = Query(0, alias="id"),
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    """Conversations closed by one agent within an optional date range."""
    if agent_id <= 0:
        return JSONResponse(ClosedByAgentResult().to_json())
    try:
        start = parse_optional_date_param(date_from)
        end = parse_optional_date_param(date_to)
        conversations, contacts = await asyncio.gather(
            api.list_conversations(), api.list_contacts()
        )
    except (ValidationError, PanelError) as e:
        error = e.message if isinstance(e, PanelError) else str(e)
        return JSONResponse(ClosedByAgentResult(error=error).to_json())

    result = closed_by_agent(conversations, contacts, agent_id, start, end)
    return JSONResponse(result.to_json())


@router.post("/name")
async def update_agent_name(
    body: NameUpdateRequest,
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    if not body.is_valid:
        return PlainTextResponse(INVALID_PARAMETERS, status_code=status.HTTP_400_BAD_REQUEST)
    try:
        await api.update_user_name(body.id, body.nombre.strip())
    except PanelError as e:
        return PlainTextResponse(e.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(NAME_UPDATED_RESPONSE)
