"""Reports page and its JSON queries.

Every query takes an inclusive ``from``/``to`` pair compared by UTC date.
Malformed dates answer 400; an unreachable API answers 502.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from wa_panel.auth.session import Principal
from wa_panel.constants import DEFAULT_REPORT_DAYS, DEFAULT_TOP_CLIENTS
from wa_panel.core.errors import PanelError
from wa_panel.core.validation import ValidationError, parse_date_param
from wa_panel.dependencies import get_api_client, require_principal
from wa_panel.services.api_client import ApiClient
from wa_panel.templating import render
from wa_panel.views import reports

router = APIRouter(prefix="/reports", tags=["reports"])


def _bad_request(error: ValidationError) -> JSONResponse:
    return JSONResponse({"error": str(error)}, status_code=status.HTTP_400_BAD_REQUEST)


def _upstream_failure(error: PanelError) -> JSONResponse:
    return JSONResponse(
        error.to_response().model_dump(), status_code=status.HTTP_502_BAD_GATEWAY
    )


def _date_range(date_from: str | None, date_to: str | None) -> tuple[date, date]:
    return parse_date_param(date_from), parse_date_param(date_to)


@router.get("")
async def reports_page(request: Request, principal: Principal = Depends(require_principal)):
    today = datetime.now(timezone.utc).date()
    return render(
        request,
        "reports.html",
        {
            "date_from": (today - timedelta(days=DEFAULT_REPORT_DAYS - 1)).isoformat(),
            "date_to": today.isoformat(),
        },
    )


@router.get("/series")
async def series(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    group_by: str | None = Query("day", alias="groupBy"),
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        start, end = _date_range(date_from, date_to)
    except ValidationError as e:
        return _bad_request(e)
    try:
        messages = await api.list_messages()
    except PanelError as e:
        return _upstream_failure(e)
    return JSONResponse(reports.series(messages, start, end, group_by).to_json())


@router.get("/agent-closures")
async def agent_closures(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        start, end = _date_range(date_from, date_to)
    except ValidationError as e:
        return _bad_request(e)
    try:
        conversations, agents = await asyncio.gather(
            api.list_conversations(), api.list_agents()
        )
    except PanelError as e:
        return _upstream_failure(e)
    items = reports.agent_closures(conversations, agents, start, end)
    return JSONResponse([item.to_json() for item in items])


@router.get("/top-clients")
async def top_clients(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    limit: int | None = Query(None),
    take: int | None = Query(None),
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        start, end = _date_range(date_from, date_to)
    except ValidationError as e:
        return _bad_request(e)
    try:
        messages, contacts = await asyncio.gather(api.list_messages(), api.list_contacts())
    except PanelError as e:
        return _upstream_failure(e)
    if limit is None:
        limit = take if take is not None else DEFAULT_TOP_CLIENTS
    items = reports.top_clients(messages, contacts, start, end, limit)
    return JSONResponse([item.to_json() for item in items])


@router.get("/kpis")
async def kpis(
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        start, end = _date_range(date_from, date_to)
    except ValidationError as e:
        return _bad_request(e)
    try:
        messages, conversations = await asyncio.gather(
            api.list_messages(), api.list_conversations()
        )
    except PanelError as e:
        return _upstream_failure(e)
    return JSONResponse(reports.kpis(messages, conversations, start, end).to_json())
