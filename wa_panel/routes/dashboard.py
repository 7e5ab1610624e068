"""Dashboard page."""

import asyncio

from fastapi import APIRouter, Depends, Request

from wa_panel.auth.session import Principal
from wa_panel.constants import DASHBOARD_ROUTE
from wa_panel.core.errors import PanelError
from wa_panel.dependencies import get_api_client, require_principal
from wa_panel.services.api_client import ApiClient
from wa_panel.templating import render
from wa_panel.views.dashboard import DashboardView, build_dashboard

router = APIRouter(tags=["dashboard"])


@router.get(DASHBOARD_ROUTE)
async def dashboard(
    request: Request,
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        contacts, conversations, messages = await asyncio.gather(
            api.list_contacts(), api.list_conversations(), api.list_messages()
        )
    except PanelError as e:
        return render(request, "dashboard.html", {"view": DashboardView(), "error": e.message})

    view = build_dashboard(contacts, conversations, messages)
    return render(request, "dashboard.html", {"view": view})
