"""Contacts page and contact rename."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from wa_panel.auth.session import Principal
from wa_panel.core.errors import PanelError
from wa_panel.dependencies import get_api_client, require_principal
from wa_panel.routes.schemas import (
    INVALID_PARAMETERS,
    NAME_UPDATED_RESPONSE,
    NameUpdateRequest,
)
from wa_panel.services.api_client import ApiClient
from wa_panel.templating import render

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("")
async def contacts_page(
    request: Request,
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    try:
        contacts = await api.list_contacts()
    except PanelError as e:
        return render(request, "contacts.html", {"contacts": [], "error": e.message})
    return render(request, "contacts.html", {"contacts": contacts})


@router.post("/name")
async def update_contact_name(
    body: NameUpdateRequest,
    principal: Principal = Depends(require_principal),
    api: ApiClient = Depends(get_api_client),
):
    if not body.is_valid:
        return PlainTextResponse(INVALID_PARAMETERS, status_code=status.HTTP_400_BAD_REQUEST)
    try:
        await api.update_contact_name(body.id, body.nombre.strip())
    except PanelError as e:
        return PlainTextResponse(e.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(NAME_UPDATED_RESPONSE)
