"""Login and logout."""

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse

from wa_panel.auth.session import Principal, get_principal, sign_in, sign_out
from wa_panel.constants import ACCOUNT_PREFIX, DASHBOARD_ROUTE, LOGIN_ROUTE
from wa_panel.core.errors import LoginError
from wa_panel.dependencies import get_account_service, require_principal
from wa_panel.services.account_service import AccountService
from wa_panel.templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix=ACCOUNT_PREFIX, tags=["account"])


def is_local_url(url: str | None) -> bool:
    """Only same-site absolute paths are accepted as redirect targets."""
    if not url:
        return False
    return url.startswith("/") and not url.startswith(("//", "/\\"))


@router.get("/login")
async def login_page(request: Request, returnUrl: str | None = None):
    if get_principal(request.session) is not None:
        return RedirectResponse(DASHBOARD_ROUTE, status_code=status.HTTP_302_FOUND)
    return render(request, "login.html", {"return_url": returnUrl, "username": ""})


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    returnUrl: str | None = Form(None),
    account: AccountService = Depends(get_account_service),
):
    """Exchange credentials for a token and start the session."""
    try:
        result = await account.login(username, password)
    except LoginError as e:
        return render(
            request,
            "login.html",
            {"error": e.message, "return_url": returnUrl, "username": username},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    sign_in(
        request.session,
        token=result.token,
        tenant_id=result.tenant_id,
        tenant_name=result.tenant_name,
        principal=result.principal,
    )
    target = returnUrl if is_local_url(returnUrl) else DASHBOARD_ROUTE
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)


@router.post("/logout")
async def logout(request: Request, principal: Principal = Depends(require_principal)):
    logger.info(f"User signed out: {principal.email or principal.id}")
    sign_out(request.session)
    return RedirectResponse(LOGIN_ROUTE, status_code=status.HTTP_302_FOUND)
