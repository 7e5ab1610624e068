"""Jinja2 page rendering."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from wa_panel.auth.session import TENANT_NAME_KEY, get_principal

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    """Render a page with the signed-in user and tenant name in context."""
    page_context = {
        "principal": get_principal(request.session),
        "tenant_name": request.session.get(TENANT_NAME_KEY, ""),
        "error": None,
    }
    page_context.update(context or {})
    return templates.TemplateResponse(
        request, name, page_context, status_code=status_code
    )
