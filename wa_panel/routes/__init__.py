"""HTTP routes - pages and JSON endpoints."""

from wa_panel.routes.account import router as account_router
from wa_panel.routes.agents import router as agents_router
from wa_panel.routes.chat import router as chat_router
from wa_panel.routes.contacts import router as contacts_router
from wa_panel.routes.dashboard import router as dashboard_router
from wa_panel.routes.reports import router as reports_router

ROUTERS = [
    account_router,
    dashboard_router,
    agents_router,
    contacts_router,
    reports_router,
    chat_router,
]

__all__ = ["ROUTERS"]
