"""Page aggregators: pure functions from record sets to view models."""

from wa_panel.views.agents import AgentsView, build_agents_view, closed_by_agent
from wa_panel.views.dashboard import DashboardView, build_dashboard, format_seconds
from wa_panel.views import reports

__all__ = [
    "AgentsView",
    "DashboardView",
    "build_agents_view",
    "build_dashboard",
    "closed_by_agent",
    "format_seconds",
    "reports",
]
