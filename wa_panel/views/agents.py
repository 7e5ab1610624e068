"""Agents roster aggregation and closures-by-agent query."""

from datetime import date, datetime, timezone

from pydantic import Field

from wa_panel.core.models import BaseViewModel
from wa_panel.records import Agent, Contact, Conversation
from wa_panel.views.reports import in_range, utc_date

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class AgentRow(BaseViewModel):
    agent: Agent
    closed_today: int = 0
    minutes_since_activity: int = 0
    online: bool = False


class AgentKpis(BaseViewModel):
    active_agents: int = 0
    open_conversations: int = 0
    average_load: float = 0.0
    closures_today: int = 0


class AgentsView(BaseViewModel):
    rows: list[AgentRow] = []
    kpis: AgentKpis = Field(default_factory=AgentKpis)


class ClosedConversation(BaseViewModel):
    id: int
    contact_id: int
    contact_phone: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None


class ClosedByAgentResult(BaseViewModel):
    items: list[ClosedConversation] = []
    total: int = 0
    error: str | None = None


def minutes_since(last_activity: datetime | None, now: datetime) -> int:
    """Whole minutes since ``last_activity``; a missing value counts as now."""
    if last_activity is None:
        return 0
    return max(0, int((now - last_activity).total_seconds() // 60))


def build_agents_view(
    agents: list[Agent],
    conversations: list[Conversation],
    now: datetime | None = None,
) -> AgentsView:
    """Per-agent closures today and idle minutes, plus roster KPIs."""
    now = now or datetime.now(timezone.utc)
    today = utc_date(now)

    rows = []
    for agent in agents:
        closed_today = sum(
            1
            for c in conversations
            if c.closed_by_user_id == agent.id
            and c.ended_at is not None
            and utc_date(c.ended_at) == today
        )
        rows.append(
            AgentRow(
                agent=agent,
                closed_today=closed_today,
                minutes_since_activity=minutes_since(agent.last_activity, now),
                online=agent.is_online,
            )
        )

    open_conversations = sum(1 for c in conversations if c.is_open)
    kpis = AgentKpis(
        active_agents=sum(1 for r in rows if r.online),
        open_conversations=open_conversations,
        average_load=open_conversations / len(agents) if agents else 0.0,
        closures_today=sum(r.closed_today for r in rows),
    )
    return AgentsView(rows=rows, kpis=kpis)


def closed_by_agent(
    conversations: list[Conversation],
    contacts: list[Contact],
    agent_id: int,
    start: date | None = None,
    end: date | None = None,
) -> ClosedByAgentResult:
    """Conversations closed by one agent, newest closure first."""
    if agent_id <= 0:
        return ClosedByAgentResult()

    phones = {c.id: c.phone_number or "" for c in contacts}
    closed = [
        c
        for c in conversations
        if c.closed_by_user_id == agent_id
        and c.ended_at is not None
        and in_range(c.ended_at, start, end)
    ]
    closed.sort(key=lambda c: c.ended_at or _EPOCH, reverse=True)

    items = [
        ClosedConversation(
            id=c.id,
            contact_id=c.contact_id,
            contact_phone=phones.get(c.contact_id),
            started_at=c.started_at,
            ended_at=c.ended_at,
        )
        for c in closed
    ]
    return ClosedByAgentResult(items=items, total=len(items))
