"""Report aggregations over an inclusive UTC calendar-date range."""

from collections import Counter
from datetime import date, datetime, timedelta, timezone

from wa_panel.core.messages import ReportLabels
from wa_panel.core.models import BaseViewModel
from wa_panel.records import Agent, Contact, Conversation, Message

GROUP_DAY = "day"
GROUP_WEEK = "week"
GROUP_MONTH = "month"
GROUPINGS = (GROUP_DAY, GROUP_WEEK, GROUP_MONTH)


class SeriesPoint(BaseViewModel):
    label: str
    value: int


class SeriesResponse(BaseViewModel):
    granularity: str
    points: list[SeriesPoint]


class CountItem(BaseViewModel):
    name: str
    count: int


class ReportKpis(BaseViewModel):
    """Range KPIs; ``new_clients`` counts contacts whose first message is in range."""

    total_messages: int
    agent_closures: int
    new_clients: int


def utc_date(value: datetime) -> date:
    return value.astimezone(timezone.utc).date()


def in_range(value: datetime | None, start: date | None, end: date | None) -> bool:
    """True when ``value``'s UTC date is within [start, end]; open bounds allowed."""
    if value is None:
        return False
    day = utc_date(value)
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def normalize_group(group_by: str | None) -> str:
    group = (group_by or GROUP_DAY).strip().lower()
    return group if group in GROUPINGS else GROUP_DAY


def start_of_iso_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def bucket_label(day: date, group: str) -> str:
    if group == GROUP_WEEK:
        return start_of_iso_week(day).isoformat()
    if group == GROUP_MONTH:
        return day.strftime("%Y-%m")
    return day.isoformat()


def series(
    messages: list[Message], start: date, end: date, group_by: str | None = GROUP_DAY
) -> SeriesResponse:
    """Message counts per day, ISO week (labelled by its Monday) or month."""
    group = normalize_group(group_by)
    counts = Counter(
        bucket_label(utc_date(m.sent_at), group)
        for m in messages
        if in_range(m.sent_at, start, end)
    )
    points = [SeriesPoint(label=label, value=counts[label]) for label in sorted(counts)]
    return SeriesResponse(granularity=group, points=points)


def agent_closures(
    conversations: list[Conversation], agents: list[Agent], start: date, end: date
) -> list[CountItem]:
    """Closed conversations in range grouped by the agent credited with closing."""
    names = {a.id: a.name for a in agents if a.id > 0}
    counts = Counter(
        max(c.closing_agent_id, 0)
        for c in conversations
        if c.is_closed and in_range(c.closed_at, start, end)
    )

    items = []
    for agent_id, count in counts.items():
        if agent_id == 0:
            name = ReportLabels.NO_AGENT
        else:
            name = names.get(agent_id) or ReportLabels.AGENT.format(agent_id=agent_id)
        items.append(CountItem(name=name, count=count))
    return _by_count(items)


def top_clients(
    messages: list[Message],
    contacts: list[Contact],
    start: date,
    end: date,
    limit: int = 10,
) -> list[CountItem]:
    """Contacts with the most messages in range, at least one item requested."""
    names = {c.id: c.name for c in contacts if c.id > 0}
    counts = Counter(
        max(m.contact_id, 0) for m in messages if in_range(m.sent_at, start, end)
    )

    items = []
    for contact_id, count in counts.items():
        if contact_id == 0:
            name = ReportLabels.NO_CLIENT
        else:
            name = names.get(contact_id) or ReportLabels.CLIENT.format(
                contact_id=contact_id
            )
        items.append(CountItem(name=name, count=count))
    return _by_count(items)[: max(1, limit)]


def kpis(
    messages: list[Message], conversations: list[Conversation], start: date, end: date
) -> ReportKpis:
    """Totals for the range; only messages tied to a contact are counted."""
    dated = [m for m in messages if m.sent_at is not None and m.contact_id > 0]

    first_by_contact: dict[int, date] = {}
    for message in dated:
        day = utc_date(message.sent_at)
        current = first_by_contact.get(message.contact_id)
        if current is None or day < current:
            first_by_contact[message.contact_id] = day

    return ReportKpis(
        total_messages=sum(1 for m in dated if in_range(m.sent_at, start, end)),
        agent_closures=sum(
            1 for c in conversations if c.is_closed and in_range(c.closed_at, start, end)
        ),
        new_clients=sum(1 for d in first_by_contact.values() if start <= d <= end),
    )


def _by_count(items: list[CountItem]) -> list[CountItem]:
    return sorted(items, key=lambda item: (-item.count, item.name))
