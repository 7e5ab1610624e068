"""Dashboard aggregation: KPIs, monthly message histogram, activity feed."""

from datetime import datetime, timedelta, timezone

from wa_panel.constants import (
    ACTIVITY_FEED_LIMIT,
    ACTIVITY_WINDOW_DAYS,
    HISTOGRAM_MONTHS,
    NEW_CONTACT_WINDOW_HOURS,
    SPANISH_MONTH_ABBR,
)
from wa_panel.core.messages import ActivityMessages
from wa_panel.core.models import BaseViewModel
from wa_panel.records import Contact, Conversation, Message

ACTIVITY_NEW_CLIENT = "new_client"
ACTIVITY_CONVERSATION_CLOSED = "conv_closed"


class ActivityItem(BaseViewModel):
    """One entry of the recent-activity feed."""

    type: str
    title: str
    subtitle: str = ""
    when: datetime


class DashboardView(BaseViewModel):
    """Everything the dashboard page renders."""

    total_conversations: int = 0
    new_contacts_last_24h: int = 0
    avg_first_response_seconds: int = 0
    avg_first_response_display: str = "0s"
    messages_by_month_labels: list[str] = []
    messages_by_month_values: list[int] = []
    total_messages: int = 0
    activity: list[ActivityItem] = []


def format_seconds(seconds: int) -> str:
    """Compact duration: ``0s``, ``45s``, ``3m 20s``, ``2h 5m``."""
    if seconds <= 0:
        return "0s"
    if seconds < 60:
        return f"{seconds}s"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours >= 1:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"


def trailing_months(now: datetime, count: int = HISTOGRAM_MONTHS) -> list[tuple[int, int]]:
    """``count`` (year, month) pairs ending at the month of ``now``, oldest first."""
    absolute = now.year * 12 + (now.month - 1)
    months = []
    for offset in range(count - 1, -1, -1):
        year, month0 = divmod(absolute - offset, 12)
        months.append((year, month0 + 1))
    return months


def month_label(month: int) -> str:
    return SPANISH_MONTH_ABBR[month - 1]


def average_first_response(conversations: list[Conversation]) -> int:
    """Mean of supplied first-response values; 0 when none are supplied."""
    values = [
        c.first_response_seconds
        for c in conversations
        if c.first_response_seconds is not None and c.first_response_seconds >= 0
    ]
    if not values:
        return 0
    return round(sum(values) / len(values))


def _activity(contacts: list[Contact], conversations: list[Conversation], since: datetime):
    for contact in contacts:
        if contact.created_at is None or contact.created_at < since:
            continue
        name = contact.display_name or ActivityMessages.DEFAULT_CLIENT_NAME
        yield ActivityItem(
            type=ACTIVITY_NEW_CLIENT,
            title=ActivityMessages.NEW_CLIENT.format(name=name),
            when=contact.created_at,
        )

    for conversation in conversations:
        when = conversation.ended_at or conversation.last_activity_at
        if when is None or when < since or not conversation.is_closed:
            continue
        yield ActivityItem(
            type=ACTIVITY_CONVERSATION_CLOSED,
            title=ActivityMessages.CONVERSATION_CLOSED.format(
                conversation_id=conversation.id
            ),
            when=when,
        )


def build_dashboard(
    contacts: list[Contact],
    conversations: list[Conversation],
    messages: list[Message],
    now: datetime | None = None,
) -> DashboardView:
    """Aggregate the three record sets into the dashboard view.

    Args:
        contacts: All contacts of the tenant
        conversations: All conversations of the tenant
        messages: All messages of the tenant
        now: Current UTC time; injectable for tests

    Returns:
        DashboardView with exactly HISTOGRAM_MONTHS histogram buckets
    """
    now = now or datetime.now(timezone.utc)

    new_since = now - timedelta(hours=NEW_CONTACT_WINDOW_HOURS)
    new_contacts = sum(
        1 for c in contacts if c.created_at is not None and c.created_at >= new_since
    )

    months = trailing_months(now)
    counts = {month: 0 for month in months}
    for message in messages:
        if message.sent_at is None:
            continue
        key = (message.sent_at.year, message.sent_at.month)
        if key in counts:
            counts[key] += 1

    since = now - timedelta(days=ACTIVITY_WINDOW_DAYS)
    activity = sorted(
        _activity(contacts, conversations, since), key=lambda a: a.when, reverse=True
    )[:ACTIVITY_FEED_LIMIT]

    avg_frt = average_first_response(conversations)
    return DashboardView(
        total_conversations=len(conversations),
        new_contacts_last_24h=new_contacts,
        avg_first_response_seconds=avg_frt,
        avg_first_response_display=format_seconds(avg_frt),
        messages_by_month_labels=[month_label(m) for _, m in months],
        messages_by_month_values=[counts[m] for m in months],
        total_messages=len(messages),
        activity=activity,
    )
