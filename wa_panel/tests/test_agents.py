"""Tests for the agents roster and closures-by-agent query."""

from datetime import date

from wa_panel.records import Agent, Contact, Conversation
from wa_panel.tests.mocks.mock_services import utc
from wa_panel.views.agents import build_agents_view, closed_by_agent, minutes_since

NOW = utc(2024, 6, 1, 12, 0)

AGENTS = [
    Agent(id=7, name="Carla", is_online=True, last_activity=utc(2024, 6, 1, 11, 15)),
    Agent(id=8, name="Pedro"),
]

CONVERSATIONS = [
    Conversation(id=1, contact_id=1, status="closed", closed_by_user_id=7,
                 started_at=utc(2024, 6, 1, 8, 0), ended_at=utc(2024, 6, 1, 9, 0)),
    Conversation(id=2, contact_id=2, status="closed", closed_by_user_id=7,
                 started_at=utc(2024, 5, 30, 8, 0), ended_at=utc(2024, 5, 30, 9, 0)),
    Conversation(id=3, contact_id=1, status="closed", closed_by_user_id=8,
                 ended_at=utc(2024, 6, 1, 10, 0)),
    Conversation(id=4, contact_id=2, status="open"),
    Conversation(id=5, contact_id=1, status="open"),
    Conversation(id=6, contact_id=1, status="closed", closed_by_user_id=7,
                 ended_at=utc(2024, 5, 31, 9, 0)),
]

CONTACTS = [
    Contact(id=1, name="Ana", phone_number="50688881111"),
    Contact(id=2, name="Luis"),
]


def test_minutes_since() -> None:
    assert minutes_since(None, NOW) == 0
    assert minutes_since(utc(2024, 6, 1, 11, 15), NOW) == 45
    assert minutes_since(utc(2024, 6, 1, 13, 0), NOW) == 0


def test_roster_rows_and_kpis() -> None:
    view = build_agents_view(AGENTS, CONVERSATIONS, now=NOW)

    carla, pedro = view.rows
    assert carla.closed_today == 1
    assert carla.minutes_since_activity == 45
    assert carla.online is True
    assert pedro.closed_today == 1
    assert pedro.online is False

    assert view.kpis.active_agents == 1
    assert view.kpis.open_conversations == 2
    assert view.kpis.average_load == 1.0
    assert view.kpis.closures_today == 2


def test_empty_roster() -> None:
    view = build_agents_view([], CONVERSATIONS, now=NOW)

    assert view.rows == []
    assert view.kpis.average_load == 0.0


def test_closed_by_agent_newest_first() -> None:
    result = closed_by_agent(CONVERSATIONS, CONTACTS, 7)

    assert [i.id for i in result.items] == [1, 6, 2]
    assert result.total == 3
    assert result.items[0].contact_phone == "50688881111"
    assert result.items[2].contact_phone == ""


def test_closed_by_agent_inclusive_range() -> None:
    result = closed_by_agent(
        CONVERSATIONS, CONTACTS, 7, start=date(2024, 5, 30), end=date(2024, 5, 31)
    )

    assert [i.id for i in result.items] == [6, 2]


def test_closed_by_agent_invalid_id() -> None:
    result = closed_by_agent(CONVERSATIONS, CONTACTS, 0)

    assert result.items == []
    assert result.total == 0
