"""Tests for CloseTicket use case."""

import pytest
from unittest.mock import MagicMock

from sdm_relay.application.dtos.sync_dtos import SyncStatus
from sdm_relay.application.use_cases.close_ticket import CloseTicket
from sdm_relay.domain.entities.association import AssociationRecord
from sdm_relay.domain.entities.problem_event import ProblemEvent
from sdm_relay.domain.events.ticket_events import TicketClosedEvent, TicketSyncFailedEvent
from sdm_relay.domain.services.retry_policy import RetryPolicy


def _resolved_event(problem_id="P1"):
    return ProblemEvent.from_payload({"ProblemID": problem_id, "State": "RESOLVED"})


@pytest.fixture
def captured(event_bus):
    events = []

    async def handler(event):
        events.append(event)

    event_bus.subscribe(TicketClosedEvent, handler)
    event_bus.subscribe(TicketSyncFailedEvent, handler)
    return events


@pytest.fixture
def make_use_case(store, credentials, template, event_bus):
    def _make(desk, max_attempts=3):
        return CloseTicket(
            desk, store, RetryPolicy(max_attempts), credentials, template, event_bus
        )

    return _make


async def _seed(desk, store, problem_id="P1"):
    """Create a real request on the desk and record it."""
    sid = await desk.login("relay", "secret")
    ticket = await desk.create_request(sid, "cnt:X", [])
    store.upsert(AssociationRecord.opened(problem_id, ticket))
    desk.calls.clear()
    return ticket


class TestCloseTicket:
    @pytest.mark.asyncio
    async def test_no_record_is_ignored(self, make_desk, make_use_case):
        desk = make_desk()
        outcome = await make_use_case(desk).execute(_resolved_event())

        assert outcome.status is SyncStatus.IGNORED
        assert outcome.message == "No ticket associated with problem P1"
        assert desk.calls == []

    @pytest.mark.asyncio
    async def test_closes_and_marks_record(
        self, make_desk, make_use_case, store, captured
    ):
        desk = make_desk()
        ticket = await _seed(desk, store)

        outcome = await make_use_case(desk).execute(_resolved_event())

        assert outcome.status is SyncStatus.CLOSED
        assert outcome.message == f"Closed ticket: {ticket.number}"
        assert desk.calls == ["login", "updateObject"]
        request = desk.get_request(ticket.handle)
        assert request["status"] == "RE"
        assert request["rootcause"] == "rc:5001"
        assert store.lookup("P1").closed
        assert isinstance(captured[0], TicketClosedEvent)

    @pytest.mark.asyncio
    async def test_already_closed_record_closes_again(
        self, make_desk, make_use_case, store
    ):
        desk = make_desk()
        ticket = await _seed(desk, store)
        store.upsert(store.lookup("P1").close())

        outcome = await make_use_case(desk).execute(_resolved_event())

        assert outcome.status is SyncStatus.CLOSED
        assert outcome.ticket_number == ticket.number

    @pytest.mark.asyncio
    async def test_retries_update(self, make_desk, make_use_case, store):
        desk = make_desk(updateObject=2)
        await _seed(desk, store)

        outcome = await make_use_case(desk).execute(_resolved_event())

        assert outcome.status is SyncStatus.CLOSED
        assert outcome.attempts == 3
        assert desk.calls.count("login") == 3

    @pytest.mark.asyncio
    async def test_exhaustion_keeps_record_live(
        self, make_desk, make_use_case, store, always, captured
    ):
        desk = make_desk(updateObject=always)
        ticket = await _seed(desk, store)

        outcome = await make_use_case(desk, max_attempts=2).execute(_resolved_event())

        assert outcome.status is SyncStatus.FAILED
        assert outcome.message.startswith(
            f"Could not close ticket {ticket.number} after 2 tries"
        )
        assert store.lookup("P1").is_live
        assert captured[0].operation == "close"

    @pytest.mark.asyncio
    async def test_local_write_failure_still_closed(
        self, make_desk, credentials, template, event_bus
    ):
        desk = make_desk()
        sid = await desk.login("relay", "secret")
        ticket = await desk.create_request(sid, "cnt:X", [])
        store = MagicMock()
        store.lookup.return_value = AssociationRecord.opened("P1", ticket)
        store.upsert.side_effect = OSError("disk full")
        use_case = CloseTicket(desk, store, RetryPolicy(1), credentials, template, event_bus)

        outcome = await use_case.execute(_resolved_event())

        assert outcome.status is SyncStatus.CLOSED
        store.upsert.assert_called_once()
