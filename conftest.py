"""Global test configuration.

Provides a scripted Service Desk that fails selected operations a given
number of times, and factories wiring it to real use cases and a JSON store
under tmp_path.
"""

import pytest

from sdm_relay.application.use_cases.close_ticket import CloseTicket
from sdm_relay.application.use_cases.open_ticket import OpenTicket
from sdm_relay.application.use_cases.sync_problem import SyncProblem
from sdm_relay.domain.ports.service_desk_port import AuthenticationError, RemoteError
from sdm_relay.domain.services.retry_policy import RetryPolicy
from sdm_relay.domain.value_objects.credentials import ServiceDeskCredentials
from sdm_relay.domain.value_objects.ticket_template import TicketTemplate
from sdm_relay.infrastructure.adapters.stub_service_desk import StubServiceDesk
from sdm_relay.infrastructure.event_bus import EventBus
from sdm_relay.infrastructure.repositories.json_association_store import (
    JsonAssociationStore,
)

ALWAYS = 10**6


class ScriptedServiceDesk(StubServiceDesk):
    """Stub Service Desk failing the first N calls of each named operation."""

    def __init__(self, **failures: int) -> None:
        super().__init__()
        self.failures = failures

    def _should_fail(self, operation: str) -> bool:
        remaining = self.failures.get(operation, 0)
        if remaining > 0:
            self.failures[operation] = remaining - 1
            self.calls.append(operation)
            return True
        return False

    async def login(self, username, password):
        if self._should_fail("login"):
            raise AuthenticationError("Login failed", "<faultstring>bad login</faultstring>")
        return await super().login(username, password)

    async def get_handle_for_userid(self, sid, user_id):
        if self._should_fail("getHandleForUserid"):
            raise RemoteError("getHandleForUserid failed")
        return await super().get_handle_for_userid(sid, user_id)

    async def create_request(self, sid, creator_handle, attributes):
        if self._should_fail("createRequest"):
            raise RemoteError("createRequest failed")
        return await super().create_request(sid, creator_handle, attributes)

    async def update_object(self, sid, object_handle, attributes):
        if self._should_fail("updateObject"):
            raise RemoteError("updateObject failed")
        return await super().update_object(sid, object_handle, attributes)


@pytest.fixture
def make_desk():
    """Factory for ScriptedServiceDesk; pass e.g. login=3 to fail 3 logins."""
    return ScriptedServiceDesk


@pytest.fixture
def always():
    return ALWAYS


@pytest.fixture
def store(tmp_path):
    return JsonAssociationStore.open(str(tmp_path / "problems.json"))


@pytest.fixture
def template():
    return TicketTemplate(root_cause="rc:5001")


@pytest.fixture
def credentials():
    return ServiceDeskCredentials("relay", "secret")


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def make_sync(store, template, credentials, event_bus):
    """Wire a SyncProblem around the given desk with a real store."""

    def _make(desk, max_attempts: int = 3) -> SyncProblem:
        policy = RetryPolicy(max_attempts)
        open_ticket = OpenTicket(desk, store, policy, credentials, template, event_bus)
        close_ticket = CloseTicket(desk, store, policy, credentials, template, event_bus)
        return SyncProblem(open_ticket, close_ticket)

    return _make
