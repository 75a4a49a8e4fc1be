"""
Stub Service Desk Adapter

Architectural Intent:
- Implements ServiceDeskPort without a backend, for development and testing
- Keeps sessions and requests in memory and logs every call
- Used by the composition root when no SDM endpoint is configured

Design Decisions:
- Generates request numbers from a counter and handles with a cr: prefix
  so they look like the real backend's
- Records every call in order so tests can assert on the call sequence
"""

import itertools
import logging
import uuid
from typing import Optional, Sequence

from sdm_relay.domain.ports.service_desk_port import AuthenticationError, RemoteError
from sdm_relay.domain.value_objects.ticket_reference import TicketReference

logger = logging.getLogger(__name__)


class StubServiceDesk:
    """Service Desk adapter (stub)."""

    def __init__(self, username: str = "", password: str = "") -> None:
        self._username = username
        self._password = password
        self._sessions: set[str] = set()
        self._counter = itertools.count(1)
        self.requests: dict[str, dict] = {}
        self.calls: list[str] = []

    def _check_session(self, sid: str) -> None:
        if sid not in self._sessions:
            raise RemoteError(f"Invalid session id {sid}")

    async def login(self, username: str, password: str) -> str:
        self.calls.append("login")
        if self._username and (username, password) != (self._username, self._password):
            raise AuthenticationError(f"Login failed for {username}")
        sid = uuid.uuid4().hex
        self._sessions.add(sid)
        logger.info("Service Desk login (stub): %s", username)
        return sid

    async def get_handle_for_userid(self, sid: str, user_id: str) -> str:
        self.calls.append("getHandleForUserid")
        self._check_session(sid)
        logger.info("Service Desk getHandleForUserid (stub): %s", user_id)
        return f"cnt:{uuid.uuid5(uuid.NAMESPACE_OID, user_id).hex.upper()}"

    async def create_request(
        self,
        sid: str,
        creator_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> TicketReference:
        self.calls.append("createRequest")
        self._check_session(sid)
        seq = next(self._counter)
        ticket = TicketReference(handle=f"cr:{400000 + seq}", number=f"INC{seq:06d}")
        self.requests[ticket.handle] = {
            "number": ticket.number,
            "creator": creator_handle,
            "attributes": list(attributes),
            "status": "OP",
        }
        logger.info(
            "Service Desk create_request (stub): %s [%s]", ticket.number, ticket.handle
        )
        return ticket

    async def update_object(
        self,
        sid: str,
        object_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> str:
        self.calls.append("updateObject")
        self._check_session(sid)
        request = self.requests.get(object_handle)
        if request is None:
            raise RemoteError(f"Unknown object {object_handle}")
        for name, value in attributes:
            request[name] = value
        logger.info("Service Desk update_object (stub): %s %s", object_handle, attributes)
        return object_handle

    def get_request(self, handle: str) -> Optional[dict]:
        return self.requests.get(handle)
