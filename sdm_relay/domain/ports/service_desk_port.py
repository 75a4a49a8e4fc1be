"""
Service Desk Port

Architectural Intent:
- Port interface for the CA Service Desk Manager session protocol
- Every call takes the session id explicitly; adapters keep no session state
- Enables automated ticket creation and closing from monitoring problems

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- Attributes are ordered (name, value) pairs; order is part of the contract
- All failures surface as RemoteError so the retry policy can treat them
  uniformly; the raw response body travels with the error for diagnostics
"""

from typing import Optional, Protocol, Sequence, runtime_checkable
from sdm_relay.domain.value_objects.ticket_reference import TicketReference


class RemoteError(Exception):
    """A Service Desk call failed (transport, HTTP, fault or bad response)."""

    def __init__(self, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body


class AuthenticationError(RemoteError):
    """The Service Desk rejected the login."""


@runtime_checkable
class ServiceDeskPort(Protocol):
    """Port for Service Desk session operations."""

    async def login(self, username: str, password: str) -> str:
        """Open a session. Returns the session id (sid)."""
        ...

    async def get_handle_for_userid(self, sid: str, user_id: str) -> str:
        """Translate a user id into the backend's contact handle."""
        ...

    async def create_request(
        self,
        sid: str,
        creator_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> TicketReference:
        """Create a request. Returns the new request's handle and number."""
        ...

    async def update_object(
        self,
        sid: str,
        object_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> str:
        """Update attributes of an existing object."""
        ...
