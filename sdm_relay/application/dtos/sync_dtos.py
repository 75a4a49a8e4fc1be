"""
Sync DTOs

Architectural Intent:
- Data Transfer Objects for the ticket lifecycle boundary
- SyncOutcome is what the HTTP layer serializes as the response body
- No-op paths get their own status so callers can tell them from success
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class SyncStatus(Enum):
    OPENED = "opened"
    CLOSED = "closed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FAILED = "failed"
    INVALID = "invalid"


@dataclass(frozen=True)
class SyncOutcome:
    status: SyncStatus
    message: str
    ticket_number: Optional[str] = None
    attempts: Optional[int] = None

    @property
    def error(self) -> bool:
        return self.status in (SyncStatus.FAILED, SyncStatus.INVALID)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": self.error,
            "message": self.message,
            "status": self.status.value,
        }
        if self.ticket_number is not None:
            data["ticket"] = self.ticket_number
        if self.attempts is not None:
            data["attempts"] = self.attempts
        return data

    @classmethod
    def opened(cls, number: str, attempts: int) -> "SyncOutcome":
        return cls(SyncStatus.OPENED, f"Opened ticket: {number}", number, attempts)

    @classmethod
    def closed(cls, number: str, attempts: int) -> "SyncOutcome":
        return cls(SyncStatus.CLOSED, f"Closed ticket: {number}", number, attempts)

    @classmethod
    def duplicate(cls, number: str) -> "SyncOutcome":
        return cls(SyncStatus.DUPLICATE, f"Ticket already open: {number}", number)

    @classmethod
    def ignored(cls, message: str) -> "SyncOutcome":
        return cls(SyncStatus.IGNORED, message)

    @classmethod
    def failed(
        cls, message: str, attempts: Optional[int] = None, number: Optional[str] = None
    ) -> "SyncOutcome":
        return cls(SyncStatus.FAILED, message, number, attempts)

    @classmethod
    def invalid(cls, message: str) -> "SyncOutcome":
        return cls(SyncStatus.INVALID, message)
