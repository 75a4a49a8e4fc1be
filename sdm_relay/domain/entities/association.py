"""
Association Module

Architectural Intent:
- AssociationRecord links a problem id to the ticket opened for it
- Records are immutable; open, close and reopen produce new instances
- Closing keeps the record as evidence that a ticket existed
- Reopening a closed problem keeps the previous tickets in history so a
  new ticket never silently replaces a live one
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any
from sdm_relay.domain.value_objects.ticket_reference import TicketReference


@dataclass(frozen=True)
class AssociationRecord:
    problem_id: str
    ticket: TicketReference
    closed: bool = False
    history: tuple[TicketReference, ...] = ()

    @property
    def is_live(self) -> bool:
        return not self.closed

    @classmethod
    def opened(cls, problem_id: str, ticket: TicketReference) -> "AssociationRecord":
        return cls(problem_id=problem_id, ticket=ticket)

    def close(self) -> "AssociationRecord":
        return replace(self, closed=True)

    def reopen(self, ticket: TicketReference) -> "AssociationRecord":
        if self.is_live:
            raise ValueError(
                f"Problem {self.problem_id} already has live ticket {self.ticket.number}"
            )
        return AssociationRecord(
            problem_id=self.problem_id,
            ticket=ticket,
            closed=False,
            history=self.history + (self.ticket,),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.ticket.to_dict()
        data["closed"] = self.closed
        data["history"] = [t.to_dict() for t in self.history]
        return data

    @classmethod
    def from_dict(cls, problem_id: str, data: dict[str, Any]) -> "AssociationRecord":
        # documents written before closed/history existed load as live records
        return cls(
            problem_id=problem_id,
            ticket=TicketReference.from_dict(data),
            closed=data.get("closed") is True,
            history=tuple(
                TicketReference.from_dict(h) for h in data.get("history", [])
            ),
        )
