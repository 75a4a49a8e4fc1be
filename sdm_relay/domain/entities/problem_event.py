"""
Problem Event Module

Architectural Intent:
- Immutable representation of a monitoring notification about one problem
- Parsing and validation of the inbound payload happen here, at the boundary
- The state is classified once so the lifecycle engine can dispatch on it

Payload keys follow the monitoring tool's custom integration template:
ProblemID, State, ProblemTitle, ProblemDetailsText and the optional Pcat.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from sdm_relay.domain.value_objects.problem_id import ProblemId


class InvalidProblemError(ValueError):
    """Raised when an inbound payload cannot be turned into a ProblemEvent."""


class ProblemState(Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: str) -> "ProblemState":
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return cls.UNKNOWN


_STRING_FIELDS = ("ProblemID", "State", "ProblemTitle", "ProblemDetailsText")


@dataclass(frozen=True)
class ProblemEvent:
    problem_id: ProblemId
    raw_state: str
    title: str = ""
    details_text: str = ""
    category: Optional[str] = None

    @property
    def state(self) -> ProblemState:
        return ProblemState.parse(self.raw_state)

    def ticket_title(self, prefix: str = "Dynatrace") -> str:
        return (
            f"{prefix} - {self.title} "
            f"(Problem ID: {self.problem_id}, State: {self.raw_state})"
        )

    @classmethod
    def from_payload(cls, payload: Any) -> "ProblemEvent":
        if not isinstance(payload, dict):
            raise InvalidProblemError("problem payload must be a JSON object")

        for key in _STRING_FIELDS:
            value = payload.get(key, "")
            if value is not None and not isinstance(value, str):
                raise InvalidProblemError(f"{key} must be a string")

        try:
            problem_id = ProblemId(payload.get("ProblemID") or "")
        except ValueError as e:
            raise InvalidProblemError(str(e)) from e

        category = payload.get("Pcat")
        if category is not None and not isinstance(category, (str, int)):
            raise InvalidProblemError("Pcat must be a string or number")

        return cls(
            problem_id=problem_id,
            raw_state=payload.get("State") or "",
            title=payload.get("ProblemTitle") or "",
            details_text=payload.get("ProblemDetailsText") or "",
            category=str(category) if category not in (None, "") else None,
        )

    def __str__(self) -> str:
        return (
            f"ProblemID: {self.problem_id}, State: {self.raw_state}, "
            f"Title: {self.title}, Details: {self.details_text}"
        )
