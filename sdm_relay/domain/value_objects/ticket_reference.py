from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TicketReference:
    """
    Value Object identifying a Service Desk request.

    The handle is what the backend needs to mutate the request later,
    the number is what humans see.
    """
    handle: str
    number: str

    def __post_init__(self):
        if not self.handle:
            raise ValueError("Ticket handle cannot be empty")
        if not self.number:
            raise ValueError("Ticket number cannot be empty")

    def to_dict(self) -> dict[str, str]:
        return {
            "newRequestHandle": self.handle,
            "newRequestNumber": self.number,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TicketReference":
        return cls(
            handle=str(data.get("newRequestHandle", "")),
            number=str(data.get("newRequestNumber", "")),
        )

    def __str__(self):
        return self.number
