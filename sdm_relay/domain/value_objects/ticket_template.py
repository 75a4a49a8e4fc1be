"""
Ticket Template Value Object

Architectural Intent:
- Holds the fixed Service Desk routing constants (group, type, urgency, impact)
- Produces the ordered attribute pairs sent with createRequest and updateObject
- Keeps backend-specific codes out of the use cases

Design Decisions:
- Attribute order is part of the backend contract, so builders return
  tuples of (name, value) pairs rather than dicts
- Category codes are normalized to the "pcat:<code>" persistent id form
"""

from dataclasses import dataclass
from typing import Optional

Attribute = tuple[str, str]

CATEGORY_PREFIX = "pcat:"
RESOLVED_STATUS = "RE"


@dataclass(frozen=True)
class TicketTemplate:
    operator_userid: str = "testedeconformidade"
    default_category: str = "400373"
    group: str = "5FA1B7BE4CFA2E4C9B19E115AE49A642"
    type: str = "crt:182"
    urgency: str = "2"
    impact: str = "4"
    root_cause: str = ""
    title_prefix: str = "Dynatrace"

    def __post_init__(self) -> None:
        if not self.operator_userid:
            raise ValueError("operator_userid cannot be empty")
        if not self.default_category:
            raise ValueError("default_category cannot be empty")

    def category(self, code: Optional[str] = None) -> str:
        code = (code or "").strip() or self.default_category
        if code.startswith(CATEGORY_PREFIX):
            return code
        return f"{CATEGORY_PREFIX}{code}"

    def create_attributes(
        self,
        customer_handle: str,
        description: str,
        summary: str,
        category: Optional[str] = None,
    ) -> tuple[Attribute, ...]:
        return (
            ("customer", customer_handle),
            ("category", self.category(category)),
            ("description", description),
            ("summary", summary),
            ("urgency", self.urgency),
            ("impact", self.impact),
            ("group", self.group),
            ("type", self.type),
        )

    def close_attributes(self) -> tuple[Attribute, ...]:
        # rootcause is only sent once a code has been configured
        if not self.root_cause:
            return (("status", RESOLVED_STATUS),)
        return (
            ("status", RESOLVED_STATUS),
            ("rootcause", self.root_cause),
        )
