"""
Association Store Port

Architectural Intent:
- Durable mapping from problem id to the ticket opened for it
- The store owns the backing representation; callers only see records
"""

from typing import Optional, Protocol, runtime_checkable
from sdm_relay.domain.entities.association import AssociationRecord


@runtime_checkable
class AssociationStorePort(Protocol):
    def lookup(self, problem_id: str) -> Optional[AssociationRecord]: ...

    def upsert(self, record: AssociationRecord) -> None: ...

    def all(self) -> dict[str, AssociationRecord]: ...
