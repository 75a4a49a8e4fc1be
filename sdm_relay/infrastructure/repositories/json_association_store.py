"""
JSON Association Store

Architectural Intent:
- Persistent problem -> ticket mapping kept in a single JSON document
- Stores one record per problem id under the "problems" key
- Provides a clean repository interface for the lifecycle use cases

Design Decisions:
- Every upsert is a full read-modify-write of the document under a
  process-wide lock, so concurrent writers cannot clobber each other
- New snapshots go to a temp file in the same directory and are renamed
  over the target, so a crash never leaves a half-written document
- A missing or corrupt document reads as an empty store; corrupt content
  is replaced by the next successful write
- open() creates the document up front and lets OSError propagate: the
  relay cannot work without a writable store
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from sdm_relay.domain.entities.association import AssociationRecord

logger = logging.getLogger(__name__)


class JsonAssociationStore:
    """Association store backed by a JSON file."""

    def __init__(self, path: str = "problems.json"):
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def open(cls, path: str) -> "JsonAssociationStore":
        """Create the store, writing an empty document if none exists."""
        store = cls(path)
        store._path.parent.mkdir(parents=True, exist_ok=True)
        if not store._path.exists():
            store._write({})
            logger.info("Created association store: %s", store._path)
        else:
            logger.info("Using association store: %s", store._path)
        return store

    # -- reads ---------------------------------------------------------------

    def _read(self) -> dict[str, dict[str, Any]]:
        try:
            with open(self._path, encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(
                "Could not read association store %s, treating it as empty: %s",
                self._path,
                e,
            )
            return {}

        problems = document.get("problems") if isinstance(document, dict) else None
        if not isinstance(problems, dict):
            logger.warning(
                "Association store %s has no problems map, treating it as empty",
                self._path,
            )
            return {}
        return problems

    def _decode(self, problem_id: str, data: Any) -> Optional[AssociationRecord]:
        if not isinstance(data, dict):
            logger.warning("Skipping malformed entry for problem %s", problem_id)
            return None
        try:
            return AssociationRecord.from_dict(problem_id, data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed entry for problem %s: %s", problem_id, e)
            return None

    def lookup(self, problem_id: str) -> Optional[AssociationRecord]:
        with self._lock:
            problems = self._read()
        if problem_id not in problems:
            return None
        return self._decode(problem_id, problems[problem_id])

    def all(self) -> dict[str, AssociationRecord]:
        with self._lock:
            problems = self._read()
        records = {}
        for problem_id, data in problems.items():
            record = self._decode(problem_id, data)
            if record is not None:
                records[problem_id] = record
        return records

    # -- writes --------------------------------------------------------------

    def upsert(self, record: AssociationRecord) -> None:
        with self._lock:
            problems = self._read()
            problems[record.problem_id] = record.to_dict()
            self._write(problems)
        logger.debug(
            "Stored ticket %s for problem %s", record.ticket.number, record.problem_id
        )

    def _write(self, problems: dict[str, Any]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"problems": problems}, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
