"""Last-write-wins local copy of the directory snapshot.

The cache is one JSON file holding two keys, the record list and the list
of hidden ids, so a reader can pick either up without parsing the other.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from euvalley.models import CompanyRecord, Snapshot

logger = logging.getLogger(__name__)

COMPANIES_KEY = "eu-valley-companies"
HIDDEN_KEY = "eu-valley-hidden-companies"


class LocalCache:
    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Cache file {self.path} does not hold an object")
        return payload

    def load(self) -> Snapshot | None:
        """Return the cached snapshot, or None when nothing usable is cached."""
        try:
            payload = self._read()
        except (OSError, ValueError) as error:
            logger.warning(f"Ignoring unreadable cache {self.path}: {error}")
            return None

        stored = payload.get(COMPANIES_KEY)
        if stored is None:
            return None

        try:
            records = [CompanyRecord.from_dict(item) for item in stored]
        except (TypeError, ValueError) as error:
            logger.warning(f"Ignoring malformed cached companies in {self.path}: {error}")
            return None

        hidden = payload.get(HIDDEN_KEY) or []
        return Snapshot(records=records, hidden_ids=[str(item) for item in hidden])

    def save(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            COMPANIES_KEY: [record.to_dict() for record in snapshot.records],
            HIDDEN_KEY: list(snapshot.hidden_ids),
        }
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
