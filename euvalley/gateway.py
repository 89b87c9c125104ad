"""Ways for the company store to reach the remote snapshot.

Both gateways read and overwrite the whole snapshot at once and raise
``PersistenceUnavailable`` for every kind of failure, so the store only
has one error to degrade on.
"""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from euvalley.blob_store import FileBlobStore, read_snapshot_document, write_snapshot_document
from euvalley.errors import PersistenceUnavailable
from euvalley.models import Snapshot

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds


class SnapshotGateway(Protocol):
    def read(self) -> Snapshot: ...

    def write(self, snapshot: Snapshot) -> str | None:
        """Overwrite the remote snapshot; return its new ``lastUpdated``."""
        ...


class HttpSnapshotGateway:
    """Talks to a deployed ``/api/companies`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        session: requests.Session | None = None,
        timeout_seconds: float = REQUEST_TIMEOUT,
    ) -> None:
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def read(self) -> Snapshot:
        try:
            response = self.session.get(self.endpoint, timeout=self.timeout_seconds)
            response.raise_for_status()
            return Snapshot.from_payload(response.json())
        except requests.RequestException as error:
            raise PersistenceUnavailable(f"Failed to fetch {self.endpoint}: {error}") from error
        except ValueError as error:
            raise PersistenceUnavailable(f"Malformed snapshot from {self.endpoint}: {error}") from error

    def write(self, snapshot: Snapshot) -> str | None:
        body = {
            "companies": [record.to_dict() for record in snapshot.records],
            "hiddenIds": list(snapshot.hidden_ids),
        }
        try:
            response = self.session.post(self.endpoint, json=body, timeout=self.timeout_seconds)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as error:
            raise PersistenceUnavailable(f"Failed to save to {self.endpoint}: {error}") from error
        except ValueError as error:
            raise PersistenceUnavailable(f"Malformed save response from {self.endpoint}: {error}") from error
        return payload.get("lastUpdated") if isinstance(payload, dict) else None


class BlobSnapshotGateway:
    """Reads and writes the snapshot blob in-process, without HTTP."""

    def __init__(self, blob_store: FileBlobStore | None) -> None:
        self.blob_store = blob_store

    def _require_store(self) -> FileBlobStore:
        if self.blob_store is None:
            raise PersistenceUnavailable("Storage not configured")
        return self.blob_store

    def read(self) -> Snapshot:
        blob_store = self._require_store()
        try:
            return Snapshot.from_payload(read_snapshot_document(blob_store))
        except (OSError, ValueError) as error:
            raise PersistenceUnavailable(f"Failed to read snapshot blob: {error}") from error

    def write(self, snapshot: Snapshot) -> str | None:
        blob_store = self._require_store()
        try:
            result = write_snapshot_document(
                blob_store,
                [record.to_dict() for record in snapshot.records],
                list(snapshot.hidden_ids),
            )
        except (OSError, ValueError) as error:
            raise PersistenceUnavailable(f"Failed to write snapshot blob: {error}") from error
        return str(result["lastUpdated"])
