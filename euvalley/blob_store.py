"""File-system blob storage backing the ``/api/companies`` handlers."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path

from euvalley.models import format_timestamp

logger = logging.getLogger(__name__)

SNAPSHOT_BLOB = "companies.json"


def utc_now_iso() -> str:
    return format_timestamp(datetime.now(timezone.utc))


class FileBlobStore:
    """Stores JSON documents as files named after their blob pathname."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, pathname: str) -> Path:
        target = (self.root / pathname).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Blob pathname escapes storage root: {pathname}")
        return target

    def list(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(path.name for path in self.root.iterdir() if path.is_file())

    def get_json(self, pathname: str) -> object | None:
        path = self._path(pathname)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def put_json(self, pathname: str, document: object) -> str:
        """Overwrite ``pathname`` with ``document`` and return its URL."""
        path = self._path(pathname)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, path)
        return path.as_uri()


def empty_snapshot_document() -> dict[str, object]:
    return {"companies": [], "hiddenIds": [], "lastUpdated": None}


def read_snapshot_document(blob_store: FileBlobStore) -> dict[str, object]:
    if SNAPSHOT_BLOB not in blob_store.list():
        logger.info(f"No {SNAPSHOT_BLOB} blob found, returning empty data")
        return empty_snapshot_document()

    document = blob_store.get_json(SNAPSHOT_BLOB)
    if not isinstance(document, dict):
        raise ValueError(f"{SNAPSHOT_BLOB} does not hold a JSON object")
    companies = document.get("companies") or []
    logger.info(f"Fetched {len(companies)} companies from blob storage")
    return document


def write_snapshot_document(
    blob_store: FileBlobStore,
    companies: list[object],
    hidden_ids: list[object] | None = None,
) -> dict[str, object]:
    """Store a full snapshot, stamping it with the write time."""
    document = {
        "companies": companies,
        "hiddenIds": hidden_ids or [],
        "lastUpdated": utc_now_iso(),
    }
    logger.info(f"Saving {len(companies)} companies to blob storage...")
    url = blob_store.put_json(SNAPSHOT_BLOB, document)
    logger.info(f"Successfully saved to blob storage: {url}")
    return {"success": True, "lastUpdated": document["lastUpdated"], "url": url}
