import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from euvalley.blob_store import (
    SNAPSHOT_BLOB,
    FileBlobStore,
    read_snapshot_document,
    write_snapshot_document,
)
from euvalley.errors import PersistenceUnavailable
from euvalley.gateway import BlobSnapshotGateway, HttpSnapshotGateway
from euvalley.models import Snapshot
from tests.conftest import SAMPLE_RECORDS


def test_read_snapshot_document_is_empty_without_blob(tmp_path: Path) -> None:
    document = read_snapshot_document(FileBlobStore(tmp_path / "blobs"))

    assert document == {"companies": [], "hiddenIds": [], "lastUpdated": None}


def test_write_snapshot_document_stamps_and_overwrites(tmp_path: Path) -> None:
    blob_store = FileBlobStore(tmp_path)

    write_snapshot_document(blob_store, [{"id": "a", "name": "A"}])
    result = write_snapshot_document(blob_store, [{"id": "b", "name": "B"}], ["b"])

    assert result["success"] is True
    assert result["url"].startswith("file://")
    stored = json.loads((tmp_path / SNAPSHOT_BLOB).read_text(encoding="utf-8"))
    assert stored["companies"] == [{"id": "b", "name": "B"}]
    assert stored["hiddenIds"] == ["b"]
    assert stored["lastUpdated"] == result["lastUpdated"]
    assert blob_store.list() == [SNAPSHOT_BLOB]


def test_blob_store_rejects_paths_outside_root(tmp_path: Path) -> None:
    blob_store = FileBlobStore(tmp_path / "blobs")

    with pytest.raises(ValueError):
        blob_store.put_json("../escape.json", {})


def test_blob_gateway_round_trip_preserves_records(tmp_path: Path) -> None:
    gateway = BlobSnapshotGateway(FileBlobStore(tmp_path))
    snapshot = Snapshot(records=list(SAMPLE_RECORDS), hidden_ids=["mistral"])

    last_updated = gateway.write(snapshot)
    loaded = gateway.read()

    assert loaded.records == snapshot.records
    assert loaded.hidden_ids == ["mistral"]
    assert loaded.last_updated == last_updated


def test_blob_gateway_without_storage_is_unavailable() -> None:
    gateway = BlobSnapshotGateway(None)

    with pytest.raises(PersistenceUnavailable, match="Storage not configured"):
        gateway.read()
    with pytest.raises(PersistenceUnavailable):
        gateway.write(Snapshot())


def test_blob_gateway_wraps_corrupt_blob(tmp_path: Path) -> None:
    (tmp_path / SNAPSHOT_BLOB).write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(PersistenceUnavailable):
        BlobSnapshotGateway(FileBlobStore(tmp_path)).read()


def _session_returning(payload: object) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session = MagicMock()
    session.get.return_value = response
    session.post.return_value = response
    return session


def test_http_gateway_reads_snapshot() -> None:
    payload = Snapshot(records=list(SAMPLE_RECORDS), last_updated="2026-01-01T00:00:00.000Z").to_payload()
    session = _session_returning(payload)

    snapshot = HttpSnapshotGateway("https://example.test/api/companies", session=session).read()

    assert [record.id for record in snapshot.records] == ["sap", "mistral", "acme-us"]
    assert snapshot.last_updated == "2026-01-01T00:00:00.000Z"
    session.get.assert_called_once_with("https://example.test/api/companies", timeout=15)


def test_http_gateway_posts_companies_and_hidden_ids() -> None:
    session = _session_returning({"success": True, "lastUpdated": "2026-02-02T00:00:00.000Z"})
    gateway = HttpSnapshotGateway("https://example.test/api/companies", session=session, timeout_seconds=3)

    last_updated = gateway.write(Snapshot(records=[SAMPLE_RECORDS[0]], hidden_ids=["sap"]))

    assert last_updated == "2026-02-02T00:00:00.000Z"
    body = session.post.call_args.kwargs["json"]
    assert body["hiddenIds"] == ["sap"]
    assert body["companies"][0]["countryCode"] == "DE"
    assert session.post.call_args.kwargs["timeout"] == 3


def test_http_gateway_wraps_request_errors() -> None:
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("refused")
    session.post.side_effect = requests.Timeout("slow")
    gateway = HttpSnapshotGateway("https://example.test/api/companies", session=session)

    with pytest.raises(PersistenceUnavailable, match="refused"):
        gateway.read()
    with pytest.raises(PersistenceUnavailable, match="slow"):
        gateway.write(Snapshot())


def test_http_gateway_wraps_malformed_payload() -> None:
    session = _session_returning({"companies": "nope"})

    with pytest.raises(PersistenceUnavailable, match="Malformed"):
        HttpSnapshotGateway("https://example.test/api/companies", session=session).read()
