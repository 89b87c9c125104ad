"""The company store: sole owner of the directory records and hidden set.

Every mutation is applied in memory, written to the local cache right
away, and then mirrored to the remote snapshot on a background writer
that the caller never waits for. Remote failures are logged and reported
through ``on_sync`` but never undo a local change.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
import logging
import re
from threading import RLock
from typing import Callable, Iterable
from urllib.parse import urlparse
import uuid

from euvalley.blob_store import FileBlobStore
from euvalley.category_utils import CATEGORIES, DEFAULT_CATEGORY, is_known_category, normalize_category
from euvalley.countries import country_name, normalize_country_code
from euvalley.env_utils import Settings
from euvalley.errors import DuplicateNameError, PersistenceUnavailable, StoreNotReadyError, ValidationError
from euvalley.gateway import BlobSnapshotGateway, HttpSnapshotGateway, SnapshotGateway
from euvalley.local_cache import LocalCache
from euvalley.models import (
    CompanyFields,
    CompanyRecord,
    Snapshot,
    format_timestamp,
    parse_timestamp,
    wire_name,
)
from euvalley.seed import default_records

logger = logging.getLogger(__name__)


class StoreState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    DISPOSED = "disposed"


@dataclass(slots=True)
class SyncEvent:
    action: str  # "fetch" or "write"
    ok: bool
    last_updated: str | None = None
    error: str | None = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", name.lower())


def _normalize_website(website: str) -> str:
    cleaned = website.strip()
    if not cleaned or cleaned.startswith("http"):
        return cleaned
    return f"https://{cleaned}"


def _logo_from_website(website: str) -> str:
    host = urlparse(website).hostname or ""
    if not host:
        return ""
    return f"https://logo.clearbit.com/{host.removeprefix('www.')}"


def _copy(record: CompanyRecord) -> CompanyRecord:
    return replace(record, alternative_for=list(record.alternative_for))


class CompanyStore:
    """Owns the records and hidden set; safe to call from several threads.

    Mutations and the snapshot they persist are taken under one lock, so
    checks such as the duplicate-name test and the append that follows
    cannot interleave with another caller.
    """

    def __init__(
        self,
        gateway: SnapshotGateway,
        cache: LocalCache,
        clock: Callable[[], datetime] = _utc_now,
        on_sync: Callable[[SyncEvent], None] | None = None,
        seed: Callable[[str], list[CompanyRecord]] = default_records,
    ) -> None:
        self._gateway = gateway
        self._cache = cache
        self._clock = clock
        self._on_sync = on_sync
        self._seed = seed
        self._state = StoreState.UNINITIALIZED
        self._records: list[CompanyRecord] = []
        # dict keys double as an insertion-ordered set
        self._hidden: dict[str, None] = {}
        self._last_updated: str | None = None
        self._lock = RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="snapshot-writer")
        self._pending: list[Future] = []

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def last_updated(self) -> str | None:
        with self._lock:
            return self._last_updated

    def init(self) -> CompanyStore:
        """Load the directory once; later calls return immediately."""
        with self._lock:
            if self._state is StoreState.READY:
                return self
            if self._state is not StoreState.UNINITIALIZED:
                raise StoreNotReadyError(self._state.value)

            self._state = StoreState.LOADING
            self._apply(self._load_initial())
            self._state = StoreState.READY
            logger.info(f"Company store ready with {len(self._records)} companies ({len(self._hidden)} hidden)")
            return self

    def dispose(self) -> None:
        if self._state is StoreState.DISPOSED:
            return
        self.flush()
        self._executor.shutdown(wait=True)
        self._state = StoreState.DISPOSED

    def __enter__(self) -> CompanyStore:
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def flush(self, timeout: float | None = None) -> None:
        """Block until queued remote writes have finished."""
        # The writer thread takes the lock, so never wait while holding it.
        with self._lock:
            pending = [future for future in self._pending if not future.done()]
        if pending:
            wait(pending, timeout=timeout)
        with self._lock:
            self._pending = [future for future in self._pending if not future.done()]

    def _require_ready(self) -> None:
        if self._state is not StoreState.READY:
            raise StoreNotReadyError(self._state.value)

    def _load_initial(self) -> Snapshot:
        remote: Snapshot | None = None
        remote_reachable = True
        try:
            remote = self._gateway.read()
        except PersistenceUnavailable as error:
            remote_reachable = False
            logger.warning(f"Remote snapshot unavailable, falling back to local cache: {error}")
            self._emit(SyncEvent(action="fetch", ok=False, error=str(error)))

        if remote is not None and not remote.is_empty():
            logger.info(f"Loaded {len(remote.records)} companies from remote storage")
            self._emit(SyncEvent(action="fetch", ok=True, last_updated=remote.last_updated))
            self._save_cache(remote)
            return remote

        cached = self._cache.load()
        if cached is not None:
            logger.info(f"Loaded {len(cached.records)} companies from local cache")
            if remote_reachable:
                self._schedule_write(cached)
            return cached

        timestamp = format_timestamp(self._clock())
        seeded = Snapshot(records=self._seed(timestamp))
        logger.info(f"No stored directory found, seeding {len(seeded.records)} default companies")
        self._save_cache(seeded)
        self._schedule_write(seeded)
        return seeded

    def _apply(self, snapshot: Snapshot) -> None:
        self._records = [_copy(record) for record in snapshot.records]
        self._hidden = dict.fromkeys(snapshot.hidden_ids)
        if snapshot.last_updated:
            self._last_updated = snapshot.last_updated

    @property
    def records(self) -> list[CompanyRecord]:
        """Every record, hidden ones included."""
        with self._lock:
            return [_copy(record) for record in self._records]

    @property
    def visible_records(self) -> list[CompanyRecord]:
        with self._lock:
            return [_copy(record) for record in self._records if record.id not in self._hidden]

    @property
    def hidden_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._hidden)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> CompanyRecord | None:
        with self._lock:
            index = self._index_of(record_id)
            return None if index is None else _copy(self._records[index])

    def is_visible(self, record_id: str) -> bool:
        self._require_ready()
        return record_id not in self._hidden

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                records=[_copy(record) for record in self._records],
                hidden_ids=list(self._hidden),
                last_updated=self._last_updated,
            )

    def add(self, fields: CompanyFields) -> CompanyRecord:
        with self._lock:
            self._require_ready()

            name = (fields.name or "").strip()
            if not name:
                raise ValidationError("Company name is required")
            folded = name.casefold()
            if any(record.name.strip().casefold() == folded for record in self._records):
                raise DuplicateNameError(name)

            country_code, _ = normalize_country_code(fields.country_code)
            website = _normalize_website(fields.website or "")
            logo_url = (fields.logo_url or "").strip() or (_logo_from_website(website) if website else "")
            now = self._clock()
            timestamp = format_timestamp(now)

            record = CompanyRecord(
                id=self._new_id(name, now),
                name=name,
                category=normalize_category(fields.category) or DEFAULT_CATEGORY,
                country=(fields.country or "").strip() or country_name(country_code),
                country_code=country_code,
                city=(fields.city or "").strip(),
                street=(fields.street or "").strip(),
                state=(fields.state or "").strip(),
                latitude=fields.latitude or 0.0,
                longitude=fields.longitude or 0.0,
                description=fields.description or "",
                website=website,
                logo_url=logo_url,
                alternative_for=list(fields.alternative_for or []),
                created_at=timestamp,
                updated_at=timestamp,
            )
            self._validate(record)

            self._records.append(record)
            logger.info(f"Added company {record.name} ({record.id})")
            self._persist()
            return _copy(record)

    def update(self, record_id: str, changes: CompanyFields, edit_details: str | None = None) -> None:
        """Merge ``changes`` into a record. Unknown ids are ignored.

        Only the supplied fields are validated, so a stored record that
        fails the current rules can still have its other fields edited.
        """
        with self._lock:
            self._require_ready()
            index = self._index_of(record_id)
            if index is None:
                logger.debug(f"Ignoring update for unknown company {record_id}")
                return

            current = self._records[index]
            supplied = changes.supplied()
            if "name" in supplied:
                supplied["name"] = str(supplied["name"]).strip()
            if "category" in supplied:
                supplied["category"] = normalize_category(str(supplied["category"]))
            if "country_code" in supplied:
                supplied["country_code"], _ = normalize_country_code(str(supplied["country_code"]))

            changed = [key for key, value in supplied.items() if getattr(current, key) != value]
            updated = replace(current, **supplied)
            self._validate(updated, only=supplied.keys())

            if edit_details:
                updated.last_edit_details = edit_details
            elif changed:
                updated.last_edit_details = "Updated: " + ", ".join(wire_name(key) for key in changed)
            updated.updated_at = self._update_time(current)

            self._records[index] = updated
            logger.info(f"Updated company {updated.name} ({record_id}): {updated.last_edit_details}")
            self._persist()

    def remove(self, record_id: str) -> None:
        with self._lock:
            self._require_ready()
            index = self._index_of(record_id)
            if index is None:
                logger.debug(f"Ignoring removal of unknown company {record_id}")
                return

            removed = self._records.pop(index)
            self._hidden.pop(record_id, None)
            logger.info(f"Removed company {removed.name} ({record_id})")
            self._persist()

    def toggle_visibility(self, record_id: str) -> None:
        with self._lock:
            self._require_ready()
            if self._index_of(record_id) is None:
                logger.debug(f"Ignoring visibility toggle for unknown company {record_id}")
                return

            if record_id in self._hidden:
                del self._hidden[record_id]
            else:
                self._hidden[record_id] = None
            self._persist()

    def sync_now(self) -> bool:
        """Replace local state with the remote snapshot.

        Returns False when the remote snapshot could not be fetched, in
        which case nothing changes.
        """
        self._require_ready()
        self.flush()
        with self._lock:
            try:
                snapshot = self._gateway.read()
            except PersistenceUnavailable as error:
                logger.warning(f"Could not refresh from remote storage: {error}")
                self._emit(SyncEvent(action="fetch", ok=False, error=str(error)))
                return False

            self._apply(snapshot)
            self._save_cache(snapshot)
            logger.info(f"Refreshed {len(self._records)} companies from remote storage")
        self._emit(SyncEvent(action="fetch", ok=True, last_updated=snapshot.last_updated))
        return True

    def _index_of(self, record_id: str) -> int | None:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def _new_id(self, name: str, now: datetime) -> str:
        candidate = f"{_slugify(name)}-{int(now.timestamp() * 1000)}"
        existing = {record.id for record in self._records}
        while candidate in existing:
            candidate = f"{candidate}-{uuid.uuid4().hex[:6]}"
        return candidate

    def _update_time(self, record: CompanyRecord) -> str:
        now = self._clock()
        created = parse_timestamp(record.created_at)
        if created is not None and now < created:
            now = created
        return format_timestamp(now)

    @staticmethod
    def _validate(record: CompanyRecord, only: Iterable[str] | None = None) -> None:
        """Reject ``record``; with ``only``, check just those fields."""
        fields = None if only is None else set(only)

        if (fields is None or "name" in fields) and not record.name.strip():
            raise ValidationError("Company name is required")
        if fields is None or "country_code" in fields:
            _, invalid_code = normalize_country_code(record.country_code)
            if invalid_code:
                raise ValidationError(f"Country code must be two letters, got '{record.country_code}'")
        if (fields is None or "category" in fields) and not is_known_category(record.category):
            raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")
        if fields is None or fields & {"latitude", "longitude"}:
            if not record.latitude or not record.longitude:
                raise ValidationError("Coordinates required: geocode the address first")

    def _persist(self) -> None:
        snapshot = self.snapshot()
        self._save_cache(snapshot)
        self._schedule_write(snapshot)

    def _save_cache(self, snapshot: Snapshot) -> None:
        try:
            self._cache.save(snapshot)
        except OSError as error:
            logger.error(f"Failed to save companies to local cache: {error}")

    def _schedule_write(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._pending = [future for future in self._pending if not future.done()]
            self._pending.append(self._executor.submit(self._write_remote, snapshot))

    def _write_remote(self, snapshot: Snapshot) -> None:
        try:
            last_updated = self._gateway.write(snapshot)
        except PersistenceUnavailable as error:
            logger.error(f"Failed to save {len(snapshot.records)} companies to remote storage: {error}")
            self._emit(SyncEvent(action="write", ok=False, error=str(error)))
            return
        except Exception as error:
            logger.exception(f"Unexpected error saving {len(snapshot.records)} companies to remote storage")
            self._emit(SyncEvent(action="write", ok=False, error=str(error)))
            return
        if last_updated:
            with self._lock:
                self._last_updated = last_updated
        self._emit(SyncEvent(action="write", ok=True, last_updated=last_updated))

    def _emit(self, event: SyncEvent) -> None:
        if self._on_sync is None:
            return
        try:
            self._on_sync(event)
        except Exception:
            logger.exception(f"on_sync callback failed for {event.action} event")


def build_store(settings: Settings, blob_store: FileBlobStore | None = None) -> CompanyStore:
    """Wire a store to the remote API when one is configured, else to the blob directory."""
    gateway: SnapshotGateway
    if settings.api_url:
        gateway = HttpSnapshotGateway(settings.api_url)
    else:
        if blob_store is None and settings.blob_dir:
            blob_store = FileBlobStore(settings.blob_dir)
        gateway = BlobSnapshotGateway(blob_store)
    return CompanyStore(gateway=gateway, cache=LocalCache(settings.cache_file))
