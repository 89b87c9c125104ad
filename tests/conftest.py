"""Shared fixtures for store, filter and web tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from euvalley.errors import PersistenceUnavailable
from euvalley.local_cache import LocalCache
from euvalley.models import CompanyFields, CompanyRecord, Snapshot
from euvalley.store import CompanyStore


class FakeGateway:
    """In-memory stand-in for the remote snapshot endpoint."""

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        self.snapshot = snapshot or Snapshot()
        self.fail_reads = False
        self.fail_writes = False
        self.reads = 0
        self.writes: list[Snapshot] = []
        self._saves = 0

    def read(self) -> Snapshot:
        self.reads += 1
        if self.fail_reads:
            raise PersistenceUnavailable("gateway offline")
        return Snapshot.from_payload(self.snapshot.to_payload())

    def write(self, snapshot: Snapshot) -> str | None:
        if self.fail_writes:
            raise PersistenceUnavailable("gateway offline")
        self._saves += 1
        last_updated = f"2026-02-01T00:00:{self._saves:02d}.000Z"
        self.writes.append(snapshot)
        self.snapshot = Snapshot(
            records=list(snapshot.records),
            hidden_ids=list(snapshot.hidden_ids),
            last_updated=last_updated,
        )
        return last_updated


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_record(
    record_id: str,
    name: str,
    country_code: str,
    city: str = "Somewhere",
    category: str = "Software",
    description: str = "",
) -> CompanyRecord:
    return CompanyRecord(
        id=record_id,
        name=name,
        category=category,
        country=country_code,
        country_code=country_code,
        city=city,
        latitude=50.0,
        longitude=10.0,
        description=description,
        created_at="2026-01-01T00:00:00.000Z",
        updated_at="2026-01-01T00:00:00.000Z",
    )


def valid_fields(name: str = "Acme", **overrides: object) -> CompanyFields:
    values: dict[str, object] = {
        "name": name,
        "category": "Software",
        "country_code": "NL",
        "city": "Amsterdam",
        "street": "Damrak 1",
        "latitude": 52.3731,
        "longitude": 4.8926,
        "website": "acme.example",
    }
    values.update(overrides)
    return CompanyFields(**values)


SAMPLE_RECORDS = [
    make_record("sap", "SAP", "DE", city="Walldorf", category="Software"),
    make_record("mistral", "Mistral AI", "FR", city="Paris", category="Artificial Intelligence"),
    make_record("acme-us", "Acme Rockets", "US", city="Denver", category="Hardware"),
]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    return LocalCache(tmp_path / "cache" / "local_cache.json")


@pytest.fixture
def store(gateway: FakeGateway, cache: LocalCache, clock: FakeClock):
    gateway.snapshot = Snapshot(
        records=[make_record(record.id, record.name, record.country_code, record.city, record.category) for record in SAMPLE_RECORDS],
        last_updated="2026-01-01T00:00:00.000Z",
    )
    company_store = CompanyStore(gateway=gateway, cache=cache, clock=clock).init()
    yield company_store
    company_store.dispose()
