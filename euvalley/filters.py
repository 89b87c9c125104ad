from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from euvalley.countries import (
    DEFAULT_COUNTRY_CODE,
    EU_COUNTRIES,
    EUROPEAN_CONTINENT,
    INTERCONTINENTAL_EUROPE,
)
from euvalley.models import CompanyRecord
from euvalley.text_match import fuzzy_match, fuzzy_score


class ScopeMode(str, Enum):
    COUNTRY = "country"
    EUROPE = "europe"
    WORLD = "world"


class AreaClass(str, Enum):
    EU = "eu"
    EUROPEAN_CONTINENT = "european-continent"
    INTERCONTINENTAL = "intercontinental"
    ALL = "all"


AREA_COUNTRIES: dict[AreaClass, frozenset[str]] = {
    AreaClass.EU: EU_COUNTRIES,
    AreaClass.EUROPEAN_CONTINENT: EUROPEAN_CONTINENT,
    AreaClass.INTERCONTINENTAL: INTERCONTINENTAL_EUROPE,
}

SEARCH_FIELDS = ("name", "category", "city", "country", "description")


@dataclass(frozen=True, slots=True)
class ViewQuery:
    search: str = ""
    scope: ScopeMode = ScopeMode.EUROPE
    area: AreaClass = AreaClass.ALL
    country_code: str = DEFAULT_COUNTRY_CODE
    selected_id: str | None = None


@dataclass(slots=True)
class ViewResult:
    records: list[CompanyRecord]
    selected: CompanyRecord | None = None


def matches_search(record: CompanyRecord, search: str) -> bool:
    return any(fuzzy_match(getattr(record, name), search) for name in SEARCH_FIELDS)


def in_scope(record: CompanyRecord, query: ViewQuery) -> bool:
    if query.scope is ScopeMode.WORLD:
        return True
    if query.scope is ScopeMode.COUNTRY:
        return record.country_code == query.country_code.upper()
    if query.area is AreaClass.ALL:
        return True
    return record.country_code in AREA_COUNTRIES[query.area]


def filter_companies(records: Iterable[CompanyRecord], query: ViewQuery) -> list[CompanyRecord]:
    """Search then scope ``records``, keeping their original order."""
    search = query.search.strip()
    filtered = list(records)
    if search:
        filtered = [record for record in filtered if matches_search(record, search)]
    return [record for record in filtered if in_scope(record, query)]


def project_view(records: Sequence[CompanyRecord], query: ViewQuery) -> ViewResult:
    """Filtered records plus the selected one, while it is still shown."""
    filtered = filter_companies(records, query)
    selected = None
    if query.selected_id:
        selected = next((record for record in filtered if record.id == query.selected_id), None)
    return ViewResult(records=filtered, selected=selected)


def sort_for_display(records: Iterable[CompanyRecord]) -> list[CompanyRecord]:
    return sorted(records, key=lambda record: record.name.casefold())


def rank_by_relevance(records: Iterable[CompanyRecord], search: str) -> list[CompanyRecord]:
    """Best name matches first; ties keep their incoming order."""
    return sorted(records, key=lambda record: -fuzzy_score(record.name, search))
