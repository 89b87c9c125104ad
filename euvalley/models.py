from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone

# Python attribute -> JSON key, for the attributes whose names differ.
_WIRE_NAMES: dict[str, str] = {
    "country_code": "countryCode",
    "logo_url": "logoUrl",
    "alternative_for": "alternativeFor",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "last_edit_details": "lastEditDetails",
}
_ATTRIBUTE_NAMES: dict[str, str] = {wire: attr for attr, wire in _WIRE_NAMES.items()}


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def wire_name(attribute: str) -> str:
    return _WIRE_NAMES.get(attribute, attribute)


def attribute_name(key: str) -> str:
    return _ATTRIBUTE_NAMES.get(key, key)


def _optional_float(value: object) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def _string_list(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("alternativeFor must be a list")
    return [str(item) for item in value]


@dataclass(slots=True)
class CompanyRecord:
    id: str
    name: str
    category: str
    country: str
    country_code: str
    city: str = ""
    street: str = ""
    state: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    description: str = ""
    website: str = ""
    logo_url: str = ""
    alternative_for: list[str] = field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None
    last_edit_details: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        return {wire_name(key): value for key, value in payload.items()}

    @classmethod
    def from_dict(cls, payload: object) -> CompanyRecord:
        if not isinstance(payload, dict):
            raise ValueError(f"Company entry must be an object, got {type(payload).__name__}")
        if not payload.get("id") or not payload.get("name"):
            raise ValueError("Company entry is missing 'id' or 'name'")

        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            category=str(payload.get("category") or ""),
            country=str(payload.get("country") or ""),
            country_code=str(payload.get("countryCode") or ""),
            city=str(payload.get("city") or ""),
            street=str(payload.get("street") or ""),
            state=str(payload.get("state") or ""),
            latitude=_optional_float(payload.get("latitude")),
            longitude=_optional_float(payload.get("longitude")),
            description=str(payload.get("description") or ""),
            website=str(payload.get("website") or ""),
            logo_url=str(payload.get("logoUrl") or ""),
            alternative_for=_string_list(payload.get("alternativeFor")),
            created_at=payload.get("createdAt"),
            updated_at=payload.get("updatedAt"),
            last_edit_details=payload.get("lastEditDetails"),
        )


@dataclass(slots=True)
class CompanyFields:
    """Field mask over the editable parts of a ``CompanyRecord``.

    ``None`` means "not supplied". Used as the input of both ``add`` (where
    the required fields must be present) and ``update`` (a partial patch).
    """

    name: str | None = None
    category: str | None = None
    country: str | None = None
    country_code: str | None = None
    city: str | None = None
    street: str | None = None
    state: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    description: str | None = None
    website: str | None = None
    logo_url: str | None = None
    alternative_for: list[str] | None = None

    def supplied(self) -> dict[str, object]:
        """Supplied fields keyed by attribute name, in record field order."""
        values: dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None:
                values[item.name] = list(value) if isinstance(value, list) else value
        return values

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> CompanyFields:
        """Build a mask from a JSON object using wire names.

        Unknown or immutable keys raise ``ValueError``.
        """
        allowed = {item.name for item in fields(cls)}
        values: dict[str, object] = {}
        for key, value in payload.items():
            attribute = attribute_name(key)
            if attribute not in allowed:
                raise ValueError(f"Field '{key}' cannot be set")
            if value is None:
                continue
            if attribute in {"latitude", "longitude"}:
                value = float(value)
            elif attribute == "alternative_for":
                value = _string_list(value)
            else:
                value = str(value)
            values[attribute] = value
        return cls(**values)


@dataclass(slots=True)
class Snapshot:
    records: list[CompanyRecord] = field(default_factory=list)
    hidden_ids: list[str] = field(default_factory=list)
    last_updated: str | None = None

    def is_empty(self) -> bool:
        return not self.records and self.last_updated is None

    def to_payload(self) -> dict[str, object]:
        return {
            "companies": [record.to_dict() for record in self.records],
            "hiddenIds": list(self.hidden_ids),
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_payload(cls, payload: object) -> Snapshot:
        if not isinstance(payload, dict):
            raise ValueError("Snapshot payload must be an object")
        companies = payload.get("companies")
        if companies is None:
            companies = []
        if not isinstance(companies, list):
            raise ValueError("Snapshot 'companies' must be a list")
        hidden = payload.get("hiddenIds") or []
        if not isinstance(hidden, list):
            raise ValueError("Snapshot 'hiddenIds' must be a list")

        last_updated = payload.get("lastUpdated")
        return cls(
            records=[CompanyRecord.from_dict(item) for item in companies],
            hidden_ids=[str(item) for item in hidden],
            last_updated=str(last_updated) if last_updated else None,
        )
