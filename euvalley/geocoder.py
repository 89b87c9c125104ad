from dataclasses import dataclass
import json
import time
from typing import Callable
from urllib.error import URLError
from urllib.parse import urlencode
import urllib.request

from euvalley.countries import country_name

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "euvalley-directory/0.1"


@dataclass(slots=True)
class GeocodeResult:
    lat: float
    lng: float
    display_name: str


class NominatimGeocoder:
    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        rate_limit_seconds: float = 0.0,
        timeout_seconds: float = 30.0,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.rate_limit_seconds = rate_limit_seconds
        self.timeout_seconds = timeout_seconds
        self.sleeper = sleeper
        self.last_status = ""
        self.last_error_message = ""

    def geocode_text(self, query: str) -> GeocodeResult | None:
        self.last_status = ""
        self.last_error_message = ""
        params = urlencode({"q": query, "format": "json", "limit": 1})
        payload = self._request_json(f"{NOMINATIM_SEARCH_URL}?{params}")
        if payload is None:
            return None
        return self._extract_result(payload)

    def geocode_address(self, street: str, city: str, country_code: str) -> GeocodeResult | None:
        """Look up a street address the way the admin form composes it."""
        country = country_name(country_code) if country_code else ""
        query = ", ".join(part.strip() for part in (street, city, country) if part and part.strip())
        if not query:
            self.last_status = "EMPTY_QUERY"
            return None
        return self.geocode_text(query)

    def _request_json(self, url: str) -> object | None:
        payload: object | None = None
        request = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        for attempt in range(self.max_retries):
            try:
                if self.rate_limit_seconds > 0:
                    self.sleeper(self.rate_limit_seconds)
                with urllib.request.urlopen(request, timeout=self.timeout_seconds) as response:
                    payload = json.loads(response.read().decode("utf-8"))
                break
            except URLError as error:
                self.last_status = "NETWORK_ERROR"
                self.last_error_message = str(error.reason or error)
                if attempt == (self.max_retries - 1):
                    return None
                self.sleeper(self.retry_delay_seconds)
            except TimeoutError as error:
                self.last_status = "TIMEOUT"
                self.last_error_message = str(error)
                if attempt == (self.max_retries - 1):
                    return None
                self.sleeper(self.retry_delay_seconds)
            except json.JSONDecodeError as error:
                self.last_status = "INVALID_JSON"
                self.last_error_message = str(error)
                if attempt == (self.max_retries - 1):
                    return None
                self.sleeper(self.retry_delay_seconds)
        return payload

    def _extract_result(self, payload: object) -> GeocodeResult | None:
        # Nominatim answers with a bare list; errors come back as an object.
        if isinstance(payload, dict):
            self.last_status = "ERROR"
            self.last_error_message = str(payload.get("error", "")).strip()
            return None
        if not payload:
            self.last_status = "ZERO_RESULTS"
            return None

        candidate = payload[0]
        try:
            lat = float(candidate["lat"])
            lng = float(candidate["lon"])
        except (KeyError, TypeError, ValueError):
            self.last_status = "MISSING_GEOMETRY"
            return None

        self.last_status = "OK"
        return GeocodeResult(lat=lat, lng=lng, display_name=str(candidate.get("display_name", "")))
