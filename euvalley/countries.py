from __future__ import annotations

import re
from typing import Final

DEFAULT_COUNTRY_CODE: Final[str] = "NL"

_COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
_REGIONAL_INDICATOR_OFFSET = 127397

# code -> (display name, (lat, lng) map center)
COUNTRIES: Final[dict[str, tuple[str, tuple[float, float]]]] = {
    "AD": ("Andorra", (42.5063, 1.5218)),
    "AL": ("Albania", (41.1533, 20.1683)),
    "AM": ("Armenia", (40.0691, 45.0382)),
    "AT": ("Austria", (47.5162, 14.5501)),
    "AZ": ("Azerbaijan", (40.1431, 47.5769)),
    "BA": ("Bosnia and Herzegovina", (43.9159, 17.6791)),
    "BE": ("Belgium", (50.5039, 4.4699)),
    "BG": ("Bulgaria", (42.7339, 25.4858)),
    "BY": ("Belarus", (53.7098, 27.9534)),
    "CH": ("Switzerland", (46.8182, 8.2275)),
    "CY": ("Cyprus", (35.1264, 33.4299)),
    "CZ": ("Czech Republic", (49.8175, 15.4730)),
    "DE": ("Germany", (51.1657, 10.4515)),
    "DK": ("Denmark", (56.2639, 9.5018)),
    "EE": ("Estonia", (58.5953, 25.0136)),
    "ES": ("Spain", (40.4637, -3.7492)),
    "FI": ("Finland", (61.9241, 25.7482)),
    "FO": ("Faroe Islands", (61.8926, -6.9118)),
    "FR": ("France", (46.2276, 2.2137)),
    "GB": ("United Kingdom", (55.3781, -3.4360)),
    "GE": ("Georgia", (42.3154, 43.3569)),
    "GI": ("Gibraltar", (36.1408, -5.3536)),
    "GR": ("Greece", (39.0742, 21.8243)),
    "HR": ("Croatia", (45.1000, 15.2000)),
    "HU": ("Hungary", (47.1625, 19.5033)),
    "IE": ("Ireland", (53.4129, -8.2439)),
    "IS": ("Iceland", (64.9631, -19.0208)),
    "IT": ("Italy", (41.8719, 12.5674)),
    "KZ": ("Kazakhstan", (48.0196, 66.9237)),
    "LI": ("Liechtenstein", (47.1660, 9.5554)),
    "LT": ("Lithuania", (55.1694, 23.8813)),
    "LU": ("Luxembourg", (49.8153, 6.1296)),
    "LV": ("Latvia", (56.8796, 24.6032)),
    "MC": ("Monaco", (43.7384, 7.4246)),
    "MD": ("Moldova", (47.4116, 28.3699)),
    "ME": ("Montenegro", (42.7087, 19.3744)),
    "MK": ("North Macedonia", (41.6086, 21.7453)),
    "MT": ("Malta", (35.9375, 14.3754)),
    "NL": ("Netherlands", (52.3700, 4.9000)),
    "NO": ("Norway", (60.4720, 8.4689)),
    "PL": ("Poland", (51.9194, 19.1451)),
    "PT": ("Portugal", (39.3999, -8.2245)),
    "RO": ("Romania", (45.9432, 24.9668)),
    "RS": ("Serbia", (44.0165, 21.0059)),
    "RU": ("Russia", (61.5240, 105.3188)),
    "SE": ("Sweden", (60.1282, 18.6435)),
    "SI": ("Slovenia", (46.1512, 14.9955)),
    "SK": ("Slovakia", (48.6690, 19.6990)),
    "SM": ("San Marino", (43.9424, 12.4578)),
    "TR": ("Turkey", (38.9637, 35.2433)),
    "UA": ("Ukraine", (48.3794, 31.1656)),
    "VA": ("Vatican City", (41.9029, 12.4534)),
    "XK": ("Kosovo", (42.6026, 20.9030)),
    "US": ("United States", (37.0902, -95.7129)),
    "CA": ("Canada", (56.1304, -106.3468)),
    "IL": ("Israel", (31.0461, 34.8516)),
}

EU_COUNTRIES: Final[frozenset[str]] = frozenset(
    {
        "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU", "IE",
        "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
    }
)

EUROPEAN_CONTINENT: Final[frozenset[str]] = EU_COUNTRIES | frozenset(
    {
        "AD", "AL", "BA", "BY", "CH", "FO", "GB", "GI", "IS", "LI", "MC", "MD", "ME", "MK",
        "NO", "RS", "SM", "UA", "VA", "XK",
    }
)

# Countries spanning Europe and Asia.
INTERCONTINENTAL_EUROPE: Final[frozenset[str]] = frozenset({"AM", "AZ", "CY", "GE", "KZ", "RU", "TR"})

EUROPE_CENTER: Final[tuple[float, float]] = (50.0, 10.0)
WORLD_CENTER: Final[tuple[float, float]] = (30.0, 0.0)
SCOPE_ZOOM: Final[dict[str, int]] = {"country": 7, "europe": 4, "world": 2}


def normalize_country_code(value: str | None) -> tuple[str, bool]:
    """Return the upper-cased code and whether it is *invalid*."""
    if value is None:
        return "", True
    cleaned = value.strip().upper()
    return cleaned, not bool(_COUNTRY_CODE_PATTERN.match(cleaned))


def country_name(code: str) -> str:
    entry = COUNTRIES.get(code.upper())
    return entry[0] if entry else code


def country_center(code: str) -> tuple[float, float]:
    entry = COUNTRIES.get(code.upper())
    if entry is None:
        return COUNTRIES[DEFAULT_COUNTRY_CODE][1]
    return entry[1]


def view_center(scope: str, country_code: str = DEFAULT_COUNTRY_CODE) -> tuple[float, float]:
    if scope == "country":
        return country_center(country_code)
    if scope == "europe":
        return EUROPE_CENTER
    return WORLD_CENTER


def view_zoom(scope: str) -> int:
    return SCOPE_ZOOM.get(scope, SCOPE_ZOOM["world"])


def country_code_to_flag(code: str | None) -> str:
    """Render an alpha-2 code as its regional-indicator flag emoji."""
    if not code or len(code) != 2:
        return ""
    upper = code.upper()
    return chr(ord(upper[0]) + _REGIONAL_INDICATOR_OFFSET) + chr(ord(upper[1]) + _REGIONAL_INDICATOR_OFFSET)
