from __future__ import annotations

DEFAULT_CATEGORY = "Technology"

CATEGORIES: tuple[str, ...] = (
    "Technology",
    "Software",
    "Fintech",
    "E-commerce",
    "Artificial Intelligence",
    "Cybersecurity",
    "Hardware",
    "Semiconductors",
    "Telecommunications",
    "Cloud & Hosting",
    "Mobility",
    "Energy",
    "Healthtech",
    "Biotech",
    "Media & Entertainment",
    "Productivity",
    "Privacy",
    "Other",
)

_CATEGORY_ALIASES = {
    "ai": "Artificial Intelligence",
    "ecommerce": "E-commerce",
    "e commerce": "E-commerce",
    "security": "Cybersecurity",
    "cloud": "Cloud & Hosting",
    "hosting": "Cloud & Hosting",
    "media": "Media & Entertainment",
    "telecom": "Telecommunications",
}

_CANONICAL = {category.casefold(): category for category in CATEGORIES}


def normalize_category(category: str | None) -> str:
    """Map a category label onto its canonical spelling.

    Unknown labels are returned trimmed but otherwise untouched so callers
    can reject them with ``is_known_category``.
    """
    if category is None:
        return ""
    cleaned = " ".join(category.split())
    lowered = cleaned.casefold()
    if lowered in _CANONICAL:
        return _CANONICAL[lowered]
    if lowered in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[lowered]
    return cleaned


def is_known_category(category: str | None) -> bool:
    return normalize_category(category) in CATEGORIES
