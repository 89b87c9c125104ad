"""Built-in directory used when neither remote storage nor the cache has data."""

from __future__ import annotations

from euvalley.models import CompanyRecord

DEFAULT_COMPANIES: tuple[dict[str, object], ...] = (
    {
        "id": "proton",
        "name": "Proton",
        "category": "Privacy",
        "country": "Switzerland",
        "countryCode": "CH",
        "city": "Geneva",
        "street": "Route de la Galaise 32",
        "latitude": 46.2102,
        "longitude": 6.1135,
        "description": "Encrypted email, calendar, drive and VPN.",
        "website": "https://proton.me",
        "logoUrl": "https://logo.clearbit.com/proton.me",
    },
    {
        "id": "spotify",
        "name": "Spotify",
        "category": "Media & Entertainment",
        "country": "Sweden",
        "countryCode": "SE",
        "city": "Stockholm",
        "street": "Regeringsgatan 19",
        "latitude": 59.3346,
        "longitude": 18.0707,
        "description": "Music and podcast streaming service.",
        "website": "https://www.spotify.com",
        "logoUrl": "https://logo.clearbit.com/spotify.com",
    },
    {
        "id": "adyen",
        "name": "Adyen",
        "category": "Fintech",
        "country": "Netherlands",
        "countryCode": "NL",
        "city": "Amsterdam",
        "street": "Simon Carmiggeltstraat 6-50",
        "latitude": 52.3667,
        "longitude": 4.8945,
        "description": "Payments platform for online and in-store commerce.",
        "website": "https://www.adyen.com",
        "logoUrl": "https://logo.clearbit.com/adyen.com",
    },
    {
        "id": "sap",
        "name": "SAP",
        "category": "Software",
        "country": "Germany",
        "countryCode": "DE",
        "city": "Walldorf",
        "street": "Dietmar-Hopp-Allee 16",
        "latitude": 49.2933,
        "longitude": 8.6429,
        "description": "Enterprise resource planning software.",
        "website": "https://www.sap.com",
        "logoUrl": "https://logo.clearbit.com/sap.com",
    },
    {
        "id": "mistral-ai",
        "name": "Mistral AI",
        "category": "Artificial Intelligence",
        "country": "France",
        "countryCode": "FR",
        "city": "Paris",
        "street": "15 Rue des Halles",
        "latitude": 48.8606,
        "longitude": 2.3470,
        "description": "Open-weight large language models.",
        "website": "https://mistral.ai",
        "logoUrl": "https://logo.clearbit.com/mistral.ai",
    },
    {
        "id": "ovhcloud",
        "name": "OVHcloud",
        "category": "Cloud & Hosting",
        "country": "France",
        "countryCode": "FR",
        "city": "Roubaix",
        "street": "2 Rue Kellermann",
        "latitude": 50.6920,
        "longitude": 3.2003,
        "description": "European cloud infrastructure provider.",
        "website": "https://www.ovhcloud.com",
        "logoUrl": "https://logo.clearbit.com/ovhcloud.com",
    },
    {
        "id": "hetzner",
        "name": "Hetzner",
        "category": "Cloud & Hosting",
        "country": "Germany",
        "countryCode": "DE",
        "city": "Gunzenhausen",
        "street": "Industriestr. 25",
        "latitude": 49.1152,
        "longitude": 10.7544,
        "description": "Dedicated servers and cloud hosting.",
        "website": "https://www.hetzner.com",
        "logoUrl": "https://logo.clearbit.com/hetzner.com",
    },
    {
        "id": "deepl",
        "name": "DeepL",
        "category": "Artificial Intelligence",
        "country": "Germany",
        "countryCode": "DE",
        "city": "Cologne",
        "street": "Maarweg 165",
        "latitude": 50.9413,
        "longitude": 6.9034,
        "description": "Neural machine translation.",
        "website": "https://www.deepl.com",
        "logoUrl": "https://logo.clearbit.com/deepl.com",
    },
    {
        "id": "nextcloud",
        "name": "Nextcloud",
        "category": "Productivity",
        "country": "Germany",
        "countryCode": "DE",
        "city": "Stuttgart",
        "street": "Hauptmannsreute 44A",
        "latitude": 48.7833,
        "longitude": 9.1667,
        "description": "Self-hosted file sync and collaboration.",
        "website": "https://nextcloud.com",
        "logoUrl": "https://logo.clearbit.com/nextcloud.com",
    },
    {
        "id": "bolt",
        "name": "Bolt",
        "category": "Mobility",
        "country": "Estonia",
        "countryCode": "EE",
        "city": "Tallinn",
        "street": "Vana-Lõuna 15",
        "latitude": 59.4270,
        "longitude": 24.7536,
        "description": "Ride-hailing, scooters and food delivery.",
        "website": "https://bolt.eu",
        "logoUrl": "https://logo.clearbit.com/bolt.eu",
    },
    {
        "id": "nord-security",
        "name": "Nord Security",
        "category": "Cybersecurity",
        "country": "Lithuania",
        "countryCode": "LT",
        "city": "Vilnius",
        "street": "Lvivo g. 25",
        "latitude": 54.6999,
        "longitude": 25.2744,
        "description": "VPN and password management.",
        "website": "https://nordsecurity.com",
        "logoUrl": "https://logo.clearbit.com/nordsecurity.com",
    },
    {
        "id": "trendyol",
        "name": "Trendyol",
        "category": "E-commerce",
        "country": "Turkey",
        "countryCode": "TR",
        "city": "Istanbul",
        "street": "Maslak Mahallesi",
        "latitude": 41.1086,
        "longitude": 29.0201,
        "description": "Online marketplace.",
        "website": "https://www.trendyol.com",
        "logoUrl": "https://logo.clearbit.com/trendyol.com",
    },
)


def default_records(timestamp: str) -> list[CompanyRecord]:
    """Fresh copies of the built-in companies stamped with ``timestamp``."""
    records = []
    for item in DEFAULT_COMPANIES:
        record = CompanyRecord.from_dict(item)
        record.created_at = timestamp
        record.updated_at = timestamp
        records.append(record)
    return records
