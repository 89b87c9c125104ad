from argparse import ArgumentParser
from pathlib import Path
import sys

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from euvalley.countries import DEFAULT_COUNTRY_CODE
from euvalley.env_utils import BASE_DIR, Settings, configure_logging, load_env_file
from euvalley.filters import AreaClass, ScopeMode, ViewQuery, filter_companies, rank_by_relevance, sort_for_display
from euvalley.geocoder import NominatimGeocoder
from euvalley.store import build_store


def list_companies(
    settings: Settings,
    query: ViewQuery,
    include_hidden: bool = False,
    sort: str = "name",
) -> list[str]:
    with build_store(settings) as store:
        records = store.records if include_hidden else store.visible_records
        filtered = filter_companies(records, query)
        if sort == "relevance" and query.search.strip():
            ordered = rank_by_relevance(filtered, query.search)
        else:
            ordered = sort_for_display(filtered)
        lines = []
        for record in ordered:
            marker = "" if store.is_visible(record.id) else " [hidden]"
            lines.append(f"{record.name} - {record.city}, {record.country} ({record.category}){marker}")
        return lines


def sync(settings: Settings) -> int | None:
    """Refresh the local cache from remote storage; None when unreachable."""
    with build_store(settings) as store:
        if not store.sync_now():
            return None
        return len(store)


def geocode(settings: Settings, street: str, city: str, country_code: str) -> tuple[float, float] | None:
    geocoder = NominatimGeocoder(user_agent=settings.geocoder_user_agent)
    result = geocoder.geocode_address(street, city, country_code)
    if result is None:
        return None
    return result.lat, result.lng


def main(argv: list[str] | None = None) -> int:
    parser = ArgumentParser(description="EU Valley company directory utility CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    listing = sub.add_parser("list", help="Print the companies matching a search and scope")
    listing.add_argument("--search", default="", help="Fuzzy search over name, category, city, country, description")
    listing.add_argument("--view", choices=[scope.value for scope in ScopeMode], default=ScopeMode.EUROPE.value)
    listing.add_argument("--area", choices=[area.value for area in AreaClass], default=AreaClass.ALL.value)
    listing.add_argument("--country", default=DEFAULT_COUNTRY_CODE, help="Country code used with --view country")
    listing.add_argument("--sort", choices=["name", "relevance"], default="name")
    listing.add_argument("--include-hidden", action="store_true", help="Also list hidden companies (admin view)")

    sub.add_parser("sync", help="Refresh the local cache from remote storage")

    lookup = sub.add_parser("geocode", help="Look up coordinates for an address")
    lookup.add_argument("--street", default="")
    lookup.add_argument("--city", default="")
    lookup.add_argument("--country", default="", help="ISO 3166 alpha-2 country code")

    args = parser.parse_args(argv)

    load_env_file(BASE_DIR)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if args.command == "list":
        query = ViewQuery(
            search=args.search,
            scope=ScopeMode(args.view),
            area=AreaClass(args.area),
            country_code=args.country.upper(),
        )
        lines = list_companies(settings, query, include_hidden=args.include_hidden, sort=args.sort)
        for line in lines:
            print(line)
        print(f"{len(lines)} companies")
        return 0
    if args.command == "sync":
        count = sync(settings)
        if count is None:
            print("Could not refresh from remote storage.")
            return 1
        print(f"Synced {count} companies.")
        return 0
    if args.command == "geocode":
        coordinates = geocode(settings, args.street, args.city, args.country)
        if coordinates is None:
            print("Location not found.")
            return 1
        print(f"{coordinates[0]:.5f}, {coordinates[1]:.5f}")
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
