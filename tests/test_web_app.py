from pathlib import Path

from fastapi.testclient import TestClient
import pytest

from euvalley.blob_store import FileBlobStore
from euvalley.geocoder import GeocodeResult
from euvalley.models import CompanyFields
from euvalley.store import CompanyStore
from euvalley.web_app import create_app
from tests.conftest import FakeGateway

ADMIN = {"X-Admin-Password": "s3cret"}


class FakeGeocoder:
    def __init__(self, result: GeocodeResult | None) -> None:
        self.result = result
        self.last_status = "OK" if result else "ZERO_RESULTS"
        self.calls: list[tuple[str, str, str]] = []

    def geocode_address(self, street: str, city: str, country_code: str) -> GeocodeResult | None:
        self.calls.append((street, city, country_code))
        return self.result


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(GeocodeResult(lat=52.3731, lng=4.8926, display_name="Damrak 1, Amsterdam"))


@pytest.fixture
def client(store: CompanyStore, tmp_path: Path, geocoder: FakeGeocoder) -> TestClient:
    app = create_app(
        store=store,
        blob_store=FileBlobStore(tmp_path / "blobs"),
        admin_password="s3cret",
        geocoder=geocoder,
    )
    return TestClient(app)


def _names(response) -> list[str]:
    return [company["name"] for company in response.json()["companies"]]


def test_health_endpoint_reports_ok(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_home_page_lists_visible_companies(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "EU <span>Valley</span>" in response.text
    assert 'id="directory-map"' in response.text
    assert "3 European companies" in response.text
    assert "Mistral AI" in response.text
    assert 'id="company-detail"' not in response.text


def test_home_page_applies_area_and_selection(client: TestClient) -> None:
    response = client.get("/", params={"area": "eu", "company": "mistral"})

    assert response.status_code == 200
    assert "Acme Rockets" not in response.text
    assert 'id="company-detail"' in response.text
    assert 'class="selected"' in response.text


def test_home_page_reports_empty_result(client: TestClient) -> None:
    response = client.get("/", params={"q": "zzzzzz"})

    assert "No companies match your filters." in response.text


def test_directory_country_view_centers_on_country(client: TestClient) -> None:
    response = client.get("/api/directory", params={"view": "country", "country": "fr", "area": "intercontinental"})

    assert response.status_code == 200
    body = response.json()
    assert _names(response) == ["Mistral AI"]
    assert body["view"] == {"lat": 46.2276, "lng": 2.2137, "zoom": 7}
    assert body["companies"][0]["flag"] == "\U0001F1EB\U0001F1F7"


def test_directory_sorts_by_name_or_relevance(client: TestClient, store: CompanyStore) -> None:
    store.add(
        CompanyFields(
            name="A Mistral Fan Club",
            category="Other",
            country_code="FR",
            city="Lyon",
            latitude=45.76,
            longitude=4.83,
        )
    )

    by_name = client.get("/api/directory", params={"q": "mistral", "view": "world"})
    by_relevance = client.get("/api/directory", params={"q": "mistral", "view": "world", "sort": "relevance"})

    assert _names(by_name) == ["A Mistral Fan Club", "Mistral AI"]
    assert _names(by_relevance) == ["Mistral AI", "A Mistral Fan Club"]


def test_directory_excludes_hidden_companies(client: TestClient, store: CompanyStore) -> None:
    store.toggle_visibility("sap")

    response = client.get("/api/directory", params={"view": "world"})

    assert _names(response) == ["Acme Rockets", "Mistral AI"]


def test_directory_rejects_unknown_view(client: TestClient) -> None:
    assert client.get("/api/directory", params={"view": "galaxy"}).status_code == 422


def test_companies_blob_endpoint_round_trip(client: TestClient) -> None:
    empty = client.get("/api/companies")
    saved = client.post("/api/companies", json={"companies": [{"id": "a", "name": "A"}], "hiddenIds": ["a"]})
    loaded = client.get("/api/companies")

    assert empty.json() == {"companies": [], "hiddenIds": [], "lastUpdated": None}
    assert saved.status_code == 200
    assert saved.json()["success"] is True
    assert loaded.json()["companies"] == [{"id": "a", "name": "A"}]
    assert loaded.json()["hiddenIds"] == ["a"]
    assert loaded.json()["lastUpdated"] == saved.json()["lastUpdated"]


def test_companies_blob_endpoint_validates_arrays(client: TestClient) -> None:
    no_list = client.post("/api/companies", json={"companies": "nope"})
    bad_hidden = client.post("/api/companies", json={"companies": [], "hiddenIds": "a"})

    assert no_list.status_code == 400
    assert no_list.json() == {"error": "Companies must be an array"}
    assert bad_hidden.status_code == 400
    assert bad_hidden.json() == {"error": "hiddenIds must be an array"}


def test_companies_blob_endpoint_without_storage(store: CompanyStore) -> None:
    client = TestClient(create_app(store=store, blob_store=None, admin_password="s3cret"))

    response = client.get("/api/companies")

    assert response.status_code == 500
    assert response.json()["error"] == "Storage not configured"


def test_admin_login(client: TestClient) -> None:
    ok = client.post("/api/admin-login", json={"password": "s3cret"})
    wrong = client.post("/api/admin-login", json={"password": "guess"})

    assert ok.json() == {"success": True}
    assert wrong.status_code == 401
    assert wrong.json() == {"success": False, "message": "Incorrect password"}


def test_admin_login_fails_when_no_password_configured(store: CompanyStore) -> None:
    client = TestClient(create_app(store=store, blob_store=None, admin_password=""))

    assert client.post("/api/admin-login", json={"password": ""}).status_code == 401


def test_admin_routes_require_password_header(client: TestClient) -> None:
    assert client.get("/api/admin/companies").status_code == 401
    assert client.get("/api/admin/companies", headers={"X-Admin-Password": "nope"}).status_code == 401
    assert client.delete("/api/admin/companies/sap").status_code == 401


def test_admin_list_includes_hidden_companies(client: TestClient, store: CompanyStore) -> None:
    store.toggle_visibility("acme-us")
    store.flush()

    response = client.get("/api/admin/companies", headers=ADMIN)

    body = response.json()
    assert [(company["id"], company["visible"]) for company in body["companies"]] == [
        ("acme-us", False),
        ("mistral", True),
        ("sap", True),
    ]
    assert "Software" in body["categories"]
    assert body["lastUpdated"] == "2026-02-01T00:00:01.000Z"


def test_admin_add_company(client: TestClient, gateway: FakeGateway, store: CompanyStore) -> None:
    payload = {
        "name": "Picnic",
        "category": "e-commerce",
        "countryCode": "nl",
        "city": "Amsterdam",
        "latitude": 52.37,
        "longitude": 4.89,
        "website": "picnic.app",
        "alternativeFor": ["Instacart"],
    }

    response = client.post("/api/admin/companies", json=payload, headers=ADMIN)
    store.flush()

    assert response.status_code == 201
    body = response.json()
    assert body["category"] == "E-commerce"
    assert body["countryCode"] == "NL"
    assert body["country"] == "Netherlands"
    assert body["logoUrl"] == "https://logo.clearbit.com/picnic.app"
    assert body["alternativeFor"] == ["Instacart"]
    assert body["id"] in [record.id for record in gateway.snapshot.records]


def test_admin_add_company_rejects_duplicates_and_invalid_input(client: TestClient) -> None:
    duplicate = client.post(
        "/api/admin/companies",
        json={"name": "sap", "countryCode": "DE", "latitude": 49.3, "longitude": 8.6},
        headers=ADMIN,
    )
    no_coordinates = client.post("/api/admin/companies", json={"name": "Nowhere", "countryCode": "DE"}, headers=ADMIN)
    immutable = client.post(
        "/api/admin/companies",
        json={"id": "forced", "name": "Forced", "countryCode": "DE", "latitude": 1, "longitude": 1},
        headers=ADMIN,
    )

    assert duplicate.status_code == 409
    assert "already exists" in duplicate.json()["error"]
    assert no_coordinates.status_code == 400
    assert immutable.status_code == 400


def test_admin_update_company(client: TestClient) -> None:
    response = client.patch(
        "/api/admin/companies/sap",
        json={"description": "Enterprise software", "editDetails": "Added description"},
        headers=ADMIN,
    )

    assert response.status_code == 200
    assert response.json()["description"] == "Enterprise software"
    assert response.json()["lastEditDetails"] == "Added description"


def test_admin_update_unknown_or_invalid(client: TestClient) -> None:
    missing = client.patch("/api/admin/companies/missing", json={"name": "X"}, headers=ADMIN)
    invalid = client.patch("/api/admin/companies/sap", json={"countryCode": "Germany"}, headers=ADMIN)

    assert missing.status_code == 404
    assert invalid.status_code == 400


def test_admin_toggle_visibility_and_delete(client: TestClient, store: CompanyStore) -> None:
    hidden = client.post("/api/admin/companies/sap/visibility", headers=ADMIN)
    deleted = client.delete("/api/admin/companies/sap", headers=ADMIN)
    again = client.delete("/api/admin/companies/sap", headers=ADMIN)

    assert hidden.json() == {"id": "sap", "visible": False}
    assert deleted.json() == {"success": True}
    assert again.status_code == 404
    assert store.hidden_ids == frozenset()


def test_admin_sync(client: TestClient, gateway: FakeGateway) -> None:
    ok = client.post("/api/admin/sync", headers=ADMIN)
    gateway.fail_reads = True
    failed = client.post("/api/admin/sync", headers=ADMIN)

    assert ok.json()["success"] is True
    assert ok.json()["count"] == 3
    assert failed.status_code == 503


def test_admin_geocode(client: TestClient, geocoder: FakeGeocoder) -> None:
    found = client.post(
        "/api/admin/geocode",
        json={"street": "Damrak 1", "city": "Amsterdam", "countryCode": "NL"},
        headers=ADMIN,
    )
    geocoder.result = None
    geocoder.last_status = "ZERO_RESULTS"
    missing = client.post("/api/admin/geocode", json={"city": "Atlantis"}, headers=ADMIN)

    assert found.json() == {"latitude": 52.3731, "longitude": 4.8926, "displayName": "Damrak 1, Amsterdam"}
    assert geocoder.calls[0] == ("Damrak 1", "Amsterdam", "NL")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Location not found", "status": "ZERO_RESULTS"}
