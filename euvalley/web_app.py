from __future__ import annotations

import hmac
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from euvalley.blob_store import FileBlobStore, read_snapshot_document, write_snapshot_document
from euvalley.category_utils import CATEGORIES
from euvalley.countries import COUNTRIES, DEFAULT_COUNTRY_CODE, country_code_to_flag, view_center, view_zoom
from euvalley.env_utils import BASE_DIR, Settings, configure_logging, load_env_file
from euvalley.errors import DuplicateNameError, ValidationError
from euvalley.filters import (
    AreaClass,
    ScopeMode,
    ViewQuery,
    ViewResult,
    project_view,
    rank_by_relevance,
    sort_for_display,
)
from euvalley.geocoder import NominatimGeocoder
from euvalley.models import CompanyFields, CompanyRecord
from euvalley.store import CompanyStore, build_store

logger = logging.getLogger(__name__)

TEMPLATES = Jinja2Templates(directory=str(BASE_DIR / "templates"))

AREA_LABELS = {
    AreaClass.ALL: "All of Europe",
    AreaClass.EU: "European Union",
    AreaClass.EUROPEAN_CONTINENT: "European continent",
    AreaClass.INTERCONTINENTAL: "Intercontinental",
}


def create_app(
    store: CompanyStore,
    blob_store: FileBlobStore | None,
    admin_password: str,
    geocoder: NominatimGeocoder | None = None,
) -> FastAPI:
    app = FastAPI(title="EU Valley Directory")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Password"],
    )
    app.state.store = store
    app.state.blob_store = blob_store
    app.state.admin_password = admin_password
    app.state.geocoder = geocoder or NominatimGeocoder()
    init_lock = Lock()

    def ready_store() -> CompanyStore:
        with init_lock:
            return app.state.store.init()

    def require_admin(x_admin_password: str | None = Header(default=None)) -> None:
        expected = app.state.admin_password
        if not expected or not x_admin_password or not _same_secret(x_admin_password, expected):
            raise HTTPException(status_code=401, detail="Incorrect password")

    def view_query(
        q: str = "",
        view: ScopeMode = ScopeMode.EUROPE,
        area: AreaClass = AreaClass.ALL,
        country: str = DEFAULT_COUNTRY_CODE,
        company: str | None = None,
    ) -> ViewQuery:
        return ViewQuery(search=q, scope=view, area=area, country_code=country.upper(), selected_id=company)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/")
    def home(request: Request, query: ViewQuery = Depends(view_query), sort: str = "name"):
        store = ready_store()
        result = project_view(store.visible_records, query)
        companies = _ordered(result, query, sort)
        center_lat, center_lng = view_center(query.scope.value, query.country_code)
        context = {
            "request": request,
            "companies": [_company_payload(record) for record in companies],
            "selected": _company_payload(result.selected) if result.selected else None,
            "total_companies": len(companies),
            "query": query,
            "sort": sort,
            "countries": [
                {"code": code, "name": name, "flag": country_code_to_flag(code)}
                for code, (name, _) in sorted(COUNTRIES.items(), key=lambda item: item[1][0])
            ],
            "areas": [{"key": area.value, "label": label} for area, label in AREA_LABELS.items()],
            "scopes": [scope.value for scope in ScopeMode],
            "map_view": {"lat": center_lat, "lng": center_lng, "zoom": view_zoom(query.scope.value)},
        }
        return TEMPLATES.TemplateResponse(request=request, name="index.html", context=context)

    @app.get("/api/directory")
    def directory(query: ViewQuery = Depends(view_query), sort: str = "name"):
        store = ready_store()
        result = project_view(store.visible_records, query)
        center_lat, center_lng = view_center(query.scope.value, query.country_code)
        return {
            "companies": [_company_payload(record) for record in _ordered(result, query, sort)],
            "selected": _company_payload(result.selected) if result.selected else None,
            "view": {"lat": center_lat, "lng": center_lng, "zoom": view_zoom(query.scope.value)},
        }

    @app.get("/api/companies")
    def read_companies():
        blob_store = app.state.blob_store
        if blob_store is None:
            return _storage_not_configured()
        try:
            return read_snapshot_document(blob_store)
        except (OSError, ValueError) as error:
            logger.error(f"Blob storage error: {error}")
            return JSONResponse(status_code=500, content={"error": "Failed to access storage", "details": str(error)})

    @app.post("/api/companies")
    def save_companies(payload: dict[str, Any] = Body(...)):
        blob_store = app.state.blob_store
        if blob_store is None:
            return _storage_not_configured()
        companies = payload.get("companies")
        if not isinstance(companies, list):
            return JSONResponse(status_code=400, content={"error": "Companies must be an array"})
        hidden_ids = payload.get("hiddenIds")
        if hidden_ids is not None and not isinstance(hidden_ids, list):
            return JSONResponse(status_code=400, content={"error": "hiddenIds must be an array"})
        try:
            return write_snapshot_document(blob_store, companies, hidden_ids)
        except (OSError, ValueError) as error:
            logger.error(f"Blob storage error: {error}")
            return JSONResponse(status_code=500, content={"error": "Failed to access storage", "details": str(error)})

    @app.post("/api/admin-login")
    def admin_login(payload: dict[str, Any] = Body(...)):
        password = str(payload.get("password") or "")
        expected = app.state.admin_password
        if expected and _same_secret(password, expected):
            return {"success": True}
        return JSONResponse(status_code=401, content={"success": False, "message": "Incorrect password"})

    @app.get("/api/admin/companies", dependencies=[Depends(require_admin)])
    def admin_companies():
        store = ready_store()
        return {
            "companies": [
                {**_company_payload(record), "visible": store.is_visible(record.id)}
                for record in sort_for_display(store.records)
            ],
            "categories": list(CATEGORIES),
            "lastUpdated": store.last_updated,
        }

    @app.post("/api/admin/companies", status_code=201, dependencies=[Depends(require_admin)])
    def admin_add_company(payload: dict[str, Any] = Body(...)):
        store = ready_store()
        try:
            record = store.add(CompanyFields.from_dict(payload))
        except DuplicateNameError as error:
            return JSONResponse(status_code=409, content={"error": str(error)})
        except (ValidationError, ValueError) as error:
            return JSONResponse(status_code=400, content={"error": str(error)})
        return _company_payload(record)

    @app.patch("/api/admin/companies/{company_id}", dependencies=[Depends(require_admin)])
    def admin_update_company(company_id: str, payload: dict[str, Any] = Body(...)):
        store = ready_store()
        if store.get(company_id) is None:
            raise HTTPException(status_code=404, detail="Company not found")
        changes = dict(payload)
        edit_details = changes.pop("editDetails", None)
        if edit_details is not None:
            edit_details = str(edit_details)
        try:
            store.update(company_id, CompanyFields.from_dict(changes), edit_details=edit_details)
        except (ValidationError, ValueError) as error:
            return JSONResponse(status_code=400, content={"error": str(error)})
        return _company_payload(store.get(company_id))

    @app.delete("/api/admin/companies/{company_id}", dependencies=[Depends(require_admin)])
    def admin_remove_company(company_id: str):
        store = ready_store()
        if store.get(company_id) is None:
            raise HTTPException(status_code=404, detail="Company not found")
        store.remove(company_id)
        return {"success": True}

    @app.post("/api/admin/companies/{company_id}/visibility", dependencies=[Depends(require_admin)])
    def admin_toggle_visibility(company_id: str):
        store = ready_store()
        if store.get(company_id) is None:
            raise HTTPException(status_code=404, detail="Company not found")
        store.toggle_visibility(company_id)
        return {"id": company_id, "visible": store.is_visible(company_id)}

    @app.post("/api/admin/sync", dependencies=[Depends(require_admin)])
    def admin_sync():
        store = ready_store()
        if not store.sync_now():
            return JSONResponse(status_code=503, content={"error": "Could not refresh"})
        return {"success": True, "count": len(store), "lastUpdated": store.last_updated}

    @app.post("/api/admin/geocode", dependencies=[Depends(require_admin)])
    def admin_geocode(payload: dict[str, Any] = Body(...)):
        geocoder: NominatimGeocoder = app.state.geocoder
        result = geocoder.geocode_address(
            str(payload.get("street") or ""),
            str(payload.get("city") or ""),
            str(payload.get("countryCode") or ""),
        )
        if result is None:
            return JSONResponse(
                status_code=404,
                content={"error": "Location not found", "status": geocoder.last_status},
            )
        return {"latitude": result.lat, "longitude": result.lng, "displayName": result.display_name}

    return app


def _same_secret(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def _storage_not_configured() -> JSONResponse:
    logger.error("Blob storage directory is not configured")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Storage not configured",
            "details": "EU_VALLEY_BLOB_DIR environment variable is missing",
        },
    )


def _ordered(result: ViewResult, query: ViewQuery, sort: str) -> list[CompanyRecord]:
    if sort == "relevance" and query.search.strip():
        return rank_by_relevance(result.records, query.search)
    return sort_for_display(result.records)


def _company_payload(record: CompanyRecord) -> dict[str, object]:
    payload = record.to_dict()
    payload["flag"] = country_code_to_flag(record.country_code)
    return payload


def create_default_app(base_dir: Path = BASE_DIR) -> FastAPI:
    load_env_file(base_dir)
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    blob_store = FileBlobStore(settings.blob_dir) if settings.blob_dir else None
    return create_app(
        store=build_store(settings, blob_store),
        blob_store=blob_store,
        admin_password=settings.admin_password,
        geocoder=NominatimGeocoder(user_agent=settings.geocoder_user_agent),
    )


app = create_default_app()
