"""FastAPI application entrypoint for the ecospray service."""

from __future__ import annotations

import asyncio
import functools
import hmac
import json
from typing import Any, Callable, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import EcosprayConfig, load_config
from ..crm import CRMClient
from ..errors import (
    ContentWriteError,
    EcosprayError,
    InputValidationError,
    UnauthorizedError,
)
from ..extraction import ContentExtractor
from ..generation import ContentGenerator
from ..importer import ImportPipeline
from ..leads import LeadService
from ..llm.gemini import GeminiClient
from ..logging import get_logger
from ..prompting.constants import SITE_CONTENT_CATEGORIES
from ..schema import SITE_CONFIG, require_content_table
from ..sources.crawler import SiteCrawler
from ..sources.github import GitHubFetcher
from ..stats import dashboard_stats, empty_stats
from ..stores.base import TabularStore
from ..stores.memory import InMemoryStore
from ..stores.sheets import GoogleSheetsStore, validate_credentials
from ..writer import ContentWriter, StoreFactory, open_sheets_store

logger = get_logger("service")


class HealthResponse(BaseModel):
    status: str


class ContentRowRequest(BaseModel):
    sheet: str
    data: Dict[str, Any] = {}
    rowIndex: Optional[int] = None


class ConfigUpdateRequest(BaseModel):
    key: Optional[str] = None
    value: Optional[str] = None
    updates: Optional[Dict[str, Any]] = None


class GenerateRequest(BaseModel):
    type: Optional[str] = None
    context: Optional[str] = None
    topic: Optional[str] = None
    content: Optional[str] = None
    apiKey: Optional[str] = None


async def _run(func: Callable[..., Any], *args: Any) -> Any:
    # Store, crawl and model calls block; keep them off the event loop.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputValidationError("Request body must be a JSON object") from exc
    if not isinstance(payload, dict):
        raise InputValidationError("Request body must be a JSON object")
    return payload


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def _records_or_empty(store: TabularStore, table: str) -> List[Dict[str, str]]:
    # The dashboard still renders when one tab is missing or unreadable.
    try:
        return store.read_records(table)
    except EcosprayError as exc:
        logger.warning("Reading %s for stats failed: %s", table, exc.message)
        return []


def _default_store_factory(config: EcosprayConfig) -> Callable[[], TabularStore]:
    if config.sheets.configured:
        def _sheets() -> TabularStore:
            return GoogleSheetsStore.from_credentials_key(
                config.sheets.service_account_key or "",
                config.sheets.spreadsheet_id or "",
                request_timeout=config.sheets.request_timeout,
            )

        return _sheets

    logger.warning("Google Sheets is not configured; using an in-memory store")
    local = InMemoryStore()
    return lambda: local


def _default_pipeline_factory(config: EcosprayConfig, destination: StoreFactory) -> Callable[[], ImportPipeline]:
    def _pipeline() -> ImportPipeline:
        return ImportPipeline(
            crawler=SiteCrawler(config.crawl),
            fetcher=GitHubFetcher(config.crawl),
            extractor=ContentExtractor(GeminiClient(config.gemini)),
            writer=ContentWriter(destination),
        )

    return _pipeline


def create_app(
    config: EcosprayConfig | None = None,
    *,
    store_factory: Callable[[], TabularStore] | None = None,
    destination_factory: StoreFactory | None = None,
    pipeline_factory: Callable[[], ImportPipeline] | None = None,
    generator_factory: Callable[[], ContentGenerator] | None = None,
    crm_factory: Callable[[], CRMClient] | None = None,
    credentials_validator: Callable[[str], str] = validate_credentials,
) -> FastAPI:
    """Create the FastAPI application exposing the CMS, import and lead routes."""

    config = config or load_config()
    store_factory = store_factory or _default_store_factory(config)
    destination_factory = destination_factory or open_sheets_store
    pipeline_factory = pipeline_factory or _default_pipeline_factory(config, destination_factory)
    generator_factory = generator_factory or (lambda: ContentGenerator(GeminiClient(config.gemini)))
    crm_factory = crm_factory or (lambda: CRMClient(config.crm))

    app = FastAPI(title="Ecospray Service", version="1.0.0")
    app.state.config = config

    async def require_admin(authorization: Optional[str] = Header(default=None)) -> None:
        expected = config.admin.api_key
        if not expected:
            # Open unless an admin key is set or fail-closed mode is on.
            if config.admin.require_key:
                raise UnauthorizedError("Admin API key is not configured")
            return
        if not authorization or not hmac.compare_digest(authorization, f"Bearer {expected}"):
            raise UnauthorizedError("Unauthorized")

    def lead_service() -> LeadService:
        return LeadService(store_factory, crm_factory(), config.service)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/import", dependencies=[Depends(require_admin)])
    async def import_site(request: Request) -> Dict[str, Any]:
        pipeline = pipeline_factory()
        content_type = request.headers.get("content-type", "")
        if "multipart/form-data" in content_type:
            form = await request.form()
            upload = form.get("file")
            if upload is None or not hasattr(upload, "read"):
                raise InputValidationError("No file uploaded")
            data = await upload.read()
            gemini_key = form.get("geminiKey")
            return await _run(pipeline.zip, data, gemini_key if isinstance(gemini_key, str) else None)
        payload = await _json_body(request)
        return await _run(pipeline.run, payload)

    @app.get("/cms/content", dependencies=[Depends(require_admin)])
    async def list_content(sheet: Optional[str] = None) -> Dict[str, Any]:
        require_content_table(sheet)
        records = await _run(store_factory().read_records, sheet)
        return {"data": records}

    @app.post("/cms/content", dependencies=[Depends(require_admin)])
    async def add_content(payload: ContentRowRequest) -> Dict[str, Any]:
        require_content_table(payload.sheet)
        store = store_factory()
        if payload.sheet == SITE_CONFIG and payload.data.get("key"):
            await _run(
                store.upsert_config,
                str(payload.data["key"]),
                str(payload.data.get("value") or ""),
            )
        else:
            await _run(store.append_record, payload.sheet, payload.data)
        return {"success": True}

    @app.put("/cms/content", dependencies=[Depends(require_admin)])
    async def update_content(payload: ContentRowRequest) -> Dict[str, Any]:
        require_content_table(payload.sheet)
        if payload.rowIndex is None:
            raise InputValidationError("rowIndex required")
        await _run(store_factory().update_record, payload.sheet, payload.rowIndex, payload.data)
        return {"success": True}

    @app.delete("/cms/content", dependencies=[Depends(require_admin)])
    async def delete_content(sheet: Optional[str] = None, rowIndex: Optional[str] = None) -> Dict[str, Any]:
        require_content_table(sheet)
        try:
            index = int(rowIndex or "")
        except ValueError as exc:
            raise InputValidationError("rowIndex required") from exc
        await _run(store_factory().delete_record, sheet, index)
        return {"success": True}

    @app.get("/cms/config", dependencies=[Depends(require_admin)])
    async def read_config() -> Dict[str, Any]:
        return {"config": await _run(store_factory().site_config)}

    @app.put("/cms/config", dependencies=[Depends(require_admin)])
    async def update_config(payload: ConfigUpdateRequest) -> Dict[str, Any]:
        store = store_factory()
        if payload.updates is not None:
            for key, value in payload.updates.items():
                await _run(store.upsert_config, key, "" if value is None else str(value))
            return {"success": True, "updated": len(payload.updates)}
        if payload.key:
            await _run(store.upsert_config, payload.key, payload.value or "")
            return {"success": True}
        raise InputValidationError("Provide { key, value } or { updates: { ... } }")

    @app.post("/cms/generate", dependencies=[Depends(require_admin)])
    async def generate(payload: GenerateRequest) -> Dict[str, Any]:
        generator = generator_factory()
        result = await _run(generator.generate, payload.model_dump())
        return {"result": result}

    @app.get("/admin/stats", dependencies=[Depends(require_admin)])
    async def admin_stats() -> Dict[str, Any]:
        if not config.sheets.configured:
            return empty_stats()
        store = store_factory()
        contacts = await _run(_records_or_empty, store, "contacts")
        events = await _run(_records_or_empty, store, "0n_events")
        return dashboard_stats(contacts, events)

    @app.post("/setup", dependencies=[Depends(require_admin)])
    async def setup(request: Request) -> Dict[str, Any]:
        payload = await _json_body(request)
        action = payload.get("action")
        google_key = payload.get("googleKey")

        if action == "validate-google":
            if not google_key:
                raise InputValidationError("Missing googleKey")
            email = await _run(credentials_validator, google_key)
            return {"valid": True, "serviceAccountEmail": email}

        if action == "create-sheet":
            business_name = payload.get("businessName")
            if not google_key or not business_name:
                raise InputValidationError("Missing googleKey or businessName")
            store = destination_factory("", google_key)
            return await _run(store.initialize, f"{business_name} - Site Content")

        if action == "save-config":
            spreadsheet_id = payload.get("spreadsheetId")
            values = payload.get("config")
            if not google_key or not spreadsheet_id or not isinstance(values, dict):
                raise InputValidationError("Missing required fields")
            values = dict(values)
            values.setdefault("setup_complete", "true")
            store = destination_factory(spreadsheet_id, google_key)
            await _run(store.replace_config, values)
            return {"saved": True}

        if action == "generate-content":
            spreadsheet_id = payload.get("spreadsheetId")
            gemini_key = payload.get("geminiKey")
            business_info = payload.get("businessInfo")
            if (
                not google_key
                or not spreadsheet_id
                or not gemini_key
                or not isinstance(business_info, dict)
            ):
                raise InputValidationError("Missing required fields for content generation")
            generator = generator_factory()
            content = await _run(generator.generate_site_content, business_info, gemini_key)
            writer = ContentWriter(destination_factory)
            counts = await _run(writer.write, content, spreadsheet_id, google_key)
            return {
                "generated": True,
                "counts": {name: counts.get(name, 0) for name in SITE_CONTENT_CATEGORIES},
            }

        if action == "check-status":
            return {
                "google": bool(config.sheets.service_account_key),
                "sheets": bool(config.sheets.spreadsheet_id),
                "gemini": bool(config.gemini.api_key),
                "crm": config.crm.configured,
            }

        raise InputValidationError(f"Unknown action: {action}")

    @app.post("/contact")
    async def contact(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        return await _run(lead_service().submit_contact, payload)

    @app.post("/leads")
    async def leads(payload: Dict[str, Any] = Body(...)) -> Any:
        try:
            return await _run(lead_service().submit_estimate, payload)
        except InputValidationError as exc:
            return JSONResponse(status_code=400, content={"success": False, "message": exc.message})

    @app.post("/guide/download")
    async def guide_download(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        return await _run(lead_service().submit_guide_download, payload)

    @app.exception_handler(ContentWriteError)
    async def content_write_error_handler(_: Any, exc: ContentWriteError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "counts": exc.counts, "failed": sorted(exc.failures)},
        )

    @app.exception_handler(EcosprayError)
    async def ecospray_error_handler(_: Any, exc: EcosprayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Any, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    return app


def run_service(
    host: str = "0.0.0.0",
    port: int = 8000,
    config: EcosprayConfig | None = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config)
    uvicorn.run(app, host=host, port=port)
