from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .auth import AuthManager
from .config import Settings, configure_logging, load_settings
from .export import build_export
from .models import (
    AppendResponse,
    ErrorResponse,
    HealthResponse,
    RecordsResponse,
    SurveyStats,
    SurveySubmission,
)
from .stats import calculate_stats
from .storage import FileStore, StorageError, SurveyStorage
from .validation import build_record, validate_form

logger = logging.getLogger(__name__)


def get_storage(request: Request) -> SurveyStorage:
    return request.app.state.storage


def create_app(
    storage: Optional[SurveyStorage] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    if storage is None:
        storage = SurveyStorage(FileStore(settings.data_dir), key=settings.storage_key)

    app = FastAPI(
        title="survey-csv",
        description="Survey response collection backed by a single CSV document",
        version="0.1.0",
    )
    app.state.storage = storage
    app.state.auth = AuthManager(settings.admin_password)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Password"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"ok": True}

    @app.post("/api/responses", response_model=AppendResponse, status_code=201)
    def create_response(submission: SurveySubmission, request: Request):
        result = validate_form(submission)
        if not result.is_valid:
            body = ErrorResponse(error="Validation failed", errors=result.errors)
            return JSONResponse(status_code=422, content=body.model_dump())

        record = build_record(submission)
        try:
            get_storage(request).append(record)
        except StorageError as e:
            logger.error("Could not save survey response: %s", e)
            body = ErrorResponse(error="Failed to save response")
            return JSONResponse(status_code=500, content=body.model_dump())

        return {"success": True, "record": record}

    @app.get("/api/responses", response_model=RecordsResponse)
    def list_responses(request: Request):
        records = get_storage(request).read_all()
        return {"success": True, "count": len(records), "records": records}

    @app.get("/api/stats", response_model=SurveyStats)
    def stats(request: Request):
        return calculate_stats(get_storage(request).read_all())

    @app.get("/api/export")
    def export_csv(
        request: Request,
        x_admin_password: Optional[str] = Header(default=None, alias="X-Admin-Password"),
    ):
        if not x_admin_password:
            raise HTTPException(status_code=401, detail="請輸入管理員密碼")
        if not request.app.state.auth.authenticate(x_admin_password):
            logger.warning("Rejected export request with wrong admin password")
            raise HTTPException(status_code=403, detail="密碼錯誤，請重試")

        export = build_export(get_storage(request))
        logger.info("Exported %s (%d bytes)", export.filename, len(export.content))
        return Response(
            content=export.content,
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f'attachment; filename="{export.filename}"',
                "X-Content-SHA256": export.sha256,
            },
        )

    return app


app = create_app()
