from __future__ import annotations

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from api.v1.place_route import router as v1_place_route_router
from api.v1.user_route import router as v1_user_route_router
from core.logging_config import setup_logging
from core.redis_cache import cache_db
from core.response_envelope import (
    apply_response_documentation,
    document_response,
    error_response,
    http_exception_response,
)
from core.settings import get_settings
from core.storage import AssetStorageManager
from core.storage.local_provider import LocalStorageProvider
from core.store import EntityStoreManager, get_entity_store
from core.validation_errors import format_validation_error_details

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    EntityStoreManager.configure_from_settings()
    AssetStorageManager.configure_from_settings()
    logger.info(
        "Started with %s entity store and %s asset storage",
        get_entity_store().backend_name,
        AssetStorageManager.get_instance().provider.backend_name,
    )
    try:
        yield
    finally:
        await EntityStoreManager.shutdown()


app = FastAPI(lifespan=lifespan, title="Places API")
app.add_middleware(RequestIdMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins) if settings.cors_origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
if settings.storage_backend == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=str(LocalStorageProvider(root_dir=settings.storage_local_root).root)),
        name="uploads",
    )


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return http_exception_response(exc=exc, request=request)


@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status_code=422,
        message="Validation error",
        data={"code": "VALIDATION_FAILED", "details": format_validation_error_details(list(exc.errors()))},
        request_id=getattr(request.state, "request_id", None),
    )


@app.exception_handler(Exception)
async def custom_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    details = str(exc) if (settings.debug_include_error_details and not settings.is_production) else None
    return error_response(
        status_code=500,
        message="Internal Server Error",
        data={"code": "INTERNAL_ERROR", "details": details},
        request_id=getattr(request.state, "request_id", None),
    )


@app.get("/health", tags=["Health"])
@document_response(
    message="Health check completed",
    success_example={"status": "healthy", "services": {"store": "healthy", "redis": "healthy"}},
)
async def health_check(request: Request):
    services: dict[str, dict[str, str | float]] = {}
    overall_status = "healthy"

    store = get_entity_store()
    start = time.perf_counter()
    try:
        await store.ping()
        services["store"] = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": f"{store.backend_name} ping successful",
        }
    except HTTPException as exc:
        overall_status = "degraded"
        services["store"] = {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": str(exc.detail),
        }

    start = time.perf_counter()
    try:
        cache_db.ping()
        services["redis"] = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": "Redis ping successful",
        }
    except Exception as exc:
        # redis only backs the geocoding cache
        overall_status = "degraded"
        services["redis"] = {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "message": str(exc),
        }

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
    }


app.include_router(v1_place_route_router, prefix="/v1")
app.include_router(v1_user_route_router, prefix="/v1")

apply_response_documentation(app)
