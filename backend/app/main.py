from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from datetime import timedelta

from backend.app.clock import to_iso, utcnow
from backend.app.deps import get_config, get_record_store
from backend.app.errors import StoreHubError
from backend.app.logging_config import setup_logging

setup_logging(get_config().log_dir)

app = FastAPI(title="StoreHub")

logger = logging.getLogger("storehub.core")
logger.info("StoreHub backend starting")

from .catalog.router import router as catalog_router
from .orders.router import router as orders_router
from .stores.router import router as stores_router

app.include_router(stores_router)
app.include_router(catalog_router)
app.include_router(orders_router)

AVAILABLE_ENDPOINTS = [
    "GET /api/health",
    "GET /api/test",
    "POST /api/stores/register",
    "GET /api/stores",
    "GET /api/debug/stores",
    "POST /api/stores/manual-add",
    "POST /api/stores/{storeId}/sync-products",
    "POST /api/stores/sync-all",
    "GET /api/products",
    "GET /api/categories",
    "POST /api/orders",
    "PUT /api/orders/{orderId}/status",
    "GET /api/orders",
]


# ----------------------------
# Error envelope
# ----------------------------

@app.exception_handler(StoreHubError)
async def storehub_error_handler(request: Request, exc: StoreHubError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    path = request.url.path
    if exc.status_code == 404 and exc.detail == "Not Found":
        if path.startswith("/api/") or path == "/api":
            return JSONResponse(
                status_code=404,
                content={
                    "error": "API endpoint not found",
                    "path": path,
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                },
            )
        return JSONResponse(status_code=404, content={"error": "Page not found", "path": path})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


# ----------------------------
# Lifecycle
# ----------------------------

@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Running application startup tasks")
    try:
        get_record_store().bootstrap()
        logger.info("Data directory ready")

        config = get_config()
        if config.sync_interval_seconds > 0:
            from .catalog.service import CatalogService, start_catalog_refresh_task
            from .stores.registry import StoreRegistry

            records = get_record_store()
            registry = StoreRegistry(
                records,
                liveness=timedelta(minutes=config.liveness_minutes),
                timeout=config.http_timeout,
            )
            catalog = CatalogService(records, registry, timeout=config.http_timeout)
            start_catalog_refresh_task(app, catalog, config.sync_interval_seconds)
    except Exception:
        logger.exception("Application startup failed")
        raise


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("Running application shutdown tasks")
    from .catalog.service import stop_catalog_refresh_task
    await stop_catalog_refresh_task(app)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "service": "StoreHub", "timestamp": to_iso(utcnow())}


@app.get("/api/test")
def smoke_test() -> dict:
    return {"success": True, "message": "StoreHub API is working", "timestamp": to_iso(utcnow())}


def run() -> None:
    import uvicorn

    config = get_config()
    logger.info(f"Serving on {config.host}:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port)
