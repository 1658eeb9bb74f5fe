"""
FastAPI application for the retail sales browser.

This API provides endpoints for:
- Searching, filtering, sorting and paging sales records
- Filter options for the listing controls
- Importing sales records (JSON batches and CSV uploads)
- Health monitoring
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, Optional

import structlog
from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.config import settings
from api.middleware import (
    SERVER_ERROR_BODY,
    ErrorHandlingMiddleware,
    RequestTrackingMiddleware,
    SecurityHeadersMiddleware,
)
from api.pagination import PaginatedResponse
from api.params import filter_criteria_params
from app.etl.importer import ImportSummary, SalesImportPipeline
from app.etl.validation import ImportValidationError, setup_logging
from app.models import FilterCriteria, FilterOptions, SalesBatch, SalesRecord
from app.store import SalesStore, StoreError, create_store
from query import FilterOptionsAggregator, SalesQueryEngine

setup_logging(settings.log_level)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    app.state.store = create_store(settings.store_backend, settings.data_file)

    logger.info(
        "Application started successfully",
        store_backend=app.state.store.backend_name,
        records=app.state.store.count(),
    )
    yield

    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    description="API for browsing, searching and importing retail sales records",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "sales", "description": "Sales listing and filter options"},
        {"name": "data", "description": "Sales data import"},
        {"name": "health", "description": "Health monitoring endpoints"},
    ],
)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestTrackingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Response models
class ImportBatchResponse(BaseModel):
    """Response model for a JSON batch import."""

    imported: int
    total_records: int
    batch_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: str
    services: Dict[str, str]
    version: str
    records: int


# Exception handlers
@app.exception_handler(ImportValidationError)
async def import_validation_error_handler(request: Request, exc: ImportValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Import failed", "detail": str(exc)},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "Storage failure", "detail": str(exc)},
    )


# Dependencies
def get_store(request: Request) -> SalesStore:
    """The store created at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return store


def get_query_engine(store: SalesStore = Depends(get_store)) -> SalesQueryEngine:
    return SalesQueryEngine(store)


def get_filter_options_aggregator(
    store: SalesStore = Depends(get_store),
) -> FilterOptionsAggregator:
    return FilterOptionsAggregator(store)


def get_import_pipeline(store: SalesStore = Depends(get_store)) -> SalesImportPipeline:
    return SalesImportPipeline(
        store,
        batch_size=settings.import_batch_size,
        max_upload_bytes=settings.max_upload_bytes,
    )


# API Endpoints

@app.get("/api/sales", tags=["sales"], response_model=PaginatedResponse[SalesRecord])
async def list_sales(
    criteria: FilterCriteria = Depends(filter_criteria_params),
    engine: SalesQueryEngine = Depends(get_query_engine),
):
    """
    Search, filter, sort and page sales records.

    Multi-value filters (regions, gender, category, tags, payment) take
    comma-separated or repeated values. Tags must all be present on a record;
    the other filters admit any of the listed values.
    """
    try:
        result = engine.query(criteria)
    except Exception as e:
        logger.error("Failed to query sales", error=str(e), exc_info=True)
        return JSONResponse(status_code=500, content=SERVER_ERROR_BODY)

    return PaginatedResponse[SalesRecord].from_result_page(result)


@app.get("/api/sales/filter-options", tags=["sales"], response_model=FilterOptions)
async def get_filter_options(
    aggregator: FilterOptionsAggregator = Depends(get_filter_options_aggregator),
):
    """Distinct values available for each filter control."""
    try:
        return aggregator.collect()
    except Exception as e:
        logger.error("Failed to collect filter options", error=str(e), exc_info=True)
        return JSONResponse(status_code=500, content=SERVER_ERROR_BODY)


# Import endpoints are plain functions: file stores and the quality report block.
@app.post("/api/sales/import", tags=["data"], response_model=ImportBatchResponse)
def import_sales(batch: SalesBatch, store: SalesStore = Depends(get_store)):
    """
    Append a batch of sales records.

    The batch is stored as a whole or not at all; callers chunk large
    imports into batches of about a thousand records.
    """
    imported = store.append(batch.records)

    logger.info(
        "Sales batch imported",
        batch_id=batch.batch_id,
        imported=imported,
        customers=len(batch.unique_customers()),
    )
    return ImportBatchResponse(
        imported=imported, total_records=store.count(), batch_id=batch.batch_id
    )


@app.post("/api/sales/upload", tags=["data"], response_model=ImportSummary)
def upload_sales_csv(
    file: UploadFile = File(...),
    pipeline: SalesImportPipeline = Depends(get_import_pipeline),
):
    """Import a sales CSV export."""
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type. Only CSV files are supported.",
        )

    content = file.file.read()
    logger.info("CSV upload received", filename=file.filename, size=len(content))
    return pipeline.run(content)


@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint for liveness and readiness probes.
    """
    store: Optional[SalesStore] = getattr(request.app.state, "store", None)
    services_status = {"store": "healthy" if store is not None else "unavailable"}

    overall_status = "healthy" if all(
        status == "healthy" for status in services_status.values()
    ) else "unhealthy"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now().isoformat(),
        services=services_status,
        version=settings.app_version,
        records=store.count() if store is not None else 0,
    )


@app.get("/health/liveness", tags=["health"])
async def liveness_check():
    """Liveness probe endpoint."""
    return {"status": "alive", "timestamp": datetime.now().isoformat()}


@app.get("/health/readiness", tags=["health"])
async def readiness_check(store: SalesStore = Depends(get_store)):
    """Readiness probe endpoint."""
    return {
        "status": "ready",
        "store_backend": store.backend_name,
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/", tags=["health"])
async def root():
    """Root endpoint."""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "docs_url": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,  # Use structlog configuration
    )
