"""
Broker Validator — FastAPI Server
=================================

RESTful API for validating batches of scraped broker records.

Endpoints:
    POST /validate          Validate a JSON batch of records
    POST /validate/file     Upload a JSON file of records for validation
    POST /cleanup           Plan automatic fixes and manual review items
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
    http://localhost:8000/redoc            # ReDoc (alternative)
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from broker_validator import __version__
from broker_validator.cleanup import plan_cleanup
from broker_validator.config import ValidationSettings, load_settings
from broker_validator.exceptions import BrokerValidationError
from broker_validator.models import CleanupPlan, ValidationReport
from broker_validator.pipeline import BrokerValidationPipeline

# ─── Application Lifespan (load settings once) ──────────────────────

_pipeline: BrokerValidationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings (and `.env`) once on startup."""
    global _pipeline  # noqa: PLW0603
    _pipeline = BrokerValidationPipeline(load_settings())
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Broker Validator API",
    description=(
        "Validation and deduplication for scraped broker records. "
        "Required fields, phone standardization, email normalization, "
        "completeness scoring and exact-match duplicate detection."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class RecordsRequest(BaseModel):
    """Request body for /validate and /cleanup."""

    records: list[dict[str, Any]] = Field(
        ...,
        description="Broker records: objects mapping field name to value.",
        json_schema_extra={
            "example": [
                {"id": "1", "name": "Maria Silva", "phone": "85 97100-5622",
                 "email": "  MARIA@HOTMAIL.COM  "},
                {"id": "2", "name": "Maria Silva", "phone": "85971005622",
                 "email": "maria@hotmail.com"},
            ]
        },
    )


class HealthResponse(BaseModel):
    status: str
    version: str
    max_records: int


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> BrokerValidationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _settings() -> ValidationSettings:
    return _get_pipeline().settings


def _check_size(records: list[Any]) -> None:
    limit = _settings().api_max_records
    if len(records) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"Batch too large: {len(records)} records (max {limit})",
        )


def _run(records: list[Any]) -> ValidationReport:
    _check_size(records)
    try:
        return _get_pipeline().run(records)
    except BrokerValidationError as exc:
        raise HTTPException(
            status_code=422, detail={"code": exc.code, "message": str(exc), **exc.details}
        ) from exc


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/validate",
    summary="Validate a batch of broker records",
    tags=["Validation"],
    responses={
        413: {"description": "Too many records in one batch"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
def validate_records(request: RecordsRequest) -> ValidationReport:
    """Run every validator over the batch.

    Returns the full report:
    - **summary**: records with and without issues, total issue count
    - **issues_by_type**: histogram of issue kinds
    - **records_needing_attention**: flagged records, most severe first
    - **validation_results**: the raw per-validator batch results
    """
    return _run(request.records)


@app.post(
    "/validate/file",
    summary="Validate broker records from an uploaded JSON file",
    tags=["Validation"],
    responses={
        413: {"description": "File too large (max 1 MB) or too many records"},
        400: {"description": "File is not valid UTF-8 JSON"},
        422: {"description": "JSON does not contain a list of records"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def validate_records_file(file: UploadFile) -> ValidationReport:
    """Upload a `.json` file: a list of records or an object with a `brokers` list."""
    if file.size and file.size > 1_048_576:
        raise HTTPException(status_code=413, detail="File too large (max 1 MB)")

    content = await file.read()
    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded JSON")

    if isinstance(data, dict) and "brokers" in data:
        data = data["brokers"]
    if not isinstance(data, list):
        raise HTTPException(status_code=422, detail="Expected a JSON list of records")

    return await asyncio.to_thread(_run, data)


@app.post(
    "/cleanup",
    summary="Plan automatic fixes and manual review items",
    tags=["Cleanup"],
    responses={
        413: {"description": "Too many records in one batch"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
def cleanup_records(request: RecordsRequest) -> CleanupPlan:
    """Propose standardized phones / normalized emails and list what needs a human."""
    _check_size(request.records)
    return plan_cleanup(request.records)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and configuration info."""
    settings = _settings()
    return HealthResponse(
        status="healthy",
        version=__version__,
        max_records=settings.api_max_records,
    )
