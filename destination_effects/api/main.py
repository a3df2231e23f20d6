from __future__ import annotations

import time
from typing import List, Optional
from uuid import uuid4

from fastapi import FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST
from pydantic import ValidationError

from destination_effects.audit.logger import (
    append_effect_record,
    ensure_effect_log_ready,
    read_effect_records,
)
from destination_effects.core.config import REPORT_DEFAULT_LIMIT
from destination_effects.core.exceptions import ApiError, InternalError, MalformedInputError, ReportUnavailableError
from destination_effects.core.logging import log_effect, log_request_summary, set_migration_context
from destination_effects.core.models import EffectReportRecord, EffectSubmission, EffectTally, EffectType
from destination_effects.core.security import verify_bearer_token
from destination_effects.core.utils import new_record_id, utc_timestamp
from destination_effects.reporting.render import render_yaml_report, tally_effects


app = FastAPI(title="Destination Effects", version="1.0.0")

EFFECT_COUNT = Counter(
    "destination_effects_recorded_total",
    "Destination effects recorded",
    ["type"],
)
REQUEST_LATENCY = Histogram(
    "destination_effects_request_duration_seconds",
    "Request latency in seconds",
    ["endpoint"],
)


@app.middleware("http")
async def request_summary_logger(request: Request, call_next):
    request_id = str(uuid4())
    request.state.request_id = request_id
    set_migration_context(request_id=request_id, endpoint=str(request.url.path))
    start = time.time()
    response = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    REQUEST_LATENCY.labels(endpoint=str(request.url.path)).observe(duration_ms / 1000.0)
    log_request_summary(
        request_id=request_id,
        endpoint=str(request.url.path),
        client=request.headers.get("user-agent"),
        status_code=response.status_code,
        effect_types=getattr(request.state, "effect_types", []),
        duration_ms=duration_ms,
        level="WARN" if response.status_code >= 400 else "INFO",
    )
    return response


@app.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@app.get("/readyz")
async def readyz() -> dict:
    _require_report_ready()
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def handle_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
    message = "Invalid request parameters: " + ", ".join(fields)
    return await handle_api_error(request, MalformedInputError(message, "INVALID_QUERY"))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    return await handle_api_error(request, InternalError())


@app.post("/api/v1/effects")
async def record_effect_endpoint(
    request: Request,
    authorization: str | None = Header(default=None),
) -> EffectReportRecord:
    verify_bearer_token(authorization)
    _require_report_ready()
    submission = _parse_submission(await request.body())
    set_migration_context(
        request_id=request.state.request_id,
        migration_id=submission.migration_id,
        destination=submission.destination,
        endpoint=str(request.url.path),
    )
    record = EffectReportRecord(
        record_id=new_record_id(),
        timestamp=utc_timestamp(),
        migration_id=submission.migration_id,
        destination=submission.destination,
        effect=submission.effect,
    )
    log_effect(record.effect)
    append_effect_record(record)
    EFFECT_COUNT.labels(type=record.effect.type.value).inc()
    request.state.effect_types = [record.effect.type.value]
    return record


@app.get("/api/v1/effects")
async def list_effects(
    limit: Optional[int] = Query(default=None, ge=0),
    type: Optional[EffectType] = None,
    destination: Optional[str] = None,
) -> List[EffectReportRecord]:
    return read_effect_records(
        limit=limit if limit is not None else REPORT_DEFAULT_LIMIT,
        effect_type=type,
        destination=destination,
    )


@app.get("/api/v1/effects/summary")
async def effects_summary(destination: Optional[str] = None) -> EffectTally:
    records = read_effect_records(destination=destination)
    counts = tally_effects(record.effect for record in records)
    return EffectTally(
        total=len(records),
        counts={effect_type.value: count for effect_type, count in counts.items()},
    )


@app.get("/api/v1/effects/report")
async def effects_report(destination: Optional[str] = None) -> Response:
    records = read_effect_records(destination=destination)
    body = render_yaml_report(record.effect for record in records)
    return Response(content=body, media_type="application/x-yaml")


def _parse_submission(raw: bytes) -> EffectSubmission:
    try:
        return EffectSubmission.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedInputError("Effect submission does not match the effect schema") from exc


def _require_report_ready() -> None:
    try:
        ensure_effect_log_ready()
    except OSError as exc:
        raise ReportUnavailableError() from exc
