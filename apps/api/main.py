"""FastAPI wrapper for the reveal pipeline."""

from __future__ import annotations

import importlib.metadata
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from core.engine.models import RewriteReport
from core.orchestrator.pipeline import reveal_html
from core.settings.config_loader import load_config
from core.settings.models import RevealConfig, SettingsSnapshot
from core.tokens.derive import build_mapping, preview_lines
from core.tokens.models import SUPPORTED_MODES, Mode
from core.tokens.scanner import TOKEN_RE
from core.utils.log_events import log_event

app = FastAPI(title="nsreveal API", version="0.1.0")
logger = logging.getLogger("nsreveal.api")

_REQUEST_ID_HEADER = "X-Nsreveal-Request-Id"
_DEFAULT_MAX_HTML_BYTES = 5 * 1024 * 1024


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


class IdsRequest(BaseModel):
    """Namespace names to derive tokens for."""

    model_config = ConfigDict(extra="forbid")

    names: list[str] = Field(default_factory=list)


class IdsResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mapping: dict[str, str]
    preview: list[str]


class RevealRequest(BaseModel):
    """HTML plus optional mapping/mode overrides; absent fields fall back to config."""

    model_config = ConfigDict(extra="forbid")

    html: str
    namespaces: list[str] | None = None
    mapping: dict[str, str] | None = None
    mode: Mode | None = None


class RevealResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    html: str
    mode: Mode
    report: RewriteReport


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        log_event(
            logger,
            logging.ERROR,
            "error",
            request_id=request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _request_id_from_request(request)
    log_event(
        logger,
        logging.ERROR,
        "error",
        request_id=request_id,
        error_code="INVALID_REQUEST",
        status_code=422,
    )
    return _error_response(
        status_code=422,
        error_code="INVALID_REQUEST",
        message="request validation failed",
        request_id=request_id,
        detail={"errors": [_error_location(item) for item in exc.errors()]},
    )


@app.exception_handler(ApiRequestError)
async def api_error_handler(request: Request, exc: ApiRequestError) -> JSONResponse:
    request_id = _request_id_from_request(request)
    log_event(
        logger,
        logging.ERROR,
        "error",
        request_id=request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint for clients."""

    request_id = _request_id_from_request(request)
    payload = {
        "supported_modes": list(SUPPORTED_MODES),
        "token_pattern": TOKEN_RE.pattern,
        "max_html_bytes": _max_html_bytes(),
        "version": _package_version(),
    }
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/ids")
def ids_v1(request: Request, payload: IdsRequest) -> IdsResponse:
    """Derive tokens for namespace names."""

    names = [name.strip() for name in payload.names if name.strip()]
    log_event(
        logger,
        logging.INFO,
        "ids",
        request_id=_request_id_from_request(request),
        name_count=len(names),
    )
    return IdsResponse(mapping=build_mapping(names), preview=preview_lines(names))


@app.post("/v1/reveal")
def reveal_v1(request: Request, payload: RevealRequest) -> RevealResponse:
    """Rewrite namespace tokens in posted HTML."""

    started = time.perf_counter()
    request_id = _request_id_from_request(request)

    html_bytes = len(payload.html.encode("utf-8"))
    max_html_bytes = _max_html_bytes()
    if html_bytes > max_html_bytes:
        raise ApiRequestError(
            status_code=413,
            error_code="PAYLOAD_TOO_LARGE",
            message="html exceeds size limit",
            detail={"max_html_bytes": max_html_bytes, "html_bytes": html_bytes},
        )

    config = _load_config_with_api_error()
    snapshot = _resolve_snapshot(payload, config)

    log_event(
        logger,
        logging.INFO,
        "start",
        request_id=request_id,
        mode=snapshot.mode,
        mapping_size=len(snapshot.mapping),
        html_bytes=html_bytes,
    )

    output = reveal_html(
        payload.html,
        snapshot,
        editable_tags=config.editable_tags,
        max_flush_batches=config.max_flush_batches,
    )

    summary = output.report.summary
    log_event(
        logger,
        logging.INFO,
        "done",
        request_id=request_id,
        translated=summary.translated_count,
        annotated=summary.annotated_count,
        unresolved=summary.unresolved_count,
        elapsed_ms=_elapsed_ms(started),
    )
    return RevealResponse(html=output.html, mode=snapshot.mode, report=output.report)


def _resolve_snapshot(payload: RevealRequest, config: RevealConfig) -> SettingsSnapshot:
    if payload.namespaces is None and payload.mapping is None:
        mapping = config.snapshot().mapping
    else:
        mapping = build_mapping(name.strip() for name in payload.namespaces or [])
        mapping.update(payload.mapping or {})
    return SettingsSnapshot(mapping=mapping, mode=payload.mode or config.mode)


def _load_config_with_api_error() -> RevealConfig:
    raw_path = os.getenv("NSREVEAL_CONFIG")
    config_path = Path(raw_path) if raw_path else None
    try:
        return load_config(config_path)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="CONFIG_ERROR",
            message="reveal configuration is invalid",
            detail={"reason": str(exc)},
        ) from exc


def _max_html_bytes() -> int:
    raw = os.getenv("NSREVEAL_MAX_HTML_BYTES")
    if raw is None:
        return _DEFAULT_MAX_HTML_BYTES
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_HTML_BYTES
    return parsed if parsed > 0 else _DEFAULT_MAX_HTML_BYTES


def _package_version() -> str:
    try:
        return importlib.metadata.version("nsreveal")
    except importlib.metadata.PackageNotFoundError:
        return app.version


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _error_location(error: Any) -> str:
    location = error.get("loc", ()) if isinstance(error, dict) else ()
    return ".".join(str(part) for part in location)


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
