"""FastAPI application for the UF Device Analyzer Web API.

Mirrors the command-line analyzer: the request carries the declaration
events of one device file and the response carries the device model and its
diagnostics.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import ufc  # type: ignore
from backend.api.services.analyzer_service import AnalyzerService
from uf_analyzer import EventStreamError, ParameterError

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------------
# Rate limiting (in-memory per-minute request counter per client IP)
# ----------------------------------------------------------------------------


class SimpleRateLimiter:
    """Fixed one-minute windows; counters reset when the minute rolls over."""

    def __init__(self, capacity: int = 60) -> None:
        self.capacity = capacity
        self.tokens: Dict[str, int] = {}
        self.current_minute: Optional[int] = None

    def __call__(self, request: Request) -> None:
        now_minute = int(datetime.now(tz=timezone.utc).timestamp() // 60)
        if now_minute != self.current_minute:
            self.current_minute = now_minute
            self.tokens.clear()
        ip = request.client.host if request.client else "unknown"
        remaining = self.tokens.get(ip, self.capacity)
        if remaining <= 0:
            raise HTTPException(status_code=429, detail="Rate limit exceeded")
        self.tokens[ip] = remaining - 1


rate_limiter = SimpleRateLimiter(capacity=120)


def rate_limit_dep(request: Request) -> None:
    """Dependency wrapper to apply rate limiting using the client IP."""
    rate_limiter(request)


# ----------------------------------------------------------------------------
# Request/Response Schemas
# ----------------------------------------------------------------------------


class AnalyzeOptions(BaseModel):
    drop_invalid_edges: bool = False
    register_duplicate_vertices: bool = True


class AnalyzeRequest(BaseModel):
    filename: Optional[str] = Field(None, description="Name of the UF source file")
    events: List[Dict[str, Any]] = Field(..., description="Declaration events")
    parameters: Dict[str, int] = Field(default_factory=dict)
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class AnalyzeResponse(BaseModel):
    success: bool
    device_name: Optional[str] = None
    valid: bool
    aborted: bool
    symbol_table: Optional[Dict[str, Any]] = None
    device_graph: Optional[Dict[str, Any]] = None
    diagnostics: List[Dict[str, Any]] = []
    summary: Dict[str, Any] = {}


class ValidateResponse(BaseModel):
    ok: bool
    errors: Optional[str] = None


# ----------------------------------------------------------------------------
# FastAPI setup
# ----------------------------------------------------------------------------


app = FastAPI(title="UF Device Analyzer API", version="v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


MAX_BYTES = 10 * 1024 * 1024  # 10MB


@app.middleware("http")
async def limit_body_size(request: Request, call_next):  # type: ignore
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > MAX_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Payload too large"})
    return await call_next(request)


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {"status": "ok", "timestamp": datetime.now(tz=timezone.utc).isoformat()}


@app.get("/api/version")
def version() -> Dict[str, str]:
    return {"version": ufc.VERSION, "api_version": "v1"}


@app.get("/api/help")
def help_() -> Dict[str, Any]:
    commands = [
        "POST /api/analyze",
        "POST /api/validate",
        "GET /api/version",
        "GET /api/help",
        "GET /api/health",
    ]
    usage = "python ufc.py <events.json> [-p params] [-o model.json] [--verbose]"
    return {"commands": commands, "usage": usage}


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(
    req: AnalyzeRequest, _: None = Depends(rate_limit_dep)
) -> AnalyzeResponse:
    try:
        result = AnalyzerService.analyze_events(
            req.events,
            filename=req.filename,
            parameters=req.parameters,
            drop_invalid_edges=req.options.drop_invalid_edges,
            register_duplicate_vertices=req.options.register_duplicate_vertices,
        )
    except EventStreamError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ParameterError as exc:
        raise HTTPException(
            status_code=422, detail=f"Invalid parameters: {exc}"
        ) from exc
    return AnalyzeResponse(**result)


@app.post("/api/validate", response_model=ValidateResponse)
def validate(
    req: AnalyzeRequest, _: None = Depends(rate_limit_dep)
) -> ValidateResponse:
    errors = AnalyzerService.validate_events(req.events)
    return ValidateResponse(ok=errors is None, errors=errors)


@app.get("/")
def root() -> Dict[str, Any]:
    return {
        "message": "UF Device Analyzer API",
        "docs": "/docs",
        "health": "/api/health",
    }
