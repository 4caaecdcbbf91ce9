"""Quiz generation microservice (Gemini REST).

Endpoints:
- `/api/generate`: generate one multiple-choice question. Only POST is
    accepted; other verbs on this path get a 405 from the pipeline itself.
- GET `/` and `/health`: liveness.

Request body: ``{"assunto", "materia", "estilo", "dificuldade"}``.
Response: whatever JSON object Gemini produced (intended shape
``{"question", "options"[4], "answer", "explanation"}``), or
``{"error": "..."}`` with 400/405/500.

The pipeline is built per request from a fresh ``Settings`` via the
``get_pipeline`` dependency, so tests can swap in a stubbed transport.
"""

from __future__ import annotations

import json
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.logger_setup import setup_logging
from shared.models import ErrorBody
from shared.settings import Settings
from shared.tracing import install_fastapi_tracing

from .pipeline import PipelineConfig, QuizPipeline

_settings = Settings()
setup_logging(level=_settings.log_level)
log = logging.getLogger("quiz.api")

app = FastAPI(title="Quiz Generation Service", version="0.1.0")
install_fastapi_tracing(app, service_name="quiz-generate")

origins = _settings.cors_origins()
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------- Global safety net: never crash the worker ----------
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all for any unhandled exception; return structured JSON 500."""
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorBody(
            error=f"An unexpected error occurred in quiz-generate: {exc}"
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Router-level errors (unknown verb, unknown path) use the same error body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorBody(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


# ---------------------------------------------------------------


@app.get("/")
def _root():
    return {"status": "ok", "service": "quiz-generate"}


@app.get("/health")
def _health():
    return {"status": "ok"}


def get_pipeline() -> QuizPipeline:
    return QuizPipeline(PipelineConfig.from_settings(Settings()))


async def _read_payload(request: Request):
    """Parse the JSON body; an empty or unreadable body counts as no fields."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {}


@app.api_route(
    "/api/generate",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
async def generate_question(
    request: Request, pipeline: QuizPipeline = Depends(get_pipeline)
) -> JSONResponse:
    """Generate one quiz question from the four request fields."""
    payload = await _read_payload(request) if request.method == "POST" else None
    result = await pipeline.run(request.method, payload)
    return JSONResponse(status_code=result.status_code, content=result.body)
