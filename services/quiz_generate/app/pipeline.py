"""Question-generation pipeline.

One invocation runs a single forward path:

1. reject anything but POST;
2. require a configured Gemini API key;
3. require the four request fields to be present and truthy;
4. build the prompt;
5. POST it once to Gemini ``generateContent`` (no retry, no timeout);
6. turn a non-2xx status into ``UpstreamError``;
7. pull ``candidates[0].content.parts[0].text`` or raise ``EmptyUpstreamResponse``;
8. strip markdown fences;
9. ``json.loads`` the result;
10. return it untouched (optionally shape-checked, see ``validate_shape``).

Failures in steps 1-3 surface with their own status. Anything raised from
step 5 onward is recorded through the diagnostic sink and wrapped in
``GenerationFailed``.

The pipeline holds no mutable state; a new ``httpx.AsyncClient`` is opened
and closed for every call.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

import httpx
from pydantic import ValidationError

from shared.models import ErrorBody, GeminiRequest, QuizQuestion, QuizRequest
from shared.settings import Settings
from shared.tracing import estimate_tokens, log_event, span

from .errors import (
    ConfigurationError,
    EmptyUpstreamResponse,
    GenerationFailed,
    InvalidInput,
    InvalidUpstreamShape,
    MethodNotAllowed,
    QuizGenerationError,
    UpstreamError,
)
from .prompts import build_prompt

log = logging.getLogger("quiz.pipeline")

SUBMIT_METHOD = "POST"
REQUIRED_FIELDS = ("assunto", "materia", "estilo", "dificuldade")

_FENCE_RE = re.compile(r"```json|```")
# candidates[0].content.parts[0].text
_TEXT_PATH = ("candidates", 0, "content", "parts", 0, "text")


class DiagnosticSink(Protocol):
    """Receives diagnostic records (upstream error bodies, caught exceptions)."""

    def record(self, message: str, **fields: Any) -> None: ...


class LoggingDiagnostics:
    """Default sink: ERROR log line plus a tracing event."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._log = logger or log

    def record(self, message: str, **fields: Any) -> None:
        err = fields.get("error")
        self._log.error(
            "%s %s",
            message,
            " ".join(f"{k}={v!r}" for k, v in fields.items()),
            exc_info=err if isinstance(err, BaseException) else None,
        )
        log_event(
            "Diagnostic",
            payload={"message": message, **{k: str(v) for k, v in fields.items()}},
        )


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the pipeline needs from the environment, resolved up front."""

    api_key: Optional[str] = field(default=None, repr=False)
    model: str = "gemini-1.5-flash-latest"
    api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    validate_shape: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            api_base=settings.gemini_api_base,
            validate_shape=settings.quiz_validate_shape,
        )

    @property
    def endpoint(self) -> str:
        # The key travels as the ``key`` query parameter, never in this string
        return f"{self.api_base.rstrip('/')}/models/{self.model}:generateContent"


@dataclass
class PipelineResult:
    status_code: int
    body: Any


def is_present(value: Any) -> bool:
    """JSON-value truthiness: null/false/0/"" are missing, containers never are."""
    if isinstance(value, (list, dict)):
        return True
    return bool(value)


def missing_fields(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        return list(REQUIRED_FIELDS)
    return [name for name in REQUIRED_FIELDS if not is_present(payload.get(name))]


def extract_text(data: Any) -> Any:
    """Follow ``candidates[0].content.parts[0].text``; None if any hop is missing."""
    node = data
    for key in _TEXT_PATH:
        if isinstance(key, int):
            if not isinstance(node, list) or len(node) <= key:
                return None
        elif not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def strip_fences(text: str) -> str:
    """Drop every ```json / ``` marker and trim. Not a markdown parser."""
    return _FENCE_RE.sub("", text).strip()


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are not JSON and can't be sent back to the caller
    raise ValueError(f"Invalid JSON constant: {name}")


class QuizPipeline:
    """Validates a quiz request, asks Gemini for one question and parses the reply."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self.diagnostics = diagnostics or LoggingDiagnostics()

    async def run(self, method: str, payload: Any) -> PipelineResult:
        """Run one invocation and map the outcome to a status code and JSON body."""
        try:
            quiz = await self.generate(method, payload)
        except QuizGenerationError as e:
            return PipelineResult(
                status_code=e.status_code, body=ErrorBody(error=e.message).model_dump()
            )
        return PipelineResult(status_code=200, body=quiz)

    async def generate(self, method: str, payload: Any) -> Any:
        if method != SUBMIT_METHOD:
            raise MethodNotAllowed(method)

        if not self.config.api_key:
            raise ConfigurationError()

        missing = missing_fields(payload)
        if missing:
            log.info("Rejected quiz request, missing fields: %s", missing)
            raise InvalidInput(missing)

        req = QuizRequest.model_validate(payload)
        prompt = build_prompt(req.assunto, req.materia, req.estilo, req.dificuldade)

        try:
            return await self._generate_from_prompt(prompt)
        except Exception as e:
            self.diagnostics.record("Error calling Gemini API", error=e)
            raise GenerationFailed(e) from e

    async def _generate_from_prompt(self, prompt: str) -> Any:
        body = GeminiRequest.from_prompt(prompt).model_dump()
        async with httpx.AsyncClient(
            transport=self._transport, timeout=None, follow_redirects=True
        ) as client:
            with span(
                "quiz.upstream.call",
                model=self.config.model,
                prompt_tokens=estimate_tokens(prompt),
            ):
                resp = await client.post(
                    self.config.endpoint,
                    params={"key": self.config.api_key},
                    json=body,
                )

            if not resp.is_success:
                self.diagnostics.record(
                    "Gemini API Error", status_code=resp.status_code, body=resp.text
                )
                raise UpstreamError(resp.status_code)

            data = resp.json()

        raw_text = extract_text(data)
        if not raw_text:
            raise EmptyUpstreamResponse()

        quiz = json.loads(strip_fences(raw_text), parse_constant=_reject_constant)
        if self.config.validate_shape:
            self._check_shape(quiz)

        log_event(
            "Generation",
            payload={
                "type": "quiz",
                "model": self.config.model,
                "prompt_tokens": estimate_tokens(prompt),
                "output_tokens": estimate_tokens(raw_text),
            },
        )
        return quiz

    @staticmethod
    def _check_shape(quiz: Any) -> None:
        try:
            QuizQuestion.model_validate(quiz, strict=True)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ())) or "value"
            raise InvalidUpstreamShape(f"{loc}: {first.get('msg')}") from e
