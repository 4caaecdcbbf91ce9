import os

# Deterministic, offline-friendly tests
os.environ.setdefault("LANGFUSE_ENABLED", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from services.quiz_generate.app.main import app, get_pipeline
from services.quiz_generate.app.pipeline import PipelineConfig, QuizPipeline

VALID_REQUEST = {
    "assunto": "Fotossíntese",
    "materia": "Biologia",
    "estilo": "ENEM",
    "dificuldade": "Média",
}


def gemini_body(text: Any) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class StubGemini:
    """MockTransport handler: counts outbound calls and replays one response."""

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)


class RecordingDiagnostics:
    def __init__(self) -> None:
        self.records: List[tuple] = []

    def record(self, message: str, **fields: Any) -> None:
        self.records.append((message, fields))


def make_pipeline(
    stub: StubGemini,
    *,
    api_key: Optional[str] = "test-key",
    validate_shape: bool = False,
    diagnostics: Optional[RecordingDiagnostics] = None,
) -> QuizPipeline:
    config = PipelineConfig(
        api_key=api_key,
        model="gemini-test",
        api_base="https://gemini.test/v1beta",
        validate_shape=validate_shape,
    )
    return QuizPipeline(
        config, transport=httpx.MockTransport(stub), diagnostics=diagnostics
    )


@pytest.fixture
def diagnostics() -> RecordingDiagnostics:
    return RecordingDiagnostics()


@pytest.fixture
def make_client(diagnostics):
    """Build a TestClient whose pipeline talks to a StubGemini."""

    def _make(stub: StubGemini, **kwargs: Any) -> TestClient:
        kwargs.setdefault("diagnostics", diagnostics)
        pipeline = make_pipeline(stub, **kwargs)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
