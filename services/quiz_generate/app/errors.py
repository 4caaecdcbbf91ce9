"""Error types raised by the quiz generation pipeline.

Every error carries the HTTP status returned to the caller and the text
placed in the ``{"error": ...}`` body.
"""

from __future__ import annotations


class QuizGenerationError(Exception):
    """Base class for all pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MethodNotAllowed(QuizGenerationError):
    """Raised when the request verb is not POST."""

    def __init__(self, method: str) -> None:
        super().__init__("Method Not Allowed", status_code=405)
        self.method = method


class ConfigurationError(QuizGenerationError):
    """Raised when the Gemini API key is not configured."""

    def __init__(self) -> None:
        super().__init__("API key not configured", status_code=500)


class InvalidInput(QuizGenerationError):
    """Raised when a required request field is missing or falsy."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__("Missing required fields", status_code=400)
        self.missing = missing


class UpstreamError(QuizGenerationError):
    """Raised when Gemini answers with a non-success HTTP status.

    ``upstream_status`` is Gemini's status; the caller always gets a 500.
    """

    def __init__(self, upstream_status: int) -> None:
        super().__init__(f"Gemini API responded with status {upstream_status}")
        self.upstream_status = upstream_status


class EmptyUpstreamResponse(QuizGenerationError):
    """Raised when Gemini succeeds but carries no generated text."""

    def __init__(self) -> None:
        super().__init__(
            "A API do Gemini retornou uma resposta vazia ou em formato inesperado."
        )


class InvalidUpstreamShape(QuizGenerationError):
    """Raised when shape validation is enabled and the parsed JSON is not a quiz question."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Generated question has an invalid shape: {reason}")


class GenerationFailed(QuizGenerationError):
    """Catch-all wrapper for anything that fails once the upstream call starts."""

    PREFIX = "Failed to generate question. "

    def __init__(self, cause: BaseException) -> None:
        detail = cause.message if isinstance(cause, QuizGenerationError) else str(cause)
        super().__init__(self.PREFIX + detail, status_code=500)
        self.cause = cause
