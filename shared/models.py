"""Pydantic data models for the quiz generation service.

These models describe the request accepted from callers, the quiz question
the model is asked to produce, the error body returned on failure, and the
request envelope sent to the Gemini ``generateContent`` endpoint.

Request fields are deliberately untyped: they are passed into the prompt
as-is and only checked for presence.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuizRequest(BaseModel):
    """Caller payload for ``POST /api/generate``.

    Attributes:
        assunto: Topic of the question.
        materia: Subject the topic belongs to.
        estilo: Exam style the question should imitate.
        dificuldade: Difficulty level.
    """

    model_config = ConfigDict(extra="ignore")

    assunto: Optional[Any] = None
    materia: Optional[Any] = None
    estilo: Optional[Any] = None
    dificuldade: Optional[Any] = None


class QuizQuestion(BaseModel):
    """A single multiple-choice question.

    ``answer`` is the zero-based index of the correct entry in ``options``.
    """

    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=4, max_length=4)
    answer: int = Field(..., ge=0, le=3)
    explanation: str = Field(..., min_length=1)


class ErrorBody(BaseModel):
    """Uniform error payload returned to callers."""

    error: str


class GeminiPart(BaseModel):
    text: str


class GeminiContent(BaseModel):
    parts: List[GeminiPart]


class GeminiRequest(BaseModel):
    """Body of a Gemini ``generateContent`` call with a single user turn."""

    contents: List[GeminiContent]

    @classmethod
    def from_prompt(cls, prompt: str) -> "GeminiRequest":
        return cls(contents=[GeminiContent(parts=[GeminiPart(text=prompt)])])
