from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tubetutor.services.errors import QuizValidationError
from tubetutor.services.timestamps import Timestamp
from tubetutor.services.transcript import Transcript


class ContentType(str, Enum):
    SUMMARY = "summary"
    QUIZ = "quiz"
    NOTES = "notes"
    TUTOR = "tutor"


class NotesFormat(str, Enum):
    BULLET = "bullet"
    OUTLINE = "outline"
    DETAILED = "detailed"


@dataclass(frozen=True)
class GenerationOptions:
    question_count: int = 5
    notes_format: NotesFormat = NotesFormat.BULLET
    summary_ref: str | None = None
    question: str | None = None


@dataclass(frozen=True)
class GenerationRequest:
    """
    One generation call. Transient; never persisted.

    provider:            ProviderId, its string value, or None for the configured default
    force:               skip the cache check and regenerate
    fallback_providers:  explicit opt-in; tried in order after a ProviderError
    """

    video_id: str
    title: str = ""
    description: str = ""
    content_type: ContentType = ContentType.SUMMARY
    transcript: Transcript | None = None
    video_duration_seconds: int = 0
    provider: Any = None
    options: GenerationOptions = field(default_factory=GenerationOptions)
    force: bool = False
    fallback_providers: tuple[Any, ...] = ()


@dataclass(frozen=True)
class SummaryResult:
    content: str
    timestamps: tuple[Timestamp, ...] = ()
    provider: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "timestamps": [t.to_dict() for t in self.timestamps],
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SummaryResult":
        return cls(
            content=str(data.get("content") or ""),
            timestamps=tuple(Timestamp.from_dict(t) for t in data.get("timestamps") or []),
            provider=data.get("provider"),
        )


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: tuple[str, ...]
    correct_answer_index: int
    explanation: str = "No explanation provided."

    def __post_init__(self) -> None:
        if not self.question.strip():
            raise QuizValidationError("question text is empty")
        if len(self.options) != 4:
            raise QuizValidationError(f"expected 4 options, got {len(self.options)}")
        if not 0 <= self.correct_answer_index < len(self.options):
            raise QuizValidationError(f"correct_answer_index out of range: {self.correct_answer_index}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correct_answer_index": self.correct_answer_index,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizQuestion":
        return cls(
            question=str(data.get("question") or ""),
            options=tuple(str(o) for o in data.get("options") or []),
            correct_answer_index=int(data.get("correct_answer_index", -1)),
            explanation=str(data.get("explanation") or "No explanation provided."),
        )


@dataclass(frozen=True)
class QuizResult:
    questions: tuple[QuizQuestion, ...]
    provider: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"questions": [q.to_dict() for q in self.questions], "provider": self.provider}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizResult":
        return cls(
            questions=tuple(QuizQuestion.from_dict(q) for q in data.get("questions") or []),
            provider=data.get("provider"),
        )


@dataclass(frozen=True)
class NotesSection:
    title: str
    content: str
    timestamp_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "content": self.content, "timestamp_seconds": self.timestamp_seconds}


@dataclass(frozen=True)
class NotesResult:
    content: str
    format: NotesFormat
    sections: tuple[NotesSection, ...]
    provider: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "format": self.format.value,
            "sections": [s.to_dict() for s in self.sections],
            "provider": self.provider,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotesResult":
        return cls(
            content=str(data.get("content") or ""),
            format=NotesFormat(data.get("format") or NotesFormat.BULLET.value),
            sections=tuple(
                NotesSection(
                    title=str(s.get("title") or ""),
                    content=str(s.get("content") or ""),
                    timestamp_seconds=int(s.get("timestamp_seconds") or 0),
                )
                for s in data.get("sections") or []
            ),
            provider=data.get("provider"),
        )
