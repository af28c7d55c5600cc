from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Hashable, Iterator, TypeVar

from tubetutor.core.config import AIConfig
from tubetutor.services.content_store import ContentStore
from tubetutor.services.errors import AIContentError, ParseFailure, ProviderError
from tubetutor.services.llm.parsers import ResponseParser
from tubetutor.services.llm.prompts import (
    build_general_tutor_prompt,
    build_notes_prompt,
    build_quiz_prompt,
    build_summary_prompt,
    build_tutor_prompt,
)
from tubetutor.services.llm.providers import ProviderFactory, build_provider
from tubetutor.services.study_aids import (
    ContentType,
    GenerationRequest,
    NotesFormat,
    NotesResult,
    QuizResult,
    SummaryResult,
)
from tubetutor.services.timestamps import TimestampAligner
from tubetutor.services.transcript import Transcript, TranscriptSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRequests:
    """
    Collapses concurrent generations for the same key into one: the first
    caller runs the work, later callers block and receive the same result
    (or the same exception).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[Hashable, Future] = {}

    def run(self, key: Hashable, fn: Callable[[], T]) -> T:
        with self._lock:
            fut = self._pending.get(key)
            owner = fut is None
            if owner:
                fut = Future()
                self._pending[key] = fut

        if not owner:
            logger.info(f"Joining in-flight generation for {key}")
            return fut.result()

        try:
            result = fn()
        except BaseException as e:
            fut.set_exception(e)
            raise
        else:
            fut.set_result(result)
            return result
        finally:
            with self._lock:
                self._pending.pop(key, None)

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)


@contextmanager
def _stage(name: str, content_type: ContentType) -> Iterator[None]:
    try:
        yield
    except AIContentError as e:
        if e.stage is None:
            e.stage = name
        if e.content_type is None:
            e.content_type = content_type.value
        raise


def _variant(request: GenerationRequest, content_type: ContentType) -> str:
    if content_type == ContentType.QUIZ:
        return str(int(request.options.question_count))
    if content_type == ContentType.NOTES:
        return NotesFormat(request.options.notes_format).value
    return ""


class ContentOrchestrator:
    """
    Entry points for AI study aids:

        check cache -> fetch transcript (if needed) -> build prompt ->
        invoke provider -> parse -> align timestamps (summary) -> store

    Stateless between calls and never retries. ConfigurationError,
    ProviderError and ParseFailure reach the caller with `stage` and
    `content_type` set. An unavailable transcript is not an error.
    """

    def __init__(
        self,
        config: AIConfig,
        *,
        transcript_source: TranscriptSource | None = None,
        store: ContentStore | None = None,
        aligner: TimestampAligner | None = None,
        parser: ResponseParser | None = None,
        provider_factory: ProviderFactory = build_provider,
        in_flight: InFlightRequests | None = None,
    ) -> None:
        self.config = config
        self.transcript_source = transcript_source
        self.store = store
        self.aligner = aligner or TimestampAligner()
        self.parser = parser or ResponseParser()
        self.provider_factory = provider_factory
        self.in_flight = in_flight or InFlightRequests()

    # -----------------------
    # Public API
    # -----------------------
    def generate_summary(self, request: GenerationRequest) -> SummaryResult:
        return self.in_flight.run(self._key(request, ContentType.SUMMARY), lambda: self._summary(request))

    def generate_quiz(self, request: GenerationRequest) -> QuizResult:
        return self.in_flight.run(self._key(request, ContentType.QUIZ), lambda: self._quiz(request))

    def generate_notes(self, request: GenerationRequest) -> NotesResult:
        return self.in_flight.run(self._key(request, ContentType.NOTES), lambda: self._notes(request))

    def ask_tutor(self, request: GenerationRequest) -> str:
        question = (request.options.question or "").strip()
        if not question:
            raise ValueError("Tutor question is required")

        transcript = self._transcript(request)
        summary = request.options.summary_ref or self._cached_summary_text(request.video_id) or ""

        if not (request.title or transcript.available or summary):
            prompt = build_general_tutor_prompt(question)
        else:
            prompt = build_tutor_prompt(
                request.title,
                request.description,
                transcript.text,
                summary,
                question,
                max_transcript_chars=self.config.transcript_max_chars,
            )

        raw, _ = self._invoke(request, ContentType.TUTOR, prompt)
        with _stage("parse", ContentType.TUTOR):
            return self.parser.tutor(raw)

    def ask_general_tutor(self, question: str, provider: Any = None) -> str:
        question = (question or "").strip()
        if not question:
            raise ValueError("Tutor question is required")

        request = GenerationRequest(video_id="", content_type=ContentType.TUTOR, provider=provider)
        raw, _ = self._invoke(request, ContentType.TUTOR, build_general_tutor_prompt(question))
        with _stage("parse", ContentType.TUTOR):
            return self.parser.tutor(raw)

    def lookup(self, request: GenerationRequest) -> SummaryResult | QuizResult | NotesResult | None:
        """Stored result for the request's cache key, if any (no provider call)."""
        ct = ContentType(request.content_type)
        if ct == ContentType.TUTOR:
            return None
        payload = self._cached(request.video_id, ct, _variant(request, ct))
        if payload is None:
            return None
        return self._from_payload(ct, payload)

    # -----------------------
    # Pipelines
    # -----------------------
    def _summary(self, request: GenerationRequest) -> SummaryResult:
        if not request.force:
            cached = self.lookup(replace(request, content_type=ContentType.SUMMARY))
            if isinstance(cached, SummaryResult):
                logger.info(f"Summary cache hit for video {request.video_id}")
                return cached

        transcript = self._transcript(request)
        logger.info(f"Generating summary for video {request.video_id}. Transcript length: {len(transcript.text)} characters")

        prompt = build_summary_prompt(
            request.title,
            request.description,
            transcript.text,
            max_transcript_chars=self.config.transcript_max_chars,
        )
        raw, provider = self._invoke(request, ContentType.SUMMARY, prompt)

        with _stage("parse", ContentType.SUMMARY):
            content = self.parser.summary(raw) or raw.strip()
        timestamps = self.aligner.align(content, transcript.segments, request.video_duration_seconds)

        result = SummaryResult(content=content, timestamps=tuple(timestamps), provider=provider)
        self._save(request.video_id, ContentType.SUMMARY, "", result.to_dict(), provider)
        return result

    def _quiz(self, request: GenerationRequest) -> QuizResult:
        count = int(request.options.question_count)
        if count < 1:
            raise ValueError("question_count must be >= 1")

        if not request.force:
            cached = self.lookup(replace(request, content_type=ContentType.QUIZ))
            if isinstance(cached, QuizResult):
                logger.info(f"Quiz cache hit for video {request.video_id} ({count} questions)")
                return cached

        source = self._quiz_source(request)
        raw, provider = self._invoke(request, ContentType.QUIZ, build_quiz_prompt(source, count))

        with _stage("parse", ContentType.QUIZ):
            questions = self.parser.quiz(raw)
            if not questions:
                raise ParseFailure("Provider response contained no valid quiz questions")

        if len(questions) < count:
            # Under-delivery is accepted as-is; no top-up request is made.
            logger.info(f"Quiz for video {request.video_id}: {len(questions)} of {count} requested questions were valid")

        result = QuizResult(questions=tuple(questions), provider=provider)
        self._save(request.video_id, ContentType.QUIZ, str(count), result.to_dict(), provider)
        return result

    def _quiz_source(self, request: GenerationRequest) -> str:
        """Quiz prompts are built from a summary, not the raw transcript, to keep them short."""
        if request.options.summary_ref and request.options.summary_ref.strip():
            return request.options.summary_ref.strip()

        stored = self._cached_summary_text(request.video_id)
        if stored:
            return stored

        logger.info(f"No summary found for video {request.video_id}, generating summary first for quiz creation")
        summary = self.generate_summary(replace(request, content_type=ContentType.SUMMARY, force=False))
        return summary.content

    def _notes(self, request: GenerationRequest) -> NotesResult:
        notes_format = NotesFormat(request.options.notes_format)

        if not request.force:
            cached = self.lookup(replace(request, content_type=ContentType.NOTES))
            if isinstance(cached, NotesResult):
                logger.info(f"Notes cache hit for video {request.video_id} ({notes_format.value})")
                return cached

        transcript = self._transcript(request)
        logger.info(f"Generating {notes_format.value} notes for video {request.video_id}")

        prompt = build_notes_prompt(
            request.title,
            request.description,
            transcript.text,
            notes_format,
            max_transcript_chars=self.config.transcript_max_chars,
        )
        raw, provider = self._invoke(request, ContentType.NOTES, prompt)

        with _stage("parse", ContentType.NOTES):
            result = replace(self.parser.notes(raw, notes_format), provider=provider)

        self._save(request.video_id, ContentType.NOTES, notes_format.value, result.to_dict(), provider)
        return result

    # -----------------------
    # Helpers
    # -----------------------
    def _invoke(self, request: GenerationRequest, content_type: ContentType, prompt: str) -> tuple[str, str]:
        candidates = [request.provider, *request.fallback_providers]

        for i, provider_id in enumerate(candidates):
            with _stage("provider", content_type):
                client = self.provider_factory(provider_id, self.config)
            try:
                with _stage("invoke", content_type):
                    raw = client.generate(prompt, content_type)
                return raw, client.provider_id.value
            except ProviderError as e:
                if i + 1 < len(candidates):
                    logger.warning(f"{e}; falling back to {candidates[i + 1]}")
                    continue
                raise

        raise AssertionError("unreachable: at least one provider candidate")

    def _transcript(self, request: GenerationRequest) -> Transcript:
        if request.transcript is not None:
            return request.transcript
        if self.transcript_source is None or not request.video_id:
            return Transcript.unavailable("No transcript source configured")
        return self.transcript_source.fetch(request.video_id)

    def _key(self, request: GenerationRequest, content_type: ContentType) -> tuple:
        # Only requests that would make the same provider call may share one generation.
        provider = str(getattr(request.provider, "value", request.provider) or self.config.default_provider).lower()
        fallbacks = tuple(str(getattr(p, "value", p)).lower() for p in request.fallback_providers)
        return (
            request.video_id,
            content_type.value,
            _variant(request, content_type),
            provider,
            fallbacks,
            request.force,
        )

    def _cached(self, video_id: str, content_type: ContentType, variant: str) -> dict[str, Any] | None:
        if self.store is None or not video_id:
            return None
        return self.store.get(video_id, content_type.value, variant)

    def _cached_summary_text(self, video_id: str) -> str | None:
        payload = self._cached(video_id, ContentType.SUMMARY, "")
        content = (payload or {}).get("content")
        return str(content).strip() if content else None

    def _from_payload(self, content_type: ContentType, payload: dict[str, Any]):
        try:
            if content_type == ContentType.SUMMARY:
                return SummaryResult.from_dict(payload)
            if content_type == ContentType.QUIZ:
                result = QuizResult.from_dict(payload)
                return result if result.questions else None
            return NotesResult.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable stored {content_type.value}: {e}")
            return None

    def _save(self, video_id: str, content_type: ContentType, variant: str, payload: dict[str, Any], provider: str) -> None:
        if self.store is None or not video_id:
            return
        self.store.put(video_id, content_type.value, variant, payload, provider)
