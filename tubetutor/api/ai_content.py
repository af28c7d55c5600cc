from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tubetutor.core.config import AIConfig
from tubetutor.db.session import get_db
from tubetutor.models.video import Video
from tubetutor.services.ai_content import ContentOrchestrator, InFlightRequests
from tubetutor.services.content_store import SqlContentStore
from tubetutor.services.errors import AIContentError, ConfigurationError, ParseFailure, ProviderError
from tubetutor.services.llm.providers import ProviderFactory, available_providers, build_provider
from tubetutor.services.study_aids import (
    ContentType,
    GenerationOptions,
    GenerationRequest,
    NotesFormat,
)
from tubetutor.services.transcript import TranscriptSource

router = APIRouter(tags=["ai_content"])

# Shared across requests so concurrent calls for the same video/kind collapse.
_in_flight = InFlightRequests()


# -----------------------
# Dependencies (overridden in tests)
# -----------------------
def get_ai_config() -> AIConfig:
    return AIConfig.from_env()


def get_transcript_source() -> TranscriptSource:
    return TranscriptSource()


def get_provider_factory() -> ProviderFactory:
    return build_provider


def get_orchestrator(
    db: Session = Depends(get_db),
    config: AIConfig = Depends(get_ai_config),
    transcript_source: TranscriptSource = Depends(get_transcript_source),
    provider_factory: ProviderFactory = Depends(get_provider_factory),
) -> ContentOrchestrator:
    return ContentOrchestrator(
        config,
        transcript_source=transcript_source,
        store=SqlContentStore(db),
        provider_factory=provider_factory,
        in_flight=_in_flight,
    )


# -----------------------
# Schemas
# -----------------------
ProviderName = Literal["gemini", "openai", "ollama"]


class SummaryRequest(BaseModel):
    provider: ProviderName | None = None
    force: bool = False


class QuizRequest(BaseModel):
    provider: ProviderName | None = None
    question_count: int = Field(default=5, ge=3, le=10)
    force: bool = False


class NotesRequest(BaseModel):
    provider: ProviderName | None = None
    format: NotesFormat = NotesFormat.BULLET
    force: bool = False


class TutorRequest(BaseModel):
    message: str = Field(min_length=1)
    provider: ProviderName | None = None


class TutorResponse(BaseModel):
    ok: bool
    answer: str


class ProvidersResponse(BaseModel):
    ok: bool
    providers: list[str]
    default_provider: str


# -----------------------
# Helpers
# -----------------------
def _video_or_404(db: Session, video_id: str) -> Video:
    video = db.query(Video).filter(Video.yt_video_id == video_id).first()
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


def _base_request(video: Video, content_type: ContentType, provider: str | None, **kwargs) -> GenerationRequest:
    return GenerationRequest(
        video_id=video.yt_video_id,
        title=video.title or "",
        description=video.description or "",
        content_type=content_type,
        video_duration_seconds=video.duration_seconds or 0,
        provider=provider,
        **kwargs,
    )


def _http_error(e: AIContentError) -> HTTPException:
    if isinstance(e, ConfigurationError):
        status = 400
    elif isinstance(e, ParseFailure):
        status = 422
    elif isinstance(e, ProviderError):
        status = 502
    else:
        status = 500

    return HTTPException(
        status_code=status,
        detail={
            "error": type(e).__name__,
            "stage": e.stage,
            "message": e.message,
            "provider": getattr(e, "provider_id", None),
        },
    )


# -----------------------
# Providers / general tutor
# -----------------------
@router.get("/ai/providers", response_model=ProvidersResponse)
def list_providers(config: AIConfig = Depends(get_ai_config)) -> ProvidersResponse:
    return ProvidersResponse(ok=True, providers=available_providers(config), default_provider=config.default_provider)


@router.post("/ai/tutor", response_model=TutorResponse)
def general_tutor(req: TutorRequest, orch: ContentOrchestrator = Depends(get_orchestrator)) -> TutorResponse:
    try:
        answer = orch.ask_general_tutor(req.message, provider=req.provider)
    except AIContentError as e:
        raise _http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TutorResponse(ok=True, answer=answer)


# -----------------------
# Per-video study aids
# -----------------------
@router.post("/videos/{video_id}/summary")
def generate_summary(
    video_id: str,
    req: SummaryRequest | None = None,
    db: Session = Depends(get_db),
    orch: ContentOrchestrator = Depends(get_orchestrator),
):
    req = req or SummaryRequest()
    video = _video_or_404(db, video_id)
    request = _base_request(video, ContentType.SUMMARY, req.provider, force=req.force)

    cached = None if req.force else orch.lookup(request)
    try:
        result = cached or orch.generate_summary(request)
    except AIContentError as e:
        raise _http_error(e) from e

    return {"ok": True, "video_id": video_id, "cached": cached is not None, **result.to_dict()}


@router.post("/videos/{video_id}/quiz")
def generate_quiz(
    video_id: str,
    req: QuizRequest | None = None,
    db: Session = Depends(get_db),
    orch: ContentOrchestrator = Depends(get_orchestrator),
):
    req = req or QuizRequest()
    video = _video_or_404(db, video_id)
    request = _base_request(
        video,
        ContentType.QUIZ,
        req.provider,
        force=req.force,
        options=GenerationOptions(question_count=req.question_count),
    )

    cached = None if req.force else orch.lookup(request)
    try:
        result = cached or orch.generate_quiz(request)
    except AIContentError as e:
        raise _http_error(e) from e

    return {"ok": True, "video_id": video_id, "cached": cached is not None, **result.to_dict()}


@router.delete("/videos/{video_id}/quiz")
def clear_quiz(video_id: str, db: Session = Depends(get_db)):
    _video_or_404(db, video_id)
    deleted = SqlContentStore(db).delete(video_id, ContentType.QUIZ.value)
    return {"ok": True, "video_id": video_id, "deleted": deleted}


@router.post("/videos/{video_id}/notes")
def generate_notes(
    video_id: str,
    req: NotesRequest | None = None,
    db: Session = Depends(get_db),
    orch: ContentOrchestrator = Depends(get_orchestrator),
):
    req = req or NotesRequest()
    video = _video_or_404(db, video_id)
    request = _base_request(
        video,
        ContentType.NOTES,
        req.provider,
        force=req.force,
        options=GenerationOptions(notes_format=req.format),
    )

    cached = None if req.force else orch.lookup(request)
    try:
        result = cached or orch.generate_notes(request)
    except AIContentError as e:
        raise _http_error(e) from e

    return {"ok": True, "video_id": video_id, "cached": cached is not None, **result.to_dict()}


@router.post("/videos/{video_id}/tutor", response_model=TutorResponse)
def video_tutor(
    video_id: str,
    req: TutorRequest,
    db: Session = Depends(get_db),
    orch: ContentOrchestrator = Depends(get_orchestrator),
) -> TutorResponse:
    video = _video_or_404(db, video_id)
    request = _base_request(
        video,
        ContentType.TUTOR,
        req.provider,
        options=GenerationOptions(question=req.message),
    )
    try:
        answer = orch.ask_tutor(request)
    except AIContentError as e:
        raise _http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TutorResponse(ok=True, answer=answer)
