import os

# Must be set before tubetutor.core.config is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import tubetutor.models  # noqa: F401  (registers tables on Base.metadata)
from tubetutor.api import ai_content as ai_api
from tubetutor.core.config import AIConfig
from tubetutor.db.base import Base
from tubetutor.db.session import get_db
from tubetutor.main import app
from tubetutor.models.video import Video
from tubetutor.services.errors import ConfigurationError
from tubetutor.services.llm.base import ProviderClient, ProviderId
from tubetutor.services.llm.providers import parse_provider_id
from tubetutor.services.study_aids import ContentType
from tubetutor.services.transcript import TranscriptSource

VIDEO_ID = "dQw4w9WgXcQ"

SUMMARY_RAW = (
    "SUMMARY: This video gives an overview of Python basics, walks through examples "
    "of list comprehensions and ends with best practices for readable code."
)

QUIZ_RAW = "\n\n".join(
    f"""QUESTION {i}:
What does concept {i} describe?
A) Something unrelated
B) The correct idea number {i}
C) A distractor
D) Another distractor

CORRECT: B
EXPLANATION: Concept {i} is covered in the video."""
    for i in range(1, 6)
)

NOTES_RAW = """## Introduction
- Python is a general purpose language
- The video targets beginners

## Key Concepts
- Lists hold ordered items
- Comprehensions build lists from iterables"""

TUTOR_RAW = "A list comprehension builds a new list from an iterable in one expression."


def default_responses() -> dict:
    return {
        ContentType.SUMMARY: SUMMARY_RAW,
        ContentType.QUIZ: QUIZ_RAW,
        ContentType.NOTES: NOTES_RAW,
        ContentType.TUTOR: TUTOR_RAW,
    }


class FakeProvider(ProviderClient):
    """Scripted provider: returns canned text per content type and records prompts."""

    def __init__(self, provider_id: ProviderId = ProviderId.GEMINI, responses: dict | None = None, error: Exception | None = None):
        self.provider_id = provider_id
        self.responses = responses if responses is not None else default_responses()
        self.error = error
        self.calls: list[tuple[ContentType, str]] = []

    def generate(self, prompt: str, content_type: ContentType) -> str:
        self.calls.append((content_type, prompt))
        if self.error is not None:
            raise self.error
        return self.responses[content_type]

    def prompts(self, content_type: ContentType) -> list[str]:
        return [p for ct, p in self.calls if ct == content_type]


class FakeProviders:
    """Provider factory that only knows the providers registered with add()."""

    def __init__(self) -> None:
        self.clients: dict[ProviderId, FakeProvider] = {}

    def add(self, provider_id: ProviderId = ProviderId.GEMINI, **kwargs) -> FakeProvider:
        client = FakeProvider(provider_id, **kwargs)
        self.clients[provider_id] = client
        return client

    def __call__(self, provider_id, config, transport=None) -> FakeProvider:
        pid = parse_provider_id(provider_id, default=config.default_provider)
        if pid not in self.clients:
            raise ConfigurationError(f"{pid.value} not configured")
        return self.clients[pid]


class FakeFetcher:
    """Transcript fetcher returning `count` segments spaced `spacing_ms` apart."""

    def __init__(self, count: int = 20, spacing_ms: int = 30_000, error: Exception | None = None):
        self.count = count
        self.spacing_ms = spacing_ms
        self.error = error
        self.calls: list[str] = []

    def items(self) -> list[dict]:
        texts = ["Welcome to this introduction", "Here are some examples", "Some best practices now"]
        return [
            {"offset": i * self.spacing_ms, "duration": self.spacing_ms, "text": f"{texts[i % 3]} part {i}"}
            for i in range(self.count)
        ]

    def __call__(self, video_id: str) -> list[dict]:
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        return self.items()


@pytest.fixture()
def ai_config() -> AIConfig:
    return AIConfig(gemini_api_key="test-gemini-key", openai_api_key="test-openai-key")


@pytest.fixture()
def providers() -> FakeProviders:
    p = FakeProviders()
    p.add(ProviderId.GEMINI)
    return p


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def video(db_session) -> Video:
    v = Video(
        yt_video_id=VIDEO_ID,
        title="Python Basics for Beginners",
        description="Lists, comprehensions and best practices.",
        duration_seconds=600,
    )
    db_session.add(v)
    db_session.commit()
    db_session.refresh(v)
    return v


@pytest.fixture()
def client(session_factory, ai_config, providers, fetcher):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[ai_api.get_ai_config] = lambda: ai_config
    app.dependency_overrides[ai_api.get_transcript_source] = lambda: TranscriptSource(fetcher=fetcher)
    app.dependency_overrides[ai_api.get_provider_factory] = lambda: providers
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
