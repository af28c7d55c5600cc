# tubetutor/services/transcript.py
from __future__ import annotations

import html
import logging
import math
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

from youtube_transcript_api import (
    NoTranscriptFound,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)
from youtube_transcript_api.proxies import GenericProxyConfig

from tubetutor.core.youtube_settings import youtube_settings

logger = logging.getLogger(__name__)


class TranscriptNotFound(Exception):
    pass


@dataclass(frozen=True)
class TranscriptSegment:
    start: float
    duration: float
    text: str


@dataclass(frozen=True)
class Transcript:
    available: bool
    text: str = ""
    segments: tuple[TranscriptSegment, ...] = ()
    error: str | None = None

    @classmethod
    def unavailable(cls, reason: str) -> "Transcript":
        return cls(available=False, text="", segments=(), error=reason)


# Raw items follow the transcript-service contract: offsets/durations in milliseconds.
TranscriptFetcher = Callable[[str], list[dict[str, Any]]]


# -----------------------------
# Cleaning + normalization
# -----------------------------
_BRACKETED_RE = re.compile(r"\[[^\]]*\]")


def _normalize_space(s: str) -> str:
    s = (s or "").replace("\u200b", " ")
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _segments_to_text(segments: list[TranscriptSegment] | tuple[TranscriptSegment, ...]) -> str:
    """
    Join segment texts with single spaces, dropping bracketed non-speech
    annotations like [Music] / [Applause].
    """
    joined = " ".join(seg.text for seg in segments)
    return _normalize_space(_BRACKETED_RE.sub(" ", joined))


def segments_from_items(items: list[dict[str, Any]]) -> list[TranscriptSegment]:
    """Malformed items (not a mapping, non-numeric offset/duration) are skipped."""
    segments: list[TranscriptSegment] = []
    for item in items or []:
        if not isinstance(item, dict):
            logger.debug(f"Skipping transcript item of type {type(item).__name__}")
            continue
        txt = _normalize_space(html.unescape(str(item.get("text") or "")))
        if not txt:
            continue
        try:
            start = max(0.0, float(item.get("offset") or 0) / 1000.0)
            duration = max(0.0, float(item.get("duration") or 0) / 1000.0)
            if not (math.isfinite(start) and math.isfinite(duration)):
                raise ValueError("non-finite timing")
        except (TypeError, ValueError):
            logger.debug(f"Skipping transcript item with bad timing: {item!r}")
            continue
        segments.append(TranscriptSegment(start=start, duration=duration, text=txt))

    segments.sort(key=lambda s: s.start)
    return segments


# -----------------------------
# Default fetcher (youtube-transcript-api)
# -----------------------------
def _proxy_config(proxy_url: str | None) -> GenericProxyConfig | None:
    if not proxy_url:
        return None
    return GenericProxyConfig(http_url=proxy_url, https_url=proxy_url)


def fetch_youtube_transcript_items(video_id: str) -> list[dict[str, Any]]:
    """
    Fetch captions via youtube-transcript-api and return them in the
    millisecond-based item shape.

    Permanent failures (disabled / not found / unavailable) are raised at once;
    anything else is retried with linear backoff.
    """
    api = YouTubeTranscriptApi(proxy_config=_proxy_config(youtube_settings.proxy_url))
    languages = list(youtube_settings.languages) or ["en"]
    attempts = max(1, youtube_settings.max_retries)
    last_err: Exception | None = None

    for attempt in range(1, attempts + 1):
        try:
            fetched = api.fetch(video_id, languages=languages)
            return [
                {
                    "offset": int(round(float(s["start"]) * 1000)),
                    "duration": int(round(float(s["duration"]) * 1000)),
                    "text": s["text"],
                }
                for s in fetched.to_raw_data()
            ]
        except (TranscriptsDisabled, NoTranscriptFound, VideoUnavailable) as e:
            raise TranscriptNotFound(f"{type(e).__name__}: transcript not available for {video_id}") from e
        except Exception as e:
            last_err = e
            if attempt < attempts:
                time.sleep(youtube_settings.backoff_sec * attempt)

    raise TranscriptNotFound(str(last_err) if last_err else "Transcript fetch failed")


class TranscriptSource:
    """
    Fetches and normalizes a transcript for a video id.

    fetch() never raises: a missing transcript is a normal, degraded input and
    is reported as Transcript(available=False, error=...).
    """

    def __init__(self, fetcher: TranscriptFetcher | None = None) -> None:
        self._fetcher = fetcher or fetch_youtube_transcript_items

    def fetch(self, video_id: str) -> Transcript:
        logger.info(f"Fetching transcript for video: {video_id}")
        try:
            items = self._fetcher(video_id)
            segments = segments_from_items(items)
        except Exception as e:
            logger.info(f"Could not fetch transcript for video {video_id}: {e}")
            return Transcript.unavailable(str(e) or type(e).__name__)

        if not segments:
            logger.info(f"No transcript available for video {video_id}")
            return Transcript.unavailable("No transcript available for this video")

        text = _segments_to_text(segments)
        if not text:
            return Transcript.unavailable("Transcript contains no speech")

        logger.info(f"Transcript fetched for {video_id}: {len(segments)} segments, {len(text)} characters")
        return Transcript(available=True, text=text, segments=tuple(segments))
