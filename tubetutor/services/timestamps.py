"""
Summary -> transcript timestamp alignment.

This is a navigation aid, not a content index: the only guarantees are
non-decreasing times that fall inside the video. Topic-to-time accuracy is
best effort.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Sequence

logger = logging.getLogger(__name__)

DEFAULT_KEY_TOPICS: tuple[str, ...] = (
    "introduction", "overview", "basics", "fundamentals", "concepts",
    "examples", "demonstration", "tutorial", "guide", "explanation",
    "practice", "exercise", "implementation", "code", "setup",
    "configuration", "installation", "best practices", "tips",
    "common mistakes", "troubleshooting", "advanced", "summary",
    "conclusion", "next steps", "recap", "review",
)

# Used when the video duration is unknown (typical 15-20 minute lesson).
ASSUMED_DURATION_SECONDS = 18 * 60

_TIMESTAMP_RE = re.compile(r"^(?:(\d{2,}):)?([0-5]\d):([0-5]\d)$")


@dataclass(frozen=True)
class StructurePoint:
    fraction: float
    label: str
    fallback_caption: str
    hints: tuple[str, ...]


DEFAULT_STRUCTURE: tuple[StructurePoint, ...] = (
    StructurePoint(0.05, "Introduction", "Introduction and overview",
                   ("introduction", "overview", "welcome", "getting started")),
    StructurePoint(0.15, "Overview", "Basic concepts and fundamentals",
                   ("basics", "fundamentals", "concepts", "principles")),
    StructurePoint(0.30, "Main Concepts", "Core topics and key ideas",
                   ("core concepts", "main topics", "key ideas", "fundamentals")),
    StructurePoint(0.50, "Examples", "Practical examples and demonstrations",
                   ("examples", "demonstration", "practical", "implementation")),
    StructurePoint(0.70, "Advanced Topics", "Advanced techniques and concepts",
                   ("advanced", "complex", "advanced techniques", "deep dive")),
    StructurePoint(0.85, "Best Practices", "Tips and best practices",
                   ("best practices", "tips", "recommendations", "guidelines")),
    StructurePoint(0.95, "Summary", "Summary and next steps",
                   ("summary", "conclusion", "recap", "next steps")),
)


@dataclass(frozen=True)
class Timestamp:
    time: str
    seconds: int
    caption: str

    @classmethod
    def at(cls, seconds: float, caption: str) -> "Timestamp":
        s = max(0, int(seconds))
        return cls(time=seconds_to_timestamp(s), seconds=s, caption=caption)

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "seconds": self.seconds, "caption": self.caption}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Timestamp":
        if data.get("seconds") is not None:
            return cls.at(int(data["seconds"]), str(data.get("caption") or ""))
        return cls.at(timestamp_to_seconds(str(data["time"])), str(data.get("caption") or ""))


# -----------------------------
# Time helpers
# -----------------------------
def seconds_to_timestamp(seconds: float) -> str:
    """MM:SS, or HH:MM:SS from one hour on. Fields are zero padded."""
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def is_valid_timestamp(value: str) -> bool:
    return bool(_TIMESTAMP_RE.match((value or "").strip()))


def timestamp_to_seconds(value: str) -> int:
    m = _TIMESTAMP_RE.match((value or "").strip())
    if not m:
        raise ValueError(f"Invalid timestamp: {value!r}")
    hours = int(m.group(1) or 0)
    return hours * 3600 + int(m.group(2)) * 60 + int(m.group(3))


def truncate_text(text: str, max_length: int) -> str:
    text = text or ""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def _phrase_re(phrase: str) -> re.Pattern[str]:
    return re.compile(r"\b" + r"\s+".join(re.escape(w) for w in phrase.split()) + r"\b", re.IGNORECASE)


class TimestampAligner:
    def __init__(
        self,
        key_topics: Sequence[str] = DEFAULT_KEY_TOPICS,
        structure: Sequence[StructurePoint] = DEFAULT_STRUCTURE,
        *,
        min_count: int = 5,
        max_count: int = 8,
        caption_chars: int = 50,
    ) -> None:
        self.key_topics = tuple(t.lower() for t in key_topics if t.strip())
        self.structure = tuple(structure)
        self.min_count = min_count
        self.max_count = max_count
        self.caption_chars = caption_chars
        self._patterns = {t: _phrase_re(t) for t in self.key_topics}

    def extract_key_topics(self, summary: str) -> list[str]:
        """Vocabulary entries present in the summary, in order of first appearance."""
        found: list[tuple[int, str]] = []
        for topic, pattern in self._patterns.items():
            m = pattern.search(summary or "")
            if m:
                found.append((m.start(), topic))
        found.sort()
        return [t for _, t in found]

    def target_count(self, segment_count: int) -> int:
        return min(self.max_count, max(self.min_count, segment_count // 10))

    def align(self, summary: str, segments: Sequence[Any], video_duration_seconds: float = 0) -> list[Timestamp]:
        if not segments:
            logger.info("No transcript segments available, generating estimated timestamps")
            return self.estimate(summary, video_duration_seconds)

        topics = self.extract_key_topics(summary)
        picked = self._relevant_segments(segments, topics)
        timestamps = [
            Timestamp.at(seg.start, truncate_text(" ".join(seg.text.split()), self.caption_chars))
            for seg in picked
        ]
        logger.info(f"Generated {len(timestamps)} timestamps from {len(segments)} transcript segments")
        return timestamps

    def _relevant_segments(self, segments: Sequence[Any], topics: list[str]) -> list[Any]:
        n = len(segments)
        target = self.target_count(n)
        chosen: dict[float, Any] = {}

        # 1) segments mentioning a key topic, in transcript order
        if topics:
            for seg in segments:
                if len(chosen) >= target:
                    break
                if seg.start in chosen:
                    continue
                if any(self._patterns[t].search(seg.text or "") for t in topics):
                    chosen[seg.start] = seg

        # 2) top up with evenly spaced segments
        if len(chosen) < target:
            step = max(1, n // target)
            for i in range(target):
                idx = i * step
                if idx >= n or len(chosen) >= target:
                    break
                seg = segments[idx]
                chosen.setdefault(seg.start, seg)

        return sorted(chosen.values(), key=lambda s: s.start)

    def estimate(self, summary: str, video_duration_seconds: float = 0) -> list[Timestamp]:
        duration = video_duration_seconds if video_duration_seconds and video_duration_seconds > 0 else ASSUMED_DURATION_SECONDS
        topics = self.extract_key_topics(summary)
        return [
            Timestamp.at(int(duration * point.fraction), self._describe(point, topics))
            for point in sorted(self.structure, key=lambda p: p.fraction)
        ]

    @staticmethod
    def _describe(point: StructurePoint, topics: list[str]) -> str:
        for topic in topics:
            if any(hint in topic for hint in point.hints):
                return f"{point.label}: {topic}"
        return point.fallback_caption
