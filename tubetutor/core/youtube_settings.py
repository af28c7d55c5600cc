import os
from dataclasses import dataclass, field

try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


def _languages() -> tuple[str, ...]:
    raw = os.getenv("YOUTUBE_TRANSCRIPT_LANGUAGES", "en")
    return tuple(x.strip() for x in raw.split(",") if x.strip())


@dataclass(frozen=True)
class YouTubeSettings:
    # Optional: proxy URL, e.g. http://127.0.0.1:7890
    proxy_url: str | None = os.getenv("YOUTUBE_PROXY_URL")

    # Preferred caption languages, in priority order
    languages: tuple[str, ...] = field(default_factory=_languages)

    # Retry knobs (transient failures only)
    max_retries: int = int(os.getenv("YOUTUBE_MAX_RETRIES", "3"))
    backoff_sec: float = float(os.getenv("YOUTUBE_BACKOFF_SEC", "1.5"))


youtube_settings = YouTubeSettings()
