import pytest
from youtube_transcript_api import TranscriptsDisabled

from tubetutor.services import transcript as transcript_mod
from tubetutor.services.transcript import (
    TranscriptNotFound,
    TranscriptSource,
    fetch_youtube_transcript_items,
    segments_from_items,
)


def test_segments_are_converted_to_seconds_and_sorted():
    items = [
        {"offset": 5000, "duration": 1500, "text": "second"},
        {"offset": 0, "duration": 2000, "text": "first"},
    ]
    segs = segments_from_items(items)
    assert [s.text for s in segs] == ["first", "second"]
    assert segs[1].start == 5.0
    assert segs[1].duration == 1.5


def test_fetch_cleans_text():
    items = [
        {"offset": 0, "duration": 1000, "text": "[Music]"},
        {"offset": 1000, "duration": 1000, "text": "rock &amp; roll"},
        {"offset": 2000, "duration": 1000, "text": "  is   here [Applause] "},
    ]
    t = TranscriptSource(fetcher=lambda vid: items).fetch("vid1")

    assert t.available is True
    assert t.text == "rock & roll is here"
    assert t.error is None
    assert len(t.segments) == 3


def test_fetch_failure_is_reported_not_raised():
    def boom(video_id):
        raise TranscriptNotFound("TranscriptsDisabled: transcript not available for vid1")

    t = TranscriptSource(fetcher=boom).fetch("vid1")
    assert t.available is False
    assert t.text == ""
    assert t.segments == ()
    assert "TranscriptsDisabled" in t.error


def test_fetch_empty_items_is_unavailable():
    t = TranscriptSource(fetcher=lambda vid: []).fetch("vid1")
    assert t.available is False
    assert t.error


def test_only_annotations_is_unavailable():
    t = TranscriptSource(fetcher=lambda vid: [{"offset": 0, "duration": 1000, "text": "[Music]"}]).fetch("vid1")
    assert t.available is False


class _Fetched:
    def __init__(self, rows):
        self.rows = rows

    def to_raw_data(self):
        return self.rows


def test_youtube_fetch_retries_transient_errors(monkeypatch):
    calls = []

    class FakeApi:
        def __init__(self, proxy_config=None):
            pass

        def fetch(self, video_id, languages=None):
            calls.append(video_id)
            if len(calls) == 1:
                raise RuntimeError("connection reset")
            return _Fetched([{"start": 1.5, "duration": 2.0, "text": "hello"}])

    sleeps = []
    monkeypatch.setattr(transcript_mod, "YouTubeTranscriptApi", FakeApi)
    monkeypatch.setattr(transcript_mod.time, "sleep", lambda s: sleeps.append(s))

    items = fetch_youtube_transcript_items("vid1")
    assert items == [{"offset": 1500, "duration": 2000, "text": "hello"}]
    assert len(calls) == 2
    assert len(sleeps) == 1


def test_youtube_fetch_does_not_retry_disabled_transcripts(monkeypatch):
    calls = []

    class FakeApi:
        def __init__(self, proxy_config=None):
            pass

        def fetch(self, video_id, languages=None):
            calls.append(video_id)
            raise TranscriptsDisabled(video_id)

    monkeypatch.setattr(transcript_mod, "YouTubeTranscriptApi", FakeApi)
    monkeypatch.setattr(transcript_mod.time, "sleep", lambda s: None)

    with pytest.raises(TranscriptNotFound):
        fetch_youtube_transcript_items("vid1")
    assert len(calls) == 1


def test_malformed_items_are_skipped():
    items = [
        {"offset": "n/a", "duration": 1000, "text": "bad offset"},
        "not a mapping",
        {"offset": "inf", "duration": 1000, "text": "infinite offset"},
        {"offset": 2000, "duration": 1000, "text": "kept"},
    ]
    t = TranscriptSource(fetcher=lambda vid: items).fetch("vid1")

    assert t.available is True
    assert t.text == "kept"
    assert [s.start for s in t.segments] == [2.0]


def test_only_malformed_items_is_unavailable():
    t = TranscriptSource(fetcher=lambda vid: ["hello world"]).fetch("vid1")
    assert t.available is False
    assert t.error


def test_non_iterable_fetcher_result_is_unavailable():
    t = TranscriptSource(fetcher=lambda vid: 42).fetch("vid1")
    assert t.available is False
    assert t.segments == ()
