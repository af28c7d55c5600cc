import pytest

from tubetutor.services.llm.prompts import (
    CHUNK_CHARS,
    build_general_tutor_prompt,
    build_notes_prompt,
    build_quiz_prompt,
    build_summary_prompt,
    build_tutor_prompt,
    chunk_transcript,
    prepare_transcript,
)
from tubetutor.services.study_aids import NotesFormat

TRANSCRIPT = "Today we look at Python lists. They keep items in order and can be sliced. " * 3


def _long_transcript(chars: int) -> str:
    sentence = "This sentence talks about one more idea from the lecture. "
    return (sentence * (chars // len(sentence) + 1))[:chars]


def test_short_transcript_is_unchanged():
    assert prepare_transcript("short text.", max_chars=100) == "short text."


def test_long_transcript_is_reduced_below_limit():
    text = _long_transcript(200_000)
    out = prepare_transcript(text, max_chars=50_000)

    assert len(out) <= 50_000
    assert out.startswith("[LONG VIDEO TRANSCRIPT - ")
    assert "PART 1:" in out
    assert "PART 3:" in out
    assert "PART 4:" not in out
    assert "truncated" in out


def test_chunks_respect_size_and_keep_all_text():
    text = _long_transcript(100_000)
    chunks = chunk_transcript(text)
    assert len(chunks) >= 3
    assert all(len(c) <= CHUNK_CHARS for c in chunks)
    assert " ".join(chunks).split() == text.split()


def test_run_on_sentence_is_still_chunked():
    text = "word " * 30_000  # no sentence punctuation at all
    chunks = chunk_transcript(text, chunk_chars=10_000)
    assert all(len(c) <= 10_000 for c in chunks)
    assert sum(len(c.split()) for c in chunks) == 30_000


def test_summary_prompt_with_transcript():
    p = build_summary_prompt("Lists", "Intro to lists", TRANSCRIPT)
    assert 'Title: "Lists"' in p
    assert "Transcript:" in p
    assert "Base your summary on the transcript content" in p


def test_summary_prompt_without_transcript_asks_to_infer():
    p = build_summary_prompt("Lists", "Intro to lists", "too short")
    assert "Transcript:" not in p
    assert "no transcript is available" in p


def test_quiz_prompt_demands_rigid_format():
    p = build_quiz_prompt("A summary about lists.", 7)
    assert "exactly 7 multiple-choice" in p
    assert "QUESTION 1:" in p
    assert "CORRECT:" in p
    assert "EXPLANATION:" in p
    assert "A summary about lists." in p


@pytest.mark.parametrize("fmt", list(NotesFormat))
def test_notes_prompt_uses_section_headers(fmt):
    p = build_notes_prompt("Lists", "desc", TRANSCRIPT, fmt)
    assert f"comprehensive {fmt.value} notes" in p
    assert "##" in p


def test_notes_prompt_rejects_unknown_format():
    with pytest.raises(ValueError):
        build_notes_prompt("Lists", "desc", TRANSCRIPT, "mindmap")


def test_tutor_prompt_includes_context_and_question():
    p = build_tutor_prompt("Lists", "desc", TRANSCRIPT, "A long enough summary of what the video covers about lists.", "What is slicing?")
    assert "Video Transcript:" in p
    assert "Video Summary:" in p
    assert "What is slicing?" in p


def test_general_tutor_prompt():
    p = build_general_tutor_prompt("  What is recursion? ")
    assert "What is recursion?" in p
    assert "Video Transcript" not in p
