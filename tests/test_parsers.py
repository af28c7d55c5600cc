from tubetutor.services.llm.parsers import (
    DEFAULT_EXPLANATION,
    parse_notes,
    parse_quiz,
    parse_summary,
    split_section,
)
from tubetutor.services.study_aids import NotesFormat

from conftest import NOTES_RAW, QUIZ_RAW


def test_summary_label_is_stripped():
    assert parse_summary("SUMMARY: Lists are ordered.") == "Lists are ordered."
    assert parse_summary("**Summary:** Lists are ordered.") == "Lists are ordered."
    assert parse_summary("Lists are ordered.") == "Lists are ordered."


def test_quiz_parses_all_valid_questions():
    questions = parse_quiz(QUIZ_RAW)
    assert len(questions) == 5
    q = questions[0]
    assert q.question == "What does concept 1 describe?"
    assert q.options == ("Something unrelated", "The correct idea number 1", "A distractor", "Another distractor")
    assert q.correct_answer_index == 1
    assert q.explanation == "Concept 1 is covered in the video."


def test_quiz_drops_malformed_blocks():
    raw = """QUESTION 1:
Valid one?
A) a
B) b
C) c
D) d
CORRECT: A
EXPLANATION: because

QUESTION 2:
Only three options?
A) a
B) b
C) c
CORRECT: A

QUESTION 3:
No answer line?
A) a
B) b
C) c
D) d

QUESTION 4:
Second valid one?
(A) a
(B) b
(C) c
(D) d
Correct Answer: D

QUESTION 5:
Third valid one?
A. a
B. b
C. c
D. d
ANSWER: C
EXPLANATION: fine"""
    questions = parse_quiz(raw)

    assert [q.question for q in questions] == ["Valid one?", "Second valid one?", "Third valid one?"]
    assert questions[1].correct_answer_index == 3
    assert questions[1].explanation == DEFAULT_EXPLANATION
    assert questions[2].correct_answer_index == 2


def test_quiz_accepts_bold_markers():
    raw = """**QUESTION 1:** What is a list?
**A)** ordered
**B)** unordered
**C)** immutable
**D)** a number
**CORRECT: A**
**EXPLANATION:** Lists keep order."""
    questions = parse_quiz(raw)
    assert len(questions) == 1
    assert questions[0].question == "What is a list?"
    assert questions[0].correct_answer_index == 0
    assert questions[0].options[0] == "ordered"
    assert questions[0].explanation == "Lists keep order."


def test_quiz_without_questions_returns_empty():
    assert parse_quiz("Sorry, I cannot help with that.") == []


def test_notes_sections_from_headers():
    result = parse_notes(NOTES_RAW, NotesFormat.BULLET)
    assert result.format == NotesFormat.BULLET
    assert [s.title for s in result.sections] == ["Introduction", "Key Concepts"]
    assert result.sections[0].content.startswith("- Python is a general purpose language")
    assert result.content == NOTES_RAW.strip()


def test_notes_without_headers_is_one_section():
    raw = "- point one\n- point two"
    result = parse_notes(raw, NotesFormat.DETAILED)
    assert len(result.sections) == 1
    assert result.sections[0].title == "Notes"
    assert result.sections[0].content == raw


def test_notes_preamble_is_kept():
    raw = "Some opening remarks.\n\n## Topic\nBody text"
    result = parse_notes(raw, NotesFormat.OUTLINE)
    assert [s.title for s in result.sections] == ["Notes", "Topic"]
    assert result.sections[0].content == "Some opening remarks."


def test_notes_other_header_styles():
    raw = "I. First Part\ntext one\nII. Second Part\ntext two\n### Third\ntext three"
    result = parse_notes(raw, NotesFormat.OUTLINE)
    assert [s.title for s in result.sections] == ["First Part", "Second Part", "Third"]


def test_split_section_is_lossless_and_capped():
    content = "\n".join(f"line {i} " + "x" * 90 for i in range(300))
    parts = split_section("Big Topic", content, max_chars=1000)

    assert len(parts) > 1
    assert all(len(p.content) <= 1000 for p in parts)
    assert "".join(p.content for p in parts) == content
    assert parts[0].title == "Big Topic"
    assert parts[1].title == "Big Topic (Part 2)"


def test_split_section_cuts_single_long_line():
    content = "y" * 2500
    parts = split_section("Wall", content, max_chars=1000)
    assert [len(p.content) for p in parts] == [1000, 1000, 500]
    assert "".join(p.content for p in parts) == content


def test_long_notes_section_is_split_at_default_cap():
    body = "\n".join("- " + "z" * 98 for _ in range(250))
    result = parse_notes(f"## Huge\n{body}", NotesFormat.BULLET)
    assert len(result.sections) == 3
    assert all(len(s.content) <= 10_000 for s in result.sections)


def test_question_continuation_starting_with_a_letter_is_not_an_option():
    raw = """QUESTION 1:
Your service starts failing right after a release.
A developer deploys a hotfix that makes it worse. What should happen next?
A) Deploy again
B) Roll back
C) Monitor
D) Ignore
CORRECT: B
EXPLANATION: Rolling back restores the last good version."""
    questions = parse_quiz(raw)

    assert len(questions) == 1
    q = questions[0]
    assert q.options == ("Deploy again", "Roll back", "Monitor", "Ignore")
    assert q.options[q.correct_answer_index] == "Roll back"
    assert q.question.endswith("What should happen next?")
    assert "A developer deploys a hotfix" in q.question


def test_unpunctuated_option_labels_still_parse():
    raw = """QUESTION 1:
Which keyword defines a function?
A def
B func
C lambda
D fn
CORRECT: A"""
    questions = parse_quiz(raw)
    assert len(questions) == 1
    assert questions[0].options == ("def", "func", "lambda", "fn")
