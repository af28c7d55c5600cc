"""
Parsers for raw provider text.

Quiz and notes parsing rely on the rigid output grammar the prompts demand
(QUESTION n: / A)-D) / CORRECT: / EXPLANATION:, and "##" section headers).
ResponseParser is the seam: a JSON-mode implementation can replace it without
touching the orchestrator.
"""
from __future__ import annotations

import logging
import re

from tubetutor.services.errors import QuizValidationError
from tubetutor.services.study_aids import NotesFormat, NotesResult, NotesSection, QuizQuestion

logger = logging.getLogger(__name__)

NOTES_SECTION_MAX_CHARS = 10_000
SECTION_TITLE_MAX_CHARS = 500
PART_TITLE_MAX_CHARS = 400
DEFAULT_SECTION_TITLE = "Notes"
DEFAULT_EXPLANATION = "No explanation provided."

_SUMMARY_LABEL_RE = re.compile(r"^\s*(?:\*\*|__)?\s*SUMMARY\s*:\s*(?:\*\*|__)?\s*", re.IGNORECASE)

_QUESTION_SPLIT_RE = re.compile(r"(?:\*\*|#+\s*)?QUESTION\s*\d+\s*:(?:\*\*)?", re.IGNORECASE)
_CORRECT_RE = re.compile(r"^(?:CORRECT|ANSWER)(?:\s+ANSWER)?\s*:\s*\(?([A-D])\b", re.IGNORECASE)
_EXPLANATION_RE = re.compile(r"^EXPLANATION\s*:\s*(.*)$", re.IGNORECASE)
_OPTION_RE = re.compile(r"^\(?([A-D])[\).:]\s*(.+)$")
_LOOSE_OPTION_RE = re.compile(r"^\(?([A-D])(?:[\).:]\s*|\s+)(.+)$")

_HEADER_RES = (
    re.compile(r"^#{1,3}\s+(.+)$"),
    re.compile(r"^[IVX]+\.\s+(.+)$"),
    re.compile(r"^[A-Z]\.\s+(.+)$"),
)


def _clip(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def _unbold(line: str) -> str:
    return line.replace("**", "").strip().strip("_").strip()


# ----------------------------
# Summary / tutor
# ----------------------------

def parse_summary(raw: str) -> str:
    text = (raw or "").strip()
    return _SUMMARY_LABEL_RE.sub("", text, count=1).strip()


def parse_tutor(raw: str) -> str:
    return (raw or "").strip()


# ----------------------------
# Quiz
# ----------------------------

def _parse_quiz_block(block: str) -> QuizQuestion | None:
    lines = [_unbold(line) for line in block.splitlines()]
    lines = [line for line in lines if line]
    if not lines:
        return None

    body: list[str] = []
    correct = -1
    explanation = ""

    for line in lines:
        if correct < 0:
            m = _CORRECT_RE.match(line)
            if m:
                correct = ord(m.group(1).upper()) - ord("A")
                continue

        if not explanation:
            m = _EXPLANATION_RE.match(line)
            if m:
                explanation = m.group(1).strip()
                continue

        if correct >= 0 and explanation:
            break
        body.append(line)

    # "A developer deploys..." is question text unless the block has no
    # punctuated option labels at all.
    option_re = _OPTION_RE if any(_OPTION_RE.match(line) for line in body[1:]) else _LOOSE_OPTION_RE

    question_lines = body[:1]
    options: list[str] = []
    for line in body[1:]:
        m = option_re.match(line) if len(options) < 4 else None
        if m:
            options.append(m.group(2).strip())
        elif not options:
            question_lines.append(line)

    question = " ".join(question_lines)
    try:
        return QuizQuestion(
            question=question,
            options=tuple(options),
            correct_answer_index=correct,
            explanation=explanation or DEFAULT_EXPLANATION,
        )
    except QuizValidationError as e:
        logger.debug(f"Dropping malformed quiz block ({e}): {question[:80]!r}")
        return None


def parse_quiz(raw: str) -> list[QuizQuestion]:
    """
    Returns the valid questions only; malformed blocks are dropped, so the
    result may hold fewer questions than were requested.
    """
    blocks = _QUESTION_SPLIT_RE.split(raw or "")[1:]
    questions: list[QuizQuestion] = []
    for block in blocks:
        q = _parse_quiz_block(block)
        if q is not None:
            questions.append(q)

    logger.info(f"Parsed {len(questions)} quiz question(s) from {len(blocks)} block(s)")
    return questions


# ----------------------------
# Notes
# ----------------------------

def _header_title(line: str) -> str | None:
    stripped = line.strip()
    for pattern in _HEADER_RES:
        m = pattern.match(stripped)
        if m:
            return _unbold(m.group(1)) or stripped
    return None


def split_section(title: str, content: str, max_chars: int = NOTES_SECTION_MAX_CHARS) -> list[NotesSection]:
    """
    Cap a section's content at max_chars by splitting it into ordered parts.

    Splits fall on line boundaries where possible (a single over-long line is
    cut by characters); "".join(part contents) == content.
    """
    if len(content) <= max_chars:
        return [NotesSection(title=_clip(title, SECTION_TITLE_MAX_CHARS), content=content)]

    chunks: list[str] = []
    current = ""
    for line in content.splitlines(keepends=True):
        if len(current) + len(line) > max_chars:
            if current:
                chunks.append(current)
                current = ""
            while len(line) > max_chars:
                chunks.append(line[:max_chars])
                line = line[max_chars:]
        current += line
    if current:
        chunks.append(current)

    logger.info(f"Section {title!r} exceeds {max_chars} characters ({len(content)}), split into {len(chunks)} parts")
    return [
        NotesSection(
            title=_clip(title, SECTION_TITLE_MAX_CHARS) if i == 1 else f"{_clip(title, PART_TITLE_MAX_CHARS)} (Part {i})",
            content=chunk,
        )
        for i, chunk in enumerate(chunks, start=1)
    ]


def parse_notes(
    raw: str,
    notes_format: NotesFormat = NotesFormat.BULLET,
    max_section_chars: int = NOTES_SECTION_MAX_CHARS,
) -> NotesResult:
    content = (raw or "").strip()
    sections: list[NotesSection] = []

    title: str | None = None
    buf: list[str] = []
    saw_header = False

    def flush() -> None:
        body = "\n".join(buf).strip()
        if title is not None or body:
            sections.extend(split_section(title or DEFAULT_SECTION_TITLE, body, max_section_chars))

    for line in content.splitlines():
        header = _header_title(line)
        if header is not None:
            if saw_header or "\n".join(buf).strip():
                flush()
            saw_header = True
            title = header
            buf = []
        else:
            buf.append(line)

    if saw_header:
        flush()
    else:
        sections.extend(split_section(DEFAULT_SECTION_TITLE, content, max_section_chars))

    return NotesResult(content=content, format=NotesFormat(notes_format), sections=tuple(sections))


class ResponseParser:
    """Type-specific parsing behind one interface."""

    def summary(self, raw: str) -> str:
        return parse_summary(raw)

    def quiz(self, raw: str) -> list[QuizQuestion]:
        return parse_quiz(raw)

    def notes(self, raw: str, notes_format: NotesFormat) -> NotesResult:
        return parse_notes(raw, notes_format)

    def tutor(self, raw: str) -> str:
        return parse_tutor(raw)
