from __future__ import annotations

import re

# Transcripts shorter than this are treated as absent.
MIN_TRANSCRIPT_CHARS = 50

LONG_TRANSCRIPT_CHARS = 50_000
CHUNK_CHARS = 40_000
MAX_PARTS_IN_PROMPT = 3


# ----------------------------
# Long transcript handling
# ----------------------------

def _split_sentences(text: str) -> list[str]:
    return [p.strip() for p in re.split(r"(?<=[.!?])\s+", text or "") if p.strip()]


def _split_oversized(sentence: str, limit: int) -> list[str]:
    """Break a run-on 'sentence' on words, then on characters, so no piece exceeds limit."""
    pieces: list[str] = []
    current = ""
    for word in sentence.split():
        while len(word) > limit:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:limit])
            word = word[limit:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) > limit:
            pieces.append(current)
            current = word
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def chunk_transcript(text: str, chunk_chars: int = CHUNK_CHARS) -> list[str]:
    chunks: list[str] = []
    current = ""
    for sentence in _split_sentences(text):
        parts = [sentence] if len(sentence) <= chunk_chars else _split_oversized(sentence, chunk_chars)
        for part in parts:
            candidate = f"{current} {part}" if current else part
            if len(candidate) > chunk_chars:
                chunks.append(current)
                current = part
            else:
                current = candidate
    if current:
        chunks.append(current)
    return chunks


def prepare_transcript(text: str, max_chars: int = LONG_TRANSCRIPT_CHARS) -> str:
    """
    Keep transcripts under max_chars before they are embedded in a prompt.

    Over the limit: split on sentence boundaries; one chunk is kept whole,
    several chunks are reduced to a prefix of the first few parts plus a note
    telling the model the transcript was truncated.
    """
    text = (text or "").strip()
    if len(text) <= max_chars:
        return text

    chunk_chars = min(CHUNK_CHARS, max_chars)
    chunks = chunk_transcript(text, chunk_chars=chunk_chars)
    if len(chunks) == 1:
        return chunks[0]

    header = f"[LONG VIDEO TRANSCRIPT - {len(chunks)} PARTS]"
    footer = (
        "[Transcript truncated: only the opening portion of each of the first parts is shown. "
        "Cover ALL major topics and concepts of the ENTIRE video, not just the beginning.]"
    )
    shown = chunks[:MAX_PARTS_IN_PROMPT]
    overhead = len(header) + len(footer) + 2 + sum(len(f"\n\nPART {i}: ...") for i in range(1, len(shown) + 1))
    per_part = max(0, (max_chars - overhead) // len(shown))

    body = "".join(f"\n\nPART {i}: {chunk[:per_part].rstrip()}..." for i, chunk in enumerate(shown, start=1))
    return f"{header}{body}\n\n{footer}"[:max_chars]


def _has_text(value: str | None) -> bool:
    return bool(value) and len(value.strip()) > MIN_TRANSCRIPT_CHARS


# ----------------------------
# Templates
# ----------------------------

SUMMARY_PROMPT_TEMPLATE = """Create a comprehensive summary for this YouTube video:

Title: "{title}"

Description: "{description}"
{transcript_block}
Please provide a detailed summary (200-400 words) covering the main topics and key points that viewers would gain from this video.

{source_instruction}

Format your response as:
SUMMARY:
[Your detailed summary here]

Important:
- Make the summary educational and actionable
- If transcript is available, use specific details from it
- If no transcript, make reasonable educational inferences from the title/description
- Focus on key learning points and main concepts
- Keep the summary comprehensive but concise"""

QUIZ_PROMPT_TEMPLATE = """You are an educational AI creating quiz questions. Based on this content, create exactly {count} multiple-choice quiz questions.

Content: "{source}"

Create {count} educational questions that test understanding of key concepts. Follow this EXACT format:

QUESTION 1:
[Create a question about a key concept from the content]
A) [Plausible but incorrect option]
B) [Correct answer based on the content]
C) [Another plausible but incorrect option]
D) [Another plausible but incorrect option]

CORRECT: B
EXPLANATION: [Brief explanation of why this is correct]

QUESTION 2:
[Another question about a different concept]
A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]

CORRECT: [A, B, C, or D]
EXPLANATION: [Brief explanation]

Continue this exact pattern for all {count} questions. Make sure each question:
- Tests understanding of different concepts
- Has exactly 4 plausible options labelled A) to D), one per line
- Has one clearly correct answer
- Includes a helpful one-line explanation

Do not add any extra text before or after the questions."""

NOTES_FORMAT_INSTRUCTIONS = {
    "bullet": """Format as bullet points grouped under markdown section headers:
## Main Topic 1
- Key point 1
- Key point 2
## Main Topic 2
- Key point 1
- Key point 2""",
    "outline": """Format as a structured outline. Every main topic MUST start with a markdown "##" header:
## 1. Main Topic 1
1.1 Sub-topic A
1.2 Sub-topic B
## 2. Main Topic 2
2.1 Sub-topic A
2.2 Sub-topic B""",
    "detailed": """Format as detailed prose sections. Every section MUST start with a markdown "##" header:
## [Topic Name]
[Detailed explanation with examples and context]

## [Topic Name]
[Detailed explanation with examples and context]""",
}

NOTES_PROMPT_TEMPLATE = """Create comprehensive {format} notes for this YouTube video:

Title: "{title}"

Description: "{description}"
{transcript_block}
{format_instructions}

IMPORTANT INSTRUCTIONS:
- Create concise but comprehensive notes covering the main topics
- Focus on key concepts, definitions, and important points
- Include practical examples and explanations
- Organize content logically by topic or chronologically
- Use markdown "##" headers for every section; do not use other header styles

{source_instruction}

OUTPUT REQUIREMENTS:
- Keep content concise but comprehensive (aim for 500-2000 words total)
- Use specific details and examples from the video
- Ensure no important content is missed or skipped"""

_MARKDOWN_GUIDE = """**Use markdown formatting to make your response more readable:**
- Use **bold** for important concepts and key terms
- Use *italic* for emphasis and definitions
- Use bullet points for lists and examples
- Use numbered lists for steps or sequences
- Use `code` for technical terms or code snippets
- Use > blockquotes for important quotes or key takeaways
- Use headers (##) to organize different sections if needed"""

TUTOR_PROMPT_TEMPLATE = """You are an AI tutor helping a student understand a YouTube video. Answer their question based on the video content.

Video Title: "{title}"
Video Description: "{description}"
{context_block}
Student Question: "{question}"

Please provide a helpful, educational response that:
- Directly answers the student's question
- Uses specific information from the video content
- Explains concepts clearly and thoroughly
- Provides examples or analogies when helpful
- Maintains a supportive, encouraging tone

{markdown_guide}

If the question cannot be answered based on the available video content, politely explain that and suggest what additional information might be needed.

Keep your response focused, educational, and helpful for learning."""

GENERAL_TUTOR_PROMPT_TEMPLATE = """You are an AI tutor helping a student understand a general educational concept. Answer their question.

Student Question: "{question}"

Please provide a helpful, educational response that:
- Directly answers the student's question
- Explains concepts clearly and thoroughly
- Provides examples or analogies when helpful
- Maintains a supportive, encouraging tone

{markdown_guide}

If the question cannot be answered based on the available knowledge, politely explain that and suggest what additional information might be needed.

Keep your response focused, educational, and helpful for learning."""


# ----------------------------
# Builders
# ----------------------------

def build_summary_prompt(
    title: str,
    description: str,
    transcript: str = "",
    max_transcript_chars: int = LONG_TRANSCRIPT_CHARS,
) -> str:
    has_transcript = _has_text(transcript)
    transcript_block = (
        f'\nTranscript: "{prepare_transcript(transcript, max_transcript_chars)}"\n' if has_transcript else ""
    )
    source_instruction = (
        "Base your summary on the transcript content, identifying the most important concepts and takeaways."
        if has_transcript
        else "Since no transcript is available, create an educational summary based on the title and description, "
        "inferring what a video with this title would likely cover. Do not refuse or report missing information."
    )
    return SUMMARY_PROMPT_TEMPLATE.format(
        title=title or "",
        description=description or "",
        transcript_block=transcript_block,
        source_instruction=source_instruction,
    )


def build_quiz_prompt(source_text: str, question_count: int = 5) -> str:
    return QUIZ_PROMPT_TEMPLATE.format(count=int(question_count), source=(source_text or "").strip())


def build_notes_prompt(
    title: str,
    description: str,
    transcript: str = "",
    notes_format: str = "bullet",
    max_transcript_chars: int = LONG_TRANSCRIPT_CHARS,
) -> str:
    fmt = getattr(notes_format, "value", notes_format)
    if fmt not in NOTES_FORMAT_INSTRUCTIONS:
        raise ValueError(f"Unknown notes format: {notes_format}")

    has_transcript = _has_text(transcript)
    transcript_block = (
        f'\nTranscript: "{prepare_transcript(transcript, max_transcript_chars)}"\n' if has_transcript else ""
    )
    source_instruction = (
        "TRANSCRIPT ANALYSIS:\n"
        "- Analyze the transcript to identify key topics and concepts\n"
        "- Create notes for major sections and important points\n"
        "- Include relevant examples and explanations from the content"
        if has_transcript
        else "Since no transcript is available, create educational notes based on the title and description, "
        "inferring what a video with this title would likely cover."
    )
    return NOTES_PROMPT_TEMPLATE.format(
        format=fmt,
        title=title or "",
        description=description or "",
        transcript_block=transcript_block,
        format_instructions=NOTES_FORMAT_INSTRUCTIONS[fmt],
        source_instruction=source_instruction,
    )


def build_tutor_prompt(
    title: str,
    description: str,
    transcript: str = "",
    summary: str = "",
    question: str = "",
    max_transcript_chars: int = LONG_TRANSCRIPT_CHARS,
) -> str:
    lines: list[str] = []
    if _has_text(transcript):
        lines.append(f'Video Transcript: "{prepare_transcript(transcript, max_transcript_chars)}"')
    if _has_text(summary):
        lines.append(f'Video Summary: "{summary.strip()}"')
    context_block = ("\n" + "\n".join(lines) + "\n") if lines else ""

    return TUTOR_PROMPT_TEMPLATE.format(
        title=title or "",
        description=description or "",
        context_block=context_block,
        question=(question or "").strip(),
        markdown_guide=_MARKDOWN_GUIDE,
    )


def build_general_tutor_prompt(question: str) -> str:
    return GENERAL_TUTOR_PROMPT_TEMPLATE.format(question=(question or "").strip(), markdown_guide=_MARKDOWN_GUIDE)
