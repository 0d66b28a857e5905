"""
Content pipeline for question and answer bodies.

Stack Exchange serves ``body_markdown`` in its own dialect: HTML entities
are escaped, keyboard keys use ``<kbd>`` tags, and code languages are given
as HTML comments in front of indented code blocks. ``preprocess`` rewrites
this into plain CommonMark; ``parse`` turns CommonMark into a renderable
document. Both are pure functions of their input.
"""

import html
import re
from typing import Iterable, List

from rich.markdown import Markdown

from core.aggregate import sort_answers
from models.questions import ParsedAnswer, ParsedQuestion, Question

__all__ = [
    "preprocess",
    "parse",
    "preprocess_questions",
    "parse_questions",
]

LANGUAGE_HINT = re.compile(r"^\s*<!--\s*language(?:-all)?:\s*([^\s>]+)\s*-->\s*$")
SNIPPET_MARKER = re.compile(
    r"^[ \t]*<!--\s*(?:begin|end) snippet\b[^>]*-->[ \t]*$\n?", re.MULTILINE
)
KBD_TAG = re.compile(r"<kbd>(.*?)</kbd>", re.IGNORECASE)
BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
BLANK_RUN = re.compile(r"\n{3,}")
FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})")
CODE_SPAN = re.compile(r"(`+).+?(?<!`)\1(?!`)")

# ══════════════════════════════════════════════════════════════════════════════
# Preprocessing
# ══════════════════════════════════════════════════════════════════════════════


def preprocess(body: str) -> str:
    """Rewrite Stack Exchange markdown into CommonMark."""
    text = body.replace("\r\n", "\n").replace("\r", "\n")
    text = html.unescape(text)
    text = _rewrite_prose_tags(text)
    text = _fence_hinted_blocks(text)
    text = SNIPPET_MARKER.sub("", text)
    text = BLANK_RUN.sub("\n\n", text)
    return text.strip("\n")


def _language_tag(hint: str) -> str:
    tag = hint[5:] if hint.startswith("lang-") else hint
    return "" if tag in ("none", "default") else tag


def _is_indented(line: str) -> bool:
    return line.startswith("    ") or line.startswith("\t")


def _dedent(line: str) -> str:
    if line.startswith("\t"):
        return line[1:]
    return line[4:]


def _rewrite_tags(text: str) -> str:
    text = KBD_TAG.sub(lambda m: f"`{m.group(1).strip()}`", text)
    return BR_TAG.sub("  \n", text)


def _rewrite_line(line: str) -> str:
    """Rewrite tags in one prose line, skipping inline code spans."""
    parts: List[str] = []
    pos = 0
    for span in CODE_SPAN.finditer(line):
        parts.append(_rewrite_tags(line[pos : span.start()]))
        parts.append(span.group(0))
        pos = span.end()
    parts.append(_rewrite_tags(line[pos:]))
    return "".join(parts)


def _rewrite_prose_tags(text: str) -> str:
    """
    Turn ``<kbd>`` and ``<br>`` into markdown everywhere except code.

    Fenced blocks, indented blocks and backtick spans are copied verbatim,
    since answers that demonstrate HTML quote these tags literally.
    """
    out: List[str] = []
    fence = None
    in_block = False
    # An indented line opens a code block after a blank line or a language hint
    block_may_open = True

    for line in text.split("\n"):
        stripped = line.strip()

        if fence is not None:
            out.append(line)
            if stripped.startswith(fence) and set(stripped) == {fence[0]}:
                fence = None
                block_may_open = True
            continue

        opener = FENCE_OPEN.match(line)
        if opener and not in_block:
            fence = opener.group(1)
            out.append(line)
            continue

        if not stripped:
            out.append(line)
            block_may_open = True
            continue

        in_block = _is_indented(line) and (block_may_open or in_block)
        out.append(line if in_block else _rewrite_line(line))
        block_may_open = bool(LANGUAGE_HINT.match(line))

    return "\n".join(out)


def _fence_hinted_blocks(text: str) -> str:
    """Turn each language hint plus the indented block after it into a fence."""
    lines = text.split("\n")
    out: List[str] = []
    i = 0

    while i < len(lines):
        match = LANGUAGE_HINT.match(lines[i])
        if not match:
            out.append(lines[i])
            i += 1
            continue

        language = _language_tag(match.group(1))
        i += 1

        # Blank lines between the hint and the code
        start = i
        while start < len(lines) and not lines[start].strip():
            start += 1
        if start >= len(lines) or not _is_indented(lines[start]):
            continue

        end = start
        block: List[str] = []
        while end < len(lines):
            line = lines[end]
            if _is_indented(line):
                block.append(_dedent(line))
            elif not line.strip():
                # Blank lines stay in the block only if more code follows
                rest = end + 1
                while rest < len(lines) and not lines[rest].strip():
                    rest += 1
                if rest >= len(lines) or not _is_indented(lines[rest]):
                    break
                block.append("")
            else:
                break
            end += 1

        out.append(f"```{language}")
        out.extend(block)
        out.append("```")
        i = end

    return "\n".join(out)


# ══════════════════════════════════════════════════════════════════════════════
# Parsing
# ══════════════════════════════════════════════════════════════════════════════


def parse(body: str) -> Markdown:
    """Parse cleaned markdown into a renderable document."""
    return Markdown(body, hyperlinks=True)


# ══════════════════════════════════════════════════════════════════════════════
# Question Trees
# ══════════════════════════════════════════════════════════════════════════════


def preprocess_questions(questions: Iterable[Question]) -> List[Question]:
    """
    Sort answers and preprocess every body.

    Applied to every page straight after decoding, whatever the consumer.
    """
    return [
        q.model_copy(
            update={
                "body": preprocess(q.body),
                "answers": [
                    a.model_copy(update={"body": preprocess(a.body)})
                    for a in sort_answers(q.answers)
                ],
            }
        )
        for q in questions
    ]


def parse_questions(questions: Iterable[Question]) -> List[ParsedQuestion]:
    """Build renderable documents for questions headed to a display."""
    return [
        ParsedQuestion(
            id=q.id,
            score=q.score,
            title=q.title,
            body=parse(q.body),
            answers=[
                ParsedAnswer(
                    id=a.id,
                    score=a.score,
                    body=parse(a.body),
                    is_accepted=a.is_accepted,
                )
                for a in q.answers
            ],
        )
        for q in questions
    ]
