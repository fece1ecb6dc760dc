"""
Step Formatter - Turns model step text into displayable pieces.

Each step the model writes looks roughly like

    2. Apply the power rule: $d/dx(x^2) = 2x$

and is rendered as a title ("Apply the power rule") plus a math portion
("$d/dx(x^2) = 2x$"). Both portions are further scanned for LaTeX
delimiters so a renderer can typeset math and print prose as-is.

Supported delimiters:
    $$...$$  and  \\[...\\]   display math
    $...$    and  \\(...\\)   inline math
    \\$                       a literal dollar sign
An unclosed delimiter is kept as literal text.
"""

from dataclasses import dataclass
from typing import List, Literal, Optional, Union
import re


RE_STEP_LABEL = re.compile(r'^\s*(?:step\s*\d+\s*[:.)\-]\s*|\d+\s*[.)](?!\d)\s*|[-*•]\s+)', re.IGNORECASE)
RE_TRAILING_OPEN_PAREN = re.compile(r'\s*\(\s*$')

SegmentKind = Literal["text", "inline", "display"]


@dataclass
class MathSegment:
    kind: SegmentKind
    content: str

    def to_dict(self) -> dict:
        return {"kind": self.kind, "content": self.content}


@dataclass
class _Span:
    start: int
    end: int
    kind: SegmentKind
    content: str


@dataclass
class FormattedStep:
    number: int
    title: str
    math: str

    @property
    def title_segments(self) -> List[MathSegment]:
        return scan_inline_math(self.title)

    @property
    def math_segments(self) -> List[MathSegment]:
        return scan_inline_math(self.math)

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "title": self.title,
            "math": self.math,
            "titleSegments": [s.to_dict() for s in self.title_segments],
            "mathSegments": [s.to_dict() for s in self.math_segments],
        }


# ============================================
# STEP SPLITTING
# ============================================

def split_steps(steps: Union[str, List[str], None]) -> List[str]:
    """Accept a list or a newline-separated string; drop blank lines."""
    if steps is None:
        return []
    if isinstance(steps, str):
        lines = steps.splitlines()
    else:
        lines = [str(s) for s in steps if s is not None]
    return [line.strip() for line in lines if line.strip()]


def clean_step(step: str) -> str:
    """Strip leading numbering ("1.", "2)", "Step 3:", bullets)."""
    return RE_STEP_LABEL.sub("", step or "", count=1).strip()


def split_step(step: str, number: int = 1) -> FormattedStep:
    """
    Split a step into title and math at the first colon outside math.

    "Factor: $x^2 - 1 = (x-1)(x+1)$" → title "Factor", math "$x^2 - 1 = (x-1)(x+1)$"
    "Map $f: A \\to B$ onto B"       → no split, the colon is inside math
    """
    cleaned = clean_step(step)
    idx = _first_colon_outside_math(cleaned)
    if idx is None:
        return FormattedStep(number=number, title=cleaned, math="")

    title = RE_TRAILING_OPEN_PAREN.sub("", cleaned[:idx]).strip()
    math = cleaned[idx + 1:].strip()
    if not title:
        return FormattedStep(number=number, title=math, math="")
    return FormattedStep(number=number, title=title, math=math)


def format_steps(steps: Union[str, List[str], None]) -> List[FormattedStep]:
    return [split_step(s, number=i) for i, s in enumerate(split_steps(steps), start=1)]


# ============================================
# INLINE LATEX SCANNING
# ============================================

def scan_inline_math(text: str) -> List[MathSegment]:
    """Split text into prose and math segments, left to right."""
    text = text or ""
    segments: List[MathSegment] = []
    cursor = 0
    for span in _math_spans(text):
        if span.start > cursor:
            _append_text(segments, text[cursor:span.start])
        segments.append(MathSegment(kind=span.kind, content=span.content.strip()))
        cursor = span.end
    if cursor < len(text):
        _append_text(segments, text[cursor:])
    return segments


def _append_text(segments: List[MathSegment], raw: str) -> None:
    content = raw.replace("\\$", "$")
    if content:
        segments.append(MathSegment(kind="text", content=content))


def _find_unescaped(text: str, token: str, start: int) -> int:
    j = start
    while j < len(text):
        if text.startswith("\\$", j):
            j += 2
            continue
        if text.startswith(token, j):
            return j
        j += 1
    return -1


def _math_spans(text: str) -> List[_Span]:
    spans: List[_Span] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            if nxt == "$":
                i += 2
                continue
            if nxt in "([":
                close = "\\)" if nxt == "(" else "\\]"
                end = text.find(close, i + 2)
                if end != -1:
                    kind: SegmentKind = "inline" if nxt == "(" else "display"
                    spans.append(_Span(i, end + 2, kind, text[i + 2:end]))
                    i = end + 2
                    continue
            i += 1
            continue

        if ch == "$":
            if text.startswith("$$", i):
                end = _find_unescaped(text, "$$", i + 2)
                if end != -1:
                    spans.append(_Span(i, end + 2, "display", text[i + 2:end]))
                    i = end + 2
                else:
                    i += 2
                continue
            end = _find_unescaped(text, "$", i + 1)
            if end != -1:
                spans.append(_Span(i, end + 1, "inline", text[i + 1:end]))
                i = end + 1
            else:
                i += 1
            continue

        i += 1
    return spans


def _first_colon_outside_math(text: str) -> Optional[int]:
    spans = _math_spans(text)
    pos = 0
    while True:
        idx = text.find(":", pos)
        if idx == -1:
            return None
        inside = next((s for s in spans if s.start <= idx < s.end), None)
        if inside is None:
            return idx
        pos = inside.end
