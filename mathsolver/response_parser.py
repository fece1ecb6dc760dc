"""
Response Parser - Best-effort extraction of labeled fields from LLM text.

The solve prompt asks the model for:

    OPERATION: <operation>
    EXPRESSION: <expression>
    RESULT: <final answer>
    STEPS:
    1. ...
    2. ...

Models do not always comply, so every field has a default and nothing here
raises on malformed input.
"""

from dataclasses import dataclass
import logging
import re


logger = logging.getLogger(__name__)


# ============================================
# PRECOMPILED PATTERNS
# ============================================

RE_OPERATION = re.compile(r'OPERATION:\s*(.+?)(?=\n|$)', re.IGNORECASE)
RE_EXPRESSION = re.compile(r'EXPRESSION:\s*(.+?)(?=\n|$)', re.IGNORECASE)
RE_RESULT = re.compile(r'RESULT:\s*(.+?)(?=\n|$)', re.IGNORECASE)
# Steps run until a blank line, the next LABEL: line, or end of text.
RE_STEPS = re.compile(r'STEPS:\s*([\s\S]+?)(?=\n\n|\n[A-Z]+:|$)', re.IGNORECASE)
RE_DIGITS_ONLY = re.compile(r'^\d+$')

DEFAULT_OPERATION = "mathematical_operation"
DEFAULT_RESULT = "Solution provided in explanation"
DEFAULT_STEPS = "Detailed steps provided in explanation below"


@dataclass
class ParsedSolution:
    operation: str
    expression: str
    result: str
    steps: str


def _first_group(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def parse_solution_text(text: str, problem: str) -> ParsedSolution:
    """
    Extract OPERATION/EXPRESSION/RESULT/STEPS from the model reply.

    Args:
        text: Raw model output
        problem: The user's problem, used as the default expression

    Returns:
        ParsedSolution with defaults filled in for missing fields
    """
    text = text or ""
    parsed = ParsedSolution(
        operation=_first_group(RE_OPERATION, text) or DEFAULT_OPERATION,
        expression=_first_group(RE_EXPRESSION, text) or (problem or "").strip(),
        result=_first_group(RE_RESULT, text) or DEFAULT_RESULT,
        steps=_first_group(RE_STEPS, text) or DEFAULT_STEPS,
    )
    logger.info(
        f"[PARSE] operation={parsed.operation!r} expression={parsed.expression!r} result={parsed.result!r}"
    )
    return parsed


def looks_suspicious(parsed: ParsedSolution) -> bool:
    """A derivative whose result is a bare integer is usually a misread problem."""
    return "deriv" in parsed.operation.lower() and bool(RE_DIGITS_ONLY.match(parsed.result))
