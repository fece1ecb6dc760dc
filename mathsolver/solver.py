"""
Math Solver - Orchestrates one /solve request.

Flow:
1. Validate the problem text
2. Ask the LLM for an OPERATION/EXPRESSION/RESULT/STEPS block
3. Parse the block and ask the LLM for a short explanation
4. If anything in 2-3 fails, ask a simplified prompt and return its text as the result

KEY PRINCIPLE: no mathematics happens here. The LLM does the solving;
this module only relays, parses and packages.
"""

from datetime import datetime, timezone
from typing import Any, Optional
import logging
import time

from mathsolver.config import settings
from mathsolver.error_handler import (
    AINotConfiguredError,
    AIServiceError,
    ErrorClassifier,
    InvalidProblemError,
)
from mathsolver.llm_client import LLMClient
from mathsolver.models import Analysis, Calculation, SolveResponse
from mathsolver.prompts import (
    build_explanation_prompt,
    build_fallback_prompt,
    build_solve_prompt,
)
from mathsolver.response_parser import looks_suspicious, parse_solution_text


logger = logging.getLogger(__name__)


PROBLEM_REQUIRED_MESSAGE = "Problem statement is required and must be a non-empty string"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def validate_problem(problem: Any, max_length: Optional[int] = None) -> str:
    """
    Check that the problem is a usable string.

    Returns:
        The problem with surrounding whitespace removed

    Raises:
        InvalidProblemError: missing, not a string, blank, or too long
    """
    if not isinstance(problem, str) or not problem.strip():
        raise InvalidProblemError(PROBLEM_REQUIRED_MESSAGE)

    limit = max_length if max_length is not None else settings.max_problem_length
    cleaned = problem.strip()
    if len(cleaned) > limit:
        raise InvalidProblemError(f"Problem statement must be at most {limit} characters")
    return cleaned


class MathSolver:
    """Relays problems to the LLM and packages its answers"""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    def is_available(self) -> bool:
        return self.llm.is_configured()

    def solve(self, problem: Any) -> SolveResponse:
        """
        Solve a natural-language math problem.

        Raises:
            InvalidProblemError: the problem failed validation
            AINotConfiguredError: no LLM provider is configured
            AIServiceError: both the structured and the simplified prompt failed
        """
        started = time.monotonic()
        if not self.is_available():
            raise AINotConfiguredError("No LLM provider is configured")

        problem = validate_problem(problem)

        logger.info(f"[SOLVE] Solving problem: {problem!r}")
        try:
            response = self._solve_structured(problem)
        except AINotConfiguredError:
            raise
        except Exception as e:
            classification = ErrorClassifier.classify_structured_failure(e)
            logger.error(f"[SOLVE] Structured solve failed ({classification.error_type.value}): {classification.system_message}")
            try:
                response = self._solve_fallback(problem)
            except Exception as fallback_error:
                logger.error(f"[SOLVE] Fallback also failed: {type(fallback_error).__name__}: {fallback_error}")
                cause = getattr(e, "cause", None) or e
                raise AIServiceError(str(cause), cause=cause) from fallback_error

        response.processing_time = int((time.monotonic() - started) * 1000)
        return response

    def _solve_structured(self, problem: str) -> SolveResponse:
        answer = self.llm.generate(build_solve_prompt(problem))
        logger.debug(f"[AI] Raw response from {answer.provider}: {answer.text}")

        parsed = parse_solution_text(answer.text, problem)
        if looks_suspicious(parsed):
            logger.warning(
                f"[PARSE] Derivative result appears to be just a number ({parsed.result}), this might be incorrect"
            )

        explanation = self.llm.generate(
            build_explanation_prompt(
                problem,
                parsed.operation,
                parsed.expression,
                parsed.result,
                parsed.steps,
            )
        )

        logger.info(f"[SOLVE] Successfully solved problem via {answer.provider}")
        return SolveResponse(
            original_problem=problem,
            analysis=Analysis(
                operation=parsed.operation,
                expression=parsed.expression,
                context=f"Solving {parsed.operation} problem using AI analysis",
            ),
            calculation=Calculation(
                method="llm-enhanced",
                result=parsed.result,
                operation=parsed.operation,
                steps=parsed.steps,
                confidence="high",
            ),
            explanation=explanation.text,
            timestamp=utc_timestamp(),
        )

    def _solve_fallback(self, problem: str) -> SolveResponse:
        logger.info("[SOLVE] Attempting fallback solution...")
        answer = self.llm.generate(build_fallback_prompt(problem))
        return SolveResponse(
            original_problem=problem,
            analysis=Analysis(
                operation="general_solution",
                expression=problem,
                context="Fallback solution method used",
            ),
            calculation=Calculation(
                method="llm-fallback",
                result=answer.text,
                operation="solve",
                steps="Solution provided directly by AI",
            ),
            explanation="Used simplified solution method due to parsing complexity.",
            timestamp=utc_timestamp(),
            note="Fallback method used - solution may be less structured",
        )
