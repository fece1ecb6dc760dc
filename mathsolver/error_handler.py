"""
Error Handler - Error taxonomy and classification for the solve pipeline.

Users never see raw provider errors. Every failure is classified into a
short human-friendly message plus troubleshooting hints, while the technical
detail goes to the log.

Error Classification Layers:
1. Configuration Errors (no API key, no provider)
2. User Input Errors (missing, blank or oversized problem)
3. Provider Errors (timeout, rate limit, auth, anything else)
4. Output Errors (unparseable reply, fallback also failed)
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
import logging


logger = logging.getLogger(__name__)


SUPPORTED_OPERATIONS_HINT = [
    "derivatives",
    "integrals",
    "factoring",
    "simplification",
    "solving equations",
]


class ErrorType(str, Enum):
    """Enumeration of all error types"""
    # Layer 1: Configuration
    MISSING_API_KEY = "missing_api_key"

    # Layer 2: User Input
    INVALID_PROBLEM = "invalid_problem"

    # Layer 3: Provider
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    PROVIDER_FAILURE = "provider_failure"

    # Layer 4: Output
    PARSE_FAILURE = "parse_failure"
    FALLBACK_FAILED = "fallback_failed"


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"  # Fallback can still answer
    MEDIUM = "medium"  # User should fix the request
    HIGH = "high"  # Cannot continue


# ============================================
# EXCEPTIONS
# ============================================

class SolverError(Exception):
    """Base class for errors raised while solving a problem"""
    status_code = 500


class AINotConfiguredError(SolverError):
    """No LLM provider has credentials"""
    status_code = 500


class InvalidProblemError(SolverError):
    """The submitted problem is missing, blank or too long"""
    status_code = 400


class AIServiceError(SolverError):
    """Every provider attempt failed"""
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# ============================================
# CLASSIFICATION
# ============================================

@dataclass
class ErrorClassification:
    """Classification result for an error"""
    error_type: ErrorType
    severity: ErrorSeverity
    user_message: str
    system_message: str
    status_code: int = 500
    troubleshooting: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self, details: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.user_message}
        if details:
            payload["details"] = details
        if self.troubleshooting:
            payload["troubleshooting"] = self.troubleshooting
        return payload


class ErrorClassifier:
    """Classifies solver and provider errors"""

    @staticmethod
    def classify_missing_api_key() -> ErrorClassification:
        return ErrorClassification(
            error_type=ErrorType.MISSING_API_KEY,
            severity=ErrorSeverity.HIGH,
            user_message="AI model not properly initialized",
            system_message="No LLM provider is configured",
            status_code=500,
            troubleshooting={
                "checkApiKey": "Ensure GROQ_API_KEY is set in environment variables",
                "supportedOperations": SUPPORTED_OPERATIONS_HINT,
            },
        )

    @staticmethod
    def classify_invalid_problem(reason: str) -> ErrorClassification:
        return ErrorClassification(
            error_type=ErrorType.INVALID_PROBLEM,
            severity=ErrorSeverity.MEDIUM,
            user_message=reason,
            system_message=f"Rejected problem: {reason}",
            status_code=400,
        )

    @staticmethod
    def classify_provider_error(error: BaseException) -> ErrorClassification:
        """
        Classify a provider exception by its type name and message.
        Groq and httpx errors are matched by text so neither SDK is required here.
        """
        text = f"{type(error).__name__}: {error}".lower()

        if "timeout" in text or "timed out" in text:
            return ErrorClassification(
                error_type=ErrorType.TIMEOUT,
                severity=ErrorSeverity.LOW,
                user_message="The AI service took too long to answer",
                system_message=f"Provider timeout: {error}",
            )

        if "ratelimit" in text or "rate limit" in text or "429" in text:
            return ErrorClassification(
                error_type=ErrorType.RATE_LIMITED,
                severity=ErrorSeverity.LOW,
                user_message="The AI service is busy. Please try again shortly",
                system_message=f"Provider rate limited: {error}",
            )

        if "authentication" in text or "401" in text or "api key" in text or "permission" in text:
            return ErrorClassification(
                error_type=ErrorType.AUTHENTICATION,
                severity=ErrorSeverity.HIGH,
                user_message="The AI service rejected the configured credentials",
                system_message=f"Provider auth failure: {error}",
                troubleshooting={"checkApiKey": "Ensure GROQ_API_KEY is properly configured"},
            )

        return ErrorClassification(
            error_type=ErrorType.PROVIDER_FAILURE,
            severity=ErrorSeverity.LOW,
            user_message="The AI service failed to answer",
            system_message=f"Provider failure: {type(error).__name__}: {error}",
        )

    @staticmethod
    def classify_structured_failure(error: BaseException) -> ErrorClassification:
        """
        Classify a failed structured solve. Provider errors keep their provider
        classification. Anything else failed while turning the reply into a response.
        """
        if isinstance(error, AIServiceError):
            return ErrorClassifier.classify_provider_error(error.cause or error)
        return ErrorClassification(
            error_type=ErrorType.PARSE_FAILURE,
            severity=ErrorSeverity.LOW,
            user_message="The AI answer could not be read",
            system_message=f"Parse failure: {type(error).__name__}: {error}",
        )

    @staticmethod
    def classify_solve_failure(error: BaseException) -> ErrorClassification:
        """Both the structured and the simplified prompt failed."""
        cause = getattr(error, "cause", None) or error
        provider = ErrorClassifier.classify_provider_error(cause)
        logger.error(f"[SOLVE FAILED] {provider.system_message}")
        return ErrorClassification(
            error_type=ErrorType.FALLBACK_FAILED,
            severity=ErrorSeverity.HIGH,
            user_message="Failed to solve math problem",
            system_message=provider.system_message,
            status_code=500,
            troubleshooting={
                "checkApiKey": "Ensure GROQ_API_KEY is properly configured",
                "checkProblem": "Verify the math problem is clearly stated",
                "supportedOperations": SUPPORTED_OPERATIONS_HINT,
            },
        )


def classify_solver_error(error: SolverError) -> ErrorClassification:
    """Map a solver exception to its classification"""
    if isinstance(error, AINotConfiguredError):
        return ErrorClassifier.classify_missing_api_key()
    if isinstance(error, InvalidProblemError):
        return ErrorClassifier.classify_invalid_problem(str(error))
    return ErrorClassifier.classify_solve_failure(error)
