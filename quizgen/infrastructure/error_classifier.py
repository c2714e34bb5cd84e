"""Error classification for completion backend failures.

Backends wrap every transport or API failure in a ``BackendError`` carrying a
``ClassifiedError``, so callers can log a consistent category and severity and
decide whether an alert is warranted.
"""

import re
from enum import Enum
from typing import List


class ErrorCategory(Enum):
    """Categories of backend errors."""

    BILLING_QUOTA = "billing_quota"  # Insufficient funds, quota exceeded
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"  # Backend 5xx
    NETWORK_ERROR = "network_error"  # Connection refused, timeouts
    MODEL_ERROR = "model_error"  # Model not pulled or not available
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ClassifiedError:
    """A classified backend error with category and severity."""

    def __init__(
        self,
        category: ErrorCategory,
        severity: ErrorSeverity,
        provider: str,
        original_error: str,
        message: str,
        is_retryable: bool = False,
    ):
        """Initialize classified error.

        Args:
            category: Error category
            severity: Error severity level
            provider: Backend name (ollama, openai)
            original_error: Original exception type name
            message: Human-readable error message
            is_retryable: Whether the error is transient
        """
        self.category = category
        self.severity = severity
        self.provider = provider
        self.original_error = original_error
        self.message = message
        self.is_retryable = is_retryable

    def __str__(self) -> str:
        return (
            f"[{self.severity.value.upper()}] {self.provider}: "
            f"{self.category.value} - {self.message}"
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "provider": self.provider,
            "original_error": self.original_error,
            "message": self.message,
            "is_retryable": self.is_retryable,
        }


class BackendError(Exception):
    """Exception raised by completion backends with classification.

    Attributes:
        classified_error: The classified error with category and severity
        original_exception: The exception that was raised by the client library
    """

    def __init__(
        self,
        classified_error: ClassifiedError,
        original_exception: Exception,
    ):
        self.classified_error = classified_error
        self.original_exception = original_exception
        super().__init__(str(classified_error))


class ErrorClassifier:
    """Classifies errors raised by completion backends."""

    BILLING_PATTERNS = [
        r"insufficient.*funds",
        r"quota.*exceeded",
        r"insufficient.*quota",
        r"billing.*issue",
        r"payment.*required",
        r"402",
    ]

    RATE_LIMIT_PATTERNS = [
        r"rate.*limit",
        r"too.*many.*requests",
        r"throttl",
        r"429",
    ]

    AUTH_PATTERNS = [
        r"invalid.*api.*key",
        r"incorrect.*api.*key",
        r"authentication.*failed",
        r"unauthorized",
        r"401",
        r"403",
    ]

    # Ollama answers 404 with "model 'x' not found, try pulling it first"
    MODEL_PATTERNS = [
        r"model.*not.*found",
        r"try.*pulling",
        r"invalid.*model",
        r"model.*unavailable",
        r"does not exist",
    ]

    SERVER_ERROR_PATTERNS = [
        r"internal.*server.*error",
        r"service.*unavailable",
        r"\b50[0-9]\b",
        r"server.*error",
        r"bad.*gateway",
    ]

    NETWORK_PATTERNS = [
        r"connection.*error",
        r"connect.*error",
        r"timeout",
        r"timed.*out",
        r"connection.*refused",
        r"connection.*reset",
        r"name.*resolution",
        r"network.*unreachable",
    ]

    @staticmethod
    def classify_error(
        error: Exception,
        provider: str,
    ) -> ClassifiedError:
        """Classify a backend error.

        Args:
            error: The exception that was raised
            provider: Backend name (ollama, openai)

        Returns:
            ClassifiedError with category and severity
        """
        error_str = f"{type(error).__name__}: {error}".lower()
        error_type = type(error).__name__

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.BILLING_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.BILLING_QUOTA,
                severity=ErrorSeverity.CRITICAL,
                provider=provider,
                original_error=error_type,
                message=(
                    f"Billing or quota issue detected. Please check your {provider} "
                    f"account balance and usage limits."
                ),
                is_retryable=False,
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.AUTH_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.AUTHENTICATION,
                severity=ErrorSeverity.CRITICAL,
                provider=provider,
                original_error=error_type,
                message=f"Authentication failed. Please verify your {provider} credentials.",
                is_retryable=False,
            )

        if ErrorClassifier._match_patterns(
            error_str, ErrorClassifier.RATE_LIMIT_PATTERNS
        ):
            return ClassifiedError(
                category=ErrorCategory.RATE_LIMIT,
                severity=ErrorSeverity.HIGH,
                provider=provider,
                original_error=error_type,
                message=f"Rate limit exceeded for {provider}.",
                is_retryable=True,
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.MODEL_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.MODEL_ERROR,
                severity=ErrorSeverity.HIGH,
                provider=provider,
                original_error=error_type,
                message=(
                    f"Model configuration issue with {provider}. "
                    f"Verify the model is installed and the name is correct."
                ),
                is_retryable=False,
            )

        if ErrorClassifier._match_patterns(
            error_str, ErrorClassifier.SERVER_ERROR_PATTERNS
        ):
            return ClassifiedError(
                category=ErrorCategory.SERVER_ERROR,
                severity=ErrorSeverity.MEDIUM,
                provider=provider,
                original_error=error_type,
                message=f"{provider} server error. This may be temporary.",
                is_retryable=True,
            )

        if ErrorClassifier._match_patterns(error_str, ErrorClassifier.NETWORK_PATTERNS):
            return ClassifiedError(
                category=ErrorCategory.NETWORK_ERROR,
                severity=ErrorSeverity.LOW,
                provider=provider,
                original_error=error_type,
                message=f"Could not reach {provider}. Is the service running?",
                is_retryable=True,
            )

        if "invalid" in error_str or "bad request" in error_str or "400" in error_str:
            return ClassifiedError(
                category=ErrorCategory.INVALID_REQUEST,
                severity=ErrorSeverity.MEDIUM,
                provider=provider,
                original_error=error_type,
                message=f"Invalid request to {provider}. Check request parameters.",
                is_retryable=False,
            )

        return ClassifiedError(
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.MEDIUM,
            provider=provider,
            original_error=error_type,
            message=f"Unclassified error from {provider}: {str(error)[:100]}",
            is_retryable=False,
        )

    @staticmethod
    def _match_patterns(text: str, patterns: List[str]) -> bool:
        """Check if text matches any of the given regex patterns."""
        return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)

    @staticmethod
    def should_alert(classified_error: ClassifiedError) -> bool:
        """Determine if an error should be reported to error tracking.

        Args:
            classified_error: The classified error

        Returns:
            True for critical errors and non-retryable high severity errors
        """
        if classified_error.severity == ErrorSeverity.CRITICAL:
            return True

        return (
            classified_error.severity == ErrorSeverity.HIGH
            and not classified_error.is_retryable
        )
