"""Infrastructure helpers shared by the backends and the pipeline."""

from .error_classifier import (
    BackendError,
    ClassifiedError,
    ErrorCategory,
    ErrorClassifier,
    ErrorSeverity,
)

__all__ = [
    "BackendError",
    "ClassifiedError",
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorSeverity",
]
