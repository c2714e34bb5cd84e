"""Data models shared across the pipeline."""

from .models import (
    ComplexityLevel,
    ContentScope,
    DecodingOptions,
    DifficultyLevel,
    EducationalLevel,
    GenerationReport,
    NumberRange,
    QuestionCandidate,
    QuestionFormat,
    RejectedCandidate,
    SubjectDomain,
    SubjectRef,
    TopicRef,
    ValidatedQuestion,
    ValidationResult,
)

__all__ = [
    "ComplexityLevel",
    "ContentScope",
    "DecodingOptions",
    "DifficultyLevel",
    "EducationalLevel",
    "GenerationReport",
    "NumberRange",
    "QuestionCandidate",
    "QuestionFormat",
    "RejectedCandidate",
    "SubjectDomain",
    "SubjectRef",
    "TopicRef",
    "ValidatedQuestion",
    "ValidationResult",
]
