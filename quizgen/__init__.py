"""Domain-aware generation of validated study questions."""

from .data.models import (
    ContentScope,
    DifficultyLevel,
    GenerationReport,
    SubjectDomain,
    SubjectRef,
    TopicRef,
    ValidatedQuestion,
)
from .pipeline import QuestionGenerationPipeline, create_pipeline

__version__ = "0.1.0"

__all__ = [
    "ContentScope",
    "DifficultyLevel",
    "GenerationReport",
    "QuestionGenerationPipeline",
    "SubjectDomain",
    "SubjectRef",
    "TopicRef",
    "ValidatedQuestion",
    "__version__",
    "create_pipeline",
]
