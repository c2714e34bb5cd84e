"""Data models for the question generation pipeline.

This module defines the enumerations and pydantic models that flow between
the scope analyzer, the generation orchestrator and the validation manager.
"""

import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_LETTERS = ("A", "B", "C", "D")
REQUIRED_OPTION_COUNT = 4


class EducationalLevel(str, enum.Enum):
    """Educational level the study material is written for."""

    ELEMENTARY = "elementary"
    MIDDLE_SCHOOL = "middle_school"
    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"


class SubjectDomain(str, enum.Enum):
    """Subject domains recognized by the classifier and prompt registry."""

    MATHEMATICS = "mathematics"
    LITERATURE = "literature"
    COMPUTING = "computing"
    CHEMISTRY = "chemistry"
    PHYSICS = "physics"
    HISTORY = "history"
    BIOLOGY = "biology"
    GENERAL = "general"


class ComplexityLevel(str, enum.Enum):
    """How demanding the material is within its level."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class NumberRange(str, enum.Enum):
    """Magnitude of the numbers the material works with."""

    SINGLE_DIGIT = "single_digit"
    DOUBLE_DIGIT = "double_digit"
    TRIPLE_DIGIT = "triple_digit"
    LARGER = "larger"


class DifficultyLevel(str, enum.Enum):
    """Difficulty requested by the caller."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionFormat(str, enum.Enum):
    """Supported question formats."""

    MULTIPLE_CHOICE = "multiple_choice"


class SubjectRef(BaseModel):
    """Reference to a caller-owned subject record."""

    id: Optional[Any] = None
    name: str = ""
    category_id: Optional[Any] = None
    category_name: Optional[str] = None


class TopicRef(BaseModel):
    """Reference to a caller-owned topic record."""

    id: Optional[Any] = None
    name: str = ""
    description: Optional[str] = None


class ContentScope(BaseModel):
    """What a piece of study material teaches.

    Created once per request and never mutated afterwards. Use
    ``model_copy(update=...)`` to derive a new scope.

    Attributes:
        educational_level: Level the material is written for
        subject_domain: Domain used to select prompts and validators
        concepts_taught: Concepts covered by the material (never empty)
        operations_shown: Operations demonstrated by the material
        complexity_level: Complexity of the material
        number_range: Magnitude of the numbers used (mathematics only)
        prerequisites: Knowledge the material assumes
        subject_info: Caller's subject reference
        topic_info: Caller's topic reference
        raw_analysis: Raw analyzer reply, kept for diagnostics
    """

    model_config = ConfigDict(frozen=True)

    educational_level: EducationalLevel = EducationalLevel.MIDDLE_SCHOOL
    subject_domain: SubjectDomain = SubjectDomain.GENERAL
    concepts_taught: List[str] = Field(..., min_length=1)
    operations_shown: List[str] = Field(default_factory=list)
    complexity_level: ComplexityLevel = ComplexityLevel.BASIC
    number_range: NumberRange = NumberRange.DOUBLE_DIGIT
    prerequisites: List[str] = Field(default_factory=list)
    subject_info: SubjectRef = Field(default_factory=SubjectRef)
    topic_info: TopicRef = Field(default_factory=TopicRef)
    raw_analysis: Optional[str] = None


class QuestionCandidate(BaseModel):
    """A question parsed from model output, not yet validated.

    Candidates are deliberately lenient so malformed output can be
    represented and rejected by the validation manager.
    """

    question: str = ""
    type: QuestionFormat = QuestionFormat.MULTIPLE_CHOICE
    options: List[str] = Field(default_factory=list)
    correct_index: int = 0
    answer: str = ""
    explanation: str = ""

    @model_validator(mode="after")
    def fill_derived_fields(self) -> "QuestionCandidate":
        """Derive the answer and explanation from the correct option when absent."""
        if 0 <= self.correct_index < len(self.options):
            correct_option = self.options[self.correct_index]
            if not self.answer:
                self.answer = correct_option
            if not self.explanation and self.correct_index < len(OPTION_LETTERS):
                letter = OPTION_LETTERS[self.correct_index]
                self.explanation = f"The correct answer is {letter}. {correct_option}"
        return self


class ValidatedQuestion(BaseModel):
    """A question that passed every hard validation check."""

    question: str = Field(..., min_length=10)
    type: QuestionFormat = QuestionFormat.MULTIPLE_CHOICE
    options: List[str] = Field(
        ..., min_length=REQUIRED_OPTION_COUNT, max_length=REQUIRED_OPTION_COUNT
    )
    correct_index: int = Field(..., ge=0, le=REQUIRED_OPTION_COUNT - 1)
    answer: str = Field(..., min_length=1)
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def validate_distinct_options(cls, v: List[str]) -> List[str]:
        """Validate that the four options are distinct."""
        normalized = {option.strip().lower() for option in v}
        if len(normalized) != len(v):
            raise ValueError("Options must be distinct")
        return v

    @model_validator(mode="after")
    def validate_answer_matches_option(self) -> "ValidatedQuestion":
        """Validate that the answer is the option at correct_index."""
        if self.options[self.correct_index] != self.answer:
            raise ValueError(
                f"Answer '{self.answer}' does not match option "
                f"{OPTION_LETTERS[self.correct_index]}"
            )
        return self

    @classmethod
    def from_candidate(cls, candidate: QuestionCandidate) -> "ValidatedQuestion":
        """Build a validated question from a candidate that passed validation."""
        return cls(
            question=candidate.question,
            type=candidate.type,
            options=list(candidate.options),
            correct_index=candidate.correct_index,
            answer=candidate.answer,
            explanation=candidate.explanation,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the outward record shape."""
        return {
            "question": self.question,
            "type": self.type.value,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "answer": self.answer,
            "explanation": self.explanation,
        }


class ValidationResult(BaseModel):
    """Outcome of validating one candidate against a content scope."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    domain: Optional[SubjectDomain] = None


class DecodingOptions(BaseModel):
    """Decoding parameters sent to a completion backend."""

    temperature: float = Field(0.7, ge=0.0, le=2.0)
    top_p: float = Field(0.9, gt=0.0, le=1.0)
    num_predict: int = Field(800, gt=0)
    stop: List[str] = Field(default_factory=list)


class RejectedCandidate(BaseModel):
    """A candidate dropped by validation, with the reasons."""

    question: str
    errors: List[str] = Field(default_factory=list)


class GenerationReport(BaseModel):
    """Diagnostics for a single generate request."""

    scope: Optional[ContentScope] = None
    content_sufficient: bool = True
    attempts: List[Dict[str, Any]] = Field(default_factory=list)
    candidates_parsed: int = 0
    rejected: List[RejectedCandidate] = Field(default_factory=list)
    duplicates_removed: int = 0
    questions: List[ValidatedQuestion] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the report, using the outward shape for questions."""
        return {
            "scope": self.scope.model_dump(mode="json") if self.scope else None,
            "content_sufficient": self.content_sufficient,
            "attempts": self.attempts,
            "candidates_parsed": self.candidates_parsed,
            "rejected": [r.model_dump() for r in self.rejected],
            "duplicates_removed": self.duplicates_removed,
            "questions": [q.to_dict() for q in self.questions],
        }
