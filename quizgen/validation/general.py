"""Structural and general-purpose question validation.

``StructuralValidator`` enforces the shape every question must have regardless
of domain. ``GeneralValidator`` adds non-blocking relevance and level checks
for non-mathematics domains, and the history and literature validators add
their domain's checks on top.
"""

import re
from typing import List, Set

from ..data.models import (
    REQUIRED_OPTION_COUNT,
    ContentScope,
    EducationalLevel,
    QuestionCandidate,
    ValidationResult,
)

MIN_QUESTION_LENGTH = 10

ELEMENTARY_COMPLEX_WORDS = ("analyze", "evaluate", "synthesize", "compare", "contrast")

TEXTUAL_ANALYSIS_WORDS = (
    "analyze",
    "interpret",
    "character",
    "theme",
    "author",
    "text",
    "passage",
)

MAX_YEAR_SPAN = 200
YEAR_PATTERN = re.compile(r"\b(1[0-9]{3}|20[0-9]{2})\b")

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")
_STOPWORDS = {
    "the", "and", "for", "are", "was", "were", "what", "which", "who", "whom",
    "how", "why", "when", "where", "does", "did", "this", "that", "with",
    "from", "into", "about", "has", "have", "had", "its", "their", "than",
}


def content_tokens(text: str) -> Set[str]:
    """Lower-cased word tokens of three or more characters, minus stopwords."""
    return {
        token
        for token in _TOKEN_PATTERN.findall(text.lower())
        if len(token) >= 3 and token not in _STOPWORDS
    }


class StructuralValidator:
    """Hard structural checks applied to every candidate."""

    def check(self, candidate: QuestionCandidate) -> List[str]:
        """Return the structural errors of a candidate (empty if well-formed)."""
        errors: List[str] = []

        if len(candidate.question.strip()) < MIN_QUESTION_LENGTH:
            errors.append("Question text is too short")

        if not candidate.answer.strip():
            errors.append("Answer is missing")

        if len(candidate.options) != REQUIRED_OPTION_COUNT:
            errors.append(
                f"Multiple choice questions must have exactly {REQUIRED_OPTION_COUNT} options"
            )

        if not 0 <= candidate.correct_index < REQUIRED_OPTION_COUNT:
            errors.append(
                f"Correct index must be between 0 and {REQUIRED_OPTION_COUNT - 1}"
            )
        elif (
            candidate.correct_index < len(candidate.options)
            and candidate.answer.strip()
            and candidate.options[candidate.correct_index] != candidate.answer
        ):
            errors.append("Answer does not match the option at the correct index")

        normalized = [option.strip().lower() for option in candidate.options]
        if len(set(normalized)) != len(normalized):
            errors.append("Options must be distinct")

        return errors


class GeneralValidator:
    """Relevance and level checks for non-mathematics domains."""

    def validate(self, candidate: QuestionCandidate, scope: ContentScope) -> ValidationResult:
        """Produce warnings for questions that drift from the material.

        Args:
            candidate: Parsed question
            scope: Content scope of the request

        Returns:
            ValidationResult with warnings only
        """
        warnings: List[str] = []
        errors: List[str] = []

        stem_tokens = content_tokens(candidate.question)
        concept_tokens: Set[str] = set()
        for concept in scope.concepts_taught:
            concept_tokens.update(content_tokens(concept))
        if concept_tokens and not stem_tokens & concept_tokens:
            warnings.append("Question may not relate to concepts covered in the material")

        if scope.educational_level is EducationalLevel.ELEMENTARY:
            lowered = candidate.question.lower()
            if any(word in lowered for word in ELEMENTARY_COMPLEX_WORDS):
                warnings.append(
                    "Question may use vocabulary too advanced for elementary level"
                )

        self.domain_checks(candidate, scope, errors, warnings)

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            domain=scope.subject_domain,
        )

    def domain_checks(
        self,
        candidate: QuestionCandidate,
        scope: ContentScope,
        errors: List[str],
        warnings: List[str],
    ) -> None:
        """Hook for domain-specific checks."""


class HistoryValidator(GeneralValidator):
    """Adds a chronology check for history questions."""

    def domain_checks(self, candidate, scope, errors, warnings) -> None:
        years = sorted(int(year) for year in YEAR_PATTERN.findall(candidate.question))
        if len(years) > 1 and years[-1] - years[0] > MAX_YEAR_SPAN:
            warnings.append(
                f"Potential date conflict: years {years[0]} and {years[-1]} "
                f"are more than {MAX_YEAR_SPAN} years apart"
            )


class LiteratureValidator(GeneralValidator):
    """Adds a textual-analysis check for literature questions."""

    def domain_checks(self, candidate, scope, errors, warnings) -> None:
        lowered = candidate.question.lower()
        if not any(word in lowered for word in TEXTUAL_ANALYSIS_WORDS):
            warnings.append("Question should focus more on textual analysis")
