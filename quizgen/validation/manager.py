"""Validation manager.

Dispatches each candidate to the validator for the scope's domain after the
shared structural checks. Any hard error drops the candidate: there is no
partial credit and no automatic repair.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..data.models import (
    ContentScope,
    QuestionCandidate,
    RejectedCandidate,
    SubjectDomain,
    ValidatedQuestion,
    ValidationResult,
)
from .arithmetic import ArithmeticScopeValidator
from .general import GeneralValidator, HistoryValidator, LiteratureValidator, StructuralValidator

logger = logging.getLogger(__name__)


class ValidationManager:
    """Validate candidates against a content scope."""

    def __init__(
        self,
        validators: Optional[Dict[SubjectDomain, object]] = None,
        default_validator: Optional[GeneralValidator] = None,
    ):
        """Initialize the manager.

        Args:
            validators: Validator per domain; each exposes
                ``validate(candidate, scope) -> ValidationResult``
            default_validator: Validator for domains without an entry
        """
        self.structural = StructuralValidator()
        if validators is None:
            validators = {
                SubjectDomain.MATHEMATICS: ArithmeticScopeValidator(),
                SubjectDomain.HISTORY: HistoryValidator(),
                SubjectDomain.LITERATURE: LiteratureValidator(),
            }
        self.validators = validators
        self.default_validator = default_validator or GeneralValidator()

    def validate(self, candidate: QuestionCandidate, scope: ContentScope) -> ValidationResult:
        """Validate one candidate.

        Args:
            candidate: Parsed question
            scope: Content scope of the request

        Returns:
            Combined structural and domain validation result
        """
        structural_errors = self.structural.check(candidate)
        validator = self.validators.get(scope.subject_domain, self.default_validator)
        try:
            domain_result = validator.validate(candidate, scope)
        except Exception as e:
            logger.exception(f"Validator failed on '{candidate.question[:60]}': {e}")
            domain_result = ValidationResult(
                is_valid=False,
                errors=["Validation failed unexpectedly"],
                domain=scope.subject_domain,
            )

        errors = structural_errors + domain_result.errors
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=domain_result.warnings,
            domain=scope.subject_domain,
        )

    def filter_valid(
        self, candidates: Sequence[QuestionCandidate], scope: ContentScope
    ) -> Tuple[List[ValidatedQuestion], List[RejectedCandidate]]:
        """Keep only candidates that pass validation.

        Args:
            candidates: Parsed questions
            scope: Content scope of the request

        Returns:
            Tuple of (validated questions, rejected candidates with reasons)
        """
        validated: List[ValidatedQuestion] = []
        rejected: List[RejectedCandidate] = []

        for candidate in candidates:
            result = self.validate(candidate, scope)
            if result.warnings:
                logger.debug(
                    f"Validation warnings for '{candidate.question[:60]}': {result.warnings}"
                )
            if not result.is_valid:
                logger.debug(
                    f"Rejected question '{candidate.question[:60]}': {result.errors}"
                )
                rejected.append(
                    RejectedCandidate(question=candidate.question, errors=result.errors)
                )
                continue
            validated.append(ValidatedQuestion.from_candidate(candidate))

        logger.info(
            f"Validation: {len(validated)} accepted, {len(rejected)} rejected "
            f"(domain={scope.subject_domain.value})"
        )
        return validated, rejected
