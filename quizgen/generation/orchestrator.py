"""Generation orchestrator.

Owns the bounded retry loop around the completion provider: build the prompt
once, request a completion, parse it, and retry on empty output, scope
violations, unparsable output or provider errors. Running out of attempts is
a normal outcome that yields no candidates.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config.generation_config import (
    SCOPE_VIOLATION_MARKER,
    GenerationConfig,
    default_generation_config,
)
from ..data.models import ContentScope, DifficultyLevel, QuestionCandidate
from ..infrastructure.error_classifier import BackendError, ErrorClassifier
from ..observability import observability
from ..providers.base import BaseLLMProvider
from .parser import parse_questions
from .prompts import build_generation_prompt

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0


class GenerationState(str, Enum):
    """States of the generation loop."""

    BUILDING = "building"
    REQUESTING = "requesting"
    PARSING = "parsing"
    SUCCEEDED = "succeeded"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"


@dataclass
class AttemptRecord:
    """Outcome of one generation attempt."""

    attempt: int
    state: GenerationState
    reason: Optional[str] = None
    response_chars: int = 0
    candidates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempt": self.attempt,
            "state": self.state.value,
            "reason": self.reason,
            "response_chars": self.response_chars,
            "candidates": self.candidates,
        }


@dataclass
class GenerationOutcome:
    """Candidates from the successful attempt plus the attempt log."""

    candidates: List[QuestionCandidate] = field(default_factory=list)
    attempts: List[AttemptRecord] = field(default_factory=list)
    final_state: GenerationState = GenerationState.BUILDING

    @property
    def succeeded(self) -> bool:
        return self.final_state is GenerationState.SUCCEEDED


def contains_scope_violation(text: str) -> bool:
    """Check whether the model reported that it could not stay in scope.

    Backends strip a matched stop sequence from the reply. When the marker is
    configured as a stop sequence and the model emits it after some complete
    questions, only those questions come back, the marker is never seen here,
    and the attempt succeeds with the partial output. A reply that starts with
    the marker arrives empty and is retried as an empty response.
    """
    return SCOPE_VIOLATION_MARKER.lower() in text.lower()


class GenerationOrchestrator:
    """Bounded generate-parse-retry loop around a completion provider."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        config: Optional[GenerationConfig] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the orchestrator.

        Args:
            provider: Completion provider
            config: Generation configuration (decoding profiles, stop sequences)
            max_attempts: Attempt budget per request
            backoff_seconds: Fixed wait between attempts
            sleep: Sleep function, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if backoff_seconds < 0:
            raise ValueError(f"backoff_seconds must be non-negative, got {backoff_seconds}")

        self.provider = provider
        self.config = config or default_generation_config()
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def generate(
        self,
        content: str,
        count: int,
        difficulty: DifficultyLevel,
        scope: ContentScope,
    ) -> List[QuestionCandidate]:
        """Generate question candidates.

        Returns:
            Candidates from the first attempt that produced any, else []
        """
        return self.run(content, count, difficulty, scope).candidates

    def run(
        self,
        content: str,
        count: int,
        difficulty: DifficultyLevel,
        scope: ContentScope,
    ) -> GenerationOutcome:
        """Run the retry loop and keep the per-attempt log.

        Args:
            content: Study material (already truncated by the caller)
            count: Number of questions requested
            difficulty: Requested difficulty
            scope: Content scope the questions must stay within

        Returns:
            GenerationOutcome with candidates and attempt records
        """
        outcome = GenerationOutcome()
        domain = scope.subject_domain

        # The same prompt is sent on every attempt
        prompt = build_generation_prompt(content, count, difficulty, scope)
        options = self.config.decoding_options(domain, count)

        with observability.start_span(
            "quizgen.generation",
            attributes={
                "domain": domain.value,
                "count": count,
                "difficulty": difficulty.value,
                "provider": self.provider.get_provider_name(),
            },
        ) as span:
            for attempt in range(1, self.max_attempts + 1):
                record = self._attempt(attempt, prompt, options, count)
                outcome.attempts.append(record.record)
                observability.record_metric(
                    "quizgen.generation.attempts",
                    value=1,
                    labels={"domain": domain.value, "state": record.record.state.value},
                )

                if record.candidates:
                    outcome.candidates = record.candidates
                    outcome.final_state = GenerationState.SUCCEEDED
                    break

                if attempt < self.max_attempts:
                    logger.info(
                        f"Generation attempt {attempt}/{self.max_attempts} failed "
                        f"({record.record.reason}), retrying in {self.backoff_seconds}s"
                    )
                    self._sleep(self.backoff_seconds)
            else:
                outcome.final_state = GenerationState.EXHAUSTED
                logger.warning(
                    f"Generation exhausted {self.max_attempts} attempts "
                    f"for domain={domain.value}"
                )

            span.set_attribute("attempts", len(outcome.attempts))
            span.set_attribute("success", outcome.succeeded)
            span.set_attribute("candidates", len(outcome.candidates))

        return outcome

    def _attempt(
        self, attempt: int, prompt: str, options, count: int
    ) -> "_AttemptResult":
        state = GenerationState.REQUESTING
        logger.debug(f"Attempt {attempt}: state={state.value}")
        try:
            response = self.provider.generate_completion(prompt, options)
        except BackendError as e:
            self._report_backend_error(e, attempt)
            return _AttemptResult.retry(attempt, f"provider error: {e.classified_error.category.value}")
        except Exception as e:
            classified = ErrorClassifier.classify_error(e, self.provider.get_provider_name())
            logger.exception(f"Unexpected provider failure on attempt {attempt}: {classified}")
            return _AttemptResult.retry(attempt, f"provider error: {classified.category.value}")

        if not response or not response.strip():
            return _AttemptResult.retry(attempt, "empty response")

        if contains_scope_violation(response):
            logger.info(f"Model reported a scope violation on attempt {attempt}")
            return _AttemptResult.retry(attempt, "scope violation", len(response))

        state = GenerationState.PARSING
        logger.debug(f"Attempt {attempt}: state={state.value}")
        candidates = parse_questions(response, count)
        if not candidates:
            return _AttemptResult.retry(attempt, "no parsable questions", len(response))

        logger.info(f"Attempt {attempt} produced {len(candidates)} candidates")
        return _AttemptResult(
            record=AttemptRecord(
                attempt=attempt,
                state=GenerationState.SUCCEEDED,
                response_chars=len(response),
                candidates=len(candidates),
            ),
            candidates=candidates,
        )

    def _report_backend_error(self, error: BackendError, attempt: int) -> None:
        classified = error.classified_error
        logger.warning(f"Provider error on attempt {attempt}: {classified}")
        if ErrorClassifier.should_alert(classified):
            observability.capture_error(
                error,
                context={"attempt": attempt, **classified.to_dict()},
                level="error",
                tags={"component": "generation", "error_category": classified.category.value},
                fingerprint=["generation", classified.provider, classified.category.value],
            )


@dataclass
class _AttemptResult:
    record: AttemptRecord
    candidates: List[QuestionCandidate] = field(default_factory=list)

    @classmethod
    def retry(cls, attempt: int, reason: str, response_chars: int = 0) -> "_AttemptResult":
        return cls(
            record=AttemptRecord(
                attempt=attempt,
                state=GenerationState.RETRYING,
                reason=reason,
                response_chars=response_chars,
            )
        )
