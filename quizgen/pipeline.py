"""Question generation pipeline.

This module provides the in-process entry point for generating questions,
coordinating the scope analyzer, domain classifier, generation orchestrator
and validation manager.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from .analysis.domain_classifier import DomainClassifier
from .analysis.scope_analyzer import (
    ContentScopeAnalyzer,
    is_content_sufficient,
    merge_domain,
    truncate_content,
)
from .config.generation_config import GenerationConfig, load_generation_config
from .config.settings import Settings, settings as default_settings
from .data.models import (
    DifficultyLevel,
    GenerationReport,
    SubjectRef,
    TopicRef,
    ValidatedQuestion,
)
from .generation.orchestrator import GenerationOrchestrator
from .observability import observability
from .providers import create_provider
from .providers.base import BaseLLMProvider
from .validation.manager import ValidationManager

logger = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r"\s+")

SubjectInput = Union[SubjectRef, Dict[str, Any], None]
TopicInput = Union[TopicRef, Dict[str, Any], None]


def normalize_stem(question: str) -> str:
    """Normalize a question stem for duplicate detection."""
    return _WHITESPACE_PATTERN.sub(" ", question).strip().lower()


def dedupe_questions(
    questions: List[ValidatedQuestion],
) -> Tuple[List[ValidatedQuestion], int]:
    """Drop questions whose stem repeats an earlier one.

    Returns:
        Tuple of (unique questions in original order, number removed)
    """
    seen = set()
    unique: List[ValidatedQuestion] = []
    for question in questions:
        key = normalize_stem(question.question)
        if key in seen:
            continue
        seen.add(key)
        unique.append(question)
    return unique, len(questions) - len(unique)


def _coerce_difficulty(difficulty: Union[DifficultyLevel, str]) -> DifficultyLevel:
    if isinstance(difficulty, DifficultyLevel):
        return difficulty
    try:
        return DifficultyLevel(str(difficulty).strip().lower())
    except ValueError:
        valid = [d.value for d in DifficultyLevel]
        raise ValueError(f"difficulty must be one of {valid}, got '{difficulty}'") from None


def _coerce_subject(subject: SubjectInput) -> SubjectRef:
    if subject is None:
        return SubjectRef()
    if isinstance(subject, SubjectRef):
        return subject
    return SubjectRef.model_validate(subject)


def _coerce_topic(topic: TopicInput) -> TopicRef:
    if topic is None:
        return TopicRef()
    if isinstance(topic, TopicRef):
        return topic
    return TopicRef.model_validate(topic)


class QuestionGenerationPipeline:
    """Generates validated study questions from raw study text.

    One completion provider is shared by the analyzer and the orchestrator.
    The pipeline holds no per-request state, so a single instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        settings: Optional[Settings] = None,
        generation_config: Optional[GenerationConfig] = None,
        analyzer: Optional[ContentScopeAnalyzer] = None,
        classifier: Optional[DomainClassifier] = None,
        orchestrator: Optional[GenerationOrchestrator] = None,
        validator: Optional[ValidationManager] = None,
    ):
        """Initialize the pipeline.

        Args:
            provider: Completion provider
            settings: Settings (uses the global settings if not provided)
            generation_config: Decoding profiles (loaded from
                ``settings.generation_config_path`` if not provided)
            analyzer: Scope analyzer override
            classifier: Domain classifier override
            orchestrator: Generation orchestrator override
            validator: Validation manager override
        """
        self.settings = settings or default_settings
        self.provider = provider
        self.generation_config = generation_config or load_generation_config(
            self.settings.generation_config_path
        )
        self.content_window_chars = self.settings.content_window_chars

        self.analyzer = analyzer or ContentScopeAnalyzer(
            provider,
            analysis_options=self.generation_config.analysis.to_decoding_options(),
            content_window_chars=self.content_window_chars,
        )
        self.classifier = classifier or DomainClassifier()
        self.orchestrator = orchestrator or GenerationOrchestrator(
            provider,
            config=self.generation_config,
            max_attempts=self.settings.max_generation_attempts,
            backoff_seconds=self.settings.retry_backoff_seconds,
        )
        self.validator = validator or ValidationManager()

        logger.info(
            f"Question generation pipeline initialized "
            f"(provider={provider.get_provider_name()})"
        )

    def generate_questions(
        self,
        content: str,
        count: int,
        difficulty: Union[DifficultyLevel, str],
        subject: SubjectInput = None,
        topic: TopicInput = None,
    ) -> List[ValidatedQuestion]:
        """Generate validated questions for a piece of study material.

        Args:
            content: Raw study text
            count: Number of questions wanted (at least 1)
            difficulty: easy, medium or hard
            subject: Subject reference or dict
            topic: Topic reference or dict

        Returns:
            Up to ``count`` validated questions, possibly none

        Raises:
            ValueError: If count is below 1 or difficulty is unknown
        """
        return self.generate_with_report(content, count, difficulty, subject, topic).questions

    def generate_with_report(
        self,
        content: str,
        count: int,
        difficulty: Union[DifficultyLevel, str],
        subject: SubjectInput = None,
        topic: TopicInput = None,
    ) -> GenerationReport:
        """Generate questions and return the full diagnostics for the request.

        Args:
            content: Raw study text
            count: Number of questions wanted (at least 1)
            difficulty: easy, medium or hard
            subject: Subject reference or dict
            topic: Topic reference or dict

        Returns:
            GenerationReport whose ``questions`` are the validated questions

        Raises:
            ValueError: If count is below 1 or difficulty is unknown
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")
        difficulty_level = _coerce_difficulty(difficulty)
        subject_ref = _coerce_subject(subject)
        topic_ref = _coerce_topic(topic)

        if not is_content_sufficient(content):
            logger.warning("Content is too short to generate questions from")
            return GenerationReport(content_sufficient=False)

        with observability.start_span(
            "quizgen.pipeline.generate_questions",
            attributes={
                "count": count,
                "difficulty": difficulty_level.value,
                "subject": subject_ref.name,
                "topic": topic_ref.name,
            },
        ) as span:
            window = truncate_content(content, self.content_window_chars)

            domain = self.classifier.classify(window, subject_ref, topic_ref)
            scope = self.analyzer.analyze(window, subject_ref, topic_ref, domain=domain)
            scope = merge_domain(scope, domain)
            span.set_attribute("domain", domain.value)
            logger.info(
                f"Pipeline: generating {count} {difficulty_level.value} questions "
                f"(domain={domain.value}, level={scope.educational_level.value})"
            )

            outcome = self.orchestrator.run(window, count, difficulty_level, scope)
            validated, rejected = self.validator.filter_valid(outcome.candidates, scope)
            unique, duplicates = dedupe_questions(validated)
            questions = unique[:count]

            labels = {"domain": domain.value}
            observability.record_metric(
                "quizgen.questions.validated", value=len(questions), labels=labels
            )
            observability.record_metric(
                "quizgen.questions.rejected", value=len(rejected), labels=labels
            )
            span.set_attribute("questions_generated", len(questions))
            span.set_attribute("questions_rejected", len(rejected))

            logger.info(
                f"Pipeline: returning {len(questions)}/{count} questions "
                f"({len(rejected)} rejected, {duplicates} duplicates)"
            )

            return GenerationReport(
                scope=scope,
                content_sufficient=True,
                attempts=[record.to_dict() for record in outcome.attempts],
                candidates_parsed=len(outcome.candidates),
                rejected=rejected,
                duplicates_removed=duplicates,
                questions=questions,
            )

    def is_healthy(self) -> bool:
        """Check whether the completion provider answers a trivial prompt."""
        return self.provider.is_healthy()


def create_pipeline(settings: Optional[Settings] = None) -> QuestionGenerationPipeline:
    """Build a pipeline with the provider selected by configuration.

    Args:
        settings: Settings to read (uses the global settings if not provided)

    Returns:
        Configured pipeline
    """
    settings = settings or default_settings
    return QuestionGenerationPipeline(create_provider(settings), settings=settings)
