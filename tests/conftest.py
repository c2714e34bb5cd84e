"""Pytest configuration and shared fixtures for quizgen tests."""

from typing import List, Optional, Sequence, Tuple, Union

import pytest

from quizgen.data.models import (
    ContentScope,
    DecodingOptions,
    EducationalLevel,
    NumberRange,
    SubjectDomain,
    SubjectRef,
    TopicRef,
)
from quizgen.infrastructure.error_classifier import BackendError, ErrorClassifier
from quizgen.providers.base import BaseLLMProvider

ScriptedReply = Union[str, Exception]


class ScriptedProvider(BaseLLMProvider):
    """Completion provider that replays a fixed script of replies.

    Exceptions in the script are raised (wrapped in ``BackendError`` unless
    they already are one). Once the script runs out the last entry repeats.
    """

    def __init__(self, replies: Sequence[ScriptedReply], model: str = "scripted-model"):
        super().__init__(model)
        self.replies: List[ScriptedReply] = list(replies)
        self.calls: List[Tuple[str, Optional[DecodingOptions]]] = []

    def generate_completion(
        self,
        prompt: str,
        options: Optional[DecodingOptions] = None,
    ) -> str:
        self.calls.append((prompt, options))
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, BackendError):
            raise reply
        if isinstance(reply, Exception):
            raise self._handle_api_error(reply)
        return reply

    def get_provider_name(self) -> str:
        return "scripted"

    @property
    def prompts(self) -> List[str]:
        return [prompt for prompt, _ in self.calls]


def make_backend_error(message: str = "Connection refused") -> BackendError:
    """Build a classified backend error for a failed connection."""
    error = ConnectionError(message)
    return BackendError(
        classified_error=ErrorClassifier.classify_error(error, "scripted"),
        original_exception=error,
    )


ADDITION_NOTES = (
    "Adding numbers means putting groups together. When we add 3 + 4 we count "
    "on from 3 and get 7. Another example is 5 + 2 = 7. To subtract we take "
    "away: 9 - 4 = 5. Practice adding and subtracting small numbers every day."
)

ADDITION_ANALYSIS = """EDUCATIONAL_LEVEL: elementary
SUBJECT_DOMAIN: mathematics
CONCEPTS_TAUGHT: addition, subtraction
OPERATIONS_SHOWN: addition, subtraction
COMPLEXITY_LEVEL: basic
NUMBER_RANGE: single_digit
PREREQUISITES: counting"""

ADDITION_QUESTIONS = """QUESTION 1:
What is 7 + 9?
A) 16
B) 18
C) 15
D) 17
CORRECT: A
EXPLANATION: 7 + 9 = 16.

QUESTION 2:
What is 8 - 3?
A) 4
B) 5
C) 6
D) 11
CORRECT: B
EXPLANATION: 8 - 3 = 5.

QUESTION 3:
What is 6 + 5?
A) 10
B) 12
C) 11
D) 13
CORRECT: C
EXPLANATION: 6 + 5 = 11.

END_QUESTIONS"""


@pytest.fixture
def math_subject() -> SubjectRef:
    """Fixture providing a mathematics subject reference."""
    return SubjectRef(id=1, name="Mathematics")


@pytest.fixture
def addition_topic() -> TopicRef:
    """Fixture providing an addition topic reference."""
    return TopicRef(id=10, name="Addition")


@pytest.fixture
def elementary_math_scope(math_subject, addition_topic) -> ContentScope:
    """Fixture providing an elementary addition/subtraction scope."""
    return ContentScope(
        educational_level=EducationalLevel.ELEMENTARY,
        subject_domain=SubjectDomain.MATHEMATICS,
        concepts_taught=["addition", "subtraction"],
        operations_shown=["addition", "subtraction"],
        number_range=NumberRange.SINGLE_DIGIT,
        subject_info=math_subject,
        topic_info=addition_topic,
    )


@pytest.fixture
def history_scope() -> ContentScope:
    """Fixture providing a middle school history scope."""
    return ContentScope(
        educational_level=EducationalLevel.MIDDLE_SCHOOL,
        subject_domain=SubjectDomain.HISTORY,
        concepts_taught=["causes of World War I", "alliances"],
        operations_shown=["factual recall"],
        subject_info=SubjectRef(name="History"),
        topic_info=TopicRef(name="World War I"),
    )


@pytest.fixture
def addition_notes() -> str:
    """Fixture providing short addition study notes."""
    return ADDITION_NOTES


@pytest.fixture
def addition_analysis() -> str:
    """Fixture providing a well-formed analysis reply for the addition notes."""
    return ADDITION_ANALYSIS


@pytest.fixture
def addition_questions() -> str:
    """Fixture providing a well-formed generation reply with three questions."""
    return ADDITION_QUESTIONS


@pytest.fixture
def scripted_provider():
    """Fixture providing a factory for providers that replay scripted replies."""
    return ScriptedProvider


@pytest.fixture
def backend_error():
    """Fixture providing a factory for classified connection errors."""
    return make_backend_error


@pytest.fixture
def mock_openai_api_key() -> str:
    """Fixture providing a mock OpenAI API key for testing."""
    return "sk-test-mock-api-key-12345"
