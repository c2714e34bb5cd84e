"""Content scope analysis.

This module asks the completion provider what a piece of study material
actually teaches (level, concepts, operations, number range) and turns the
reply into a ``ContentScope``. Analysis never fails the request: when the
provider is unreachable or its reply cannot be parsed, a conservative default
scope derived from the subject is returned instead.
"""

import logging
import re
from typing import Dict, List, Optional

from ..data.models import (
    ComplexityLevel,
    ContentScope,
    DecodingOptions,
    EducationalLevel,
    NumberRange,
    SubjectDomain,
    SubjectRef,
    TopicRef,
)
from ..infrastructure.error_classifier import BackendError
from ..observability import observability
from ..providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_WINDOW_CHARS = 1500
MIN_CONTENT_CHARS = 50
MIN_CONTENT_WORDS = 10

ANALYSIS_OPTIONS = DecodingOptions(temperature=0.1, top_p=0.8, num_predict=400)

ANALYSIS_KEYS = (
    "EDUCATIONAL_LEVEL",
    "SUBJECT_DOMAIN",
    "CONCEPTS_TAUGHT",
    "OPERATIONS_SHOWN",
    "COMPLEXITY_LEVEL",
    "NUMBER_RANGE",
    "PREREQUISITES",
)

ANALYSIS_PROMPT_TEMPLATE = """You are an educational content analyzer. Analyze this study material to understand EXACTLY what it teaches.

STUDY MATERIAL:
{content}

Your task: Determine what specific concepts, skills, and operations this material ACTUALLY covers.

Respond in this EXACT format:

EDUCATIONAL_LEVEL: [elementary/middle_school/high_school/college]
SUBJECT_DOMAIN: [{domains}]
CONCEPTS_TAUGHT: [specific concepts the material teaches, separated by commas]
OPERATIONS_SHOWN: [specific operations, procedures, or skills demonstrated, separated by commas]
COMPLEXITY_LEVEL: [basic/intermediate/advanced]
NUMBER_RANGE: [if math, the range of numbers used: single_digit/double_digit/triple_digit/larger]
PREREQUISITES: [prior knowledge the material assumes, separated by commas]

IMPORTANT: Only list what is EXPLICITLY shown or taught in the material. Don't infer or assume related concepts.
{domain_hint}"""

DOMAIN_HINTS: Dict[SubjectDomain, str] = {
    SubjectDomain.MATHEMATICS: """
MATHEMATICS FOCUS: Pay special attention to:
- Which operations are actually shown (addition, subtraction, multiplication, division)
- The size and complexity of the numbers used in examples
- Whether word problems are present and how complex they are
- Which concepts are explicitly taught versus only mentioned""",
    SubjectDomain.HISTORY: """
HISTORY FOCUS: Pay attention to:
- The specific time periods covered
- The kind of historical analysis (facts, causes, effects, significance)
- Geographic scope (local, national, world history)
- How complex the historical thinking required is""",
}

GENERAL_HINT = """
GENERAL FOCUS: Determine:
- The educational level of the vocabulary and concepts
- Whether the content is introductory or advanced
- Which specific skills or knowledge areas are covered"""

# Tolerates bullets, markdown bold and spaces in keys: "- **Number range:** ..."
_LINE_PATTERN = re.compile(r"^[\s*\-#>•]*([A-Za-z][A-Za-z _]*?)\s*\**\s*:\s*(.*)$")

_LEVEL_ALIASES = (
    ("elementary", EducationalLevel.ELEMENTARY),
    ("primary", EducationalLevel.ELEMENTARY),
    ("middle", EducationalLevel.MIDDLE_SCHOOL),
    ("high", EducationalLevel.HIGH_SCHOOL),
    ("secondary", EducationalLevel.HIGH_SCHOOL),
    ("college", EducationalLevel.COLLEGE),
    ("university", EducationalLevel.COLLEGE),
)

_DOMAIN_ALIASES = {
    "math": SubjectDomain.MATHEMATICS,
    "maths": SubjectDomain.MATHEMATICS,
    "english": SubjectDomain.LITERATURE,
    "computer_science": SubjectDomain.COMPUTING,
    "programming": SubjectDomain.COMPUTING,
}

_EMPTY_VALUES = {"", "none", "n/a", "na", "not applicable", "-"}


def truncate_content(content: str, limit: int = DEFAULT_CONTENT_WINDOW_CHARS) -> str:
    """Return the bounded prefix of ``content`` that analysis and prompts see."""
    return (content or "")[:limit]


def is_content_sufficient(content: str) -> bool:
    """Check that there is enough text to generate questions from.

    Args:
        content: Study material text

    Returns:
        False if the text is under 50 characters or under 10 words
    """
    stripped = (content or "").strip()
    return len(stripped) >= MIN_CONTENT_CHARS and len(stripped.split()) >= MIN_CONTENT_WORDS


def domain_from_subject_name(subject: Optional[SubjectRef]) -> SubjectDomain:
    """Guess a domain from the subject name alone, used for hints and defaults."""
    name = (subject.name if subject else "").lower()
    if "math" in name:
        return SubjectDomain.MATHEMATICS
    if "history" in name:
        return SubjectDomain.HISTORY
    return SubjectDomain.GENERAL


def build_analysis_prompt(content: str, domain: SubjectDomain) -> str:
    """Build the structured extraction prompt for scope analysis.

    Args:
        content: Truncated study material
        domain: Domain used to pick the focus hint

    Returns:
        Prompt text
    """
    return ANALYSIS_PROMPT_TEMPLATE.format(
        content=content,
        domains="/".join(d.value for d in SubjectDomain),
        domain_hint=DOMAIN_HINTS.get(domain, GENERAL_HINT),
    )


def _clean_value(raw: str) -> str:
    return raw.strip().strip("*[]\"'`").strip()


def _split_list(raw: str) -> List[str]:
    items = [_clean_value(item) for item in re.split(r"[,;]", _clean_value(raw))]
    return [item for item in items if item.lower() not in _EMPTY_VALUES]


def _normalize_token(raw: str) -> str:
    return re.sub(r"[\s\-]+", "_", _clean_value(raw).lower())


def _parse_level(raw: str) -> Optional[EducationalLevel]:
    value = _clean_value(raw).lower()
    for alias, level in _LEVEL_ALIASES:
        if alias in value:
            return level
    return None


def _parse_enum(raw: str, enum_cls, aliases: Optional[Dict] = None):
    value = _normalize_token(raw)
    if aliases and value in aliases:
        return aliases[value]
    # Accept decorated values such as "double_digit_(10_99)"
    for member in enum_cls:
        if member.value in value:
            return member
    return None


def parse_analysis_response(response: str) -> Optional[Dict[str, object]]:
    """Parse ``KEY: value`` lines from an analysis reply.

    Unknown keys are ignored and unknown enum values are left out, so the
    caller's defaults apply.

    Args:
        response: Raw reply text

    Returns:
        Mapping of recognized fields, or None if no known key was found
    """
    if not response or not response.strip():
        return None

    fields: Dict[str, object] = {}
    recognized = False

    for line in response.splitlines():
        match = _LINE_PATTERN.match(line.strip())
        if not match:
            continue
        key = re.sub(r"\s+", "_", match.group(1).strip()).upper()
        value = match.group(2)
        if key not in ANALYSIS_KEYS:
            continue
        recognized = True

        if key == "EDUCATIONAL_LEVEL":
            level = _parse_level(value)
            if level is not None:
                fields["educational_level"] = level
        elif key == "SUBJECT_DOMAIN":
            domain = _parse_enum(value, SubjectDomain, _DOMAIN_ALIASES)
            if domain is not None:
                fields["subject_domain"] = domain
        elif key == "CONCEPTS_TAUGHT":
            fields["concepts_taught"] = _split_list(value)
        elif key == "OPERATIONS_SHOWN":
            fields["operations_shown"] = _split_list(value)
        elif key == "COMPLEXITY_LEVEL":
            complexity = _parse_enum(value, ComplexityLevel)
            if complexity is not None:
                fields["complexity_level"] = complexity
        elif key == "NUMBER_RANGE":
            number_range = _parse_enum(value, NumberRange)
            if number_range is not None:
                fields["number_range"] = number_range
        elif key == "PREREQUISITES":
            fields["prerequisites"] = _split_list(value)

    return fields if recognized else None


def default_scope(
    subject: Optional[SubjectRef],
    topic: Optional[TopicRef],
    domain: Optional[SubjectDomain] = None,
) -> ContentScope:
    """Build the conservative scope used when analysis is unavailable.

    Args:
        subject: Subject reference
        topic: Topic reference
        domain: Classified domain; derived from the subject name when omitted

    Returns:
        Default content scope
    """
    domain = domain or domain_from_subject_name(subject)
    topic_name = topic.name if topic and topic.name else ""

    if domain is SubjectDomain.MATHEMATICS:
        level = EducationalLevel.ELEMENTARY
        operations = ["addition", "subtraction"]
    elif domain is SubjectDomain.HISTORY:
        level = EducationalLevel.MIDDLE_SCHOOL
        operations = ["factual recall", "basic analysis"]
    else:
        level = EducationalLevel.MIDDLE_SCHOOL
        operations = ["basic operations"]

    return ContentScope(
        educational_level=level,
        subject_domain=domain,
        concepts_taught=[topic_name or "general concepts"],
        operations_shown=operations,
        complexity_level=ComplexityLevel.BASIC,
        number_range=NumberRange.SINGLE_DIGIT,
        prerequisites=["none"],
        subject_info=subject or SubjectRef(),
        topic_info=topic or TopicRef(),
        raw_analysis=None,
    )


def build_scope(
    fields: Dict[str, object],
    subject: Optional[SubjectRef],
    topic: Optional[TopicRef],
    raw_analysis: Optional[str] = None,
) -> ContentScope:
    """Build a scope from parsed analysis fields, filling required values.

    Empty concepts fall back to the topic name; a mathematics scope with no
    operations gets "basic arithmetic".
    """
    values = dict(fields)
    if not values.get("concepts_taught"):
        values["concepts_taught"] = [topic.name if topic and topic.name else "basic concepts"]
    if values.get("subject_domain") is SubjectDomain.MATHEMATICS and not values.get(
        "operations_shown"
    ):
        values["operations_shown"] = ["basic arithmetic"]

    return ContentScope(
        subject_info=subject or SubjectRef(),
        topic_info=topic or TopicRef(),
        raw_analysis=raw_analysis,
        **values,
    )


def merge_domain(scope: ContentScope, domain: SubjectDomain) -> ContentScope:
    """Return a copy of ``scope`` with the classified domain applied.

    Args:
        scope: Scope produced by the analyzer
        domain: Domain from the rule-based classifier, which takes precedence

    Returns:
        New content scope
    """
    update: Dict[str, object] = {"subject_domain": domain}
    if domain is SubjectDomain.MATHEMATICS and not scope.operations_shown:
        update["operations_shown"] = ["basic arithmetic"]
    return scope.model_copy(update=update)


class ContentScopeAnalyzer:
    """Determines what a piece of study material actually teaches."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        analysis_options: Optional[DecodingOptions] = None,
        content_window_chars: int = DEFAULT_CONTENT_WINDOW_CHARS,
    ):
        """Initialize the analyzer.

        Args:
            provider: Completion provider used for the analysis call
            analysis_options: Decoding options (low temperature, short budget)
            content_window_chars: Length of the content prefix analyzed
        """
        self.provider = provider
        self.analysis_options = analysis_options or ANALYSIS_OPTIONS
        self.content_window_chars = content_window_chars

    def analyze(
        self,
        content: str,
        subject: Optional[SubjectRef] = None,
        topic: Optional[TopicRef] = None,
        domain: Optional[SubjectDomain] = None,
    ) -> ContentScope:
        """Analyze study material. Never raises.

        Args:
            content: Study material text
            subject: Subject reference
            topic: Topic reference
            domain: Classified domain, used for the focus hint and the default
                scope (derived from the subject name when omitted)

        Returns:
            Content scope from the provider's analysis, or the default scope
        """
        hint_domain = domain or domain_from_subject_name(subject)
        window = truncate_content(content, self.content_window_chars)

        with observability.start_span(
            "quizgen.analyze_scope",
            attributes={"content_length": len(window), "domain_hint": hint_domain.value},
        ) as span:
            prompt = build_analysis_prompt(window, hint_domain)
            try:
                reply = self.provider.generate_completion(prompt, self.analysis_options)
            except BackendError as e:
                logger.warning(f"Scope analysis unavailable, using default scope: {e}")
                span.set_attribute("used_default", True)
                return default_scope(subject, topic, hint_domain)
            except Exception as e:
                logger.exception(f"Unexpected error during scope analysis: {e}")
                span.record_exception(e)
                observability.capture_error(
                    e,
                    context={"operation": "analyze_scope"},
                    tags={"component": "scope_analyzer"},
                )
                span.set_attribute("used_default", True)
                return default_scope(subject, topic, hint_domain)

            fields = parse_analysis_response(reply)
            if fields is None:
                logger.warning("Scope analysis reply was not parseable, using default scope")
                span.set_attribute("used_default", True)
                return default_scope(subject, topic, hint_domain)

            scope = build_scope(fields, subject, topic, raw_analysis=reply)
            span.set_attribute("used_default", False)
            span.set_attribute("educational_level", scope.educational_level.value)
            logger.info(
                f"Content scope: level={scope.educational_level.value}, "
                f"domain={scope.subject_domain.value}, "
                f"concepts={scope.concepts_taught}, operations={scope.operations_shown}"
            )
            return scope
