"""Arithmetic and scope validation for mathematics questions.

Mathematics candidates are checked mechanically against the content scope:

1. every operation the question uses must be one the material demonstrates,
2. no number may exceed the ceiling for the educational level,
3. arithmetic in the stem is re-derived and compared with the declared answer,
4. questions that look too complex for the level produce warnings.

Only the first three produce hard errors.
"""

import ast
import logging
import math
import operator
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Set, Tuple

from ..data.models import (
    ContentScope,
    EducationalLevel,
    QuestionCandidate,
    SubjectDomain,
    ValidationResult,
)

logger = logging.getLogger(__name__)

ARITHMETIC_TOLERANCE = 0.01

LEVEL_NUMBER_CEILINGS: Dict[EducationalLevel, float] = {
    EducationalLevel.ELEMENTARY: 20,
    EducationalLevel.MIDDLE_SCHOOL: 100,
    EducationalLevel.HIGH_SCHOOL: 10000,
    EducationalLevel.COLLEGE: math.inf,
}

LEVEL_COMPLEXITY_LIMITS: Dict[EducationalLevel, float] = {
    EducationalLevel.ELEMENTARY: 2,
    EducationalLevel.MIDDLE_SCHOOL: 4,
    EducationalLevel.HIGH_SCHOOL: 6,
    EducationalLevel.COLLEGE: math.inf,
}

BASIC_OPERATIONS = ("addition", "subtraction", "multiplication", "division")

# Symbol and keyword signals per operation family. "a/b" is handled
# separately because it reads as either division or a fraction.
OPERATION_SIGNALS: Dict[str, Tuple[Pattern[str], ...]] = {
    "addition": (
        re.compile(r"\+"),
        re.compile(r"\b(?:add|adds|added|adding|addition|sum|sums|plus|total)\b"),
    ),
    "subtraction": (
        re.compile(r"\d\s*[-−–]\s*\d"),
        re.compile(r"\b(?:subtract\w*|minus|difference|take away|takes away)\b"),
    ),
    "multiplication": (
        re.compile(r"[×*]"),
        re.compile(r"\d\s*x\s*\d"),
        re.compile(r"\b(?:multipl\w*|times|product)\b"),
    ),
    "division": (
        re.compile(r"÷"),
        re.compile(r"\b(?:divid\w*|division|quotient)\b"),
    ),
    "fractions": (
        re.compile(r"\b(?:fraction\w*|half|halves|quarters?|thirds?)\b"),
    ),
    "decimals": (
        re.compile(r"\d\.\d"),
        re.compile(r"\bdecimals?\b"),
    ),
    "percentages": (
        re.compile(r"%"),
        re.compile(r"\bpercent\w*\b"),
    ),
}

SLASH_PATTERN = re.compile(r"\d\s*/\s*\d")
NUMBER_PATTERN = re.compile(r"\b\d+(?:\.\d+)?\b")
THOUSANDS_SEPARATOR = re.compile(r"(?<=\d),(?=\d{3}\b)")
MULTI_STEP_PATTERN = re.compile(r"\b(?:then|after|next)\b")

WORD_PROBLEM_INDICATORS = (
    "has",
    "bought",
    "there are",
    "if you have",
    "a farmer",
    "a store",
    "students in",
    "how many",
    "how much",
    "gives",
    "left over",
)

# A run of numbers joined by operators, with optional single-level parentheses.
# The first operand may carry a unary minus when no digit or ")" precedes it.
EXPRESSION_PATTERN = re.compile(
    r"\(?\s*(?:(?<![\d)])-)?\d+(?:\.\d+)?\s*\)?"
    r"(?:\s*(?:[-+*/×÷−]|x)\s*\(?\s*\d+(?:\.\d+)?\s*\)?)+"
)
GIVEN_RESULT_PATTERN = re.compile(r"\s*=\s*-?\d")
ANSWER_NUMBER_PATTERN = re.compile(
    r"(?<![\d.])(-?\d[\d,]*(?:\.\d+)?)(?:\s*/\s*(\d+(?:\.\d+)?))?"
)

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPERATORS = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


@dataclass
class MathContent:
    """Mathematical features extracted from a candidate."""

    text: str
    numbers: List[float] = field(default_factory=list)
    operations: Set[str] = field(default_factory=set)
    uses_slash: bool = False
    has_word_problem: bool = False

    @property
    def max_number(self) -> float:
        return max(self.numbers, default=0.0)

    @property
    def operation_count(self) -> int:
        """Distinct operations, counting "a/b" as division when nothing else covers it."""
        ops = set(self.operations)
        if self.uses_slash and not ops & {"division", "fractions"}:
            ops.add("division")
        return len(ops)


def _normalize_symbols(text: str) -> str:
    return text.replace("−", "-").replace("–", "-")


def extract_numbers(text: str) -> List[float]:
    """Extract every numeric literal, treating "1,000" as one number."""
    cleaned = THOUSANDS_SEPARATOR.sub("", text)
    return [float(match) for match in NUMBER_PATTERN.findall(cleaned)]


def detect_operations(text: str) -> Set[str]:
    """Detect the operation families signalled in ``text`` (lower-cased)."""
    return {
        family
        for family, patterns in OPERATION_SIGNALS.items()
        if any(p.search(text) for p in patterns)
    }


def operations_for_label(label: str) -> Set[str]:
    """Map a scope operation label such as "adding 2-digit numbers" to families."""
    lowered = label.lower()
    families = detect_operations(lowered)
    if "arithmetic" in lowered:
        families.update(BASIC_OPERATIONS)
    if SLASH_PATTERN.search(lowered):
        families.update(("division", "fractions"))
    return families


def allowed_operations(scope: ContentScope) -> Set[str]:
    """Operation families covered by the scope's ``operations_shown``."""
    allowed: Set[str] = set()
    for label in scope.operations_shown:
        allowed.update(operations_for_label(label))
    return allowed


def is_word_problem(stem: str) -> bool:
    """Check whether a stem reads like a word problem."""
    lowered = stem.lower()
    return any(re.search(rf"\b{re.escape(i)}\b", lowered) for i in WORD_PROBLEM_INDICATORS)


def extract_math_content(candidate: QuestionCandidate) -> MathContent:
    """Collect numbers and operations across stem, answer and options."""
    text = _normalize_symbols(
        " ".join([candidate.question, candidate.answer, *candidate.options])
    ).lower()
    return MathContent(
        text=text,
        numbers=extract_numbers(text),
        operations=detect_operations(text),
        uses_slash=bool(SLASH_PATTERN.search(text)),
        has_word_problem=is_word_problem(candidate.question),
    )


def complexity_score(content: MathContent) -> int:
    """Score how demanding a question is.

    Multi-step wording adds 2, more than one operation adds the operation
    count, numbers over 100 add 2 and over 1000 a further 3, and decimals or
    fractions add 2.
    """
    score = 0
    if MULTI_STEP_PATTERN.search(content.text):
        score += 2
    if content.operation_count > 1:
        score += content.operation_count
    if content.max_number > 100:
        score += 2
    if content.max_number > 1000:
        score += 3
    if content.operations & {"decimals", "fractions"}:
        score += 2
    return score


def _evaluate_node(node: ast.AST) -> float:
    if isinstance(node, ast.Expression):
        return _evaluate_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return float(node.value)
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        return _BINARY_OPERATORS[type(node.op)](
            _evaluate_node(node.left), _evaluate_node(node.right)
        )
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate_node(node.operand))
    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def evaluate_expression(expression: str) -> Optional[float]:
    """Evaluate a pure arithmetic expression with normal precedence.

    Only numbers, + - * / (and × ÷ x) and parentheses are accepted.

    Args:
        expression: Expression text such as "3 + 4 × 2"

    Returns:
        The value, or None if the expression is not evaluable (including
        division by zero)
    """
    normalized = (
        _normalize_symbols(expression).replace("×", "*").replace("÷", "/").replace("x", "*")
    )
    try:
        tree = ast.parse(normalized.strip(), mode="eval")
        return _evaluate_node(tree)
    except (SyntaxError, ValueError, ZeroDivisionError):
        return None


def extract_stem_expression(stem: str) -> Optional[str]:
    """Find the arithmetic expression the stem asks about.

    Expressions followed by "= <number>" state a given result rather than
    ask for one and are skipped. The last remaining expression is returned.
    """
    text = THOUSANDS_SEPARATOR.sub("", _normalize_symbols(stem))
    asked = [
        match.group(0).strip()
        for match in EXPRESSION_PATTERN.finditer(text)
        if not GIVEN_RESULT_PATTERN.match(text, match.end())
    ]
    return asked[-1] if asked else None


def extract_answer_number(answer: str) -> Optional[float]:
    """Read the numeric value of an answer ("16", "-3", "1,200", "3/4", "16 apples")."""
    match = ANSWER_NUMBER_PATTERN.search(_normalize_symbols(answer))
    if not match:
        return None
    value = float(match.group(1).replace(",", ""))
    if match.group(2):
        denominator = float(match.group(2))
        if denominator == 0:
            return None
        value /= denominator
    return value


def _format_number(value: float) -> str:
    if math.isinf(value):
        return "unlimited"
    if value == int(value):
        return str(int(value))
    return f"{value:.4g}"


class ArithmeticScopeValidator:
    """Validate mathematics candidates against a content scope."""

    def validate(self, candidate: QuestionCandidate, scope: ContentScope) -> ValidationResult:
        """Validate operations, number ceilings, arithmetic and complexity.

        Args:
            candidate: Parsed question
            scope: Content scope of the request

        Returns:
            ValidationResult; unexpected failures reject the candidate
        """
        errors: List[str] = []
        warnings: List[str] = []

        try:
            content = extract_math_content(candidate)
            self._check_operations(content, scope, errors)
            self._check_number_ceiling(content, scope, errors)
            self._check_arithmetic(candidate, errors, warnings)
            self._check_complexity(content, scope, warnings)
            self._check_word_problem(content, scope, warnings)
        except Exception as e:
            logger.exception(f"Error validating math question: {e}")
            errors.append("Validation error occurred")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            domain=SubjectDomain.MATHEMATICS,
        )

    def _check_operations(
        self, content: MathContent, scope: ContentScope, errors: List[str]
    ) -> None:
        allowed = allowed_operations(scope)
        shown = ", ".join(scope.operations_shown)

        for operation in sorted(content.operations - allowed):
            errors.append(f"Question uses {operation} but content only covers: {shown}")

        if content.uses_slash and not allowed & {"division", "fractions"}:
            if "division" not in content.operations:
                errors.append(f"Question uses division but content only covers: {shown}")

    def _check_number_ceiling(
        self, content: MathContent, scope: ContentScope, errors: List[str]
    ) -> None:
        if not content.numbers:
            return
        ceiling = LEVEL_NUMBER_CEILINGS[scope.educational_level]
        if content.max_number > ceiling:
            errors.append(
                f"Numbers too large for {scope.educational_level.value}: "
                f"{_format_number(content.max_number)} > {_format_number(ceiling)}"
            )

    def _check_arithmetic(
        self, candidate: QuestionCandidate, errors: List[str], warnings: List[str]
    ) -> None:
        expression = extract_stem_expression(candidate.question)
        if expression is None:
            return
        expected = evaluate_expression(expression)
        provided = extract_answer_number(candidate.answer)
        if expected is None or provided is None:
            warnings.append("Could not verify answer correctness")
            return
        if abs(expected - provided) > ARITHMETIC_TOLERANCE:
            errors.append(
                f"ARITHMETIC ERROR: Expected {_format_number(expected)}, "
                f"got {_format_number(provided)}"
            )

    def _check_complexity(
        self, content: MathContent, scope: ContentScope, warnings: List[str]
    ) -> None:
        score = complexity_score(content)
        limit = LEVEL_COMPLEXITY_LIMITS[scope.educational_level]
        if score > limit:
            warnings.append(
                f"Question complexity ({score}) may be too high for "
                f"{scope.educational_level.value} level (limit: {_format_number(limit)})"
            )

    def _check_word_problem(
        self, content: MathContent, scope: ContentScope, warnings: List[str]
    ) -> None:
        if not content.has_word_problem:
            return
        covered = " ".join(scope.operations_shown + scope.concepts_taught).lower()
        if "word problem" not in covered:
            warnings.append("Word problem detected but the material shows no word problems")
