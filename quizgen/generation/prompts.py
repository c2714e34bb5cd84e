"""Prompt strategies for question generation.

Each subject domain has one ``PromptStrategy`` holding the persona, the
forbidden behaviours, the level/difficulty instruction table and a context
builder for that domain. All strategies share the same output grammar so a
single parser can read every reply. Unknown domains use the general strategy.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Tuple

from ..config.generation_config import END_OF_QUESTIONS_MARKER, SCOPE_VIOLATION_MARKER
from ..data.models import ContentScope, DifficultyLevel, EducationalLevel, SubjectDomain
from ..validation.arithmetic import LEVEL_NUMBER_CEILINGS

logger = logging.getLogger(__name__)

LevelTable = Mapping[EducationalLevel, Mapping[DifficultyLevel, str]]
ContextBuilder = Callable[[str, ContentScope], List[str]]

# Shared by every strategy; the response parser depends on this grammar.
OUTPUT_FORMAT = f"""Create exactly {{count}} multiple choice questions in this EXACT format:

QUESTION 1:
[{{question_hint}}]
A) [option]
B) [option]
C) [option]
D) [option]
CORRECT: [A/B/C/D]
EXPLANATION: [{{explanation_hint}}]

Continue with QUESTION 2:, QUESTION 3: and so on until you have written {{count}} questions, then write {END_OF_QUESTIONS_MARKER} on its own line.
Every question must have exactly four different options and exactly one correct answer.

If the study material cannot support questions within these constraints, reply with a single line instead:
{SCOPE_VIOLATION_MARKER} [reason]"""

PROMPT_TEMPLATE = """You are {persona} for {level} students.

{header}:
{context}

STUDY MATERIAL (your ONLY source):
{content}

RULES:
{constraints}

{goals}

LEVEL GUIDANCE: {level_instruction}

{output_format}"""


def _level_label(level: EducationalLevel) -> str:
    return level.value.replace("_", " ")


def _format_ceiling(level: EducationalLevel) -> str:
    ceiling = LEVEL_NUMBER_CEILINGS[level]
    return "no fixed limit" if math.isinf(ceiling) else f"{int(ceiling):,}"


def identify_text_type(content: str) -> str:
    """Guess the kind of literary text the material contains."""
    if re.search(r"\bShakespeare\b|\bthee\b|\bthou\b", content):
        return "Shakespearean text"
    if re.search(r"\bDickens\b|nineteenth century", content):
        return "Victorian literature"
    if re.search(r"stanza|verse|rhyme", content, re.IGNORECASE):
        return "Poetry"
    if re.search(r"chapter|novel", content, re.IGNORECASE):
        return "Novel"
    return "Literary text"


def identify_historical_period(content: str) -> str:
    """Guess the historical period the material covers."""
    lowered = content.lower()
    if re.search(r"world war|\b1914\b|\b1939\b", lowered):
        return "World Wars era"
    if re.search(r"revolution|\b1776\b|\b1789\b", lowered):
        return "Revolutionary period"
    if re.search(r"medieval|middle ages", lowered):
        return "Medieval period"
    return "Historical period covered in the material"


def _base_context(content: str, scope: ContentScope) -> List[str]:
    return [
        f"- Educational Level: {_level_label(scope.educational_level)}",
        f"- Concepts: {', '.join(scope.concepts_taught)}",
    ]


def _math_context(content: str, scope: ContentScope) -> List[str]:
    return [
        f"- Educational Level: {_level_label(scope.educational_level)}",
        f"- ONLY Allowed Operations: {', '.join(scope.operations_shown)}",
        f"- Number Range: {scope.number_range.value.replace('_', ' ')}",
        f"- Largest Number Allowed: {_format_ceiling(scope.educational_level)}",
        "- VERIFY ALL ARITHMETIC IS 100% CORRECT",
    ]


def _literature_context(content: str, scope: ContentScope) -> List[str]:
    return [
        f"- Educational Level: {_level_label(scope.educational_level)}",
        f"- Literary Focus: {', '.join(scope.concepts_taught)}",
        f"- Text Type: {identify_text_type(content)}",
    ]


def _history_context(content: str, scope: ContentScope) -> List[str]:
    return [
        f"- Educational Level: {_level_label(scope.educational_level)}",
        f"- Historical Focus: {', '.join(scope.concepts_taught)}",
        f"- Period: {identify_historical_period(content)}",
    ]


@dataclass(frozen=True)
class PromptStrategy:
    """Prompt construction for one subject domain.

    Attributes:
        domain: Domain the strategy serves
        persona: Who the model acts as
        header: Heading of the constraint block
        constraints: Forbidden behaviours; may reference {ceiling} and {operations}
        goals: What good questions do
        level_instructions: Instruction per educational level and difficulty
        fallback_level: Level cell used when the table lacks an entry
        question_hint: Placeholder text for the question stem
        explanation_hint: Placeholder text for the explanation
        context_builder: Builds the scope lines shown above the material
    """

    domain: SubjectDomain
    persona: str
    header: str
    constraints: Tuple[str, ...]
    goals: Tuple[str, ...]
    level_instructions: LevelTable
    fallback_level: EducationalLevel = EducationalLevel.MIDDLE_SCHOOL
    question_hint: str = "Question about the material"
    explanation_hint: str = "Why the answer is correct, citing the material"
    context_builder: ContextBuilder = field(default=_base_context)

    def level_instruction(
        self, level: EducationalLevel, difficulty: DifficultyLevel
    ) -> str:
        """Look up the level/difficulty instruction, falling back to the default cell."""
        row = self.level_instructions.get(level)
        if row and difficulty in row:
            return row[difficulty]
        return self.level_instructions[self.fallback_level][DifficultyLevel.MEDIUM]

    def build_prompt(
        self,
        content: str,
        count: int,
        difficulty: DifficultyLevel,
        scope: ContentScope,
    ) -> str:
        """Build the generation prompt.

        Args:
            content: Study material (already truncated by the caller)
            count: Number of questions to request
            difficulty: Requested difficulty
            scope: Content scope the questions must stay within

        Returns:
            Prompt text
        """
        values = {
            "ceiling": _format_ceiling(scope.educational_level),
            "operations": ", ".join(scope.operations_shown) or "none listed",
        }
        constraints = "\n".join(f"✗ DO NOT {c.format(**values)}" for c in self.constraints)
        goals = "\n".join(f"✓ {g}" for g in self.goals)

        return PROMPT_TEMPLATE.format(
            persona=self.persona,
            level=_level_label(scope.educational_level),
            header=self.header,
            context="\n".join(self.context_builder(content, scope)),
            content=content,
            constraints=constraints,
            goals=goals,
            level_instruction=self.level_instruction(scope.educational_level, difficulty),
            output_format=OUTPUT_FORMAT.format(
                count=count,
                question_hint=self.question_hint,
                explanation_hint=self.explanation_hint,
            ),
        )


E, M, H = DifficultyLevel.EASY, DifficultyLevel.MEDIUM, DifficultyLevel.HARD

MATH_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Use single-digit numbers (1-9) with addition or subtraction only.",
        M: "Use numbers up to 20; simple number patterns are allowed.",
        H: "Use numbers up to 20 and at most two steps of the operations shown.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Basic operations with double-digit numbers.",
        M: "Multi-step problems; fractions or decimals only if shown in the material.",
        H: "Multi-step problems combining the demonstrated operations, numbers up to 100.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Algebraic expressions and basic equations.",
        M: "Multi-step equations and function evaluation.",
        H: "Multi-step algebraic manipulation within the material's scope.",
    },
    EducationalLevel.COLLEGE: {
        E: "Direct application of the methods shown.",
        M: "Problems combining several methods from the material.",
        H: "Multi-step problems that chain the material's methods carefully.",
    },
}

LITERATURE_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Focus on who the characters are and what they do in the text.",
        M: "Ask about characters' feelings and the reasons the text gives for them.",
        H: "Ask about the main idea or lesson of the text.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Focus on character traits and basic plot elements shown in the text.",
        M: "Include theme identification and simple literary devices.",
        H: "Analyze character development and the author's purpose.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Character motivation and basic theme analysis.",
        M: "Literary device analysis and thematic connections.",
        H: "Complex symbolism, irony, and critical interpretation.",
    },
    EducationalLevel.COLLEGE: {
        E: "Textual analysis and interpretation.",
        M: "Critical theory application and complex themes.",
        H: "Advanced literary criticism and contextual analysis.",
    },
}

HISTORY_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Ask who, what and where about events described in the material.",
        M: "Ask about the order of events described in the material.",
        H: "Ask about simple causes the material gives for events.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Recall key facts, people and dates stated in the material.",
        M: "Identify causes and effects described in the material.",
        H: "Compare perspectives or outcomes described in the material.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Key facts and their significance as explained in the material.",
        M: "Causation and consequence using evidence from the material.",
        H: "Evaluate significance, continuity and change using the material's evidence.",
    },
    EducationalLevel.COLLEGE: {
        E: "Interpret the evidence presented in the material.",
        M: "Assess competing explanations presented in the material.",
        H: "Synthesize the arguments made across the material.",
    },
}

SCIENCE_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Ask the student to name or recognize things described in the material.",
        M: "Ask what happens in the processes the material describes.",
        H: "Ask simple why-questions that the material answers.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Recall definitions and facts from the material.",
        M: "Apply concepts from the material to familiar situations.",
        H: "Interpret data or calculations shown in the material.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Definitions and core principles from the material.",
        M: "Apply the principles and formulas given in the material.",
        H: "Multi-step reasoning or calculations using only the material's formulas.",
    },
    EducationalLevel.COLLEGE: {
        E: "Core principles and terminology.",
        M: "Quantitative application of the models in the material.",
        H: "Analysis of mechanisms and limitations described in the material.",
    },
}

COMPUTING_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Ask about basic ideas such as steps and instructions.",
        M: "Ask the student to follow a short sequence of instructions.",
        H: "Ask the student to spot a mistake in a simple sequence of steps.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Recall terms and concepts from the material.",
        M: "Trace what a short piece of code from the material does.",
        H: "Predict the output of code with the loops or conditions shown.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Concepts and syntax shown in the material.",
        M: "Trace code and predict its output.",
        H: "Reason about algorithm behaviour and edge cases covered by the material.",
    },
    EducationalLevel.COLLEGE: {
        E: "Terminology and core concepts.",
        M: "Algorithm tracing and complexity as covered in the material.",
        H: "Design trade-offs and correctness arguments from the material.",
    },
}

GENERAL_LEVEL_INSTRUCTIONS: LevelTable = {
    EducationalLevel.ELEMENTARY: {
        E: "Simple recall of facts stated in the material.",
        M: "Understanding of the main ideas.",
        H: "Simple connections between ideas in the material.",
    },
    EducationalLevel.MIDDLE_SCHOOL: {
        E: "Recall of key facts.",
        M: "Understanding and application of key concepts.",
        H: "Relationships between the concepts in the material.",
    },
    EducationalLevel.HIGH_SCHOOL: {
        E: "Key concepts and their meaning.",
        M: "Application of the concepts to new examples.",
        H: "Analysis of how the concepts in the material interact.",
    },
    EducationalLevel.COLLEGE: {
        E: "Core concepts and terminology.",
        M: "Application and interpretation of the material.",
        H: "Critical analysis of the material's arguments.",
    },
}


PROMPT_STRATEGIES: Dict[SubjectDomain, PromptStrategy] = {
    SubjectDomain.MATHEMATICS: PromptStrategy(
        domain=SubjectDomain.MATHEMATICS,
        persona="a mathematics teacher creating computational practice questions",
        header="STRICT MATHEMATICS CONSTRAINTS",
        constraints=(
            "create questions with incorrect arithmetic (like 7 + 9 = 18)",
            "use operations other than: {operations}",
            "use any number larger than {ceiling}",
            "create word problems unless the material shows examples of them",
        ),
        goals=(
            "CREATE computational questions that test the procedures in the material",
            "USE only numbers and operations from the material's scope",
            "DOUBLE-CHECK all arithmetic before giving answers",
        ),
        level_instructions=MATH_LEVEL_INSTRUCTIONS,
        question_hint="Computation question using ONLY the material's operations",
        explanation_hint="Step-by-step working",
        context_builder=_math_context,
    ),
    SubjectDomain.LITERATURE: PromptStrategy(
        domain=SubjectDomain.LITERATURE,
        persona="an English literature teacher creating analytical questions",
        header="LITERATURE CONSTRAINTS",
        constraints=(
            'ask plot summary questions ("What happens in Chapter 3?")',
            "create questions answerable without reading the text",
            "ask about characters not mentioned in the provided text",
        ),
        goals=(
            "CREATE analytical questions about themes, character development and literary devices",
            "REQUIRE textual evidence from the provided text",
            "ASK about specific quotes, imagery and the author's craft",
        ),
        level_instructions=LITERATURE_LEVEL_INSTRUCTIONS,
        fallback_level=EducationalLevel.HIGH_SCHOOL,
        question_hint="Analytical question requiring textual evidence",
        explanation_hint="Analysis citing the text",
        context_builder=_literature_context,
    ),
    SubjectDomain.COMPUTING: PromptStrategy(
        domain=SubjectDomain.COMPUTING,
        persona="a computer science instructor creating programming questions",
        header="COMPUTING CONSTRAINTS",
        constraints=(
            "use programming languages not mentioned in the material",
            "introduce concepts beyond the material's scope",
            "create syntax questions without code examples in the material",
        ),
        goals=(
            "CREATE questions about code logic and computational thinking",
            "USE only programming concepts explicitly covered",
        ),
        level_instructions=COMPUTING_LEVEL_INSTRUCTIONS,
        question_hint="Question about the code or concepts in the material",
    ),
    SubjectDomain.CHEMISTRY: PromptStrategy(
        domain=SubjectDomain.CHEMISTRY,
        persona="a chemistry teacher creating chemical reasoning questions",
        header="CHEMISTRY CONSTRAINTS",
        constraints=(
            "use chemical formulas not mentioned in the material",
            "create reaction equations without examples in the material",
            "require periodic table data not provided",
        ),
        goals=(
            "CREATE questions about the chemical processes in the material",
            "INCLUDE calculations only if the material shows examples",
        ),
        level_instructions=SCIENCE_LEVEL_INSTRUCTIONS,
    ),
    SubjectDomain.PHYSICS: PromptStrategy(
        domain=SubjectDomain.PHYSICS,
        persona="a physics teacher creating problem-solving questions",
        header="PHYSICS CONSTRAINTS",
        constraints=(
            "use formulas not provided in the material",
            "require constants that are not given",
            "exceed the mathematical complexity of the material",
        ),
        goals=(
            "CREATE questions about the physical processes shown",
            "INCLUDE calculations only if the formulas are provided",
        ),
        level_instructions=SCIENCE_LEVEL_INSTRUCTIONS,
    ),
    SubjectDomain.HISTORY: PromptStrategy(
        domain=SubjectDomain.HISTORY,
        persona="a history teacher creating analytical questions",
        header="HISTORY CONSTRAINTS",
        constraints=(
            "ask for dates not mentioned in the material",
            "require outside historical knowledge",
            "create questions about events not covered",
        ),
        goals=(
            "CREATE questions about causation and significance shown in the material",
            "USE specific evidence from the provided content",
        ),
        level_instructions=HISTORY_LEVEL_INSTRUCTIONS,
        context_builder=_history_context,
    ),
    SubjectDomain.BIOLOGY: PromptStrategy(
        domain=SubjectDomain.BIOLOGY,
        persona="a biology teacher creating life science questions",
        header="BIOLOGY CONSTRAINTS",
        constraints=(
            "ask about organisms or processes not covered in the material",
            "require terminology the material does not introduce",
        ),
        goals=(
            "CREATE questions about the biological processes in the material",
            "TEST understanding of the organism functions shown",
        ),
        level_instructions=SCIENCE_LEVEL_INSTRUCTIONS,
    ),
    SubjectDomain.GENERAL: PromptStrategy(
        domain=SubjectDomain.GENERAL,
        persona="an educator creating academic questions",
        header="ACADEMIC CONSTRAINTS",
        constraints=(
            "ask about facts that are not in the material",
            "use vocabulary above the material's level",
        ),
        goals=(
            "CREATE questions that test understanding of the key concepts",
            "MATCH the educational level shown in the material",
        ),
        level_instructions=GENERAL_LEVEL_INSTRUCTIONS,
    ),
}


def get_prompt_strategy(domain: SubjectDomain) -> PromptStrategy:
    """Get the strategy for a domain, falling back to the general strategy."""
    return PROMPT_STRATEGIES.get(domain, PROMPT_STRATEGIES[SubjectDomain.GENERAL])


def build_generation_prompt(
    content: str,
    count: int,
    difficulty: DifficultyLevel,
    scope: ContentScope,
) -> str:
    """Build a generation prompt for the scope's domain.

    Args:
        content: Study material (already truncated by the caller)
        count: Number of questions to request
        difficulty: Requested difficulty
        scope: Content scope the questions must stay within

    Returns:
        Prompt text
    """
    strategy = get_prompt_strategy(scope.subject_domain)
    logger.info(
        f"Prompt config: domain={strategy.domain.value}, "
        f"level={scope.educational_level.value}, difficulty={difficulty.value}, "
        f"count={count}"
    )
    return strategy.build_prompt(content, count, difficulty, scope)
