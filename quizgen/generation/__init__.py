"""Prompt construction, reply parsing and the generation retry loop."""

from .orchestrator import (
    AttemptRecord,
    GenerationOrchestrator,
    GenerationOutcome,
    GenerationState,
    contains_scope_violation,
)
from .parser import parse_question_block, parse_questions
from .prompts import (
    PROMPT_STRATEGIES,
    PromptStrategy,
    build_generation_prompt,
    get_prompt_strategy,
)

__all__ = [
    "PROMPT_STRATEGIES",
    "AttemptRecord",
    "GenerationOrchestrator",
    "GenerationOutcome",
    "GenerationState",
    "PromptStrategy",
    "build_generation_prompt",
    "contains_scope_violation",
    "get_prompt_strategy",
    "parse_question_block",
    "parse_questions",
]
