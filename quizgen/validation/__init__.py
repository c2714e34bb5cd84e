"""Mechanical validation of generated questions."""

from .arithmetic import (
    LEVEL_COMPLEXITY_LIMITS,
    LEVEL_NUMBER_CEILINGS,
    ArithmeticScopeValidator,
    evaluate_expression,
)
from .general import GeneralValidator, HistoryValidator, LiteratureValidator, StructuralValidator
from .manager import ValidationManager

__all__ = [
    "LEVEL_COMPLEXITY_LIMITS",
    "LEVEL_NUMBER_CEILINGS",
    "ArithmeticScopeValidator",
    "GeneralValidator",
    "HistoryValidator",
    "LiteratureValidator",
    "StructuralValidator",
    "ValidationManager",
    "evaluate_expression",
]
