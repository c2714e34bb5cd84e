"""Tests for prompt strategies."""

import pytest

from quizgen.data.models import (
    ContentScope,
    DifficultyLevel,
    EducationalLevel,
    SubjectDomain,
)
from quizgen.generation.prompts import (
    PROMPT_STRATEGIES,
    build_generation_prompt,
    get_prompt_strategy,
    identify_historical_period,
    identify_text_type,
)


class TestPromptStrategies:
    """Test suite for the prompt strategy registry."""

    def test_every_domain_has_a_strategy(self):
        """Test that the registry covers all domains."""
        assert set(PROMPT_STRATEGIES) == set(SubjectDomain)

    @pytest.mark.parametrize("domain", list(SubjectDomain))
    def test_level_tables_are_complete(self, domain):
        """Test that every level/difficulty cell resolves to an instruction."""
        strategy = get_prompt_strategy(domain)
        for level in EducationalLevel:
            for difficulty in DifficultyLevel:
                assert strategy.level_instruction(level, difficulty)

    def test_missing_cell_falls_back(self):
        """Test the fallback cell when a level row is missing."""
        strategy = get_prompt_strategy(SubjectDomain.LITERATURE)
        trimmed = {EducationalLevel.HIGH_SCHOOL: strategy.level_instructions[EducationalLevel.HIGH_SCHOOL]}
        partial = type(strategy)(
            domain=strategy.domain,
            persona=strategy.persona,
            header=strategy.header,
            constraints=strategy.constraints,
            goals=strategy.goals,
            level_instructions=trimmed,
            fallback_level=EducationalLevel.HIGH_SCHOOL,
        )

        assert partial.level_instruction(
            EducationalLevel.ELEMENTARY, DifficultyLevel.EASY
        ) == trimmed[EducationalLevel.HIGH_SCHOOL][DifficultyLevel.MEDIUM]


class TestBuildGenerationPrompt:
    """Test suite for build_generation_prompt."""

    def test_math_prompt_carries_scope(self, elementary_math_scope):
        """Test that the math prompt lists allowed operations and the number ceiling."""
        prompt = build_generation_prompt(
            "Adding 3 + 4 gives 7.", 5, DifficultyLevel.EASY, elementary_math_scope
        )

        assert "ONLY Allowed Operations: addition, subtraction" in prompt
        assert "Largest Number Allowed: 20" in prompt
        assert "✗ DO NOT use any number larger than 20" in prompt
        assert "Create exactly 5 multiple choice questions" in prompt
        assert "QUESTION 1:" in prompt
        assert "CORRECT: [A/B/C/D]" in prompt
        assert "END_QUESTIONS" in prompt
        assert "SCOPE_VIOLATION:" in prompt
        assert "Adding 3 + 4 gives 7." in prompt
        assert "Use single-digit numbers" in prompt

    def test_prompt_is_deterministic(self, elementary_math_scope):
        """Test that identical inputs build identical prompts."""
        args = ("Adding 3 + 4 gives 7.", 3, DifficultyLevel.MEDIUM, elementary_math_scope)
        assert build_generation_prompt(*args) == build_generation_prompt(*args)

    def test_history_prompt_detects_period(self, history_scope):
        """Test the history context lines."""
        prompt = build_generation_prompt(
            "World War I began in 1914 after the assassination in Sarajevo.",
            2,
            DifficultyLevel.MEDIUM,
            history_scope,
        )

        assert "history teacher" in prompt
        assert "Period: World Wars era" in prompt
        assert "Historical Focus: causes of World War I, alliances" in prompt

    def test_general_prompt_for_unclassified_content(self):
        """Test that the general strategy serves the general domain."""
        scope = ContentScope(concepts_taught=["teamwork"])
        prompt = build_generation_prompt(
            "Teams share goals.", 1, DifficultyLevel.HARD, scope
        )

        assert "an educator creating academic questions" in prompt
        assert "Concepts: teamwork" in prompt


class TestContextDetection:
    """Test suite for literature and history context detection."""

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("Wherefore art thou Romeo?", "Shakespearean text"),
            ("Dickens wrote of London's poor.", "Victorian literature"),
            ("Each stanza ends with a rhyme.", "Poetry"),
            ("In chapter two the family moves.", "Novel"),
            ("A short essay on friendship.", "Literary text"),
        ],
    )
    def test_identify_text_type(self, content, expected):
        """Test literary text type detection."""
        assert identify_text_type(content) == expected

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("The Second World War ended in 1945.", "World Wars era"),
            ("The French Revolution began in 1789.", "Revolutionary period"),
            ("Castles were common in medieval Europe.", "Medieval period"),
            ("Rome was founded long ago.", "Historical period covered in the material"),
        ],
    )
    def test_identify_historical_period(self, content, expected):
        """Test historical period detection."""
        assert identify_historical_period(content) == expected
