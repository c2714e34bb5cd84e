"""Tests for structural and general-purpose validation."""

from quizgen.data.models import (
    ContentScope,
    EducationalLevel,
    QuestionCandidate,
    SubjectDomain,
)
from quizgen.validation.general import (
    GeneralValidator,
    HistoryValidator,
    LiteratureValidator,
    StructuralValidator,
    content_tokens,
)


def _scope(domain=SubjectDomain.GENERAL, level=EducationalLevel.MIDDLE_SCHOOL, concepts=None):
    return ContentScope(
        educational_level=level,
        subject_domain=domain,
        concepts_taught=concepts or ["photosynthesis", "chlorophyll"],
    )


class TestStructuralValidator:
    """Test suite for StructuralValidator."""

    def setup_method(self):
        self.validator = StructuralValidator()

    def test_well_formed_candidate(self):
        """Test that a complete candidate has no structural errors."""
        candidate = QuestionCandidate(
            question="Which pigment absorbs light in plants?",
            options=["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"],
            correct_index=0,
        )
        assert self.validator.check(candidate) == []

    def test_short_question(self):
        """Test that stems under ten characters are rejected."""
        candidate = QuestionCandidate(
            question="Why?", options=["a", "b", "c", "d"], correct_index=0
        )
        assert "Question text is too short" in self.validator.check(candidate)

    def test_wrong_option_count(self):
        """Test that three options are rejected."""
        candidate = QuestionCandidate(
            question="Which of these is a primary colour?",
            options=["Red", "Green", "Purple"],
            correct_index=0,
        )
        errors = self.validator.check(candidate)
        assert "Multiple choice questions must have exactly 4 options" in errors

    def test_correct_index_out_of_range(self):
        """Test that an index outside 0-3 is rejected and the answer is missing."""
        candidate = QuestionCandidate(
            question="Which of these is a primary colour?",
            options=["Red", "Green", "Purple", "Orange"],
            correct_index=5,
        )
        errors = self.validator.check(candidate)
        assert "Correct index must be between 0 and 3" in errors
        assert "Answer is missing" in errors

    def test_answer_mismatch(self):
        """Test that an answer differing from the indexed option is rejected."""
        candidate = QuestionCandidate(
            question="Which of these is a primary colour?",
            options=["Red", "Green", "Purple", "Orange"],
            correct_index=0,
            answer="Green",
        )
        assert "Answer does not match the option at the correct index" in (
            self.validator.check(candidate)
        )

    def test_duplicate_options(self):
        """Test that options equal up to case and whitespace are rejected."""
        candidate = QuestionCandidate(
            question="Which of these is a primary colour?",
            options=["Red", " red", "Purple", "Orange"],
            correct_index=0,
        )
        assert "Options must be distinct" in self.validator.check(candidate)


class TestGeneralValidator:
    """Test suite for GeneralValidator."""

    def test_related_question_has_no_warnings(self):
        """Test that a stem mentioning a taught concept passes quietly."""
        candidate = QuestionCandidate(
            question="What does chlorophyll absorb during photosynthesis?",
            options=["Light", "Water", "Soil", "Salt"],
            correct_index=0,
        )
        result = GeneralValidator().validate(candidate, _scope())

        assert result.is_valid
        assert result.warnings == []

    def test_unrelated_question_warns(self):
        """Test the concept-overlap warning."""
        candidate = QuestionCandidate(
            question="Who painted the Mona Lisa?",
            options=["Leonardo", "Raphael", "Michelangelo", "Donatello"],
            correct_index=0,
        )
        result = GeneralValidator().validate(candidate, _scope())

        assert result.is_valid
        assert "Question may not relate to concepts covered in the material" in result.warnings

    def test_elementary_complex_vocabulary_warns(self):
        """Test the vocabulary warning at elementary level."""
        candidate = QuestionCandidate(
            question="Compare how chlorophyll and sunlight work together.",
            options=["They make food", "They make rain", "They make soil", "They make wind"],
            correct_index=0,
        )
        scope = _scope(level=EducationalLevel.ELEMENTARY)
        result = GeneralValidator().validate(candidate, scope)

        assert result.is_valid
        assert any("too advanced" in w for w in result.warnings)

    def test_content_tokens_drop_stopwords_and_short_words(self):
        """Test tokenization used for the overlap check."""
        assert content_tokens("What is the role of DNA in a cell?") == {"role", "dna", "cell"}


class TestHistoryValidator:
    """Test suite for HistoryValidator."""

    def test_wide_year_span_warns(self, history_scope):
        """Test that years more than 200 apart produce a warning, not an error."""
        candidate = QuestionCandidate(
            question="How did alliances formed in 1648 shape the war of 1914?",
            options=["They did not", "They tied states together", "They ended it", "They caused peace"],
            correct_index=1,
        )
        result = HistoryValidator().validate(candidate, history_scope)

        assert result.is_valid
        assert any("Potential date conflict" in w for w in result.warnings)

    def test_close_years_do_not_warn(self, history_scope):
        """Test that years within the span limit are accepted quietly."""
        candidate = QuestionCandidate(
            question="Which alliances existed between 1882 and 1914?",
            options=["Triple Alliance", "NATO", "Warsaw Pact", "League of Nations"],
            correct_index=0,
        )
        result = HistoryValidator().validate(candidate, history_scope)

        assert not any("date conflict" in w for w in result.warnings)


class TestLiteratureValidator:
    """Test suite for LiteratureValidator."""

    def _scope(self):
        return _scope(domain=SubjectDomain.LITERATURE, concepts=["imagery", "theme"])

    def test_analysis_question_has_no_focus_warning(self):
        """Test that textual-analysis vocabulary satisfies the check."""
        candidate = QuestionCandidate(
            question="What theme does the imagery of the storm suggest?",
            options=["Conflict", "Joy", "Peace", "Boredom"],
            correct_index=0,
        )
        result = LiteratureValidator().validate(candidate, self._scope())

        assert "Question should focus more on textual analysis" not in result.warnings

    def test_recall_question_warns(self):
        """Test that plain recall questions get the focus warning."""
        candidate = QuestionCandidate(
            question="In which year was the book first published?",
            options=["1813", "1820", "1799", "1850"],
            correct_index=0,
        )
        result = LiteratureValidator().validate(candidate, self._scope())

        assert result.is_valid
        assert "Question should focus more on textual analysis" in result.warnings
