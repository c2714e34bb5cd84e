"""Tests for the command-line entry point."""

import io
import json
from unittest.mock import MagicMock, patch

import pytest

from quizgen.cli import main, parse_arguments, read_content
from quizgen.config.settings import settings
from quizgen.data.models import GenerationReport, ValidatedQuestion


def _question() -> ValidatedQuestion:
    return ValidatedQuestion(
        question="What is 7 + 9?",
        options=["16", "18", "15", "17"],
        correct_index=0,
        answer="16",
        explanation="7 + 9 = 16.",
    )


@pytest.fixture
def notes_file(tmp_path, addition_notes):
    """Fixture writing the addition notes to a file."""
    path = tmp_path / "notes.txt"
    path.write_text(addition_notes, encoding="utf-8")
    return path


@pytest.fixture
def mock_pipeline():
    """Fixture patching the pipeline factory and the ambient setup."""
    pipeline = MagicMock()
    pipeline.generate_with_report.return_value = GenerationReport(questions=[_question()])
    with patch("quizgen.cli.create_pipeline", return_value=pipeline) as factory, patch(
        "quizgen.cli.setup_logging"
    ), patch("quizgen.cli.observability"):
        pipeline.factory = factory
        yield pipeline


class TestParseArguments:
    """Test suite for argument parsing."""

    def test_defaults(self):
        """Test default argument values."""
        args = parse_arguments([])

        assert args.file is None
        assert args.count == 5
        assert args.difficulty == "medium"
        assert args.backend is None
        assert args.report is False

    def test_rejects_unknown_difficulty(self):
        """Test that argparse rejects difficulties outside the choices."""
        with pytest.raises(SystemExit):
            parse_arguments(["--difficulty", "impossible"])

    def test_rejects_unknown_backend(self):
        """Test that argparse rejects unsupported backends."""
        with pytest.raises(SystemExit):
            parse_arguments(["--backend", "carrier-pigeon"])


class TestReadContent:
    """Test suite for reading study material."""

    def test_reads_file(self, notes_file, addition_notes):
        assert read_content(str(notes_file)) == addition_notes

    def test_reads_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("notes from stdin"))

        assert read_content(None) == "notes from stdin"


class TestMain:
    """Test suite for the main entry point."""

    def test_prints_questions(self, mock_pipeline, notes_file, capsys):
        """Test the default output of outward question records."""
        exit_code = main(
            ["--file", str(notes_file), "--subject", "Mathematics", "--topic", "Addition", "--count", "3"]
        )

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output[0]["answer"] == "16"
        assert output[0]["correctIndex"] == 0
        mock_pipeline.generate_with_report.assert_called_once()
        call = mock_pipeline.generate_with_report.call_args
        assert call.kwargs["count"] == 3
        assert call.kwargs["subject"] == {"name": "Mathematics"}
        assert call.kwargs["topic"] == {"name": "Addition"}

    def test_prints_report(self, mock_pipeline, notes_file, capsys):
        """Test that --report prints the full diagnostics."""
        exit_code = main(["--file", str(notes_file), "--report"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["content_sufficient"] is True
        assert len(output["questions"]) == 1

    def test_backend_override(self, mock_pipeline, notes_file):
        """Test that --backend overrides the configured backend."""
        main(["--file", str(notes_file), "--backend", "openai"])

        run_settings = mock_pipeline.factory.call_args.args[0]
        assert run_settings.llm_backend == "openai"

    def test_no_questions_exit_code(self, mock_pipeline, notes_file, capsys):
        """Test exit code 1 when nothing passes validation."""
        mock_pipeline.generate_with_report.return_value = GenerationReport()

        exit_code = main(["--file", str(notes_file)])

        assert exit_code == 1
        assert json.loads(capsys.readouterr().out) == []

    def test_missing_file_exit_code(self, mock_pipeline, tmp_path):
        """Test exit code 2 when the material cannot be read."""
        exit_code = main(["--file", str(tmp_path / "missing.txt")])

        assert exit_code == 2
        mock_pipeline.generate_with_report.assert_not_called()

    def test_invalid_count_exit_code(self, mock_pipeline, notes_file):
        """Test exit code 2 when the pipeline rejects the arguments."""
        mock_pipeline.generate_with_report.side_effect = ValueError("count must be a positive integer")

        assert main(["--file", str(notes_file), "--count", "0"]) == 2

    def test_undecodable_file_exit_code(self, mock_pipeline, tmp_path):
        """Test exit code 2 when the material is not valid UTF-8."""
        path = tmp_path / "notes.bin"
        path.write_bytes(b"\xff\xfe\x00binary notes")

        assert main(["--file", str(path)]) == 2
        mock_pipeline.generate_with_report.assert_not_called()

    def test_log_file_setting_enables_file_logging(self, mock_pipeline, notes_file, tmp_path):
        """Test that the LOG_FILE setting is the default for --log-file."""
        log_file = str(tmp_path / "quizgen.log")
        configured = settings.model_copy(update={"log_file": log_file})

        with patch("quizgen.cli.settings", configured), patch(
            "quizgen.cli.setup_logging"
        ) as mock_setup:
            main(["--file", str(notes_file)])

        assert mock_setup.call_args.kwargs["log_file"] == log_file
        assert mock_setup.call_args.kwargs["enable_file_logging"] is True
