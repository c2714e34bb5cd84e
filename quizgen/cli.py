"""Command-line entry point.

Examples:
  # Generate five easy questions from a notes file
  quizgen --file notes.txt --subject Mathematics --topic Addition --count 5

  # Read the material from stdin and print the full diagnostics report
  cat notes.txt | quizgen --subject History --topic "World War I" --report

  # Use the hosted backend instead of the local Ollama server
  quizgen --file notes.txt --backend openai
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config.settings import settings
from .data.models import DifficultyLevel
from .logging_config import setup_logging
from .observability import observability
from .pipeline import create_pipeline
from .providers import SUPPORTED_BACKENDS


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="quizgen",
        description="Generate validated multiple-choice questions from study material",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1],
    )

    parser.add_argument(
        "--file",
        type=str,
        default=None,
        help="Path of the study material (default: read stdin)",
    )

    parser.add_argument(
        "--subject",
        type=str,
        default="",
        help="Subject name, e.g. Mathematics",
    )

    parser.add_argument(
        "--topic",
        type=str,
        default="",
        help="Topic name, e.g. Addition",
    )

    parser.add_argument(
        "--count",
        type=int,
        default=5,
        help="Number of questions to generate (default: 5)",
    )

    parser.add_argument(
        "--difficulty",
        choices=[d.value for d in DifficultyLevel],
        default=DifficultyLevel.MEDIUM.value,
        help="Question difficulty (default: medium)",
    )

    parser.add_argument(
        "--backend",
        choices=list(SUPPORTED_BACKENDS),
        default=None,
        help=f"Completion backend (default: {settings.llm_backend})",
    )

    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the full generation report instead of only the questions",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=settings.log_file,
        help="Also write logs to this file (default: LOG_FILE setting)",
    )

    return parser.parse_args(argv)


def read_content(path: Optional[str]) -> str:
    """Read study material from a file, or from stdin when no path is given."""
    if path is None:
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_arguments(argv)

    setup_logging(
        log_level="DEBUG" if args.verbose else settings.log_level,
        log_file=args.log_file,
        enable_file_logging=args.log_file is not None,
        json_format=settings.log_json,
    )
    logger = logging.getLogger(__name__)

    observability.init(
        service_name=settings.service_name,
        environment=settings.env,
        sentry_dsn=settings.sentry_dsn,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )

    run_settings = settings
    if args.backend:
        run_settings = settings.model_copy(update={"llm_backend": args.backend})

    try:
        content = read_content(args.file)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read study material: {e}")
        return 2

    try:
        pipeline = create_pipeline(run_settings)
        report = pipeline.generate_with_report(
            content,
            count=args.count,
            difficulty=args.difficulty,
            subject={"name": args.subject},
            topic={"name": args.topic},
        )
    except ValueError as e:
        logger.error(f"Invalid arguments: {e}")
        return 2

    if args.report:
        output = report.to_dict()
    else:
        output = [question.to_dict() for question in report.questions]
    print(json.dumps(output, indent=2, ensure_ascii=False))

    if not report.questions:
        logger.warning("No questions passed validation")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
