"""Parsing of model replies into question candidates.

The reply grammar is the one every prompt strategy requests::

    QUESTION 1:
    What is 7 + 9?
    A) 16
    B) 18
    C) 15
    D) 17
    CORRECT: A
    EXPLANATION: 7 + 9 = 16.

Parsing is best-effort: malformed blocks are skipped, never raised.
"""

import logging
import re
from typing import List, Optional

from ..data.models import OPTION_LETTERS, REQUIRED_OPTION_COUNT, QuestionCandidate

logger = logging.getLogger(__name__)

QUESTION_SPLIT_PATTERN = re.compile(r"QUESTION\s*\d+\s*[:.)]", re.IGNORECASE)
OPTION_PATTERN = re.compile(r"^([A-D])\)\s*(.+)$")
# "a)", "A." and "a." read as options only once an A option has started the list,
# so a stem line such as "D. H. Lawrence wrote..." stays in the stem
LOOSE_OPTION_PATTERN = re.compile(r"^([A-D])[).]\s*(.+)$", re.IGNORECASE)
CORRECT_PATTERN = re.compile(
    r"^CORRECT(?:\s+ANSWER)?\s*:\s*[\[(]?([A-D])\b", re.IGNORECASE
)
EXPLANATION_PATTERN = re.compile(r"^EXPLANATION\s*:\s*(.*)$", re.IGNORECASE)

# Leading list/heading markers and surrounding emphasis
_DECORATION_PATTERN = re.compile(r"^(?:#+|>+|[-*•]\s+)\s*|\*\*")


def _clean_line(line: str) -> str:
    cleaned = _DECORATION_PATTERN.sub("", line.strip())
    return cleaned.strip().strip("*").strip()


def _match_option(line: str, options: List[str]) -> Optional[str]:
    match = OPTION_PATTERN.match(line)
    if match:
        return match.group(2).strip()
    match = LOOSE_OPTION_PATTERN.match(line)
    if match and (options or match.group(1).upper() == "A"):
        return match.group(2).strip()
    return None


def parse_question_block(block: str) -> Optional[QuestionCandidate]:
    """Parse one ``QUESTION n:`` block.

    Args:
        block: Text following a question marker

    Returns:
        QuestionCandidate, or None if the block is malformed
    """
    lines = [_clean_line(line) for line in block.splitlines()]
    lines = [line for line in lines if line]

    stem_lines: List[str] = []
    options: List[str] = []
    correct_letter: Optional[str] = None
    explanation = ""

    for line in lines:
        option = _match_option(line, options) if correct_letter is None else None
        if option is not None:
            options.append(option)
            continue

        correct_match = CORRECT_PATTERN.match(line)
        if correct_match:
            correct_letter = correct_match.group(1).upper()
            continue

        explanation_match = EXPLANATION_PATTERN.match(line)
        if explanation_match:
            explanation = explanation_match.group(1).strip()
            continue

        if not options and correct_letter is None:
            stem_lines.append(line)

    question = " ".join(stem_lines).strip()
    if not question:
        logger.debug("Skipping block with empty question text")
        return None
    if len(options) != REQUIRED_OPTION_COUNT:
        logger.debug(f"Skipping block with {len(options)} options: {question[:60]}")
        return None
    if correct_letter is None:
        logger.debug(f"Skipping block without CORRECT line: {question[:60]}")
        return None

    correct_index = OPTION_LETTERS.index(correct_letter)
    if correct_index >= len(options):
        return None

    return QuestionCandidate(
        question=question,
        options=options,
        correct_index=correct_index,
        answer=options[correct_index],
        explanation=explanation,
    )


def parse_questions(raw_text: str, expected_count: int) -> List[QuestionCandidate]:
    """Parse a model reply into at most ``expected_count`` candidates.

    Args:
        raw_text: Raw model reply
        expected_count: Number of questions requested

    Returns:
        Parsed candidates (possibly empty)
    """
    if not raw_text or expected_count < 1:
        return []

    # Anything before the first marker is preamble
    blocks = QUESTION_SPLIT_PATTERN.split(raw_text)[1:]
    candidates: List[QuestionCandidate] = []

    for index, block in enumerate(blocks, start=1):
        try:
            candidate = parse_question_block(block)
        except Exception as e:
            logger.warning(f"Failed to parse question block {index}: {e}")
            continue
        if candidate is not None:
            candidates.append(candidate)
        if len(candidates) >= expected_count:
            break

    logger.debug(f"Parsed {len(candidates)} of {len(blocks)} question blocks")
    return candidates
