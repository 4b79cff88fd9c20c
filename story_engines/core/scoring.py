"""
Quality scoring for engine outputs.

Heuristic 0-100 estimate of how usable an engine's output is. Used for run
level reporting only, never to decide success or failure.
"""

import math
import re
from typing import Iterable, Optional

from ..models import EngineConfig

# Fixed score of fallback content; below the minimum of any real generation
FALLBACK_QUALITY_SCORE = 25

BASE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

SHORT_LENGTH_THRESHOLD = 100
LONG_LENGTH_THRESHOLD = 300

GENERIC_PHRASES_PATTERN = re.compile(
    r"N/A|not available|unclear|lorem ipsum|to be determined",
    re.IGNORECASE,
)
LIST_MARKER_PATTERN = re.compile(r"•|^\s*(?:[-*]|\d+[.)])\s+", re.MULTILINE)


def score_output(text: str, config: Optional[EngineConfig] = None) -> int:
    """
    Score one engine output.

    Base 50; +20 over 100 characters, +10 more over 300; +10 for list
    formatting; +10 for more than two lines; +10 when free of generic
    placeholder phrases. `config` is accepted so per-engine heuristics can be
    added without changing call sites.
    """
    score = BASE_SCORE

    if len(text) > SHORT_LENGTH_THRESHOLD:
        score += 20
    if len(text) > LONG_LENGTH_THRESHOLD:
        score += 10

    if LIST_MARKER_PATTERN.search(text):
        score += 10
    if len(text.split("\n")) > 2:
        score += 10
    if not GENERIC_PHRASES_PATTERN.search(text):
        score += 10

    return max(MIN_SCORE, min(score, MAX_SCORE))


def calculate_overall_quality(quality_scores: Iterable[int], successes: Iterable[bool]) -> int:
    """
    Run-level quality: 70% mean task quality, 30% success rate.
    Zero when no tasks ran.
    """
    scores = list(quality_scores)
    flags = list(successes)
    if not scores:
        return 0

    average_quality = sum(scores) / len(scores)
    success_rate = sum(1 for flag in flags if flag) / len(flags) * 100 if flags else 0.0

    # Half rounds up
    overall = math.floor((average_quality * 7 + success_rate * 3) / 10 + 0.5)
    return max(MIN_SCORE, min(overall, MAX_SCORE))
