"""Score and grade computation for doctor results."""

from __future__ import annotations

from typing import Iterable, Tuple

from .models import Diagnostic

ERROR_PENALTY = 5
WARNING_PENALTY = 2

# (minimum score, grade), highest band first; anything below the last band is "F".
GRADE_BANDS: Tuple[Tuple[int, str], ...] = (
    (95, "A+"),
    (90, "A"),
    (85, "A-"),
    (80, "B+"),
    (75, "B"),
    (70, "B-"),
    (65, "C+"),
    (60, "C"),
    (55, "C-"),
    (50, "D"),
)
FAILING_GRADE = "F"


def calculate_score(diagnostics: Iterable[Diagnostic]) -> int:
    """Return ``100 - 5*errors - 2*warnings`` clamped to ``[0, 100]``."""
    errors = 0
    warnings = 0
    for diagnostic in diagnostics:
        if diagnostic.severity == "error":
            errors += 1
        elif diagnostic.severity == "warning":
            warnings += 1
    score = 100 - errors * ERROR_PENALTY - warnings * WARNING_PENALTY
    return max(0, min(100, score))


def grade_for(score: int) -> str:
    for minimum, grade in GRADE_BANDS:
        if score >= minimum:
            return grade
    return FAILING_GRADE


__all__ = ["FAILING_GRADE", "GRADE_BANDS", "calculate_score", "grade_for"]
