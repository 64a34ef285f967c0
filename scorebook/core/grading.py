"""
Grade engine: pure computations from raw scores to totals and grade points.

Nothing here holds state or touches persistence. Totals and grade points are
derived on every call and never cached on the entities.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable

from .enums import PresentationTier, ScoreField, Term


# (minimum total, grade point), checked from the top down.
GRADE_LADDER = (
    (80, 4.0),
    (75, 3.5),
    (70, 3.0),
    (65, 2.5),
    (60, 2.0),
    (55, 1.5),
    (50, 1.0),
)

TIER_LADDER = (
    (3.5, PresentationTier.EXCELLENT),
    (2.5, PresentationTier.GOOD),
    (1.0, PresentationTier.PASS),
)


@dataclass(frozen=True)
class StudentSummary:
    """Derived view of one student's scores."""
    total: float
    grade_point: float
    tier: PresentationTier


@dataclass(frozen=True)
class RosterStatistics:
    """Aggregate figures over a collection of students."""
    count: int
    average_grade_point: float
    highest_total: float


def _read(source: Any, name: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def compute_total(student: Any) -> float:
    """Sum the eight component scores of a student.

    Accepts a ``Student`` entity or a raw payload mapping. A missing term
    group, a missing field or a ``None`` value all count as 0.
    """
    total = 0
    for term in Term:
        group = _read(student, term.value)
        for field in ScoreField:
            total += _read(group, field.value) or 0
    return total


def compute_grade_point(total: float) -> float:
    """Map a total score onto the fixed grade point ladder."""
    for threshold, grade_point in GRADE_LADDER:
        if total >= threshold:
            return grade_point
    return 0.0


def classify_presentation_tier(grade_point: float) -> PresentationTier:
    """Pick the display tier for a grade point."""
    for threshold, tier in TIER_LADDER:
        if grade_point >= threshold:
            return tier
    return PresentationTier.FAIL


def summarize_student(student: Any) -> StudentSummary:
    total = compute_total(student)
    grade_point = compute_grade_point(total)
    return StudentSummary(total, grade_point, classify_presentation_tier(grade_point))


def compute_statistics(students: Iterable[Any]) -> RosterStatistics:
    """Count, mean grade point and highest total over a list of students."""
    count = 0
    grade_point_sum = 0.0
    highest_total = 0
    for student in students:
        total = compute_total(student)
        count += 1
        grade_point_sum += compute_grade_point(total)
        if total > highest_total:
            highest_total = total
    average = grade_point_sum / count if count else 0.0
    return RosterStatistics(count, average, highest_total)
