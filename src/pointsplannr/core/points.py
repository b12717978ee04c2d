from dataclasses import dataclass, replace
from typing import Iterable, List, Mapping, Optional

from pointsplannr.core.bonus import bonus_for
from pointsplannr.core.scales import Level, effective_grade, is_lcvp_subject, points_for
from pointsplannr.core.transitions import convert_level


BEST_N = 6


@dataclass(frozen=True)
class SubjectAssignment:
    subject_id: str
    subject_name: str
    level: Level
    grade: Optional[str] = None


@dataclass(frozen=True)
class Breakdown:
    subject_id: str
    subject_name: str
    level: Level
    grade: str
    base_points: int
    maths_bonus: int
    is_lcvp: bool = False

    @property
    def total_points(self) -> int:
        return self.base_points + self.maths_bonus


@dataclass(frozen=True)
class BestSubset:
    subset: List[Breakdown]
    subset_total: int
    all_total: int


@dataclass(frozen=True)
class PointsResult:
    breakdown: List[Breakdown]
    all_subjects_total: int
    best6_subjects: List[Breakdown]
    best6_total: int
    best_n: int = BEST_N

    @property
    def show_best6(self) -> bool:
        """The best-N figure only means something once a subject is left out."""
        return len(self.breakdown) > self.best_n

    @property
    def headline_total(self) -> int:
        return self.best6_total if self.show_best6 else self.all_subjects_total

    def is_in_best6(self, subject_id: str) -> bool:
        return any(row.subject_id == subject_id for row in self.best6_subjects)


def breakdown_for(assignment: SubjectAssignment) -> Breakdown:
    grade = effective_grade(assignment.grade, assignment.level, assignment.subject_name)
    return Breakdown(
        subject_id=assignment.subject_id,
        subject_name=assignment.subject_name,
        level=assignment.level,
        grade=grade,
        base_points=points_for(grade, assignment.level, assignment.subject_name),
        maths_bonus=bonus_for(assignment.subject_name, grade),
        is_lcvp=is_lcvp_subject(assignment.subject_name),
    )


def compute_breakdown(assignments: Iterable[SubjectAssignment]) -> List[Breakdown]:
    return [breakdown_for(assignment) for assignment in assignments]


def select_best_n(breakdown: Iterable[Breakdown], n: int = BEST_N) -> BestSubset:
    """
    Pick the n highest-scoring rows. sorted() is stable, so rows with equal
    totals keep their input order.
    """
    if n < 0:
        raise ValueError("n must be zero or greater")

    rows = list(breakdown)
    ranked = sorted(rows, key=lambda row: row.total_points, reverse=True)
    subset = ranked[:n]
    return BestSubset(
        subset=subset,
        subset_total=sum(row.total_points for row in subset),
        all_total=sum(row.total_points for row in rows),
    )


def calculate_points(assignments: Iterable[SubjectAssignment], best_n: int = BEST_N) -> PointsResult:
    breakdown = compute_breakdown(assignments)
    best = select_best_n(breakdown, best_n)
    return PointsResult(
        breakdown=breakdown,
        all_subjects_total=best.all_total,
        best6_subjects=best.subset,
        best6_total=best.subset_total,
        best_n=best_n,
    )


def with_level(assignment: SubjectAssignment, level) -> SubjectAssignment:
    """
    Same subject at another level, with its effective grade carried across
    by rank. Foundation subjects are returned unchanged.
    """
    target = Level(level)
    if assignment.level == Level.FOUNDATION or target is Level.FOUNDATION:
        return assignment
    grade = effective_grade(assignment.grade, assignment.level, assignment.subject_name)
    return replace(assignment, level=target, grade=convert_level(grade, target))


def with_overrides(
    assignments: Iterable[SubjectAssignment],
    overrides: Mapping[str, Level],
) -> List[SubjectAssignment]:
    results: List[SubjectAssignment] = []
    for assignment in assignments:
        level = overrides.get(assignment.subject_id)
        if level is None:
            results.append(assignment)
        else:
            results.append(with_level(assignment, level))
    return results
