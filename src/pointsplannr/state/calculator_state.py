import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from pointsplannr.config.settings import settings
from pointsplannr.core.points import (
    PointsResult,
    SubjectAssignment,
    calculate_points,
    with_overrides,
)
from pointsplannr.core.scales import Level, effective_grade
from pointsplannr.core.transitions import convert_level, step, toggled_level
from pointsplannr.services.protocols import GradeStoreError, GradeWriter


logger = logging.getLogger(__name__)


class GradeUpdateFailed(Exception):
    def __init__(self, subject_id: str, detail: str) -> None:
        super().__init__(detail)
        self.subject_id = subject_id
        self.detail = detail


@dataclass
class CalculatorState:
    """
    One student's calculator session.

    `assignments` is the committed list. While experimenting, `overrides`
    holds level swaps and `experimental_grades` holds grades picked for
    swapped subjects; neither is ever written to the grade store.
    """

    uid: str
    writer: GradeWriter
    assignments: List[SubjectAssignment] = field(default_factory=list)
    best_n: int = settings.points_best_n
    is_experimenting: bool = False
    overrides: Dict[str, Level] = field(default_factory=dict)
    experimental_grades: Dict[str, str] = field(default_factory=dict)

    def current_assignments(self) -> List[SubjectAssignment]:
        if not self.is_experimenting:
            return list(self.assignments)
        rows = with_overrides(self.assignments, self.overrides)
        return [
            replace(a, grade=self.experimental_grades[a.subject_id])
            if a.subject_id in self.experimental_grades
            else a
            for a in rows
        ]

    def points(self) -> PointsResult:
        return calculate_points(self.current_assignments(), self.best_n)

    def _find(self, subject_id: str) -> SubjectAssignment:
        for assignment in self.current_assignments():
            if assignment.subject_id == subject_id:
                return assignment
        raise KeyError(subject_id)

    def change_grade(self, subject_id: str, direction: str) -> PointsResult:
        """
        Step a subject's grade, apply it locally, then save it. If the save
        fails the previous list is restored and GradeUpdateFailed is raised.
        """
        current = self._find(subject_id)
        grade = effective_grade(current.grade, current.level, current.subject_name)
        new_grade = step(grade, direction, current.subject_name)

        if self.is_experimenting and subject_id in self.overrides:
            self.experimental_grades[subject_id] = new_grade
            return self.points()

        snapshot = list(self.assignments)
        self.assignments = [
            replace(a, grade=new_grade) if a.subject_id == subject_id else a
            for a in self.assignments
        ]
        try:
            self.writer.update_grade(self.uid, subject_id, new_grade)
        except GradeStoreError as exc:
            self.assignments = snapshot
            logger.error("Failed to save grade for subject %s, rolled back: %s", subject_id, exc)
            raise GradeUpdateFailed(subject_id, "Failed to save grade") from exc
        return self.points()

    def start_experimenting(self) -> None:
        self.is_experimenting = True

    def toggle_level(self, subject_id: str) -> PointsResult:
        """Swap Higher/Ordinary for one subject. Foundation and LCVP stay put."""
        self.start_experimenting()
        current = self._find(subject_id)
        new_level = toggled_level(current.level, current.subject_name)
        if new_level is None:
            return self.points()

        self.overrides[subject_id] = new_level
        if subject_id in self.experimental_grades:
            self.experimental_grades[subject_id] = convert_level(
                self.experimental_grades[subject_id], new_level
            )
        return self.points()

    def exit_experimenting(self, committed: Optional[List[SubjectAssignment]] = None) -> PointsResult:
        self.is_experimenting = False
        self.overrides = {}
        self.experimental_grades = {}
        if committed is not None:
            self.assignments = list(committed)
        return self.points()
