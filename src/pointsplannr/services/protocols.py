from typing import List, Optional, Protocol

from pointsplannr.core.points import SubjectAssignment


class GradeStoreError(Exception):
    pass


class AssignmentSource(Protocol):
    def list_assignments(self, uid: str) -> List[SubjectAssignment]:
        ...


class GradeWriter(Protocol):
    def update_grade(self, uid: str, subject_id: str, grade: str) -> None:
        """Persist a grade. Raises GradeStoreError when the write fails."""
        ...


class GradeStore(AssignmentSource, GradeWriter, Protocol):
    def get_grade(self, uid: str, subject_id: str) -> Optional[str]:
        ...
