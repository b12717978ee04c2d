from typing import Optional, Tuple

from pointsplannr.core.scales import HigherGrade


MATHS_BONUS = 25
MATHS_SUBJECT_NAMES: Tuple[str, ...] = ("mathematics", "maths")

# H7 and H8 are valid Higher grades but do not earn the bonus.
MATHS_BONUS_GRADES: Tuple[str, ...] = tuple(
    grade.value
    for grade in (
        HigherGrade.H1,
        HigherGrade.H2,
        HigherGrade.H3,
        HigherGrade.H4,
        HigherGrade.H5,
        HigherGrade.H6,
    )
)


def is_maths_subject(subject_name: Optional[str]) -> bool:
    if not subject_name:
        return False
    return subject_name.lower() in MATHS_SUBJECT_NAMES


def qualifies_for_maths_bonus(grade: Optional[str]) -> bool:
    return bool(grade) and grade in MATHS_BONUS_GRADES


def bonus_for(subject_name: Optional[str], grade: Optional[str]) -> int:
    """
    Higher Maths bonus: 25 points for Mathematics at H1-H6, otherwise 0.
    Only the grade symbol is checked, not the subject's level tag.
    """
    if not is_maths_subject(subject_name):
        return 0
    if not qualifies_for_maths_bonus(grade):
        return 0
    return MATHS_BONUS
