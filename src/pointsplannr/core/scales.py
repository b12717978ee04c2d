from enum import Enum
from typing import Dict, List, Optional, Type


class Level(str, Enum):
    HIGHER = "Higher"
    ORDINARY = "Ordinary"
    FOUNDATION = "Foundation"


class Tier(str, Enum):
    HIGHER = "Higher"
    ORDINARY = "Ordinary"
    LCVP = "LCVP"


class HigherGrade(str, Enum):
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    H4 = "H4"
    H5 = "H5"
    H6 = "H6"
    H7 = "H7"
    H8 = "H8"


class OrdinaryGrade(str, Enum):
    O1 = "O1"
    O2 = "O2"
    O3 = "O3"
    O4 = "O4"
    O5 = "O5"
    O6 = "O6"
    O7 = "O7"
    O8 = "O8"


class LcvpGrade(str, Enum):
    DISTINCTION = "Distinction"
    MERIT = "Merit"
    PASS = "Pass"


# CAO points grid. Enum members are declared best to worst.
HIGHER_POINTS: Dict[HigherGrade, int] = {
    HigherGrade.H1: 100,
    HigherGrade.H2: 88,
    HigherGrade.H3: 77,
    HigherGrade.H4: 66,
    HigherGrade.H5: 56,
    HigherGrade.H6: 46,
    HigherGrade.H7: 37,
    HigherGrade.H8: 28,
}

ORDINARY_POINTS: Dict[OrdinaryGrade, int] = {
    OrdinaryGrade.O1: 56,
    OrdinaryGrade.O2: 46,
    OrdinaryGrade.O3: 37,
    OrdinaryGrade.O4: 28,
    OrdinaryGrade.O5: 20,
    OrdinaryGrade.O6: 12,
    OrdinaryGrade.O7: 0,
    OrdinaryGrade.O8: 0,
}

LCVP_POINTS: Dict[LcvpGrade, int] = {
    LcvpGrade.DISTINCTION: 66,
    LcvpGrade.MERIT: 46,
    LcvpGrade.PASS: 28,
}

TIER_GRADES: Dict[Tier, Type[Enum]] = {
    Tier.HIGHER: HigherGrade,
    Tier.ORDINARY: OrdinaryGrade,
    Tier.LCVP: LcvpGrade,
}

TIER_POINTS: Dict[Tier, Dict] = {
    Tier.HIGHER: HIGHER_POINTS,
    Tier.ORDINARY: ORDINARY_POINTS,
    Tier.LCVP: LCVP_POINTS,
}

DEFAULT_GRADES: Dict[Tier, str] = {
    Tier.HIGHER: HigherGrade.H3.value,
    Tier.ORDINARY: OrdinaryGrade.O3.value,
    Tier.LCVP: LcvpGrade.MERIT.value,
}

LCVP_SUBJECT_NAME = "lcvp"


def _check_tables() -> None:
    for tier, grades in TIER_GRADES.items():
        missing = [grade.value for grade in grades if grade not in TIER_POINTS[tier]]
        if missing:
            raise RuntimeError(f"No points defined for {tier.value} grades: {', '.join(missing)}")


_check_tables()


def is_lcvp_subject(subject_name: Optional[str]) -> bool:
    return bool(subject_name) and subject_name.lower() == LCVP_SUBJECT_NAME


def _as_level(level) -> Optional[Level]:
    try:
        return Level(level)
    except ValueError:
        return None


def resolve_tier(level, subject_name: Optional[str] = None) -> Optional[Tier]:
    """
    Tier used to score a subject. The LCVP subject overrides whatever level
    it is tagged with; Foundation (or an unknown level) has no tier.
    """
    if is_lcvp_subject(subject_name):
        return Tier.LCVP
    resolved = _as_level(level)
    if resolved is Level.HIGHER:
        return Tier.HIGHER
    if resolved is Level.ORDINARY:
        return Tier.ORDINARY
    return None


def tier_of(grade: Optional[str]) -> Optional[Tier]:
    if not grade:
        return None
    for tier, grades in TIER_GRADES.items():
        try:
            grades(grade)
        except ValueError:
            continue
        return tier
    return None


def tier_symbols(tier: Tier) -> List[str]:
    """Symbols of a tier ordered best to worst."""
    return [grade.value for grade in TIER_GRADES[tier]]


def points_for(grade: Optional[str], level, subject_name: Optional[str] = None) -> int:
    tier = resolve_tier(level, subject_name)
    if tier is None or not grade:
        return 0
    try:
        symbol = TIER_GRADES[tier](grade)
    except ValueError:
        return 0
    return TIER_POINTS[tier][symbol]


def is_valid_grade(grade: Optional[str], level, subject_name: Optional[str] = None) -> bool:
    tier = resolve_tier(level, subject_name)
    return tier is not None and tier_of(grade) is tier


def default_grade(level, subject_name: Optional[str] = None) -> str:
    tier = resolve_tier(level, subject_name)
    if tier is None:
        return DEFAULT_GRADES[Tier.ORDINARY]
    return DEFAULT_GRADES[tier]


def effective_grade(stored_grade: Optional[str], level, subject_name: Optional[str] = None) -> str:
    if is_valid_grade(stored_grade, level, subject_name):
        return stored_grade
    return default_grade(level, subject_name)


def grades_for_level(level, subject_name: Optional[str] = None) -> List[str]:
    tier = resolve_tier(level, subject_name)
    if tier is None:
        tier = Tier.ORDINARY
    return tier_symbols(tier)
