from typing import Optional

from pointsplannr.core.scales import (
    DEFAULT_GRADES,
    Level,
    Tier,
    is_lcvp_subject,
    tier_of,
    tier_symbols,
)


UP = "up"
DOWN = "down"

TIER_PREFIXES = {
    Level.HIGHER: "H",
    Level.ORDINARY: "O",
}


def _check_direction(direction: str) -> None:
    if direction not in (UP, DOWN):
        raise ValueError(f"Unsupported direction: {direction}. Use 'up' or 'down'.")


def step(grade: str, direction: str, subject_name: Optional[str] = None) -> str:
    """
    Move one grade toward the best ('up') or worst ('down') end of the
    grade's own scale. Stepping past either end returns the same grade.
    """
    _check_direction(direction)

    tier = tier_of(grade)
    if is_lcvp_subject(subject_name) and tier is not Tier.LCVP:
        return DEFAULT_GRADES[Tier.LCVP]
    if tier is None:
        return grade

    symbols = tier_symbols(tier)
    index = symbols.index(grade)
    if direction == UP:
        index = max(0, index - 1)
    else:
        index = min(len(symbols) - 1, index + 1)
    return symbols[index]


def is_at_boundary(grade: str, direction: str, subject_name: Optional[str] = None) -> bool:
    return step(grade, direction, subject_name) == grade


def convert_level(grade: str, target_level) -> str:
    """
    Carry a grade across to the other level by rank: O3 -> H3, H6 -> O6.
    LCVP grades have a single scale and are returned as-is.
    """
    try:
        prefix = TIER_PREFIXES[Level(target_level)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Cannot convert grades to level: {target_level}") from exc

    tier = tier_of(grade)
    if tier not in (Tier.HIGHER, Tier.ORDINARY):
        return grade
    return f"{prefix}{grade[-1]}"


def toggled_level(level, subject_name: Optional[str] = None) -> Optional[Level]:
    """The other of Higher/Ordinary, or None for Foundation and LCVP subjects."""
    if is_lcvp_subject(subject_name):
        return None
    current = Level(level)
    if current is Level.HIGHER:
        return Level.ORDINARY
    if current is Level.ORDINARY:
        return Level.HIGHER
    return None
