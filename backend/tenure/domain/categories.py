"""RIASEC interest categories and their theme colors.

Pure domain constants with no external dependencies. The declaration order of
RiasecType is the tie-break order used when ranking equal scores.
"""

from enum import StrEnum


class RiasecType(StrEnum):
    """The six Holland interest categories, in canonical declaration order."""

    REALISTIC = "realistic"
    INVESTIGATIVE = "investigative"
    ARTISTIC = "artistic"
    SOCIAL = "social"
    ENTERPRISING = "enterprising"
    CONVENTIONAL = "conventional"


CATEGORY_ORDER: tuple[RiasecType, ...] = tuple(RiasecType)

CATEGORY_COLORS: dict[RiasecType, str] = {
    RiasecType.REALISTIC: "#F97316",  # orange
    RiasecType.INVESTIGATIVE: "#8B5CF6",  # purple
    RiasecType.ARTISTIC: "#EC4899",  # pink
    RiasecType.SOCIAL: "#10B981",  # emerald
    RiasecType.ENTERPRISING: "#EAB308",  # yellow
    RiasecType.CONVENTIONAL: "#06B6D4",  # cyan
}


def _check_exhaustive(mapping: dict, name: str) -> None:
    missing = [t.value for t in RiasecType if t not in mapping]
    if missing:
        raise RuntimeError(f"{name} is missing categories: {missing}")


_check_exhaustive(CATEGORY_COLORS, "CATEGORY_COLORS")


def category_color(category: RiasecType | str) -> str:
    """Hex color for a category key (accepts the enum or its string value)."""
    return CATEGORY_COLORS[RiasecType(category)]
