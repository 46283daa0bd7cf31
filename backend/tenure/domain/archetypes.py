"""Interest ranking and hybrid archetype resolution.

Pure functions, fully deterministic. The archetype table is keyed by the two
top-ranked category keys sorted alphabetically and joined with "-".
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from tenure.domain.categories import CATEGORY_ORDER, RiasecType
from tenure.schemas.discover import HybridArchetype, RankedCategory, ScoreProfile


@dataclass(frozen=True)
class Archetype:
    title: str
    description: str


ARCHETYPES: dict[str, Archetype] = {
    # Pure types
    "realistic": Archetype(
        "The Maker", "You thrive when building, fixing, and working with your hands."
    ),
    "investigative": Archetype(
        "The Thinker", "You analyze, research, and solve complex problems logically."
    ),
    "artistic": Archetype(
        "The Creator", "You express yourself through innovative design and creative works."
    ),
    "social": Archetype(
        "The Helper", "You empower others through teaching, healing, and guidance."
    ),
    "enterprising": Archetype(
        "The Persuader", "You lead teams and sell ideas with energy and confidence."
    ),
    "conventional": Archetype(
        "The Organizer", "You create order and efficiency through structured systems."
    ),
    # Hybrids
    "investigative-realistic": Archetype(
        "The Engineer",
        "You combine practical skills with analytical depth to build functional solutions.",
    ),
    "artistic-realistic": Archetype(
        "The Artisan", "You craft beautiful, tangible objects with skill and creative flair."
    ),
    "realistic-social": Archetype(
        "The Service Technician", "You use practical skills to directly help others in tangible ways."
    ),
    "enterprising-realistic": Archetype(
        "The Contractor", "You manage projects and lead teams in hands-on environments."
    ),
    "conventional-realistic": Archetype(
        "The Builder", "You execute precise, structured work with tangible materials."
    ),
    "artistic-investigative": Archetype(
        "The Architect", "You merge creative vision with rigorous logic to design complex systems."
    ),
    "investigative-social": Archetype(
        "The Diagnostician", "You analyze problems to provide deep care and understanding for people."
    ),
    "enterprising-investigative": Archetype(
        "The Strategist", "You use data and analysis to lead organizations toward success."
    ),
    "conventional-investigative": Archetype(
        "The Analyst", "You organize data and systems with scientific precision."
    ),
    "artistic-social": Archetype(
        "The Teacher", "You use creativity to inspire and educate others."
    ),
    "artistic-enterprising": Archetype(
        "The Innovator", "You turn creative ideas into marketable products and ventures."
    ),
    "artistic-conventional": Archetype(
        "The Editor", "You bring structure and polish to creative output."
    ),
    "enterprising-social": Archetype(
        "The Community Leader", "You bring people together to achieve shared goals through influence."
    ),
    "conventional-social": Archetype(
        "The Administrator", "You support people through efficient, well-managed systems."
    ),
    "conventional-enterprising": Archetype(
        "The Executive", "You manage business operations with structure and authority."
    ),
}


def archetype_key(first: RiasecType | str, second: RiasecType | str) -> str:
    """Lookup key for a pair of categories (order-insensitive)."""
    return "-".join(sorted([str(first), str(second)]))


def rank_categories(profile: ScoreProfile) -> list[RankedCategory]:
    """Rank the six categories by descending score.

    Equal scores keep canonical declaration order (sorted() is stable), so
    the ranking is a total, deterministic order.
    """
    entries = [
        RankedCategory(
            key=category,
            score=profile.area(category).score,
            title=profile.area(category).title,
            description=profile.area(category).description,
        )
        for category in CATEGORY_ORDER
    ]
    return sorted(entries, key=lambda entry: -entry.score)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_archetype(
    ranked: Sequence[RankedCategory],
    table: Mapping[str, Archetype] = ARCHETYPES,
) -> HybridArchetype | None:
    """Resolve the hybrid archetype for a ranking.

    Rules:
        - Fewer than two ranked categories: no archetype
        - Table hit on the top-two pair: pair archetype, score = rounded mean
          of the two scores, types in rank order
        - Table miss: single-category fallback from the top category,
          types = [top1, top1], score = top1 score
    """
    if len(ranked) < 2:
        return None

    top1, top2 = ranked[0], ranked[1]
    archetype = table.get(archetype_key(top1.key, top2.key))

    if archetype is not None:
        return HybridArchetype(
            title=archetype.title,
            description=archetype.description,
            score=round_half_up((top1.score + top2.score) / 2),
            types=(top1.key, top2.key),
        )

    return HybridArchetype(
        title=f"The {top1.title}",
        description=top1.description,
        score=top1.score,
        types=(top1.key, top1.key),
    )
