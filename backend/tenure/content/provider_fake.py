"""ContentProviderFake: Scenario-based test double for the ContentProvider protocol.

Scenarios:
- happy_path: questions, scores, careers and details all succeed
- provider_failure: every call raises ContentProviderError
- scoring_failure: questions load, scoring raises ContentProviderError
- empty_results: questions load, scoring returns None (absent)

Scoring is deterministic: question i belongs to category i % 6 (in canonical
order) and each category score is the mean answer mapped from 1..5 to 0..100.
The scenario attribute may be changed between calls to simulate recovery.
"""

import asyncio
from typing import Any

from tenure.core.exceptions import ContentProviderError
from tenure.domain.assessments import SENTINEL, AssessmentKind
from tenure.domain.categories import CATEGORY_ORDER
from tenure.schemas.discover import (
    CareerDetails,
    CareerMatch,
    CareerSalary,
    CareerTags,
    Question,
    ScoreProfile,
)

_AREA_TITLES = {
    "realistic": "Realistic",
    "investigative": "Investigative",
    "artistic": "Artistic",
    "social": "Social",
    "enterprising": "Enterprising",
    "conventional": "Conventional",
}

_TRAIT_DIMENSIONS = {
    AssessmentKind.PERSONALITY: ("openness", "conscientiousness", "extraversion", "agreeableness"),
    AssessmentKind.COGNITIVE_STYLE: ("analytical", "intuitive", "structured", "exploratory"),
}

_CAREERS = [
    ("15-1252.00", "Software Developers"),
    ("27-1024.00", "Graphic Designers"),
    ("29-1141.00", "Registered Nurses"),
    ("11-2021.00", "Marketing Managers"),
    ("43-3031.00", "Bookkeeping, Accounting, and Auditing Clerks"),
]


def _scale(tokens: list[str]) -> int:
    values = [int(t) for t in tokens if t != SENTINEL]
    if not values:
        return 0
    return round((sum(values) / len(values) - 1) * 25)


class ContentProviderFake:
    """Scenario-based test double for ContentProvider."""

    VALID_SCENARIOS = {"happy_path", "provider_failure", "scoring_failure", "empty_results"}

    def __init__(self, scenario: str = "happy_path", results_gate: asyncio.Event | None = None):
        """Initialize the fake with a named scenario.

        Args:
            scenario: One of VALID_SCENARIOS
            results_gate: When given, get_results waits for it before answering,
                letting tests interleave other operations with a pending score

        Raises:
            ValueError: If scenario is not recognized
        """
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(
                f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}"
            )
        self.scenario = scenario
        self.results_gate = results_gate
        self.calls: list[tuple[str, Any]] = []

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    async def get_questions(self, kind: AssessmentKind, count: int) -> list[Question]:
        self.calls.append(("get_questions", kind))
        if self.scenario == "provider_failure":
            raise ContentProviderError("get_questions", "service unavailable")

        if kind == AssessmentKind.INTERESTS:
            areas = [CATEGORY_ORDER[i % len(CATEGORY_ORDER)].value for i in range(count)]
        else:
            dims = _TRAIT_DIMENSIONS[kind]
            areas = [dims[i % len(dims)] for i in range(count)]

        return [
            Question(index=i, area=area, text=f"{kind.value} question {i + 1}")
            for i, area in enumerate(areas)
        ]

    async def get_results(self, kind: AssessmentKind, answers: str) -> dict[str, Any] | None:
        self.calls.append(("get_results", (kind, answers)))
        if self.results_gate is not None:
            await self.results_gate.wait()

        if self.scenario in ("provider_failure", "scoring_failure"):
            raise ContentProviderError("get_results", "scoring service unavailable")
        if self.scenario == "empty_results":
            return None

        tokens = list(answers)
        if kind == AssessmentKind.INTERESTS:
            buckets = len(CATEGORY_ORDER)
            return {
                category.value: {
                    "score": _scale(tokens[position::buckets]),
                    "title": _AREA_TITLES[category.value],
                    "description": f"People with {category.value} interests.",
                }
                for position, category in enumerate(CATEGORY_ORDER)
            }

        dims = _TRAIT_DIMENSIONS[kind]
        return {dim: _scale(tokens[position::len(dims)]) for position, dim in enumerate(dims)}

    async def get_career_matches(self, profile: ScoreProfile) -> list[CareerMatch]:
        self.calls.append(("get_career_matches", profile))
        if self.scenario == "provider_failure":
            raise ContentProviderError("get_career_matches", "service unavailable")

        return [
            CareerMatch(code=code, title=title, fit="Best" if i < 2 else "Great")
            for i, (code, title) in enumerate(_CAREERS)
        ]

    async def get_career_details(self, code: str) -> CareerDetails | None:
        self.calls.append(("get_career_details", code))
        if self.scenario == "provider_failure":
            raise ContentProviderError("get_career_details", "service unavailable")

        titles = dict(_CAREERS)
        if code not in titles:
            return None
        return CareerDetails(
            code=code,
            title=titles[code],
            tags=CareerTags(bright_outlook=True),
            what_they_do=f"{titles[code]} do the work of their occupation.",
            on_the_job=["Plan the day's work", "Collaborate with the team"],
            salary=CareerSalary(annual_median=75000.0, hourly_median=36.06),
            skills=["Active Listening", "Critical Thinking"],
        )
