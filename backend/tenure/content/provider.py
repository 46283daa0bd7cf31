"""ContentProvider Protocol: where question sets, scores and careers come from.

Implementations:
- ContentProviderFake: deterministic scenarios for tests and local runs
- OnetContentProvider: the O*NET Interest Profiler web service (interests only)

Every method may raise ContentProviderError. Absence is not an error:
get_results and get_career_details return None, get_career_matches [].
"""

from typing import Any, Protocol, runtime_checkable

from tenure.domain.assessments import AssessmentKind
from tenure.schemas.discover import CareerDetails, CareerMatch, Question, ScoreProfile


@runtime_checkable
class ContentProvider(Protocol):
    async def get_questions(self, kind: AssessmentKind, count: int) -> list[Question]:
        """Fetch the ordered question set for an assessment kind.

        Args:
            kind: Assessment kind
            count: Expected number of questions (the kind's buffer length)

        Returns:
            Questions with 0-based index matching the answer slot
        """
        ...

    async def get_results(self, kind: AssessmentKind, answers: str) -> dict[str, Any] | None:
        """Score a complete answer string (one token per question, no separator).

        For the interests kind the result is keyed by the six category keys,
        each {"score", "title", "description"}.
        """
        ...

    async def get_career_matches(self, profile: ScoreProfile) -> list[CareerMatch]:
        """Careers ranked by fit for an interests score profile."""
        ...

    async def get_career_details(self, code: str) -> CareerDetails | None:
        """Details for one occupation code, or None when unknown."""
        ...
