"""Pydantic schemas for the discover (assessment) domain.

Field names are snake_case in Python and camelCase on the wire, matching the
frontend contract (textOnPrimary, currentIndex, ...).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from tenure.domain.assessments import KIND_SPECS, AssessmentKind, AssessmentState
from tenure.domain.categories import RiasecType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Question(CamelModel):
    index: int
    area: str = ""
    text: str


class AssessmentSession(CamelModel):
    """In-memory session of one assessment kind.

    Invariants: the answer buffer has the kind's fixed length and
    0 <= current_index < len(answers).
    """

    kind: AssessmentKind
    state: AssessmentState = AssessmentState.INTRO
    answers: list[str]
    current_index: int = 0

    @model_validator(mode="after")
    def check_buffer(self) -> "AssessmentSession":
        expected = KIND_SPECS[self.kind].question_count
        if len(self.answers) != expected:
            raise ValueError(f"{self.kind.value} expects {expected} answers, got {len(self.answers)}")
        if not 0 <= self.current_index < len(self.answers):
            raise ValueError(f"current_index {self.current_index} out of range")
        return self


class RiasecArea(CamelModel):
    score: int = Field(..., ge=0, le=100)
    title: str = ""
    description: str = ""


class ScoreProfile(CamelModel):
    """Interests score profile; all six categories are required once computed.

    Field order is the canonical category order used for tie-breaks.
    """

    realistic: RiasecArea
    investigative: RiasecArea
    artistic: RiasecArea
    social: RiasecArea
    enterprising: RiasecArea
    conventional: RiasecArea

    def area(self, category: RiasecType) -> RiasecArea:
        return getattr(self, category.value)


class RankedCategory(CamelModel):
    key: RiasecType
    score: int
    title: str = ""
    description: str = ""


class HybridArchetype(CamelModel):
    title: str
    description: str
    score: int = Field(..., ge=0, le=100)
    types: tuple[RiasecType, RiasecType]


class ThemeColors(CamelModel):
    model_config = ConfigDict(frozen=True)

    primary: str
    secondary: str
    accent: str
    background: str
    surface: str
    text: str
    text_muted: str
    border: str
    text_on_primary: str


class ThemeGradients(CamelModel):
    model_config = ConfigDict(frozen=True)

    primary: str


class ThemeShadows(CamelModel):
    model_config = ConfigDict(frozen=True)

    sm: str
    md: str
    lg: str


class ThemeState(CamelModel):
    """Theme tokens derived from the interests ranking. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    colors: ThemeColors
    gradients: ThemeGradients
    shadows: ThemeShadows


class CompletionFlags(CamelModel):
    model_config = ConfigDict(frozen=True)

    interests: bool = False
    personality: bool = False
    cognitive_style: bool = False

    @property
    def all_complete(self) -> bool:
        return self.interests and self.personality and self.cognitive_style

    @classmethod
    def from_kinds(cls, completed: dict[AssessmentKind, bool]) -> "CompletionFlags":
        return cls(
            interests=completed.get(AssessmentKind.INTERESTS, False),
            personality=completed.get(AssessmentKind.PERSONALITY, False),
            cognitive_style=completed.get(AssessmentKind.COGNITIVE_STYLE, False),
        )


class CareerTags(CamelModel):
    bright_outlook: bool = False
    green: bool = False
    apprenticeship: bool = False


class CareerMatch(CamelModel):
    code: str
    title: str
    fit: str | int | None = None
    tags: CareerTags = Field(default_factory=CareerTags)


class CareerSalary(CamelModel):
    annual_median: float | None = None
    hourly_median: float | None = None


class CareerDetails(CamelModel):
    code: str
    title: str
    tags: CareerTags = Field(default_factory=CareerTags)
    what_they_do: str = ""
    on_the_job: list[str] = Field(default_factory=list)
    salary: CareerSalary | None = None
    skills: list[str] = Field(default_factory=list)


class AssessmentView(CamelModel):
    """Session plus derived status, as exposed over the API."""

    session: AssessmentSession
    completed: bool
    is_loading: bool
    question_count: int
    answered: int
    result: dict[str, Any] | None = None
