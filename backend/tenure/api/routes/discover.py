"""Discover API routes: assessment lifecycle, derived theme/archetype and careers."""

from enum import StrEnum

from fastapi import APIRouter, Depends, HTTPException

from tenure.api.dependencies import get_coordinator
from tenure.domain.assessments import AssessmentKind, AssessmentState, TransitionResult
from tenure.domain.routes import DiscoverSubTab, Tab
from tenure.schemas.discover import (
    AssessmentView,
    CamelModel,
    CareerDetails,
    CareerMatch,
    CompletionFlags,
    HybridArchetype,
    Question,
    RankedCategory,
    ThemeState,
)
from tenure.services.coordinator import AssessmentCoordinator

router = APIRouter()


class AssessmentAction(StrEnum):
    START = "start"
    PREVIOUS = "previous"
    SUBMIT = "submit"
    RETAKE = "retake"
    CANCEL = "cancel"
    RESET = "reset"
    VIEW_RESULTS = "view-results"


class AnswerRequest(CamelModel):
    value: str | int


class DiscoverStateResponse(CamelModel):
    active_tab: Tab
    sub_tab: DiscoverSubTab
    assessments: dict[AssessmentKind, AssessmentView]
    completion: CompletionFlags
    all_complete: bool


class TransitionResponse(CamelModel):
    allowed: bool
    reason: str = ""
    new_state: AssessmentState | None = None
    assessment: AssessmentView
    path: str | None = None


class QuestionsResponse(CamelModel):
    kind: AssessmentKind
    questions: list[Question]


class ArchetypeResponse(CamelModel):
    archetype: HybridArchetype | None


def _transition_response(
    coordinator: AssessmentCoordinator, kind: AssessmentKind, result: TransitionResult
) -> TransitionResponse:
    if not result.allowed:
        raise HTTPException(status_code=409, detail=result.reason)
    return TransitionResponse(
        allowed=result.allowed,
        reason=result.reason,
        new_state=result.new_state,
        assessment=coordinator.engine(kind).view(),
        path=coordinator.history.current_path,
    )


@router.get("/state", response_model=DiscoverStateResponse)
async def get_state(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    """Current tab, sub-tab, every assessment session and the completion flags."""
    flags = coordinator.completion_flags()
    return DiscoverStateResponse(
        active_tab=coordinator.active_tab.get(),
        sub_tab=coordinator.sub_tab.get(),
        assessments={kind: engine.view() for kind, engine in coordinator.engines.items()},
        completion=flags,
        all_complete=flags.all_complete,
    )


@router.get("/assessments/{kind}/questions", response_model=QuestionsResponse)
async def get_questions(
    kind: AssessmentKind, coordinator: AssessmentCoordinator = Depends(get_coordinator)
):
    return QuestionsResponse(kind=kind, questions=coordinator.engine(kind).questions)


@router.post("/assessments/{kind}/answer", response_model=TransitionResponse)
async def answer(
    kind: AssessmentKind,
    request: AnswerRequest,
    coordinator: AssessmentCoordinator = Depends(get_coordinator),
):
    """Record the answer at the current question. The last answer triggers scoring.

    Returns 409 when the answer is rejected or scoring failed; in the latter
    case the answer is kept and a later submit retries scoring.
    """
    result = await coordinator.answer(kind, request.value)
    return _transition_response(coordinator, kind, result)


@router.post("/assessments/{kind}/{action}", response_model=TransitionResponse)
async def transition(
    kind: AssessmentKind,
    action: AssessmentAction,
    coordinator: AssessmentCoordinator = Depends(get_coordinator),
):
    """Run a lifecycle action. Disallowed transitions return 409 with the reason."""
    operations = {
        AssessmentAction.START: coordinator.start,
        AssessmentAction.PREVIOUS: coordinator.previous,
        AssessmentAction.SUBMIT: coordinator.submit,
        AssessmentAction.RETAKE: coordinator.retake,
        AssessmentAction.CANCEL: coordinator.cancel,
        AssessmentAction.RESET: coordinator.reset,
        AssessmentAction.VIEW_RESULTS: coordinator.view_results,
    }
    result = await operations[action](kind)
    return _transition_response(coordinator, kind, result)


@router.get("/theme", response_model=ThemeState)
async def get_theme(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    return coordinator.current_theme()


@router.get("/archetype", response_model=ArchetypeResponse)
async def get_archetype(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    return ArchetypeResponse(archetype=coordinator.hybrid_archetype())


@router.get("/rankings", response_model=list[RankedCategory])
async def get_rankings(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    return coordinator.ranked_categories()


@router.get("/careers", response_model=list[CareerMatch])
async def get_careers(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    return coordinator.career_matches()


@router.get("/careers/{code}", response_model=CareerDetails)
async def get_career(code: str, coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    details = await coordinator.career_details(code)
    if details is None:
        raise HTTPException(status_code=404, detail=f"Career {code} not found")
    return details
