"""Navigation API routes: path resolution and outbound tab changes."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from tenure.api.dependencies import get_coordinator
from tenure.domain.routes import DiscoverSubTab, RouteAction, Tab
from tenure.schemas.discover import CamelModel
from tenure.services.coordinator import AssessmentCoordinator
from tenure.services.route_sync import RouteOutcome

router = APIRouter()

_ACTION_TYPES = {
    "SetActiveTab": "set_active_tab",
    "SetSubTab": "set_sub_tab",
    "ShowResults": "show_results",
    "Redirect": "redirect",
}


class PathRequest(CamelModel):
    path: str


class TabRequest(CamelModel):
    tab: Tab


class SubTabRequest(CamelModel):
    sub_tab: DiscoverSubTab


class NavigationResponse(CamelModel):
    path: str | None
    active_tab: Tab
    sub_tab: DiscoverSubTab
    navigated: bool = True
    actions: list[dict] = []
    redirects: list[str] = []


def _action_dict(action: RouteAction) -> dict:
    return {"type": _ACTION_TYPES[type(action).__name__], **asdict(action)}


def _response(coordinator: AssessmentCoordinator, outcome: RouteOutcome | None) -> NavigationResponse:
    if outcome is None:
        return NavigationResponse(
            path=coordinator.history.current_path,
            active_tab=coordinator.active_tab.get(),
            sub_tab=coordinator.sub_tab.get(),
            navigated=False,
        )
    return NavigationResponse(
        path=outcome.path,
        active_tab=outcome.state.active_tab,
        sub_tab=outcome.state.sub_tab,
        actions=[_action_dict(action) for action in outcome.actions],
        redirects=outcome.redirects,
    )


@router.post("/resolve", response_model=NavigationResponse)
async def resolve_path(request: PathRequest, coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    """The browser location changed: sync tab state, following canonical redirects."""
    outcome = await coordinator.handle_path(request.path)
    return _response(coordinator, outcome)


@router.post("/tab", response_model=NavigationResponse)
async def change_tab(request: TabRequest, coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    outcome = await coordinator.change_tab(request.tab)
    return _response(coordinator, outcome)


@router.post("/sub-tab", response_model=NavigationResponse)
async def change_sub_tab(
    request: SubTabRequest, coordinator: AssessmentCoordinator = Depends(get_coordinator)
):
    outcome = await coordinator.change_sub_tab(request.sub_tab)
    return _response(coordinator, outcome)
