"""Feature flags API routes.

GET /api/features is read by peer features (prepare, prospect, prosper) to
decide which tabs exist; PUT toggles one flag and persists it.
"""

from fastapi import APIRouter, Depends, HTTPException

from tenure.api.dependencies import get_coordinator
from tenure.domain.routes import Tab
from tenure.schemas.discover import CamelModel
from tenure.schemas.storage import FeatureFlags
from tenure.services.coordinator import AssessmentCoordinator

router = APIRouter()


class FeaturesResponse(CamelModel):
    features: FeatureFlags
    visible_tabs: list[Tab]


class FlagUpdate(CamelModel):
    value: bool


def _response(coordinator: AssessmentCoordinator) -> FeaturesResponse:
    return FeaturesResponse(
        features=coordinator.feature_flags(), visible_tabs=coordinator.visible_tabs()
    )


@router.get("", response_model=FeaturesResponse)
async def get_features(coordinator: AssessmentCoordinator = Depends(get_coordinator)):
    return _response(coordinator)


@router.put("/{flag}", response_model=FeaturesResponse)
async def set_feature(
    flag: str,
    update: FlagUpdate,
    coordinator: AssessmentCoordinator = Depends(get_coordinator),
):
    """Set a flag by its camelCase name (showDiscover, showMatches, ...)."""
    try:
        await coordinator.set_feature_flag(flag, update.value)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown feature flag: {flag}")
    return _response(coordinator)
