"""FastAPI dependencies shared by the route modules."""

from fastapi import HTTPException, Request

from tenure.services.coordinator import AssessmentCoordinator


def get_coordinator(request: Request) -> AssessmentCoordinator:
    """The profile's coordinator, created in the application lifespan.

    Tests replace this with app.dependency_overrides[get_coordinator].
    """
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(status_code=503, detail="Discover state is not loaded yet")
    return coordinator
