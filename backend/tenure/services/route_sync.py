"""RouterAdapter: applies route reducer actions to state cells and navigation history.

The reducer (tenure.domain.routes) is pure; this adapter is the only place
that writes history. Redirects replace the current entry and are followed
until the path is canonical.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import structlog

from tenure.core.observable import ObservableState
from tenure.domain.assessments import AssessmentKind
from tenure.domain.routes import (
    DEFAULT_LANDING_SEGMENT,
    DiscoverSubTab,
    Redirect,
    RouteAction,
    RouteState,
    RouteSynchronizer,
    SetActiveTab,
    SetSubTab,
    ShowResults,
    Tab,
    normalize_path,
)

logger = structlog.get_logger(__name__)

MAX_REDIRECTS = 5


@runtime_checkable
class NavigationHistory(Protocol):
    @property
    def current_path(self) -> str | None: ...

    def push(self, path: str) -> None: ...

    def replace(self, path: str) -> None: ...


class InMemoryHistory:
    """Browser-like history stack kept in memory (one per profile session)."""

    def __init__(self, initial: str | None = None):
        self.entries: list[str] = [initial] if initial else []
        self.writes: list[tuple[str, str]] = []

    @property
    def current_path(self) -> str | None:
        return self.entries[-1] if self.entries else None

    def push(self, path: str) -> None:
        self.entries.append(path)
        self.writes.append(("push", path))

    def replace(self, path: str) -> None:
        if self.entries:
            self.entries[-1] = path
        else:
            self.entries.append(path)
        self.writes.append(("replace", path))


@dataclass
class RouteOutcome:
    path: str
    state: RouteState
    actions: list[RouteAction] = field(default_factory=list)
    redirects: list[str] = field(default_factory=list)


class RouterAdapter:
    """Drives tab/sub-tab cells from paths and writes outbound navigation."""

    def __init__(
        self,
        synchronizer: RouteSynchronizer,
        history: NavigationHistory,
        active_tab: ObservableState[Tab],
        sub_tab: ObservableState[DiscoverSubTab],
        completed: Callable[[], Mapping[AssessmentKind, bool]],
        show_results: Callable[[AssessmentKind], Awaitable[Any]],
        default_segment: Callable[[], str] = lambda: DEFAULT_LANDING_SEGMENT,
    ):
        self.synchronizer = synchronizer
        self.history = history
        self.active_tab = active_tab
        self.sub_tab = sub_tab
        self._completed = completed
        self._show_results = show_results
        self._default_segment = default_segment
        self._processing: str | None = None

    def route_state(self) -> RouteState:
        return RouteState(active_tab=self.active_tab.get(), sub_tab=self.sub_tab.get())

    async def location_changed(self, path: str) -> RouteOutcome:
        """The location moved without us (reload, back button, typed URL)."""
        if self.synchronizer.should_navigate(path, self.history.current_path):
            self.history.push(path)
        return await self._process(path)

    async def navigate(self, path: str, replace: bool = False) -> RouteOutcome | None:
        """Write an outbound navigation and process it.

        Returns None when the write was suppressed because it would resolve
        back to the current path or to the path being processed.
        """
        if not self.synchronizer.should_navigate(path, self.history.current_path) or (
            self._processing is not None
            and not self.synchronizer.should_navigate(path, self._processing)
        ):
            logger.debug("navigation_suppressed", path=path)
            return None

        if replace:
            self.history.replace(path)
        else:
            self.history.push(path)
        return await self._process(path)

    async def _process(self, path: str) -> RouteOutcome:
        outcome = RouteOutcome(path=normalize_path(path), state=self.route_state())
        current = outcome.path
        self._processing = current
        try:
            for _ in range(MAX_REDIRECTS + 1):
                actions = self.synchronizer.resolve(
                    current, self.route_state(), self._completed(), self._default_segment()
                )
                outcome.actions.extend(actions)
                redirect = await self._apply(actions)
                if redirect is None:
                    break

                if redirect.replace:
                    self.history.replace(redirect.path)
                else:
                    self.history.push(redirect.path)
                outcome.redirects.append(redirect.path)
                current = normalize_path(redirect.path)
                self._processing = current
            else:
                logger.warning("route_redirect_limit_reached", path=path, redirects=outcome.redirects)
        finally:
            self._processing = None

        outcome.path = current
        outcome.state = self.route_state()
        return outcome

    async def _apply(self, actions: list[RouteAction]) -> Redirect | None:
        redirect = None
        for action in actions:
            if isinstance(action, SetActiveTab):
                self.active_tab.set(action.tab)
            elif isinstance(action, SetSubTab):
                self.sub_tab.set(action.sub_tab)
            elif isinstance(action, ShowResults):
                await self._show_results(action.kind)
            elif isinstance(action, Redirect):
                redirect = action
        return redirect
