"""URL path <-> navigation state reducer.

Pure: resolve() maps a path plus the current route state to a list of
actions. Applying the actions (and writing browser history) is the job of
tenure.services.route_sync.RouterAdapter, so this module never navigates.

Path scheme:
    {base}                      -> redirect to the default landing tab
    {base}/<tab>                -> Discover | Prepare | Prospect | Prosper
    {base}/discover             -> redirect to {base}/discover/overview
    {base}/discover/<sub_tab>   -> overview | interests | personality | cognitive-style
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from tenure.domain.assessments import AssessmentKind


class Tab(StrEnum):
    DISCOVER = "Discover"
    PREPARE = "Prepare"
    PROSPECT = "Prospect"
    PROSPER = "Prosper"
    MATCHES = "Matches"  # No dedicated segment; lives at the bare base path


class DiscoverSubTab(StrEnum):
    OVERVIEW = "overview"
    INTERESTS = "interests"
    PERSONALITY = "personality"
    COGNITIVE_STYLE = "cognitive-style"


TAB_SEGMENTS: dict[Tab, str | None] = {
    Tab.DISCOVER: "discover",
    Tab.PREPARE: "prepare",
    Tab.PROSPECT: "prospect",
    Tab.PROSPER: "prosper",
    Tab.MATCHES: None,
}

SEGMENT_TABS: dict[str, Tab] = {
    segment: tab for tab, segment in TAB_SEGMENTS.items() if segment is not None
}

SUB_TAB_KINDS: dict[DiscoverSubTab, AssessmentKind] = {
    DiscoverSubTab.INTERESTS: AssessmentKind.INTERESTS,
    DiscoverSubTab.PERSONALITY: AssessmentKind.PERSONALITY,
    DiscoverSubTab.COGNITIVE_STYLE: AssessmentKind.COGNITIVE_STYLE,
}

KIND_SUB_TABS: dict[AssessmentKind, DiscoverSubTab] = {
    kind: sub_tab for sub_tab, kind in SUB_TAB_KINDS.items()
}

DEFAULT_LANDING_SEGMENT = "discover"


@dataclass(frozen=True)
class RouteState:
    active_tab: Tab = Tab.DISCOVER
    sub_tab: DiscoverSubTab = DiscoverSubTab.OVERVIEW


# Actions produced by the reducer

@dataclass(frozen=True)
class SetActiveTab:
    tab: Tab


@dataclass(frozen=True)
class SetSubTab:
    sub_tab: DiscoverSubTab


@dataclass(frozen=True)
class ShowResults:
    """Restore an already-completed assessment's visible state to results."""

    kind: AssessmentKind


@dataclass(frozen=True)
class Redirect:
    path: str
    replace: bool = True


RouteAction = SetActiveTab | SetSubTab | ShowResults | Redirect


def normalize_path(path: str) -> str:
    """Strip query/fragment and trailing slashes ("/" stays "/")."""
    path = path.split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    stripped = path.rstrip("/")
    return stripped or "/"


class RouteSynchronizer:
    """Maps paths under a base path to tab/sub-tab state and back."""

    def __init__(self, base_path: str = "/app"):
        self.base_path = normalize_path(base_path)

    # Outbound: state -> path

    def root_path(self) -> str:
        return self.base_path

    def path_for_tab(self, tab: Tab) -> str:
        segment = TAB_SEGMENTS[tab]
        return self.base_path if segment is None else f"{self._prefix()}{segment}"

    def path_for_sub_tab(self, sub_tab: DiscoverSubTab) -> str:
        return f"{self._prefix()}discover/{sub_tab.value}"

    def path_for_kind(self, kind: AssessmentKind) -> str:
        return self.path_for_sub_tab(KIND_SUB_TABS[kind])

    def default_tab_path(self, default_segment: str) -> str:
        segment = default_segment.lower()
        if segment not in SEGMENT_TABS:
            segment = DEFAULT_LANDING_SEGMENT
        return f"{self._prefix()}{segment}"

    def should_navigate(self, target: str, current: str | None) -> bool:
        """False when writing target would resolve back to the current path."""
        return current is None or normalize_path(target) != normalize_path(current)

    # Inbound: path -> actions

    def segments(self, path: str) -> list[str] | None:
        """Path segments below the base path, or None for paths outside it."""
        path = normalize_path(path)
        if path == self.base_path:
            return []
        if not path.startswith(self._prefix()):
            return None
        return [s for s in path[len(self._prefix()):].split("/") if s]

    def resolve(
        self,
        path: str,
        state: RouteState,
        completed: Mapping[AssessmentKind, bool],
        default_segment: str = DEFAULT_LANDING_SEGMENT,
    ) -> list[RouteAction]:
        """Compute the actions that bring state in line with path.

        Rules:
            - Paths outside the base path are not ours: no actions
            - Bare base path: Matches keeps it; anything else is redirected
              (replace) to the default landing tab
            - Unknown tab segment: redirect to the default landing tab
            - Known tab segment: activate it if not already active
            - discover without sub-tab, or with an unknown one: redirect to
              discover/overview
            - A sub-tab different from the current one is activated, and its
              assessment is shown as results if already completed
        """
        segments = self.segments(path)
        if segments is None:
            return []

        if not segments:
            if state.active_tab == Tab.MATCHES:
                return []
            return [Redirect(self.default_tab_path(default_segment))]

        tab = SEGMENT_TABS.get(segments[0].lower())
        if tab is None:
            return [Redirect(self.default_tab_path(default_segment))]

        actions: list[RouteAction] = []
        if tab != state.active_tab:
            actions.append(SetActiveTab(tab))

        if tab != Tab.DISCOVER:
            return actions

        overview = self.path_for_sub_tab(DiscoverSubTab.OVERVIEW)
        if len(segments) < 2:
            actions.append(Redirect(overview))
            return actions

        try:
            sub_tab = DiscoverSubTab(segments[1].lower())
        except ValueError:
            actions.append(Redirect(overview))
            return actions

        if sub_tab != state.sub_tab:
            actions.append(SetSubTab(sub_tab))
            kind = SUB_TAB_KINDS.get(sub_tab)
            if kind is not None and completed.get(kind, False):
                actions.append(ShowResults(kind))

        return actions

    def _prefix(self) -> str:
        return "/" if self.base_path == "/" else f"{self.base_path}/"
