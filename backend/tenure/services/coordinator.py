"""AssessmentCoordinator: the profile-wide owner of discover state.

Composes the three assessment engines, the derived ranking/archetype/theme
cells, the completion tracker, the route synchronizer (through its router
adapter), the feature flag store and the sync agent. Peer features read the
theme and feature flags from here; nothing else holds a copy.

Load order:
1. One-time legacy storage migration
2. Feature flags
3. Engines restore their sessions from persisted answers
4. Completion tracker primed with the restored flags (no notification)
5. Sync agent started in the background, never awaited
"""

import asyncio
from collections.abc import Mapping

import structlog

from tenure.content.provider import ContentProvider
from tenure.core.config import Settings, get_settings
from tenure.core.feature_flags import FEATURE_FLAGS_KEY, FeatureFlagStore, visible_tabs
from tenure.core.observable import Derived, ObservableState
from tenure.db.migration import MigrationResult, run_storage_migration
from tenure.db.versioned import VersionedPersistenceGateway
from tenure.domain.archetypes import rank_categories, resolve_archetype
from tenure.domain.assessments import AssessmentKind, AssessmentState, TransitionResult
from tenure.domain.completion import AllCompleteListener, CompletionTracker
from tenure.domain.routes import DiscoverSubTab, RouteSynchronizer, Tab
from tenure.domain.theme import derive_theme
from tenure.integrations.sync_agent import NullSyncAgent, SyncAgent
from tenure.schemas.discover import (
    CareerDetails,
    CareerMatch,
    CompletionFlags,
    HybridArchetype,
    RankedCategory,
    ThemeState,
)
from tenure.schemas.storage import FeatureFlags
from tenure.services.assessment_engine import AssessmentEngine
from tenure.services.route_sync import InMemoryHistory, NavigationHistory, RouteOutcome, RouterAdapter

logger = structlog.get_logger(__name__)


class AssessmentCoordinator:
    """Single entry point for assessment lifecycle, navigation and derived theme."""

    def __init__(
        self,
        gateway: VersionedPersistenceGateway,
        provider: ContentProvider,
        sync_agent: SyncAgent | None = None,
        history: NavigationHistory | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.provider = provider
        self.sync_agent = sync_agent or NullSyncAgent()

        self.engines: dict[AssessmentKind, AssessmentEngine] = {
            kind: AssessmentEngine(kind, gateway, provider, self.settings.schema_versions)
            for kind in AssessmentKind
        }

        self.active_tab: ObservableState[Tab] = ObservableState(Tab.DISCOVER, name="active_tab")
        self.sub_tab: ObservableState[DiscoverSubTab] = ObservableState(
            DiscoverSubTab.OVERVIEW, name="discover_sub_tab"
        )

        interests = self.engines[AssessmentKind.INTERESTS]
        self.ranking: Derived[list[RankedCategory]] = Derived(
            self._compute_ranking, [interests.profile], name="ranking"
        )
        self.archetype: Derived[HybridArchetype | None] = Derived(
            lambda: resolve_archetype(self.ranking.get()), [self.ranking], name="archetype"
        )
        self.theme: Derived[ThemeState] = Derived(
            lambda: derive_theme([entry.key for entry in self.ranking.get()]),
            [self.ranking],
            name="theme",
        )

        self.tracker = CompletionTracker()
        for engine in self.engines.values():
            engine.result.subscribe(self._on_result_changed)

        self.flags = FeatureFlagStore(
            gateway,
            self.settings.default_feature_flags,
            self.settings.schema_versions.get(FEATURE_FLAGS_KEY, 1),
        )

        self.synchronizer = RouteSynchronizer(self.settings.app_base_path)
        self.history = history or InMemoryHistory()
        self.router = RouterAdapter(
            self.synchronizer,
            self.history,
            self.active_tab,
            self.sub_tab,
            completed=self._completed_by_kind,
            show_results=self._restore_results,
            default_segment=lambda: self.settings.default_landing_tab,
        )

        self.migration: MigrationResult | None = None
        self.loaded = False
        self._sync_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def load(self) -> None:
        self.migration = await run_storage_migration(self.gateway)
        await self.flags.load()

        for engine in self.engines.values():
            await engine.load()

        self.tracker.prime(self.completion_flags())
        self._start_sync()
        self.loaded = True

        logger.info(
            "coordinator_loaded",
            completion=self.completion_flags().model_dump(),
            migrated_keys=len(self.migration.migrated_keys),
        )

    def _start_sync(self) -> None:
        self._sync_task = asyncio.create_task(self._init_sync())

    async def _init_sync(self) -> None:
        try:
            outcome = await self.sync_agent.init()
        except Exception as e:
            logger.warning("sync_init_failed", error=str(e), error_type=type(e).__name__)
            return
        if outcome.ok:
            logger.info("sync_initialized", detail=outcome.detail)
        else:
            logger.warning("sync_init_failed", detail=outcome.detail)

    # ------------------------------------------------------------------
    # Produced interface
    # ------------------------------------------------------------------

    def current_theme(self) -> ThemeState:
        return self.theme.get()

    def feature_flags(self) -> FeatureFlags:
        return self.flags.get()

    async def set_feature_flag(self, name: str, value: bool) -> FeatureFlags:
        return await self.flags.set(name, value)

    def visible_tabs(self) -> list[Tab]:
        return visible_tabs(self.flags.get())

    def ranked_categories(self) -> list[RankedCategory]:
        return self.ranking.get()

    def hybrid_archetype(self) -> HybridArchetype | None:
        return self.archetype.get()

    def completion_flags(self) -> CompletionFlags:
        return CompletionFlags.from_kinds(self._completed_by_kind())

    def on_all_complete(self, listener: AllCompleteListener) -> None:
        self.tracker.on_all_complete(listener)

    def career_matches(self) -> list[CareerMatch]:
        return self.engines[AssessmentKind.INTERESTS].career_matches.get()

    async def career_details(self, code: str) -> CareerDetails | None:
        return await self.engines[AssessmentKind.INTERESTS].career_details(code)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def handle_path(self, path: str) -> RouteOutcome:
        return await self.router.location_changed(path)

    async def change_tab(self, tab: Tab) -> RouteOutcome | None:
        if tab == Tab.MATCHES:
            # Matches has no segment of its own; the bare root keeps it active
            self.active_tab.set(Tab.MATCHES)
        return await self.router.navigate(self.synchronizer.path_for_tab(tab))

    async def change_sub_tab(self, sub_tab: DiscoverSubTab) -> RouteOutcome | None:
        return await self.router.navigate(self.synchronizer.path_for_sub_tab(sub_tab))

    # ------------------------------------------------------------------
    # Assessment operations (each issues the matching outbound navigation)
    # ------------------------------------------------------------------

    def engine(self, kind: AssessmentKind) -> AssessmentEngine:
        return self.engines[kind]

    async def start(self, kind: AssessmentKind) -> TransitionResult:
        result = await self.engines[kind].start()
        if result.allowed:
            await self._go_to_kind(kind)
        return result

    async def answer(self, kind: AssessmentKind, value: str | int) -> TransitionResult:
        result = await self.engines[kind].answer(value)
        if result.allowed and result.new_state == AssessmentState.RESULTS:
            await self._go_to_kind(kind)
        return result

    async def previous(self, kind: AssessmentKind) -> TransitionResult:
        return await self.engines[kind].previous()

    async def submit(self, kind: AssessmentKind) -> TransitionResult:
        result = await self.engines[kind].submit()
        if result.allowed:
            await self._go_to_kind(kind)
        return result

    async def retake(self, kind: AssessmentKind) -> TransitionResult:
        return await self.engines[kind].retake()

    async def cancel(self, kind: AssessmentKind) -> TransitionResult:
        engine = self.engines[kind]
        result = await engine.cancel()
        if result.allowed and engine.spec.cancellable:
            await self.router.navigate(self.synchronizer.path_for_sub_tab(DiscoverSubTab.OVERVIEW))
        return result

    async def reset(self, kind: AssessmentKind) -> TransitionResult:
        return await self.engines[kind].reset()

    async def view_results(self, kind: AssessmentKind) -> TransitionResult:
        result = await self.engines[kind].show_results()
        if result.allowed:
            await self._go_to_kind(kind)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _go_to_kind(self, kind: AssessmentKind) -> None:
        await self.router.navigate(self.synchronizer.path_for_kind(kind))

    def _compute_ranking(self) -> list[RankedCategory]:
        profile = self.engines[AssessmentKind.INTERESTS].profile.get()
        if profile is None:
            return []
        return rank_categories(profile)

    def _completed_by_kind(self) -> Mapping[AssessmentKind, bool]:
        return {kind: engine.completed for kind, engine in self.engines.items()}

    def _on_result_changed(self, _result: object) -> None:
        self.tracker.update(self.completion_flags())

    async def _restore_results(self, kind: AssessmentKind) -> None:
        """Route-driven restore: only an intro view is switched to results."""
        engine = self.engines[kind]
        if engine.state == AssessmentState.INTRO and engine.completed:
            await engine.show_results()
