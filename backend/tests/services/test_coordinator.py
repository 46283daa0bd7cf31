"""Tests for AssessmentCoordinator: load order, derived theme, completion and navigation."""

import json

import pytest

from tenure.content.provider_fake import ContentProviderFake
from tenure.domain.assessments import AssessmentKind, AssessmentState
from tenure.domain.routes import DiscoverSubTab, Tab
from tenure.domain.theme import NEUTRAL_THEME
from tenure.integrations.sync_agent import NullSyncAgent
from tenure.services.coordinator import AssessmentCoordinator

pytestmark = pytest.mark.unit


class ExplodingSyncAgent:
    def __init__(self):
        self.init_calls = 0

    async def init(self):
        self.init_calls += 1
        raise RuntimeError("sync backend unreachable")


async def complete_everything(coordinator, complete_assessment, token="5"):
    for kind in AssessmentKind:
        await complete_assessment(coordinator, kind, token)


# ============================================================================
# Load
# ============================================================================


async def test_empty_profile_loads_neutral(coordinator):
    assert coordinator.loaded is True
    assert coordinator.current_theme() == NEUTRAL_THEME
    assert coordinator.ranked_categories() == []
    assert coordinator.hybrid_archetype() is None
    assert coordinator.completion_flags().all_complete is False
    assert all(e.state == AssessmentState.INTRO for e in coordinator.engines.values())


async def test_sync_agent_started_once_in_background(gateway, provider, settings):
    agent = NullSyncAgent()
    c = AssessmentCoordinator(gateway, provider, sync_agent=agent, settings=settings)

    await c.load()
    await c._sync_task

    assert agent.init_calls == 1


async def test_failing_sync_agent_does_not_break_load(gateway, provider, settings):
    agent = ExplodingSyncAgent()
    c = AssessmentCoordinator(gateway, provider, sync_agent=agent, settings=settings)

    await c.load()
    await c._sync_task

    assert c.loaded is True
    assert agent.init_calls == 1
    assert c._sync_task.exception() is None


async def test_legacy_keys_are_migrated_on_load(gateway, provider, settings, redis):
    await redis.set("augment_answers", json.dumps(["5"] * 60))
    await redis.set("augment_feature_flags", json.dumps({"showPipeline": False}))

    c = AssessmentCoordinator(gateway, provider, settings=settings)
    await c.load()

    assert len(c.migration.migrated_keys) == 2
    assert c.engine(AssessmentKind.INTERESTS).state == AssessmentState.RESULTS
    assert c.completion_flags().interests is True
    assert c.feature_flags().show_prospect is False
    assert Tab.PROSPECT not in c.visible_tabs()
    stored = json.loads(await redis.get("tenure_discover_answers"))
    assert stored["schemaVersion"] == 1


# ============================================================================
# Derived theme and archetype
# ============================================================================


async def test_interests_scores_drive_theme_and_archetype(coordinator, complete_assessment):
    await complete_assessment(coordinator, AssessmentKind.INTERESTS, "5")

    theme = coordinator.current_theme()
    assert theme.colors.primary == "#F97316"
    assert theme.colors.secondary == "#8B5CF6"

    archetype = coordinator.hybrid_archetype()
    assert archetype.title == "The Engineer"
    assert archetype.score == 100
    assert [entry.key for entry in coordinator.ranked_categories()][:2] == [
        "realistic",
        "investigative",
    ]
    assert len(coordinator.career_matches()) == 5


async def test_reset_returns_to_neutral_theme(coordinator, complete_assessment):
    await complete_assessment(coordinator, AssessmentKind.INTERESTS, "5")

    await coordinator.reset(AssessmentKind.INTERESTS)

    assert coordinator.current_theme() == NEUTRAL_THEME
    assert coordinator.hybrid_archetype() is None
    assert coordinator.career_matches() == []


async def test_career_details_through_coordinator(coordinator):
    details = await coordinator.career_details("15-1252.00")
    assert details.title == "Software Developers"


# ============================================================================
# Completion
# ============================================================================


async def test_all_complete_fires_exactly_once(coordinator, complete_assessment):
    seen = []
    coordinator.on_all_complete(seen.append)

    await complete_assessment(coordinator, AssessmentKind.INTERESTS)
    await complete_assessment(coordinator, AssessmentKind.PERSONALITY)
    assert seen == []

    await complete_assessment(coordinator, AssessmentKind.COGNITIVE_STYLE)
    assert len(seen) == 1
    assert seen[0].all_complete is True

    await coordinator.view_results(AssessmentKind.PERSONALITY)
    assert len(seen) == 1


async def test_retake_then_complete_fires_again(coordinator, complete_assessment):
    seen = []
    coordinator.on_all_complete(seen.append)
    await complete_everything(coordinator, complete_assessment)

    await coordinator.retake(AssessmentKind.PERSONALITY)
    assert coordinator.completion_flags().personality is False
    for _ in range(44):
        await coordinator.answer(AssessmentKind.PERSONALITY, "2")

    assert len(seen) == 2


async def test_reload_of_complete_profile_does_not_notify(
    coordinator, complete_assessment, gateway, provider, settings
):
    await complete_everything(coordinator, complete_assessment)

    reloaded = AssessmentCoordinator(gateway, provider, settings=settings)
    seen = []
    reloaded.on_all_complete(seen.append)
    await reloaded.load()

    assert reloaded.completion_flags().all_complete is True
    assert reloaded.tracker.notifications == 0
    assert seen == []


# ============================================================================
# Navigation
# ============================================================================


async def test_start_navigates_to_assessment(coordinator):
    result = await coordinator.start(AssessmentKind.PERSONALITY)

    assert result.allowed is True
    assert coordinator.history.current_path == "/app/discover/personality"
    assert coordinator.sub_tab.get() == DiscoverSubTab.PERSONALITY


async def test_failed_start_does_not_navigate(gateway, settings):
    c = AssessmentCoordinator(gateway, ContentProviderFake(scenario="provider_failure"), settings=settings)
    await c.load()

    result = await c.start(AssessmentKind.INTERESTS)

    assert result.allowed is False
    assert c.history.writes == []


async def test_cancel_navigates_to_overview(coordinator):
    await coordinator.start(AssessmentKind.COGNITIVE_STYLE)

    result = await coordinator.cancel(AssessmentKind.COGNITIVE_STYLE)

    assert result.allowed is True
    assert coordinator.history.current_path == "/app/discover/overview"
    assert coordinator.sub_tab.get() == DiscoverSubTab.OVERVIEW


async def test_route_restores_completed_results(coordinator, complete_assessment):
    await complete_assessment(coordinator, AssessmentKind.PERSONALITY)
    await coordinator.cancel(AssessmentKind.PERSONALITY)
    engine = coordinator.engine(AssessmentKind.PERSONALITY)
    assert engine.state == AssessmentState.INTRO

    outcome = await coordinator.handle_path("/app/discover/personality")

    assert outcome.path == "/app/discover/personality"
    assert engine.state == AssessmentState.RESULTS


async def test_edited_answers_are_not_restored_as_results(coordinator, complete_assessment):
    await complete_assessment(coordinator, AssessmentKind.PERSONALITY)
    await coordinator.cancel(AssessmentKind.PERSONALITY)
    await coordinator.start(AssessmentKind.PERSONALITY)
    await coordinator.previous(AssessmentKind.PERSONALITY)
    await coordinator.answer(AssessmentKind.PERSONALITY, "2")
    assert coordinator.completion_flags().personality is False

    await coordinator.cancel(AssessmentKind.PERSONALITY)
    await coordinator.handle_path("/app/discover/personality")

    assert coordinator.engine(AssessmentKind.PERSONALITY).state == AssessmentState.INTRO


async def test_route_does_not_touch_incomplete_assessment(coordinator):
    await coordinator.handle_path("/app/discover/interests")
    assert coordinator.engine(AssessmentKind.INTERESTS).state == AssessmentState.INTRO


async def test_change_tab_to_matches_keeps_bare_root(coordinator):
    await coordinator.handle_path("/app/discover/overview")

    outcome = await coordinator.change_tab(Tab.MATCHES)

    assert outcome.path == "/app"
    assert coordinator.active_tab.get() == Tab.MATCHES


async def test_change_tab_and_sub_tab(coordinator):
    await coordinator.handle_path("/app")
    assert coordinator.history.current_path == "/app/discover/overview"

    await coordinator.change_tab(Tab.PREPARE)
    assert coordinator.active_tab.get() == Tab.PREPARE
    assert coordinator.history.current_path == "/app/prepare"

    await coordinator.change_sub_tab(DiscoverSubTab.INTERESTS)
    assert coordinator.active_tab.get() == Tab.DISCOVER
    assert coordinator.sub_tab.get() == DiscoverSubTab.INTERESTS


async def test_feature_flag_toggle_changes_visible_tabs(coordinator):
    assert Tab.MATCHES not in coordinator.visible_tabs()
    await coordinator.set_feature_flag("showMatches", True)
    assert coordinator.visible_tabs()[-1] == Tab.MATCHES
