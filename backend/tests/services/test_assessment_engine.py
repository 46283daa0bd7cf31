"""Tests for AssessmentEngine lifecycle, persistence and failure handling.

All tests run against FakeAsyncRedis and ContentProviderFake; no network.
"""

import asyncio
import json

import pytest

from tenure.content.provider_fake import ContentProviderFake
from tenure.domain.assessments import SENTINEL, AssessmentKind, AssessmentState
from tenure.schemas.discover import AssessmentSession
from tenure.services.assessment_engine import AssessmentEngine

pytestmark = pytest.mark.unit


@pytest.fixture
def make_engine(gateway, provider, settings):
    def _make(kind=AssessmentKind.INTERESTS, content=None):
        return AssessmentEngine(kind, gateway, content or provider, settings.schema_versions)

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()


async def answer_all(engine: AssessmentEngine, token: str = "5", count: int | None = None):
    result = None
    for _ in range(count if count is not None else engine.spec.question_count):
        result = await engine.answer(token)
    return result


async def stored_answers(redis, key="discover_answers"):
    return json.loads(await redis.get(f"tenure_{key}"))


# ============================================================================
# Fresh session
# ============================================================================


async def test_fresh_load_starts_in_intro(engine):
    result = await engine.load()

    assert result.allowed is True
    assert engine.state == AssessmentState.INTRO
    assert engine.session.get().answers == [SENTINEL] * 60
    assert engine.completed is False


async def test_start_loads_questions(engine, provider):
    await engine.load()

    result = await engine.start()

    assert result.allowed is True
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 0
    assert len(engine.questions) == 60
    assert provider.call_count("get_questions") == 1


async def test_start_fails_when_questions_unavailable(make_engine):
    engine = make_engine(content=ContentProviderFake(scenario="provider_failure"))
    await engine.load()

    result = await engine.start()

    assert result.allowed is False
    assert result.reason == "Questions could not be loaded"
    assert engine.state == AssessmentState.INTRO
    assert engine.is_loading is False


async def test_answer_outside_questions_is_rejected(engine):
    await engine.load()
    result = await engine.answer("3")
    assert result.allowed is False
    assert "intro" in result.reason


# ============================================================================
# Answering and scoring
# ============================================================================


async def test_full_interests_run(engine, provider, redis):
    await engine.load()
    await engine.start()

    await answer_all(engine, "5", count=59)
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 59
    assert provider.call_count("get_results") == 0

    result = await engine.answer("5")

    assert result.allowed is True
    assert result.new_state == AssessmentState.RESULTS
    assert engine.state == AssessmentState.RESULTS
    assert engine.completed is True
    assert engine.profile.get().realistic.score == 100
    assert len(engine.career_matches.get()) == 5
    assert (await stored_answers(redis))["data"] == ["5"] * 60

    profile = json.loads(await redis.get("tenure_discover_profile"))
    assert profile["data"]["social"]["score"] == 100


async def test_answers_persist_after_every_change(engine, redis):
    await engine.load()
    await engine.start()

    await engine.answer(4)
    await engine.answer("2")

    data = (await stored_answers(redis))["data"]
    assert data[:3] == ["4", "2", SENTINEL]


async def test_invalid_answer_is_rejected(engine):
    await engine.load()
    await engine.start()

    result = await engine.answer("6")

    assert result.allowed is False
    assert "expected 1-5" in result.reason
    assert engine.session.get().answers[0] == SENTINEL
    assert engine.session.get().current_index == 0


async def test_previous_steps_back_but_not_below_zero(engine):
    await engine.load()
    await engine.start()
    await engine.answer("1")
    await engine.answer("2")

    await engine.previous()
    assert engine.session.get().current_index == 1
    await engine.previous()
    await engine.previous()
    assert engine.session.get().current_index == 0


async def test_last_answer_with_gap_jumps_to_gap(engine, provider):
    await engine.load()
    await engine.start()
    answers = ["3"] * 60
    answers[5] = SENTINEL
    answers[59] = SENTINEL
    engine.session.set(
        AssessmentSession(
            kind=AssessmentKind.INTERESTS,
            state=AssessmentState.QUESTIONS,
            answers=answers,
            current_index=59,
        )
    )

    result = await engine.answer("3")

    assert result.allowed is True
    assert result.reason == "Unanswered questions remain"
    assert engine.session.get().current_index == 5
    assert provider.call_count("get_results") == 0


async def test_scoring_failure_keeps_answers_and_allows_resubmit(make_engine, redis):
    content = ContentProviderFake(scenario="scoring_failure")
    engine = make_engine(content=content)
    await engine.load()
    await engine.start()

    result = await answer_all(engine, "4")

    assert result.allowed is False
    assert "submit again" in result.reason
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 59
    assert engine.completed is False
    assert (await stored_answers(redis))["data"] == ["4"] * 60

    content.scenario = "happy_path"
    retried = await engine.submit()

    assert retried.allowed is True
    assert engine.state == AssessmentState.RESULTS
    assert content.call_count("get_results") == 2


async def test_empty_results_stay_in_questions(make_engine):
    engine = make_engine(content=ContentProviderFake(scenario="empty_results"))
    await engine.load()
    await engine.start()

    result = await answer_all(engine, "2")

    assert result.allowed is False
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.result.get() is None


async def test_submit_requires_complete_buffer(engine):
    await engine.load()
    await engine.start()
    await engine.answer("1")

    result = await engine.submit()

    assert result.allowed is False
    assert result.reason == "Unanswered questions remain"


async def test_personality_run_scores_traits(make_engine, redis):
    engine = make_engine(AssessmentKind.PERSONALITY)
    await engine.load()
    await engine.start()

    result = await answer_all(engine, "3")

    assert result.allowed is True
    assert engine.state == AssessmentState.RESULTS
    assert engine.result.get()["openness"] == 50
    assert engine.profile.get() is None
    assert engine.career_matches.get() == []
    assert len((await stored_answers(redis, "personality_progress"))["data"]) == 44


# ============================================================================
# Retake, cancel, reset, show results
# ============================================================================


async def test_retake_clears_answers_and_score(engine, redis):
    await engine.load()
    await engine.start()
    await answer_all(engine)

    result = await engine.retake()

    assert result.allowed is True
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 0
    assert engine.completed is False
    assert engine.career_matches.get() == []
    assert (await stored_answers(redis))["data"] == [SENTINEL] * 60
    assert await redis.get("tenure_discover_profile") is None


async def test_interests_cannot_be_cancelled_once_started(engine):
    await engine.load()
    await engine.start()

    result = await engine.cancel()

    assert result.allowed is False
    assert "cannot be cancelled" in result.reason
    assert engine.state == AssessmentState.QUESTIONS


async def test_personality_cancel_keeps_answers_and_score(make_engine):
    engine = make_engine(AssessmentKind.PERSONALITY)
    await engine.load()
    await engine.start()
    await answer_all(engine, "4")

    result = await engine.cancel()

    assert result.allowed is True
    assert engine.state == AssessmentState.INTRO
    assert engine.completed is True
    assert engine.session.get().answers == ["4"] * 44


async def test_reset_clears_everything(engine, redis):
    await engine.load()
    await engine.start()
    await answer_all(engine)

    result = await engine.reset()

    assert result.allowed is True
    assert engine.state == AssessmentState.INTRO
    assert engine.completed is False
    assert engine.profile.get() is None
    assert (await stored_answers(redis))["data"] == [SENTINEL] * 60


async def test_show_results_requires_score(engine):
    await engine.load()

    result = await engine.show_results()
    assert result.allowed is False
    assert result.reason == "No interests results yet"

    await engine.start()
    await answer_all(engine)
    await engine.reset()
    assert (await engine.show_results()).allowed is False


async def test_show_results_after_cancel(make_engine):
    engine = make_engine(AssessmentKind.COGNITIVE_STYLE)
    await engine.load()
    await engine.start()
    await answer_all(engine, "1")
    await engine.cancel()

    result = await engine.show_results()

    assert result.allowed is True
    assert engine.state == AssessmentState.RESULTS


async def test_editing_answer_after_cancel_drops_score(make_engine, redis):
    engine = make_engine(AssessmentKind.PERSONALITY)
    await engine.load()
    await engine.start()
    await answer_all(engine, "5")
    await engine.cancel()
    await engine.start()
    await engine.previous()
    await engine.previous()
    assert engine.session.get().current_index == 41

    result = await engine.answer("1")

    assert result.allowed is True
    assert engine.completed is False
    assert engine.result.get() is None
    assert (await stored_answers(redis, "personality_progress"))["data"][-4:] == ["5", "1", "5", "5"]

    shown = await engine.show_results()
    assert shown.allowed is False
    assert engine.state == AssessmentState.QUESTIONS


async def test_rescoring_after_edit_reflects_new_answers(make_engine):
    engine = make_engine(AssessmentKind.PERSONALITY)
    await engine.load()
    await engine.start()
    await answer_all(engine, "5")
    before = engine.result.get()
    await engine.cancel()
    await engine.start()
    await engine.previous()

    await engine.answer("1")
    result = await engine.answer("5")

    assert result.allowed is True
    assert engine.state == AssessmentState.RESULTS
    assert engine.completed is True
    assert engine.result.get() != before


async def test_same_answer_keeps_score(make_engine):
    engine = make_engine(AssessmentKind.COGNITIVE_STYLE)
    await engine.load()
    await engine.start()
    await answer_all(engine, "3")
    score = engine.result.get()
    await engine.cancel()
    await engine.start()
    await engine.previous()

    await engine.answer("3")

    assert engine.completed is True
    assert engine.result.get() == score


# ============================================================================
# Restore on load
# ============================================================================


async def test_load_partial_answers_resumes_at_gap(engine, gateway, provider):
    answers = ["2"] * 10 + [SENTINEL] * 50
    await gateway.save("discover_answers", answers, 1)

    result = await engine.load()

    assert result.new_state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 10
    assert len(engine.questions) == 60
    assert provider.call_count("get_results") == 0


async def test_load_full_answers_rescores(engine, gateway):
    await gateway.save("discover_answers", ["3"] * 60, 1)

    result = await engine.load()

    assert result.new_state == AssessmentState.RESULTS
    assert engine.completed is True
    assert engine.profile.get().investigative.score == 50


async def test_load_falls_back_to_persisted_profile(make_engine, gateway):
    await gateway.save("discover_answers", ["5"] * 60, 1)
    happy = make_engine()
    await happy.load()
    assert happy.state == AssessmentState.RESULTS

    engine = make_engine(content=ContentProviderFake(scenario="scoring_failure"))
    result = await engine.load()

    assert result.new_state == AssessmentState.RESULTS
    assert engine.completed is True
    assert engine.profile.get().artistic.score == 100


async def test_load_without_profile_waits_for_resubmit(make_engine, gateway):
    await gateway.save("discover_answers", ["5"] * 60, 1)
    engine = make_engine(content=ContentProviderFake(scenario="scoring_failure"))

    result = await engine.load()

    assert result.allowed is True
    assert result.reason == "scoring unavailable"
    assert engine.state == AssessmentState.QUESTIONS
    assert engine.session.get().current_index == 59
    assert engine.completed is False


async def test_load_rewraps_legacy_answers(engine, redis):
    legacy = ["1"] * 20 + [SENTINEL] * 40
    await redis.set("tenure_discover_answers", json.dumps(legacy))

    await engine.load()

    stored = await stored_answers(redis)
    assert stored["schemaVersion"] == 1
    assert stored["data"] == legacy
    assert engine.session.get().current_index == 20


@pytest.mark.parametrize("raw", ["{broken", json.dumps(["1", "2"]), json.dumps({"a": 1})])
async def test_load_unusable_answers_starts_fresh(engine, redis, raw):
    await redis.set("tenure_discover_answers", raw)

    result = await engine.load()

    assert result.new_state == AssessmentState.INTRO
    assert engine.session.get().answers == [SENTINEL] * 60


# ============================================================================
# Stale results and career details
# ============================================================================


async def test_result_arriving_after_reset_is_discarded(make_engine):
    gate = asyncio.Event()
    content = ContentProviderFake(results_gate=gate)
    engine = make_engine(content=content)
    await engine.load()
    await engine.start()
    await answer_all(engine, "5", count=59)

    pending = asyncio.create_task(engine.answer("5"))
    for _ in range(100):
        if content.call_count("get_results"):
            break
        await asyncio.sleep(0)
    assert engine.is_loading is True

    await engine.reset()
    gate.set()
    result = await pending

    assert result.allowed is False
    assert result.reason == "Result superseded by a newer session"
    assert engine.state == AssessmentState.INTRO
    assert engine.completed is False
    assert engine.profile.get() is None


async def test_loading_stays_set_while_any_call_is_outstanding(make_engine):
    gate = asyncio.Event()
    content = ContentProviderFake(results_gate=gate)
    engine = make_engine(AssessmentKind.PERSONALITY, content=content)
    await engine.load()
    await engine.start()
    await answer_all(engine, "4", count=43)

    pending = asyncio.create_task(engine.answer("4"))
    for _ in range(100):
        if content.call_count("get_results"):
            break
        await asyncio.sleep(0)

    await engine.cancel()
    await engine.start()
    assert content.call_count("get_questions") == 2
    assert engine.is_loading is True

    gate.set()
    await pending
    assert engine.is_loading is False


async def test_career_details(engine):
    details = await engine.career_details("27-1024.00")
    assert details.title == "Graphic Designers"
    assert engine.details_loading is False
    assert await engine.career_details("99-9999.99") is None


async def test_career_details_failure_returns_none(make_engine):
    engine = make_engine(content=ContentProviderFake(scenario="provider_failure"))
    assert await engine.career_details("15-1252.00") is None
    assert engine.details_loading is False


async def test_view_reports_progress(engine):
    await engine.load()
    await engine.start()
    await engine.answer("3")

    view = engine.view()

    assert view.answered == 1
    assert view.question_count == 60
    dumped = view.model_dump(by_alias=True)
    assert dumped["session"]["currentIndex"] == 1
    assert dumped["isLoading"] is False
