"""AssessmentEngine: the stateful intro -> questions -> results machine for one kind.

One instance per assessment kind. The engine owns its session exclusively,
persists the answer buffer after every change (before any scoring call is
issued) and treats every content-provider failure as "stay where you are":
operations never raise, they return a TransitionResult.

Observable cells (subscribe for change notification):
- session: AssessmentSession (state, answers, current_index)
- result: raw score returned by the provider, None until scored
- profile: interests ScoreProfile, None for other kinds or until scored
- career_matches: interests follow-up, [] until fetched
"""

from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from tenure.content.provider import ContentProvider
from tenure.core.config import get_settings
from tenure.core.observable import ObservableState
from tenure.db.versioned import VersionedPersistenceGateway
from tenure.domain.assessments import (
    INTERESTS_PROFILE_KEY,
    KIND_SPECS,
    VALID_ANSWERS,
    AssessmentEvent,
    AssessmentKind,
    AssessmentState,
    TransitionResult,
    answered_count,
    empty_answers,
    first_unanswered,
    is_complete,
    normalize_answers,
    reconstruct,
    validate_event,
)
from tenure.schemas.discover import (
    AssessmentSession,
    AssessmentView,
    CareerDetails,
    CareerMatch,
    Question,
    ScoreProfile,
)

logger = structlog.get_logger(__name__)


class AssessmentEngine:
    """Finite-state machine over {intro, questions, results} for one assessment kind."""

    def __init__(
        self,
        kind: AssessmentKind,
        gateway: VersionedPersistenceGateway,
        provider: ContentProvider,
        schema_versions: Mapping[str, int] | None = None,
    ):
        self.kind = kind
        self.spec = KIND_SPECS[kind]
        self.gateway = gateway
        self.provider = provider
        self.schema_versions = dict(
            schema_versions if schema_versions is not None else get_settings().schema_versions
        )

        self.session: ObservableState[AssessmentSession] = ObservableState(
            AssessmentSession(kind=kind, answers=empty_answers(self.spec)),
            name=f"{kind.value}_session",
        )
        self.result: ObservableState[dict[str, Any] | None] = ObservableState(
            None, name=f"{kind.value}_result"
        )
        self.profile: ObservableState[ScoreProfile | None] = ObservableState(
            None, name=f"{kind.value}_profile"
        )
        self.career_matches: ObservableState[list[CareerMatch]] = ObservableState(
            [], name=f"{kind.value}_career_matches"
        )

        self.questions: list[Question] = []
        self.details_loading = False
        self._in_flight = 0
        self._generation = 0
        self._log = logger.bind(kind=kind.value)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> AssessmentState:
        return self.session.get().state

    @property
    def completed(self) -> bool:
        """A score has been computed for the current answers."""
        return self.result.get() is not None

    @property
    def is_loading(self) -> bool:
        """A question fetch or scoring call is outstanding."""
        return self._in_flight > 0

    @property
    def generation(self) -> int:
        return self._generation

    def view(self) -> AssessmentView:
        session = self.session.get()
        return AssessmentView(
            session=session,
            completed=self.completed,
            is_loading=self.is_loading,
            question_count=self.spec.question_count,
            answered=answered_count(session.answers),
            result=self.result.get(),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> TransitionResult:
        """Restore the session from persisted answers.

        - nothing stored, unreadable or malformed: fresh session in intro
        - partially answered: questions at the first unanswered slot
        - fully answered: re-score and enter results; when scoring fails,
          fall back to the persisted interests profile, else questions on
          the last slot so the user can re-submit
        """
        answers = await self._load_answers()
        if answers is None:
            self._replace(state=AssessmentState.INTRO, answers=empty_answers(self.spec), current_index=0)
            return TransitionResult(True, new_state=AssessmentState.INTRO)

        rec = reconstruct(answers)
        self._replace(answers=answers, current_index=rec.current_index, state=AssessmentState.INTRO)

        if rec.state == AssessmentState.INTRO:
            return TransitionResult(True, new_state=AssessmentState.INTRO)

        if rec.state == AssessmentState.QUESTIONS:
            self._replace(state=AssessmentState.QUESTIONS)
            await self._ensure_questions()
            self._log.info("assessment_resumed", current_index=rec.current_index)
            return TransitionResult(True, new_state=AssessmentState.QUESTIONS)

        self._replace(state=AssessmentState.QUESTIONS, current_index=len(answers) - 1)
        scored = await self._score()
        if scored.allowed:
            return scored

        if self.kind == AssessmentKind.INTERESTS:
            profile = await self._load_profile()
            if profile is not None:
                self._apply_profile(profile)
                self._replace(state=AssessmentState.RESULTS)
                self._log.info("assessment_restored_from_profile")
                await self._fetch_career_matches(profile, self._generation)
                return TransitionResult(True, new_state=AssessmentState.RESULTS)

        await self._ensure_questions()
        self._log.info("assessment_awaiting_resubmit")
        return TransitionResult(True, "scoring unavailable", new_state=AssessmentState.QUESTIONS)

    async def start(self) -> TransitionResult:
        """intro -> questions once the question set is loaded."""
        check = validate_event(self.spec, self.state, AssessmentEvent.START)
        if not check.allowed:
            return check

        if not await self._ensure_questions(force=True):
            return TransitionResult(False, "Questions could not be loaded")

        answers = self.session.get().answers
        if answered_count(answers) == 0:
            index = 0
        else:
            index = first_unanswered(answers)
            if index is None:
                index = len(answers) - 1

        self._replace(state=AssessmentState.QUESTIONS, current_index=index)
        self._log.info("assessment_started", current_index=index)
        return check

    async def answer(self, value: str | int) -> TransitionResult:
        """Record an answer at current_index, persist, then advance or score."""
        check = validate_event(self.spec, self.state, AssessmentEvent.ANSWER)
        if not check.allowed:
            return check

        token = str(value)
        if token not in VALID_ANSWERS:
            return TransitionResult(False, f"Invalid answer {value!r}; expected 1-5")

        session = self.session.get()
        answers = list(session.answers)
        index = session.current_index
        changed = answers[index] != token
        answers[index] = token
        self._replace(answers=answers)
        if changed and self.completed:
            # the score no longer describes the buffer
            await self._discard_score()
            self._log.info("assessment_score_invalidated", index=index)
        await self._save_answers(answers)

        last = len(answers) - 1
        if index < last:
            self._replace(current_index=index + 1)
            return check

        gap = first_unanswered(answers)
        if gap is not None:
            self._replace(current_index=gap)
            return TransitionResult(True, "Unanswered questions remain", AssessmentState.QUESTIONS)

        return await self._score()

    async def previous(self) -> TransitionResult:
        check = validate_event(self.spec, self.state, AssessmentEvent.PREVIOUS)
        if not check.allowed:
            return check

        index = self.session.get().current_index
        self._replace(current_index=max(0, index - 1))
        return check

    async def submit(self) -> TransitionResult:
        """Re-trigger scoring of a complete buffer (after a failed scoring call)."""
        check = validate_event(self.spec, self.state, AssessmentEvent.SUBMIT)
        if not check.allowed:
            return check

        answers = self.session.get().answers
        if not is_complete(answers):
            return TransitionResult(False, "Unanswered questions remain")

        return await self._score()

    async def retake(self) -> TransitionResult:
        """results -> questions with a cleared buffer (never passes through intro)."""
        check = validate_event(self.spec, self.state, AssessmentEvent.RETAKE)
        if not check.allowed:
            return check

        await self._clear()
        self._replace(state=AssessmentState.QUESTIONS)
        await self._ensure_questions()
        self._log.info("assessment_retaken", generation=self._generation)
        return check

    async def cancel(self) -> TransitionResult:
        """Back to intro keeping answers and score, so the session can be resumed."""
        check = validate_event(self.spec, self.state, AssessmentEvent.CANCEL)
        if not check.allowed:
            return check

        self._replace(state=AssessmentState.INTRO)
        return check

    async def reset(self) -> TransitionResult:
        """Any state -> intro with answers, score and persisted profile cleared."""
        check = validate_event(self.spec, self.state, AssessmentEvent.RESET)
        if not check.allowed:
            return check

        await self._clear()
        self._replace(state=AssessmentState.INTRO)
        self._log.info("assessment_reset", generation=self._generation)
        return check

    async def show_results(self) -> TransitionResult:
        """Make results the visible state; only possible once a score exists."""
        check = validate_event(self.spec, self.state, AssessmentEvent.SHOW_RESULTS)
        if not check.allowed:
            return check
        if not self.completed:
            return TransitionResult(False, f"No {self.kind.value} results yet")

        self._replace(state=AssessmentState.RESULTS)
        return check

    async def career_details(self, code: str) -> CareerDetails | None:
        """Fetch details for one career; None when unknown or unavailable."""
        self.details_loading = True
        try:
            return await self.provider.get_career_details(code)
        except Exception as e:
            self._log.warning(
                "content_provider_failed",
                operation="get_career_details",
                code=code,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        finally:
            self.details_loading = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replace(self, **changes: Any) -> None:
        current = self.session.get().model_dump()
        current.update(changes)
        self.session.set(AssessmentSession.model_validate(current))

    def _version(self, key: str) -> int:
        return self.schema_versions.get(key, 1)

    async def _load_answers(self) -> list[str] | None:
        key = self.spec.answers_key
        loaded = await self.gateway.load(key, self._version(key))
        if not loaded.ok:
            self._log.warning("assessment_answers_unreadable", error=loaded.error)
            return None
        if not loaded.found:
            return None

        answers = normalize_answers(self.spec, loaded.data)
        if answers is None:
            self._log.warning("assessment_answers_malformed", actual_version=loaded.actual_version)
            return None

        if loaded.needs_migration:
            await self._save_answers(answers)
            self._log.info("assessment_answers_migrated", from_version=loaded.actual_version)
        return answers

    async def _save_answers(self, answers: list[str]) -> None:
        key = self.spec.answers_key
        saved = await self.gateway.save(key, answers, self._version(key))
        if not saved.ok:
            self._log.warning("assessment_answers_not_saved", error=saved.error)

    async def _load_profile(self) -> ScoreProfile | None:
        loaded = await self.gateway.load(INTERESTS_PROFILE_KEY, self._version(INTERESTS_PROFILE_KEY))
        if not loaded.ok or not loaded.found:
            return None
        try:
            return ScoreProfile.model_validate(loaded.data)
        except ValidationError as e:
            self._log.warning("interests_profile_malformed", error=str(e))
            return None

    async def _ensure_questions(self, force: bool = False) -> bool:
        """Load the question set unless already present. Returns success."""
        if self.questions and not force:
            return True

        self._in_flight += 1
        try:
            self.questions = await self.provider.get_questions(self.kind, self.spec.question_count)
            return True
        except Exception as e:
            self._log.warning(
                "content_provider_failed",
                operation="get_questions",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        finally:
            self._in_flight -= 1

    async def _score(self) -> TransitionResult:
        """Score the complete buffer; on success enter results."""
        generation = self._generation
        answers = "".join(self.session.get().answers)

        self._in_flight += 1
        try:
            raw = await self.provider.get_results(self.kind, answers)
        except Exception as e:
            self._log.warning(
                "content_provider_failed",
                operation="get_results",
                error=str(e),
                error_type=type(e).__name__,
            )
            return TransitionResult(False, "Scoring failed; submit again to retry")
        finally:
            self._in_flight -= 1

        if generation != self._generation:
            self._log.warning(
                "stale_result_discarded", generation=generation, current_generation=self._generation
            )
            return TransitionResult(False, "Result superseded by a newer session")

        if raw is None:
            self._log.warning("score_absent")
            return TransitionResult(False, "No results returned; submit again to retry")

        profile = None
        if self.kind == AssessmentKind.INTERESTS:
            try:
                profile = ScoreProfile.model_validate(raw)
            except ValidationError as e:
                self._log.warning("score_malformed", error=str(e))
                return TransitionResult(False, "Malformed results; submit again to retry")

        if profile is not None:
            self._apply_profile(profile)
            saved = await self.gateway.save(
                INTERESTS_PROFILE_KEY, profile, self._version(INTERESTS_PROFILE_KEY)
            )
            if not saved.ok:
                self._log.warning("interests_profile_not_saved", error=saved.error)
        else:
            self.result.set(dict(raw))

        self._replace(state=AssessmentState.RESULTS)
        self._log.info("assessment_scored")

        if profile is not None:
            await self._fetch_career_matches(profile, generation)

        return TransitionResult(True, new_state=AssessmentState.RESULTS)

    def _apply_profile(self, profile: ScoreProfile) -> None:
        self.profile.set(profile)
        self.result.set(profile.model_dump(mode="json"))

    async def _fetch_career_matches(self, profile: ScoreProfile, generation: int) -> None:
        try:
            matches = await self.provider.get_career_matches(profile)
        except Exception as e:
            self._log.warning(
                "content_provider_failed",
                operation="get_career_matches",
                error=str(e),
                error_type=type(e).__name__,
            )
            matches = []

        if generation != self._generation:
            self._log.warning("stale_result_discarded", operation="get_career_matches")
            return
        self.career_matches.set(list(matches))

    async def _clear(self) -> None:
        """Drop answers, score and follow-up data; persist the cleared buffer."""
        answers = empty_answers(self.spec)
        self._replace(answers=answers, current_index=0)
        await self._discard_score()
        await self._save_answers(answers)

    async def _discard_score(self) -> None:
        """Forget the score and anything derived from it, including in-flight results."""
        self._generation += 1
        self.result.set(None)
        self.profile.set(None)
        self.career_matches.set([])
        if self.kind == AssessmentKind.INTERESTS:
            await self.gateway.delete(INTERESTS_PROFILE_KEY)
