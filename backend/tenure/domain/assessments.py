"""Assessment kinds, lifecycle states and transition validation.

Pure domain logic with no external dependencies. The stateful engine in
tenure.services.assessment_engine asks this module whether an event is legal
and how a persisted answer buffer should be reconstructed.
"""

from dataclasses import dataclass
from enum import StrEnum

SENTINEL = "?"
VALID_ANSWERS = frozenset({"1", "2", "3", "4", "5"})


class AssessmentKind(StrEnum):
    INTERESTS = "interests"
    PERSONALITY = "personality"
    COGNITIVE_STYLE = "cognitive-style"


class AssessmentState(StrEnum):
    """Visible lifecycle of one assessment session."""

    INTRO = "intro"
    QUESTIONS = "questions"
    RESULTS = "results"


class AssessmentEvent(StrEnum):
    START = "start"
    ANSWER = "answer"
    PREVIOUS = "previous"
    SUBMIT = "submit"
    RETAKE = "retake"
    CANCEL = "cancel"
    RESET = "reset"
    SHOW_RESULTS = "show_results"


@dataclass(frozen=True)
class KindSpec:
    """Static parameters of one assessment kind."""

    kind: AssessmentKind
    question_count: int
    answers_key: str
    cancellable: bool  # may return to intro from questions/results, keeping answers


KIND_SPECS: dict[AssessmentKind, KindSpec] = {
    AssessmentKind.INTERESTS: KindSpec(
        AssessmentKind.INTERESTS, 60, "discover_answers", cancellable=False
    ),
    AssessmentKind.PERSONALITY: KindSpec(
        AssessmentKind.PERSONALITY, 44, "personality_progress", cancellable=True
    ),
    AssessmentKind.COGNITIVE_STYLE: KindSpec(
        AssessmentKind.COGNITIVE_STYLE, 32, "cognitive_style_progress", cancellable=True
    ),
}

INTERESTS_PROFILE_KEY = "discover_profile"

# event -> {from_state: to_state}
TRANSITIONS: dict[AssessmentEvent, dict[AssessmentState, AssessmentState]] = {
    AssessmentEvent.START: {AssessmentState.INTRO: AssessmentState.QUESTIONS},
    AssessmentEvent.ANSWER: {AssessmentState.QUESTIONS: AssessmentState.QUESTIONS},
    AssessmentEvent.PREVIOUS: {AssessmentState.QUESTIONS: AssessmentState.QUESTIONS},
    AssessmentEvent.SUBMIT: {AssessmentState.QUESTIONS: AssessmentState.RESULTS},
    AssessmentEvent.RETAKE: {AssessmentState.RESULTS: AssessmentState.QUESTIONS},
    AssessmentEvent.CANCEL: {
        AssessmentState.INTRO: AssessmentState.INTRO,
        AssessmentState.QUESTIONS: AssessmentState.INTRO,
        AssessmentState.RESULTS: AssessmentState.INTRO,
    },
    AssessmentEvent.RESET: {
        AssessmentState.INTRO: AssessmentState.INTRO,
        AssessmentState.QUESTIONS: AssessmentState.INTRO,
        AssessmentState.RESULTS: AssessmentState.INTRO,
    },
    AssessmentEvent.SHOW_RESULTS: {
        AssessmentState.INTRO: AssessmentState.RESULTS,
        AssessmentState.QUESTIONS: AssessmentState.RESULTS,
        AssessmentState.RESULTS: AssessmentState.RESULTS,
    },
}


@dataclass
class TransitionResult:
    """Result of a transition attempt."""

    allowed: bool
    reason: str = ""
    new_state: AssessmentState | None = None


@dataclass(frozen=True)
class Reconstruction:
    """Where a session should resume given its persisted answers."""

    state: AssessmentState
    current_index: int


def validate_event(
    spec: KindSpec, current_state: AssessmentState, event: AssessmentEvent
) -> TransitionResult:
    """Check whether an event is legal from the current state.

    Rules:
        - Each event is only legal from the states listed in TRANSITIONS
        - CANCEL from questions/results is only legal for cancellable kinds;
          CANCEL from intro is a legal no-op for every kind
    """
    targets = TRANSITIONS[event]
    if current_state not in targets:
        return TransitionResult(False, f"Cannot {event.value} from {current_state.value}")

    if (
        event == AssessmentEvent.CANCEL
        and current_state != AssessmentState.INTRO
        and not spec.cancellable
    ):
        return TransitionResult(
            False, f"The {spec.kind.value} assessment cannot be cancelled once started"
        )

    return TransitionResult(True, new_state=targets[current_state])


def empty_answers(spec: KindSpec) -> list[str]:
    return [SENTINEL] * spec.question_count


def normalize_answers(spec: KindSpec, raw: object) -> list[str] | None:
    """Coerce a persisted answer buffer into the canonical token list.

    Returns None when the value is not a buffer of the expected length
    (corrupt or foreign data). Individual unknown tokens become the sentinel.
    """
    if not isinstance(raw, list) or len(raw) != spec.question_count:
        return None
    answers = []
    for token in raw:
        token = str(token) if token is not None else SENTINEL
        answers.append(token if token in VALID_ANSWERS else SENTINEL)
    return answers


def answered_count(answers: list[str]) -> int:
    return sum(1 for a in answers if a != SENTINEL)


def first_unanswered(answers: list[str]) -> int | None:
    for index, token in enumerate(answers):
        if token == SENTINEL:
            return index
    return None


def is_complete(answers: list[str]) -> bool:
    return bool(answers) and first_unanswered(answers) is None


def reconstruct(answers: list[str]) -> Reconstruction:
    """Decide the resume point for a restored answer buffer.

    - no answers: stay in intro at index 0
    - some answers: questions, at the first unanswered slot
    - every slot answered: results (the caller still has to obtain a score)
    """
    if answered_count(answers) == 0:
        return Reconstruction(AssessmentState.INTRO, 0)

    index = first_unanswered(answers)
    if index is not None:
        return Reconstruction(AssessmentState.QUESTIONS, index)

    return Reconstruction(AssessmentState.RESULTS, len(answers) - 1)
