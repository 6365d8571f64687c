"""Phase state machine for a keyword session.

This module owns the session's navigation rules. It is deliberately free of
I/O: every transition is a pure function taking the current SessionState
and returning a Transition (the new state plus zero or more Commands to
dispatch). The controller executes the commands and feeds the results back
through complete() or fail().

Phases (linear, plus a reset back to INPUT from anywhere):

    INPUT -> PAST -> PRESENT -> FUTURE

Gating:
    submit()    enables {INPUT, PAST}, emits PAST_SEARCH
    complete()  PAST_SEARCH enables PRESENT, PRESENT_ANALYSIS enables FUTURE
    navigate()  rejects locked phases; lazily emits the phase's stage job
                the first time it is visited (or after a failure)

Idempotence:
    A job's in-flight flag is set inside the same transition that emits its
    command, so a second navigate before completion sees the flag and emits
    nothing. Cached results are never recomputed until the session resets.

Staleness:
    Every command carries the session id it was issued for. Results arriving
    after a reset or a new submit are discarded.
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from models.analysis import PresentAnalysis
from models.news import NewsItem
from models.poetic import PoeticArtifact
from models.prediction import FuturePrediction


class Phase(str, Enum):
    """Navigable UI phases."""

    INPUT = "INPUT"
    PAST = "PAST"
    PRESENT = "PRESENT"
    FUTURE = "FUTURE"


class Job(str, Enum):
    """Work the controller can be asked to dispatch."""

    PAST_SEARCH = "past_search"
    PRESENT_ANALYSIS = "present_analysis"
    FUTURE_PREDICTION = "future_prediction"
    POETIC_SYNTHESIS = "poetic_synthesis"
    TRANSLATION = "translation"


class InvalidTransitionError(Exception):
    """Raised when an intent is not valid in the current state."""


class PhaseLockedError(InvalidTransitionError):
    """Raised when navigating to a phase that is not enabled yet."""


@dataclass(frozen=True)
class LoadingFlags:
    """In-flight flags, one per job (per item for translation)."""

    searching: bool = False
    analyzing: bool = False
    predicting: bool = False
    composing: bool = False
    translating: frozenset[str] = frozenset()

    @property
    def busy(self) -> bool:
        return self.searching or self.analyzing or self.predicting or self.composing or bool(self.translating)

    def to_dict(self) -> dict[str, Any]:
        return {
            "searching": self.searching,
            "analyzing": self.analyzing,
            "predicting": self.predicting,
            "composing": self.composing,
            "translating": sorted(self.translating),
        }


# Stage job -> LoadingFlags attribute
_STAGE_FLAGS = {
    Job.PAST_SEARCH: "searching",
    Job.PRESENT_ANALYSIS: "analyzing",
    Job.FUTURE_PREDICTION: "predicting",
    Job.POETIC_SYNTHESIS: "composing",
}

_INITIAL_ENABLED = frozenset({Phase.INPUT})


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of one keyword session.

    This is also the read-only snapshot handed to the presentation layer.

    Attributes:
        session_id: Id of the current submission ("" before the first submit)
        phase: Phase currently displayed
        keyword: Keyword under exploration
        news_items: Past stage result (empty until produced)
        present_analysis: Present stage result
        future_prediction: Future stage result
        poetic_artifact: Share card, once composed
        enabled: Phases currently navigable
        loading: In-flight flags
        errors: Last failure message per job, cleared on success
    """

    session_id: str = ""
    phase: Phase = Phase.INPUT
    keyword: str = ""
    news_items: tuple[NewsItem, ...] = ()
    present_analysis: PresentAnalysis | None = None
    future_prediction: FuturePrediction | None = None
    poetic_artifact: PoeticArtifact | None = None
    enabled: frozenset[Phase] = _INITIAL_ENABLED
    loading: LoadingFlags = field(default_factory=LoadingFlags)
    errors: tuple[tuple[Job, str], ...] = ()

    def is_enabled(self, phase: Phase) -> bool:
        return phase in self.enabled

    def item(self, item_id: str) -> NewsItem | None:
        """Find a news item by id."""
        for item in self.news_items:
            if item.id == item_id:
                return item
        return None

    def error_for(self, job: Job) -> str | None:
        """Last failure message for a job, if its latest attempt failed."""
        return dict(self.errors).get(job)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "keyword": self.keyword,
            "news_items": [item.model_dump(mode="json") for item in self.news_items],
            "present_analysis": self.present_analysis.model_dump(mode="json") if self.present_analysis else None,
            "future_prediction": self.future_prediction.model_dump(mode="json") if self.future_prediction else None,
            "poetic_artifact": (
                {
                    "poem": self.poetic_artifact.poem,
                    "image_ref": self.poetic_artifact.image_url or "(inline image)",
                    "fallback_image": self.poetic_artifact.is_fallback_image,
                }
                if self.poetic_artifact else None
            ),
            "enabled_phases": [p.value for p in Phase if p in self.enabled],
            "loading": self.loading.to_dict(),
            "errors": {job.value: message for job, message in self.errors},
        }


@dataclass(frozen=True)
class Command:
    """A job to dispatch, carrying every input it needs.

    Attributes:
        job: Which job to run
        session_id: Session the command was issued for (staleness tag)
        keyword: Keyword under exploration
        news_items: Input of PRESENT_ANALYSIS
        analysis: Input of FUTURE_PREDICTION
        prediction: Input of POETIC_SYNTHESIS
        item: Input of TRANSLATION
    """

    job: Job
    session_id: str
    keyword: str
    news_items: tuple[NewsItem, ...] = ()
    analysis: PresentAnalysis | None = None
    prediction: FuturePrediction | None = None
    item: NewsItem | None = None


@dataclass(frozen=True)
class Transition:
    """Result of a transition: the new state and the commands to dispatch."""

    state: SessionState
    commands: tuple[Command, ...] = ()


def new_session_id() -> str:
    return uuid.uuid4().hex[:12]


def initial_state() -> SessionState:
    """State of a freshly constructed session (INPUT, nothing enabled but INPUT)."""
    return SessionState()


def _set_flag(loading: LoadingFlags, job: Job, value: bool) -> LoadingFlags:
    return replace(loading, **{_STAGE_FLAGS[job]: value})


def _without_error(errors: tuple[tuple[Job, str], ...], job: Job) -> tuple[tuple[Job, str], ...]:
    return tuple((j, m) for j, m in errors if j is not job)


def _start(state: SessionState, command: Command, **changes: Any) -> Transition:
    """Mark a stage job in flight and emit its command."""
    loading = _set_flag(state.loading, command.job, True)
    return Transition(
        state=replace(state, loading=loading, **changes),
        commands=(command,),
    )


def submit(state: SessionState, keyword: str, session_id: str | None = None) -> Transition:
    """Start a new session for a keyword.

    Valid from any state; acts as a reset of the previous session.

    Raises:
        InvalidTransitionError: If the keyword is empty
    """
    keyword = keyword.strip()
    if not keyword:
        raise InvalidTransitionError("keyword must not be empty")

    fresh = SessionState(
        session_id=session_id or new_session_id(),
        phase=Phase.PAST,
        keyword=keyword,
        enabled=frozenset({Phase.INPUT, Phase.PAST}),
    )
    command = Command(job=Job.PAST_SEARCH, session_id=fresh.session_id, keyword=keyword)
    return _start(fresh, command)


def reset(state: SessionState) -> SessionState:
    """Return to INPUT, dropping every cached result and phase unlock."""
    return SessionState()


def navigate(state: SessionState, phase: Phase) -> Transition:
    """Move to an enabled phase, lazily emitting that phase's stage job.

    Raises:
        PhaseLockedError: If the phase is not enabled
    """
    if not state.is_enabled(phase):
        raise PhaseLockedError(f"phase {phase.value} is locked")

    if phase is Phase.INPUT:
        return Transition(state=reset(state))

    moved = replace(state, phase=phase)

    if (
        phase is Phase.PRESENT
        and moved.present_analysis is None
        and not moved.loading.analyzing
        and moved.news_items
    ):
        command = Command(
            job=Job.PRESENT_ANALYSIS,
            session_id=moved.session_id,
            keyword=moved.keyword,
            news_items=moved.news_items,
        )
        return _start(moved, command)

    if (
        phase is Phase.FUTURE
        and moved.future_prediction is None
        and not moved.loading.predicting
        and moved.present_analysis is not None
    ):
        command = Command(
            job=Job.FUTURE_PREDICTION,
            session_id=moved.session_id,
            keyword=moved.keyword,
            analysis=moved.present_analysis,
        )
        return _start(moved, command)

    return Transition(state=moved)


def request_translation(state: SessionState, item_id: str) -> Transition:
    """Ask for an item's translation.

    Already translated or already in flight items emit nothing.

    Raises:
        InvalidTransitionError: If no item has this id
    """
    item = state.item(item_id)
    if item is None:
        raise InvalidTransitionError(f"unknown news item {item_id!r}")
    if item.is_translated or item_id in state.loading.translating:
        return Transition(state=state)

    loading = replace(state.loading, translating=state.loading.translating | {item_id})
    command = Command(job=Job.TRANSLATION, session_id=state.session_id, keyword=state.keyword, item=item)
    return Transition(state=replace(state, loading=loading), commands=(command,))


def request_poem(state: SessionState) -> Transition:
    """Ask for the share card.

    A cached artifact or a composition in flight emits nothing.

    Raises:
        InvalidTransitionError: If there is no future prediction yet
    """
    if state.future_prediction is None:
        raise InvalidTransitionError("share card requires a future prediction")
    if state.poetic_artifact is not None or state.loading.composing:
        return Transition(state=state)

    command = Command(
        job=Job.POETIC_SYNTHESIS,
        session_id=state.session_id,
        keyword=state.keyword,
        prediction=state.future_prediction,
    )
    return _start(state, command)


def is_stale(state: SessionState, command: Command) -> bool:
    """True if the command was issued for a session that no longer exists."""
    return command.session_id != state.session_id


def complete(state: SessionState, command: Command, result: Any) -> Transition:
    """Store a finished job's result.

    Stale results leave the state untouched.
    """
    if is_stale(state, command):
        return Transition(state=state)

    job = command.job
    errors = _without_error(state.errors, job)

    if job is Job.TRANSLATION:
        item_id = command.item.id
        loading = replace(state.loading, translating=state.loading.translating - {item_id})
        items = tuple(
            item.with_translation(result.title, result.summary)
            if item.id == item_id and not item.is_translated else item
            for item in state.news_items
        )
        return Transition(state=replace(state, loading=loading, news_items=items, errors=errors))

    loading = _set_flag(state.loading, job, False)
    if job is Job.PAST_SEARCH:
        items = tuple(result)
        enabled = state.enabled | {Phase.PRESENT} if items else state.enabled
        new_state = replace(state, loading=loading, news_items=items, enabled=enabled, errors=errors)
    elif job is Job.PRESENT_ANALYSIS:
        new_state = replace(
            state,
            loading=loading,
            present_analysis=result,
            enabled=state.enabled | {Phase.FUTURE},
            errors=errors,
        )
    elif job is Job.FUTURE_PREDICTION:
        new_state = replace(state, loading=loading, future_prediction=result, errors=errors)
    else:
        new_state = replace(state, loading=loading, poetic_artifact=result, errors=errors)
    return Transition(state=new_state)


def fail(state: SessionState, command: Command, error: BaseException) -> SessionState:
    """Record a failed job: clear its flag, keep the slot empty, note the error.

    Stale failures leave the state untouched.
    """
    if is_stale(state, command):
        return state

    if command.job is Job.TRANSLATION:
        loading = replace(state.loading, translating=state.loading.translating - {command.item.id})
    else:
        loading = _set_flag(state.loading, command.job, False)
    message = f"{type(error).__name__}: {error}"
    errors = _without_error(state.errors, command.job) + ((command.job, message),)
    return replace(state, loading=loading, errors=errors)
