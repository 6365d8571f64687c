"""Session controller: the presentation layer's only entry point.

The controller holds the current SessionState and accepts exactly four
intents from the view:

    submit(keyword)        Start a new session (resets the old one)
    navigate(phase)        Move between phases, lazily running stages
    translate_item(id)     Translate one news item (idempotent)
    compose_poem()         Build the share card (cached)

Each intent applies a pure transition from timeline.py, then awaits the
commands it emitted. Results are fed back through timeline.complete();
gateway failures through timeline.fail(). Both discard results for a
session that has since been replaced, so a slow response can never
overwrite a newer keyword's state.

Dispatched commands run as tasks registered by job key. A repeated
translate_item() or compose_poem() that finds its job in flight awaits the
running task and then reads the result from the state.

Example:
    >>> controller = SessionController(config)
    >>> await controller.submit("AI")
    >>> await controller.navigate(Phase.PRESENT)
    >>> controller.snapshot().present_analysis.sentiment_score
    64
"""

import asyncio
import logging

import timeline
from agents.gateway import GatewayError, SchemaViolation
from config import Config
from models.news import NewsItem
from models.poetic import PoeticArtifact
from observability.logging import clear_context, set_session_context
from observability.tracing import trace_operation
from pipeline import StagePipeline
from timeline import Command, Job, Phase, SessionState, Transition

logger = logging.getLogger(__name__)


def _job_key(command: Command) -> tuple:
    """In-flight registry key: one slot per stage, one per item for translation."""
    if command.job is Job.TRANSLATION:
        return (command.session_id, command.job, command.item.id)
    return (command.session_id, command.job)


class SessionController:
    """Drives one keyword session against a stage pipeline."""

    def __init__(self, config: Config, pipeline: StagePipeline | None = None):
        """Initialize an empty session in the INPUT phase.

        Args:
            config: Application configuration
            pipeline: Stage pipeline (created from config if omitted)
        """
        self.config = config
        self.pipeline = pipeline or StagePipeline(config)
        self._state = timeline.initial_state()
        self._inflight: dict[tuple, asyncio.Task] = {}

    def snapshot(self) -> SessionState:
        """Read-only snapshot of the current session."""
        return self._state

    async def submit(self, keyword: str) -> SessionState:
        """Start a session for a keyword and run the past search.

        Raises:
            InvalidTransitionError: If the keyword is empty
        """
        transition = timeline.submit(self._state, keyword)
        set_session_context(transition.state.session_id, transition.state.keyword)
        logger.info("Session started | keyword=%s", transition.state.keyword)
        await self._apply(transition)
        return self._state

    async def navigate(self, phase: Phase) -> SessionState:
        """Navigate to a phase, running its stage on first visit.

        Raises:
            PhaseLockedError: If the phase is not enabled
        """
        transition = timeline.navigate(self._state, phase)
        logger.debug("Navigate | phase=%s commands=%d", phase.value, len(transition.commands))
        if phase is Phase.INPUT:
            clear_context()
        await self._apply(transition)
        return self._state

    async def reset(self) -> SessionState:
        """Return to INPUT, clearing the session."""
        return await self.navigate(Phase.INPUT)

    async def translate_item(self, item_id: str) -> NewsItem:
        """Translate one news item; a second call returns the cached translation.

        A call made while the same item is still being translated waits for
        that translation instead of dispatching another.

        Raises:
            InvalidTransitionError: If no item has this id
        """
        transition = timeline.request_translation(self._state, item_id)
        if transition.commands:
            await self._apply(transition)
        else:
            await self._join((self._state.session_id, Job.TRANSLATION, item_id))
        item = self._state.item(item_id)
        if item is None:
            raise timeline.InvalidTransitionError(f"news item {item_id!r} left the session")
        return item

    async def compose_poem(self) -> PoeticArtifact | None:
        """Compose (or return the cached) share card.

        A call made while the card is being composed waits for it.

        Returns:
            The artifact, or None if the session was replaced meanwhile

        Raises:
            InvalidTransitionError: If there is no future prediction yet
        """
        transition = timeline.request_poem(self._state)
        if transition.commands:
            await self._apply(transition)
        else:
            await self._join((self._state.session_id, Job.POETIC_SYNTHESIS))
        return self._state.poetic_artifact

    async def _apply(self, transition: Transition) -> None:
        """Commit a transition, then run its commands concurrently."""
        self._state = transition.state
        tasks = [self._dispatch(command) for command in transition.commands]
        if tasks:
            await asyncio.gather(*tasks)

    def _dispatch(self, command: Command) -> asyncio.Task:
        """Start a command as a task, registered under its job key until done."""
        key = _job_key(command)
        task = asyncio.ensure_future(self._execute(command))
        self._inflight[key] = task

        def _forget(done: asyncio.Task) -> None:
            if self._inflight.get(key) is done:
                del self._inflight[key]

        task.add_done_callback(_forget)
        return task

    async def _join(self, key: tuple) -> None:
        """Wait for the in-flight task under key, if there is one."""
        task = self._inflight.get(key)
        if task is not None:
            logger.debug("Joining in-flight job | key=%s", key[1:])
            await asyncio.shield(task)

    async def _execute(self, command: Command) -> None:
        """Run one command and feed its outcome back into the state machine."""
        with trace_operation(
            f"job.{command.job.value}",
            {"keyword": command.keyword, "session_id": command.session_id},
        ) as span:
            try:
                result = await self.pipeline.execute(command)
            except SchemaViolation as e:
                span["error"] = "schema_violation"
                logger.error("Job returned invalid output | job=%s error=%s", command.job.value, e)
                self._state = timeline.fail(self._state, command, e)
                return
            except GatewayError as e:
                span["error"] = "gateway"
                logger.error("Job failed | job=%s error=%s", command.job.value, e)
                self._state = timeline.fail(self._state, command, e)
                return
            except Exception as e:
                # Clear the in-flight flag so the stage stays retryable, then surface the bug
                self._state = timeline.fail(self._state, command, e)
                raise

            if timeline.is_stale(self._state, command):
                span["stale"] = True
                logger.info(
                    "Discarding stale result | job=%s issued_for=%s current=%s",
                    command.job.value, command.session_id, self._state.session_id or "-",
                )
                return

            self._state = timeline.complete(self._state, command, result).state
            logger.debug("Job complete | job=%s", command.job.value)
