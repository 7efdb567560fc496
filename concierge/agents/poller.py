"""
Run poller: drive a remote run until it completes.

    queued -> in_progress -> completed | failed | requires_action

``requires_action`` is not terminal. The pending batch is dispatched, all
outputs are submitted in one call, and polling resumes.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from concierge.agents.dispatch import ToolDispatcher
from concierge.config import Settings
from concierge.exceptions import RunFailedError, RunTimeoutError, TransportError
from concierge.models import RunState, RunStatus
from concierge.services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

# Consecutive failed status reads tolerated before giving up.
DEFAULT_MAX_READ_ERRORS = 3


class RunPoller:
    """Polls run status with a bounded total wait."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        interval: float = 0.5,
        backoff: float = 1.0,
        max_interval: float = 5.0,
        timeout: float = 300.0,
        max_read_errors: int = DEFAULT_MAX_READ_ERRORS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.orchestrator = orchestrator
        self.interval = interval
        self.backoff = backoff
        self.max_interval = max_interval
        self.timeout = timeout
        self.max_read_errors = max_read_errors
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, orchestrator: Orchestrator, settings: Settings) -> "RunPoller":
        return cls(
            orchestrator,
            interval=settings.poll_interval,
            backoff=settings.poll_backoff,
            max_interval=settings.poll_max_interval,
            timeout=settings.poll_timeout,
        )

    async def run_to_completion(self, run: RunStatus, dispatcher: ToolDispatcher) -> RunStatus:
        """
        Poll ``run``, answering tool calls, until it reaches a terminal state.

        Outputs are submitted only once every call in the batch has one; if
        this coroutine is cancelled mid-batch nothing is submitted.

        Returns:
            The final RunStatus, in state ``completed``

        Raises:
            RunFailedError: the run failed, expired, was cancelled or is incomplete
            RunTimeoutError: the run did not finish within ``timeout`` seconds
        """
        deadline = self._clock() + self.timeout

        while True:
            run = await self.wait(run, deadline)

            if run.state is RunState.REQUIRES_ACTION:
                logger.info("Run %s requires action | calls=%d", run.run_id, len(run.tool_calls))
                outputs = await dispatcher.dispatch(run.tool_calls)
                run = await self.orchestrator.submit_tool_outputs(run, outputs)
                continue

            if run.state is RunState.COMPLETED:
                logger.info("Run %s completed", run.run_id)
                return run

            logger.warning("Run %s ended with status %s: %s", run.run_id, run.state.value, run.last_error)
            raise RunFailedError(run.state.value, run.last_error)

    async def wait(self, run: RunStatus, deadline: float | None = None) -> RunStatus:
        """
        Poll until the run leaves queued/in_progress.

        Returns:
            RunStatus in ``requires_action`` or a terminal state
        """
        if deadline is None:
            deadline = self._clock() + self.timeout

        delay = self.interval
        read_errors = 0

        while run.state.is_pending:
            remaining = deadline - self._clock()
            if remaining <= 0:
                await self._cancel_quietly(run)
                raise RunTimeoutError(
                    run.state.value,
                    f"Run did not finish within {self.timeout:g} seconds and was abandoned.",
                )

            await self._sleep(min(delay, remaining))
            delay = min(delay * self.backoff, self.max_interval)

            try:
                run = await self.orchestrator.get_run(run)
            except TransportError as e:
                read_errors += 1
                if read_errors >= self.max_read_errors:
                    raise
                logger.warning(
                    "Status check for run %s failed (%d/%d): %s",
                    run.run_id,
                    read_errors,
                    self.max_read_errors,
                    e,
                )
                continue

            read_errors = 0
            logger.debug("Run %s status: %s", run.run_id, run.state.value)

        return run

    async def _cancel_quietly(self, run: RunStatus) -> None:
        """Best-effort remote cancel of an abandoned run."""
        try:
            await self.orchestrator.cancel_run(run)
        except Exception as e:
            logger.warning("Could not cancel run %s: %s", run.run_id, e)
