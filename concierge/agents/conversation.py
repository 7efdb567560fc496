"""
Conversation: one session on the agent service for the life of the process.

Each ``send`` is a turn: post the user's message, start a run, drive it to
completion with the poller and dispatcher, then read the assistant's reply.
Only one run may be in flight per conversation.
"""

import asyncio
import logging
from pathlib import Path

from concierge.agents.dispatch import ToolDispatcher
from concierge.agents.poller import RunPoller
from concierge.exceptions import RunInProgressError
from concierge.models import AssistantReply, RunStatus
from concierge.services.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class Conversation:
    """Multi-turn chat with one agent over one session."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        agent_id: str,
        poller: RunPoller,
        dispatcher: ToolDispatcher,
    ):
        self.orchestrator = orchestrator
        self.agent_id = agent_id
        self.poller = poller
        self.dispatcher = dispatcher
        self.session_id: str | None = None
        self._lock = asyncio.Lock()
        self._abandoned_run: RunStatus | None = None

    async def start(self) -> str:
        """Create the session. Idempotent."""
        if self.session_id is None:
            self.session_id = await self.orchestrator.create_session()
            logger.info("Started session %s", self.session_id)
        return self.session_id

    async def close(self) -> None:
        """Delete the session on the agent service."""
        if self.session_id is not None:
            await self.orchestrator.delete_session(self.session_id)
            logger.info("Deleted session %s", self.session_id)
            self.session_id = None

    async def send(self, text: str) -> AssistantReply | None:
        """
        Run one turn.

        Returns:
            The assistant's reply, or None if the run produced no assistant message

        Raises:
            RunInProgressError: if another turn is still running
            RunFailedError: if the run failed or timed out
        """
        if self._lock.locked():
            raise RunInProgressError("A run is already in progress for this conversation")

        async with self._lock:
            session_id = await self.start()
            await self._cancel_abandoned_run()

            await self.orchestrator.post_user_message(session_id, text)
            run = await self.orchestrator.start_run(session_id, self.agent_id)
            logger.debug("Started run %s", run.run_id)

            try:
                await self.poller.run_to_completion(run, self.dispatcher)
            except asyncio.CancelledError:
                self._abandoned_run = run
                raise

            return await self.orchestrator.latest_reply(session_id)

    async def download_files(self, reply: AssistantReply, directory: str | Path) -> list[Path]:
        """Save the files referenced by a reply. Returns the written paths."""
        if not reply.file_ids:
            return []

        target = Path(directory)
        target.mkdir(parents=True, exist_ok=True)

        paths = []
        for file_id in reply.file_ids:
            content = await self.orchestrator.get_file_content(file_id)
            path = target / file_id
            path.write_bytes(content)
            logger.info("Saved generated file %s (%d bytes)", path, len(content))
            paths.append(path)
        return paths

    async def _cancel_abandoned_run(self) -> None:
        """Cancel a run left behind by an interrupted turn so the session accepts messages again."""
        run = self._abandoned_run
        if run is None:
            return
        self._abandoned_run = None
        try:
            cancelling = await self.orchestrator.cancel_run(run)
            await self.poller.wait(cancelling)
        except Exception as e:
            logger.warning("Could not cancel abandoned run %s: %s", run.run_id, e)
