"""Pytest configuration for concierge tests."""

import os
from collections.abc import Sequence

import pytest

from concierge.config import get_settings
from concierge.models import (
    AssistantReply,
    RunState,
    RunStatus,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)


@pytest.fixture(autouse=True)
def reset_env():
    """Reset environment variables and cached settings between tests."""
    original = os.environ.copy()
    get_settings.cache_clear()
    yield
    os.environ.clear()
    os.environ.update(original)
    get_settings.cache_clear()


class FakeOrchestrator:
    """Scripted agent service.

    ``states`` are returned by successive ``get_run`` calls; the last one
    repeats once the script runs out. Exception instances in the script are
    raised instead.
    """

    def __init__(
        self,
        states: Sequence[RunState | Exception] = (RunState.COMPLETED,),
        tool_calls: Sequence[ToolCallRequest] = (),
        last_error: str | None = None,
        reply: AssistantReply | None = None,
        files: dict[str, bytes] | None = None,
    ):
        self.states = list(states)
        self.tool_calls = list(tool_calls)
        self.last_error = last_error
        self.reply = reply if reply is not None else AssistantReply(text="Here you go")
        self.files = files or {}

        self.agents_created: list[dict] = []
        self.messages: list[tuple[str, str]] = []
        self.runs_started = 0
        self.polls = 0
        self.submissions: list[list[ToolCallResult]] = []
        self.cancelled: list[str] = []
        self.deleted: list[str] = []
        self.closed = False

    def _status(self, state: RunState) -> RunStatus:
        return RunStatus(
            run_id=f"run_{self.runs_started}",
            thread_id="thread_1",
            state=state,
            tool_calls=self.tool_calls if state is RunState.REQUIRES_ACTION else [],
            last_error=self.last_error if state is RunState.FAILED else None,
        )

    async def get_or_create_agent(
        self,
        agent_id: str | None,
        *,
        model: str,
        name: str,
        instructions: str,
        tools: Sequence[ToolDefinition],
    ) -> str:
        if agent_id:
            return agent_id
        self.agents_created.append({"model": model, "name": name, "tools": list(tools)})
        return "asst_new"

    async def create_session(self) -> str:
        return "thread_1"

    async def delete_session(self, session_id: str) -> None:
        self.deleted.append(session_id)

    async def post_user_message(self, session_id: str, text: str) -> None:
        self.messages.append((session_id, text))

    async def start_run(self, session_id: str, agent_id: str) -> RunStatus:
        self.runs_started += 1
        return self._status(RunState.QUEUED)

    async def get_run(self, run: RunStatus) -> RunStatus:
        self.polls += 1
        item = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        if isinstance(item, Exception):
            raise item
        return self._status(item)

    async def submit_tool_outputs(
        self, run: RunStatus, outputs: Sequence[ToolCallResult]
    ) -> RunStatus:
        self.submissions.append(list(outputs))
        return self._status(RunState.QUEUED)

    async def cancel_run(self, run: RunStatus) -> RunStatus:
        self.cancelled.append(run.run_id)
        return self._status(RunState.CANCELLING)

    async def latest_reply(self, session_id: str) -> AssistantReply | None:
        return self.reply

    async def get_file_content(self, file_id: str) -> bytes:
        return self.files[file_id]

    async def close(self) -> None:
        self.closed = True


class FakeTime:
    """Deterministic clock and sleep for the poller."""

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        self.now += delay


@pytest.fixture
def make_orchestrator():
    """Factory for scripted FakeOrchestrator instances."""
    return FakeOrchestrator


@pytest.fixture
def fake_time():
    return FakeTime()
