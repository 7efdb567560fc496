"""
Agent service collaborator.

The remote agent platform owns the run state machine; this module exposes the
handful of operations the application needs through the ``Orchestrator``
protocol so the poller and dispatcher can be driven by a stub in tests.
``AssistantsOrchestrator`` implements it over the OpenAI threads/runs API.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI

from concierge.config import Settings, get_settings
from concierge.exceptions import TransportError
from concierge.models import (
    AssistantReply,
    RunState,
    RunStatus,
    ToolCallRequest,
    ToolCallResult,
    ToolDefinition,
)

logger = logging.getLogger(__name__)


class Orchestrator(Protocol):
    """Operations consumed from the agent service."""

    async def get_or_create_agent(
        self,
        agent_id: str | None,
        *,
        model: str,
        name: str,
        instructions: str,
        tools: Sequence[ToolDefinition],
    ) -> str: ...

    async def create_session(self) -> str: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def post_user_message(self, session_id: str, text: str) -> None: ...

    async def start_run(self, session_id: str, agent_id: str) -> RunStatus: ...

    async def get_run(self, run: RunStatus) -> RunStatus: ...

    async def submit_tool_outputs(
        self, run: RunStatus, outputs: Sequence[ToolCallResult]
    ) -> RunStatus: ...

    async def cancel_run(self, run: RunStatus) -> RunStatus: ...

    async def latest_reply(self, session_id: str) -> AssistantReply | None: ...

    async def get_file_content(self, file_id: str) -> bytes: ...


@contextmanager
def _transport_errors(action: str) -> Iterator[None]:
    """Translate SDK connection failures (including timeouts) to TransportError."""
    try:
        yield
    except openai.APIConnectionError as e:
        raise TransportError(f"Could not reach the agent service while trying to {action}: {e}") from e


def _to_status(run: Any) -> RunStatus:
    """Convert an SDK run object into a RunStatus."""
    tool_calls: list[ToolCallRequest] = []
    required = getattr(run, "required_action", None)
    if required is not None and required.submit_tool_outputs is not None:
        for call in required.submit_tool_outputs.tool_calls:
            if call.type != "function":
                logger.warning("Ignoring non-function tool call %s of type %s", call.id, call.type)
                continue
            tool_calls.append(
                ToolCallRequest.from_raw(call.id, call.function.name, call.function.arguments)
            )

    last_error = None
    if run.last_error is not None:
        last_error = run.last_error.message or run.last_error.code

    return RunStatus(
        run_id=run.id,
        thread_id=run.thread_id,
        state=RunState(run.status),
        tool_calls=tool_calls,
        last_error=last_error,
    )


def _to_reply(message: Any) -> AssistantReply:
    """Collect the text parts and generated-file references of a message."""
    texts: list[str] = []
    file_ids: list[str] = []
    for part in message.content:
        if part.type == "text":
            texts.append(part.text.value)
            for annotation in part.text.annotations or []:
                if annotation.type == "file_path":
                    file_ids.append(annotation.file_path.file_id)
        elif part.type == "image_file":
            file_ids.append(part.image_file.file_id)
    return AssistantReply(text="\n".join(texts), file_ids=file_ids)


class AssistantsOrchestrator:
    """Orchestrator backed by the OpenAI Assistants threads/runs API.

    SDK retries are disabled: run creation and tool-output submission mutate
    remote state and must not be replayed blindly. Read retries are the
    poller's decision.
    """

    def __init__(self, client: AsyncOpenAI | None = None, settings: Settings | None = None):
        if client is None:
            settings = settings or get_settings()
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url or None,
                timeout=settings.http_timeout,
                max_retries=0,
            )
        self._client = client

    async def close(self) -> None:
        await self._client.close()

    async def get_or_create_agent(
        self,
        agent_id: str | None,
        *,
        model: str,
        name: str,
        instructions: str,
        tools: Sequence[ToolDefinition],
    ) -> str:
        """Reuse ``agent_id`` when given, otherwise create a new agent."""
        if agent_id:
            with _transport_errors("load the agent"):
                agent = await self._client.beta.assistants.retrieve(agent_id)
            logger.info("Using existing agent: %s", agent.id)
            return agent.id

        with _transport_errors("create the agent"):
            agent = await self._client.beta.assistants.create(
                model=model,
                name=name,
                instructions=instructions,
                tools=[{"type": "code_interpreter"}, *(t.to_openai() for t in tools)],
            )
        logger.info("Created agent: %s", agent.id)
        return agent.id

    async def create_session(self) -> str:
        with _transport_errors("start a conversation"):
            thread = await self._client.beta.threads.create()
        return thread.id

    async def delete_session(self, session_id: str) -> None:
        with _transport_errors("delete the conversation"):
            await self._client.beta.threads.delete(session_id)

    async def post_user_message(self, session_id: str, text: str) -> None:
        with _transport_errors("send the message"):
            await self._client.beta.threads.messages.create(
                thread_id=session_id, role="user", content=text
            )

    async def start_run(self, session_id: str, agent_id: str) -> RunStatus:
        with _transport_errors("start a run"):
            run = await self._client.beta.threads.runs.create(
                thread_id=session_id, assistant_id=agent_id
            )
        return _to_status(run)

    async def get_run(self, run: RunStatus) -> RunStatus:
        with _transport_errors("check the run status"):
            current = await self._client.beta.threads.runs.retrieve(
                run.run_id, thread_id=run.thread_id
            )
        return _to_status(current)

    async def submit_tool_outputs(
        self, run: RunStatus, outputs: Sequence[ToolCallResult]
    ) -> RunStatus:
        with _transport_errors("submit tool outputs"):
            resumed = await self._client.beta.threads.runs.submit_tool_outputs(
                run.run_id,
                thread_id=run.thread_id,
                tool_outputs=[o.to_wire() for o in outputs],
            )
        return _to_status(resumed)

    async def cancel_run(self, run: RunStatus) -> RunStatus:
        with _transport_errors("cancel the run"):
            cancelled = await self._client.beta.threads.runs.cancel(
                run.run_id, thread_id=run.thread_id
            )
        return _to_status(cancelled)

    async def latest_reply(self, session_id: str) -> AssistantReply | None:
        """Latest message in the thread, if it came from the assistant."""
        with _transport_errors("read the reply"):
            page = await self._client.beta.threads.messages.list(
                thread_id=session_id, order="desc", limit=1
            )
        if not page.data or page.data[0].role != "assistant":
            return None
        return _to_reply(page.data[0])

    async def get_file_content(self, file_id: str) -> bytes:
        with _transport_errors("download a generated file"):
            response = await self._client.files.content(file_id)
        return response.content
