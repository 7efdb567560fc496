"""Run state as reported by the agent service."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from concierge.models.tools import ToolCallRequest


class RunState(str, Enum):
    """Remote run status."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"

    @property
    def is_pending(self) -> bool:
        """Still being worked on remotely; keep polling."""
        return self in (RunState.QUEUED, RunState.IN_PROGRESS, RunState.CANCELLING)


class RunStatus(BaseModel):
    """Snapshot of a run."""

    run_id: str
    thread_id: str
    state: RunState
    tool_calls: list[ToolCallRequest] = Field(
        default_factory=list, description="Pending calls, only set in requires_action"
    )
    last_error: str | None = None


class AssistantReply(BaseModel):
    """Latest assistant message in a thread."""

    text: str = ""
    file_ids: list[str] = Field(default_factory=list, description="Generated files referenced by the message")
