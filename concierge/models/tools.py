"""Tool contract models shared by the dispatcher and the orchestrator adapter."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from concierge.exceptions import ToolSchemaError

logger = logging.getLogger(__name__)


class ToolDefinition(BaseModel):
    """Declaration of one callable tool as the orchestrator sees it."""

    name: str
    description: str
    parameters: dict[str, Any] = Field(description="JSON Schema for the arguments object")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_json(cls, name: str, description: str, parameters_json: str) -> ToolDefinition:
        """Build a definition from a JSON-encoded parameter schema.

        Raises:
            ToolSchemaError: if the schema is not valid JSON or not an object
        """
        try:
            parameters = json.loads(parameters_json)
        except json.JSONDecodeError as e:
            raise ToolSchemaError(f"Parameter schema for tool '{name}' is not valid JSON: {e}") from e
        if not isinstance(parameters, dict):
            raise ToolSchemaError(f"Parameter schema for tool '{name}' must be a JSON object")
        return cls(name=name, description=description, parameters=parameters)

    def to_openai(self) -> dict[str, Any]:
        """Function-tool payload for the agent service."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolCallRequest(BaseModel):
    """A pending function call from a run. Consumed once by the dispatcher."""

    call_id: str
    function_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, call_id: str, function_name: str, raw_arguments: str | None) -> ToolCallRequest:
        """Decode the JSON arguments string sent by the orchestrator.

        Malformed or non-object arguments decode to an empty mapping so the
        handler sees every field as absent.
        """
        arguments: Any = {}
        if raw_arguments:
            try:
                arguments = json.loads(raw_arguments)
            except json.JSONDecodeError:
                logger.warning("Tool call %s has malformed arguments: %.200s", call_id, raw_arguments)
                arguments = {}
        if not isinstance(arguments, dict):
            logger.warning("Tool call %s arguments are not an object", call_id)
            arguments = {}
        return cls(call_id=call_id, function_name=function_name, arguments=arguments)


class ToolCallResult(BaseModel):
    """Output for one tool call, correlated by ``call_id``."""

    call_id: str
    output: str

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict[str, str]:
        return {"tool_call_id": self.call_id, "output": self.output}
