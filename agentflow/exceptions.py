"""Error taxonomy for workflow execution."""

from __future__ import annotations

from typing import Optional


class AgentflowError(Exception):
    """Base class for all agentflow errors."""


class NotFound(AgentflowError):
    """An agent, workflow or execution does not exist."""

    def __init__(self, entity: str, identifier: str) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class UnknownStepKind(AgentflowError):
    """A step declares a kind outside the supported set."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown step kind: {kind}")
        self.kind = kind


class InvalidLoopSpec(AgentflowError):
    """A loop specification cannot be run."""


class TransformError(AgentflowError):
    """A data transformation cannot be applied to its input."""


class ToolNotFound(AgentflowError):
    """No tool with the requested name is registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool {name} not found")
        self.name = name


class ToolExecutionError(AgentflowError):
    """A tool rejected its parameters or failed while running."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Tool {name} execution failed: {reason}")
        self.name = name


class ExternalCallError(AgentflowError):
    """An external API call failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelInvocationError(AgentflowError):
    """The language-model backend failed to produce a response."""


class InvalidStatusTransition(AgentflowError):
    """An execution record was asked to leave a terminal state."""


class ConditionError(Exception):
    """Raised inside the condition evaluator; never escapes it."""


__all__ = [
    "AgentflowError",
    "NotFound",
    "UnknownStepKind",
    "InvalidLoopSpec",
    "TransformError",
    "ToolNotFound",
    "ToolExecutionError",
    "ExternalCallError",
    "ModelInvocationError",
    "InvalidStatusTransition",
    "ConditionError",
]
