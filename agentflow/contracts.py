"""Core data contracts for agentflow workflows."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .constants import CONDITION


class ExecutionStatus(str, Enum):
    """Lifecycle of an execution record."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class AgentConfig(BaseModel):
    """Model settings for one agent. Read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = Field(
        default=1024, validation_alias=AliasChoices("max_tokens", "maxTokens")
    )
    system_prompt: str = Field(
        default="", validation_alias=AliasChoices("system_prompt", "systemPrompt")
    )
    tools: List[str] = Field(default_factory=list)


class LoopSpec(BaseModel):
    """Nested steps repeated a fixed number of times."""

    iterations: int = 1
    steps: List["Step"] = Field(default_factory=list)


class Step(BaseModel):
    """Defines one unit of work in a workflow."""

    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    config: Dict[str, Any] = Field(default_factory=dict)
    condition: Optional[str] = None
    pass_output: bool = Field(
        default=False, validation_alias=AliasChoices("pass_output", "passOutput")
    )
    loop: Optional[LoopSpec] = None

    @property
    def gate(self) -> Optional[str]:
        """Expression deciding whether the step runs at all.

        A ``condition`` step without ``config["expression"]`` uses its
        ``condition`` as the value it evaluates, so it has no gate.
        """
        if self.kind == CONDITION and "expression" not in self.config:
            return None
        return self.condition


LoopSpec.model_rebuild()


class WorkflowDefinition(BaseModel):
    """Ordered steps making up a workflow."""

    steps: List[Step] = Field(default_factory=list)


class ExecutionContext(BaseModel):
    """Mutable state threaded through a single run."""

    agent_id: str
    execution_id: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    step_results: List[Any] = Field(default_factory=list)

    def record(self, result: Any) -> None:
        """Append the result of an evaluated step."""
        self.step_results.append(result)
