"""Repository abstraction for agents, workflows and execution records."""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol

from pydantic_core import to_jsonable_python

from ..contracts import ExecutionStatus
from ..exceptions import InvalidStatusTransition
from .models import AgentRecord, ExecutionRecord, WorkflowRecord


class ExecutionRepository(Protocol):
    """Protocol for persistence backends."""

    async def save_agent(self, agent: AgentRecord) -> None:
        """Insert or replace an agent."""

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        """Retrieve an agent by id."""

    async def save_workflow(self, workflow: WorkflowRecord) -> None:
        """Insert or replace a workflow."""

    async def get_workflow(self, workflow_id: str) -> WorkflowRecord | None:
        """Retrieve a workflow by id."""

    async def create_execution(self, record: ExecutionRecord) -> None:
        """Persist a new execution record."""

    async def finish_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        """Move a running execution to a terminal status.

        Raises:
            NotFound: If the execution does not exist.
            InvalidStatusTransition: If the execution is not running or the
                target status is not terminal.
        """

    async def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        """Retrieve an execution by id."""

    async def list_executions(
        self, agent_id: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ExecutionRecord]:
        """Return executions ordered by start time, oldest first."""


def check_transition(
    execution_id: str, current: ExecutionStatus, target: ExecutionStatus
) -> None:
    """Enforce ``running -> completed|failed`` as the only finishing move."""
    if not target.is_terminal:
        raise InvalidStatusTransition(
            f"Execution {execution_id} cannot finish with status {target.value}"
        )
    if current is not ExecutionStatus.RUNNING:
        raise InvalidStatusTransition(
            f"Execution {execution_id} is {current.value}, not running"
        )


def dump_json(value: Any) -> str:
    """Serialize step inputs and results, stringifying unknown objects."""
    return json.dumps(to_jsonable_python(value, fallback=str))


def load_json(value: str | None) -> Any:
    return json.loads(value) if value is not None else None
