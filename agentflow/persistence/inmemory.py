"""In-memory implementation of the execution repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..contracts import ExecutionStatus
from ..exceptions import NotFound
from .models import AgentRecord, ExecutionRecord, WorkflowRecord
from .repository import ExecutionRepository, check_transition


class InMemoryExecutionRepository(ExecutionRepository):
    """Store agents, workflows and executions in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._agents: Dict[str, AgentRecord] = {}
        self._workflows: Dict[str, WorkflowRecord] = {}
        self._executions: Dict[str, ExecutionRecord] = {}

    # ------------------------------------------------------------------
    async def save_agent(self, agent: AgentRecord) -> None:
        self._agents[agent.id] = agent

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        return self._agents.get(agent_id)

    async def save_workflow(self, workflow: WorkflowRecord) -> None:
        self._workflows[workflow.id] = workflow

    async def get_workflow(self, workflow_id: str) -> WorkflowRecord | None:
        return self._workflows.get(workflow_id)

    # ------------------------------------------------------------------
    async def create_execution(self, record: ExecutionRecord) -> None:
        self._executions[record.id] = record.model_copy(deep=True)

    async def finish_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        record = self._executions.get(execution_id)
        if record is None:
            raise NotFound("Execution", execution_id)
        check_transition(execution_id, record.status, status)
        record.status = status
        record.output = output
        record.error = error
        record.completed_at = datetime.now(timezone.utc)

    async def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        return self._executions.get(execution_id)

    async def list_executions(
        self, agent_id: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ExecutionRecord]:
        records = sorted(
            (
                r
                for r in self._executions.values()
                if agent_id is None or r.agent_id == agent_id
            ),
            key=lambda r: r.started_at,
        )
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return records
