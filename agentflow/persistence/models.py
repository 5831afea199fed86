"""Data models for persisted agents, workflows and executions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..contracts import AgentConfig, ExecutionStatus, WorkflowDefinition


def _new_id() -> str:
    return str(uuid.uuid4())


class AgentRecord(BaseModel):
    """Stored agent with its model configuration."""

    id: str = Field(default_factory=_new_id)
    name: str
    description: Optional[str] = None
    config: AgentConfig = Field(default_factory=AgentConfig)


class WorkflowRecord(BaseModel):
    """Stored workflow definition owned by an agent."""

    id: str = Field(default_factory=_new_id)
    agent_id: str
    name: str
    description: Optional[str] = None
    definition: WorkflowDefinition = Field(default_factory=WorkflowDefinition)


class ExecutionRecord(BaseModel):
    """Outcome of one run.

    Created once when the run starts and updated once when it reaches a
    terminal status.
    """

    id: str = Field(default_factory=_new_id)
    agent_id: str
    workflow_id: Optional[str] = None
    status: ExecutionStatus = ExecutionStatus.PENDING
    input: Any = None
    output: Any = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
