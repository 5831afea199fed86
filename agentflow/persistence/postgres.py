"""PostgreSQL implementation of the execution repository."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

import asyncpg

from ..contracts import AgentConfig, ExecutionStatus, WorkflowDefinition
from ..exceptions import NotFound
from .models import AgentRecord, ExecutionRecord, WorkflowRecord
from .repository import ExecutionRepository, check_transition, dump_json, load_json

_EXECUTION_COLUMNS = (
    "id, agent_id, workflow_id, status, input, output, error, started_at, completed_at"
)


class PostgresExecutionRepository(ExecutionRepository):
    """Persist agents, workflows and executions using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                config JSONB NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS workflows (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                definition JSONB NOT NULL
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                workflow_id TEXT,
                status TEXT NOT NULL,
                input JSONB,
                output JSONB,
                error TEXT,
                started_at TIMESTAMPTZ NOT NULL,
                completed_at TIMESTAMPTZ
            )
            """
        )

    @staticmethod
    def _to_execution(row: asyncpg.Record) -> ExecutionRecord:
        return ExecutionRecord(
            id=row["id"],
            agent_id=row["agent_id"],
            workflow_id=row["workflow_id"],
            status=ExecutionStatus(row["status"]),
            input=load_json(row["input"]),
            output=load_json(row["output"]),
            error=row["error"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        )

    # ------------------------------------------------------------------
    async def save_agent(self, agent: AgentRecord) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO agents (id, name, description, config) VALUES ($1, $2, $3, $4)
                ON CONFLICT (id) DO UPDATE
                SET name = EXCLUDED.name, description = EXCLUDED.description, config = EXCLUDED.config
                """,
                agent.id,
                agent.name,
                agent.description,
                agent.config.model_dump_json(),
            )
        finally:
            await conn.close()

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT id, name, description, config FROM agents WHERE id = $1",
                agent_id,
            )
        finally:
            await conn.close()
        if not row:
            return None
        return AgentRecord(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            config=AgentConfig.model_validate(json.loads(row["config"])),
        )

    async def save_workflow(self, workflow: WorkflowRecord) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO workflows (id, agent_id, name, description, definition)
                VALUES ($1, $2, $3, $4, $5)
                ON CONFLICT (id) DO UPDATE
                SET agent_id = EXCLUDED.agent_id, name = EXCLUDED.name,
                    description = EXCLUDED.description, definition = EXCLUDED.definition
                """,
                workflow.id,
                workflow.agent_id,
                workflow.name,
                workflow.description,
                workflow.definition.model_dump_json(),
            )
        finally:
            await conn.close()

    async def get_workflow(self, workflow_id: str) -> WorkflowRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT id, agent_id, name, description, definition FROM workflows WHERE id = $1",
                workflow_id,
            )
        finally:
            await conn.close()
        if not row:
            return None
        return WorkflowRecord(
            id=row["id"],
            agent_id=row["agent_id"],
            name=row["name"],
            description=row["description"],
            definition=WorkflowDefinition.model_validate(json.loads(row["definition"])),
        )

    async def create_execution(self, record: ExecutionRecord) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                f"INSERT INTO executions ({_EXECUTION_COLUMNS}) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)",
                record.id,
                record.agent_id,
                record.workflow_id,
                record.status.value,
                dump_json(record.input),
                dump_json(record.output) if record.output is not None else None,
                record.error,
                record.started_at,
                record.completed_at,
            )
        finally:
            await conn.close()

    async def finish_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        conn = await self._connect()
        try:
            current = await conn.fetchval(
                "SELECT status FROM executions WHERE id = $1", execution_id
            )
            if current is None:
                raise NotFound("Execution", execution_id)
            check_transition(execution_id, ExecutionStatus(current), status)
            await conn.execute(
                """
                UPDATE executions
                SET status = $1, output = $2, error = $3, completed_at = $4
                WHERE id = $5 AND status = $6
                """,
                status.value,
                dump_json(output),
                error,
                datetime.now(timezone.utc),
                execution_id,
                ExecutionStatus.RUNNING.value,
            )
        finally:
            await conn.close()

    async def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                f"SELECT {_EXECUTION_COLUMNS} FROM executions WHERE id = $1",
                execution_id,
            )
        finally:
            await conn.close()
        return self._to_execution(row) if row else None

    async def list_executions(
        self, agent_id: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ExecutionRecord]:
        query = f"SELECT {_EXECUTION_COLUMNS} FROM executions"
        params: list[Any] = []
        if agent_id is not None:
            params.append(agent_id)
            query += f" WHERE agent_id = ${len(params)}"
        query += " ORDER BY started_at DESC"
        if limit is not None:
            params.append(max(limit, 0))
            query += f" LIMIT ${len(params)}"
        conn = await self._connect()
        try:
            rows = await conn.fetch(query, *params)
        finally:
            await conn.close()
        return [self._to_execution(row) for row in reversed(rows)]
