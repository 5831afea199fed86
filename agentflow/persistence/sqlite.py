"""SQLite implementation of the execution repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..contracts import AgentConfig, ExecutionStatus, WorkflowDefinition
from ..exceptions import NotFound
from .models import AgentRecord, ExecutionRecord, WorkflowRecord
from .repository import ExecutionRepository, check_transition, dump_json, load_json

_EXECUTION_COLUMNS = (
    "id, agent_id, workflow_id, status, input, output, error, started_at, completed_at"
)


class SQLiteExecutionRepository(ExecutionRepository):
    """Persist agents, workflows and executions using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS agents (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                config TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS workflows (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                definition TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS executions (
                id TEXT PRIMARY KEY,
                agent_id TEXT NOT NULL,
                workflow_id TEXT,
                status TEXT NOT NULL,
                input TEXT,
                output TEXT,
                error TEXT,
                started_at TEXT NOT NULL,
                completed_at TEXT
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def _finish(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Any,
        error: Optional[str],
    ) -> None:
        row = self._fetchone("SELECT status FROM executions WHERE id = ?", execution_id)
        if row is None:
            raise NotFound("Execution", execution_id)
        check_transition(execution_id, ExecutionStatus(row["status"]), status)
        self._execute(
            """
            UPDATE executions
            SET status = ?, output = ?, error = ?, completed_at = ?
            WHERE id = ? AND status = ?
            """,
            status.value,
            dump_json(output),
            error,
            datetime.now(timezone.utc).isoformat(),
            execution_id,
            ExecutionStatus.RUNNING.value,
        )

    @staticmethod
    def _to_execution(row: sqlite3.Row) -> ExecutionRecord:
        return ExecutionRecord(
            id=row["id"],
            agent_id=row["agent_id"],
            workflow_id=row["workflow_id"],
            status=ExecutionStatus(row["status"]),
            input=load_json(row["input"]),
            output=load_json(row["output"]),
            error=row["error"],
            started_at=datetime.fromisoformat(row["started_at"]),
            completed_at=(
                datetime.fromisoformat(row["completed_at"])
                if row["completed_at"]
                else None
            ),
        )

    # ------------------------------------------------------------------
    # Repository API
    async def save_agent(self, agent: AgentRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR REPLACE INTO agents (id, name, description, config) VALUES (?, ?, ?, ?)",
            agent.id,
            agent.name,
            agent.description,
            agent.config.model_dump_json(),
        )

    async def get_agent(self, agent_id: str) -> AgentRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT id, name, description, config FROM agents WHERE id = ?",
            agent_id,
        )
        if not row:
            return None
        return AgentRecord(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            config=AgentConfig.model_validate(json.loads(row["config"])),
        )

    async def save_workflow(self, workflow: WorkflowRecord) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT OR REPLACE INTO workflows (id, agent_id, name, description, definition)
            VALUES (?, ?, ?, ?, ?)
            """,
            workflow.id,
            workflow.agent_id,
            workflow.name,
            workflow.description,
            workflow.definition.model_dump_json(),
        )

    async def get_workflow(self, workflow_id: str) -> WorkflowRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT id, agent_id, name, description, definition FROM workflows WHERE id = ?",
            workflow_id,
        )
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
        await asyncio.to_thread(
            self._execute,
            f"INSERT INTO executions ({_EXECUTION_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            record.id,
            record.agent_id,
            record.workflow_id,
            record.status.value,
            dump_json(record.input),
            dump_json(record.output) if record.output is not None else None,
            record.error,
            record.started_at.isoformat(),
            record.completed_at.isoformat() if record.completed_at else None,
        )

    async def finish_execution(
        self,
        execution_id: str,
        status: ExecutionStatus,
        output: Any = None,
        error: Optional[str] = None,
    ) -> None:
        await asyncio.to_thread(self._finish, execution_id, status, output, error)

    async def get_execution(self, execution_id: str) -> ExecutionRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            f"SELECT {_EXECUTION_COLUMNS} FROM executions WHERE id = ?",
            execution_id,
        )
        return self._to_execution(row) if row else None

    async def list_executions(
        self, agent_id: Optional[str] = None, limit: Optional[int] = None
    ) -> list[ExecutionRecord]:
        query = f"SELECT {_EXECUTION_COLUMNS} FROM executions"
        params: list[Any] = []
        if agent_id is not None:
            query += " WHERE agent_id = ?"
            params.append(agent_id)
        query += " ORDER BY started_at DESC, rowid DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(max(limit, 0))
        rows = await asyncio.to_thread(self._fetchall, query, *params)
        return [self._to_execution(row) for row in reversed(rows)]
