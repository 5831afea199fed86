"""Persistence layer for agents, workflows and executions."""

from __future__ import annotations

from typing import Callable, Dict, Optional

from ..config import AgentflowConfig, load_config
from .inmemory import InMemoryExecutionRepository
from .models import AgentRecord, ExecutionRecord, WorkflowRecord
from .repository import ExecutionRepository
from .sqlite import SQLiteExecutionRepository

try:  # pragma: no cover - optional dependency
    from .postgres import PostgresExecutionRepository
except ImportError:  # pragma: no cover - optional dependency
    PostgresExecutionRepository = None  # type: ignore


def _postgres(database_url: str) -> ExecutionRepository:
    if PostgresExecutionRepository is None:
        raise RuntimeError(
            "Postgres support not available; install agentflow[postgres]"
        )
    return PostgresExecutionRepository(database_url)


_BACKENDS: Dict[str, Callable[[str], ExecutionRepository]] = {
    "sqlite": lambda url: SQLiteExecutionRepository(url.split("://", 1)[1]),
    "postgres": _postgres,
    "postgresql": _postgres,
}


def repository_for_url(database_url: Optional[str]) -> ExecutionRepository:
    """Build a new repository for ``database_url``.

    ``sqlite://<path>`` and ``postgres(ql)://...`` select the matching
    backend. Without a URL the repository lives in memory.
    """
    if not database_url:
        return InMemoryExecutionRepository()
    scheme = database_url.split("://", 1)[0] if "://" in database_url else ""
    builder = _BACKENDS.get(scheme)
    if builder is None:
        raise ValueError(f"Unsupported database backend: {database_url}")
    return builder(database_url)


def get_repository(config: Optional[AgentflowConfig] = None) -> ExecutionRepository:
    """Build the repository named by ``config`` (loaded when omitted).

    Each call returns a new repository; callers share one by passing it on.
    """
    config = config or load_config()
    return repository_for_url(config.database_url)


__all__ = [
    "AgentRecord",
    "ExecutionRecord",
    "WorkflowRecord",
    "ExecutionRepository",
    "InMemoryExecutionRepository",
    "SQLiteExecutionRepository",
    "PostgresExecutionRepository",
    "get_repository",
    "repository_for_url",
]
