"""Workflow execution engine for agentflow."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional

from .agent import AgentInvoker, ModelBackend, PydanticAIBackend
from .config import AgentflowConfig, load_config
from .constants import DEFAULT_EXECUTION_LIST_LIMIT
from .contracts import AgentConfig, ExecutionContext, ExecutionStatus
from .exceptions import NotFound
from .external import ExternalApiCaller, HttpxExternalCaller
from .persistence import (
    AgentRecord,
    ExecutionRecord,
    ExecutionRepository,
    WorkflowRecord,
    get_repository,
)
from .sequencer import StepSequencer
from .steps import StepEvaluator
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

RunBody = Callable[[ExecutionContext], Awaitable[Any]]


class WorkflowExecutor:
    """Run workflows for agents and record each run as an execution.

    Collaborators are injected so concurrent executors never share tools,
    callers or model backends unless the caller chooses to.
    """

    def __init__(
        self,
        repository: ExecutionRepository | None = None,
        backend: ModelBackend | None = None,
        tools: ToolRegistry | None = None,
        external_caller: ExternalApiCaller | None = None,
        config: AgentflowConfig | None = None,
    ) -> None:
        self._config = config or load_config()
        self._repository = repository or get_repository(config=self._config)
        self._invoker = AgentInvoker(
            backend or PydanticAIBackend(),
            default_model=self._config.model.default_model,
        )
        self._tools = tools or ToolRegistry()
        self._external_caller = external_caller or HttpxExternalCaller(
            timeout=self._config.external_api.timeout,
            headers=self._config.external_api.headers,
        )

    @property
    def repository(self) -> ExecutionRepository:
        return self._repository

    @property
    def tools(self) -> ToolRegistry:
        return self._tools

    async def execute(self, agent_id: str, workflow_id: str, data: Any) -> List[Any]:
        """Run ``workflow_id`` for ``agent_id`` with ``data`` as initial input.

        Returns:
            One result per evaluated top-level step.

        Raises:
            NotFound: If the agent or workflow does not exist.
            AgentflowError: Whatever a step raised; the execution record is
                marked failed before the error propagates.
        """
        agent = await self._load_agent(agent_id)
        workflow = await self._load_workflow(workflow_id)
        sequencer = self._sequencer_for(agent.config)

        async def body(context: ExecutionContext) -> List[Any]:
            return await sequencer.run(workflow.definition.steps, context, data)

        return await self._run_recorded(agent.id, workflow.id, data, body)

    async def execute_agent(
        self, agent_id: str, data: Any, workflow_id: Optional[str] = None
    ) -> Any:
        """Run an agent directly, or through a workflow when one is given."""
        if workflow_id:
            return await self.execute(agent_id, workflow_id, data)

        agent = await self._load_agent(agent_id)

        async def body(context: ExecutionContext) -> Any:
            return await self._invoker.invoke(agent.config, data)

        return await self._run_recorded(agent.id, None, data, body)

    async def list_executions(
        self, agent_id: str, limit: int = DEFAULT_EXECUTION_LIST_LIMIT
    ) -> List[ExecutionRecord]:
        return await self._repository.list_executions(agent_id=agent_id, limit=limit)

    # ------------------------------------------------------------------
    async def _load_agent(self, agent_id: str) -> AgentRecord:
        agent = await self._repository.get_agent(agent_id)
        if agent is None:
            raise NotFound("Agent", agent_id)
        return agent

    async def _load_workflow(self, workflow_id: str) -> WorkflowRecord:
        workflow = await self._repository.get_workflow(workflow_id)
        if workflow is None:
            raise NotFound("Workflow", workflow_id)
        return workflow

    def _sequencer_for(self, agent_config: AgentConfig) -> StepSequencer:
        evaluator = StepEvaluator(
            agent_config, self._invoker, self._tools, self._external_caller
        )
        return StepSequencer(evaluator)

    async def _run_recorded(
        self,
        agent_id: str,
        workflow_id: Optional[str],
        data: Any,
        body: RunBody,
    ) -> Any:
        record = ExecutionRecord(
            agent_id=agent_id,
            workflow_id=workflow_id,
            status=ExecutionStatus.RUNNING,
            input=data,
        )
        await self._repository.create_execution(record)
        context = ExecutionContext(agent_id=agent_id, execution_id=record.id)
        logger.info(
            f"Execution {record.id} started for agent={agent_id} workflow={workflow_id}"
        )

        try:
            result = await body(context)
        except Exception as e:
            logger.error(f"Execution {record.id} failed: {e}")
            await self._repository.finish_execution(
                record.id,
                ExecutionStatus.FAILED,
                output={"error": str(e)},
                error=str(e),
            )
            raise

        await self._repository.finish_execution(
            record.id, ExecutionStatus.COMPLETED, output=result
        )
        logger.info(
            f"Execution {record.id} completed with {len(context.step_results)} step results"
        )
        return result
