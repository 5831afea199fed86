"""Shared fixtures: stub collaborators and an in-memory executor."""

from typing import Any, List, Tuple

import pytest

from agentflow import WorkflowExecutor
from agentflow.agent import GenerationReply, GenerationRequest
from agentflow.config import AgentflowConfig
from agentflow.contracts import AgentConfig, WorkflowDefinition
from agentflow.persistence import (
    AgentRecord,
    InMemoryExecutionRepository,
    WorkflowRecord,
)
from agentflow.tools import ToolRegistry


class UppercaseBackend:
    """Model backend answering with the prompt in upper case."""

    def __init__(self) -> None:
        self.requests: List[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        self.requests.append(request)
        return GenerationReply(
            content=request.prompt.upper(), tokens_used=len(request.prompt)
        )


class FailingBackend:
    def __init__(self) -> None:
        self.calls = 0

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        self.calls += 1
        raise TimeoutError("model backend timed out")


class RecordingCaller:
    """External API caller that records calls instead of sending them."""

    def __init__(self, response: Any = None) -> None:
        self.calls: List[Tuple[str, str, Any]] = []
        self.response = {"ok": True} if response is None else response

    async def call(self, url: str, method: str = "POST", payload: Any = None) -> Any:
        self.calls.append((url, method, payload))
        return self.response


@pytest.fixture
def repository():
    return InMemoryExecutionRepository()


@pytest.fixture
def backend():
    return UppercaseBackend()


@pytest.fixture
def tools():
    return ToolRegistry()


@pytest.fixture
def caller():
    return RecordingCaller()


@pytest.fixture
def agent():
    return AgentRecord(
        id="agent-1",
        name="Support agent",
        config=AgentConfig(model="test", temperature=0.2, system_prompt="Be brief"),
    )


@pytest.fixture
def executor(repository, backend, tools, caller):
    return WorkflowExecutor(
        repository=repository,
        backend=backend,
        tools=tools,
        external_caller=caller,
        config=AgentflowConfig(),
    )


@pytest.fixture
def make_workflow(repository, agent):
    """Store ``agent`` and a workflow made of ``steps``; return the workflow."""

    async def _make(steps, workflow_id: str = "workflow-1") -> WorkflowRecord:
        await repository.save_agent(agent)
        workflow = WorkflowRecord(
            id=workflow_id,
            agent_id=agent.id,
            name="test workflow",
            definition=WorkflowDefinition.model_validate({"steps": steps}),
        )
        await repository.save_workflow(workflow)
        return workflow

    return _make


@pytest.fixture
def failing_backend():
    return FailingBackend()


@pytest.fixture
def failing_executor(repository, failing_backend, tools, caller):
    return WorkflowExecutor(
        repository=repository,
        backend=failing_backend,
        tools=tools,
        external_caller=caller,
        config=AgentflowConfig(),
    )
