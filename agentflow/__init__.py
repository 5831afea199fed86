"""agentflow: sequential workflow execution for AI agents."""

from .agent import AgentInvoker, ModelBackend, PydanticAIBackend
from .conditions import evaluate_condition
from .contracts import (
    AgentConfig,
    ExecutionContext,
    ExecutionStatus,
    LoopSpec,
    Step,
    WorkflowDefinition,
)
from .execute import WorkflowExecutor
from .external import HttpxExternalCaller
from .persistence import (
    AgentRecord,
    ExecutionRecord,
    InMemoryExecutionRepository,
    WorkflowRecord,
    get_repository,
)
from .sequencer import LoopRunner, StepSequencer
from .steps import StepEvaluator
from .tools import ToolRegistry

__version__ = "0.1.0"
__all__ = [
    "AgentConfig",
    "AgentInvoker",
    "AgentRecord",
    "ExecutionContext",
    "ExecutionRecord",
    "ExecutionStatus",
    "HttpxExternalCaller",
    "InMemoryExecutionRepository",
    "LoopRunner",
    "LoopSpec",
    "ModelBackend",
    "PydanticAIBackend",
    "Step",
    "StepEvaluator",
    "StepSequencer",
    "ToolRegistry",
    "WorkflowDefinition",
    "WorkflowExecutor",
    "WorkflowRecord",
    "evaluate_condition",
    "get_repository",
]
