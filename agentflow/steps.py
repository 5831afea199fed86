"""Dispatch of single workflow steps to their handlers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Dict

from .agent import AgentInvoker
from .conditions import evaluate_condition
from .constants import (
    AI_GENERATE,
    CONDITION,
    DATA_TRANSFORM,
    DEFAULT_EXTERNAL_METHOD,
    EXTERNAL_API,
    TOOL_CALL,
)
from .contracts import AgentConfig, ExecutionContext, Step
from .exceptions import ToolNotFound, UnknownStepKind
from .external import ExternalApiCaller
from .tools import ToolRegistry
from .transforms import apply_transformation

logger = logging.getLogger(__name__)

Handler = Callable[[Step, ExecutionContext, Any], Awaitable[Any]]


class StepEvaluator:
    """Execute one step against the current input.

    An evaluator is bound to the agent owning the run so ``ai_generate``
    steps can be invoked with that agent's model settings.
    """

    def __init__(
        self,
        agent_config: AgentConfig,
        invoker: AgentInvoker,
        tools: ToolRegistry,
        external_caller: ExternalApiCaller,
    ) -> None:
        self._agent_config = agent_config
        self._invoker = invoker
        self._tools = tools
        self._external_caller = external_caller
        self._handlers: Dict[str, Handler] = {
            AI_GENERATE: self._ai_generate,
            TOOL_CALL: self._tool_call,
            CONDITION: self._condition,
            DATA_TRANSFORM: self._data_transform,
            EXTERNAL_API: self._external_api,
        }

    async def evaluate(self, step: Step, context: ExecutionContext, data: Any) -> Any:
        handler = self._handlers.get(step.kind)
        if handler is None:
            raise UnknownStepKind(step.kind)
        logger.debug(f"Evaluating {step.kind} step for execution {context.execution_id}")
        return await handler(step, context, data)

    def forward_value(self, step: Step, result: Any) -> Any:
        """Value handed to the next step when ``pass_output`` is set.

        Model replies are forwarded as their text so a following step sees
        the generated content rather than the reply envelope.
        """
        if step.kind == AI_GENERATE and isinstance(result, Mapping):
            return result.get("content", result)
        return result

    async def _ai_generate(self, step: Step, context: ExecutionContext, data: Any) -> Any:
        return await self._invoker.invoke(self._agent_config, data)

    async def _tool_call(self, step: Step, context: ExecutionContext, data: Any) -> Any:
        name = step.config.get("tool") or step.config.get("toolName")
        if not name:
            raise ToolNotFound("<unnamed>")
        parameters = dict(step.config.get("parameters") or {})
        if isinstance(data, Mapping):
            parameters.update(data)
        else:
            parameters["input"] = data
        return await self._tools.execute(name, parameters)

    async def _condition(self, step: Step, context: ExecutionContext, data: Any) -> bool:
        expression = step.config.get("expression") or step.condition or ""
        return evaluate_condition(expression, context)

    async def _data_transform(
        self, step: Step, context: ExecutionContext, data: Any
    ) -> Any:
        return apply_transformation(data, step.config.get("transformation"))

    async def _external_api(self, step: Step, context: ExecutionContext, data: Any) -> Any:
        url = step.config.get("url")
        if not url:
            return data
        method = step.config.get("method", DEFAULT_EXTERNAL_METHOD)
        return await self._external_caller.call(url, method=method, payload=data)
