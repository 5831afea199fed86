"""Registry of callable tools available to ``tool_call`` steps."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import ToolExecutionError, ToolNotFound

logger = logging.getLogger(__name__)

ToolFunc = Callable[..., Union[Any, Awaitable[Any]]]


class RegisteredTool(BaseModel):
    """A tool entry: name, description, optional parameter model and callable."""

    name: str
    description: str = ""
    parameters: Optional[Type[BaseModel]] = None
    func: ToolFunc

    def describe(self) -> Dict[str, Any]:
        """Describe the tool, including its JSON schema when typed."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": (
                self.parameters.model_json_schema() if self.parameters else None
            ),
        }


class ToolRegistry:
    """Explicit, per-executor collection of tools.

    Tools receive their parameters as a single argument: an instance of the
    tool's parameter model when one is declared, otherwise the raw mapping.
    Sync and async callables are both accepted.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, RegisteredTool] = {}

    def register(
        self,
        name: str,
        func: ToolFunc,
        description: str = "",
        parameters: Optional[Type[BaseModel]] = None,
    ) -> RegisteredTool:
        tool = RegisteredTool(
            name=name, description=description, parameters=parameters, func=func
        )
        if name in self._tools:
            logger.warning(f"Replacing registered tool {name}")
        self._tools[name] = tool
        return tool

    def tool(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        parameters: Optional[Type[BaseModel]] = None,
    ) -> Callable[[ToolFunc], ToolFunc]:
        """Decorator form of :meth:`register`."""

        def decorator(func: ToolFunc) -> ToolFunc:
            self.register(
                name or func.__name__,
                func,
                description=description or inspect.getdoc(func) or "",
                parameters=parameters,
            )
            return func

        return decorator

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> RegisteredTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(name)
        return tool

    def list_tools(self) -> List[RegisteredTool]:
        return list(self._tools.values())

    def get_schema(self, name: str) -> Optional[Dict[str, Any]]:
        tool = self._tools.get(name)
        return tool.describe() if tool else None

    async def execute(self, name: str, parameters: Dict[str, Any]) -> Any:
        """Validate ``parameters`` and run the named tool.

        Raises:
            ToolNotFound: If no tool is registered under ``name``.
            ToolExecutionError: If validation fails or the tool raises.
        """
        tool = self.get(name)
        try:
            args: Any = (
                tool.parameters.model_validate(parameters)
                if tool.parameters
                else parameters
            )
            result = tool.func(args)
            if inspect.isawaitable(result):
                result = await result
        except ValidationError as exc:
            raise ToolExecutionError(name, f"invalid parameters: {exc}") from exc
        except Exception as exc:
            raise ToolExecutionError(name, str(exc)) from exc
        logger.debug(f"Tool {name} executed")
        return result
