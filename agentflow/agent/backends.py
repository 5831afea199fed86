"""Language-model backends used by the agent invoker."""

from __future__ import annotations

from typing import Optional, Protocol, Union

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings


class GenerationRequest(BaseModel):
    """Single prompt sent to a model backend."""

    prompt: str
    model: str
    temperature: float
    max_tokens: int
    system_prompt: str = ""


class GenerationReply(BaseModel):
    """Normalized model response."""

    content: str
    tokens_used: int = 0


class ModelBackend(Protocol):
    """Protocol for model backends."""

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        """Produce a completion for ``request``."""


class PydanticAIBackend:
    """Run requests through a throwaway ``pydantic_ai.Agent``.

    ``model`` overrides the model named in each request, which lets tests and
    local runs substitute ``TestModel``/``FunctionModel`` instances.
    """

    def __init__(self, model: Optional[Union[Model, str]] = None) -> None:
        self._model = model

    async def generate(self, request: GenerationRequest) -> GenerationReply:
        agent = Agent(
            output_type=str,
            system_prompt=request.system_prompt or (),
        )
        result = await agent.run(
            request.prompt,
            model=self._model or request.model,
            model_settings=ModelSettings(
                temperature=request.temperature, max_tokens=request.max_tokens
            ),
        )
        usage = result.usage
        return GenerationReply(
            content=result.output,
            tokens_used=usage.total_tokens or 0,
        )
