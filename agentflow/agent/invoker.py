"""Single model calls configured per agent."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from ..contracts import AgentConfig
from ..exceptions import ModelInvocationError
from .backends import GenerationRequest, ModelBackend

logger = logging.getLogger(__name__)


def render_prompt(value: Any) -> str:
    """Strings are sent verbatim, other inputs as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class AgentInvoker:
    """Wrap one backend call with an agent's model settings.

    Failures are not retried; every backend error surfaces as
    :class:`ModelInvocationError`.
    """

    def __init__(self, backend: ModelBackend, default_model: str) -> None:
        self._backend = backend
        self._default_model = default_model

    async def invoke(self, config: AgentConfig, prompt: Any) -> Dict[str, str]:
        try:
            request = GenerationRequest(
                prompt=render_prompt(prompt),
                model=config.model or self._default_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                system_prompt=config.system_prompt,
            )
            reply = await self._backend.generate(request)
            content, tokens_used = reply.content, reply.tokens_used
        except ModelInvocationError:
            raise
        except (ValidationError, AttributeError) as exc:
            raise ModelInvocationError(f"Malformed model response: {exc}") from exc
        except Exception as exc:
            raise ModelInvocationError(f"Model invocation failed: {exc}") from exc

        logger.debug(
            f"Model {request.model} answered with {tokens_used} tokens"
        )
        if not isinstance(content, str):
            raise ModelInvocationError(
                f"Malformed model response: expected text, got {type(content).__name__}"
            )
        return {"content": content}
