from .backends import (
    GenerationReply,
    GenerationRequest,
    ModelBackend,
    PydanticAIBackend,
)
from .invoker import AgentInvoker, render_prompt

__all__ = [
    "AgentInvoker",
    "GenerationReply",
    "GenerationRequest",
    "ModelBackend",
    "PydanticAIBackend",
    "render_prompt",
]
