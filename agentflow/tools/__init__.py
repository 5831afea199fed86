from .registry import RegisteredTool, ToolRegistry

__all__ = ["RegisteredTool", "ToolRegistry"]
