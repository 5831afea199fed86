"""Shared constants for agentflow."""

AI_GENERATE = "ai_generate"
TOOL_CALL = "tool_call"
CONDITION = "condition"
DATA_TRANSFORM = "data_transform"
EXTERNAL_API = "external_api"

LOOP_INDEX_VARIABLE = "loopIndex"

DEFAULT_EXECUTION_LIST_LIMIT = 50
DEFAULT_EXTERNAL_METHOD = "POST"
DEFAULT_EXTERNAL_TIMEOUT = 30.0
