from __future__ import annotations

import os
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import DEFAULT_EXTERNAL_TIMEOUT


class ExternalApiConfig(BaseModel):
    """Settings for the default external API caller."""

    timeout: float = DEFAULT_EXTERNAL_TIMEOUT
    headers: Dict[str, str] = Field(default_factory=dict)


class ModelConfig(BaseModel):
    """Model backend defaults."""

    default_model: str = "openai:gpt-4o-mini"


class AgentflowConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    external_api: ExternalApiConfig = ExternalApiConfig()
    model: ModelConfig = ModelConfig()


def load_config(path: Optional[str] = None) -> AgentflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to AGENTFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("AGENTFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AgentflowConfig(**data)
    else:
        config = AgentflowConfig()

    env_db_url = os.getenv("AGENTFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
