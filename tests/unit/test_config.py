"""Tests for configuration loading."""

import pytest

from agentflow.config import AgentflowConfig, load_config
from agentflow.persistence import (
    InMemoryExecutionRepository,
    SQLiteExecutionRepository,
    get_repository,
    repository_for_url,
)


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
database_url: sqlite://executions.db
external_api:
  timeout: 5
  headers:
    X-Api-Key: secret
model:
  default_model: test
"""
    )
    monkeypatch.setenv("AGENTFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("AGENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config()
    assert config.database_url == "sqlite://executions.db"
    assert config.external_api.timeout == 5
    assert config.external_api.headers == {"X-Api-Key": "secret"}
    assert config.model.default_model == "test"


def test_env_database_url_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite://from-file.db\n")
    monkeypatch.setenv("AGENTFLOW_DATABASE_URL", "sqlite://from-env.db")

    assert load_config(str(config_path)).database_url == "sqlite://from-env.db"


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv("AGENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.database_url is None
    assert config.external_api.timeout == 30.0


def test_repository_for_url_selects_backend(tmp_path):
    repo = repository_for_url(f"sqlite://{tmp_path / 'wf.db'}")
    assert isinstance(repo, SQLiteExecutionRepository)
    assert repo.db_path == str(tmp_path / "wf.db")
    assert isinstance(repository_for_url(None), InMemoryExecutionRepository)

    with pytest.raises(ValueError, match="Unsupported database backend"):
        repository_for_url("mysql://localhost/db")


def test_get_repository_builds_a_new_repository_per_call(tmp_path, monkeypatch):
    monkeypatch.delenv("AGENTFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("AGENTFLOW_CONFIG", str(tmp_path / "absent.yaml"))

    first = get_repository()
    assert isinstance(first, InMemoryExecutionRepository)
    assert get_repository() is not first

    config = AgentflowConfig(database_url=f"sqlite://{tmp_path / 'cfg.db'}")
    assert isinstance(get_repository(config), SQLiteExecutionRepository)
