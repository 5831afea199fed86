"""Command line interface for running agentflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError

from agentflow.agent import PydanticAIBackend
from agentflow.cli_utils.definitions import load_definitions, register_definitions
from agentflow.config import load_config
from agentflow.execute import WorkflowExecutor
from agentflow.exceptions import AgentflowError
from agentflow.persistence import get_repository

app = typer.Typer(help="CLI for agentflow workflows")

# Command groups
workflow_app = typer.Typer(help="Commands for running workflows")
execution_app = typer.Typer(help="Commands for inspecting executions")

app.add_typer(workflow_app, name="workflow")
app.add_typer(execution_app, name="execution")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for agentflow"),
) -> None:
    """agentflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_input(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _load_or_exit(path: Path):
    if not path.exists():
        typer.secho("Specified path does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        return load_definitions(path)
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        typer.secho(f"Invalid definition file: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@workflow_app.command("run")
def workflow_run(
    definition_path: Path,
    input: Optional[str] = typer.Option(None, "--input", help="JSON input payload"),
    workflow: Optional[str] = typer.Option(None, help="Workflow id to run"),
    agent: Optional[str] = typer.Option(
        None, help="Agent id (defaults to the workflow's agent)"
    ),
    model: Optional[str] = typer.Option(
        None, help="Model overriding every agent's configured model, e.g. 'test'"
    ),
) -> None:
    """
    Register the definitions in a file and run one workflow.

    Args:
        definition_path: YAML or JSON file declaring agents and workflows
        input: JSON payload given to the first step; non-JSON text is passed as a string
        workflow: Workflow id, required when the file declares several
        agent: Agent id, defaults to the workflow's owning agent
        model: Model override for all agents

    Example:
        agentflow workflow run ./support.yaml --input '{"ticket": 42}'
        agentflow workflow run ./support.yaml --workflow triage --model test
    """
    definitions = _load_or_exit(definition_path)
    try:
        selected = definitions.pick_workflow(workflow)
    except LookupError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    config = load_config()
    repository = get_repository(config)
    executor = WorkflowExecutor(
        repository=repository,
        backend=PydanticAIBackend(model) if model else None,
        config=config,
    )

    async def _run() -> Any:
        await register_definitions(repository, definitions)
        return await executor.execute(
            agent or selected.agent_id, selected.id, _parse_input(input)
        )

    try:
        result = asyncio.run(_run())
    except AgentflowError as exc:
        typer.secho(f"Workflow failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2, default=str))


@workflow_app.command("validate")
def workflow_validate(definition_path: Path) -> None:
    """
    Parse a definition file and summarise its contents.

    Example:
        agentflow workflow validate ./support.yaml
        # Output: agent support - Support bot
        #         workflow triage (agent support): 3 steps
    """
    definitions = _load_or_exit(definition_path)
    for item in definitions.agents:
        typer.echo(f"agent {item.id} - {item.name}")
    for item in definitions.workflows:
        typer.echo(
            f"workflow {item.id} (agent {item.agent_id}): "
            f"{len(item.definition.steps)} steps"
        )


@execution_app.command("list")
def execution_list(
    agent: Optional[str] = typer.Option(None, help="Only show this agent's executions"),
    limit: int = typer.Option(50, help="Maximum number of executions"),
) -> None:
    """
    List executions with their status.

    Example:
        agentflow execution list --agent support
        # Output: 0b1c...    support    triage    completed
    """
    repo = get_repository()
    executions = asyncio.run(repo.list_executions(agent_id=agent, limit=limit))
    if not executions:
        typer.echo("No executions found")
        return
    for record in executions:
        typer.echo(
            f"{record.id}\t{record.agent_id}\t{record.workflow_id or '-'}\t{record.status.value}"
        )


@execution_app.command("show")
def execution_show(execution_id: str) -> None:
    """
    Show one execution with its input and output.

    Example:
        agentflow execution show 0b1c...
    """
    repo = get_repository()
    record = asyncio.run(repo.get_execution(execution_id))
    if record is None:
        typer.echo("Execution not found")
        raise typer.Exit(code=1)
    typer.echo(f"Execution {record.id}: {record.status.value}")
    typer.echo(f"Agent: {record.agent_id}")
    if record.workflow_id:
        typer.echo(f"Workflow: {record.workflow_id}")
    typer.echo(f"Started: {record.started_at}")
    if record.completed_at:
        typer.echo(f"Completed: {record.completed_at}")
    typer.echo(f"Input: {json.dumps(record.input, default=str)}")
    if record.error:
        typer.echo(f"Error: {record.error}")
    else:
        typer.echo(f"Output: {json.dumps(record.output, default=str)}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
