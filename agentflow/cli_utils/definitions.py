"""Load agent and workflow definitions from YAML or JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from ..persistence import AgentRecord, ExecutionRepository, WorkflowRecord


class DefinitionFile(BaseModel):
    """Agents and workflows declared together in one file."""

    agents: List[AgentRecord] = Field(default_factory=list)
    workflows: List[WorkflowRecord] = Field(default_factory=list)

    def pick_workflow(self, workflow_id: Optional[str] = None) -> WorkflowRecord:
        """Return the requested workflow, or the only one declared."""
        if workflow_id is not None:
            for workflow in self.workflows:
                if workflow.id == workflow_id:
                    return workflow
            raise LookupError(f"Workflow {workflow_id} is not declared in the file")
        if len(self.workflows) != 1:
            raise LookupError(
                f"File declares {len(self.workflows)} workflows; pass --workflow"
            )
        return self.workflows[0]


def load_definitions(path: Path) -> DefinitionFile:
    """Parse ``path`` as JSON when it ends in ``.json``, YAML otherwise."""
    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    return DefinitionFile.model_validate(data or {})


async def register_definitions(
    repository: ExecutionRepository, definitions: DefinitionFile
) -> None:
    for agent in definitions.agents:
        await repository.save_agent(agent)
    for workflow in definitions.workflows:
        await repository.save_workflow(workflow)
