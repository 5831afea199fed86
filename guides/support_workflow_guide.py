"""Run a small support workflow with the offline test model."""

import asyncio

from pydantic import BaseModel

from agentflow import (
    AgentConfig,
    AgentRecord,
    InMemoryExecutionRepository,
    PydanticAIBackend,
    ToolRegistry,
    WorkflowDefinition,
    WorkflowExecutor,
    WorkflowRecord,
)


class LookupParams(BaseModel):
    input: str


async def main():
    print("🚀 Support workflow")

    repository = InMemoryExecutionRepository()
    tools = ToolRegistry()

    @tools.tool(parameters=LookupParams)
    def lookup_order(params: LookupParams) -> dict:
        """Find an order mentioned in the reply."""
        return {"order": "A-123", "reply": params.input}

    executor = WorkflowExecutor(
        repository=repository, backend=PydanticAIBackend("test"), tools=tools
    )

    await repository.save_agent(
        AgentRecord(
            id="support",
            name="Support bot",
            config=AgentConfig(system_prompt="Answer support tickets briefly"),
        )
    )
    await repository.save_workflow(
        WorkflowRecord(
            id="triage",
            agent_id="support",
            name="Ticket triage",
            definition=WorkflowDefinition.model_validate(
                {
                    "steps": [
                        {"type": "ai_generate", "passOutput": True},
                        {
                            "type": "tool_call",
                            "passOutput": True,
                            "config": {"tool": "lookup_order"},
                        },
                        {
                            "type": "data_transform",
                            "condition": "context.stepResults.length == 2",
                            "config": {
                                "transformation": {"type": "select", "path": "order"}
                            },
                        },
                    ]
                }
            ),
        )
    )

    results = await executor.execute("support", "triage", "Where is my order?")
    print(f"✅ Results: {results}")

    for record in await executor.list_executions("support"):
        print(f"📋 {record.id}: {record.status.value}")


if __name__ == "__main__":
    asyncio.run(main())
