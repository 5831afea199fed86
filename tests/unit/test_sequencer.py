"""Step sequencing, skipping and loop tests."""

import pytest

from agentflow.agent import AgentInvoker
from agentflow.contracts import AgentConfig, ExecutionContext, Step
from agentflow.exceptions import InvalidLoopSpec, UnknownStepKind
from agentflow.sequencer import StepSequencer
from agentflow.steps import StepEvaluator


def _steps(*raw):
    return [Step.model_validate(item) for item in raw]


@pytest.fixture
def context():
    return ExecutionContext(agent_id="agent-1", execution_id="exec-1")


@pytest.fixture
def sequencer(backend, tools, caller):
    evaluator = StepEvaluator(
        AgentConfig(model="test"),
        AgentInvoker(backend, default_model="test"),
        tools,
        caller,
    )
    return StepSequencer(evaluator)


@pytest.fixture
def echo_tool(tools):
    calls = []

    def echo(params):
        calls.append(params)
        return {"echo": params}

    tools.register("echo", echo)
    return calls


@pytest.mark.asyncio
async def test_plain_steps_produce_one_result_each_in_order(sequencer, context):
    steps = _steps(
        {"kind": "data_transform"},
        {"kind": "condition", "config": {"expression": "true"}},
        {"kind": "external_api"},
    )

    results = await sequencer.run(steps, context, "input")

    assert results == ["input", True, "input"]
    assert context.step_results == results


@pytest.mark.asyncio
async def test_ai_generate_then_transform_scenario(sequencer, context):
    steps = _steps(
        {"kind": "ai_generate", "passOutput": True},
        {"kind": "data_transform"},
    )

    results = await sequencer.run(steps, context, "hello")

    assert results == [{"content": "HELLO"}, "HELLO"]


@pytest.mark.asyncio
async def test_pass_output_threads_results(sequencer, context, echo_tool):
    steps = _steps(
        {"kind": "data_transform", "pass_output": True,
         "config": {"transformation": {"type": "merge", "values": {"step": 1}}}},
        {"kind": "tool_call", "config": {"tool": "echo"}},
        {"kind": "tool_call", "config": {"tool": "echo"}},
    )

    await sequencer.run(steps, context, {"user": "ada"})

    # step 2 did not pass its output, so step 3 got the same input as step 2
    assert echo_tool == [{"user": "ada", "step": 1}, {"user": "ada", "step": 1}]


@pytest.mark.asyncio
async def test_false_condition_skips_step_and_side_effects(sequencer, context, echo_tool):
    """With `skip` set, a gate testing `skip == false` keeps the tool from running.

    The top-level run with `skip == true` and no variables is covered in the
    executor tests.
    """
    context.variables["skip"] = True
    steps = _steps(
        {"kind": "tool_call", "condition": "context.variables.skip == false",
         "config": {"tool": "echo"}},
    )

    results = await sequencer.run(steps, context, {"x": 1})

    assert results == []
    assert context.step_results == []
    assert echo_tool == []


@pytest.mark.asyncio
async def test_skipped_step_does_not_propagate_input(sequencer, context, echo_tool):
    steps = _steps(
        {"kind": "data_transform", "pass_output": True, "condition": "false",
         "config": {"transformation": {"type": "merge", "values": {"changed": True}}}},
        {"kind": "tool_call", "config": {"tool": "echo"}},
    )

    results = await sequencer.run(steps, context, {"x": 1})

    assert len(results) == 1
    assert echo_tool == [{"x": 1}]


@pytest.mark.asyncio
async def test_undefined_condition_variable_skips(sequencer, context, echo_tool):
    steps = _steps(
        {"kind": "tool_call", "condition": "context.variables.nope == 1",
         "config": {"tool": "echo"}},
    )
    assert await sequencer.run(steps, context, {}) == []
    assert echo_tool == []


@pytest.mark.asyncio
async def test_condition_step_returns_boolean_result(sequencer, context):
    context.variables["tier"] = "pro"
    steps = _steps(
        {"kind": "condition", "condition": "context.variables.tier == 'pro'"},
        {"kind": "condition", "condition": "context.variables.tier == 'free'"},
    )

    assert await sequencer.run(steps, context, None) == [True, False]


@pytest.mark.asyncio
async def test_loop_exposes_iteration_index(sequencer, context):
    steps = _steps(
        {
            "kind": "data_transform",
            "loop": {
                "iterations": 3,
                "steps": [
                    {"kind": "condition", "condition": "context.variables.loopIndex == 1"}
                ],
            },
        },
        {"kind": "data_transform"},
    )

    results = await sequencer.run(steps, context, "seed")

    loop_results = [[False], [True], [False]]
    assert results == [loop_results, loop_results]
    # loop body step, three nested steps and the trailing transform
    assert len(context.step_results) == 5


@pytest.mark.asyncio
async def test_loop_iterations_see_previous_mutations(sequencer, context, tools):
    seen = []

    def bump(params):
        seen.append(context.variables.get("total", 0))
        context.variables["total"] = context.variables.get("total", 0) + 1
        return context.variables["total"]

    tools.register("bump", bump)
    steps = _steps(
        {"kind": "data_transform",
         "loop": {"iterations": 3, "steps": [{"kind": "tool_call", "config": {"tool": "bump"}}]}},
    )

    results = await sequencer.run(steps, context, {})

    assert seen == [0, 1, 2]
    assert results == [[[1], [2], [3]]]


@pytest.mark.asyncio
async def test_zero_iteration_loop(sequencer, context):
    context.variables["keep"] = "me"

    results = await sequencer.loops.run(
        _steps({"kind": "data_transform"}), 0, context, "input"
    )

    assert results == []
    assert context.variables == {"keep": "me"}
    assert context.step_results == []


@pytest.mark.asyncio
async def test_negative_iterations_rejected(sequencer, context, echo_tool):
    with pytest.raises(InvalidLoopSpec):
        await sequencer.loops.run(
            _steps({"kind": "tool_call", "config": {"tool": "echo"}}), -1, context, {}
        )
    assert echo_tool == []
    assert "loopIndex" not in context.variables


@pytest.mark.asyncio
async def test_unknown_step_kind(sequencer, context):
    with pytest.raises(UnknownStepKind, match="send_sms"):
        await sequencer.run(_steps({"type": "send_sms"}), context, None)


@pytest.mark.asyncio
async def test_external_api_step_posts_input(sequencer, context, caller):
    steps = _steps(
        {"kind": "external_api",
         "config": {"url": "https://hooks.example.com/booking", "method": "PUT"}},
    )

    results = await sequencer.run(steps, context, {"booking": 7})

    assert results == [{"ok": True}]
    assert caller.calls == [("https://hooks.example.com/booking", "PUT", {"booking": 7})]


@pytest.mark.asyncio
async def test_tool_call_wraps_scalar_input(sequencer, context, echo_tool):
    steps = _steps(
        {"kind": "tool_call",
         "config": {"tool": "echo", "parameters": {"limit": 3}}},
    )

    await sequencer.run(steps, context, "plumbers")

    assert echo_tool == [{"limit": 3, "input": "plumbers"}]


@pytest.mark.asyncio
async def test_negative_loop_fails_before_step_body(sequencer, context, echo_tool):
    steps = _steps(
        {
            "kind": "tool_call",
            "config": {"tool": "echo"},
            "loop": {"iterations": -1, "steps": [{"kind": "data_transform"}]},
        },
    )

    with pytest.raises(InvalidLoopSpec):
        await sequencer.run(steps, context, {"x": 1})

    assert echo_tool == []
    assert context.step_results == []


@pytest.mark.asyncio
async def test_nested_negative_loop_stops_before_its_step(sequencer, context, echo_tool):
    steps = _steps(
        {"kind": "tool_call", "pass_output": True, "config": {"tool": "echo"}},
        {
            "kind": "data_transform",
            "loop": {
                "iterations": 1,
                "steps": [
                    {
                        "kind": "tool_call",
                        "config": {"tool": "echo"},
                        "loop": {"iterations": -2},
                    }
                ],
            },
        },
    )

    with pytest.raises(InvalidLoopSpec):
        await sequencer.run(steps, context, {"x": 1})

    # only the first top-level step ran
    assert echo_tool == [{"x": 1}]
