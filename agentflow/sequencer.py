"""Sequential step runner and loop runner."""

from __future__ import annotations

import logging
from typing import Any, List

from .conditions import evaluate_condition
from .constants import LOOP_INDEX_VARIABLE
from .contracts import ExecutionContext, Step
from .exceptions import InvalidLoopSpec
from .steps import StepEvaluator

logger = logging.getLogger(__name__)


class StepSequencer:
    """Run an ordered list of steps, threading input between them.

    For every step:

    * a gate condition evaluating to ``False`` skips the step entirely;
      the gate is checked before the step body runs
    * a negative loop count fails the step before its body runs
    * the step result is appended to the context and to the returned list
    * ``pass_output`` makes the result the next step's input (model replies
      are forwarded as their text)
    * a ``loop`` runs after the body; its per-iteration results replace the
      step's entry and become the next input
    """

    def __init__(self, evaluator: StepEvaluator) -> None:
        self._evaluator = evaluator
        self.loops = LoopRunner(self)

    async def run(
        self, steps: List[Step], context: ExecutionContext, data: Any
    ) -> List[Any]:
        results: List[Any] = []
        current = data

        for position, step in enumerate(steps):
            gate = step.gate
            if gate and not evaluate_condition(gate, context):
                logger.debug(
                    f"Skipping step {position} ({step.kind}) for execution {context.execution_id}"
                )
                continue

            if step.loop is not None:
                LoopRunner.check_iterations(step.loop.iterations)

            result = await self._evaluator.evaluate(step, context, current)
            context.record(result)

            if step.pass_output:
                current = self._evaluator.forward_value(step, result)

            if step.loop is not None:
                result = await self.loops.run(
                    step.loop.steps, step.loop.iterations, context, current
                )
                current = result

            results.append(result)

        return results


class LoopRunner:
    """Repeat a nested sequence, exposing the iteration as ``loopIndex``."""

    def __init__(self, sequencer: StepSequencer) -> None:
        self._sequencer = sequencer

    @staticmethod
    def check_iterations(iterations: int) -> None:
        if iterations < 0:
            raise InvalidLoopSpec(f"Loop iterations must be >= 0, got {iterations}")

    async def run(
        self,
        steps: List[Step],
        iterations: int,
        context: ExecutionContext,
        data: Any,
    ) -> List[List[Any]]:
        self.check_iterations(iterations)

        results: List[List[Any]] = []
        for index in range(iterations):
            context.variables[LOOP_INDEX_VARIABLE] = index
            results.append(await self._sequencer.run(steps, context, data))
        return results
