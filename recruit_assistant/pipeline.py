from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger("recruit.pipeline")


@dataclass
class PipelineStep:
    """Named step for the reply pipeline."""
    name: str
    fn: Callable[[object], None]
    skip_if: Optional[Callable[[object], bool]] = None


class StepRunner:
    """Runs reply steps in order, skipping those whose guard says so."""

    def __init__(self, steps: List[PipelineStep]) -> None:
        """Purpose: Initialize the runner with an ordered list of steps.
        Inputs/Outputs: Input is a list of PipelineStep; no return value.
        Side Effects / State: Stores the step list for later execution.
        Dependencies: None beyond PipelineStep definitions.
        Failure Modes: None; assumes valid callables in steps.
        If Removed: The assistant cannot express its reply steps.
        Testing Notes: Provide a minimal step list and ensure order is preserved.
        """
        self._steps = steps

    def run(self, context: object) -> List[str]:
        """Purpose: Execute steps in order and report which ones ran.
        Inputs/Outputs: Input is a mutable context object; returns names of executed steps.
        Side Effects / State: Invokes step functions that may mutate context.
        Dependencies: Depends on PipelineStep.fn and PipelineStep.skip_if semantics.
        Failure Modes: Exceptions in step functions propagate to the caller after the
            failing step is logged; later steps do not run.
        If Removed: The model fallback runs even after a local reply was built.
        Testing Notes: Verify skip_if and error propagation with simple steps.
        """
        # Iterate steps and honor skip_if guards.
        executed: List[str] = []
        for step in self._steps:
            if step.skip_if and step.skip_if(context):
                logger.debug("step=%s status=skipped", step.name)
                continue
            started = time.perf_counter()
            try:
                step.fn(context)
            except Exception:
                logger.warning("step=%s status=failed", step.name)
                raise
            executed.append(step.name)
            logger.debug("step=%s status=success elapsed_ms=%.1f", step.name, (time.perf_counter() - started) * 1000)
        return executed
