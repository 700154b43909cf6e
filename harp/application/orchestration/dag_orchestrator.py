"""
Workflow Orchestration Module

Architectural Intent:
- DAG-based workflow execution for the per-host deploy steps
  (archive, upload, scripts, deploy, trim)
- The step graph is planned once into dependency levels; every step of a
  level runs concurrently and sees the results of all earlier levels

Failure handling:
- A failed critical step stops the workflow with an OrchestrationError that
  keeps the step name and the original exception
- A failed non-critical step is logged; its exception becomes its result
- Cancellation is never swallowed
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Awaitable, Any, Optional

logger = logging.getLogger(__name__)

StepResults = dict[str, Any]


@dataclass
class WorkflowStep:
    name: str
    execute: Callable[[dict[str, Any], StepResults], Awaitable[Any]]
    depends_on: list[str] = field(default_factory=list)
    is_critical: bool = True


class OrchestrationError(Exception):
    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.step = step
        self.cause = cause


class DAGOrchestrator:
    def __init__(self, steps: list[WorkflowStep]) -> None:
        self.steps: dict[str, WorkflowStep] = {s.name: s for s in steps}
        self._plan: Optional[list[list[str]]] = None

    def levels(self) -> list[list[str]]:
        """Groups step names by dependency depth, each level sorted by name."""
        if self._plan is not None:
            return self._plan

        for step in self.steps.values():
            missing = [dep for dep in step.depends_on if dep not in self.steps]
            if missing:
                raise OrchestrationError(
                    f"Step {step.name} has unsatisfied dependencies: {', '.join(missing)}",
                    step=step.name,
                )

        placed: set[str] = set()
        plan: list[list[str]] = []
        remaining = set(self.steps)
        while remaining:
            level = sorted(
                name
                for name in remaining
                if all(dep in placed for dep in self.steps[name].depends_on)
            )
            if not level:
                raise OrchestrationError(
                    f"Circular dependency among steps: {', '.join(sorted(remaining))}"
                )
            plan.append(level)
            placed.update(level)
            remaining.difference_update(level)

        self._plan = plan
        return plan

    async def _run_level(
        self, level: list[str], context: dict[str, Any], completed: StepResults
    ) -> None:
        outcomes = await asyncio.gather(
            *(self.steps[name].execute(context, completed) for name in level),
            return_exceptions=True,
        )
        for name, outcome in zip(level, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                if self.steps[name].is_critical:
                    raise OrchestrationError(
                        f"Critical step {name} failed: {outcome}",
                        step=name,
                        cause=outcome,
                    ) from outcome
                logger.warning("Non-critical step %s failed: %s", name, outcome)
            completed[name] = outcome

    async def execute(self, context: dict[str, Any]) -> StepResults:
        completed: StepResults = {}
        for level in self.levels():
            await self._run_level(level, context, completed)
        return completed
