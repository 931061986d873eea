"""
Executor

Runs a recipe as a sequence of child processes. Each step is spawned with
no stdin and discarded output, awaited to completion, and the sequence
stops at the first step that fails to spawn or exits non-zero.
"""

import asyncio
import time
from dataclasses import dataclass, field

from janus.common.commands import Command, OSFamily
from janus.common.exceptions import ExecutionError
from janus.common.logging_setup import get_service_logger, log_step

from .recipes import ProcessInvocation, RecipeTable

logger = get_service_logger("executor")


@dataclass
class StepResult:
    """Outcome of one step"""
    invocation: ProcessInvocation
    returncode: int | None = None
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe(self) -> str:
        if self.error:
            return f"`{self.invocation}` could not run: {self.error}"
        return f"`{self.invocation}` exited with code {self.returncode}"


@dataclass
class ExecutionResult:
    """Outcome of a whole recipe"""
    command: Command
    os: OSFamily
    total_steps: int
    steps: list[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.steps) == self.total_steps and all(s.ok for s in self.steps)

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if not step.ok:
                return step
        return None

    @property
    def failed_index(self) -> int | None:
        """1-based position of the failed step"""
        for index, step in enumerate(self.steps, 1):
            if not step.ok:
                return index
        return None


class Executor:
    """OS-specific command runner"""

    def __init__(self, recipes: RecipeTable, step_timeout: float | None = None):
        self.recipes = recipes
        self.step_timeout = step_timeout

    async def execute(self, command: Command, os_family: OSFamily) -> ExecutionResult:
        steps = self.recipes.lookup(command, os_family)
        result = ExecutionResult(command=command, os=os_family, total_steps=len(steps))

        for index, invocation in enumerate(steps, 1):
            logger.info(
                f"Executing step {index}/{len(steps)}: {invocation}",
                extra={"command": command.value, "step": index},
            )
            step = await self._run_step(invocation)
            result.steps.append(step)

            if not step.ok:
                skipped = len(steps) - index
                if skipped:
                    logger.error(
                        f"Aborting {command.value}: step {index} failed, "
                        f"skipping {skipped} remaining step(s)"
                    )
                break

        return result

    async def _spawn(self, invocation: ProcessInvocation) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                invocation.program,
                *invocation.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise ExecutionError(str(e), program=invocation.program) from e

    async def _run_step(self, invocation: ProcessInvocation) -> StepResult:
        start = time.monotonic()
        step = StepResult(invocation=invocation)

        try:
            process = await self._spawn(invocation)
        except ExecutionError as e:
            step.error = e.reason
            step.elapsed_ms = (time.monotonic() - start) * 1000
            logger.error(f"Failed to start {invocation.program}: {e.message}")
            return step

        try:
            step.returncode = await asyncio.wait_for(process.wait(), timeout=self.step_timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            step.error = f"timed out after {self.step_timeout}s"

        step.elapsed_ms = (time.monotonic() - start) * 1000
        log_step(logger, invocation.argv, step.returncode, step.elapsed_ms)
        return step
