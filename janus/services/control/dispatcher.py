"""
Dispatcher

Single consumer of the rendezvous store. Every tick:

1. GET the command key; absent means nothing is pending
2. DEL the key immediately (claim-by-delete, at most once per write)
3. Parse the tag; unknown tags are logged and dropped
4. Notify the operator, then run the recipe for (command, host OS)

Ticks never overlap. A tick that arrives while a recipe is still running
is skipped, so two executions can never run at the same time.
"""

import asyncio

from janus.common.commands import Command, OSFamily
from janus.common.exceptions import RendezvousError, UnknownCommandError
from janus.common.host import HostFacts
from janus.common.logging_setup import LogContext, get_service_logger
from janus.common.scheduler import ScheduledLoop

from ..chat.menu import escape_markdown
from ..chat.notifier import Notifier
from ..rendezvous.store import RendezvousStore
from .executor import ExecutionResult, Executor, StepResult

logger = get_service_logger("dispatcher")


def pre_execution_text(command: Command, os_family: OSFamily) -> str:
    if command is Command.SHUTDOWN:
        return f"💤 *Shutting down* {os_family.value}..."
    if os_family is OSFamily.LINUX:
        return "🔄 *Switching to Windows* (next boot)..."
    return "🔄 *Switching to Linux* (rebooting)..."


def _step_markdown(step: StepResult) -> str:
    if step.error:
        return f"`{step.invocation}` could not run: {escape_markdown(step.error)}"
    return step.describe()


def failure_text(result: ExecutionResult) -> str:
    step = result.failed_step
    index = result.failed_index
    detail = _step_markdown(step)
    if result.command is Command.SWITCH_OS and result.os is OSFamily.LINUX and index == 1:
        return (
            f"Bootloader arming failed: {detail}.\n"
            "Reboot skipped, the machine stays on Linux."
        )
    return (
        f"Command `{result.command.value}` failed at step {index}/{result.total_steps}: "
        f"{detail}"
    )


class Dispatcher:
    """Polls the command key and drives the executor"""

    def __init__(
        self,
        store: RendezvousStore,
        executor: Executor,
        notifier: Notifier,
        command_key: str,
        host_facts: HostFacts,
        interval_seconds: float,
    ):
        self.store = store
        self.executor = executor
        self.notifier = notifier
        self.command_key = command_key
        self.host_facts = host_facts
        self.interval_seconds = interval_seconds

        self._lock = asyncio.Lock()
        self._loop = ScheduledLoop(interval_seconds, self.tick, name="dispatcher")

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run(self) -> None:
        """Tick on the current task until cancelled or stopped"""
        logger.info(
            f"Dispatcher polling '{self.command_key}' every {self.interval_seconds}s",
            extra={"command_key": self.command_key},
        )
        await self._loop.run()

    def stop(self) -> None:
        self._loop.stop()

    async def tick(self) -> ExecutionResult | None:
        """
        Consume at most one pending command.

        Returns:
            The execution result, or None when nothing was executed
        """
        if self._lock.locked():
            logger.debug("Previous command still executing, skipping tick")
            return None

        async with self._lock:
            return await self._consume()

    async def _consume(self) -> ExecutionResult | None:
        try:
            raw = await self.store.get(self.command_key)
        except RendezvousError as e:
            logger.error(f"Error reading command key: {e.message}")
            return None

        if raw is None:
            return None

        logger.info(f"Received command: {raw}")

        try:
            await self.store.delete(self.command_key)
        except RendezvousError as e:
            # Not claimed; the next tick sees it again
            logger.error(f"Failed to claim command '{raw}': {e.message}")
            return None

        try:
            command = Command.parse(raw)
        except UnknownCommandError as e:
            logger.warning(f"Dropping unknown command: {e.tag!r}", extra={"tag": e.tag})
            return None

        os_family = self.host_facts.os
        with LogContext(command=command.value, os=os_family.value):
            await self.notifier.send(pre_execution_text(command, os_family))

            result = await self.executor.execute(command, os_family)

            if result.success:
                logger.info(f"Command '{command.value}' completed all {result.total_steps} step(s)")
            else:
                logger.error(f"Command '{command.value}' failed")
                await self.notifier.error(failure_text(result))

        return result
