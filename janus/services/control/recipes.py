"""
Executor Recipes

Maps (Command, OSFamily) to the ordered external processes that realise
the command on that OS. The table is built once from configuration.

    (SHUTDOWN,  LINUX)    shutdown_cmd
    (SHUTDOWN,  WINDOWS)  shutdown_cmd
    (SWITCH_OS, LINUX)    grub_reboot_cmd <grub_win_entry>, reboot_cmd
    (SWITCH_OS, WINDOWS)  reboot_cmd

The Linux switch arms a one-shot bootloader selection before rebooting.
On Windows the firmware default entry is assumed to boot Linux.
"""

from dataclasses import dataclass

from janus.common.commands import Command, OSFamily
from janus.common.config import SystemConfig
from janus.common.exceptions import ConfigError


@dataclass(frozen=True)
class ProcessInvocation:
    """One external program run"""
    program: str
    args: tuple[str, ...] = ()

    @classmethod
    def from_argv(cls, argv: list[str] | tuple[str, ...]) -> "ProcessInvocation":
        if not argv:
            raise ConfigError("empty command line in recipe")
        return cls(program=argv[0], args=tuple(argv[1:]))

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def __str__(self) -> str:
        return " ".join(self.argv)


RecipeKey = tuple[Command, OSFamily]


class RecipeTable:
    """Immutable lookup of command recipes per OS family"""

    # Exact step counts per recipe
    STEP_COUNTS: dict[RecipeKey, int] = {
        (Command.SHUTDOWN, OSFamily.LINUX): 1,
        (Command.SHUTDOWN, OSFamily.WINDOWS): 1,
        (Command.SWITCH_OS, OSFamily.LINUX): 2,
        (Command.SWITCH_OS, OSFamily.WINDOWS): 1,
    }

    def __init__(self, recipes: dict[RecipeKey, tuple[ProcessInvocation, ...]]):
        for key, expected in self.STEP_COUNTS.items():
            steps = recipes.get(key)
            if steps is None:
                raise ConfigError(f"missing recipe for {key[0].value} on {key[1].value}")
            if len(steps) != expected:
                raise ConfigError(
                    f"recipe for {key[0].value} on {key[1].value} must have "
                    f"{expected} step(s), got {len(steps)}"
                )
        self._recipes = {key: tuple(steps) for key, steps in recipes.items()}

    @classmethod
    def from_config(cls, system: SystemConfig) -> "RecipeTable":
        linux = system.linux
        windows = system.windows

        arm_argv = list(linux.grub_reboot_cmd)
        if linux.grub_win_entry:
            arm_argv.append(linux.grub_win_entry)

        return cls({
            (Command.SHUTDOWN, OSFamily.LINUX): (
                ProcessInvocation.from_argv(linux.shutdown_cmd),
            ),
            (Command.SHUTDOWN, OSFamily.WINDOWS): (
                ProcessInvocation.from_argv(windows.shutdown_cmd),
            ),
            (Command.SWITCH_OS, OSFamily.LINUX): (
                ProcessInvocation.from_argv(arm_argv),
                ProcessInvocation.from_argv(linux.reboot_cmd),
            ),
            (Command.SWITCH_OS, OSFamily.WINDOWS): (
                ProcessInvocation.from_argv(windows.reboot_cmd),
            ),
        })

    def lookup(self, command: Command, os_family: OSFamily) -> tuple[ProcessInvocation, ...]:
        return self._recipes[(command, os_family)]

    def items(self):
        return self._recipes.items()

    def describe(self) -> list[str]:
        """One line per step, for --dry-run output"""
        lines = []
        for (command, os_family), steps in self._recipes.items():
            for index, step in enumerate(steps, 1):
                lines.append(f"{command.value:<8} {os_family.value:<7} {index}. {step}")
        return lines
