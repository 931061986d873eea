"""
Command Vocabulary

The closed set of actions an operator can request, and the OS families
the agent can run on. Both are str-valued enums so they serialize as their
wire form directly.
"""

from enum import Enum

from .exceptions import UnknownCommandError


class Command(str, Enum):
    """Operator commands. Wire form is the lowercase value."""
    SHUTDOWN = "shutdown"
    SWITCH_OS = "switch"

    @classmethod
    def parse(cls, tag: str | bytes | None) -> "Command":
        """
        Decode a wire tag into a Command.

        Raises:
            UnknownCommandError: tag is not exactly one of the wire values
        """
        if isinstance(tag, bytes):
            tag = tag.decode("utf-8", errors="replace")
        try:
            return cls(tag)
        except ValueError:
            raise UnknownCommandError(str(tag)) from None

    @classmethod
    def tags(cls) -> list[str]:
        return [c.value for c in cls]


class OSFamily(str, Enum):
    """Operating system families of a dual-boot host"""
    LINUX = "LINUX"
    WINDOWS = "WINDOWS"

    @property
    def other(self) -> "OSFamily":
        """The family on the other side of the dual boot"""
        return OSFamily.WINDOWS if self is OSFamily.LINUX else OSFamily.LINUX

    @property
    def display_name(self) -> str:
        return "Linux" if self is OSFamily.LINUX else "Windows"
