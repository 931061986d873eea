"""
Common Utilities

Shared modules used across all components:
- config.py - Configuration dataclasses and loader
- commands.py - Command and OS family enums
- host.py - Host facts probe
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
- scheduler.py - Fixed-cadence tick loop
"""

from .commands import Command, OSFamily
from .config import (
    AgentConfig,
    RendezvousConfig,
    ChatConfig,
    HTTPConfig,
    SystemConfig,
    LinuxSystemConfig,
    WindowsSystemConfig,
    LogSettings,
    build_config,
    load_config,
    validate_config,
    split_command_line,
)
from .exceptions import (
    JanusError,
    ConfigError,
    RendezvousError,
    ChatError,
    UnknownCommandError,
    ExecutionError,
    ServiceError,
)
from .host import HostFacts, capture_host_facts
from .logging_setup import (
    setup_logging,
    get_service_logger,
    LogContext,
    ContextFilter,
)
from .scheduler import ScheduledLoop

__all__ = [
    # Commands
    "Command",
    "OSFamily",
    # Config
    "AgentConfig",
    "RendezvousConfig",
    "ChatConfig",
    "HTTPConfig",
    "SystemConfig",
    "LinuxSystemConfig",
    "WindowsSystemConfig",
    "LogSettings",
    "build_config",
    "load_config",
    "validate_config",
    "split_command_line",
    # Exceptions
    "JanusError",
    "ConfigError",
    "RendezvousError",
    "ChatError",
    "UnknownCommandError",
    "ExecutionError",
    "ServiceError",
    # Host
    "HostFacts",
    "capture_host_facts",
    # Logging
    "setup_logging",
    "get_service_logger",
    "LogContext",
    "ContextFilter",
    # Scheduling
    "ScheduledLoop",
]
