"""
Custom Exception Classes for the Janus Agent

Hierarchical exception structure for error handling across services.
"""


class JanusError(Exception):
    """Base exception for all Janus agent errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(JanusError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class RendezvousError(JanusError):
    """Key-value store communication errors"""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        addr: str | None = None,
    ):
        self.key = key
        self.addr = addr
        super().__init__(f"Rendezvous Error: {message}", recoverable=True)


class ChatError(JanusError):
    """Chat-bot API errors"""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        status_code: int | None = None,
    ):
        self.method = method
        self.status_code = status_code
        super().__init__(f"Chat Error: {message}", recoverable=True)


class UnknownCommandError(JanusError):
    """Command tag outside the supported vocabulary"""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Unknown command: {tag!r}", recoverable=True)


class ExecutionError(JanusError):
    """An executor step could not be spawned"""

    def __init__(self, message: str, program: str | None = None):
        self.program = program
        self.reason = message
        super().__init__(f"Execution Error: {message}", recoverable=False)


class ServiceError(JanusError):
    """Service lifecycle errors"""

    def __init__(self, message: str, service_name: str, recoverable: bool = True):
        self.service_name = service_name
        super().__init__(f"Service [{service_name}]: {message}", recoverable)
