"""
Configuration Dataclasses

Type-safe configuration structures for the agent, loaded once at startup
from YAML and optionally overridden from APP_* environment variables.
The resulting AgentConfig is treated as immutable for the process lifetime.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError

# Searched in order when no explicit path is given
CONFIG_SEARCH_PATHS = [
    "./config.yaml",
    "./config/config.yaml",
    "../config/config.yaml",
]

ENV_PREFIX = "APP"

DEFAULT_CHECK_INTERVAL_S = 3.0
DEFAULT_HTTP_PORT = 8080

DEFAULT_GRUB_REBOOT_CMD = ["sudo", "grub-reboot"]
DEFAULT_LINUX_SHUTDOWN_CMD = ["sudo", "shutdown", "-h", "now"]
DEFAULT_LINUX_REBOOT_CMD = ["sudo", "reboot"]
DEFAULT_WINDOWS_SHUTDOWN_CMD = ["shutdown", "/s", "/t", "0"]
DEFAULT_WINDOWS_REBOOT_CMD = ["shutdown", "/r", "/t", "0"]

# Older config files name these sections after the backing service
SECTION_ALIASES = {
    "redis": "rendezvous",
    "telegram": "chat",
}
KEY_ALIASES = {
    ("chat", "bot_token"): "token",
}

# Field types used to coerce YAML and environment values.
# "argv" is a command line given either as a string or a list.
SCHEMA: dict[str, Any] = {
    "rendezvous": {"addr": str, "password": str, "db": int},
    "chat": {"enabled": bool, "token": str, "chat_id": str},
    "http": {"enabled": bool, "host": str, "port": int, "password": str},
    "system": {
        "command_key": str,
        "check_interval": float,
        "linux": {
            "grub_win_entry": str,
            "grub_reboot_cmd": "argv",
            "shutdown_cmd": "argv",
            "reboot_cmd": "argv",
        },
        "windows": {
            "shutdown_cmd": "argv",
            "reboot_cmd": "argv",
        },
    },
    "log": {
        "level": str,
        "format": str,
        "file": str,
        "max_size": int,
        "max_backups": int,
        "max_age": int,
        "compress": bool,
    },
}


@dataclass(frozen=True)
class RendezvousConfig:
    """Connection to the external key-value store"""
    addr: str = "127.0.0.1:6379"
    password: str = ""
    db: int = 0

    @property
    def host(self) -> str:
        host, _, _ = self.addr.rpartition(":")
        return host or self.addr

    @property
    def port(self) -> int:
        _, sep, port = self.addr.rpartition(":")
        if not sep:
            return 6379
        try:
            return int(port)
        except ValueError:
            raise ConfigError(f"Invalid rendezvous.addr: {self.addr}") from None


@dataclass(frozen=True)
class ChatConfig:
    """Chat-bot notifications and inbound commands"""
    enabled: bool = False
    token: str = ""
    chat_id: str = ""

    @property
    def authorized_id(self) -> int | None:
        """chat_id as an integer; it doubles as the only allowed sender"""
        try:
            return int(self.chat_id)
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class HTTPConfig:
    """Local HTTP ingress"""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = DEFAULT_HTTP_PORT
    password: str = ""


@dataclass(frozen=True)
class LinuxSystemConfig:
    """Recipe primitives on the Linux side"""
    grub_win_entry: str = ""
    grub_reboot_cmd: tuple[str, ...] = tuple(DEFAULT_GRUB_REBOOT_CMD)
    shutdown_cmd: tuple[str, ...] = tuple(DEFAULT_LINUX_SHUTDOWN_CMD)
    reboot_cmd: tuple[str, ...] = tuple(DEFAULT_LINUX_REBOOT_CMD)


@dataclass(frozen=True)
class WindowsSystemConfig:
    """Recipe primitives on the Windows side"""
    shutdown_cmd: tuple[str, ...] = tuple(DEFAULT_WINDOWS_SHUTDOWN_CMD)
    reboot_cmd: tuple[str, ...] = tuple(DEFAULT_WINDOWS_REBOOT_CMD)


@dataclass(frozen=True)
class SystemConfig:
    """Command plane settings"""
    command_key: str
    check_interval: float = DEFAULT_CHECK_INTERVAL_S
    linux: LinuxSystemConfig = field(default_factory=LinuxSystemConfig)
    windows: WindowsSystemConfig = field(default_factory=WindowsSystemConfig)


@dataclass(frozen=True)
class LogSettings:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "json"  # json, text
    file: str = ""
    max_size: int = 10  # MB
    max_backups: int = 3
    max_age: int = 0  # days; accepted but not enforced
    compress: bool = False


@dataclass(frozen=True)
class AgentConfig:
    """Complete agent configuration"""
    system: SystemConfig
    rendezvous: RendezvousConfig = field(default_factory=RendezvousConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    log: LogSettings = field(default_factory=LogSettings)
    source_path: str = ""


def split_command_line(value: Any) -> list[str]:
    """
    Turn a configured *_cmd into an argv list.

    Strings are split on whitespace only; quoting is not supported, so
    arguments containing spaces must be given as a YAML list instead.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(part) for part in value if str(part) != ""]
    raise ConfigError(f"Command line must be a string or a list, got {type(value).__name__}")


def _coerce(path: tuple[str, ...], value: Any, kind: Any) -> Any:
    name = ".".join(path)
    if kind == "argv":
        return split_command_line(value)
    if value is None:
        return None
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if kind is int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if kind is float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {value!r}") from None
    return str(value)


def _normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Fold section and key aliases into their canonical names"""
    data: dict[str, Any] = {}
    for section, values in raw.items():
        canonical = SECTION_ALIASES.get(section, section)
        if not isinstance(values, Mapping):
            data[canonical] = values
            continue
        merged = dict(data.get(canonical, {}))
        for key, value in values.items():
            merged[KEY_ALIASES.get((canonical, key), key)] = value
        data[canonical] = merged
    return data


def _env_names(path: tuple[str, ...]) -> list[str]:
    sections = [path[0]] + [a for a, c in SECTION_ALIASES.items() if c == path[0]]
    leaves = [path[-1]] + [
        alias for (section, alias), key in KEY_ALIASES.items()
        if section == path[0] and key == path[-1]
    ]
    names = []
    for section in sections:
        for leaf in leaves:
            parts = [section, *path[1:-1], leaf]
            names.append(f"{ENV_PREFIX}_" + "_".join(parts).upper())
    return names


def _walk_schema(schema: Mapping[str, Any], prefix: tuple[str, ...] = ()):
    for key, kind in schema.items():
        path = prefix + (key,)
        if isinstance(kind, Mapping):
            yield from _walk_schema(kind, path)
        else:
            yield path, kind


def _apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for path, _kind in _walk_schema(SCHEMA):
        for env_name in _env_names(path):
            if env_name in environ:
                node = data
                for part in path[:-1]:
                    node = node.setdefault(part, {})
                node[path[-1]] = environ[env_name]
                break
    return data


def _section(data: Mapping[str, Any], *path: str) -> dict[str, Any]:
    """Coerced values of one schema section; unknown keys are ignored"""
    node: Any = data
    schema: Any = SCHEMA
    for part in path:
        node = node.get(part) if isinstance(node, Mapping) else None
        if not isinstance(node, Mapping):
            node = {}
        schema = schema[part]
    values = {}
    for key, kind in schema.items():
        if isinstance(kind, Mapping) or key not in node:
            continue
        value = _coerce(path + (key,), node[key], kind)
        if value is not None:
            values[key] = value
    return values


def _argv_or_default(values: dict[str, Any], key: str, default: list[str]) -> tuple[str, ...]:
    argv = values.get(key) or default
    return tuple(argv)


def build_config(raw: Mapping[str, Any] | None, source_path: str = "") -> AgentConfig:
    """Build AgentConfig from a (normalized) dictionary"""
    data = _normalize(raw or {})

    system = _section(data, "system")
    command_key = system.get("command_key", "").strip()
    if not command_key:
        raise ConfigError("system.command_key is required")

    check_interval = system.get("check_interval", DEFAULT_CHECK_INTERVAL_S)
    if check_interval <= 0:
        check_interval = DEFAULT_CHECK_INTERVAL_S

    linux = _section(data, "system", "linux")
    windows = _section(data, "system", "windows")

    http = _section(data, "http")
    if not http.get("port"):
        http["port"] = DEFAULT_HTTP_PORT

    return AgentConfig(
        system=SystemConfig(
            command_key=command_key,
            check_interval=check_interval,
            linux=LinuxSystemConfig(
                grub_win_entry=linux.get("grub_win_entry", ""),
                grub_reboot_cmd=_argv_or_default(linux, "grub_reboot_cmd", DEFAULT_GRUB_REBOOT_CMD),
                shutdown_cmd=_argv_or_default(linux, "shutdown_cmd", DEFAULT_LINUX_SHUTDOWN_CMD),
                reboot_cmd=_argv_or_default(linux, "reboot_cmd", DEFAULT_LINUX_REBOOT_CMD),
            ),
            windows=WindowsSystemConfig(
                shutdown_cmd=_argv_or_default(windows, "shutdown_cmd", DEFAULT_WINDOWS_SHUTDOWN_CMD),
                reboot_cmd=_argv_or_default(windows, "reboot_cmd", DEFAULT_WINDOWS_REBOOT_CMD),
            ),
        ),
        rendezvous=RendezvousConfig(**_section(data, "rendezvous")),
        chat=ChatConfig(**_section(data, "chat")),
        http=HTTPConfig(**http),
        log=LogSettings(**_section(data, "log")),
        source_path=source_path,
    )


def find_config_path(config_path: str | None = None) -> Path:
    """Resolve the config file: explicit path, else the first search path that exists"""
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {config_path}")
        return path

    for candidate in CONFIG_SEARCH_PATHS:
        path = Path(candidate)
        if path.is_file():
            return path

    raise ConfigError(
        "Configuration file not found (searched: " + ", ".join(CONFIG_SEARCH_PATHS) + ")"
    )


def load_config(
    config_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AgentConfig:
    """
    Load configuration from YAML file plus APP_* environment overrides.

    Args:
        config_path: Explicit config file; searched for when omitted
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Frozen AgentConfig

    Raises:
        ConfigError: file missing, unparsable, or required keys absent
    """
    path = find_config_path(config_path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Error reading {path}: {e}") from e

    if not isinstance(raw, Mapping):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    data = _apply_env_overrides(_normalize(raw), os.environ if environ is None else environ)
    return build_config(data, source_path=str(path))


def validate_config(config: AgentConfig) -> list[str]:
    """
    Check for settings that disable a feature without being fatal.

    Returns:
        Human-readable warnings (empty when everything is usable)
    """
    warnings = []

    if config.chat.enabled:
        if not config.chat.token:
            warnings.append("chat.enabled is set but chat.token is empty")
        if config.chat.authorized_id is None:
            warnings.append(f"chat.chat_id must be an integer, got {config.chat.chat_id!r}")

    if config.http.enabled and not config.http.password:
        warnings.append("http.password is empty; every /command request will be rejected")

    if not config.system.linux.grub_win_entry:
        warnings.append("system.linux.grub_win_entry is empty; switching from Linux will fail")

    if config.log.max_age:
        warnings.append(
            "log.max_age is not supported; rotated log files are pruned by log.max_backups only"
        )

    return warnings
