"""
Host Probe

Captures the identity of the machine once at startup. The snapshot is
frozen and only used for notifications and the chat menu.
"""

import getpass
import ipaddress
import platform
import socket
from dataclasses import dataclass

import psutil

from .commands import OSFamily
from .exceptions import ConfigError
from .logging_setup import get_service_logger

logger = get_service_logger("host")


@dataclass(frozen=True)
class HostFacts:
    """Immutable host identity snapshot"""
    os: OSFamily
    private_ip: str
    user: str

    def to_dict(self) -> dict:
        return {
            "os": self.os.value,
            "private_ip": self.private_ip,
            "user": self.user,
        }


def detect_os_family(system: str | None = None) -> OSFamily:
    """Map platform.system() to an OSFamily"""
    system = (system or platform.system()).lower()
    if system == "linux":
        return OSFamily.LINUX
    if system == "windows":
        return OSFamily.WINDOWS
    raise ConfigError(f"Unsupported operating system: {system}")


def get_private_ip() -> str:
    """First non-loopback IPv4 address on any interface, or empty string"""
    try:
        interfaces = psutil.net_if_addrs()
    except OSError as e:
        logger.warning(f"Could not enumerate network interfaces: {e}")
        return ""

    for addrs in interfaces.values():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return str(ip)
    return ""


def get_current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def capture_host_facts() -> HostFacts:
    """Probe the host. Called exactly once by the supervisor."""
    facts = HostFacts(
        os=detect_os_family(),
        private_ip=get_private_ip(),
        user=get_current_user(),
    )
    logger.info(
        f"Host facts captured: os={facts.os.value} ip={facts.private_ip or '-'}",
        extra=facts.to_dict(),
    )
    return facts
