"""
Chat Service

- client.py - Bot API transport
- notifier.py - Outbound notifications with bounded retry
- ingress.py - Inbound commands from the bot conversation
- menu.py - Menu, help and status rendering
"""

from .client import ChatClient
from .notifier import Notifier
from .ingress import ChatIngress

__all__ = ["ChatClient", "Notifier", "ChatIngress"]
