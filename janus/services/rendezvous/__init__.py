"""
Rendezvous Store - the single-key mailbox shared by every command channel
"""

from .store import RendezvousStore

__all__ = ["RendezvousStore"]
