"""
API Service - local HTTP command ingress
"""

from .server import HTTPIngress

__all__ = ["HTTPIngress"]
