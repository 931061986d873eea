"""
Janus - remote shutdown and OS switching agent for dual-boot hosts
"""

__version__ = "1.0.0"
