"""
Package: config
Description: Environment-driven configuration for the queue client.
"""

from .settings import QueueSettings, settings

__all__ = ["QueueSettings", "settings"]
