"""
Module: utils
Description: Package initialization for utility functions.

Current utilities:
- logger: Structured logging configuration and helpers
- batch_helpers: Chunking and correlation ids for batch calls
- retry: Opt-in caller-side retry for transport failures
"""

__all__ = []
