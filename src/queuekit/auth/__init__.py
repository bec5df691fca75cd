"""
Module: auth
Description: Credential resolution for signed queue requests.

- credentials: CredentialsProvider with an explicit, swappable resolution chain
"""

from .credentials import CredentialsProvider, default_provider_chain

__all__ = ["CredentialsProvider", "default_provider_chain"]
