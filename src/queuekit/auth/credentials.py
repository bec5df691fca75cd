"""
Module: credentials.py
Description: Credentials provider for the request executor.

Resolves signing credentials in a fixed, documented order and hands
them to the executor explicitly. Nothing in the queue operations reads
credentials from ambient process state.

Resolution order:
1. Explicit access key / secret key / session token arguments
2. Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, ...)
3. Instance role metadata (ECS container endpoint, then EC2 IMDS)
4. Shared credentials file profile (AWS_SHARED_CREDENTIALS_FILE or ~/.aws/credentials)

Dependencies: boto3, botocore, os, typing
"""

import os
from typing import List, Optional

import boto3
import botocore.session
from botocore.credentials import (
    ContainerProvider,
    CredentialProvider,
    CredentialResolver,
    Credentials,
    EnvProvider,
    InstanceMetadataFetcher,
    InstanceMetadataProvider,
    ReadOnlyCredentials,
    SharedCredentialProvider,
)

from queuekit.sqs_queue.errors import TransportError
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CREDENTIALS_FILE = "~/.aws/credentials"


class ExplicitProvider(CredentialProvider):
    """Provider returning credentials given in code."""

    METHOD = "explicit"

    def __init__(self, credentials: Credentials):
        super().__init__()
        self._credentials = credentials

    def load(self) -> Credentials:
        return self._credentials


def default_provider_chain(
    profile: Optional[str] = None,
    metadata_timeout: float = 1.0,
) -> List[CredentialProvider]:
    """
    Build the environment -> instance role -> profile provider chain.

    Args:
        profile: Profile name in the shared credentials file
        metadata_timeout: Timeout in seconds for the instance metadata endpoint

    Returns:
        Ordered list of botocore credential providers
    """
    creds_file = os.environ.get("AWS_SHARED_CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE)
    profile_name = profile or os.environ.get("AWS_PROFILE") or "default"
    return [
        EnvProvider(),
        ContainerProvider(),
        InstanceMetadataProvider(
            iam_role_fetcher=InstanceMetadataFetcher(
                timeout=metadata_timeout,
                num_attempts=1,
            )
        ),
        SharedCredentialProvider(creds_filename=creds_file, profile_name=profile_name),
    ]


class CredentialsProvider:
    """
    Resolves credentials for signing queue requests.

    Explicit keys win outright. Otherwise the provider chain is consulted
    in order and the first provider that yields credentials is used.
    The executor receives a boto3 session wired to this chain, so
    refreshable credentials (instance role) keep refreshing for the
    executor's lifetime.

    Example:
        >>> provider = CredentialsProvider(profile="ci")
        >>> executor = BotoRequestExecutor("us-east-1", credentials=provider)
    """

    def __init__(
        self,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        session_token: Optional[str] = None,
        *,
        profile: Optional[str] = None,
        providers: Optional[List[CredentialProvider]] = None,
    ):
        """
        Initialize credentials provider.

        Args:
            access_key: Explicit access key id
            secret_key: Explicit secret access key
            session_token: Explicit session token (temporary credentials)
            profile: Profile name for the shared credentials file step
            providers: Replacement provider chain, consulted in order

        Raises:
            ValueError: If only one of access_key / secret_key is given
        """
        if bool(access_key) != bool(secret_key):
            raise ValueError("access_key and secret_key must be provided together")

        chain = list(providers) if providers is not None else default_provider_chain(profile)
        if access_key:
            explicit = Credentials(access_key, secret_key, session_token, method=ExplicitProvider.METHOD)
            chain.insert(0, ExplicitProvider(explicit))

        self._resolver = CredentialResolver(chain)
        self._loaded: Optional[Credentials] = None

    def resolve(self) -> ReadOnlyCredentials:
        """
        Resolve credentials.

        Returns:
            Frozen access key, secret key and token

        Raises:
            TransportError: If no step of the chain yields credentials
        """
        if self._loaded is None:
            self._loaded = self._resolver.load_credentials()
            if self._loaded is None:
                logger.error("No credentials resolved from provider chain")
                raise TransportError("Unable to locate credentials")

            logger.info("Credentials resolved", method=self._loaded.method)

        return self._loaded.get_frozen_credentials()

    @property
    def method(self) -> Optional[str]:
        """Name of the step that produced the credentials, once resolved."""
        return self._loaded.method if self._loaded is not None else None

    def session(self, region_name: str) -> boto3.session.Session:
        """boto3 session whose credentials come from this provider's chain."""
        core = botocore.session.get_session()
        core.register_component("credential_provider", self._resolver)
        return boto3.session.Session(botocore_session=core, region_name=region_name)
