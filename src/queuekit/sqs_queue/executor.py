"""
Module: executor.py
Description: Request executors for queue service calls.

An executor takes a service action name, a queue endpoint and a
parameter set, performs the signed remote call and returns the parsed
response as a dictionary. It is the only place that talks to botocore;
everything above it deals in plain dictionaries and the error taxonomy.

Key Components:
- RequestExecutor: Protocol every executor implements
- BotoRequestExecutor: boto3 client calls run in a worker thread
- client_config(): botocore client configuration for long polling

Dependencies: boto3, botocore, asyncio, typing
"""

import asyncio
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import boto3
from botocore import xform_name
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

from queuekit.auth.credentials import CredentialsProvider
from queuekit.config.settings import QueueSettings
from queuekit.sqs_queue.errors import RequestValidationError, ServiceError, TransportError
from queuekit.utils.logger import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "sqs"


@runtime_checkable
class RequestExecutor(Protocol):
    """Performs one signed remote call."""

    @property
    def scope(self) -> str:
        """Identifies the service endpoint this executor talks to (cache partition)."""
        ...

    async def invoke(
        self,
        action: str,
        endpoint: Optional[str],
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Perform `action` against `endpoint` with `params`.

        Returns:
            Parsed response fields

        Raises:
            ServiceError: The service returned a structured failure
            RequestValidationError: botocore rejected the parameters before sending
            TransportError: No service response was obtained
        """
        ...


def client_config(read_timeout: int = 70, connect_timeout: int = 3, max_pool_connections: int = 10) -> Config:
    """
    botocore client configuration.

    Automatic retries are disabled: every failure is surfaced to the caller,
    who owns the retry policy. The read timeout must stay above the 20 second
    long-poll ceiling or long-poll receives would time out client-side.
    """
    return Config(
        retries={"total_max_attempts": 1, "mode": "standard"},
        read_timeout=read_timeout,
        connect_timeout=connect_timeout,
        max_pool_connections=max_pool_connections,
    )


def build_request(action: str, endpoint: Optional[str], params: Dict[str, Any]) -> tuple:
    """Map an action name to its client method name and final keyword arguments."""
    if not action or not isinstance(action, str):
        raise ValueError("action must be a non-empty string")

    kwargs = dict(params)
    if endpoint is not None:
        kwargs["QueueUrl"] = endpoint
    return xform_name(action), kwargs


def translate_error(action: str, endpoint: Optional[str], error: Exception) -> Exception:
    """
    Convert a botocore exception into the client error taxonomy.

    Returns the exception to raise; callers raise it `from` the original.
    """
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        code = err.get("Code", "Unknown")
        message = err.get("Message", "")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        logger.error(
            "Queue service rejected request",
            action=action,
            queue_url=endpoint,
            error_code=code,
            error_message=message,
            http_status=status
        )
        return ServiceError.from_code(code, message, status)

    if isinstance(error, ParamValidationError):
        logger.error(
            "Queue request failed parameter validation",
            action=action,
            queue_url=endpoint,
            error=str(error)
        )
        return RequestValidationError(f"{action} parameters rejected: {error}")

    logger.error(
        "Queue request failed without a service response",
        action=action,
        queue_url=endpoint,
        error=str(error),
        error_type=type(error).__name__
    )
    return TransportError(f"{action} failed: {error}")


class BotoRequestExecutor:
    """
    Request executor backed by a synchronous boto3 client.

    Each call runs in a worker thread so a long-poll receive suspends only
    the awaiting coroutine, not the event loop.
    """

    def __init__(
        self,
        region_name: str,
        *,
        credentials: Optional[CredentialsProvider] = None,
        endpoint_url: Optional[str] = None,
        config: Optional[Config] = None,
        client: Any = None,
    ):
        """
        Initialize boto3 executor.

        Args:
            region_name: Service region
            credentials: Credentials provider; None lets boto3 resolve them
            endpoint_url: Override endpoint (local emulators)
            config: botocore client configuration
            client: Pre-built boto3 SQS client to use instead of creating one
        """
        if not region_name or not isinstance(region_name, str):
            raise ValueError("region_name must be a non-empty string")

        self.region_name = region_name
        self.endpoint_url = endpoint_url

        if client is None:
            if credentials is not None:
                session = credentials.session(region_name)
            else:
                session = boto3.session.Session(region_name=region_name)
            client = session.client(
                SERVICE_NAME,
                endpoint_url=endpoint_url,
                config=config or client_config(),
            )
        self.client = client

        logger.info(
            "Request executor initialized",
            region=region_name,
            endpoint_url=endpoint_url
        )

    @property
    def scope(self) -> str:
        return f"{self.region_name}|{self.endpoint_url or ''}"

    async def invoke(
        self,
        action: str,
        endpoint: Optional[str],
        params: Dict[str, Any],
    ) -> Dict[str, Any]:
        method, kwargs = build_request(action, endpoint, params)

        try:
            response = await asyncio.to_thread(getattr(self.client, method), **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(action, endpoint, e) from e

        logger.debug("Queue request completed", action=action, queue_url=endpoint)
        return response

    async def close(self) -> None:
        """Close the client's connection pool."""
        await asyncio.to_thread(self.client.close)

    async def __aenter__(self) -> "BotoRequestExecutor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def executor_from_settings(
    settings: QueueSettings,
    credentials: Optional[CredentialsProvider] = None,
) -> BotoRequestExecutor:
    """Build the default executor from settings."""
    return BotoRequestExecutor(
        settings.aws_region,
        credentials=credentials,
        endpoint_url=settings.sqs_endpoint_url,
        config=client_config(settings.sqs_read_timeout, settings.sqs_connect_timeout),
    )
