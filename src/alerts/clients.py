"""Process-wide AWS handles for DynamoDB, SNS and SES.

Built once, lazily, from settings and reused by every batch the process
handles. boto3 clients are thread-safe, so the same handles are shared by
the worker threads that ``asyncio.to_thread`` dispatches to.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import boto3

from src.config.settings import get_settings


@dataclass(frozen=True)
class AwsClients:
    """Immutable bundle of AWS service handles."""

    dynamodb: Any
    sns: Any
    sesv2: Any


def create_clients(
    region_name: str | None = None,
    endpoint_url: str | None = None,
) -> AwsClients:
    """Create fresh AWS handles.

    Args:
        region_name: AWS region (defaults to the boto3 resolution chain).
        endpoint_url: Override endpoint, e.g. for a local DynamoDB.

    Returns:
        AwsClients bundle.
    """
    session = boto3.session.Session(region_name=region_name)
    return AwsClients(
        dynamodb=session.resource("dynamodb", endpoint_url=endpoint_url),
        sns=session.client("sns", endpoint_url=endpoint_url),
        sesv2=session.client("sesv2", endpoint_url=endpoint_url),
    )


@lru_cache
def get_clients() -> AwsClients:
    """Get the cached process-wide AWS handles."""
    settings = get_settings()
    return create_clients(
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
    )
