"""boto3 client access for the driver.

Clients are built lazily on first use and reused for the lifetime of
the owning driver.
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

import boto3

if TYPE_CHECKING:
    from mypy_boto3_cloudformation import CloudFormationClient
    from mypy_boto3_ec2 import EC2Client


class AWSClients:
    """Lazily created CloudFormation and EC2 clients.

    Args:
        region: AWS region. If None, boto3 resolves it from the
            environment or the shared config file.
    """

    def __init__(self, region: str | None = None) -> None:
        self.region = region

    def __repr__(self) -> str:
        return f"AWSClients(region={self.region!r})"

    @cached_property
    def session(self) -> boto3.Session:
        return boto3.Session(region_name=self.region)

    @cached_property
    def cloudformation(self) -> CloudFormationClient:
        return self.session.client("cloudformation")

    @cached_property
    def ec2(self) -> EC2Client:
        return self.session.client("ec2")
