"""Custom exception hierarchy for amazoncf.

All driver-originated exceptions inherit from AmazonCFError. Errors
returned by AWS itself surface as botocore's ClientError, unwrapped.
"""

from __future__ import annotations


class AmazonCFError(Exception):
    """Base exception for all amazoncf errors."""


class ConfigurationError(AmazonCFError):
    """Raised for invalid configuration or missing required settings."""


class StackCreationError(AmazonCFError):
    """Raised when the CloudFormation stack ends in a failure status."""

    def __init__(self, stack_name: str, status: str, reason: str = "") -> None:
        self.stack_name = stack_name
        self.status = status
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Stack {stack_name} reached {status}{detail}")


class InstanceNotFoundError(AmazonCFError):
    """Raised when EC2 does not return the driver's instance."""

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f"Instance {instance_id or '<unset>'} not found")


class PollTimeoutError(AmazonCFError):
    """Raised when a polling loop runs out of attempts."""

    def __init__(self, description: str, max_attempts: int) -> None:
        self.description = description
        self.max_attempts = max_attempts
        super().__init__(
            f"Maximum number of retries ({max_attempts}) exceeded waiting for {description}"
        )


class MachineNotFoundError(AmazonCFError):
    """Raised when a machine is not present in the store."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Machine {name} does not exist")


class StackNotFoundError(AmazonCFError):
    """Raised when CloudFormation returns no stack for the machine."""

    def __init__(self, stack_name: str) -> None:
        self.stack_name = stack_name
        super().__init__(f"Stack {stack_name} not found")
