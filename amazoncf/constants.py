"""Centralized constants and enums for amazoncf.

All magic strings, ports and polling defaults are defined here
to keep the driver and its tests in agreement.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

DRIVER_NAME: Final = "amazoncf"
DEFAULT_SSH_USER: Final = "ubuntu"
DEFAULT_SSH_PORT: Final = 22
DOCKER_PORT: Final = 2376

SSH_KEY_FILENAME: Final = "id_rsa"
MACHINES_DIR: Final = "machines"
CONFIG_FILENAME: Final = "config.json"


# =============================================================================
# Polling
# =============================================================================

POLL_INTERVAL: Final = 3.0
POLL_MAX_ATTEMPTS: Final = 60


# =============================================================================
# CloudFormation
# =============================================================================

KEY_NAME_PARAMETER: Final = "KeyName"


class StackOutput(StrEnum):
    """Stack output keys the template must expose."""

    PRIVATE_IP = "PrivateIp"
    INSTANCE_ID = "InstanceID"
    IP_ADDRESS = "IpAddress"


class StackStatus(StrEnum):
    """CloudFormation stack statuses the driver looks at."""

    CREATE_COMPLETE = "CREATE_COMPLETE"
    CREATE_FAILED = "CREATE_FAILED"


STACK_FAILURE_PREFIXES: Final = ("ROLLBACK_", "DELETE_")


# =============================================================================
# EC2 Instance States
# =============================================================================


class InstanceState(StrEnum):
    """EC2 instance state names."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    SHUTTING_DOWN = "shutting-down"
    STOPPED = "stopped"
    TERMINATED = "terminated"
