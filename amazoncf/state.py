"""Local machine states and the EC2 status mapping table."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import Final

from .constants import InstanceState


class MachineState(StrEnum):
    """State of a machine as reported to the host tool."""

    RUNNING = "Running"
    STOPPED = "Stopped"
    STOPPING = "Stopping"
    STARTING = "Starting"
    ERROR = "Error"


INSTANCE_STATE_MAP: Final = MappingProxyType({
    InstanceState.PENDING: MachineState.STARTING,
    InstanceState.RUNNING: MachineState.RUNNING,
    InstanceState.STOPPING: MachineState.STOPPING,
    InstanceState.SHUTTING_DOWN: MachineState.STOPPING,
    InstanceState.STOPPED: MachineState.STOPPED,
})


def machine_state(instance_state: str) -> MachineState:
    """Map an EC2 instance state name to a MachineState.

    Unknown names, including ``terminated``, map to ``MachineState.ERROR``.
    """
    return INSTANCE_STATE_MAP.get(instance_state, MachineState.ERROR)
