"""Host-tool driver contract and the fields every driver shares."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_USER, MACHINES_DIR, SSH_KEY_FILENAME
from .flags import DriverOptions, Flag
from .state import MachineState


@runtime_checkable
class MachineDriver(Protocol):
    """Operations the host tool invokes on a machine driver.

    Every call is synchronous; lifecycle calls return once the machine
    has reached the requested state.
    """

    def driver_name(self) -> str: ...
    def create_flags(self) -> Sequence[Flag]: ...
    def set_config_from_flags(self, options: DriverOptions) -> None: ...
    def pre_create_check(self) -> None: ...
    def create(self) -> None: ...
    def remove(self) -> None: ...
    def start(self) -> None: ...
    def stop(self) -> None: ...
    def restart(self) -> None: ...
    def kill(self) -> None: ...
    def get_state(self) -> MachineState: ...
    def get_ip(self) -> str: ...
    def get_url(self) -> str: ...
    def get_ssh_hostname(self) -> str: ...
    def get_ssh_username(self) -> str: ...
    def get_ssh_port(self) -> int: ...
    def get_ssh_key_path(self) -> str: ...
    def get_machine_name(self) -> str: ...


@dataclass
class BaseDriver:
    """Fields the host tool tracks for any machine.

    ``store_path`` is the root of the local store; per-machine files
    live under ``<store_path>/machines/<machine_name>``.
    """

    machine_name: str
    store_path: str
    ssh_user: str = DEFAULT_SSH_USER
    ssh_port: int = DEFAULT_SSH_PORT
    ssh_key_path: str = ""
    ip_address: str = ""

    def get_machine_name(self) -> str:
        return self.machine_name

    def resolve_store_path(self, filename: str) -> Path:
        return Path(self.store_path) / MACHINES_DIR / self.machine_name / filename

    def get_ssh_key_path(self) -> str:
        """Explicit ``ssh_key_path``, else the key copied into the store."""
        if self.ssh_key_path:
            return self.ssh_key_path
        return str(self.resolve_store_path(SSH_KEY_FILENAME))

    def get_ssh_port(self) -> int:
        if not self.ssh_port:
            self.ssh_port = DEFAULT_SSH_PORT
        return self.ssh_port

    def get_ssh_username(self) -> str:
        if not self.ssh_user:
            self.ssh_user = DEFAULT_SSH_USER
        return self.ssh_user
