"""On-disk store of machine records.

Each machine gets a directory ``<root>/machines/<name>`` holding the
copied SSH key and ``config.json`` with the serialized driver.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from loguru import logger

from .constants import CONFIG_FILENAME, DRIVER_NAME, MACHINES_DIR
from .driver import Driver
from .exceptions import AmazonCFError, MachineNotFoundError

STORE_VERSION = 1


class MachineStore:
    """JSON file store for Driver records."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).expanduser()

    def __repr__(self) -> str:
        return f"MachineStore({str(self.root)!r})"

    @property
    def machines_dir(self) -> Path:
        return self.root / MACHINES_DIR

    def _config_file(self, name: str) -> Path:
        return self.machines_dir / name / CONFIG_FILENAME

    def exists(self, name: str) -> bool:
        return self._config_file(name).is_file()

    def save(self, driver: Driver) -> None:
        path = self._config_file(driver.machine_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    "version": STORE_VERSION,
                    "driver_name": driver.driver_name(),
                    "driver": driver.to_dict(),
                },
                indent=2,
            )
        )
        logger.debug(f"Saved machine {driver.machine_name} to {path}")

    def load(self, name: str) -> Driver:
        path = self._config_file(name)
        if not path.is_file():
            raise MachineNotFoundError(name)

        try:
            raw = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise AmazonCFError(f"Corrupt machine config {path}: {e}") from e

        driver_name = raw.get("driver_name")
        if driver_name != DRIVER_NAME:
            raise AmazonCFError(f"Machine {name} uses driver {driver_name!r}, not {DRIVER_NAME!r}")

        driver = Driver.from_dict(raw["driver"])
        driver.store_path = str(self.root)
        return driver

    def remove(self, name: str) -> None:
        machine_dir = self.machines_dir / name
        if not machine_dir.is_dir():
            raise MachineNotFoundError(name)
        shutil.rmtree(machine_dir)
        logger.debug(f"Removed machine {name} from {self.root}")

    def list(self) -> list[str]:
        if not self.machines_dir.is_dir():
            return []
        return sorted(p.parent.name for p in self.machines_dir.glob(f"*/{CONFIG_FILENAME}"))
