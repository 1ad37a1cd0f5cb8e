"""amazoncf - machine driver backed by AWS CloudFormation stacks.

Example:
    from amazoncf import Driver, Options

    driver = Driver("web-1", store_path="/home/me/.amazoncf")
    driver.set_config_from_flags(Options({
        "cloudformation-url": "https://s3.amazonaws.com/bucket/docker-host.json",
        "cloudformation-keypairname": "ops",
        "cloudformation-keypath": "/home/me/.ssh/ops.pem",
    }))
    driver.create()
"""

from amazoncf.base import BaseDriver, MachineDriver
from amazoncf.driver import CREATE_FLAGS, Driver, generate_id
from amazoncf.exceptions import (
    AmazonCFError,
    ConfigurationError,
    InstanceNotFoundError,
    MachineNotFoundError,
    PollTimeoutError,
    StackCreationError,
    StackNotFoundError,
)
from amazoncf.flags import BoolFlag, DriverOptions, Options, StringFlag
from amazoncf.state import MachineState, machine_state
from amazoncf.store import MachineStore

__version__ = "0.1.0"

__all__ = [
    "AmazonCFError",
    "BaseDriver",
    "BoolFlag",
    "CREATE_FLAGS",
    "ConfigurationError",
    "Driver",
    "DriverOptions",
    "InstanceNotFoundError",
    "MachineDriver",
    "MachineNotFoundError",
    "MachineState",
    "MachineStore",
    "Options",
    "PollTimeoutError",
    "StackCreationError",
    "StackNotFoundError",
    "StringFlag",
    "generate_id",
    "machine_state",
]
