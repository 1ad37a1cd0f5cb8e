"""CloudFormation-backed machine driver.

The driver delegates nearly everything to AWS: a CloudFormation template
(security group, instance type, AMI, ...) describes the machine, and EC2
lifecycle calls start, stop and reboot the single instance it creates.

The template receives one parameter, ``KeyName``, and must expose the
outputs ``InstanceID``, ``PrivateIp`` and ``IpAddress``.

Example:
    from amazoncf import Driver, Options

    driver = Driver("web-1", store_path="/home/me/.amazoncf")
    driver.set_config_from_flags(Options({
        "cloudformation-url": "https://s3.amazonaws.com/bucket/docker-host.json",
        "cloudformation-keypairname": "ops",
        "cloudformation-keypath": "/home/me/.ssh/ops.pem",
    }))
    driver.create()
    print(driver.get_url())
"""

from __future__ import annotations

import hashlib
import secrets
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Self

from botocore.exceptions import ClientError
from loguru import logger

from .base import BaseDriver
from .clients import AWSClients
from .constants import (
    DEFAULT_SSH_USER,
    DOCKER_PORT,
    DRIVER_NAME,
    KEY_NAME_PARAMETER,
    POLL_INTERVAL,
    POLL_MAX_ATTEMPTS,
    STACK_FAILURE_PREFIXES,
    StackOutput,
    StackStatus,
)
from .exceptions import (
    ConfigurationError,
    InstanceNotFoundError,
    StackCreationError,
    StackNotFoundError,
)
from .flags import BoolFlag, DriverOptions, Flag, StringFlag
from .state import MachineState, machine_state
from .wait import wait_for

if TYPE_CHECKING:
    from mypy_boto3_cloudformation.type_defs import StackTypeDef
    from mypy_boto3_ec2.type_defs import InstanceTypeDef


FLAG_URL: Final = "cloudformation-url"
FLAG_KEYPAIR_NAME: Final = "cloudformation-keypairname"
FLAG_KEYPATH: Final = "cloudformation-keypath"
FLAG_SSH_USER: Final = "cloudformation-ssh-user"
FLAG_USE_PRIVATE_ADDRESS: Final = "cloudformation-use-private-address"
FLAG_REGION: Final = "cloudformation-region"

CREATE_FLAGS: Final[tuple[Flag, ...]] = (
    StringFlag(
        name=FLAG_URL,
        usage="S3 URL of the CloudFormation File",
        env_var="CF_URL",
    ),
    StringFlag(
        name=FLAG_KEYPAIR_NAME,
        usage="SSH KeyPair to use",
        env_var="CF_KEYPAIR_NAME",
    ),
    StringFlag(
        name=FLAG_KEYPATH,
        usage="keypath to SSH Private Key",
        env_var="CF_KEYPATH",
    ),
    StringFlag(
        name=FLAG_SSH_USER,
        usage="set the name of the ssh user",
        value=DEFAULT_SSH_USER,
        env_var="CF_SSH_USER",
    ),
    BoolFlag(
        name=FLAG_USE_PRIVATE_ADDRESS,
        usage="Force the usage of private IP address",
        env_var="CF_USE_PRIVATE_ADDRESS",
    ),
    StringFlag(
        name=FLAG_REGION,
        usage="AWS region of the stack (default: AWS config/environment)",
        env_var="CF_REGION",
    ),
)

_REQUIRED_FLAGS: Final = (FLAG_URL, FLAG_KEYPATH, FLAG_KEYPAIR_NAME)

# Fields that never leave the process.
_TRANSIENT_FIELDS: Final = frozenset({"clients"})


def generate_id() -> str:
    """Return an opaque local correlation id."""
    return hashlib.md5(secrets.token_bytes(10)).hexdigest()


def _is_failure_status(status: str) -> bool:
    return status == StackStatus.CREATE_FAILED or status.startswith(STACK_FAILURE_PREFIXES)


@dataclass
class Driver(BaseDriver):
    """Machine driver backed by a CloudFormation stack named after the machine.

    ``ip_address`` (from BaseDriver) holds the public address read from
    the stack outputs.
    """

    id: str = field(default_factory=generate_id)
    cloudformation_url: str = ""
    ssh_private_key_path: str = ""
    instance_id: str = ""
    private_ip_address: str = ""
    key_pair_name: str = ""
    use_private_ip: bool = False
    region: str | None = None
    poll_interval: float = POLL_INTERVAL
    poll_max_attempts: int | None = POLL_MAX_ATTEMPTS
    clients: AWSClients | None = field(default=None, repr=False, compare=False)

    # =========================================================================
    # Configuration
    # =========================================================================

    def driver_name(self) -> str:
        return DRIVER_NAME

    def create_flags(self) -> Sequence[Flag]:
        return CREATE_FLAGS

    def set_config_from_flags(self, options: DriverOptions) -> None:
        """Copy flag values onto the driver and check the required ones.

        Raises:
            ConfigurationError: If the template URL, key path or key pair
                name is blank.
        """
        self.cloudformation_url = options.string(FLAG_URL)
        self.ssh_private_key_path = options.string(FLAG_KEYPATH)
        self.key_pair_name = options.string(FLAG_KEYPAIR_NAME)
        self.ssh_user = options.string(FLAG_SSH_USER)
        self.use_private_ip = options.boolean(FLAG_USE_PRIVATE_ADDRESS)
        self.region = options.string(FLAG_REGION) or None

        for name in _REQUIRED_FLAGS:
            if not options.string(name):
                raise ConfigurationError(f"{DRIVER_NAME} driver requires the --{name} option")

    def pre_create_check(self) -> None:
        key_path = Path(self.ssh_private_key_path).expanduser()
        if not key_path.is_file():
            raise ConfigurationError(f"SSH private key not found: {key_path}")

    # =========================================================================
    # Stack
    # =========================================================================

    @property
    def _aws(self) -> AWSClients:
        if self.clients is None:
            self.clients = AWSClients(region=self.region)
        return self.clients

    def create(self) -> None:
        logger.debug(f"Creating a new instance for stack: {self.machine_name}")

        self._copy_ssh_key()

        self._aws.cloudformation.create_stack(
            StackName=self.machine_name,
            TemplateURL=self.cloudformation_url,
            Parameters=[
                {"ParameterKey": KEY_NAME_PARAMETER, "ParameterValue": self.key_pair_name},
            ],
        )

        self._wait(self._stack_available, f"stack {self.machine_name}")
        self._get_instance_info()

        logger.debug(
            f"Created instance ID {self.instance_id}, IP address {self.ip_address}, "
            f"private IP address {self.private_ip_address}"
        )

    def remove(self) -> None:
        """Request deletion of the stack. Does not wait for completion."""
        logger.debug(f"Deleting stack {self.machine_name}")
        self._aws.cloudformation.delete_stack(StackName=self.machine_name)

    def _copy_ssh_key(self) -> None:
        source = Path(self.ssh_private_key_path).expanduser()
        target = Path(self.get_ssh_key_path())
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        target.chmod(0o600)

    def _describe_stack(self) -> StackTypeDef:
        resp = self._aws.cloudformation.describe_stacks(StackName=self.machine_name)
        stacks = resp.get("Stacks", [])
        if not stacks:
            raise StackNotFoundError(self.machine_name)
        return stacks[0]

    def _stack_available(self) -> bool:
        logger.debug(f"Checking if stack {self.machine_name} is available")

        try:
            stack = self._describe_stack()
        except (ClientError, StackNotFoundError) as e:
            logger.info(f"Could not describe stack {self.machine_name}: {e}")
            return False

        status = stack["StackStatus"]
        if status == StackStatus.CREATE_COMPLETE:
            return True
        if _is_failure_status(status):
            raise StackCreationError(self.machine_name, status, stack.get("StackStatusReason", ""))

        logger.debug(f"Stack {self.machine_name} not available yet ({status})")
        return False

    def _get_instance_info(self) -> None:
        stack = self._describe_stack()

        for output in stack.get("Outputs", []):
            value = output.get("OutputValue", "")
            match output.get("OutputKey"):
                case StackOutput.PRIVATE_IP:
                    self.private_ip_address = value
                case StackOutput.INSTANCE_ID:
                    self.instance_id = value
                case StackOutput.IP_ADDRESS:
                    self.ip_address = value

    # =========================================================================
    # Instance
    # =========================================================================

    def _get_instance(self) -> InstanceTypeDef:
        resp = self._aws.ec2.describe_instances(InstanceIds=[self.instance_id])
        for reservation in resp.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return instance
        raise InstanceNotFoundError(self.instance_id)

    def get_state(self) -> MachineState:
        instance = self._get_instance()
        return machine_state(instance["State"]["Name"])

    def get_ip(self) -> str:
        instance = self._get_instance()
        private_ip = instance.get("PrivateIpAddress", "")
        logger.debug(f"Instance {self.instance_id} private IP is {private_ip}")

        if self.use_private_ip:
            return private_ip
        return instance.get("PublicIpAddress", "")

    def get_url(self) -> str:
        ip = self.get_ip()
        if not ip:
            return ""
        return f"tcp://{ip}:{DOCKER_PORT}"

    def get_ssh_hostname(self) -> str:
        return self.get_ip()

    def start(self) -> None:
        self._aws.ec2.start_instances(InstanceIds=[self.instance_id])
        self._wait_for_state(MachineState.RUNNING)

    def restart(self) -> None:
        self._aws.ec2.reboot_instances(InstanceIds=[self.instance_id])
        self._wait_for_state(MachineState.RUNNING)

    def stop(self) -> None:
        self._aws.ec2.stop_instances(InstanceIds=[self.instance_id])
        self._wait_for_state(MachineState.STOPPED)

    def kill(self) -> None:
        self._aws.ec2.stop_instances(InstanceIds=[self.instance_id], Force=True)
        self._wait_for_state(MachineState.STOPPED)

    def _instance_in_state(self, target: MachineState) -> bool:
        try:
            current = self.get_state()
        except (ClientError, InstanceNotFoundError) as e:
            logger.debug(f"Could not get state of instance {self.instance_id}: {e}")
            return False
        return current == target

    def _wait_for_state(self, target: MachineState) -> None:
        self._wait(
            lambda: self._instance_in_state(target),
            f"instance {self.instance_id} to be {target}",
        )

    def _wait(self, condition: Callable[[], bool], description: str) -> None:
        wait_for(
            condition,
            interval=self.poll_interval,
            max_attempts=self.poll_max_attempts,
            description=description,
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize the persistent fields to a JSON-compatible dict."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _TRANSIENT_FIELDS
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Deserialize from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)} - _TRANSIENT_FIELDS
        return cls(**{k: v for k, v in data.items() if k in known})
