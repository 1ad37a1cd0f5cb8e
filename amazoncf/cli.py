"""Command line for managing CloudFormation-backed machines.

Example:
    amazoncf create web-1 \\
        --cloudformation-url https://s3.amazonaws.com/bucket/docker-host.json \\
        --cloudformation-keypairname ops \\
        --cloudformation-keypath ~/.ssh/ops.pem
    amazoncf url web-1
    amazoncf rm web-1
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import build_options, default_storage_path, load_config
from .driver import CREATE_FLAGS, Driver
from .exceptions import AmazonCFError
from .flags import BoolFlag, Flag, StringFlag
from .logging import setup_logging, teardown_logging
from .store import MachineStore

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_MACHINE_COMMANDS: dict[str, str] = {
    "start": "Start a stopped machine",
    "stop": "Stop a machine",
    "kill": "Force-stop a machine",
    "restart": "Reboot a machine",
    "rm": "Delete the machine's stack and local files",
    "status": "Show the machine state",
    "ip": "Show the machine IP address",
    "url": "Show the Docker URL of the machine",
    "inspect": "Show the stored machine record as JSON",
}


def _dest(flag: Flag) -> str:
    return flag.name.replace("-", "_")


def _add_flag(parser: argparse.ArgumentParser, flag: Flag) -> None:
    help_text = flag.usage
    if flag.env_var:
        help_text += f" [${flag.env_var}]"

    match flag:
        case BoolFlag():
            parser.add_argument(
                f"--{flag.name}", dest=_dest(flag), action="store_true", default=None, help=help_text,
            )
        case StringFlag():
            parser.add_argument(f"--{flag.name}", dest=_dest(flag), default=None, help=help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amazoncf",
        description="Manage machines backed by AWS CloudFormation stacks",
    )
    parser.add_argument(
        "-s", "--storage-path", type=Path, default=None,
        help="Directory holding machine records (default: ~/.amazoncf)",
    )
    parser.add_argument("-D", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-file", type=Path, default=None,
        help="Also write debug logs to this file",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a machine from a CloudFormation template")
    create.add_argument("name")
    for flag in CREATE_FLAGS:
        _add_flag(create, flag)

    for command, help_text in _MACHINE_COMMANDS.items():
        commands.add_parser(command, help=help_text).add_argument("name")

    commands.add_parser("ls", help="List machines")
    return parser


# =============================================================================
# Commands
# =============================================================================


def _create(store: MachineStore, args: argparse.Namespace) -> None:
    if store.exists(args.name):
        raise AmazonCFError(f"Machine {args.name} already exists")

    driver = Driver(args.name, str(store.root))
    options = build_options(
        driver.create_flags(),
        cli={flag.name: getattr(args, _dest(flag)) for flag in driver.create_flags()},
        config=load_config(),
    )
    driver.set_config_from_flags(options)
    driver.pre_create_check()

    try:
        driver.create()
    finally:
        store.save(driver)

    console.print(f"Machine {args.name} is running at {driver.get_url()}")


def _lifecycle(action: str) -> Callable[[MachineStore, argparse.Namespace], None]:
    def run(store: MachineStore, args: argparse.Namespace) -> None:
        driver = store.load(args.name)
        getattr(driver, action)()
        store.save(driver)
        console.print(f"Machine {args.name}: {action} done")

    return run


def _rm(store: MachineStore, args: argparse.Namespace) -> None:
    driver = store.load(args.name)
    driver.remove()
    store.remove(args.name)
    console.print(f"Machine {args.name} removed")


def _status(store: MachineStore, args: argparse.Namespace) -> None:
    console.print(str(store.load(args.name).get_state()))


def _ip(store: MachineStore, args: argparse.Namespace) -> None:
    console.print(store.load(args.name).get_ip())


def _url(store: MachineStore, args: argparse.Namespace) -> None:
    console.print(store.load(args.name).get_url())


def _inspect(store: MachineStore, args: argparse.Namespace) -> None:
    console.print_json(data=store.load(args.name).to_dict())


def _ls(store: MachineStore, args: argparse.Namespace) -> None:
    table = Table("NAME", "INSTANCE", "PUBLIC IP", "PRIVATE IP", box=None)
    for name in store.list():
        driver = store.load(name)
        table.add_row(name, driver.instance_id, driver.ip_address, driver.private_ip_address)
    console.print(table)


_HANDLERS: dict[str, Callable[[MachineStore, argparse.Namespace], None]] = {
    "create": _create,
    "start": _lifecycle("start"),
    "stop": _lifecycle("stop"),
    "kill": _lifecycle("kill"),
    "restart": _lifecycle("restart"),
    "rm": _rm,
    "status": _status,
    "ip": _ip,
    "url": _url,
    "inspect": _inspect,
    "ls": _ls,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    store = MachineStore(args.storage_path or default_storage_path())
    handler_ids = setup_logging(debug=args.debug, file=args.log_file)

    try:
        _HANDLERS[args.command](store, args)
    except (AmazonCFError, ClientError, BotoCoreError) as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    finally:
        teardown_logging(handler_ids)

    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
