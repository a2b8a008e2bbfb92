import argparse
import asyncio
import logging
import os
import sys
from typing import Awaitable, Callable, List, Optional

from .commands import Command, UpdateField
from .config import CONFIG_FILE, HubSettings, load_settings, set_hub_ip, set_hub_port
from .controller import HubController
from .devices import DEVICE_TYPES, parse_device_type, valid_commands
from .exceptions import (
    ConfigError,
    InvalidLearnedCode,
    KissLightError,
    MalformedReply,
    ProtocolRejection,
    TransportError,
    UsageError,
)
from .learning import CodeKind, CodeLearner
from .transport import TCPTransport

logger = logging.getLogger("klctl")

Action = Callable[[HubController], Awaitable[int]]

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def initialize_logging(log_level_str: str) -> None:
    """Configure logging on stderr so it never mixes with command output."""
    level = getattr(logging, log_level_str.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger().setLevel(level)


class _ArgumentParser(argparse.ArgumentParser):
    """Reports bad arguments as UsageError instead of exiting with status 2."""

    def error(self, message: str) -> None:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="klctl", description="Control devices through a kiss-light hub.")
    parser.add_argument("--config", default=None, help=f"Config file. Default: $KLCTL_CONFIG or {CONFIG_FILE}")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level. Default: $LOG_LEVEL or WARNING",
    )
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for each hub reply (default: wait forever)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("set", help="Send a command to a device, e.g. 'set lamp on' or 'set lamp dimmer 40'.")
    p.add_argument("name")
    p.add_argument("cmd")
    p.add_argument("arg", nargs="?")

    p = subparsers.add_parser("toggle", help="Toggle a device on or off.")
    p.add_argument("name")

    p = subparsers.add_parser("send", help="Publish a message on an MQTT topic, or transmit a raw RF code with --rf.")
    p.add_argument("--rf", action="store_true", help="Treat the arguments as <code> <pulse>")
    p.add_argument("target", metavar="TOPIC|CODE")
    p.add_argument("value", metavar="MESSAGE|PULSE")

    p = subparsers.add_parser(
        "add",
        help="Add a device: 'add <name>' scans a remote, 'add <name> -m <code> <pulse>' stores a known code, "
             "'add <name> <topic> <type> [<cmds>]' adds an MQTT device.",
    )
    p.add_argument("name")
    p.add_argument("-m", "--manual", nargs=2, metavar=("CODE", "PULSE"))
    p.add_argument("rest", nargs="*", metavar="TOPIC TYPE [CMDS]")

    p = subparsers.add_parser("delete", help="Delete a device.")
    p.add_argument("name")

    p = subparsers.add_parser("status", help="Show the state of a device.")
    p.add_argument("name")

    subparsers.add_parser("list", help="List the devices known to the hub.")
    subparsers.add_parser("scan", help="Capture a code from a remote without adding a device.")

    p = subparsers.add_parser("update", help="Rename a device, change its topic, or refresh its state.")
    p.add_argument("field", type=str.lower, choices=["name", "topic", "state"])
    p.add_argument("name")
    p.add_argument("value", nargs="?")

    p = subparsers.add_parser("ip", help="Set the hub's IP address in the config file.")
    p.add_argument("address")

    p = subparsers.add_parser("port", help="Set the hub's port in the config file.")
    p.add_argument("port")

    return parser


def _parse_int(value: str, what: str) -> int:
    try:
        return int(value, 10)
    except ValueError:
        raise UsageError(f"{what} must be an integer, got {value!r}") from None


def _plan_set(args: argparse.Namespace) -> Action:
    command = Command.SET(args.name, args.cmd, args.arg)

    async def run(controller: HubController) -> int:
        await controller.execute(command)
        print(f"Successfully Set Device '{args.name}' {' '.join(command.args[1:])}")
        return 0
    return run


def _plan_toggle(args: argparse.Namespace) -> Action:
    command = Command.TOGGLE(args.name)

    async def run(controller: HubController) -> int:
        await controller.execute(command)
        print(f"Toggled Device '{args.name}' Successfully")
        return 0
    return run


def _plan_send(args: argparse.Namespace) -> Action:
    if args.rf:
        code = _parse_int(args.target, "Code")
        pulse = _parse_int(args.value, "Pulse")
        command = Command.TRANSMIT_CODE(code, pulse)
        done = f"Transmitted code:{code} pulse:{pulse} Successfully"
    else:
        command = Command.TRANSMIT(args.target, args.value)
        done = f"Sent '{args.value}' to topic '{args.target}' Successfully"

    async def run(controller: HubController) -> int:
        await controller.execute(command)
        print(done)
        return 0
    return run


def _print_added(name: str, on_code: int, off_code: int, pulse: int) -> None:
    print(f"Added Device '{name}' Successfully (on={on_code} off={off_code} pulse={pulse})")


def _plan_add(args: argparse.Namespace) -> Action:
    if args.manual:
        if args.rest:
            raise UsageError("add --manual takes no topic or type")
        code = _parse_int(args.manual[0], "Code")
        pulse = _parse_int(args.manual[1], "Pulse")

        async def run_manual(controller: HubController) -> int:
            request = await CodeLearner(controller).add_manual(args.name, code, pulse)
            _print_added(request.name, request.on_code, request.off_code, request.pulse)
            return 0
        return run_manual

    if not args.rest:
        async def run_scan(controller: HubController) -> int:
            learner = CodeLearner(controller, on_armed=lambda: print("Scanning, please press the desired button"))
            request = await learner.add_by_scan(args.name)
            _print_added(request.name, request.on_code, request.off_code, request.pulse)
            return 0
        return run_scan

    if len(args.rest) not in (2, 3):
        raise UsageError("add expects <name> <topic> <type> [<cmds>]")
    topic, type_arg = args.rest[0], args.rest[1]
    commands = args.rest[2] if len(args.rest) == 3 else None
    dev_type = parse_device_type(type_arg)
    command = Command.ADD(args.name, topic, dev_type, commands)

    async def run_mqtt(controller: HubController) -> int:
        await controller.execute(command)
        accepted = ", ".join(valid_commands(dev_type, command.args[3] if len(command.args) > 3 else None))
        print(f"Added Device '{args.name}' ({DEVICE_TYPES[dev_type].name}) Successfully, accepts: {accepted}")
        return 0
    return run_mqtt


def _plan_delete(args: argparse.Namespace) -> Action:
    command = Command.DELETE(args.name)

    async def run(controller: HubController) -> int:
        await controller.execute(command)
        print(f"Deleted Device '{args.name}' Successfully")
        return 0
    return run


def _plan_status(args: argparse.Namespace) -> Action:
    Command.STATUS(args.name)  # reject a bad name before connecting

    async def run(controller: HubController) -> int:
        lines = await controller.status(args.name)
        print(f"{args.name}:")
        for line in lines:
            print(line)
        return 0
    return run


def _plan_list(args: argparse.Namespace) -> Action:
    async def run(controller: HubController) -> int:
        lines = await controller.list_devices()
        print("Here is the list:")
        for line in lines:
            print(line)
        return 0
    return run


def _plan_scan(args: argparse.Namespace) -> Action:
    async def run(controller: HubController) -> int:
        learner = CodeLearner(controller, on_armed=lambda: print("Scanning, please press the desired button"))
        outcome = await learner.sniff()
        if not outcome.ok:
            print(outcome.reason, file=sys.stderr)
            return 1
        kind = outcome.kind
        if kind is CodeKind.ON:
            verdict = "On was scanned."
        elif kind is CodeKind.OFF:
            verdict = "Off was scanned."
        else:
            verdict = "Code is invalid."
        print(f"Scanning successful, Code={outcome.learned.code}, Pulse={outcome.learned.pulse}, {verdict}")
        return 0
    return run


def _plan_update(args: argparse.Namespace) -> Action:
    field = UpdateField(args.field.upper())
    command = Command.UPDATE(field, args.name, args.value)

    async def run(controller: HubController) -> int:
        await controller.execute(command)
        if field is UpdateField.NAME:
            print(f"Renamed Device '{args.name}' to '{args.value}'")
        elif field is UpdateField.TOPIC:
            print(f"Moved Device '{args.name}' to topic '{args.value}'")
        else:
            print(f"Requested a state refresh for Device '{args.name}'")
        return 0
    return run


PLANNERS = {
    "set": _plan_set,
    "toggle": _plan_toggle,
    "send": _plan_send,
    "add": _plan_add,
    "delete": _plan_delete,
    "status": _plan_status,
    "list": _plan_list,
    "scan": _plan_scan,
    "update": _plan_update,
}


def _failure_message(args: argparse.Namespace, exc: ProtocolRejection) -> str:
    subject = f" '{args.name}'" if getattr(args, "name", None) else ""
    return f"Unable to {args.command} device{subject}: {exc} (status {exc.status})"


async def _async_run(action: Action, settings: HubSettings) -> int:
    transport = TCPTransport(host=settings.host, port=settings.port)
    controller = HubController(
        transport=transport,
        version=settings.version,
        read_timeout=settings.read_timeout,
    )
    logger.info("Connecting to hub at %s:%s (KL/%s)", settings.host, settings.port, settings.version)
    async with controller:
        return await action(controller)


def run(argv: Optional[List[str]] = None) -> int:
    """Parse ``argv``, perform one command and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"klctl: error: {exc}", file=sys.stderr)
        return 1

    initialize_logging(args.log_level)

    try:
        if args.command == "ip":
            host = set_hub_ip(args.address, args.config)
            print(f"Hub IP set to {host}")
            return 0
        if args.command == "port":
            port = set_hub_port(args.port, args.config)
            print(f"Hub port set to {port}")
            return 0

        action = PLANNERS[args.command](args)
        settings = load_settings(args.config)
        if args.timeout is not None:
            settings.read_timeout = args.timeout if args.timeout > 0 else None
        return asyncio.run(_async_run(action, settings))

    except UsageError as exc:
        parser.print_usage(sys.stderr)
        print(f"klctl: error: {exc}", file=sys.stderr)
    except InvalidLearnedCode as exc:
        print(str(exc), file=sys.stderr)
    except ProtocolRejection as exc:
        print(_failure_message(args, exc), file=sys.stderr)
    except MalformedReply as exc:
        print(f"Hub sent an unreadable reply: {exc}", file=sys.stderr)
    except TransportError as exc:
        print(f"Connection error: {exc}", file=sys.stderr)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
    except KissLightError as exc:
        logger.error("Unexpected error: %s", exc, exc_info=True)
    return 1


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
