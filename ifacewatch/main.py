import argparse
import logging
import os
import platform
import signal
import sys
from platform import system
from typing import Any, Dict, List, Optional

import sentry_sdk

from ifacewatch import __version__
from ifacewatch.api.daemon import daemonize
from ifacewatch.api.interfaces import BACKENDS
from ifacewatch.config import (DEFAULT_THROTTLE_SECONDS, ConfigError, ExecutionConfig, build_config,
                               load_config_file)
from ifacewatch.interface_monitor import InterfaceMonitor, StartupError
from ifacewatch.logging_setup import setup_logging
from ifacewatch.triggers.throttle import get_all_modes

log = logging.getLogger(__name__)

SENTRY_DSN_ENV = "IFACEWATCH_SENTRY_DSN"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise ConfigError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="ifacewatch",
        description="Run a command whenever the active non-loopback IPv4 interface changes.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="print the interface on change; twice prints it on every poll")
    parser.add_argument("-D", "--daemon", action="store_true", default=None, help="run as a daemon")
    parser.add_argument("-t", "--throttle", dest="throttle_seconds", metavar="SECONDS",
                        help=f"throttle delay for command execution (default: {DEFAULT_THROTTLE_SECONDS} seconds)")
    parser.add_argument("-l", "--log-file", metavar="PATH", help="write output and logs to this file")
    parser.add_argument("-c", "--config", metavar="PATH", help="JSON configuration file")
    parser.add_argument("-b", "--backend", choices=sorted(BACKENDS), help="interface enumeration backend")
    parser.add_argument("--throttle-mode", choices=get_all_modes(),
                        help="throttle the command only (action) or the polling itself (poll)")
    parser.add_argument("--timeout", dest="command_timeout", metavar="SECONDS",
                        help="kill the command if it runs longer than this")
    parser.add_argument("--interval", dest="poll_interval", metavar="SECONDS",
                        help="seconds between polls, at most 1")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-e", "--exec", dest="command", nargs=argparse.REMAINDER, metavar="COMMAND",
                        help="command to execute when the interface changes; every argument after it is passed on")
    return parser


def parse_config(argv: Optional[List[str]] = None) -> ExecutionConfig:
    """
    Merges the optional JSON config file with the command line; flags given on
    the command line win.
    """
    args = build_parser().parse_args(argv)

    values: Dict[str, Any] = {}
    if args.config:
        values.update(load_config_file(args.config))

    if args.verbose:
        values["verbose"] = True
        values["very_verbose"] = args.verbose > 1
    if args.daemon:
        values["daemonize"] = True
    if args.command is not None:
        if not args.command:
            raise ConfigError("Option -e requires a command.")
        values["command_path"] = args.command[0]
        values["command_args"] = args.command[1:]

    overrides = {
        "throttle_seconds": args.throttle_seconds,
        "log_file": args.log_file,
        "backend": args.backend,
        "throttle_mode": args.throttle_mode,
        "command_timeout": args.command_timeout,
        "poll_interval": args.poll_interval,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    if values.get("log_file"):
        values["log_file"] = os.path.abspath(os.path.expanduser(values["log_file"]))

    return build_config(values)


def init_error_reporting(config: ExecutionConfig) -> bool:
    dsn = config.sentry_dsn or os.environ.get(SENTRY_DSN_ENV)
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        send_default_pii=False,
        server_name=f"{system()} on {platform.node()}",
    )
    return True


def main(argv: Optional[List[str]] = None) -> int:
    try:
        config = parse_config(argv)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    if config.daemonize:
        daemonize(config.log_file)
        # stdout and stderr already point at the log file
        setup_logging(config.verbosity)
    else:
        setup_logging(config.verbosity, config.log_file)

    init_error_reporting(config)

    monitor = InterfaceMonitor(config)
    signal.signal(signal.SIGTERM, lambda signum, frame: monitor.stop())

    try:
        monitor.start()
    except StartupError as e:
        print(e, file=sys.stderr)
        return 1

    log.info("Watching interfaces, tracking %s", monitor.iface_state.current_name)
    try:
        monitor.run()
    except KeyboardInterrupt:
        monitor.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
