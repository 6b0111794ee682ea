"""
Command line interface for the service controller.

    control {start|stop|restart|status|update-binary <path>}

Exits 1 with a usage message for unknown or missing commands, otherwise 0 on
success and 1 when a command fails.
"""

import argparse
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import Config
from .controller import ServiceController
from .errors import ServiceCtlError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def configure_logging(config: Config, verbose: bool = False):
    """Log to a rotating file under the deployment and to stderr."""
    log_formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)
    except OSError as e:
        print(f"warning: unable to open log file {config.log_file}: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    handlers.append(console_handler)

    logging.basicConfig(level=logging.INFO, handlers=handlers, force=True)


def _add_stop_options(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--timeout-ticks",
        type=int,
        default=None,
        help="Number of exit checks before forcing a kill",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between exit checks",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(prog="control", description="Control the supervised service")
    parser.add_argument("--version", action="version", version=f"control {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    sub = parser.add_subparsers(dest="cmd", metavar="{start|stop|restart|status|update-binary}")

    sub.add_parser("start", help="Check configuration and start the service")

    stop = sub.add_parser("stop", help="Stop the service, forcing a kill on timeout")
    _add_stop_options(stop)

    restart = sub.add_parser("restart", help="Stop then start the service")
    _add_stop_options(restart)

    status = sub.add_parser("status", help="Show whether the service is running")
    status.add_argument("--json", action="store_true", help="Print status as JSON")

    update = sub.add_parser("update-binary", help="Back up and replace the service binary")
    update.add_argument("path", type=Path, help="Path to the new binary")

    return parser


def run_command(controller: ServiceController, args: argparse.Namespace) -> int:
    if args.cmd == "start":
        controller.start()
    elif args.cmd == "stop":
        controller.stop(args.timeout_ticks, args.interval)
    elif args.cmd == "restart":
        controller.restart(args.timeout_ticks, args.interval)
    elif args.cmd == "status":
        status = controller.status()
        if args.json:
            print(status.model_dump_json())
        else:
            print(status.describe())
    elif args.cmd == "update-binary":
        controller.update_binary(args.path)
    return 0


def main(argv: Optional[List[str]] = None, config: Optional[Config] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_usage(sys.stderr)
        return 1

    try:
        if config is None:
            config = Config()
    except ServiceCtlError as e:
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code
    configure_logging(config, args.verbose)

    controller = ServiceController(config)
    try:
        return run_command(controller, args)
    except ServiceCtlError as e:
        logger.error(f"{args.cmd} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code
