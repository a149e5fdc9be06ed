"""
CLI interface for autosshfs.

Usage:
    python -m autosshfs --list                 # Configured targets
    python -m autosshfs --mounted              # Live mounts of configured targets
    python -m autosshfs --connect              # Mount all targets
    python -m autosshfs --connect db1,web      # Mount some targets
    python -m autosshfs --disconnect db1       # Unmount a target
    python -m autosshfs --reconnect -v         # Remount everything mounted, report status
    python -m autosshfs -f ./ssh_config --list
    python -m autosshfs --help

Typical use is from ~/.ssh/config itself, so that logging in mounts the host:

    Host *
        PermitLocalCommand yes

    Host db1
        LocalCommand autosshfs --connect %n
"""
from __future__ import annotations

import argparse
import logging
import sys

from autosshfs import __version__
from autosshfs.config import parse_config
from autosshfs.errors import AutoSSHFSError
from autosshfs.events import EventCollector, EventEmitter, EventType, JSONLEventWriter
from autosshfs.mounts import MountTable
from autosshfs.options import MOUNT_HELPER, UNMOUNT_HELPER, local_path, remote_path
from autosshfs.orchestrator import DEFAULT_SETTLE_DELAY_SEC, Orchestrator, SettleWait
from autosshfs.platform import MOUNT_TABLE_PATH, get_config_path
from autosshfs.targets import ALL_TARGETS, Mode, resolve_targets


def cli_confirm(verb: str) -> bool:
    """
    Ask whether an operation on all targets should go ahead.

    Returns:
        True if the user answered yes. EOF and Ctrl-C count as no.
    """
    while True:
        try:
            response = input(f"Are you sure you want to {verb} all targets (yes/no)? ")
        except (EOFError, KeyboardInterrupt):
            print("", file=sys.stderr)
            return False
        response = response.strip().lower()
        if response in ("yes", "y"):
            return True
        if response in ("no", "n"):
            return False
        print("Please type 'yes' or 'no'.", file=sys.stderr)


def parse_target_list(value: str) -> list[str]:
    """
    Parse a comma-separated target list.

    Raises:
        argparse.ArgumentTypeError: If no target names are given
    """
    targets = [part.strip() for part in value.split(",") if part.strip()]
    if not targets:
        raise argparse.ArgumentTypeError(f"no targets in {value!r}")
    return targets


def non_negative_float(value: str) -> float:
    """
    Parse a delay in seconds.

    Raises:
        argparse.ArgumentTypeError: If the value is not a number or is negative
    """
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return seconds


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the autosshfs CLI."""
    parser = _ArgumentParser(
        prog="autosshfs",
        description="Mount sshfs targets declared in your SSH config",
        epilog="Targets default to all configured hosts when no list is given.",
    )

    parser.add_argument(
        "-f", "--file",
        metavar="FILE",
        default=None,
        help=f"SSH config file (default: {get_config_path()})",
    )

    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List configured targets",
    )

    parser.add_argument(
        "-m", "--mounted",
        action="store_true",
        help="List live mounts of configured targets",
    )

    actions = parser.add_mutually_exclusive_group()
    for flag, mode in (("connect", Mode.CONNECT), ("disconnect", Mode.DISCONNECT),
                       ("reconnect", Mode.RECONNECT)):
        actions.add_argument(
            f"-{flag[0]}", f"--{flag}",
            metavar="TARGETS",
            nargs="?",
            const=ALL_TARGETS,
            type=parse_target_list,
            help=f"{flag.capitalize()} comma-separated targets (default: all)",
        )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Report per-target status; repeat for debug logging",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log errors",
    )

    parser.add_argument(
        "--settle-delay",
        metavar="SECONDS",
        type=non_negative_float,
        default=DEFAULT_SETTLE_DELAY_SEC,
        help="Wait before re-checking mounts in verbose mode "
             f"(default: {DEFAULT_SETTLE_DELAY_SEC:g})",
    )

    parser.add_argument(
        "--mount-helper",
        metavar="PROG",
        default=MOUNT_HELPER,
        help=f"Mount helper program (default: {MOUNT_HELPER})",
    )

    parser.add_argument(
        "--unmount-helper",
        metavar="PROG",
        default=UNMOUNT_HELPER,
        help=f"Unmount helper program (default: {UNMOUNT_HELPER})",
    )

    parser.add_argument(
        "--mount-table",
        metavar="FILE",
        default=str(MOUNT_TABLE_PATH),
        help=f"Mount table to read (default: {MOUNT_TABLE_PATH})",
    )

    parser.add_argument(
        "--events",
        action="store_true",
        help="Print JSONL events to stderr",
    )

    parser.add_argument(
        "--events-file",
        metavar="FILE",
        default=None,
        help="Append JSONL events to FILE",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def _selected_action(args: argparse.Namespace) -> tuple[Mode, object] | None:
    for mode in Mode:
        requested = getattr(args, mode.value, None)
        if requested is not None:
            return mode, requested
    return None


def _setup_logging(args: argparse.Namespace) -> None:
    if args.quiet:
        level = logging.ERROR
    elif args.verbose >= 2:
        level = logging.DEBUG
    elif args.verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("autosshfs").setLevel(level)


def run_command(args: argparse.Namespace) -> int:
    """
    Run the requested listings and action.

    Args:
        args: Parsed command line arguments

    Returns:
        0 on completion (per-target failures included), 1 on fatal errors
    """
    _setup_logging(args)

    emitter = EventEmitter()
    collector = None
    if args.events:
        collector = EventCollector()
        emitter.add_sink(collector)

    try:
        if args.events_file:
            emitter.add_sink(JSONLEventWriter.append_to(args.events_file))

        config = parse_config(args.file)
        emitter.emit(
            EventType.PARSE,
            path=str(config.source),
            targets=config.targets(),
        )
        table = MountTable(args.mount_table)

        if args.list:
            rows = [
                (key, str(local_path(config, key)), remote_path(config, key))
                for key in config.targets()
            ]
            if rows:
                key_w = max(len(key) for key, _, _ in rows)
                local_w = max(len(local) for _, local, _ in rows)
                for key, local, remote in rows:
                    print(f"{key.ljust(key_w)}  {local.ljust(local_w)}  {remote}")

        if args.mounted:
            for record in table.list_mounted(config.targets()):
                print(record)

        action = _selected_action(args)
        if action is not None:
            mode, requested = action
            targets = resolve_targets(
                config,
                requested,  # type: ignore[arg-type]
                mode,
                interactive=sys.stdin.isatty(),
                mount_table=table,
                confirm=cli_confirm,
            )
            orchestrator = Orchestrator(
                config,
                table,
                mount_helper=args.mount_helper,
                unmount_helper=args.unmount_helper,
                readiness=SettleWait(args.settle_delay),
                emitter=emitter,
            )
            report = getattr(orchestrator, mode.value)(targets, verbose=args.verbose > 0)
            if args.verbose:
                for status in report.statuses:
                    print(status.describe())

    except AutoSSHFSError as e:
        emitter.emit(EventType.ERROR, **e.to_dict())
        print(f"autosshfs: {e}", file=sys.stderr)
        return 1
    finally:
        if collector is not None:
            for event in collector.events:
                print(event.to_json(), file=sys.stderr)
        emitter.close()

    return 0


def main() -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not (args.list or args.mounted or _selected_action(args)):
        parser.error("no action given (use --list, --mounted, --connect, "
                     "--disconnect or --reconnect)")

    return run_command(args)


if __name__ == "__main__":
    sys.exit(main())
