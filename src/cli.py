"""CLI interface for netblock."""

import argparse
import logging
import os
import platform
import sys
from typing import List, Optional

from netblock.backend import NetshBackend
from netblock.errors import InvalidModeError, NetBlockError
from netblock.firewall import AccessState, FirewallManager
from netblock.resolver import MatchPolicy, PathResolver

MODE_ALLOW = 1
MODE_BLOCK = 2
MODE_STATUS = 3

STATUS_LABELS = {
    AccessState.BLOCKED: "Blocked (BLOCKED)",
    AccessState.ALLOWED: "Allowed (ALLOWED)",
    AccessState.PARTIAL: "Partially blocked (PARTIAL)",
}


def check_elevated_privileges() -> bool:
    """Check if running with elevated privileges.

    Returns:
        True if running with sudo/administrator privileges
    """
    if platform.system() == "Windows":
        try:
            import ctypes
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


def warn_if_not_elevated():
    """Print a warning when rule changes are likely to be refused."""
    if check_elevated_privileges():
        return

    print("=" * 70)
    print("WARNING: Administrator Privileges Required")
    print("=" * 70)
    print()
    print("Changing firewall rules requires Administrator privileges.")
    print("  1. Right-click on Command Prompt or PowerShell")
    print("  2. Select 'Run as administrator'")
    print("  3. Run this command again")
    print()
    print("Continuing anyway...")
    print()


def translate_status(state: AccessState) -> str:
    """Translate an access state into a display label."""
    return STATUS_LABELS.get(state, state.value)


def process_program(manager: FirewallManager, program_path: str, mode: int,
                    strict: bool = False):
    """Run one mode against a single resolved program.

    Raises:
        InvalidModeError: If mode is not allow, block or status
        BackendError: If the firewall backend failed
    """
    if mode == MODE_ALLOW:
        result = manager.unblock(program_path, strict=strict)
        if result.failed:
            print(f"  Warning: some rules may not have been removed: {result.output}")
        print("  [ALLOWED] Removed firewall rules")
    elif mode == MODE_BLOCK:
        manager.block(program_path)
        print("  [BLOCKED] Added firewall block rules (inbound & outbound)")
    elif mode == MODE_STATUS:
        state = manager.status(program_path)
        print(f"  Status: {translate_status(state)}")
    else:
        raise InvalidModeError(mode)


def run(programs: List[str], mode: int, resolver: PathResolver,
        manager: FirewallManager, strict: bool = False) -> bool:
    """Resolve every program reference and apply the mode to each match.

    Returns:
        True if every reference resolved and every operation succeeded
    """
    ok = True

    for reference in programs:
        print("-" * 70)
        print(f"Input: {reference}")

        try:
            targets = resolver.resolve(reference)
        except NetBlockError as e:
            print(f"Error: Failed to resolve '{reference}': {e}")
            ok = False
            continue

        for program_path in targets:
            print(f"Program: {program_path}")
            try:
                process_program(manager, program_path, mode, strict=strict)
            except NetBlockError as e:
                print(f"  Error: Operation failed: {e}")
                ok = False

    print("-" * 70)
    print("All operations finished." if ok else "Finished with errors.")
    return ok


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netblock",
        description="Block or allow network access for programs using Windows Firewall.",
        epilog=(
            "examples:\n"
            "  netblock -p chrome -m 2\n"
            "  netblock -p \"C:\\Games\\Launcher\" -m 2\n"
            "  netblock -p chrome -p steam -m 3"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-p", "--program", dest="programs", action="append", required=True,
        metavar="PROGRAM",
        help="Full path, directory, or partial name of a program (repeatable)",
    )
    parser.add_argument(
        "-m", "--mode", type=int, required=True,
        help="1=allow access, 2=block access, 3=show status",
    )
    parser.add_argument(
        "--strict", action="store_true",
        help="Treat failures to remove existing rules as errors",
    )
    parser.add_argument(
        "--top", type=int, metavar="N",
        help="Use up to N name-search matches instead of the first one",
    )
    parser.add_argument(
        "--timeout", type=float,
        help="Seconds to wait for each netsh call",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log netsh commands and search details",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.top is not None and args.top < 1:
        parser.error("--top must be at least 1")

    if args.top is not None:
        resolver = PathResolver(match_policy=MatchPolicy.TOP_N, max_matches=args.top)
    else:
        resolver = PathResolver()
    manager = FirewallManager(NetshBackend(timeout=args.timeout))

    if args.mode in (MODE_ALLOW, MODE_BLOCK):
        warn_if_not_elevated()

    ok = run(args.programs, args.mode, resolver, manager, strict=args.strict)
    return 0 if ok else 1


if __name__ == '__main__':
    sys.exit(main())
