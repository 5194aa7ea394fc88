from __future__ import annotations

import argparse

from hostcare import __version__


def _add_selection(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exclude",
        nargs="+",
        metavar="TASK",
        help="Run every task except these",
    )
    parser.add_argument(
        "--include",
        nargs="+",
        metavar="TASK",
        help="Run only these tasks",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hostcare")

    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings file (.yml/.yaml, .toml or .json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # inventory
    inventory = subparsers.add_parser("inventory", help="Collect host information")
    _add_selection(inventory)

    # healthcheck
    healthcheck = subparsers.add_parser(
        "healthcheck", help="Run filesystem, system file and component store checks"
    )
    _add_selection(healthcheck)
    healthcheck.add_argument(
        "--verify-only",
        action="store_true",
        help="Only report problems, don't repair them",
    )

    # maintenance
    maintenance = subparsers.add_parser("maintenance", help="Run maintenance tasks")
    _add_selection(maintenance)

    # list
    list_ = subparsers.add_parser("list", help="List the tasks of each runner")
    list_.add_argument(
        "runner",
        nargs="?",
        choices=["inventory", "healthcheck", "maintenance"],
        help="Only list this runner",
    )

    return parser
