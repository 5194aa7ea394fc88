from __future__ import annotations

import argparse
import json
import logging
import sys

from hostcare.catalogue import SelectionError
from hostcare.config import ConfigError, Settings, load_settings
from hostcare.executor import (
    Failed,
    NotApplicable,
    Ok,
    PrivilegeRequiredError,
    Report,
    Skipped,
    Unavailable,
)
from hostcare.tasks import CATALOGUES, build_context, build_runner
from hostcare.tools import Intent

from .args import build_parser

logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None, *, context_factory=build_context) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _configure_logging(args.verbose)

        match args.command:
            case "inventory" | "healthcheck" | "maintenance":
                return cmd_run(args, context_factory)
            case "list":
                return cmd_list(args)
            case _:
                return 2

    except (ConfigError, SelectionError, PrivilegeRequiredError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def cmd_run(args: argparse.Namespace, context_factory=build_context) -> int:
    settings = load_settings(args.config)
    exclude, include = _selection(args, settings)
    intent = Intent.VERIFY if getattr(args, "verify_only", False) else Intent.REPAIR

    context = context_factory(settings, intent=intent)
    runner = build_runner(args.command, context)
    report = runner.run(exclude=exclude, include=include)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)
    return 1 if report.failed else 0


def cmd_list(args: argparse.Namespace) -> int:
    for name, catalogue in CATALOGUES.items():
        if args.runner and args.runner != name:
            continue
        for spec in catalogue:
            marker = " (admin)" if spec.privileged else ""
            print(f"{name}: {spec.name}{marker}")
    return 0


def _selection(
    args: argparse.Namespace, settings: Settings
) -> tuple[list[str] | None, list[str] | None]:
    # command-line flags replace whatever the settings file selects
    if args.exclude is not None or args.include is not None:
        return args.exclude, args.include

    configured = settings.selection_for(args.command)
    return configured.exclude, configured.include


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_report(report: Report) -> None:
    for name, result in report.items():
        match result:
            case Ok():
                print(f"OK {name}")
            case Skipped():
                print(f"SKIP {name}")
            case NotApplicable(reason=reason):
                print(f"N/A {name}: {reason}")
            case Unavailable(reason=reason):
                print(f"UNAVAILABLE {name}: {reason}")
            case Failed(reason=reason):
                print(f"FAIL {name}: {reason}")
