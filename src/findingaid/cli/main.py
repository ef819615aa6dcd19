from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from findingaid.cli.commands import finding_aid_cmd, init_cmd, resources_cmd, settings_cmd
from findingaid.cli.context import EXIT_ERROR, EXIT_JOB_FAILED, EXIT_USAGE, CLIContext
from findingaid.core.config import load_paths
from findingaid.core.errors import EadExportError, FindingAidError
from findingaid.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="findingaid",
        description="Finding aid generation CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .findingaid data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    resources_cmd.register(subparsers)
    settings_cmd.register(subparsers)
    finding_aid_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        return handler(args, ctx)
    except EadExportError as exc:
        # The job row was already finalized as failed.
        logger.error(str(exc), exc_info=args.verbose > 1)
        return EXIT_JOB_FAILED
    except FindingAidError as exc:
        logger.error(str(exc), exc_info=args.verbose > 1)
        return EXIT_ERROR
    except KeyboardInterrupt:
        ctx.console.print("[yellow]Interrupted[/yellow]")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
