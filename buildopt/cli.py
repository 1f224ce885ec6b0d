"""CLI entrypoints for buildopt commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .errors import OptimizeError
from .logging import configure_logging, get_logger
from .orchestrator import Optimizer


def _run_options_parser() -> argparse.ArgumentParser:
    """Options shared by every subcommand.

    ``--verbose`` is repeated here so it is accepted after the subcommand too;
    its SUPPRESS default keeps a top-level ``-v`` from being reset.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Increase log verbosity for troubleshooting.",
    )
    parent.add_argument(
        "--serial",
        action="store_true",
        help="Run builds one at a time instead of concurrently (easier to debug).",
    )
    return parent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildopt",
        description="Bundle, localize, and minify modular application output.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    run_options = _run_options_parser()

    optimize_parser = subparsers.add_parser(
        "optimize",
        parents=[run_options],
        help="Bundle entry points and write the optimized output directory.",
    )
    optimize_parser.add_argument(
        "config",
        nargs="?",
        default=".",
        help="Path to optimize.yml or the directory holding it (defaults to current directory).",
    )

    minify_parser = subparsers.add_parser(
        "minify",
        parents=[run_options],
        help="Minify an optimized output directory into a '-min' sibling.",
    )
    minify_parser.add_argument(
        "src",
        help="Optimized output directory to minify.",
    )
    minify_parser.add_argument(
        "--source-map-base-url",
        default=None,
        help="Base URL used in sourceMappingURL comments instead of sibling paths.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for buildopt commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    optimizer = Optimizer()

    if args.command == "optimize":
        try:
            options = load_config(Path(args.config))
            if getattr(args, "serial", False):
                options.serial = True
            files = optimizer.run_optimize(options)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        except OptimizeError as exc:
            logger.debug("Optimize failed", exc_info=True)
            parser.exit(1, f"buildopt optimize failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Optimized {len(files)} files into {_display_path(options.out)}")
    elif args.command == "minify":
        try:
            dest = optimizer.run_minify(
                Path(args.src),
                source_map_base_url=args.source_map_base_url,
                serial=bool(getattr(args, "serial", False)),
            )
        except OptimizeError as exc:
            logger.debug("Minify failed", exc_info=True)
            parser.exit(1, f"buildopt minify failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Minified output written to {_display_path(dest)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _display_path(path: Path) -> str:
    """Show paths below the working directory relative to it."""
    cwd = Path.cwd()
    return path.relative_to(cwd).as_posix() if path.is_relative_to(cwd) else str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
