"""CLI entrypoints for docagg commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .config import CONFIG_FILENAME, ConfigError, load_config
from .logging import configure_logging
from .orchestrator import execute
from .postproc.mdx import fix_tree


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docagg",
        description="Aggregate markdown documentation from several repositories into one content tree.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report warnings and errors on the console.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    aggregate_parser = subparsers.add_parser(
        "aggregate",
        help="Rebuild the output tree from the configured source repositories.",
    )
    _add_verbose_option(aggregate_parser, suppress_default=True)
    aggregate_parser.add_argument(
        "--config",
        type=Path,
        default=Path(CONFIG_FILENAME),
        help=f"Path to the configuration file (defaults to ./{CONFIG_FILENAME}; built-in repositories when absent).",
    )
    aggregate_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output directory (overrides the config file and OUT_ROOT).",
    )
    aggregate_parser.add_argument(
        "--fix-mdx",
        action="store_true",
        help="Fence bare import/export lines after aggregation.",
    )

    fix_parser = subparsers.add_parser(
        "fix-mdx",
        help="Fence bare import/export lines in an aggregated tree.",
    )
    _add_verbose_option(fix_parser, suppress_default=True)
    fix_parser.add_argument(
        "path",
        nargs="?",
        default="projects",
        help="Directory to repair (defaults to ./projects).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docagg commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=args.quiet, log_file=args.log_file)

    if args.command == "aggregate":
        try:
            config = load_config(args.config)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        if args.out is not None:
            config = replace(config, output_root=args.out)
        if args.fix_mdx:
            config = replace(config, fix_mdx=True)

        outcome = execute(config)
        if outcome.report is None:
            parser.exit(
                outcome.status,
                f"docagg aggregate failed: {outcome.error}\nRun with --verbose for more details.\n",
            )
        report = outcome.report
        for warning in report.warnings:
            print(f"warning: {warning}")
        print(
            f"Aggregation complete: {len(report.processed)} repos, "
            f"{report.documents_written} documents, {len(report.warnings)} warnings "
            f"-> {_relativize(report.output_root)}"
        )
    elif args.command == "fix-mdx":
        root = Path(args.path)
        if not root.is_dir():
            parser.exit(1, f"Directory not found: {root}\n")
        try:
            changed = fix_tree(root)
        except OSError as exc:
            parser.exit(1, f"docagg fix-mdx failed: {exc}\n")
        print(f"MDX code block fixing complete: {len(changed)} files updated")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
