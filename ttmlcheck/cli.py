"""CLI entrypoints for ttmlcheck commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .checker import Checker
from .config import ConfigError, find_config, load_config
from .logging import configure_logging, get_logger
from .reporting import render_console, summarize, write_json_report

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_ERROR = 2


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ttmlcheck",
        description="Validate localized TTML caption files against authoring rules.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser(
        "check",
        help="Validate a caption file or a folder of locale subfolders.",
    )
    _add_verbose_option(check_parser, suppress_default=True)
    check_parser.add_argument(
        "path",
        help="Caption file, or folder containing locale subfolders.",
    )
    check_parser.add_argument(
        "-l",
        "--length",
        type=int,
        default=None,
        help="Maximum single-line caption length (48 for English, 70 for others).",
    )
    check_parser.add_argument(
        "-c",
        "--count",
        action="store_true",
        default=None,
        help="Compare the file set of each target locale against the reference locale.",
    )
    check_parser.add_argument(
        "--reference",
        default=None,
        help="Reference locale for --count (default: en-us).",
    )
    check_parser.add_argument(
        "--targets",
        nargs="+",
        default=None,
        metavar="LOCALE",
        help="Target locales for --count.",
    )
    check_parser.add_argument(
        "--min-duration",
        type=float,
        default=None,
        help="Minimum caption duration in seconds (default: 2).",
    )
    check_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of files validated in parallel.",
    )
    check_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .ttmlcheck.yml file (defaults to the one next to PATH).",
    )
    check_parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write a JSON report of all findings to this file.",
    )
    check_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    check_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug-level logs to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for ttmlcheck commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
        log_file=getattr(args, "log_file", None),
    )
    logger = get_logger("cli")

    if args.command != "check":  # pragma: no cover - argparse enforces choices
        parser.exit(EXIT_ERROR, "Unknown command\n")

    target = Path(args.path).expanduser()
    if not target.exists():
        parser.exit(EXIT_ERROR, f"{args.path} is not a valid file or directory.\n")

    try:
        config = load_config(args.config or find_config(target))
        config = config.with_overrides(
            max_line_length=args.length,
            min_duration=args.min_duration,
            count_files=args.count,
            jobs=args.jobs,
            reference_locale=args.reference,
            target_locales=args.targets,
        )
        checker = Checker(config)
    except ConfigError as exc:
        parser.exit(EXIT_ERROR, f"Invalid configuration: {exc}\n")

    if config.source is not None:
        logger.debug("Loaded configuration from %s", config.source)

    try:
        result = checker.run(target)
    except FileNotFoundError as exc:
        parser.exit(EXIT_ERROR, f"{exc}\n")

    output = render_console(result.findings)
    if output:
        print(output)
    for skipped in result.skipped:
        print(f"Skipped {skipped.path}: {skipped.reason}", file=sys.stderr)

    if args.report is not None:
        report_path = write_json_report(args.report, result)
        logger.info("Report written to %s", report_path)

    counts = summarize(result.findings)
    summary = ", ".join(f"{name}={count}" for name, count in counts.items()) or "no findings"
    logger.info(
        "Scanned %d file(s), skipped %d: %s",
        len(result.scanned),
        len(result.skipped),
        summary,
    )

    # Findings take precedence: a run with findings and skips exits 1.
    if result.findings:
        return EXIT_FINDINGS
    if result.skipped:
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
