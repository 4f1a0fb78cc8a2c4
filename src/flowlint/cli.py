"""flowlint CLI: check workflow files, list rules."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from flowlint.config import FlowLintConfig, load_config
from flowlint.errors import ConfigError
from flowlint.logging_config import configure_logging
from flowlint.models.finding import Severity
from flowlint.reporter import render_json, render_text
from flowlint.rules import RULES_METADATA
from flowlint.service import AnalysisSummary, LintService, collect_files, read_files
from flowlint.settings import settings

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_INVALID = 2

FAIL_ON_CHOICES = ["must", "should", "nit", "never"]


def _resolve_paths(paths: list[str], config: FlowLintConfig) -> list[Path]:
    if not paths:
        return collect_files(Path.cwd(), config.files)

    resolved: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            resolved.extend(collect_files(path, config.files))
        elif path.is_file():
            resolved.append(path)
        else:
            raise FileNotFoundError(raw)
    return list(dict.fromkeys(resolved))


def exit_code_for(summary: AnalysisSummary, fail_on: str) -> int:
    """1 on findings at or above *fail_on*, else 2 on invalid files, else 0."""
    if fail_on != "never" and summary.count_at_or_above(Severity(fail_on)) > 0:
        return EXIT_FINDINGS
    if summary.errors:
        return EXIT_INVALID
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Lint workflow files and print a report."""
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_INVALID

    try:
        paths = _resolve_paths(args.paths, config)
        files = read_files(paths)
    except (FileNotFoundError, UnicodeDecodeError) as exc:
        print(f"Error: cannot read {exc}", file=sys.stderr)
        return EXIT_INVALID

    if not files:
        print("No workflow files found.", file=sys.stderr)
        return EXIT_OK

    service = LintService(config, max_workers=args.workers)
    results = service.lint_files(files)
    summary = service.summarize(results)

    if args.format == "json":
        print(render_json(results, summary))
    else:
        print(render_text(results, summary))

    return exit_code_for(summary, args.fail_on)


def cmd_rules(args: argparse.Namespace) -> int:
    """Print the built-in rule catalogue."""
    if args.format == "json":
        print(json.dumps([meta.to_dict() for meta in RULES_METADATA], indent=2))
        return EXIT_OK

    for meta in RULES_METADATA:
        print(f"{meta.id:<4} {meta.severity.value:<6} {meta.name:<24} {meta.description}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flowlint",
        description="Static analysis for n8n workflow definitions",
    )
    parser.add_argument("--log-level", default=None, help=f"Log level (default: {settings.log_level})")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines on stderr")
    sub = parser.add_subparsers(dest="command")

    # check
    p_check = sub.add_parser("check", help="Lint workflow files")
    p_check.add_argument("paths", nargs="*", help="Files or directories (default: current directory)")
    p_check.add_argument("-c", "--config", help="Config file (default: discover .flowlint.yml)")
    p_check.add_argument("-f", "--format", choices=["text", "json"], default="text", help="Report format")
    p_check.add_argument("--fail-on", choices=FAIL_ON_CHOICES, default="must",
                         help="Lowest severity that fails the run (default: must)")
    p_check.add_argument("-j", "--workers", type=int, default=None,
                         help=f"Files analyzed in parallel (default: {settings.max_workers})")

    # rules
    p_rules = sub.add_parser("rules", help="List built-in rules")
    p_rules.add_argument("-f", "--format", choices=["text", "json"], default="text", help="Output format")

    args = parser.parse_args(argv)

    configure_logging(args.log_level or settings.log_level, args.log_json or settings.log_json)

    commands = {
        "check": cmd_check,
        "rules": cmd_rules,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_INVALID
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
