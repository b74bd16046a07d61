"""Command-line interface.

Usage::

    proserunner PATH [options]           vet a file or directory
    proserunner ignore ACTION [options]  manage the ignore list
    proserunner cache clear              delete cached results
    proserunner checks [options]         list the enabled checks

Exit codes: 0 when no issues are found, 2 when issues are found and 1 when
the run fails.
"""

from __future__ import annotations

import argparse
import csv
import io
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from proserunner.checks import collect_checks, load_checks
from proserunner.config import (
    DEFAULT_CONFIG_DIR,
    OUTPUT_FORMATS,
    Config,
    VetOptions,
    load_config,
    load_environment,
    resolve_cache_dir,
)
from proserunner.exceptions import ProserunnerError
from proserunner.ignore import (
    GRANULARITIES,
    IgnoreEntry,
    IgnoreStore,
    audit,
    format_audit_report,
    issues_to_ignore_entries,
    line_issue_pairs,
)
from proserunner.report_utils import (
    build_checks_table,
    build_report_csv,
    build_report_json,
    build_report_text,
    format_check_warnings,
    format_ignore_list,
    prepare_issues,
)
from proserunner.storage import SnapshotStore
from proserunner.vet import vet

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ISSUES = 2

CONFIG_FILE_NAME = "config.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: {DEFAULT_CONFIG_DIR / CONFIG_FILE_NAME})",
    )
    parser.add_argument(
        "--ignore-file",
        type=Path,
        default=None,
        help="Ignore list to use (default: <config dir>/<config ignore name>.json)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Logging verbosity (default: WARNING)",
    )


def _add_checks_dir_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--checks-dir",
        type=Path,
        default=None,
        help="Base directory for relative check directories (default: the config file's directory)",
    )


def build_vet_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proserunner",
        description="Vet prose documents against pattern-based checks.",
        epilog=(
            "Subcommands: 'proserunner ignore --help', 'proserunner cache clear', "
            "'proserunner checks'. Vet a directory named 'checks' as './checks'."
        ),
    )
    parser.add_argument("path", type=Path, help="File or directory to vet.")
    _add_common_arguments(parser)
    _add_checks_dir_argument(parser)
    parser.add_argument(
        "--output",
        default="text",
        choices=OUTPUT_FORMATS,
        help="Output format (default: text)",
    )
    parser.add_argument("--code-blocks", action="store_true", help="Also vet fenced code blocks.")
    parser.add_argument("--quoted-text", action="store_true", help="Also vet quoted text.")
    parser.add_argument("--no-cache", action="store_true", help="Ignore cached results.")
    parser.add_argument(
        "--sequential-lines", action="store_true", help="Vet lines one at a time."
    )
    parallel = parser.add_mutually_exclusive_group()
    parallel.add_argument(
        "--parallel-files", action="store_true", help="Load files in parallel (disables parallel lines)."
    )
    parallel.add_argument(
        "--parallel-lines", action="store_true", help="Vet lines in parallel (the default)."
    )
    parser.add_argument(
        "--skip-ignore", action="store_true", help="Report issues even if they are ignored."
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip files matching GLOB (can be specified multiple times).",
    )
    parser.add_argument(
        "--ignore-all",
        action="store_true",
        help="Add every reported issue to the ignore list as a contextual ignore.",
    )
    parser.add_argument(
        "--granularity",
        default="line",
        choices=GRANULARITIES,
        help="Scope of ignores added by --ignore-all (default: line)",
    )
    parser.add_argument(
        "--max-workers", type=int, default=None, help="Cap the number of worker threads."
    )
    return parser


def build_ignore_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proserunner ignore", description="Manage ignored specimens and issues."
    )
    actions = parser.add_subparsers(dest="action", required=True)

    for name, help_text in (("add", "Ignore a specimen."), ("remove", "Stop ignoring a specimen.")):
        action = actions.add_parser(name, help=help_text)
        action.add_argument("specimen", help="Text to ignore (matched case-insensitively).")
        action.add_argument("--file", default=None, help="Only in this file (contextual ignore).")
        action.add_argument("--line", type=int, default=None, help="Only on this line.")
        action.add_argument("--check", default=None, help="Only for this check.")
        _add_common_arguments(action)

    for name, help_text in (("list", "Show the ignore list."), ("clear", "Remove every ignore.")):
        _add_common_arguments(actions.add_parser(name, help=help_text))

    audit_parser = actions.add_parser("audit", help="Find ignores for files that no longer exist.")
    audit_parser.add_argument("--clean", action="store_true", help="Remove the stale ignores.")
    _add_common_arguments(audit_parser)
    return parser


def build_cache_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="proserunner cache", description="Manage cached results.")
    actions = parser.add_subparsers(dest="action", required=True)
    _add_common_arguments(actions.add_parser("clear", help="Delete every cached snapshot."))
    return parser


def build_checks_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proserunner checks", description="List the checks enabled by the configuration."
    )
    _add_common_arguments(parser)
    _add_checks_dir_argument(parser)
    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    args = list(argv) if argv is not None else sys.argv[1:]
    if args and args[0] == "ignore":
        namespace = build_ignore_parser().parse_args(args[1:])
        namespace.command = "ignore"
    elif args and args[0] == "cache":
        namespace = build_cache_parser().parse_args(args[1:])
        namespace.command = "cache"
    elif args and args[0] == "checks":
        namespace = build_checks_parser().parse_args(args[1:])
        namespace.command = "checks"
    else:
        namespace = build_vet_parser().parse_args(args)
        namespace.command = "vet"
    return namespace


def _config_path(args: argparse.Namespace) -> Path:
    return (args.config or DEFAULT_CONFIG_DIR / CONFIG_FILE_NAME).expanduser()


def _checks_dir(args: argparse.Namespace) -> Path:
    return (args.checks_dir or _config_path(args).parent).expanduser()


def _ignore_store(args: argparse.Namespace, config: Config) -> IgnoreStore:
    if args.ignore_file is not None:
        return IgnoreStore(args.ignore_file)
    return IgnoreStore(_config_path(args).parent / f"{config.ignore}.json")


def render(rows, output: str) -> str:
    if output == "json":
        return build_report_json(rows)
    if output == "csv":
        buffer = io.StringIO()
        csv.writer(buffer).writerows(build_report_csv(rows))
        return buffer.getvalue().rstrip("\r\n")
    return build_report_text(rows)


def run_vet(args: argparse.Namespace) -> int:
    config_path = _config_path(args)
    config = load_config(config_path)
    store = _ignore_store(args, config)
    ignore_set = store.read()
    checks = load_checks(
        config, _checks_dir(args), ignore=() if args.skip_ignore else ignore_set.ignore
    )
    options = VetOptions(
        code_blocks=args.code_blocks,
        quoted_text=args.quoted_text,
        no_cache=args.no_cache,
        parallel_files=args.parallel_files,
        sequential_lines=args.sequential_lines,
        skip_ignore=args.skip_ignore,
        output=args.output,
        exclude=list(args.exclude),
        force_parallel_lines=args.parallel_lines,
        max_workers=args.max_workers,
    )
    result = vet(
        args.path,
        options,
        checks,
        config=config,
        ignore_set=ignore_set,
        store=SnapshotStore(resolve_cache_dir(config)),
    )
    if not result.ok:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_ERROR

    rows = prepare_issues(result.results)
    print(render(rows, args.output))
    if args.ignore_all and rows:
        entries = issues_to_ignore_entries(line_issue_pairs(result.results), args.granularity)
        store.add_entries(entries)
        print(f"Added {len(entries)} contextual ignore(s) to {store.path}", file=sys.stderr)
    return EXIT_ISSUES if rows else EXIT_OK


def run_ignore(args: argparse.Namespace) -> int:
    config = load_config(_config_path(args))
    store = _ignore_store(args, config)

    if args.action in ("add", "remove"):
        if args.file is None and (args.line is not None or args.check is not None):
            print("Error: --line and --check require --file", file=sys.stderr)
            return EXIT_ERROR
        item: str | IgnoreEntry = args.specimen
        if args.file is not None:
            item = IgnoreEntry(
                file=args.file, specimen=args.specimen, line_number=args.line, check=args.check
            )
        if args.action == "add":
            store.add(item)
            print(f"Added to ignore list: {args.specimen}")
        else:
            store.remove(item)
            print(f"Removed from ignore list: {args.specimen}")
    elif args.action == "list":
        print("\n".join(format_ignore_list(store.read())))
    elif args.action == "clear":
        store.clear()
        print("Cleared all ignored specimens.")
    elif args.action == "audit":
        report = audit(store.read())
        print("\n".join(format_audit_report(report)))
        if args.clean and report.has_stale:
            store.write(report.active)
            print(f"Removed {len(report.stale)} stale ignore(s).")
    return EXIT_OK


def run_checks(args: argparse.Namespace) -> int:
    config = load_config(_config_path(args))
    result = collect_checks(config, _checks_dir(args))
    warnings = format_check_warnings(result.errors)
    if warnings:
        print("\n".join(warnings), file=sys.stderr)
    if not result.checks:
        print("Error: No valid checks could be loaded.", file=sys.stderr)
        return EXIT_ERROR
    print("Enabled checks:")
    print("\n".join(build_checks_table(result.checks)))
    return EXIT_OK


def run_cache(args: argparse.Namespace) -> int:
    config = load_config(_config_path(args))
    removed = SnapshotStore(resolve_cache_dir(config)).clear()
    print(f"Removed {removed} cached snapshot(s).")
    return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    load_environment()
    handlers = {
        "vet": run_vet,
        "ignore": run_ignore,
        "cache": run_cache,
        "checks": run_checks,
    }
    try:
        return handlers[args.command](args)
    except ProserunnerError as exc:
        LOGGER.error("%s", exc)
        return EXIT_ERROR
    except OSError as exc:
        LOGGER.error("%s", exc)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
