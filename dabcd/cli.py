#!/usr/bin/env python3
"""
dabcd CLI

Batch host for the detection engine: every file is fed through the
same Engine as a text source, so --ignore applies across files.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from dabcd.data_structures import Finding
from dabcd.errors import DabcdError, RefreshError
from dabcd.logging_setup import configure_logging
from dabcd.metadata import LIBRARY_TABLE
from dabcd.orchestrator import Engine

EXIT_CLEAN    = 0
EXIT_ERROR    = 1
EXIT_INTERNAL = 2
EXIT_FINDINGS = 3

_SKIPPED_PARTS = {"venv", "__pycache__"}


class FileSource:
    """Text source backed by a file on disk. Read once, never changes."""

    def __init__(self, path: Path):
        self.path = path
        self._text: Optional[str] = None
        self._callbacks: List[Callable[[FileSource], None]] = []

    def get_text(self) -> str:
        if self._text is None:
            self._text = self.path.read_text(encoding="utf-8")
        return self._text

    def subscribe(self, callback: Callable[[FileSource], None]) -> None:
        self._callbacks.append(callback)

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"


def _parse_table_entry(raw: str) -> tuple[str, str]:
    library, sep, path = raw.partition("=")
    if not sep or not library.strip() or not path.strip():
        raise argparse.ArgumentTypeError(f"expected LIB=PATH, got: {raw}")
    return library.strip(), path.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dabcd",
        description="Flag calls that rely on library defaults known to have changed between versions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dabcd check script.py
  dabcd check src/ --ignore read_csv
  dabcd check . --table torch=tables/torch-dabcs.csv
        """,
    )
    parser.add_argument("--verbose", action="store_true", help="Log at INFO level")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level and show tracebacks")

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        metavar="{check}",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Scan Python files for at-risk calls",
    )
    check_parser.add_argument(
        "paths",
        nargs="+",
        help="Files or directories to scan",
    )
    check_parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="KEY",
        help="Method or class name to never report (repeatable)",
    )
    check_parser.add_argument(
        "--table",
        action="append",
        default=[],
        type=_parse_table_entry,
        metavar="LIB=PATH",
        help="Add or replace the DABC table for a library (repeatable)",
    )

    return parser


def iter_python_files(path: Path) -> Iterator[Path]:
    if path.is_file():
        yield path
        return

    for file_path in sorted(path.rglob("*.py")):
        parts = file_path.relative_to(path).parts
        if any(p.startswith(".") or p in _SKIPPED_PARTS for p in parts):
            continue
        yield file_path


def format_finding(path: Path, text: str, finding: Finding) -> str:
    line, col = finding.line_col(text)
    params = ", ".join(finding.missing_params)
    return (
        f"{path}:{line}:{col}: {finding.key} does not set {params} "
        f"(default changed in {finding.metadata.version})"
    )


def _check(args: argparse.Namespace) -> int:
    table = dict(LIBRARY_TABLE)
    table.update(dict(args.table))

    engine = Engine(library_table=table)
    for key in args.ignore:
        engine.ignore(key)

    total = 0
    unreadable = 0
    for raw in args.paths:
        root = Path(raw).resolve()
        if not root.exists():
            raise DabcdError(f"Path does not exist: {root}")

        for file_path in iter_python_files(root):
            source = FileSource(file_path)
            try:
                findings = engine.on_created(source)
            except RefreshError as e:
                print(f"Error: {file_path}: {e.__cause__ or e}", file=sys.stderr)
                unreadable += 1
                continue
            finally:
                engine.on_released(source)

            text = source.get_text()
            for finding in findings:
                print(format_finding(file_path, text, finding))
            total += len(findings)

    print(f"Total findings: {total}")
    if total:
        return EXIT_FINDINGS
    return EXIT_ERROR if unreadable else EXIT_CLEAN


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on bad usage; 2 is reserved for internal errors
        return EXIT_CLEAN if e.code in (0, None) else EXIT_ERROR

    if args.debug:
        configure_logging(logging.DEBUG)
    elif args.verbose:
        configure_logging(logging.INFO)
    else:
        configure_logging()

    if args.command == "check":
        try:
            return _check(args)
        except DabcdError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_ERROR
        except Exception:
            if args.debug:
                raise
            print("Internal error while scanning.", file=sys.stderr)
            print("Run with --debug for details.", file=sys.stderr)
            return EXIT_INTERNAL

    # argparse enforces commands
    parser.error(f"Unknown command: {args.command}")
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
