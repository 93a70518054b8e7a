"""Entry point for the go test to TeamCity converter.

Reads ``go test -v`` output (stdin by default), writes TeamCity service
messages (stdout by default), and optionally records a YAML run summary.
"""

from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path

from gotest_teamcity.lifecycle.clock import SystemClock
from gotest_teamcity.lifecycle.config import ConverterConfig
from gotest_teamcity.lifecycle.engine import convert
from gotest_teamcity.reporting.summary import RunSummary

# Keep undecodable bytes intact so pass-through output matches the input
ENCODING = "utf-8"
ERRORS = "surrogateescape"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Convert go test -v output to TeamCity service messages"
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Add prefix to test name",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Read go test output from this file (default: stdin)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write service messages to this file (default: stdout)",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Path to write a YAML run summary",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to a JSON converter config file",
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        default=False,
        help="Save the effective settings to --config-file and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Print conversion warnings to stderr",
    )
    return parser.parse_args(argv)


def _open_input(path: Path | None) -> io.TextIOWrapper:
    # Lines end at "\n" only; a lone "\r" stays inside its line
    if path is None:
        return io.TextIOWrapper(
            sys.stdin.buffer, encoding=ENCODING, errors=ERRORS, newline="\n",
        )
    return open(path, encoding=ENCODING, errors=ERRORS, newline="\n")


def _open_output(path: Path | None) -> io.TextIOWrapper:
    if path is None:
        return io.TextIOWrapper(
            sys.stdout.buffer, encoding=ENCODING, errors=ERRORS, newline="",
            write_through=True,
        )
    return open(path, "w", encoding=ENCODING, errors=ERRORS, newline="")


def _release(stream: io.TextIOWrapper, owned: bool) -> None:
    """Close a file we opened; detach a wrapper around stdin/stdout."""
    if owned:
        stream.close()
        return
    if stream.writable():
        stream.flush()
    stream.detach()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = ConverterConfig(args.config_file)
    config.set_config(
        name_prefix=args.name,
        summary_file=args.summary,
        verbose=args.verbose,
    )

    if args.write_config:
        try:
            config.save()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Config written to: {config.path}", file=sys.stderr)
        return 0

    try:
        source = _open_input(args.input)
    except OSError as e:
        print(f"Error: cannot read input: {e}", file=sys.stderr)
        return 1

    clock = SystemClock()
    summary = RunSummary(clock) if config.summary_file else None

    try:
        sink = _open_output(args.output)
    except OSError as e:
        _release(source, owned=args.input is not None)
        print(f"Error: cannot write output: {e}", file=sys.stderr)
        return 1

    try:
        engine = convert(
            source,
            sink,
            name_prefix=config.name_prefix,
            clock=clock,
            reporter=summary,
        )
    finally:
        _release(sink, owned=args.output is not None)
        _release(source, owned=args.input is not None)

    if config.verbose:
        for warning in engine.warnings:
            print(f"Warning: {warning}", file=sys.stderr)

    if summary is not None and config.summary_file is not None:
        try:
            summary.write_yaml(config.summary_file)
        except OSError as e:
            print(f"Error: cannot write summary: {e}", file=sys.stderr)
            return 1
        if config.verbose:
            totals = summary.generate_report()["report"]["summary"]
            print(
                f"Summary: {totals['total']} tests, {totals['passed']} passed, "
                f"{totals['failed']} failed, {totals['skipped']} skipped, "
                f"{totals['panic']} panicked",
                file=sys.stderr,
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
