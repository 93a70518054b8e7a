"""Line classifier for ``go test -v`` output.

Decides what a single raw line means: a test starting or ending, a package
summary, a run terminator, a data race warning, a detail line belonging to a
test that just ended, captured output of the current test, or a line that
belongs to nothing.  The only context needed is the current test record,
which carries the indentation of its end marker.

Marker recognition takes priority over detail and output handling so that a
new marker always ends the previous test's detail block.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from gotest_teamcity.analysis.records import TestRecord

# Line kinds
START = "start"
END = "end"
PACKAGE = "package"
TERMINATOR = "terminator"
RACE = "race"
DETAIL = "detail"
OUTPUT = "output"
PASSTHROUGH = "passthrough"

RUN_RE = re.compile(r"^=== RUN\s+([a-zA-Z_]\S*)")
END_RE = re.compile(
    r"^(\s*)--- (PASS|SKIP|FAIL):\s+([a-zA-Z_]\S*) \((-?[\d.]+(?:ns|us|µs|ms|s|m|h))\)"
)
PACKAGE_RE = re.compile(r"^(?:ok|FAIL)\s+([a-z]\S*)")
TERMINATOR_RE = re.compile(
    r"^(?:(?:PASS|FAIL)\r?\n?$|exit status|Found \d+ data race|coverage:)"
)
RACE_RE = re.compile(r"^WARNING: DATA RACE")

DURATION_RE = re.compile(r"^(-?(?:\d+\.?\d*|\.\d+))(ns|us|µs|ms|s|m|h)$")

# Milliseconds per unit
_UNIT_MS = {
    "ns": Decimal("0.000001"),
    "us": Decimal("0.001"),
    "µs": Decimal("0.001"),
    "ms": Decimal(1),
    "s": Decimal(1000),
    "m": Decimal(60000),
    "h": Decimal(3600000),
}

# Detail lines sit one level deeper than their end marker
DETAIL_INDENTS = ("\t", "    ")


@dataclass
class LineEvent:
    """Classification of one input line.

    Only the fields relevant to ``kind`` are set.  ``text`` always holds the
    line as it should be stored: the raw line for most kinds, the stripped
    detail text for ``DETAIL``.
    """

    kind: str
    text: str
    name: str = ""
    outcome: str = ""
    duration_ms: int = 0
    indent: str = ""
    package: str = ""


def parse_duration_ms(value: str) -> int:
    """Convert a go duration such as ``"0.01s"`` to whole milliseconds.

    Truncates toward zero.  Returns 0 for anything that does not parse.
    """
    match = DURATION_RE.match(value)
    if match is None:
        return 0
    try:
        amount = Decimal(match.group(1))
    except InvalidOperation:
        return 0
    return int(amount * _UNIT_MS[match.group(2)])


def strip_terminator(line: str) -> str:
    """Remove a trailing ``\\n`` or ``\\r\\n``."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def _detail_text(line: str, current: TestRecord) -> str | None:
    """Return the detail text if *line* is indented under *current*."""
    for step in DETAIL_INDENTS:
        prefix = current.detail_indent + step
        if line.startswith(prefix):
            return strip_terminator(line[len(prefix):])
    return None


def classify(line: str, current: TestRecord | None = None) -> LineEvent:
    """Classify a raw line (terminator included).

    Args:
        line: One input line, with its line terminator if it had one.
        current: The test most recently started or ended, if still unstaged.

    Returns:
        A :class:`LineEvent` describing the line.
    """
    match = RUN_RE.match(line)
    if match:
        return LineEvent(kind=START, text=line, name=match.group(1))

    match = END_RE.match(line)
    if match:
        return LineEvent(
            kind=END,
            text=line,
            indent=match.group(1),
            outcome=match.group(2),
            name=match.group(3),
            duration_ms=parse_duration_ms(match.group(4)),
        )

    match = PACKAGE_RE.match(line)
    if match:
        return LineEvent(kind=PACKAGE, text=line, package=match.group(1))

    if TERMINATOR_RE.match(line):
        return LineEvent(kind=TERMINATOR, text=line)

    if current is None:
        return LineEvent(kind=PASSTHROUGH, text=line)

    if RACE_RE.match(line):
        return LineEvent(kind=RACE, text=line)

    if current.finished:
        detail = _detail_text(line, current)
        if detail is not None:
            return LineEvent(kind=DETAIL, text=detail)

    return LineEvent(kind=OUTPUT, text=line)


def is_marker(event: LineEvent) -> bool:
    """True for the kinds that close a pending test: start, end, package."""
    return event.kind in (START, END, PACKAGE)
