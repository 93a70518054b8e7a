"""TeamCity service message formatting.

Turns staged entries into ``##teamcity[...]`` lines.  Every free-text value
placed inside a message is escaped with :func:`escape`; captured test output
and pass-through lines are written verbatim.
"""

from __future__ import annotations

import datetime
from typing import Protocol, TextIO

from gotest_teamcity.analysis.records import (
    FAIL,
    PASS,
    SKIP,
    Passthrough,
    StagedEntry,
    SuiteFinished,
    SuiteStarted,
    TestRecord,
)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

RACE_MESSAGE = "Race detected!"
PANIC_MESSAGE = "Test ended in panic."

# Applied in order; "|" must be doubled before the others introduce pipes.
_ESCAPES = (
    ("|", "||"),
    ("\n", "|n"),
    ("\r", "|r"),
    ("'", "|'"),
    ("]", "|]"),
    ("[", "|["),
)

_UNESCAPES = {
    "|": "|",
    "n": "\n",
    "r": "\r",
    "'": "'",
    "[": "[",
    "]": "]",
}


def escape(value: str) -> str:
    """Escape a value for use inside a service message attribute."""
    for old, new in _ESCAPES:
        value = value.replace(old, new)
    return value


def unescape(value: str) -> str:
    """Reverse :func:`escape`.

    A pipe followed by an unknown character, or a trailing lone pipe, is
    kept as is.
    """
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "|" and i + 1 < len(value) and value[i + 1] in _UNESCAPES:
            out.append(_UNESCAPES[value[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def format_timestamp(moment: datetime.datetime | None) -> str:
    """Format *moment* with millisecond precision, e.g. ``2017-01-02T04:05:06.789``."""
    if moment is None:
        return ""
    return f"{moment.strftime(TIMESTAMP_FORMAT)}.{moment.microsecond // 1000:03d}"


def service_message(tag: str, **attrs: str) -> str:
    """Build one ``##teamcity[tag key='value' ...]`` line.

    Values are escaped here; callers pass raw text.
    """
    parts = [tag] + [f"{key}='{escape(value)}'" for key, value in attrs.items()]
    return f"##teamcity[{' '.join(parts)}]\n"


class ResultListener(Protocol):
    """Receives every test the writer emits."""

    def add_test(self, test: TestRecord, package: str, name: str) -> None: ...


class MessageWriter:
    """Writes staged entries to a text stream as service messages.

    Args:
        stream: Destination, written append-only.
        name_prefix: Optional prefix joined to every test name with a space.
        reporter: Optional listener notified of each emitted test.
    """

    def __init__(
        self,
        stream: TextIO,
        name_prefix: str = "",
        reporter: ResultListener | None = None,
    ) -> None:
        self.stream = stream
        self.name_prefix = name_prefix
        self.reporter = reporter

    def test_name(self, name: str) -> str:
        if self.name_prefix:
            return f"{self.name_prefix} {name}"
        return name

    def write_entry(self, entry: StagedEntry, package: str) -> None:
        """Write one staged entry, using *package* unless the test carries its own."""
        if isinstance(entry, Passthrough):
            self.stream.write(entry.text)
        elif isinstance(entry, SuiteStarted):
            self.stream.write(service_message("testSuiteStarted", name=entry.name))
        elif isinstance(entry, SuiteFinished):
            self.stream.write(service_message("testSuiteFinished", name=entry.name))
        else:
            self.write_test(entry, package)

    def write_raw(self, text: str) -> None:
        self.stream.write(text)

    def write_test(self, test: TestRecord, package: str) -> None:
        """Write the full message sequence for a finalized test."""
        if test.package:
            package = test.package
        name = self.test_name(test.name)
        start = format_timestamp(test.start)
        end = format_timestamp(test.end)

        self.stream.write(service_message(
            "testStarted",
            timestamp=start,
            pkg=package,
            name=name,
            captureStandardOutput="true",
        ))
        self.stream.writelines(test.output)

        if test.outcome == SKIP:
            self.stream.write(service_message(
                "testIgnored", timestamp=end, name=name,
            ))
        else:
            details = "\n".join(test.details)
            if test.race:
                self.stream.write(service_message(
                    "testFailed",
                    timestamp=end,
                    name=name,
                    message=RACE_MESSAGE,
                    details=details,
                ))
            elif test.outcome == FAIL:
                self.stream.write(service_message(
                    "testFailed", timestamp=end, name=name, details=details,
                ))
            elif test.outcome != PASS:
                self.stream.write(service_message(
                    "testFailed",
                    timestamp=end,
                    name=name,
                    message=PANIC_MESSAGE,
                    details=details,
                ))
            self.stream.write(service_message(
                "testFinished",
                timestamp=end,
                name=name,
                duration=str(test.duration_ms),
            ))

        if self.reporter is not None:
            self.reporter.add_test(test, package, name)
