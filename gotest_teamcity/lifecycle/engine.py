"""Event reconstruction engine for ``go test -v`` output.

Consumes classified lines one at a time and rebuilds the suite/test
hierarchy that the TeamCity protocol expects.

State kept between lines:

* ``open_tests`` -- every test that has started (or ended without a start)
  and has not been staged yet, keyed by name.
* ``current`` -- the test most recently started or ended.  Once it has an
  outcome it is *pending close*: it keeps collecting detail lines until the
  next start, end, or package marker finalizes it.
* ``suites`` -- the stack of suite names currently open in the output.
* ``staged`` -- finalized entries in emission order, held until the package
  summary line names the package they belong to.
* ``final`` -- run terminator lines, replayed after everything else.

Suite membership is inferred from names only: ``A/b`` is a child of ``A``.
A parent learns it is a suite when a child starts while the parent is still
open, so the flag is set retroactively on the open record.

Malformed input never raises.  Missing start markers are synthesized,
missing end markers are forced at end of stream, and anything unrecognized
is kept as output or passed through.
"""

from __future__ import annotations

from typing import Iterable, TextIO

from gotest_teamcity.analysis.line_classifier import (
    DETAIL,
    END,
    OUTPUT,
    PACKAGE,
    PASSTHROUGH,
    RACE,
    START,
    TERMINATOR,
    LineEvent,
    classify,
    is_marker,
)
from gotest_teamcity.analysis.records import (
    Passthrough,
    StagedEntry,
    SuiteFinished,
    SuiteStarted,
    TestRecord,
    ancestor_names,
    is_within,
)
from gotest_teamcity.lifecycle.clock import Clock, SystemClock
from gotest_teamcity.reporting.messages import MessageWriter, ResultListener

# Package reported for tests whose package line never arrived
UNKNOWN_PACKAGE = "unknown"
# Package passed for suite brackets flushed at end of stream (not printed)
SUITE_PACKAGE = "irrelevant"


class EventEngine:
    """Stateful translator from go test lines to service messages.

    Args:
        writer: Destination for finalized entries.
        clock: Source of start/end timestamps (system time by default).
    """

    def __init__(self, writer: MessageWriter, clock: Clock | None = None) -> None:
        self.writer = writer
        self.clock = clock or SystemClock()
        self.open_tests: dict[str, TestRecord] = {}
        self.current: TestRecord | None = None
        self.suites: list[str] = []
        self.staged: list[StagedEntry] = []
        self.final: list[str] = []
        self.warnings: list[str] = []
        self.closed = False

    # -- line handling ----------------------------------------------------

    def feed(self, line: str) -> None:
        """Classify one raw line and apply it to the state."""
        event = classify(line, self.current)

        if is_marker(event) and self.current is not None and self.current.finished:
            self._finalize(self.current)

        if event.kind == START:
            self._start(event)
        elif event.kind == END:
            self._end(event)
        elif event.kind == PACKAGE:
            self._package(event)
        elif event.kind == TERMINATOR:
            self.final.append(event.text)
        elif event.kind == RACE:
            assert self.current is not None
            self.current.race = True
        elif event.kind == DETAIL:
            assert self.current is not None
            self.current.details.append(event.text)
        elif event.kind == OUTPUT:
            assert self.current is not None
            self.current.output.append(event.text)
        elif event.kind == PASSTHROUGH:
            self.staged.append(Passthrough(event.text))

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def _new_test(self, name: str) -> TestRecord:
        test = TestRecord(name=name, start=self.clock.now())
        self.open_tests[name] = test
        for ancestor in ancestor_names(name):
            parent = self.open_tests.get(ancestor)
            if parent is not None:
                parent.is_suite = True
        return test

    def _start(self, event: LineEvent) -> None:
        previous = self.open_tests.get(event.name)
        if previous is not None:
            dropped = sum(len(line) for line in previous.output)
            self.warnings.append(
                f"test {event.name} started again before it finished; "
                f"discarded {len(previous.output)} output line(s), "
                f"{dropped} character(s)"
            )
        self.current = self._new_test(event.name)

    def _end(self, event: LineEvent) -> None:
        test = self.open_tests.get(event.name)
        if test is None:
            self.warnings.append(
                f"end marker for {event.name} without a start marker"
            )
            test = self._new_test(event.name)
        test.outcome = event.outcome
        test.duration_ms = event.duration_ms
        test.detail_indent = event.indent
        self.current = test

    def _package(self, event: LineEvent) -> None:
        self._flush_staged(event.package)
        # Tests still open here have not terminated (panic?); attach the
        # package so it wins over "unknown" when they are finally written.
        for test in self.open_tests.values():
            test.package = event.package
        self.final.append(event.text)

    # -- staging ----------------------------------------------------------

    def _open_suite(self, name: str) -> None:
        self.staged.append(SuiteStarted(name))
        self.suites.append(name)

    def _finalize(self, test: TestRecord) -> None:
        """Stage *test* inside the correct suite brackets."""
        while self.suites and not is_within(test.name, self.suites[-1]):
            self.staged.append(SuiteFinished(self.suites.pop()))

        for ancestor in ancestor_names(test.name):
            if ancestor not in self.suites:
                self._open_suite(ancestor)

        if test.is_suite and test.name not in self.suites:
            self._open_suite(test.name)

        test.end = self.clock.now()
        self.staged.append(test)
        self.open_tests.pop(test.name, None)
        if self.current is test:
            self.current = None

    def _flush_staged(self, package: str) -> None:
        for entry in self.staged:
            self.writer.write_entry(entry, package)
        self.staged = []

    # -- end of stream ----------------------------------------------------

    def close(self) -> None:
        """Flush everything still held.  Safe to call more than once."""
        if self.closed:
            return
        self.closed = True

        if self.current is not None:
            if not self.current.finished:
                self.warnings.append(
                    f"test {self.current.name} never finished"
                )
            self._finalize(self.current)
        self._flush_staged(UNKNOWN_PACKAGE)

        while self.suites:
            self.writer.write_entry(SuiteFinished(self.suites.pop()), SUITE_PACKAGE)

        for test in list(self.open_tests.values()):
            self.warnings.append(f"test {test.name} was left open")
            test.end = self.clock.now()
            self.writer.write_entry(test, UNKNOWN_PACKAGE)
        self.open_tests.clear()

        for line in self.final:
            self.writer.write_raw(line)
        self.final = []


def convert(
    lines: Iterable[str],
    out: TextIO,
    name_prefix: str = "",
    clock: Clock | None = None,
    reporter: ResultListener | None = None,
) -> EventEngine:
    """Translate a whole stream of go test lines into service messages.

    Args:
        lines: Raw input lines, each with its terminator.
        out: Text stream the messages are written to.
        name_prefix: Optional prefix added to every test name.
        clock: Timestamp source; system time by default.
        reporter: Optional listener for each emitted test.

    Returns:
        The closed engine, so callers can inspect ``warnings``.
    """
    writer = MessageWriter(out, name_prefix=name_prefix, reporter=reporter)
    engine = EventEngine(writer, clock=clock)
    engine.feed_lines(lines)
    engine.close()
    return engine
