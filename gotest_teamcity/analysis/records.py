"""Data model for reconstructed go test events.

A ``TestRecord`` is created when a test starts (or when its end marker
arrives without a start) and is mutated by the lines that follow until it
is staged.  Suite boundaries and raw pass-through lines are staged as their
own small entries so the staging list preserves emission order.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Union

# Outcomes as printed by go test on "--- <OUTCOME>: <name>" lines
PASS = "PASS"
FAIL = "FAIL"
SKIP = "SKIP"

OUTCOMES = frozenset({PASS, FAIL, SKIP})


@dataclass
class TestRecord:
    """A single go test (or subtest) seen in the log.

    ``outcome`` stays ``""`` until an end marker is seen.  A record that is
    flushed with no outcome ended abnormally (panic, crash, truncated log).
    ``package`` is an override attached when a package summary line arrives
    while the record is still open.
    """

    __test__ = False

    name: str
    start: datetime.datetime
    end: datetime.datetime | None = None
    output: list[str] = field(default_factory=list)
    details: list[str] = field(default_factory=list)
    outcome: str = ""
    duration_ms: int = 0
    race: bool = False
    is_suite: bool = False
    package: str = ""
    detail_indent: str = ""

    @property
    def finished(self) -> bool:
        """True once an end marker set the outcome."""
        return self.outcome != ""

    @property
    def status_label(self) -> str:
        """Summary status: passed, failed, skipped, or panic."""
        if self.outcome == SKIP:
            return "skipped"
        if self.race or self.outcome == FAIL:
            return "failed"
        if self.outcome == PASS:
            return "passed"
        return "panic"


@dataclass
class SuiteStarted:
    """Opening bracket of a suite inferred from a name prefix."""

    name: str


@dataclass
class SuiteFinished:
    """Closing bracket of a suite."""

    name: str


@dataclass
class Passthrough:
    """A raw line that belongs to no test, replayed verbatim."""

    text: str


StagedEntry = Union[TestRecord, SuiteStarted, SuiteFinished, Passthrough]


def parent_name(name: str) -> str:
    """Return the name one level up, or ``""`` for a top-level test.

    Example: ``"TestA/sub/case"`` returns ``"TestA/sub"``.
    """
    idx = name.rfind("/")
    if idx == -1:
        return ""
    return name[:idx]


def ancestor_names(name: str) -> list[str]:
    """All proper ancestors of *name*, outermost first."""
    ancestors: list[str] = []
    parent = parent_name(name)
    while parent:
        ancestors.append(parent)
        parent = parent_name(parent)
    ancestors.reverse()
    return ancestors


def is_within(name: str, suite: str) -> bool:
    """True if *name* is *suite* itself or one of its descendants."""
    return name == suite or name.startswith(suite + "/")
