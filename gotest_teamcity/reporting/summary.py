"""Run summary report for converted go test output.

Collects every test the message writer emits and produces a YAML report
with per-status totals, per-package counts, and one entry per test.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gotest_teamcity.analysis.records import TestRecord
from gotest_teamcity.lifecycle.clock import Clock, SystemClock

# Status values reported per test
VALID_STATUSES = ("passed", "failed", "skipped", "panic")


class RunSummary:
    """Accumulates emitted tests and renders a summary report.

    Args:
        clock: Source of the report's ``generated_at`` stamp.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()
        self.tests: list[dict[str, Any]] = []

    def add_test(self, test: TestRecord, package: str, name: str) -> None:
        """Record one emitted test.

        Args:
            test: The finalized record.
            package: The package it was reported under.
            name: The name as written, including any configured prefix.
        """
        self.tests.append({
            "name": name,
            "package": package,
            "status": test.status_label,
            "duration_ms": test.duration_ms,
            "race": test.race,
        })

    def generate_report(self) -> dict[str, Any]:
        """Build the report dict."""
        summary: dict[str, int] = {"total": len(self.tests)}
        for status in VALID_STATUSES:
            summary[status] = sum(1 for t in self.tests if t["status"] == status)

        packages: dict[str, dict[str, int]] = {}
        for entry in self.tests:
            counts = packages.setdefault(
                entry["package"], {status: 0 for status in VALID_STATUSES},
            )
            counts[entry["status"]] += 1

        return {
            "report": {
                "generated_at": self.clock.now().isoformat(timespec="milliseconds"),
                "summary": summary,
                "packages": packages,
                "tests": list(self.tests),
            }
        }

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file.

        Args:
            path: File path to write the YAML report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
