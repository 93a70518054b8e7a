"""Line analysis: classification of raw go test output lines and the records they build."""

from gotest_teamcity.analysis.line_classifier import LineEvent, classify, parse_duration_ms
from gotest_teamcity.analysis.records import Passthrough, SuiteFinished, SuiteStarted, TestRecord

__all__ = [
    "LineEvent",
    "Passthrough",
    "SuiteFinished",
    "SuiteStarted",
    "TestRecord",
    "classify",
    "parse_duration_ms",
]
