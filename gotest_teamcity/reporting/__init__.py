"""Output reporting: TeamCity service messages and YAML run summaries."""

from gotest_teamcity.reporting.messages import MessageWriter, escape, unescape
from gotest_teamcity.reporting.summary import RunSummary

__all__ = [
    "MessageWriter",
    "RunSummary",
    "escape",
    "unescape",
]
