"""Converter configuration file management.

Reads and writes an optional JSON file holding converter settings.
Command-line flags override whatever the file provides.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Default configuration values; the file may set any subset of these keys
DEFAULT_CONFIG: dict[str, Any] = {
    "name_prefix": "",
    "summary_file": None,
    "verbose": False,
}


def read_settings(path: Path | None) -> dict[str, Any]:
    """Return the defaults overlaid with the known keys found at *path*.

    A missing, unreadable or non-object file yields the defaults; keys the
    converter does not know are dropped.
    """
    settings = dict(DEFAULT_CONFIG)
    if path is None or not path.exists():
        return settings
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return settings
    if isinstance(data, dict):
        settings.update((k, v) for k, v in data.items() if k in DEFAULT_CONFIG)
    return settings


class ConverterConfig:
    """Converter settings backed by an optional JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._settings = read_settings(path)

    @property
    def name_prefix(self) -> str:
        """Prefix joined to every emitted test name."""
        return str(self._settings["name_prefix"] or "")

    @property
    def summary_file(self) -> Path | None:
        """Where to write the YAML run summary (None = no summary)."""
        val = self._settings["summary_file"]
        return Path(val) if val else None

    @property
    def verbose(self) -> bool:
        """Whether conversion warnings are printed to stderr."""
        return bool(self._settings["verbose"])

    def set_config(
        self,
        name_prefix: str | None = None,
        summary_file: Path | None = None,
        verbose: bool | None = None,
    ) -> None:
        """Apply command-line overrides; None leaves a value unchanged."""
        if name_prefix is not None:
            self._settings["name_prefix"] = name_prefix
        if summary_file is not None:
            self._settings["summary_file"] = str(summary_file)
        if verbose is not None:
            self._settings["verbose"] = verbose

    def save(self) -> None:
        """Write the effective settings back to the config file."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._settings, indent=2) + "\n")
