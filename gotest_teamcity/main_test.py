"""Tests for the converter entry point."""

from __future__ import annotations

import json
import re
import tempfile
from pathlib import Path

import yaml

from gotest_teamcity.main import main, parse_args

SAMPLE = (
    "=== RUN   TestAdd\n"
    "--- PASS: TestAdd (0.00s)\n"
    "=== RUN   TestDiv\n"
    "    div_test.go:9: division by zero\n"
    "--- FAIL: TestDiv (0.01s)\n"
    "    div_test.go:12: want 2, got 0\n"
    "FAIL\n"
    "FAIL\texample.com/calc\t0.015s\n"
)

TIMESTAMP_RE = re.compile(r"timestamp='.*?'")


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self):
        """Without flags everything is left to the config."""
        args = parse_args([])
        assert args.name is None
        assert args.input is None
        assert args.output is None
        assert args.summary is None
        assert args.config_file is None
        assert args.write_config is False
        assert args.verbose is None

    def test_all_flags(self):
        """Every flag is parsed to its typed value."""
        args = parse_args([
            "--name", "linux",
            "--input", "in.txt",
            "--output", "out.txt",
            "--summary", "s.yaml",
            "--config-file", "c.json",
            "--verbose",
        ])
        assert args.name == "linux"
        assert args.input == Path("in.txt")
        assert args.output == Path("out.txt")
        assert args.summary == Path("s.yaml")
        assert args.config_file == Path("c.json")
        assert args.verbose is True


class TestMain:
    """Tests for file-to-file conversion."""

    def test_convert_file(self):
        """Input file is converted and written to the output file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            src = Path(tmpdir) / "go-test.txt"
            dst = Path(tmpdir) / "teamcity.txt"
            src.write_text(SAMPLE)

            rc = main(["--input", str(src), "--output", str(dst), "--name", "ci"])

            assert rc == 0
            text = TIMESTAMP_RE.sub("timestamp='T'", dst.read_text())
            assert (
                "##teamcity[testStarted timestamp='T' pkg='example.com/calc' "
                "name='ci TestAdd' captureStandardOutput='true']\n"
            ) in text
            assert (
                "##teamcity[testFailed timestamp='T' name='ci TestDiv' "
                "details='div_test.go:12: want 2, got 0']\n"
            ) in text
            assert "    div_test.go:9: division by zero\n" in text
            assert text.endswith("FAIL\nFAIL\texample.com/calc\t0.015s\n")

    def test_missing_input(self, capsys):
        """A missing input file is reported and returns 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            rc = main(["--input", str(Path(tmpdir) / "nope.txt")])
        assert rc == 1
        assert "Error: cannot read input" in capsys.readouterr().err

    def test_undecodable_bytes_pass_through(self):
        """Bytes that are not UTF-8 survive unchanged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            src = Path(tmpdir) / "in.bin"
            dst = Path(tmpdir) / "out.bin"
            payload = b"build \xff\xfe output\r\nnext\n"
            src.write_bytes(payload)

            assert main(["--input", str(src), "--output", str(dst)]) == 0
            assert dst.read_bytes() == payload

    def test_lone_carriage_return_is_not_a_line_break(self):
        """Only newlines split input lines read from a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            src = Path(tmpdir) / "in.txt"
            dst = Path(tmpdir) / "out.txt"
            src.write_bytes(
                b"=== RUN TestA\n"
                b"--- FAIL: TestA (0.00s)\n"
                b"\tfoo\rbar\n"
                b"ok pkg 0.1s\n"
            )

            assert main(["--input", str(src), "--output", str(dst)]) == 0
            text = dst.read_bytes().decode()
            assert "details='foo|rbar'" in text
            assert "\nbar\n" not in text

    def test_summary_and_warnings(self, capsys):
        """--summary writes YAML and --verbose reports warnings."""
        with tempfile.TemporaryDirectory() as tmpdir:
            src = Path(tmpdir) / "in.txt"
            dst = Path(tmpdir) / "out.txt"
            summary = Path(tmpdir) / "reports" / "summary.yaml"
            src.write_text("--- PASS: TestOrphan (0.00s)\n" + SAMPLE)

            rc = main([
                "--input", str(src),
                "--output", str(dst),
                "--summary", str(summary),
                "--verbose",
            ])

            assert rc == 0
            report = yaml.safe_load(summary.read_text())["report"]
            assert report["summary"]["total"] == 3
            assert report["summary"]["failed"] == 1
            assert report["packages"]["example.com/calc"]["passed"] == 2

        err = capsys.readouterr().err
        assert "Warning: end marker for TestOrphan without a start marker" in err
        assert "Summary: 3 tests, 2 passed, 1 failed" in err

    def test_config_file_supplies_prefix(self):
        """Settings come from the config file when flags are absent."""
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg = Path(tmpdir) / "teamcity.json"
            cfg.write_text(json.dumps({"name_prefix": "from-config"}))
            src = Path(tmpdir) / "in.txt"
            dst = Path(tmpdir) / "out.txt"
            src.write_text(SAMPLE)

            rc = main([
                "--config-file", str(cfg),
                "--input", str(src),
                "--output", str(dst),
            ])

            assert rc == 0
            assert "name='from-config TestAdd'" in dst.read_text()


class TestWriteConfig:
    """Tests for --write-config."""

    def test_writes_effective_settings(self):
        """Flags are saved into the config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg = Path(tmpdir) / "teamcity.json"
            rc = main(["--config-file", str(cfg), "--name", "saved", "--write-config"])
            assert rc == 0
            assert json.loads(cfg.read_text())["name_prefix"] == "saved"

    def test_requires_config_file(self, capsys):
        """Without --config-file there is nowhere to write."""
        rc = main(["--write-config"])
        assert rc == 1
        assert "No config file path specified" in capsys.readouterr().err
