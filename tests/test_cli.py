"""CLI parser behaviour tests."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from ecospray.cli import _build_parser, main


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "crawl", "https://example.com"])
    assert args.verbose is True
    assert args.command == "crawl"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["github", "https://github.com/acme/site", "--verbose"])
    assert args.verbose is True
    assert args.command == "github"


def test_cli_serve_defaults() -> None:
    args = _build_parser().parse_args(["serve"])
    assert (args.host, args.port) == ("0.0.0.0", 8000)
    assert args.verbose is False


def test_schema_command_lists_tables(capsys: pytest.CaptureFixture[str]) -> None:
    main(["schema"])

    lines = capsys.readouterr().out.splitlines()
    assert "site_config: key, value" in lines
    assert any(line.startswith("0n_events: id, timestamp") for line in lines)


def test_zip_command_prints_file_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    archive_path = tmp_path / "site.zip"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr("about.md", "# About Acme")

    main(["--config", str(tmp_path), "zip", str(archive_path)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["fileCount"] == 1
    assert payload["files"] == [{"path": "about.md", "size": 12}]


def test_zip_command_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(tmp_path), "zip", str(tmp_path / "missing.zip")])

    assert excinfo.value.code == 1
