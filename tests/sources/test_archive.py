"""Tests for ZIP archive unpacking."""

from __future__ import annotations

import io
import zipfile
from typing import Mapping, Union

import pytest

from ecospray.errors import InputValidationError
from ecospray.sources.archive import MAX_ENTRY_BYTES, extract_zip_contents, is_text_path


def _zip(entries: Mapping[str, Union[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def test_text_entries_are_decoded() -> None:
    data = _zip(
        {
            "site/index.html": "<h1>Acme Insulation</h1>",
            "site/about.md": "# About",
            "site/styles.css": "body {}",
            "site/logo.png": b"\x89PNG\r\n\x1a\n\x00\x00",
            "site/.env.txt": "SECRET=1",
            "node_modules/pkg/readme.txt": "vendored",
        }
    )

    files = extract_zip_contents(data)

    assert [(item.path, item.content) for item in files] == [
        ("site/index.html", "<h1>Acme Insulation</h1>"),
        ("site/about.md", "# About"),
    ]


def test_binary_only_archive_yields_no_files() -> None:
    data = _zip({"photo.jpg": b"\xff\xd8\xff\xe0", "font.woff": b"wOFF\x00\x01"})

    assert extract_zip_contents(data) == []


def test_undecodable_text_entry_is_skipped() -> None:
    data = _zip({"bad.txt": b"\xff\xfe\xfa\x00broken", "good.txt": "fine"})

    files = extract_zip_contents(data)

    assert [item.path for item in files] == ["good.txt"]


def test_oversized_entries_are_skipped() -> None:
    data = _zip({"big.txt": "x" * 100_001, "small.txt": "ok"})

    assert [item.path for item in extract_zip_contents(data)] == ["small.txt"]


def test_entries_declaring_a_huge_size_are_never_decompressed(monkeypatch: pytest.MonkeyPatch) -> None:
    data = _zip({"bomb.txt": "a" * (MAX_ENTRY_BYTES + 1), "small.txt": "ok"})
    read_names: list = []
    original_read = zipfile.ZipFile.read

    def recording_read(self, name, pwd=None):
        read_names.append(getattr(name, "filename", name))
        return original_read(self, name, pwd)

    monkeypatch.setattr(zipfile.ZipFile, "read", recording_read)

    files = extract_zip_contents(data)

    assert [item.path for item in files] == ["small.txt"]
    assert read_names == ["small.txt"]


def test_file_count_is_capped() -> None:
    data = _zip({f"page{index}.html": "<p>hi</p>" for index in range(40)})

    assert len(extract_zip_contents(data)) == 30


def test_non_zip_bytes_are_a_validation_error() -> None:
    with pytest.raises(InputValidationError):
        extract_zip_contents(b"definitely not a zip")


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("index.HTML", True),
        ("docs/readme.markdown", True),
        ("data/site.json", True),
        ("styles/site.css", False),
        (".hidden/readme.md", False),
        ("a/node_modules/b.md", False),
    ],
)
def test_is_text_path(path: str, expected: bool) -> None:
    assert is_text_path(path) is expected
