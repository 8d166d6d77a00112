"""ZIP archive unpacking for the site import."""

from __future__ import annotations

import io
import zipfile
from typing import List

from ..errors import InputValidationError
from ..logging import get_logger
from ..models import NormalizedFile

TEXT_EXTENSIONS: tuple[str, ...] = (".html", ".htm", ".md", ".markdown", ".json", ".txt")
MAX_TEXT_CHARS = 100_000
MAX_FILES = 30
# UTF-8 needs at most four bytes per character.
MAX_ENTRY_BYTES = MAX_TEXT_CHARS * 4

_logger = get_logger("archive")


def is_text_path(path: str) -> bool:
    """Return True for allow-listed text files outside vendored or hidden paths."""
    if "node_modules" in path:
        return False
    if path.startswith(".") or "/." in path:
        return False
    return path.lower().endswith(TEXT_EXTENSIONS)


def extract_zip_contents(data: bytes) -> List[NormalizedFile]:
    """Decode the text-like entries of a ZIP archive.

    Entries that are binary, oversized or not valid UTF-8 are skipped, so a
    binary-only archive yields an empty list.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise InputValidationError("Uploaded file is not a valid ZIP archive") from exc

    files: List[NormalizedFile] = []
    with archive:
        for info in archive.infolist():
            if info.is_dir() or not is_text_path(info.filename):
                continue
            if info.file_size > MAX_ENTRY_BYTES:
                _logger.debug("Skipping %s: %d bytes uncompressed", info.filename, info.file_size)
                continue
            try:
                content = archive.read(info).decode("utf-8")
            except (UnicodeDecodeError, zipfile.BadZipFile, RuntimeError, OSError) as exc:
                _logger.debug("Skipping %s: %s", info.filename, exc)
                continue
            if len(content) > MAX_TEXT_CHARS:
                _logger.debug("Skipping %s: %d characters", info.filename, len(content))
                continue
            files.append(NormalizedFile(path=info.filename, content=content))
            if len(files) >= MAX_FILES:
                break
    return files


__all__ = ["TEXT_EXTENSIONS", "extract_zip_contents", "is_text_path"]
