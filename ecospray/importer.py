"""Stateless orchestration of the site-import stages.

Each stage returns the JSON envelope the admin wizard expects. Source stages
hand back the full payload (``_crawlData`` / ``_fileData``) so the caller can
echo it into ``analyze``; nothing is kept between calls.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from .errors import EmptySourceError, ExtractionParseError, InputValidationError
from .extraction import ContentExtractor, validate_content_payload
from .logging import get_logger
from .models import CrawlResult, FileBundle, NormalizedFile
from .sources.archive import extract_zip_contents
from .sources.crawler import SiteCrawler
from .sources.github import GitHubFetcher
from .writer import ContentWriter

EMPTY_REPO_MESSAGE = "No content files found in this repo (HTML, MD, JSON, TXT)"
EMPTY_ZIP_MESSAGE = "No content files found in the ZIP (HTML, MD, JSON, TXT)"


def _file_summaries(files: List[NormalizedFile]) -> List[Dict[str, Any]]:
    return [{"path": item.path, "size": len(item.content)} for item in files]


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value:
            return value
    return None


class ImportPipeline:
    """Runs one import stage per call."""

    ACTIONS = ("crawl", "github", "analyze", "write")

    def __init__(
        self,
        crawler: SiteCrawler | None = None,
        fetcher: GitHubFetcher | None = None,
        extractor: ContentExtractor | None = None,
        writer: ContentWriter | None = None,
    ) -> None:
        self.crawler = crawler or SiteCrawler()
        self.fetcher = fetcher or GitHubFetcher()
        self.extractor = extractor or ContentExtractor()
        self.writer = writer or ContentWriter()
        self.logger = get_logger("importer")

    def run(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Dispatch a JSON request body on its ``action`` field."""
        action = payload.get("action")
        if action == "crawl":
            return self.crawl(payload.get("url"))
        if action == "github":
            return self.github(payload.get("url"))
        if action == "analyze":
            return self.analyze(payload)
        if action == "write":
            return self.write(payload)
        raise InputValidationError(f"Unknown action: {action}")

    def crawl(self, url: Any) -> Dict[str, Any]:
        if not url or not isinstance(url, str):
            raise InputValidationError("URL is required")
        result = self.crawler.crawl(url)
        return {
            "source": "url",
            "pageCount": len(result.pages),
            "imageCount": len(result.images),
            "emails": list(result.emails),
            "phones": list(result.phones),
            "pages": [
                {"url": page.url, "title": page.title, "textLength": len(page.text)}
                for page in result.pages
            ],
            "_crawlData": result.to_dict(),
        }

    def github(self, url: Any) -> Dict[str, Any]:
        if not url or not isinstance(url, str):
            raise InputValidationError("GitHub URL is required")
        files = self.fetcher.fetch(url)
        if not files:
            raise EmptySourceError(EMPTY_REPO_MESSAGE)
        return {
            "source": "github",
            "fileCount": len(files),
            "files": _file_summaries(files),
            "_fileData": FileBundle(files=files).to_dict(),
        }

    def zip(self, data: bytes, gemini_key: str | None = None) -> Dict[str, Any]:
        """Unpack an uploaded archive; analyze it straight away when a key is given."""
        if not data:
            raise InputValidationError("No file uploaded")
        files = extract_zip_contents(data)
        if not files:
            raise EmptySourceError(EMPTY_ZIP_MESSAGE)
        if gemini_key:
            content = self.extractor.extract(FileBundle(files=files), "zip", gemini_key)
            return {"source": "zip", "fileCount": len(files), "content": content.to_dict()}
        return {
            "source": "zip",
            "fileCount": len(files),
            "files": _file_summaries(files),
            "_fileData": FileBundle(files=files).to_dict(),
        }

    def analyze(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        gemini_key = payload.get("geminiKey") or None
        crawl_data = payload.get("crawlData")
        file_data = payload.get("fileData")

        if isinstance(crawl_data, Mapping) and crawl_data:
            source: Any = CrawlResult.from_dict(crawl_data)
            source_type = "url"
            if not source.pages:
                raise EmptySourceError("crawlData contains no pages")
        elif isinstance(file_data, Mapping) and file_data:
            source = FileBundle.from_dict(file_data)
            source_type = payload.get("sourceType") or "git"
            if not source.files:
                raise EmptySourceError("fileData contains no files")
        else:
            raise InputValidationError("No source data provided")

        content = self.extractor.extract(source, source_type, gemini_key)
        return {"content": content.to_dict()}

    def write(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        raw_content = payload.get("content")
        credentials_key = _first(payload, "destinationKey", "googleKey")
        destination_id = _first(payload, "destinationId", "spreadsheetId")
        if not isinstance(raw_content, Mapping) or not credentials_key or not destination_id:
            raise InputValidationError("content, destinationKey, and destinationId are required")
        # Hand-built content goes through the same shape check as model output.
        try:
            content = validate_content_payload(raw_content, fill_missing=False)
        except ExtractionParseError as exc:
            raise InputValidationError(f"content: {exc.message}") from exc
        counts = self.writer.write(content, destination_id, credentials_key)
        self.logger.info("Import written to %s", destination_id)
        return {"written": True, "counts": counts}


__all__ = ["EMPTY_REPO_MESSAGE", "EMPTY_ZIP_MESSAGE", "ImportPipeline"]
