"""AI-backed conversion of crawled pages and files into structured content."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping

from .errors import ExtractionParseError, InputValidationError
from .llm.gemini import GeminiClient
from .logging import get_logger
from .models import ExtractedContent, LIST_CATEGORIES
from .prompting.builder import ExtractionPromptBuilder, Source, build_source_text
from .prompting.constants import SOURCE_TYPES

_OPENING_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?")
_CLOSING_FENCE = re.compile(r"\n?\s*```\s*$")


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = _OPENING_FENCE.sub("", raw, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_payload(raw: str) -> Dict[str, Any]:
    """Parse a model response into a JSON object or raise ExtractionParseError."""
    cleaned = strip_code_fences(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ExtractionParseError(
            f"AI response was not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            raw=raw,
        ) from exc
    if not isinstance(payload, dict):
        raise ExtractionParseError(
            f"AI response must be a JSON object, got {type(payload).__name__}", raw=raw
        )
    return payload


def validate_content_payload(
    payload: Mapping[str, Any], *, raw: str = "", fill_missing: bool = True
) -> ExtractedContent:
    """Check the top-level shape of extracted content before trusting it.

    Missing or null categories become empty lists unless ``fill_missing`` is
    off, in which case they stay absent. A category of the wrong type is
    rejected rather than silently dropped.
    """
    normalized: Dict[str, Any] = dict(payload)
    if "blog" in normalized and "blog_posts" not in normalized:
        normalized["blog_posts"] = normalized.pop("blog")

    business_info = normalized.get("businessInfo")
    if business_info is not None and not isinstance(business_info, Mapping):
        raise ExtractionParseError("businessInfo must be an object", raw=raw)

    for category in LIST_CATEGORIES:
        value = normalized.get(category)
        if value is None:
            if fill_missing:
                normalized[category] = []
        elif not isinstance(value, list):
            raise ExtractionParseError(
                f"{category} must be an array, got {type(value).__name__}", raw=raw
            )

    site_config = normalized.get("site_config")
    if site_config is not None and not isinstance(site_config, (Mapping, list)):
        raise ExtractionParseError("site_config must be an object", raw=raw)

    return ExtractedContent.from_dict(normalized)


class ContentExtractor:
    """Sends a source bundle to Gemini with a structured-extraction prompt."""

    def __init__(
        self,
        client: GeminiClient | None = None,
        prompt_builder: ExtractionPromptBuilder | None = None,
    ) -> None:
        self.client = client or GeminiClient()
        self.prompt_builder = prompt_builder or ExtractionPromptBuilder()
        self.logger = get_logger("extraction")

    def extract(self, source: Source, source_type: str, api_key: str | None) -> ExtractedContent:
        if source_type not in SOURCE_TYPES:
            raise InputValidationError(
                f"Invalid sourceType: {source_type}. Valid: {', '.join(SOURCE_TYPES)}"
            )
        source_text = build_source_text(source)
        prompt = self.prompt_builder.build(source_text, source_type)
        self.logger.info(
            "Extracting %s content from %d source characters", source_type, len(source_text)
        )
        raw = self.client.generate(prompt, api_key=api_key)
        content = validate_content_payload(parse_json_payload(raw), raw=raw)
        self.logger.info(
            "Extracted %s",
            ", ".join(f"{name}={len(content.category(name) or [])}" for name in LIST_CATEGORIES),
        )
        return content


__all__ = [
    "ContentExtractor",
    "parse_json_payload",
    "strip_code_fences",
    "validate_content_payload",
]
