"""CMS writing assistant: page, blog, SEO and freeform drafts."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .errors import InputValidationError
from .extraction import parse_json_payload, validate_content_payload
from .llm.gemini import GeminiClient
from .logging import get_logger
from .models import ExtractedContent
from .prompting.builder import blog_prompt, page_prompt, seo_prompt, site_content_prompt
from .prompting.constants import GENERATION_TYPES, SITE_CONTENT_CATEGORIES


class ContentGenerator:
    """Drafts marketing copy through the generative text client."""

    def __init__(self, client: GeminiClient | None = None) -> None:
        self.client = client or GeminiClient()
        self.logger = get_logger("generation")

    def generate(self, payload: Mapping[str, Any]) -> Any:
        kind = payload.get("type")
        api_key = payload.get("apiKey") or None
        context = payload.get("context")
        topic = payload.get("topic")
        content = payload.get("content")

        if kind == "page":
            if not context or not topic:
                raise InputValidationError("context and topic required")
            return parse_json_payload(self.client.generate(page_prompt(topic, context), api_key=api_key))
        if kind == "blog":
            if not topic or not context:
                raise InputValidationError("topic and context required")
            return parse_json_payload(self.client.generate(blog_prompt(topic, context), api_key=api_key))
        if kind == "seo":
            if not content:
                raise InputValidationError("content required for SEO generation")
            return parse_json_payload(self.client.generate(seo_prompt(content), api_key=api_key))
        if kind == "freeform":
            if not content:
                raise InputValidationError("content (prompt) required")
            return self.client.generate(str(content), api_key=api_key)
        raise InputValidationError(f"Unknown type: {kind}. Valid: {', '.join(GENERATION_TYPES)}")

    def generate_site_content(
        self, business_info: Mapping[str, Any], api_key: str | None = None
    ) -> ExtractedContent:
        """Draft the wizard-seeded tables from business details.

        Only the drafted categories are kept; each is present (possibly empty)
        so the caller reports a count for every one of them.
        """
        if not business_info.get("name"):
            raise InputValidationError("businessInfo.name is required")
        raw = self.client.generate(site_content_prompt(business_info), api_key=api_key)
        drafted = validate_content_payload(parse_json_payload(raw), raw=raw)
        content = ExtractedContent()
        for category in SITE_CONTENT_CATEGORIES:
            setattr(content, category, drafted.category(category) or [])
        self.logger.info(
            "Drafted %s",
            ", ".join(f"{name}={len(content.category(name) or [])}" for name in SITE_CONTENT_CATEGORIES),
        )
        return content


__all__ = ["ContentGenerator"]
