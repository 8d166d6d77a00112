"""Builds prompts for site-content extraction and CMS copy generation."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Union

from ..models import BUSINESS_INFO_KEYS, CrawlResult, FileBundle
from ..schema import get_schema
from .constants import (
    BUSINESS_CONTEXT_FIELDS,
    FIELD_HINTS,
    ID_PREFIXES,
    IMPORT_TABLES,
    INDUSTRIES,
    MAX_PROMPT_IMAGES,
    MAX_SOURCE_CHARS,
    SITE_CONTENT_CATEGORIES,
    TRUNCATION_MARKER,
)

Source = Union[CrawlResult, FileBundle]


def build_source_text(source: Source, *, limit: int = MAX_SOURCE_CHARS) -> str:
    """Render crawled pages or source files into one bounded text block."""
    if isinstance(source, CrawlResult):
        blocks = [
            f"--- Page: {page.url} ({page.title}) ---\n{page.text}" for page in source.pages
        ]
        extras: List[str] = []
        if source.emails:
            extras.append(f"Emails found: {', '.join(source.emails)}")
        if source.phones:
            extras.append(f"Phones found: {', '.join(source.phones)}")
        if source.images:
            extras.append("Images found:\n" + "\n".join(source.images[:MAX_PROMPT_IMAGES]))
        text = "\n\n".join(blocks)
        if extras:
            text = f"{text}\n\n" + "\n".join(extras)
    else:
        text = "\n\n".join(f"--- File: {item.path} ---\n{item.content}" for item in source.files)

    if len(text) > limit:
        text = text[:limit] + TRUNCATION_MARKER
    return text


class ExtractionPromptBuilder:
    """Assembles the structured-extraction prompt from the table registry."""

    def build(self, source_text: str, source_type: str) -> str:
        source_label = "scraped website pages" if source_type == "url" else "website source files"
        keys = ["businessInfo", *IMPORT_TABLES]
        lines = [
            "You are a website content extraction expert. Extract structured content from the following",
            source_label,
            "and map it to the target schema below.",
            "",
            "IMPORTANT RULES:",
            "- Extract ONLY real content that exists in the source. Do NOT invent or fabricate content.",
            "- If a section has no matching content, return an empty array.",
            "- Every value must be a string.",
            "- For image fields, use the full image URL if found, empty string otherwise.",
            "- Generate unique IDs like "
            + ", ".join(f"{prefix}-1" for prefix in ID_PREFIXES.values())
            + ".",
            "- Return ONLY valid JSON. No markdown fences, no explanations.",
            "",
            self.schema_description(),
            "",
            "## Source Content",
            "",
            source_text,
            "",
            f"Return a single JSON object with keys: {', '.join(keys)}",
        ]
        return "\n".join(lines)

    def schema_description(self) -> str:
        lines = [
            "## Target Schema",
            "",
            "You must extract content into these exact structures:",
            "",
            "### businessInfo (object)",
        ]
        for key in BUSINESS_INFO_KEYS:
            hint = f"One of: {', '.join(INDUSTRIES)}" if key == "industry" else ""
            lines.append(f"- {key}" + (f": {hint}" if hint else ""))

        lines.extend(_table_sections(IMPORT_TABLES))
        return "\n".join(lines)


def _table_sections(categories: Iterable[str]) -> List[str]:
    lines: List[str] = []
    for category in categories:
        schema = get_schema(IMPORT_TABLES[category])
        lines.extend(
            [
                "",
                f"### {category} (array of objects)",
                f"{schema.description}. Each: {{ {', '.join(schema.columns)} }}",
            ]
        )
        for field_name, hint in FIELD_HINTS.get(category, {}).items():
            lines.append(f"- {field_name}: {hint}")
    return lines


def business_context(business_info: Mapping[str, object]) -> str:
    return "\n".join(
        f"{label}: {business_info.get(key) or ''}" for label, key in BUSINESS_CONTEXT_FIELDS
    )


def site_content_prompt(business_info: Mapping[str, object]) -> str:
    """Ask for a first draft of every wizard-seeded table in one JSON object."""
    lines = [
        "Write the initial website content for this business.",
        "",
        business_context(business_info),
        "",
        "RULES:",
        "- Create 6-8 services, 3 testimonials, 3 blog posts (400-600 words each),"
        " an About and a Contact page, and 3-4 hero statistics.",
        "- Testimonials are clearly realistic examples; do not use real customer names.",
        "- Every value must be a string. Leave image fields empty.",
        "- Generate unique IDs like "
        + ", ".join(f"{ID_PREFIXES[category]}-1" for category in SITE_CONTENT_CATEGORIES)
        + ".",
        "- Return ONLY valid JSON. No markdown fences, no explanations.",
        "",
        "## Target Schema",
    ]
    lines.extend(_table_sections(SITE_CONTENT_CATEGORIES))
    lines.extend(["", f"Return a single JSON object with keys: {', '.join(SITE_CONTENT_CATEGORIES)}"])
    return "\n".join(lines)


def page_prompt(topic: str, context: str) -> str:
    return (
        "Create website page content for a business website.\n\n"
        f"Business context: {context}\n"
        f"Page topic: {topic}\n\n"
        "Return a JSON object with:\n"
        '- "heading": main page heading\n'
        '- "subheading": supporting subheading\n'
        '- "sections": array of objects, each with "title" and "content" '
        "(HTML with <p>, <ul>, <li>, <strong> tags)\n\n"
        "Create 3-5 sections with professional, engaging content.\n"
        "Return only valid JSON, no markdown fences."
    )


def blog_prompt(topic: str, context: str) -> str:
    return (
        "Write a professional blog post for a business website.\n\n"
        f"Business context: {context}\n"
        f"Topic: {topic}\n\n"
        "Return a JSON object with:\n"
        '- "title": engaging blog post title\n'
        '- "slug": URL-friendly slug (lowercase, hyphens)\n'
        '- "excerpt": 1-2 sentence summary (max 200 chars)\n'
        '- "content": full blog post in HTML (use <h2>, <h3>, <p>, <ul>, <li>, <strong> tags)\n\n'
        "The content should be 500-800 words, professional, and SEO-optimized.\n"
        "Return only valid JSON, no markdown fences."
    )


def seo_prompt(content: str) -> str:
    return (
        "Analyze the following page content and generate SEO metadata. Return a JSON object with "
        '"title" (max 60 chars), "description" (max 155 chars), and "keywords" '
        "(array of 5-10 relevant keywords).\n\n"
        f"Content:\n{content}\n\n"
        "Return only valid JSON, no markdown fences."
    )


__all__ = [
    "ExtractionPromptBuilder",
    "blog_prompt",
    "business_context",
    "build_source_text",
    "page_prompt",
    "site_content_prompt",
    "seo_prompt",
]
