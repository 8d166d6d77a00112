"""Shared constants for extraction and generation prompts."""

from __future__ import annotations

MAX_SOURCE_CHARS = 100_000
MAX_PROMPT_IMAGES = 20
TRUNCATION_MARKER = "\n\n[...truncated]"

SOURCE_TYPES: tuple[str, ...] = ("url", "git", "zip")

# Import category -> destination table, in the order they are described.
IMPORT_TABLES: dict[str, str] = {
    "pages": "pages",
    "services": "services",
    "testimonials": "testimonials",
    "blog_posts": "blog_posts",
    "stats": "stats",
    "navigation": "navigation",
}

FIELD_HINTS: dict[str, dict[str, str]] = {
    "pages": {
        "slug": "URL-friendly (lowercase, hyphens)",
        "content": "Page body as simple HTML",
        "status": '"published"',
    },
    "services": {
        "icon": "One of: Wrench, Shield, Star, Zap, Award, Hammer, Settings, Heart, Sparkles, Target",
        "image": "External image URL if found, empty string if not",
        "features": "Comma-separated short feature list",
        "order": 'Numeric string starting from "1"',
    },
    "testimonials": {
        "rating": '"5" or "4" (string)',
        "image": "External image URL if found, empty string if not",
        "order": 'Numeric string starting from "1"',
    },
    "blog_posts": {
        "content": "Full post HTML",
        "excerpt": "1-2 sentence summary",
        "image_id": "External image URL if found, empty string if not",
        "published_at": "ISO date (YYYY-MM-DD)",
        "status": '"published"',
    },
    "stats": {
        "value": 'Display value such as "500+" or "15 Years"',
        "order": 'Numeric string starting from "1"',
    },
    "navigation": {
        "href": "Site-relative path such as /about",
        "order": 'Numeric string starting from "1"',
        "visible": '"true" or "false"',
    },
}

INDUSTRIES: tuple[str, ...] = (
    "Home Services",
    "Construction",
    "HVAC",
    "Roofing",
    "General Contractor",
    "Other",
)

ID_PREFIXES: dict[str, str] = {
    "pages": "page",
    "services": "svc",
    "testimonials": "test",
    "blog_posts": "post",
    "stats": "stat",
    "navigation": "nav",
}

GENERATION_TYPES: tuple[str, ...] = ("page", "blog", "seo", "freeform")

# Categories drafted from business info by the setup wizard.
SITE_CONTENT_CATEGORIES: tuple[str, ...] = ("services", "testimonials", "blog_posts", "pages", "stats")
BUSINESS_CONTEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("Business", "name"),
    ("Industry", "industry"),
    ("Tagline", "tagline"),
    ("Phone", "phone"),
    ("Email", "email"),
    ("Website", "url"),
)


__all__ = [
    "BUSINESS_CONTEXT_FIELDS",
    "FIELD_HINTS",
    "GENERATION_TYPES",
    "ID_PREFIXES",
    "IMPORT_TABLES",
    "INDUSTRIES",
    "MAX_PROMPT_IMAGES",
    "MAX_SOURCE_CHARS",
    "SITE_CONTENT_CATEGORIES",
    "SOURCE_TYPES",
    "TRUNCATION_MARKER",
]
