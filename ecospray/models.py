"""Core data models shared across the import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

# ExtractedContent list categories and the sheet each one lands in.
LIST_CATEGORIES: tuple[str, ...] = (
    "pages",
    "services",
    "testimonials",
    "blog_posts",
    "stats",
    "navigation",
)

CATEGORY_ALIASES: Dict[str, str] = {
    "blog": "blog_posts",
    "posts": "blog_posts",
    "nav": "navigation",
    "siteConfig": "site_config",
    "config": "site_config",
}

BUSINESS_INFO_KEYS: tuple[str, ...] = ("name", "phone", "email", "tagline", "industry")


@dataclass
class NormalizedFile:
    """One discoverable unit of text content from a repo, archive or crawl."""

    path: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "content": self.content}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NormalizedFile":
        return cls(path=str(payload.get("path", "")), content=str(payload.get("content", "")))


@dataclass
class CrawledPage:
    """A successfully fetched and parsed HTML page."""

    url: str
    title: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "title": self.title, "text": self.text}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawledPage":
        return cls(
            url=str(payload.get("url", "")),
            title=str(payload.get("title", "") or ""),
            text=str(payload.get("text", "") or ""),
        )


@dataclass
class CrawlResult:
    """Aggregate of a bounded same-origin crawl."""

    pages: List[CrawledPage] = field(default_factory=list)
    images: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": [page.to_dict() for page in self.pages],
            "images": list(self.images),
            "emails": list(self.emails),
            "phones": list(self.phones),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlResult":
        pages = [
            CrawledPage.from_dict(item)
            for item in _as_list(payload.get("pages"))
            if isinstance(item, Mapping)
        ]
        return cls(
            pages=pages,
            images=[str(item) for item in _as_list(payload.get("images"))],
            emails=[str(item) for item in _as_list(payload.get("emails"))],
            phones=[str(item) for item in _as_list(payload.get("phones"))],
        )


@dataclass
class FileBundle:
    """File list produced by the GitHub and ZIP extractors."""

    files: List[NormalizedFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"files": [item.to_dict() for item in self.files]}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FileBundle":
        return cls(
            files=[
                NormalizedFile.from_dict(item)
                for item in _as_list(payload.get("files"))
                if isinstance(item, Mapping)
            ]
        )


Record = Dict[str, str]


@dataclass
class ExtractedContent:
    """Structured site content shaped after the destination tables.

    A category set to ``None`` is absent and will not be written; an empty
    list is present and reports a count of zero.
    """

    business_info: Record = field(default_factory=dict)
    pages: Optional[List[Record]] = None
    services: Optional[List[Record]] = None
    testimonials: Optional[List[Record]] = None
    blog_posts: Optional[List[Record]] = None
    stats: Optional[List[Record]] = None
    navigation: Optional[List[Record]] = None
    site_config: Optional[Record] = None

    def category(self, name: str) -> Optional[List[Record]]:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"businessInfo": dict(self.business_info)}
        for name in LIST_CATEGORIES:
            rows = self.category(name)
            if rows is not None:
                payload[name] = [dict(row) for row in rows]
        if self.site_config is not None:
            payload["site_config"] = dict(self.site_config)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExtractedContent":
        """Build content from an already validated JSON mapping."""
        data = _canonical_keys(payload)
        content = cls(business_info=_string_map(data.get("businessInfo")))
        for name in LIST_CATEGORIES:
            if name in data and data[name] is not None:
                setattr(
                    content,
                    name,
                    [_string_map(item) for item in _as_list(data[name]) if isinstance(item, Mapping)],
                )
        if data.get("site_config") is not None:
            content.site_config = _config_map(data["site_config"])
        return content


def _canonical_keys(payload: Mapping[str, Any]) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for key, value in payload.items():
        if key in ("businessInfo", "business_info"):
            data["businessInfo"] = value
            continue
        canonical = CATEGORY_ALIASES.get(key, key)
        if canonical not in data or data[canonical] is None:
            data[canonical] = value
    return data


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


def _string_map(value: Any) -> Record:
    if not isinstance(value, Mapping):
        return {}
    result: Record = {}
    for key, item in value.items():
        if item is None:
            result[str(key)] = ""
        elif isinstance(item, (list, tuple)):
            result[str(key)] = ",".join(str(part) for part in item)
        else:
            result[str(key)] = str(item)
    return result


def _config_map(value: Any) -> Record:
    # Accept either {key: value} or [{key, value}, ...] rows.
    if isinstance(value, Mapping):
        return _string_map(value)
    result: Record = {}
    for item in _as_list(value):
        if isinstance(item, Mapping) and item.get("key"):
            result[str(item["key"])] = "" if item.get("value") is None else str(item.get("value"))
    return result


__all__ = [
    "BUSINESS_INFO_KEYS",
    "CrawlResult",
    "CrawledPage",
    "ExtractedContent",
    "FileBundle",
    "LIST_CATEGORIES",
    "NormalizedFile",
    "Record",
]
