"""Bounded same-origin crawler used by the site import."""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlparse, urlunparse

import requests
from bs4 import BeautifulSoup

from ..config import CrawlConfig
from ..errors import InputValidationError, UpstreamError, UpstreamTimeoutError
from ..logging import get_logger
from ..models import CrawlResult, CrawledPage

PRIORITY_PATHS: tuple[str, ...] = (
    "/about",
    "/services",
    "/contact",
    "/blog",
    "/testimonials",
    "/reviews",
    "/team",
    "/portfolio",
    "/work",
    "/projects",
    "/faq",
    "/faqs",
    "/our-services",
    "/our-team",
    "/about-us",
)

MIN_PAGE_TEXT = 50
MAX_IMAGES = 50

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PHONE_PATTERN = re.compile(r"(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
_HEADING_PATTERN = re.compile(r"^h[1-6]$")
_SKIPPED_TAGS = ("script", "style", "svg", "noscript")
_SKIPPED_IMAGE_MARKERS = ("1x1", "tracking", "pixel")
_SKIPPED_LINK_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")


def normalize_url(url: str) -> str:
    """Return scheme + lower-cased host + path, dropping query and fragment."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path, "", "", ""))


def _inline_text(tag: Any) -> str:
    return " ".join(tag.get_text(" ").split())


def html_to_text(html: str) -> str:
    """Strip markup to readable text, keeping headings and list structure."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(_SKIPPED_TAGS)):
        tag.decompose()
    for heading in soup.find_all(_HEADING_PATTERN):
        heading.replace_with(f"\n## {_inline_text(heading)}\n")
    for item in soup.find_all("li"):
        item.replace_with(f"\n- {_inline_text(item)}\n")
    for paragraph in soup.find_all("p"):
        paragraph.replace_with(f"\n{_inline_text(paragraph)}\n\n")
    for br in soup.find_all("br"):
        br.replace_with("\n")

    text = soup.get_text(" ")
    lines = [re.sub(r"[ \t\r\f\v]+", " ", line).strip() for line in text.split("\n")]
    collapsed = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
    return collapsed.strip()


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return soup.title.get_text(" ", strip=True)


def extract_images(soup: BeautifulSoup, page_url: str) -> List[str]:
    images: List[str] = []
    for img in soup.find_all("img", src=True):
        src = str(img["src"]).strip()
        if not src or src.startswith("data:"):
            continue
        url = urljoin(page_url, src)
        if any(marker in url for marker in _SKIPPED_IMAGE_MARKERS):
            continue
        if url not in images:
            images.append(url)
    return images


def extract_internal_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    host = urlparse(page_url).netloc.lower()
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_LINK_SCHEMES):
            continue
        target = urlparse(urljoin(page_url, href))
        if target.scheme not in ("http", "https") or target.netloc.lower() != host:
            continue
        normalized = normalize_url(target.geturl())
        if normalized not in links:
            links.append(normalized)
    return links


def extract_emails(text: str) -> List[str]:
    return _unique(_EMAIL_PATTERN.findall(text))


def extract_phones(text: str) -> List[str]:
    return _unique(match.strip() for match in _PHONE_PATTERN.findall(text))


def _unique(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def _priority_rank(url: str) -> int:
    path = urlparse(url).path.lower().rstrip("/") or "/"
    try:
        return PRIORITY_PATHS.index(path)
    except ValueError:
        return len(PRIORITY_PATHS)


class SiteCrawler:
    """Breadth-first crawl of a single origin with page and depth bounds."""

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or CrawlConfig()
        self.session = session or requests.Session()
        self.logger = get_logger("crawler")

    def crawl(self, url: str) -> CrawlResult:
        """Crawl ``url`` and its same-origin links into a ``CrawlResult``."""
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InputValidationError("Invalid URL format")

        seed = normalize_url(url)
        self.logger.info("Starting crawl of %s", seed)

        html = self._fetch_seed(seed)
        result = CrawlResult()
        visited: Set[str] = {seed}
        queue: Deque[Tuple[str, int]] = deque()

        self._record_page(result, seed, html, require_text=False)
        links = self._links_from(html, seed)
        if self.config.seed_priority_paths:
            # Common content paths are tried even when the home page does not link them.
            origin = urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), "", "", "", ""))
            links.extend(origin + path for path in PRIORITY_PATHS)
        self._enqueue(queue, visited, links, depth=1)

        # Every request counts toward max_pages, including failed and skipped ones.
        fetched = 1
        while queue and fetched < self.config.max_pages:
            page_url, depth = queue.popleft()
            fetched += 1
            html = self._fetch_optional(page_url)
            if html is None:
                continue
            if not self._record_page(result, page_url, html, require_text=True):
                continue
            if depth < self.config.max_depth:
                self._enqueue(queue, visited, self._links_from(html, page_url), depth=depth + 1)

        result.images = result.images[:MAX_IMAGES]
        self.logger.info(
            "Crawl of %s finished: %d pages from %d requests, %d images",
            seed,
            len(result.pages),
            fetched,
            len(result.images),
        )
        return result

    def _enqueue(
        self,
        queue: Deque[Tuple[str, int]],
        visited: Set[str],
        links: Iterable[str],
        *,
        depth: int,
    ) -> None:
        if depth > self.config.max_depth:
            return
        for link in sorted(links, key=_priority_rank):
            if link in visited:
                continue
            visited.add(link)
            queue.append((link, depth))

    def _links_from(self, html: str, page_url: str) -> List[str]:
        return extract_internal_links(BeautifulSoup(html, "html.parser"), page_url)

    def _record_page(self, result: CrawlResult, url: str, html: str, *, require_text: bool) -> bool:
        soup = BeautifulSoup(html, "html.parser")
        text = html_to_text(html)
        if require_text and len(text) < MIN_PAGE_TEXT:
            self.logger.debug("Skipping near-empty page %s", url)
            return False
        result.pages.append(CrawledPage(url=url, title=extract_title(soup), text=text))
        for image in extract_images(soup, url):
            if image not in result.images:
                result.images.append(image)
        for email in extract_emails(text):
            if email not in result.emails:
                result.emails.append(email)
        for phone in extract_phones(text):
            if phone not in result.phones:
                result.phones.append(phone)
        return True

    def _fetch_seed(self, url: str) -> str:
        try:
            response = self._get(url)
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(f"Timed out fetching {url}") from exc
        except requests.RequestException as exc:
            raise UpstreamError(
                f"Could not fetch the homepage ({exc}). Make sure the URL is correct and accessible."
            ) from exc
        html = self._html_body(response)
        if html is None:
            raise UpstreamError(
                f"Could not fetch the homepage (HTTP {response.status_code}). "
                "Make sure the URL is correct and accessible."
            )
        return html

    def _fetch_optional(self, url: str) -> Optional[str]:
        try:
            response = self._get(url)
        except requests.RequestException as exc:
            self.logger.warning("Failed to fetch %s: %s", url, exc)
            return None
        html = self._html_body(response)
        if html is None:
            self.logger.debug("Skipping %s (HTTP %s)", url, response.status_code)
        return html

    def _get(self, url: str) -> requests.Response:
        return self.session.get(
            url,
            timeout=self.config.request_timeout,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": "text/html,application/xhtml+xml",
            },
        )

    @staticmethod
    def _html_body(response: requests.Response) -> Optional[str]:
        if not 200 <= response.status_code < 300:
            return None
        content_type = response.headers.get("Content-Type", "").lower()
        if "text/html" not in content_type:
            return None
        return response.text


__all__ = [
    "PRIORITY_PATHS",
    "SiteCrawler",
    "extract_emails",
    "extract_phones",
    "html_to_text",
    "normalize_url",
]
