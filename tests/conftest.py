from __future__ import annotations

import pytest

from ecospray.models import CrawlResult, CrawledPage, ExtractedContent
from ecospray.stores.memory import InMemoryStore


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Provide an empty store with every table's header row in place."""
    return InMemoryStore()


@pytest.fixture
def crawl_result() -> CrawlResult:
    return CrawlResult(
        pages=[
            CrawledPage(
                url="https://example.com/",
                title="Example Insulation",
                text="## Spray foam done right\nCall us at 412-555-0100.",
            ),
            CrawledPage(
                url="https://example.com/about",
                title="About",
                text="Family owned since 1998.",
            ),
        ],
        images=["https://example.com/hero.jpg"],
        emails=["info@example.com"],
        phones=["412-555-0100"],
    )


@pytest.fixture
def extracted_content() -> ExtractedContent:
    return ExtractedContent.from_dict(
        {
            "businessInfo": {"name": "Example Insulation", "phone": "412-555-0100"},
            "services": [
                {"id": "svc-1", "title": "Attic foam", "description": "Closed cell", "bogus": "x"},
            ],
            "testimonials": [],
            "site_config": {"theme": "dark"},
        }
    )
