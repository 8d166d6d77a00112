"""Source extractors that normalize external content for import."""

from .archive import extract_zip_contents
from .crawler import SiteCrawler
from .github import GitHubFetcher, parse_github_url

__all__ = ["GitHubFetcher", "SiteCrawler", "extract_zip_contents", "parse_github_url"]
