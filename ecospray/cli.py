"""CLI entrypoints for ecospray commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import ConfigError, load_config
from .errors import EcosprayError
from .extraction import ContentExtractor
from .importer import ImportPipeline
from .llm.gemini import GeminiClient
from .logging import configure_logging
from .schema import CMS_SCHEMA
from .sources.crawler import SiteCrawler
from .sources.github import GitHubFetcher


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecospray",
        description="Serve the ecospray CMS backend and run site-import stages.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to .ecospray.yml or the directory holding it.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    crawl_parser = subparsers.add_parser("crawl", help="Crawl a website and print the crawl stage JSON.")
    _add_verbose_option(crawl_parser, suppress_default=True)
    crawl_parser.add_argument("url")

    github_parser = subparsers.add_parser("github", help="Fetch text files from a public GitHub repo.")
    _add_verbose_option(github_parser, suppress_default=True)
    github_parser.add_argument("url")

    zip_parser = subparsers.add_parser("zip", help="Unpack a site archive and print its file summary.")
    _add_verbose_option(zip_parser, suppress_default=True)
    zip_parser.add_argument("path")
    zip_parser.add_argument(
        "--gemini-key",
        default=None,
        help="Analyze the archive immediately with this Gemini API key.",
    )

    schema_parser = subparsers.add_parser("schema", help="List every table and its columns.")
    _add_verbose_option(schema_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for ecospray commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), service=args.command == "serve")

    if args.command == "schema":
        for name, schema in CMS_SCHEMA.items():
            print(f"{name}: {', '.join(schema.columns)}")
        return

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port, config=config)
        return

    pipeline = ImportPipeline(
        crawler=SiteCrawler(config.crawl),
        fetcher=GitHubFetcher(config.crawl),
        extractor=ContentExtractor(GeminiClient(config.gemini)),
    )
    try:
        if args.command == "crawl":
            result = pipeline.crawl(args.url)
        elif args.command == "github":
            result = pipeline.github(args.url)
        elif args.command == "zip":
            result = pipeline.zip(_read_archive(args.path), args.gemini_key)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except (EcosprayError, OSError) as exc:
        parser.exit(1, f"ecospray {args.command} failed: {exc}\nRun with --verbose for more details.\n")
    _print_json(result)


def _read_archive(path: str) -> bytes:
    return Path(path).read_bytes()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main(sys.argv[1:])
