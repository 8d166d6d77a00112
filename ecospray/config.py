"""Configuration loading for ecospray (.ecospray.yml plus environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".ecospray.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class GeminiConfig:
    """Generative text settings."""

    api_key: Optional[str] = None
    model: str = "gemini-2.0-flash"
    temperature: Optional[float] = None
    request_timeout: float = 60.0


@dataclass
class SheetsConfig:
    """Google Sheets datastore settings."""

    spreadsheet_id: Optional[str] = None
    service_account_key: Optional[str] = None
    request_timeout: float = 30.0

    @property
    def configured(self) -> bool:
        return bool(self.spreadsheet_id and self.service_account_key)


@dataclass
class CRMConfig:
    """CRM integration settings."""

    api_key: Optional[str] = None
    location_id: Optional[str] = None
    base_url: str = "https://services.leadconnectorhq.com"
    api_version: str = "2021-07-28"
    request_timeout: float = 15.0

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.location_id)


@dataclass
class AdminConfig:
    """Admin endpoint authentication."""

    api_key: Optional[str] = None
    require_key: bool = False


@dataclass
class CrawlConfig:
    """Bounds for the site-import crawler and repository fetcher."""

    max_pages: int = 9
    max_depth: int = 2
    request_timeout: float = 8.0
    user_agent: str = "Mozilla/5.0 (compatible; EcosprayImporter/1.0)"
    seed_priority_paths: bool = True
    github_token: Optional[str] = None


@dataclass
class ServiceConfig:
    """Public form behaviour."""

    guide_download_url: str = "/downloads/pittsburghers-guide-draft-free-home.pdf"
    site_tag: str = "ecospray-website"


@dataclass
class EcosprayConfig:
    """Represents the settings defined in .ecospray.yml and the environment."""

    root: Path
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    sheets: SheetsConfig = field(default_factory=SheetsConfig)
    crm: CRMConfig = field(default_factory=CRMConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)


_ENV_OVERRIDES: Sequence[tuple[str, str, str]] = (
    ("GEMINI_API_KEY", "gemini", "api_key"),
    ("GEMINI_MODEL", "gemini", "model"),
    ("GOOGLE_SHEET_ID", "sheets", "spreadsheet_id"),
    ("GOOGLE_SERVICE_ACCOUNT_KEY", "sheets", "service_account_key"),
    ("CRM_API_KEY", "crm", "api_key"),
    ("CRM_LOCATION_ID", "crm", "location_id"),
    ("CMS_ADMIN_KEY", "admin", "api_key"),
    ("GITHUB_TOKEN", "crawl", "github_token"),
)


def load_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> EcosprayConfig:
    """Load configuration from disk, then apply environment overrides."""
    config_file = _resolve_config_path(config_path or Path.cwd())
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = EcosprayConfig(root=root)

    gemini_data = _as_dict(data.get("gemini"))
    if gemini_data:
        config.gemini = GeminiConfig(
            api_key=_as_str(gemini_data.get("api_key")),
            model=_as_str(gemini_data.get("model")) or GeminiConfig.model,
            temperature=_as_float(gemini_data.get("temperature")),
            request_timeout=_as_float(gemini_data.get("request_timeout")) or GeminiConfig.request_timeout,
        )

    sheets_data = _as_dict(data.get("sheets"))
    if sheets_data:
        config.sheets = SheetsConfig(
            spreadsheet_id=_as_str(sheets_data.get("spreadsheet_id")),
            service_account_key=_as_str(sheets_data.get("service_account_key")),
            request_timeout=_as_float(sheets_data.get("request_timeout")) or SheetsConfig.request_timeout,
        )

    crm_data = _as_dict(data.get("crm"))
    if crm_data:
        config.crm = CRMConfig(
            api_key=_as_str(crm_data.get("api_key")),
            location_id=_as_str(crm_data.get("location_id")),
            base_url=(_as_str(crm_data.get("base_url")) or CRMConfig.base_url).rstrip("/"),
            api_version=_as_str(crm_data.get("api_version")) or CRMConfig.api_version,
            request_timeout=_as_float(crm_data.get("request_timeout")) or CRMConfig.request_timeout,
        )

    admin_data = _as_dict(data.get("admin"))
    if admin_data:
        config.admin = AdminConfig(
            api_key=_as_str(admin_data.get("api_key")),
            require_key=_as_bool(admin_data.get("require_key")) or False,
        )

    crawl_data = _as_dict(data.get("crawl"))
    if crawl_data:
        seed_paths = _as_bool(crawl_data.get("seed_priority_paths"))
        config.crawl = CrawlConfig(
            max_pages=_or_default(_as_int(crawl_data.get("max_pages")), CrawlConfig.max_pages),
            max_depth=_or_default(_as_int(crawl_data.get("max_depth")), CrawlConfig.max_depth),
            request_timeout=_as_float(crawl_data.get("request_timeout")) or CrawlConfig.request_timeout,
            user_agent=_as_str(crawl_data.get("user_agent")) or CrawlConfig.user_agent,
            seed_priority_paths=True if seed_paths is None else seed_paths,
            github_token=_as_str(crawl_data.get("github_token")),
        )

    service_data = _as_dict(data.get("service"))
    if service_data:
        config.service = ServiceConfig(
            guide_download_url=_as_str(service_data.get("guide_download_url"))
            or ServiceConfig.guide_download_url,
            site_tag=_as_str(service_data.get("site_tag")) or ServiceConfig.site_tag,
        )

    _apply_env_overrides(config, env)
    return config


def _apply_env_overrides(config: EcosprayConfig, env: Mapping[str, str]) -> None:
    for env_key, section_name, attribute in _ENV_OVERRIDES:
        value = env.get(env_key)
        if value:
            setattr(getattr(config, section_name), attribute, value)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None
