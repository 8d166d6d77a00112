"""Minimal CRM client for syncing website leads."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from .config import CRMConfig
from .errors import UpstreamError, UpstreamTimeoutError, upstream_status
from .logging import get_logger


class CRMClient:
    """Upserts contacts into a LeadConnector-style CRM.

    The client is inert unless both the API key and location id are set;
    calls then return ``None`` without touching the network.
    """

    def __init__(
        self,
        config: CRMConfig | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or CRMConfig()
        self.session = session or requests.Session()
        self.logger = get_logger("crm")

    @property
    def enabled(self) -> bool:
        return self.config.configured

    def upsert_contact(
        self,
        *,
        email: str,
        first_name: str = "",
        last_name: str = "",
        phone: str = "",
        tags: Sequence[str] = (),
        source: str = "website",
        custom_fields: Optional[Mapping[str, str]] = None,
    ) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            self.logger.debug("CRM not configured, skipping contact sync for %s", email)
            return None

        body: Dict[str, Any] = {
            "locationId": self.config.location_id,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "phone": phone,
            "tags": [tag for tag in tags if tag],
            "source": source,
        }
        if custom_fields:
            body["customFields"] = _custom_fields(custom_fields)

        url = f"{self.config.base_url.rstrip('/')}/contacts/upsert"
        try:
            response = self.session.post(
                url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Version": self.config.api_version,
                    "Content-Type": "application/json",
                },
                timeout=self.config.request_timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeoutError("CRM request timed out") from exc
        except requests.RequestException as exc:
            raise UpstreamError(f"CRM request failed: {exc}") from exc

        if not response.ok:
            raise UpstreamError(
                f"CRM upsert failed ({response.status_code}): {response.text[:200]}",
                status_code=upstream_status(response.status_code),
            )
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        contact = payload.get("contact") if isinstance(payload, dict) else None
        self.logger.info("CRM contact upserted for %s", email)
        return contact if isinstance(contact, dict) else {}


def _custom_fields(fields: Mapping[str, str]) -> List[Dict[str, str]]:
    return [{"key": key, "value": str(value)} for key, value in fields.items()]


__all__ = ["CRMClient"]
