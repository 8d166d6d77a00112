"""Public lead-capture forms: contact, estimate request and guide download.

After input validation these handlers are success-biased: a failed sheet
write or CRM sync is logged and the visitor still gets the success
envelope.
"""

from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import ServiceConfig
from .crm import CRMClient
from .errors import EcosprayError, InputValidationError
from .logging import get_logger
from .stores.base import TabularStore

CONTACT_MESSAGE = "Thank you! We'll be in touch shortly."
ESTIMATE_MESSAGE = "Your estimate request has been received!"
GUIDE_MESSAGE = "Your guide is ready! We've also sent a copy to your email."
ESTIMATE_REQUIRED = ("name", "phone", "email", "zip", "projectType")
GUIDE_NAME = "pittsburghers-guide-draft-free-home"

SideEffect = Tuple[str, Callable[[], Any]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _stamp() -> int:
    return int(time.time() * 1000)


def split_name(name: str) -> Tuple[str, str]:
    """Split on the first space: ``"Jane van Doe"`` -> ``("Jane", "van Doe")``."""
    first, _, last = name.strip().partition(" ")
    return first, last.strip()


def _text(form: Mapping[str, Any], key: str) -> str:
    value = form.get(key)
    return value.strip() if isinstance(value, str) else ""


def _require_name_and_email(form: Mapping[str, Any]) -> Tuple[str, str]:
    name = _text(form, "name")
    if not name:
        raise InputValidationError("Name is required")
    email = _text(form, "email")
    if "@" not in email:
        raise InputValidationError("A valid email is required")
    return name, email.lower()


class LeadService:
    """Records form submissions in the store and mirrors them to the CRM."""

    def __init__(
        self,
        store_factory: Callable[[], TabularStore],
        crm: CRMClient | None = None,
        config: ServiceConfig | None = None,
        *,
        max_workers: int = 4,
    ) -> None:
        self.store_factory = store_factory
        self._store: Optional[TabularStore] = None
        self.crm = crm or CRMClient()
        self.config = config or ServiceConfig()
        self.max_workers = max_workers
        self.logger = get_logger("leads")

    @property
    def store(self) -> TabularStore:
        # Resolved lazily so a misconfigured store fails inside the guarded writes.
        if self._store is None:
            self._store = self.store_factory()
        return self._store

    def submit_contact(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        name, email = _require_name_and_email(form)
        first_name, last_name = split_name(name)
        phone = _text(form, "phone")
        property_type = _text(form, "propertyType")
        square_footage = _text(form, "squareFootage")
        message = _text(form, "message")

        tags = ["lead", self.config.site_tag]
        if property_type:
            tags.append(property_type)
        contact = self._contact_row(first_name, last_name, email, phone, tags, "contact_form")

        description = " | ".join(
            part
            for part in (
                f"Quote request from {name}",
                f"Property: {property_type}" if property_type else "",
                f"Size: {square_footage} sq ft" if square_footage else "",
                f"Message: {message[:200]}" if message else "",
            )
            if part
        )
        self._fan_out(
            "contact",
            [
                ("contact", lambda: self.store.append_record("contacts", contact)),
                ("activity", lambda: self._log_activity(contact["id"], "form_submission", description)),
                (
                    "crm",
                    lambda: self.crm.upsert_contact(
                        email=email,
                        first_name=first_name,
                        last_name=last_name,
                        phone=phone,
                        tags=[self.config.site_tag, "contact-form", property_type],
                        source="contact_form",
                    ),
                ),
                (
                    "event",
                    lambda: self._log_event(
                        "contact",
                        "contact_form_submission",
                        {
                            "contactId": contact["id"],
                            "name": name,
                            "email": email,
                            "propertyType": property_type or "not_specified",
                            "squareFootage": square_footage,
                            "source": "contact_page",
                        },
                    ),
                ),
            ],
        )
        return {"success": True, "message": CONTACT_MESSAGE}

    def submit_estimate(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        missing = [key for key in ESTIMATE_REQUIRED if not _text(form, key)]
        if missing:
            raise InputValidationError(
                "Missing required fields: name, phone, email, zip, and projectType are required."
            )
        first_name, last_name = split_name(_text(form, "name"))
        email = _text(form, "email").lower()
        project_type = _text(form, "projectType")
        areas = form.get("areas") if isinstance(form.get("areas"), list) else []
        timeline = _text(form, "timeline")
        zip_code = _text(form, "zip")

        self._attempt(
            "estimate CRM sync",
            lambda: self.crm.upsert_contact(
                email=email,
                first_name=first_name,
                last_name=last_name,
                phone=_text(form, "phone"),
                tags=["spray-foam-lead", "website-form", project_type],
                source="estimate_form",
                custom_fields={
                    "spray_foam_areas": ", ".join(str(area) for area in areas),
                    "project_timeline": timeline,
                    "zip_code": zip_code,
                },
            ),
        )
        self.logger.info(
            "New lead received: email=%s zip=%s projectType=%s areas=%s timeline=%s",
            email,
            zip_code,
            project_type,
            ",".join(str(area) for area in areas) or "-",
            timeline or "-",
        )
        return {"success": True, "message": ESTIMATE_MESSAGE}

    def submit_guide_download(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        name, email = _require_name_and_email(form)
        first_name, last_name = split_name(name)
        phone = _text(form, "phone")
        property_type = _text(form, "propertyType")

        tags = ["lead", "guide-download", self.config.site_tag]
        if property_type:
            tags.append(property_type)
        contact = self._contact_row(first_name, last_name, email, phone, tags, "guide_download")
        description = f"Guide download by {name}" + (
            f" | Property: {property_type}" if property_type else ""
        )

        self._fan_out(
            "guide",
            [
                ("contact", lambda: self.store.append_record("contacts", contact)),
                ("activity", lambda: self._log_activity(contact["id"], "guide_download", description)),
                (
                    "event",
                    lambda: self._log_event(
                        "guide",
                        "guide_download",
                        {
                            "contactId": contact["id"],
                            "name": name,
                            "email": email,
                            "propertyType": property_type or "not_specified",
                            "guide": GUIDE_NAME,
                            "source": "free_guide_page",
                        },
                    ),
                ),
                (
                    "crm",
                    lambda: self.crm.upsert_contact(
                        email=email,
                        first_name=first_name,
                        last_name=last_name,
                        phone=phone,
                        tags=[self.config.site_tag, "guide-download", property_type],
                        source="guide_download",
                    ),
                ),
            ],
        )
        return {
            "success": True,
            "downloadUrl": self.config.guide_download_url,
            "message": GUIDE_MESSAGE,
        }

    def _contact_row(
        self,
        first_name: str,
        last_name: str,
        email: str,
        phone: str,
        tags: List[str],
        source: str,
    ) -> Dict[str, str]:
        return {
            "id": f"contact-{_stamp()}",
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
            "company": "",
            "tags": ",".join(tags),
            "source": source,
            "created_at": _now(),
        }

    def _log_activity(self, contact_id: str, kind: str, description: str) -> None:
        self.store.append_record(
            "activities",
            {
                "id": f"activity-{_stamp()}",
                "contact_id": contact_id,
                "type": kind,
                "description": description,
                "created_at": _now(),
            },
        )

    def _log_event(self, prefix: str, event_type: str, payload: Dict[str, Any]) -> None:
        self.store.append_record(
            "0n_events",
            {
                "id": f"event-{prefix}-{_stamp()}",
                "timestamp": _now(),
                "layer": "crm",
                "event_type": event_type,
                "payload": json.dumps(payload),
                "agent_id": "system",
            },
        )

    def _attempt(self, label: str, action: Callable[[], Any]) -> Optional[Any]:
        try:
            return action()
        except EcosprayError as exc:
            self.logger.error("%s failed: %s", label, exc.message)
        except Exception:  # noqa: BLE001
            self.logger.exception("%s failed unexpectedly", label)
        return None

    def _fan_out(self, form_name: str, effects: List[SideEffect]) -> Dict[str, bool]:
        """Run independent side effects concurrently; report which succeeded."""
        outcomes: Dict[str, bool] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {label: executor.submit(action) for label, action in effects}
            for label, future in futures.items():
                try:
                    future.result()
                    outcomes[label] = True
                except EcosprayError as exc:
                    self.logger.warning("[%s] %s failed: %s", form_name, label, exc.message)
                    outcomes[label] = False
                except Exception:  # noqa: BLE001
                    self.logger.exception("[%s] %s failed unexpectedly", form_name, label)
                    outcomes[label] = False
        return outcomes


__all__ = [
    "CONTACT_MESSAGE",
    "ESTIMATE_MESSAGE",
    "GUIDE_MESSAGE",
    "LeadService",
    "split_name",
]
