"""HTTP service exposing the CMS, site import and lead forms."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
