"""Backend for the ecospray contractor site: CMS tables, site import and lead capture."""

__version__ = "0.1.0"
