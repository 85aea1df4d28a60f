from fastapi import Request

from app.core.db import get_session
from app.services.catalog_service import Catalog, default_catalog

__all__ = ["get_catalog", "get_session"]


def get_catalog(request: Request) -> Catalog:
    """Catalog installed on app.state at startup; falls back to the built-in data."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        catalog = default_catalog()
        request.app.state.catalog = catalog
    return catalog
