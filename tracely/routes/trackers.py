"""Global tracker catalog endpoints."""

from __future__ import annotations

from typing import Any

import fastapi

from tracely.routes import dependencies
from tracely.services import site_queries
from tracely.storage import base
from tracely.utils import serialization

router = fastapi.APIRouter(prefix="/api/trackers", tags=["trackers"])


@router.get("")
def list_trackers(
    limit: int = fastapi.Query(site_queries.DEFAULT_TRACKER_LIMIT, ge=1, le=1000),
    store: base.Store = fastapi.Depends(dependencies.get_store),
) -> dict[str, Any]:
    """Most-sighted trackers first."""
    return serialization.envelope(serialization.to_wire(site_queries.list_trackers(store, limit)))


@router.get("/{domain}")
def get_tracker(
    domain: str,
    store: base.Store = fastapi.Depends(dependencies.get_store),
) -> dict[str, Any]:
    """One tracker's catalog entry."""
    return serialization.envelope(serialization.to_wire(site_queries.get_tracker(store, domain)))
