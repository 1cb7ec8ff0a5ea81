"""Request-scoped dependencies shared by the routers."""

from __future__ import annotations

import fastapi

from tracely.models import scope
from tracely.pipeline import observation_pipeline
from tracely.services import ledger as ledger_service
from tracely.storage import base

# Set by the upstream authentication layer; absent for anonymous requests.
IDENTITY_HEADER = "X-Tracely-Identity"


def get_ledger(request: fastapi.Request) -> ledger_service.Ledger:
    """The application's ledger."""
    return request.app.state.ledger


def get_store(request: fastapi.Request) -> base.Store:
    """The application's storage backend."""
    return request.app.state.ledger.store


def get_pipeline(request: fastapi.Request) -> observation_pipeline.ObservationPipeline:
    """The application's observation pipeline."""
    return request.app.state.pipeline


def get_identity(
    identity: str | None = fastapi.Header(default=None, alias=IDENTITY_HEADER),
) -> str | None:
    """Authenticated identity of the caller, if any."""
    return identity.strip() if identity and identity.strip() else None


def get_scope(
    domain: str,
    identity: str | None = fastapi.Depends(get_identity),
) -> scope.AnonymousScope | scope.IdentifiedScope:
    """Resolve the scope for a ``/site/{domain}/...`` request once."""
    return scope.resolve_scope(domain, identity)
