"""
Site score, details, history, change, anomaly, audit and evidence endpoints.

Every ``/api/site/{domain}/...`` route resolves the request's
scope once and reads through the ledger, so an identified caller
sees their own aggregate (or the anonymous one when they have
none yet).
"""

from __future__ import annotations

from typing import Any

import fastapi
from fastapi import responses

from tracely.analysis import evidence
from tracely.models import scope, site
from tracely.routes import dependencies
from tracely.services import ledger as ledger_service
from tracely.services import site_queries
from tracely.utils import errors, serialization

router = fastapi.APIRouter(prefix="/api", tags=["sites"])

ScopeDep = fastapi.Depends(dependencies.get_scope)
LedgerDep = fastapi.Depends(dependencies.get_ledger)


def _listing(aggregates: list[site.SiteAggregate]) -> list[dict[str, Any]]:
    return serialization.to_wire([site.SiteScore.from_aggregate(a) for a in aggregates])


# ============================================================================
# Per-site reads
# ============================================================================


@router.get("/site/{domain}/score")
def site_score(
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Current score and counts."""
    return serialization.envelope(serialization.to_wire(site_queries.get_score(ledger, target)))


@router.get("/site/{domain}/details")
def site_details(
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Counts, summary and the newest tracker sightings."""
    return serialization.envelope(serialization.to_wire(site_queries.get_details(ledger, target)))


@router.get("/site/{domain}/history")
def site_history(
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Bounded score history, oldest first."""
    return serialization.envelope(serialization.to_wire(site_queries.get_history(ledger, target)))


@router.get("/site/{domain}/changes")
def site_changes(
    days: int = fastapi.Query(site_queries.DEFAULT_CHANGE_WINDOW_DAYS, ge=1, le=365),
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Tracker additions and removals over the last ``days`` days."""
    return serialization.envelope(serialization.to_wire(site_queries.get_recent_changes(ledger, target, days)))


@router.get("/site/{domain}/anomalies")
def site_anomalies(
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Score jumps and tracker spikes."""
    result = site_queries.get_anomalies(ledger, target)
    return serialization.envelope({"domain": target.domain, **serialization.to_wire(result)})


@router.get("/site/{domain}/audit-report")
def site_audit_report(
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Compliance audit report."""
    return serialization.envelope(serialization.to_wire(site_queries.get_audit_report(ledger, target)))


@router.get("/site/{domain}/evidence")
def site_evidence(
    limit: int = fastapi.Query(evidence.DEFAULT_LIMIT, ge=1, le=5000),
    target: scope.AnonymousScope | scope.IdentifiedScope = ScopeDep,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Researcher-mode evidence timeline."""
    return serialization.envelope(serialization.to_wire(site_queries.get_evidence(ledger, target, limit)))


@router.get("/site/{domain}/global")
def site_global_view(
    domain: str,
    ledger: ledger_service.Ledger = LedgerDep,
) -> dict[str, Any]:
    """Every scope's aggregate for one domain."""
    view = ledger.global_view(domain)
    if not view.scopes:
        raise errors.NotFoundError("Site not found")
    return serialization.envelope(serialization.to_wire(view))


# ============================================================================
# Listings
# ============================================================================


@router.get("/sites")
def personal_sites(
    identity: str | None = fastapi.Depends(dependencies.get_identity),
    ledger: ledger_service.Ledger = LedgerDep,
) -> Any:
    """The caller's own sites, riskiest first."""
    if identity is None:
        return responses.JSONResponse(
            status_code=401,
            content={"error": "Authentication required to view personal sites"},
        )
    return serialization.envelope(_listing(ledger.personal_sites(identity)), mode="personal")


@router.get("/sites/global/stats")
def global_stats(ledger: ledger_service.Ledger = LedgerDep) -> dict[str, Any]:
    """Sites across every scope, most trackers first."""
    return serialization.envelope(_listing(ledger.global_stats()), mode="global")
