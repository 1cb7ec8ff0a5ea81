"""Pure read operations exposed to the API layer.

Each function resolves the aggregate through the ledger (with
identity → anonymous fallback) and derives its view from the
persisted aggregate and its bounded history only.
"""

from __future__ import annotations

from datetime import datetime

from tracely.analysis import anomalies, audit_report, change_detection, evidence
from tracely.models import report, site, tracker
from tracely.services import ledger as ledger_service
from tracely.storage import base
from tracely.utils import errors, risk

DEFAULT_CHANGE_WINDOW_DAYS = 30
DEFAULT_TRACKER_LIMIT = 100
DEFAULT_DETAILS_TRACKER_LIMIT = 100


def get_score(ledger: ledger_service.Ledger, target: base.ScopeType) -> site.SiteScore:
    """Current score and counts for a scope."""
    return site.SiteScore.from_aggregate(ledger.read(target))


def get_details(
    ledger: ledger_service.Ledger,
    target: base.ScopeType,
    limit: int = DEFAULT_DETAILS_TRACKER_LIMIT,
) -> site.SiteDetails:
    """Aggregate counts plus the newest *limit* tracker sightings.

    Sightings come from the observations visible to the request,
    so an identity that falls back to the anonymous aggregate still
    only lists its own trackers.
    """
    aggregate = ledger.read(target)
    recent = sorted(ledger.observations_for(target), key=lambda o: o.observed_at, reverse=True)[:limit]
    summary = (
        f"{aggregate.domain} has a privacy risk score of {aggregate.score}/100 "
        f"({risk.risk_label(aggregate.score)}) with {aggregate.tracker_count} trackers detected."
    )
    return site.SiteDetails(
        domain=aggregate.domain,
        score=aggregate.score,
        risk_level=aggregate.risk_level,
        tracker_count=aggregate.tracker_count,
        unique_tracker_count=aggregate.unique_tracker_count,
        third_party_count=aggregate.third_party_count,
        cookie_count=aggregate.cookie_count,
        first_seen=aggregate.first_seen,
        last_scanned=aggregate.last_scanned,
        scan_count=aggregate.scan_count,
        summary=summary,
        trackers=[site.SiteTracker.from_observation(o) for o in recent],
    )


def get_history(ledger: ledger_service.Ledger, target: base.ScopeType) -> site.SiteHistory:
    """Full bounded score history for a scope."""
    aggregate = ledger.read(target)
    return site.SiteHistory(
        domain=aggregate.domain,
        score_history=list(aggregate.history),
        current_score=aggregate.score,
        first_seen=aggregate.first_seen,
        last_scanned=aggregate.last_scanned,
    )


def get_recent_changes(
    ledger: ledger_service.Ledger,
    target: base.ScopeType,
    days: int = DEFAULT_CHANGE_WINDOW_DAYS,
    now: datetime | None = None,
) -> report.SiteChanges:
    """Tracker additions and removals in the last *days* days."""
    aggregate = ledger.read(target)
    changes = change_detection.get_recent_changes(aggregate, days, now)
    return report.SiteChanges(
        domain=aggregate.domain,
        timeframe=f"Last {days} days",
        change_count=len(changes),
        changes=changes,
    )


def get_anomalies(ledger: ledger_service.Ledger, target: base.ScopeType) -> report.AnomalyResult:
    """Score jumps and tracker spikes in a scope's history."""
    return anomalies.detect_anomalies(ledger.read(target).history)


def get_audit_report(
    ledger: ledger_service.Ledger,
    target: base.ScopeType,
    now: datetime | None = None,
) -> report.AuditReport:
    """Compliance audit report for a scope."""
    return audit_report.generate_audit_report(ledger.read(target), now)


def get_evidence(
    ledger: ledger_service.Ledger,
    target: base.ScopeType,
    limit: int = evidence.DEFAULT_LIMIT,
) -> report.EvidenceTimeline:
    """Evidence timeline; empty rather than missing when nothing was observed."""
    return evidence.build_evidence(target.domain, ledger.observations_for(target), limit)


def list_trackers(store: base.Store, limit: int = DEFAULT_TRACKER_LIMIT) -> list[tracker.TrackerCatalogEntry]:
    """Catalog entries, most sighted first."""
    return sorted(store.list_trackers(), key=lambda t: t.sighting_count, reverse=True)[:limit]


def get_tracker(store: base.Store, domain: str) -> tracker.TrackerCatalogEntry:
    """One catalog entry."""
    entry = store.get_tracker(domain.lower())
    if entry is None:
        raise errors.NotFoundError("Tracker not found")
    return entry
