"""Offline score mirror.

Client-side cache used while the server is unreachable.  It
keeps the tracker events seen locally on top of the last
authoritative counts, and derives the score with the same
:mod:`tracely.analysis.scoring` function the server uses, so
the two converge once the client reconciles.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pydantic

from tracely.analysis import scoring
from tracely.models import observation, site
from tracely.utils import logger, risk, serialization

log = logger.create_logger("OfflineMirror")


class LocalTrackerEvent(pydantic.BaseModel):
    """A tracker event recorded on the client."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    tracker_domain: str
    category: observation.TrackerCategory = "other"
    tracker_type: observation.TrackerType = "other"
    risk: observation.TrackerRisk = "low"
    is_third_party: bool = False
    timestamp: datetime = pydantic.Field(default_factory=lambda: datetime.now(UTC))


class LocalSiteView(pydantic.BaseModel):
    """What the popup shows for a domain while offline."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    tracker_count: int = 0
    unique_tracker_count: int = 0
    third_party_count: int = 0
    cookie_count: int = 0
    score: int = 0
    risk_level: risk.RiskLevel = "low"
    pending_events: int = 0


class _LocalSite(pydantic.BaseModel):
    """Authoritative baseline plus events not yet confirmed by the server."""

    domain: str
    baseline: site.AggregateCounts = pydantic.Field(default_factory=site.AggregateCounts)
    pending: list[LocalTrackerEvent] = pydantic.Field(default_factory=list)
    reconciled: bool = False


class OfflineSiteCache:
    """Per-domain offline cache with server reconciliation."""

    def __init__(self) -> None:
        self._sites: dict[str, _LocalSite] = {}

    def _site(self, domain: str) -> _LocalSite:
        key = domain.lower()
        entry = self._sites.get(key)
        if entry is None:
            entry = _LocalSite(domain=key)
            self._sites[key] = entry
        return entry

    def record(self, domain: str, event: LocalTrackerEvent) -> LocalSiteView:
        """Add a locally observed event and return the updated view."""
        self._site(domain).pending.append(event)
        return self.view(domain)

    def view(self, domain: str) -> LocalSiteView:
        """Derive counts and score for *domain*.

        Counts are the baseline plus pending events; the score
        is recomputed from those counts on every call.  Unique
        trackers among pending events are added to the baseline
        figure and are an estimate until the next reconcile.
        """
        entry = self._site(domain)
        base = entry.baseline
        pending = entry.pending

        tracker_count = base.tracker_count + len(pending)
        third_party_count = base.third_party_count + sum(1 for e in pending if e.is_third_party)
        cookie_count = base.cookie_count + sum(1 for e in pending if e.tracker_type == "cookie")
        pending_domains = {e.tracker_domain for e in pending if e.tracker_domain}
        unique = min(base.unique_tracker_count + len(pending_domains), tracker_count)
        unique = max(unique, 1 if tracker_count > 0 else 0)

        score = scoring.calculate_score(tracker_count, third_party_count, cookie_count)
        return LocalSiteView(
            domain=entry.domain,
            tracker_count=tracker_count,
            unique_tracker_count=unique,
            third_party_count=third_party_count,
            cookie_count=cookie_count,
            score=score,
            risk_level=risk.risk_level(score),
            pending_events=len(pending),
        )

    def reconcile(self, aggregate: site.SiteAggregate) -> LocalSiteView:
        """Adopt the server's counts as the new baseline and drop pending events."""
        entry = self._site(aggregate.domain)
        dropped = len(entry.pending)
        entry.baseline = site.AggregateCounts(
            tracker_count=aggregate.tracker_count,
            unique_tracker_count=aggregate.unique_tracker_count,
            third_party_count=aggregate.third_party_count,
            cookie_count=aggregate.cookie_count,
            score=aggregate.score,
            risk_level=aggregate.risk_level,
        )
        entry.pending = []
        entry.reconciled = True
        log.debug("Reconciled with server", {"domain": entry.domain, "droppedPending": dropped})
        return self.view(aggregate.domain)

    def diverges_from(self, aggregate: site.SiteAggregate) -> bool:
        """True when a fully reconciled local view disagrees with the server.

        With no pending events the local score is computed from
        exactly the server's counts, so any difference means the
        two score implementations have drifted.
        """
        entry = self._site(aggregate.domain)
        if not entry.reconciled or entry.pending:
            return False
        local = self.view(aggregate.domain)
        return local.score != aggregate.score or local.risk_level != aggregate.risk_level
