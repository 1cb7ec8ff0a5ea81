"""Aggregate recomputation.

Rebuilds a scope's canonical counts from its complete
observation log on every write instead of incrementing stored
counters.  The O(n) scan per write buys consistency: counts are
always reproducible from the log, whatever the write ordering,
retries or partial failures.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from tracely.analysis import scoring
from tracely.models import observation, scope, site
from tracely.utils import risk


def compute_counts(observations: Iterable[observation.Observation]) -> site.AggregateCounts:
    """Derive counts, score and risk level in a single pass.

    Every observation counts towards ``tracker_count``, not just
    distinct trackers.  ``unique_tracker_count`` is floored to 1
    whenever there is at least one observation.
    """
    tracker_count = 0
    third_party_count = 0
    cookie_count = 0
    # dict keeps first-seen order for the change detector.
    domains: dict[str, None] = {}

    for obs in observations:
        tracker_count += 1
        if obs.tracker_domain:
            domains.setdefault(obs.tracker_domain, None)
        if obs.is_third_party:
            third_party_count += 1
        if obs.tracker_type == "cookie":
            cookie_count += 1

    unique_tracker_count = max(len(domains), 1 if tracker_count > 0 else 0)
    score = scoring.calculate_score(tracker_count, third_party_count, cookie_count)

    return site.AggregateCounts(
        tracker_count=tracker_count,
        unique_tracker_count=unique_tracker_count,
        third_party_count=third_party_count,
        cookie_count=cookie_count,
        score=score,
        risk_level=risk.risk_level(score),
        tracker_domains=list(domains),
    )


def build_update(
    target: scope.AnonymousScope | scope.IdentifiedScope,
    counts: site.AggregateCounts,
    scanned_at: datetime,
) -> site.AggregateUpdate:
    """Wrap recomputed counts in the storage upsert request."""
    return site.AggregateUpdate(scope=target, counts=counts, scanned_at=scanned_at)


def is_superseded(prior: site.SiteAggregate | None, update: site.AggregateUpdate) -> bool:
    """True when *update* was recomputed from an older log than *prior*."""
    return prior is not None and update.counts.tracker_count < prior.tracker_count


def apply_update(
    prior: site.SiteAggregate | None,
    update: site.AggregateUpdate,
) -> site.SiteAggregate:
    """Apply upsert semantics to an aggregate without mutating it.

    Counts, score, risk level and ``last_scanned`` are set,
    ``scan_count`` is incremented, ``first_seen`` is only set on
    insert, and the history is carried over untouched.  Storage
    backends call this inside their atomic section.

    The observation log is append-only, so ``tracker_count`` acts
    as a version: an update computed from a shorter log than the
    stored one is superseded and only its scan is counted.
    """
    counts = update.counts
    fields = {
        "tracker_count": counts.tracker_count,
        "unique_tracker_count": counts.unique_tracker_count,
        "third_party_count": counts.third_party_count,
        "cookie_count": counts.cookie_count,
        "score": counts.score,
        "risk_level": counts.risk_level,
        "last_scanned": update.scanned_at,
    }
    if prior is None:
        return site.SiteAggregate(
            scope=update.scope,
            scan_count=1,
            first_seen=update.scanned_at,
            history=[],
            **fields,
        )
    if is_superseded(prior, update):
        return prior.model_copy(
            update={
                "scan_count": prior.scan_count + 1,
                "last_scanned": max(prior.last_scanned, update.scanned_at),
                "history": list(prior.history),
            }
        )
    return prior.model_copy(update={**fields, "scan_count": prior.scan_count + 1, "history": list(prior.history)})


def recompute(
    target: scope.AnonymousScope | scope.IdentifiedScope,
    observations: Iterable[observation.Observation],
    now: datetime,
    prior: site.SiteAggregate | None = None,
) -> tuple[site.SiteAggregate, list[str]]:
    """Recompute a scope's aggregate from its observation log.

    Pure: returns the updated aggregate together with the
    distinct tracker domains (first-seen order) and leaves
    *prior* unchanged.
    """
    counts = compute_counts(observations)
    return apply_update(prior, build_update(target, counts, now)), list(counts.tracker_domains)
