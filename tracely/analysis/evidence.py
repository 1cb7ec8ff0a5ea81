"""Evidence timeline for researcher mode.

Rolls the newest observations of a domain up per tracker
domain: how often it was seen, over how many days, with a
confidence level derived from the sighting count.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from tracely.models import observation, report
from tracely.utils import url

DEFAULT_LIMIT = 200

_HIGH_CONFIDENCE_COUNT = 50
_MEDIUM_CONFIDENCE_COUNT = 10
_SECONDS_PER_DAY = 60 * 60 * 24


def _confidence(count: int) -> report.Confidence:
    if count >= _HIGH_CONFIDENCE_COUNT:
        return "high"
    if count >= _MEDIUM_CONFIDENCE_COUNT:
        return "medium"
    return "low"


def build_evidence(
    domain: str,
    observations: Sequence[observation.Observation],
    limit: int = DEFAULT_LIMIT,
) -> report.EvidenceTimeline:
    """Build the evidence roll-up and timeline for *domain*.

    Args:
        domain: First-party domain the evidence belongs to.
        observations: Observations in log (oldest-first) order.
        limit: Maximum number of newest observations considered.

    Returns:
        An :class:`EvidenceTimeline`; empty when nothing was
        observed.
    """
    newest = sorted(observations, key=lambda o: o.observed_at, reverse=True)[: max(limit, 0)]

    rollup: dict[str, report.TrackerEvidence] = {}
    timeline: list[report.TimelineEntry] = []

    for obs in newest:
        path = url.request_path(obs.source_url)
        key = obs.tracker_domain or "unknown"

        entry = rollup.get(key)
        if entry is None:
            entry = report.TrackerEvidence(
                tracker_domain=key,
                category=obs.category,
                tracker_type=obs.tracker_type,
                first_seen=obs.observed_at,
                last_seen=obs.observed_at,
                sample_path=path,
            )
            rollup[key] = entry

        entry.count += 1
        entry.first_seen = min(entry.first_seen, obs.observed_at)
        entry.last_seen = max(entry.last_seen, obs.observed_at)
        if not entry.sample_path and path:
            entry.sample_path = path

        timeline.append(
            report.TimelineEntry(
                observed_at=obs.observed_at,
                tracker_domain=key,
                category=obs.category,
                tracker_type=obs.tracker_type,
                request_path=path,
                risk=obs.risk,
            )
        )

    for entry in rollup.values():
        entry.confidence = _confidence(entry.count)
        span = (entry.last_seen - entry.first_seen).total_seconds()
        entry.persistence_days = max(1, math.ceil(span / _SECONDS_PER_DAY))

    return report.EvidenceTimeline(domain=domain, observations=list(rollup.values()), timeline=timeline)
