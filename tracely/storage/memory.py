"""In-process storage backend.

Default backend for development and tests.  Each primitive runs
under one lock so concurrent requests in the server threadpool
cannot interleave inside an upsert or a bounded append.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from datetime import datetime

from tracely.analysis import aggregation, change_detection
from tracely.models import observation, site, tracker
from tracely.storage import base
from tracely.utils import errors


class MemoryStore(base.Store):
    """Dictionary-backed store keyed by scope key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observations: dict[str, list[observation.Observation]] = defaultdict(list)
        self._aggregates: dict[str, site.SiteAggregate] = {}
        self._trackers: dict[str, tracker.TrackerCatalogEntry] = {}

    # ── Observations ────────────────────────────────────────────

    def append_observation(self, obs: observation.Observation) -> None:
        with self._lock:
            self._observations[obs.scope.key].append(obs)

    def fetch_observations(self, target: base.ScopeType) -> list[observation.Observation]:
        with self._lock:
            return list(self._observations.get(target.key, []))

    def fetch_domain_observations(self, domain: str) -> list[observation.Observation]:
        with self._lock:
            return [
                obs
                for entries in self._observations.values()
                for obs in entries
                if obs.scope.domain == domain
            ]

    # ── Aggregates ──────────────────────────────────────────────

    def get_aggregate(self, target: base.ScopeType) -> site.SiteAggregate | None:
        with self._lock:
            return self._aggregates.get(target.key)

    def list_aggregates(self, *, domain: str | None = None, identity: str | None = None) -> list[site.SiteAggregate]:
        with self._lock:
            return [a for a in self._aggregates.values() if base.matches(a, domain, identity)]

    def upsert_aggregate(self, update: site.AggregateUpdate) -> site.SiteAggregate:
        with self._lock:
            stored = aggregation.apply_update(self._aggregates.get(update.scope.key), update)
            self._aggregates[update.scope.key] = stored
            return stored

    def append_history(
        self,
        target: base.ScopeType,
        snapshot: site.Snapshot,
        capacity: int = site.HISTORY_CAPACITY,
    ) -> site.SiteAggregate:
        with self._lock:
            current = self._aggregates.get(target.key)
            if current is None:
                raise errors.NotFoundError(f"No aggregate for scope {target.key}")
            if change_detection.is_stale_snapshot(current.history, snapshot):
                return current
            stored = current.model_copy(
                update={"history": change_detection.append_bounded(current.history, snapshot, capacity)}
            )
            self._aggregates[target.key] = stored
            return stored

    # ── Tracker catalog ─────────────────────────────────────────

    def upsert_tracker(
        self,
        domain: str,
        info: observation.TrackerInfo,
        seen_at: datetime,
    ) -> tracker.TrackerCatalogEntry:
        with self._lock:
            entry = base.apply_tracker_upsert(self._trackers.get(domain), domain, info, seen_at)
            self._trackers[domain] = entry
            return entry

    def get_tracker(self, domain: str) -> tracker.TrackerCatalogEntry | None:
        with self._lock:
            return self._trackers.get(domain)

    def list_trackers(self) -> list[tracker.TrackerCatalogEntry]:
        with self._lock:
            return list(self._trackers.values())
