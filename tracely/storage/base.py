"""Storage contract consumed by the engine.

Every method is a single atomic primitive.  Business logic never
holds a lock across calls: recompute re-reads the observation
log, and the two aggregate writes (:meth:`Store.upsert_aggregate`
then :meth:`Store.append_history`) are independent atomic steps,
so history may lag the aggregate by one snapshot if the second
write fails.
"""

from __future__ import annotations

import abc
from datetime import datetime

from tracely.models import observation, scope, site, tracker

ScopeType = scope.AnonymousScope | scope.IdentifiedScope


class Store(abc.ABC):
    """Abstract persistence backend.

    Implementations raise :class:`tracely.utils.errors.StorageError`
    when the underlying medium is unavailable or corrupt.
    """

    # ── Observations ────────────────────────────────────────────

    @abc.abstractmethod
    def append_observation(self, obs: observation.Observation) -> None:
        """Append one observation to its scope's log."""

    @abc.abstractmethod
    def fetch_observations(self, target: ScopeType) -> list[observation.Observation]:
        """Return a scope's observations in append order."""

    @abc.abstractmethod
    def fetch_domain_observations(self, domain: str) -> list[observation.Observation]:
        """Return every scope's observations for *domain*."""

    # ── Aggregates ──────────────────────────────────────────────

    @abc.abstractmethod
    def get_aggregate(self, target: ScopeType) -> site.SiteAggregate | None:
        """Return a scope's aggregate, or ``None`` if never written."""

    @abc.abstractmethod
    def list_aggregates(self, *, domain: str | None = None, identity: str | None = None) -> list[site.SiteAggregate]:
        """Return aggregates, optionally filtered by domain and/or identity."""

    @abc.abstractmethod
    def upsert_aggregate(self, update: site.AggregateUpdate) -> site.SiteAggregate:
        """Atomically create or update an aggregate.

        Sets counts, score, risk level and ``last_scanned``,
        increments ``scan_count`` and sets ``first_seen`` only on
        insert.  History is left untouched.  An update recomputed
        from a shorter log than the stored aggregate only bumps
        ``scan_count`` (see :func:`aggregation.apply_update`).
        Returns the stored aggregate.
        """

    @abc.abstractmethod
    def append_history(
        self,
        target: ScopeType,
        snapshot: site.Snapshot,
        capacity: int = site.HISTORY_CAPACITY,
    ) -> site.SiteAggregate:
        """Atomically append *snapshot* and truncate to the newest *capacity* entries.

        A snapshot older than the newest entry (smaller
        ``tracker_count``) is dropped and the aggregate returned
        unchanged.

        Raises:
            NotFoundError: The scope has no aggregate.
        """

    # ── Tracker catalog ─────────────────────────────────────────

    @abc.abstractmethod
    def upsert_tracker(
        self,
        domain: str,
        info: observation.TrackerInfo,
        seen_at: datetime,
    ) -> tracker.TrackerCatalogEntry:
        """Refresh a catalog entry's tags and increment its sighting count."""

    @abc.abstractmethod
    def get_tracker(self, domain: str) -> tracker.TrackerCatalogEntry | None:
        """Return one catalog entry, or ``None``."""

    @abc.abstractmethod
    def list_trackers(self) -> list[tracker.TrackerCatalogEntry]:
        """Return every catalog entry."""


def apply_tracker_upsert(
    existing: tracker.TrackerCatalogEntry | None,
    domain: str,
    info: observation.TrackerInfo,
    seen_at: datetime,
) -> tracker.TrackerCatalogEntry:
    """Shared upsert semantics for catalog entries."""
    if existing is None:
        return tracker.TrackerCatalogEntry(
            domain=domain,
            category=info.category,
            tracker_type=info.tracker_type,
            risk=info.risk,
            first_seen=seen_at,
            sighting_count=1,
        )
    return existing.model_copy(
        update={
            "category": info.category,
            "tracker_type": info.tracker_type,
            "risk": info.risk,
            "sighting_count": existing.sighting_count + 1,
        }
    )


def matches(aggregate: site.SiteAggregate, domain: str | None, identity: str | None) -> bool:
    """Filter helper for :meth:`Store.list_aggregates`."""
    if domain is not None and aggregate.scope.domain != domain:
        return False
    if identity is not None and aggregate.scope.identity != identity:
        return False
    return True
