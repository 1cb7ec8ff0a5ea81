"""Dual-scope ledger.

A domain has at most one aggregate per identity plus one
anonymous aggregate.  Writes always target exactly the scope of
the request; reads for an identity fall back to the anonymous
aggregate when the identity has none.  The global view is the
union of the per-scope aggregates, never a separately computed
record, so personal and anonymous data cannot silently merge.
"""

from __future__ import annotations

from tracely.models import observation, scope, site
from tracely.storage import base
from tracely.utils import errors, logger

log = logger.create_logger("Ledger")

DEFAULT_LIST_LIMIT = 50


class Ledger:
    """Scope-aware access to aggregates and observation logs."""

    def __init__(self, store: base.Store) -> None:
        self._store = store

    @property
    def store(self) -> base.Store:
        """The backing store."""
        return self._store

    def find(self, target: base.ScopeType) -> site.SiteAggregate | None:
        """Return the aggregate for *target*, falling back identity → anonymous."""
        aggregate = self._store.get_aggregate(target)
        if aggregate is None and isinstance(target, scope.IdentifiedScope):
            log.debug("No identity-scoped aggregate, falling back to anonymous", {"domain": target.domain})
            aggregate = self._store.get_aggregate(scope.AnonymousScope(domain=target.domain))
        return aggregate

    def read(self, target: base.ScopeType) -> site.SiteAggregate:
        """Like :meth:`find` but raise :class:`NotFoundError` when nothing exists."""
        aggregate = self.find(target)
        if aggregate is None:
            raise errors.NotFoundError("Site not found")
        return aggregate

    def observations_for(self, target: base.ScopeType) -> list[observation.Observation]:
        """Observations visible to a request.

        An identity sees only its own log; anonymous requests
        see every scope's observations for the domain.
        """
        if isinstance(target, scope.IdentifiedScope):
            return self._store.fetch_observations(target)
        return self._store.fetch_domain_observations(target.domain)

    def global_view(self, domain: str) -> site.GlobalSiteView:
        """Union of all scope aggregates for *domain*."""
        domain = domain.lower()
        return site.GlobalSiteView(domain=domain, scopes=self._store.list_aggregates(domain=domain))

    def personal_sites(self, identity: str, limit: int = DEFAULT_LIST_LIMIT) -> list[site.SiteAggregate]:
        """An identity's own aggregates, riskiest first."""
        sites = self._store.list_aggregates(identity=identity)
        return sorted(sites, key=lambda a: a.score, reverse=True)[:limit]

    def global_stats(self, limit: int = DEFAULT_LIST_LIMIT) -> list[site.SiteAggregate]:
        """Every scope's aggregate across all domains, most trackers first."""
        sites = self._store.list_aggregates()
        return sorted(sites, key=lambda a: a.tracker_count, reverse=True)[:limit]
