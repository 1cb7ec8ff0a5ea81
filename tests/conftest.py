"""Shared fixtures for the test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from tracely.models import observation, scope, site
from tracely.pipeline import observation_pipeline
from tracely.storage import memory
from tracely.utils import risk

T0 = datetime(2026, 1, 1, tzinfo=UTC)


class SteppingClock:
    """Deterministic clock that advances one minute per call."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


# ── Scopes ──────────────────────────────────────────────────────


@pytest.fixture()
def anonymous() -> scope.AnonymousScope:
    """Anonymous scope for example.com."""
    return scope.AnonymousScope(domain="example.com")


@pytest.fixture()
def alice() -> scope.IdentifiedScope:
    """Identity-scoped view of example.com."""
    return scope.IdentifiedScope(domain="example.com", identity="alice")


# ── Storage & pipeline ──────────────────────────────────────────


@pytest.fixture()
def store() -> memory.MemoryStore:
    """A fresh in-memory store."""
    return memory.MemoryStore()


@pytest.fixture()
def clock() -> SteppingClock:
    """A clock starting at 2026-01-01T00:00Z."""
    return SteppingClock()


@pytest.fixture()
def pipeline(store: memory.MemoryStore, clock: SteppingClock) -> observation_pipeline.ObservationPipeline:
    """Pipeline writing to the in-memory store with a stepping clock."""
    return observation_pipeline.ObservationPipeline(store, clock=clock)


# ── Factories ───────────────────────────────────────────────────


@pytest.fixture()
def make_snapshot() -> Callable[..., site.Snapshot]:
    """Factory for history snapshots spaced one day apart."""

    def _make(
        score: int,
        *,
        day: int = 0,
        added: list[str] | None = None,
        removed: list[str] | None = None,
        reason: site.ChangeReason = "periodic_snapshot",
        tracker_count: int = 1,
    ) -> site.Snapshot:
        return site.Snapshot(
            taken_at=T0 + timedelta(days=day),
            score=score,
            tracker_count=tracker_count,
            unique_tracker_count=min(tracker_count, 1),
            third_party_count=0,
            trackers_added=added or [],
            trackers_removed=removed or [],
            change_reason=reason,
        )

    return _make


@pytest.fixture()
def make_observation(anonymous: scope.AnonymousScope) -> Callable[..., observation.Observation]:
    """Factory for observations in the anonymous example.com scope."""

    def _make(
        tracker_domain: str = "tracker.test",
        *,
        target: scope.AnonymousScope | scope.IdentifiedScope | None = None,
        tracker_type: observation.TrackerType = "other",
        is_third_party: bool = True,
        observed_at: datetime = T0,
        source_url: str = "https://example.com/page",
    ) -> observation.Observation:
        return observation.Observation(
            scope=target or anonymous,
            source_url=source_url,
            tracker_domain=tracker_domain,
            tracker_type=tracker_type,
            is_third_party=is_third_party,
            observed_at=observed_at,
        )

    return _make


@pytest.fixture()
def make_aggregate() -> Callable[..., site.SiteAggregate]:
    """Factory for aggregates built directly, bypassing the pipeline."""

    def _make(
        target: scope.AnonymousScope | scope.IdentifiedScope,
        *,
        score: int = 0,
        history: list[site.Snapshot] | None = None,
        tracker_count: int = 0,
        third_party_count: int = 0,
        scan_count: int = 1,
        first_seen: datetime = T0,
        last_scanned: datetime = T0,
    ) -> site.SiteAggregate:
        return site.SiteAggregate(
            scope=target,
            tracker_count=tracker_count,
            unique_tracker_count=min(tracker_count, 1),
            third_party_count=third_party_count,
            score=score,
            risk_level=risk.risk_level(score),
            scan_count=scan_count,
            first_seen=first_seen,
            last_scanned=last_scanned,
            history=history or [],
        )

    return _make
