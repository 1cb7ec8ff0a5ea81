"""Pydantic models for per-scope aggregates, snapshots and change verdicts."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

import pydantic

from tracely.models import observation as observation_models
from tracely.models import scope as scope_models
from tracely.utils import risk, serialization

# Snapshots kept per scope before the oldest is evicted.
HISTORY_CAPACITY = 30

ChangeReason = Literal[
    "first_scan",
    "new_tracker",
    "tracker_removed",
    "increased_frequency",
    "decreased_frequency",
    "periodic_snapshot",
]


class Snapshot(pydantic.BaseModel):
    """A scope's aggregate state at one recompute."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    taken_at: datetime
    score: int
    tracker_count: int
    unique_tracker_count: int
    third_party_count: int
    trackers_added: list[str] = pydantic.Field(default_factory=list)
    trackers_removed: list[str] = pydantic.Field(default_factory=list)
    change_reason: ChangeReason = "periodic_snapshot"
    change_description: str = ""


class ChangeDetection(pydantic.BaseModel):
    """Verdict returned to the caller after each recompute."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    has_changes: bool = False
    trackers_added: list[str] = pydantic.Field(default_factory=list)
    trackers_removed: list[str] = pydantic.Field(default_factory=list)
    score_changed: bool = False
    change_reason: ChangeReason = "periodic_snapshot"
    change_description: str = ""


class AggregateCounts(pydantic.BaseModel):
    """Canonical counts derived from one scope's observation log."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    tracker_count: int = 0
    unique_tracker_count: int = 0
    third_party_count: int = 0
    cookie_count: int = 0
    score: int = 0
    risk_level: risk.RiskLevel = "low"
    # Distinct tracker domains in first-seen order.
    tracker_domains: list[str] = pydantic.Field(default_factory=list, exclude=True)


class AggregateUpdate(pydantic.BaseModel):
    """Atomic upsert request applied by the storage layer.

    Counts and score are overwritten, ``scan_count`` is
    incremented by one, and ``first_seen`` is only written
    when the aggregate is created.
    """

    scope: scope_models.Scope
    counts: AggregateCounts
    scanned_at: datetime


class SiteAggregate(pydantic.BaseModel):
    """Current state of one scope plus its bounded snapshot history."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    scope: scope_models.Scope
    tracker_count: int = 0
    unique_tracker_count: int = 0
    third_party_count: int = 0
    cookie_count: int = 0
    score: int = 0
    risk_level: risk.RiskLevel = "low"
    scan_count: int = 0
    first_seen: datetime
    last_scanned: datetime
    history: list[Snapshot] = pydantic.Field(default_factory=list)

    @property
    def domain(self) -> str:
        """The first-party domain this aggregate describes."""
        return self.scope.domain

    @property
    def last_snapshot(self) -> Snapshot | None:
        """The newest history entry, if any."""
        return self.history[-1] if self.history else None


class SiteScore(pydantic.BaseModel):
    """Compact score view served to the popup and dashboard."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    score: int
    risk_level: risk.RiskLevel
    tracker_count: int
    unique_tracker_count: int
    third_party_count: int
    cookie_count: int
    last_scanned: datetime

    @classmethod
    def from_aggregate(cls, aggregate: SiteAggregate) -> SiteScore:
        """Project an aggregate down to its score fields."""
        return cls(
            domain=aggregate.domain,
            score=aggregate.score,
            risk_level=aggregate.risk_level,
            tracker_count=aggregate.tracker_count,
            unique_tracker_count=aggregate.unique_tracker_count,
            third_party_count=aggregate.third_party_count,
            cookie_count=aggregate.cookie_count,
            last_scanned=aggregate.last_scanned,
        )


class SiteHistory(pydantic.BaseModel):
    """Score history view of one aggregate."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    score_history: list[Snapshot]
    current_score: int
    first_seen: datetime
    last_scanned: datetime


class SiteTracker(pydantic.BaseModel):
    """One recent tracker sighting listed on the details page."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    category: observation_models.TrackerCategory
    tracker_type: observation_models.TrackerType
    risk: observation_models.TrackerRisk
    observed_at: datetime

    @classmethod
    def from_observation(cls, obs: observation_models.Observation) -> SiteTracker:
        return cls(
            domain=obs.tracker_domain,
            category=obs.category,
            tracker_type=obs.tracker_type,
            risk=obs.risk,
            observed_at=obs.observed_at,
        )


class SiteDetails(pydantic.BaseModel):
    """Full site view: aggregate counts, a readable summary and recent trackers."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    score: int
    risk_level: risk.RiskLevel
    tracker_count: int
    unique_tracker_count: int
    third_party_count: int
    cookie_count: int
    first_seen: datetime
    last_scanned: datetime
    scan_count: int
    summary: str
    trackers: list[SiteTracker] = pydantic.Field(default_factory=list)


class GlobalSiteView(pydantic.BaseModel):
    """Union of every scope's aggregate for one domain.

    Never persisted; built at read time from the per-scope
    aggregates so personal and anonymous data stay separate.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    scopes: list[SiteAggregate] = pydantic.Field(default_factory=list)
