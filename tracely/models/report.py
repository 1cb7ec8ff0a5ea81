"""Pydantic models for change, anomaly, audit and evidence reports."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

import pydantic

from tracely.models import observation, site
from tracely.utils import risk, serialization

AnomalyType = Literal["sudden_increase", "sudden_decrease", "tracker_spike"]

Confidence = Literal["low", "medium", "high"]


# ── Changes ─────────────────────────────────────────────────────


class RecentChange(pydantic.BaseModel):
    """A history entry that added or removed trackers."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    date: datetime
    description: str
    reason: site.ChangeReason
    trackers_added: list[str] = pydantic.Field(default_factory=list)
    trackers_removed: list[str] = pydantic.Field(default_factory=list)
    score: int


class SiteChanges(pydantic.BaseModel):
    """Recent changes for one scope over a time window."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    timeframe: str
    change_count: int
    changes: list[RecentChange] = pydantic.Field(default_factory=list)


# ── Anomalies ───────────────────────────────────────────────────


class Anomaly(pydantic.BaseModel):
    """A notable pattern found in a scope's history."""

    date: datetime
    type: AnomalyType
    description: str
    severity: Literal["medium", "high"]


class AnomalyResult(pydantic.BaseModel):
    """Outcome of an anomaly scan."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    has_anomalies: bool = False
    anomalies: list[Anomaly] = pydantic.Field(default_factory=list)


# ── Audit report ────────────────────────────────────────────────


class ComplianceNotes(pydantic.BaseModel):
    """Regulatory relevance flags derived from the aggregate."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    gdpr_relevant: bool
    ccpa_relevant: bool
    evidence_collected: int
    timestamped_audit_trail: bool = True


class AuditReport(pydantic.BaseModel):
    """Timestamped evidence document for one scope."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    audit_date: datetime
    current_risk_score: int
    risk_level: risk.RiskLevel
    total_trackers: int
    first_detected: datetime
    last_scanned: datetime
    scan_count: int
    score_history: list[site.Snapshot] = pydantic.Field(default_factory=list)
    recent_changes: list[RecentChange] = pydantic.Field(default_factory=list)
    anomalies: list[Anomaly] = pydantic.Field(default_factory=list)
    compliance_notes: ComplianceNotes
    summary: str


# ── Evidence timeline ───────────────────────────────────────────


class TrackerEvidence(pydantic.BaseModel):
    """Observations of one tracker domain rolled up."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    tracker_domain: str
    category: observation.TrackerCategory
    tracker_type: observation.TrackerType
    count: int = 0
    first_seen: datetime
    last_seen: datetime
    sample_path: str = ""
    confidence: Confidence = "low"
    persistence_days: int = 1


class TimelineEntry(pydantic.BaseModel):
    """A single observation in the evidence timeline."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    observed_at: datetime
    tracker_domain: str
    category: observation.TrackerCategory
    tracker_type: observation.TrackerType
    request_path: str = ""
    risk: observation.TrackerRisk


class EvidenceTimeline(pydantic.BaseModel):
    """Researcher-mode evidence for one domain."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    observations: list[TrackerEvidence] = pydantic.Field(default_factory=list)
    timeline: list[TimelineEntry] = pydantic.Field(default_factory=list)
