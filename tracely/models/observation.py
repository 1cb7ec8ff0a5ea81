"""Models for tracker observations and their classification."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

import pydantic

from tracely.models import scope as scope_models
from tracely.utils import serialization

TrackerCategory = Literal[
    "advertising",
    "analytics",
    "social",
    "session-replay",
    "fingerprinting",
    "data-broker",
    "tag-manager",
    "other",
]

TrackerType = Literal["cookie", "pixel", "script", "beacon", "fingerprint", "other"]

TrackerRisk = Literal["low", "medium", "high"]


class TrackerInfo(pydantic.BaseModel):
    """Descriptive tags assigned to a tracker domain."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    category: TrackerCategory = "other"
    tracker_type: TrackerType = "other"
    risk: TrackerRisk = "low"


class Observation(pydantic.BaseModel):
    """One first-party page contacting one tracker domain.

    Observations are append-only and are the only ground truth
    for aggregate recomputation.  Only structured metadata is
    kept: no page content, cookie values or request payloads.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True, frozen=True
    )

    scope: scope_models.Scope
    source_url: str = pydantic.Field(default="", alias="sourceURL")
    tracker_domain: str
    category: TrackerCategory = "other"
    tracker_type: TrackerType = "other"
    risk: TrackerRisk = "low"
    is_third_party: bool = False
    is_fingerprinting: bool = False
    observed_at: datetime
