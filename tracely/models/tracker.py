"""Global tracker catalog model."""

from __future__ import annotations

from datetime import datetime

import pydantic

from tracely.models import observation
from tracely.utils import serialization


class TrackerCatalogEntry(pydantic.BaseModel):
    """A tracker domain seen anywhere, across every scope."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str
    category: observation.TrackerCategory = "other"
    tracker_type: observation.TrackerType = "other"
    risk: observation.TrackerRisk = "low"
    first_seen: datetime
    sighting_count: int = 0
