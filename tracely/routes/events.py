"""
Tracker event intake endpoint.

The browser extension posts one report per tracker request it
sees; each report is validated here and handed to the
observation pipeline.
"""

from __future__ import annotations

from typing import Any

import fastapi
import pydantic

from tracely.models import scope
from tracely.pipeline import observation_pipeline
from tracely.routes import dependencies
from tracely.utils import errors, logger, serialization

log = logger.create_logger("Events-API")

router = fastapi.APIRouter(prefix="/api/events", tags=["events"])


class EventReport(pydantic.BaseModel):
    """Body of ``POST /api/events``."""

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel, populate_by_name=True
    )

    domain: str = ""
    request_url: str = ""
    tracker_domain: str = ""
    metadata: dict[str, Any] = pydantic.Field(default_factory=dict)


def _validate(report: EventReport) -> None:
    """Reject reports missing the fields every scope needs."""
    if not report.domain.strip():
        raise errors.ValidationError("Domain is required")
    if not report.tracker_domain.strip():
        raise errors.ValidationError("Tracker domain is required")


@router.post("", status_code=201)
def report_event(
    report: EventReport,
    identity: str | None = fastapi.Depends(dependencies.get_identity),
    pipeline: observation_pipeline.ObservationPipeline = fastapi.Depends(dependencies.get_pipeline),
) -> dict[str, Any]:
    """Record a tracker observation and return the change verdict."""
    log.debug(
        "Received tracker report",
        {"domain": report.domain, "trackerDomain": report.tracker_domain, "identified": identity is not None},
    )
    _validate(report)

    target = scope.resolve_scope(report.domain, identity)
    result = pipeline.submit(target, report.request_url, report.tracker_domain, report.metadata)

    data: dict[str, Any] = {"event": serialization.to_wire(result.observation)}
    if result.change_detection.has_changes:
        data["changeDetection"] = serialization.to_wire(result.change_detection)
    if not result.history_persisted:
        data["historyPersisted"] = False
    return serialization.envelope(data)
