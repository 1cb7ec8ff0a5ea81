"""
Observation intake pipeline.

Drives one tracker report through classify → append → recompute
→ persist aggregate → detect change → append snapshot, plus the
global tracker-catalog upsert.

Each submission runs to completion independently.  There is no
lock around the pipeline itself: recompute re-reads the whole
observation log, and the store's atomic primitives use the
log length as a version: a recompute over a shorter log than the
one already stored never overwrites it, and its snapshot is not
recorded.  ``scan_count`` increments are never lost.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime

import pydantic

from tracely.analysis import aggregation, change_detection, classifier
from tracely.models import observation as observation_model
from tracely.models import site
from tracely.storage import base
from tracely.utils import errors, logger, url

log = logger.create_logger("Observations")


def _utc_now() -> datetime:
    return datetime.now(UTC)


# ====================================================================
# Result Model
# ====================================================================


class SubmitResult(pydantic.BaseModel):
    """Outcome of one submitted observation."""

    observation: observation_model.Observation
    aggregate: site.SiteAggregate
    change_detection: site.ChangeDetection
    history_persisted: bool = True
    superseded: bool = False


# ====================================================================
# Pipeline
# ====================================================================


class ObservationPipeline:
    """Turns tracker reports into persisted aggregates and change verdicts."""

    def __init__(
        self,
        store: base.Store,
        *,
        history_capacity: int = site.HISTORY_CAPACITY,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._history_capacity = history_capacity
        self._clock = clock

    def build_observation(
        self,
        target: base.ScopeType,
        source_url: str,
        tracker_domain: str,
        metadata: Mapping[str, object] | None,
        observed_at: datetime,
    ) -> observation_model.Observation:
        """Classify a raw report into an observation.

        Only classification tags and flags are kept; the
        metadata itself and the source URL's query string are
        discarded.
        """
        host = url.normalize_host(tracker_domain)
        info = classifier.classify(host)
        return observation_model.Observation(
            scope=target,
            source_url=url.strip_query(source_url or ""),
            tracker_domain=host,
            category=info.category,
            tracker_type=info.tracker_type,
            risk=info.risk,
            is_third_party=classifier.is_third_party(host, target.domain),
            is_fingerprinting=classifier.detect_fingerprinting(metadata),
            observed_at=observed_at,
        )

    def submit(
        self,
        target: base.ScopeType,
        source_url: str,
        tracker_domain: str,
        metadata: Mapping[str, object] | None = None,
    ) -> SubmitResult:
        """Record one tracker observation and recompute its scope.

        Raises:
            StorageError: The observation could not be stored, or
                the aggregate upsert failed.  In the latter case
                ``exc.aggregate`` holds the in-memory recompute.
        """
        now = self._clock()
        obs = self.build_observation(target, source_url, tracker_domain, metadata, now)

        log.start_timer("recompute")
        self._store.append_observation(obs)
        observations = self._store.fetch_observations(target)
        counts = aggregation.compute_counts(observations)
        update = aggregation.build_update(target, counts, now)

        try:
            stored = self._store.upsert_aggregate(update)
        except errors.StorageError as exc:
            log.error("Aggregate upsert failed", {"scope": target.key, "error": errors.get_error_message(exc)})
            raise errors.StorageError(
                f"Aggregate for {target.domain} was recomputed but not persisted",
                aggregate=aggregation.apply_update(None, update),
            ) from exc

        history_persisted = True
        superseded = stored.tracker_count > counts.tracker_count
        if superseded:
            # A concurrent submission already stored a recompute over a longer log.
            log.debug("Recompute superseded", {"scope": target.key, "trackers": counts.tracker_count})
            updated, verdict = stored, site.ChangeDetection()
        else:
            updated, snapshot, verdict = change_detection.record_snapshot(
                stored, counts.tracker_domains, now, self._history_capacity
            )
            try:
                updated = self._store.append_history(target, snapshot, self._history_capacity)
            except errors.StorageError as exc:
                history_persisted = False
                log.warn(
                    "History append failed, history lags aggregate by one snapshot",
                    {"scope": target.key, "error": errors.get_error_message(exc)},
                )

        self._upsert_catalog(obs, now)
        log.end_timer("recompute", "Scope recomputed")

        log.info(
            "Observation recorded",
            {
                "domain": target.domain,
                "trackerDomain": obs.tracker_domain,
                "score": updated.score,
                "trackers": updated.tracker_count,
                "thirdParty": updated.third_party_count,
                "identified": target.identity is not None,
            },
        )
        if verdict.has_changes:
            log.info("Change detected", {"domain": target.domain, "reason": verdict.change_reason, "description": verdict.change_description})

        return SubmitResult(
            observation=obs,
            aggregate=updated,
            change_detection=verdict,
            history_persisted=history_persisted,
            superseded=superseded,
        )

    def _upsert_catalog(self, obs: observation_model.Observation, now: datetime) -> None:
        """Bump the global sighting counter; a failure here does not fail the submission."""
        info = observation_model.TrackerInfo(category=obs.category, tracker_type=obs.tracker_type, risk=obs.risk)
        try:
            self._store.upsert_tracker(obs.tracker_domain, info, now)
        except errors.StorageError as exc:
            log.warn("Tracker catalog upsert failed", {"trackerDomain": obs.tracker_domain, "error": errors.get_error_message(exc)})
