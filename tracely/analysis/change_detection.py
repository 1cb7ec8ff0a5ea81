"""Behavioural change detection.

Each recompute is compared with the scope's previous snapshot
and classified with exactly one reason, first match wins:

1. ``first_scan``: the scope has no history yet.
2. ``new_tracker``: domains present now that the previous
   snapshot did not list as added.
3. ``tracker_removed``: domains the previous snapshot listed as
   added that are no longer observed.
4. ``increased_frequency`` / ``decreased_frequency``: the score
   moved by more than ``SCORE_CHANGE_THRESHOLD`` points.
5. ``periodic_snapshot``: nothing notable.

The added/removed delta is taken against the previous
snapshot's ``trackers_added`` list only, not against every
tracker ever seen.  A tracker first reported two snapshots ago
therefore reappears as "added" once an intervening snapshot has
an empty added-list.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from tracely.models import report, site

# Score deltas strictly above this are reported as frequency changes.
SCORE_CHANGE_THRESHOLD = 5

# Domains listed by name in a change description.
_DESCRIPTION_DOMAIN_LIMIT = 3


def _domain_list(domains: list[str]) -> str:
    return ", ".join(domains[:_DESCRIPTION_DOMAIN_LIMIT])


def detect_change(
    aggregate: site.SiteAggregate,
    current_domains: list[str],
    prior: site.Snapshot | None,
) -> site.ChangeDetection:
    """Classify the delta between *aggregate* and the *prior* snapshot."""
    if prior is None:
        return site.ChangeDetection(
            has_changes=False,
            trackers_added=list(current_domains),
            change_reason="first_scan",
            change_description=f"Initial scan: {aggregate.tracker_count} tracker(s) detected",
        )

    previous = set(prior.trackers_added)
    current = set(current_domains)
    added = [d for d in current_domains if d not in previous]
    removed = [d for d in prior.trackers_added if d not in current]
    delta = aggregate.score - prior.score
    score_changed = abs(delta) > SCORE_CHANGE_THRESHOLD

    verdict = site.ChangeDetection(
        trackers_added=added,
        trackers_removed=removed,
        score_changed=score_changed,
    )

    if added:
        verdict.has_changes = True
        verdict.change_reason = "new_tracker"
        verdict.change_description = f"Added {len(added)} new tracker(s): {_domain_list(added)}"
    elif removed:
        verdict.has_changes = True
        verdict.change_reason = "tracker_removed"
        verdict.change_description = f"Removed {len(removed)} tracker(s): {_domain_list(removed)}"
    elif score_changed:
        direction = "increased" if delta > 0 else "decreased"
        verdict.has_changes = True
        verdict.change_reason = "increased_frequency" if delta > 0 else "decreased_frequency"
        verdict.change_description = f"Privacy risk {direction} from {prior.score} to {aggregate.score}"

    return verdict


def build_snapshot(
    aggregate: site.SiteAggregate,
    verdict: site.ChangeDetection,
    taken_at: datetime,
) -> site.Snapshot:
    """Freeze the aggregate's counts and the verdict into a snapshot."""
    return site.Snapshot(
        taken_at=taken_at,
        score=aggregate.score,
        tracker_count=aggregate.tracker_count,
        unique_tracker_count=aggregate.unique_tracker_count,
        third_party_count=aggregate.third_party_count,
        trackers_added=list(verdict.trackers_added),
        trackers_removed=list(verdict.trackers_removed),
        change_reason=verdict.change_reason,
        change_description=verdict.change_description,
    )


def append_bounded(
    history: list[site.Snapshot],
    snapshot: site.Snapshot,
    capacity: int = site.HISTORY_CAPACITY,
) -> list[site.Snapshot]:
    """Return *history* plus *snapshot*, keeping only the newest *capacity* entries."""
    combined = [*history, snapshot]
    return combined[-capacity:] if capacity > 0 else []


def is_stale_snapshot(history: list[site.Snapshot], snapshot: site.Snapshot) -> bool:
    """True when *snapshot* describes a shorter log than the newest history entry."""
    return bool(history) and snapshot.tracker_count < history[-1].tracker_count


def record_snapshot(
    aggregate: site.SiteAggregate,
    current_domains: list[str],
    now: datetime,
    capacity: int = site.HISTORY_CAPACITY,
) -> tuple[site.SiteAggregate, site.Snapshot, site.ChangeDetection]:
    """Classify the latest recompute and append its snapshot.

    Pure: returns a copy of *aggregate* with the snapshot
    appended (oldest entries evicted past *capacity*), the
    snapshot itself, and the verdict.
    """
    verdict = detect_change(aggregate, current_domains, aggregate.last_snapshot)
    snapshot = build_snapshot(aggregate, verdict, now)
    updated = aggregate.model_copy(update={"history": append_bounded(aggregate.history, snapshot, capacity)})
    return updated, snapshot, verdict


def get_recent_changes(
    aggregate: site.SiteAggregate,
    days: int = 7,
    now: datetime | None = None,
) -> list[report.RecentChange]:
    """List history entries from the last *days* days that added or removed trackers.

    Periodic snapshots and entries with an empty tracker delta
    are skipped.
    """
    if not aggregate.history:
        return []

    cutoff = (now or datetime.now(aggregate.last_scanned.tzinfo)) - timedelta(days=days)
    return [
        report.RecentChange(
            date=snap.taken_at,
            description=snap.change_description,
            reason=snap.change_reason,
            trackers_added=list(snap.trackers_added),
            trackers_removed=list(snap.trackers_removed),
            score=snap.score,
        )
        for snap in aggregate.history
        if snap.taken_at > cutoff
        and snap.change_reason != "periodic_snapshot"
        and (snap.trackers_added or snap.trackers_removed)
    ]
