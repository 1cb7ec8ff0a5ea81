"""Anomaly detection over a scope's snapshot history.

Two read-only heuristics:

- a score jump of more than ``SCORE_JUMP_THRESHOLD`` points
  between adjacent snapshots (severity ``high``);
- a single snapshot adding ``TRACKER_SPIKE_THRESHOLD`` or more
  trackers at once (severity ``medium``).

Both rules may fire for the same snapshot; results are not
deduplicated.
"""

from __future__ import annotations

from tracely.models import report, site

SCORE_JUMP_THRESHOLD = 20
TRACKER_SPIKE_THRESHOLD = 5
MIN_HISTORY = 3


def detect_anomalies(history: list[site.Snapshot]) -> report.AnomalyResult:
    """Scan *history* (oldest first) for score jumps and tracker spikes."""
    if len(history) < MIN_HISTORY:
        return report.AnomalyResult(has_anomalies=False, anomalies=[])

    anomalies: list[report.Anomaly] = []

    for prev, curr in zip(history, history[1:]):
        delta = curr.score - prev.score
        if abs(delta) > SCORE_JUMP_THRESHOLD:
            anomalies.append(
                report.Anomaly(
                    date=curr.taken_at,
                    type="sudden_increase" if delta > 0 else "sudden_decrease",
                    description=f"Privacy score {'jumped' if delta > 0 else 'dropped'} by {abs(delta)} points",
                    severity="high",
                )
            )

    anomalies.extend(
        report.Anomaly(
            date=snap.taken_at,
            type="tracker_spike",
            description=f"Added {len(snap.trackers_added)} trackers simultaneously",
            severity="medium",
        )
        for snap in history
        if len(snap.trackers_added) >= TRACKER_SPIKE_THRESHOLD
    )

    return report.AnomalyResult(has_anomalies=bool(anomalies), anomalies=anomalies)
