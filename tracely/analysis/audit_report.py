"""Compliance audit report.

Composes the aggregate, its bounded history, recent changes and
anomalies into one timestamped evidence document.  Every field
is derived from the persisted aggregate alone.
"""

from __future__ import annotations

from datetime import UTC, datetime

from tracely.analysis import anomalies, change_detection
from tracely.models import report, site

# Window used for the report's "recent changes" section.
AUDIT_WINDOW_DAYS = 30


def generate_audit_report(
    aggregate: site.SiteAggregate,
    now: datetime | None = None,
) -> report.AuditReport:
    """Build the audit report for one scope.

    Args:
        aggregate: The persisted aggregate, including history.
        now: Audit timestamp; defaults to the current UTC time.

    Returns:
        A fully populated :class:`AuditReport`.
    """
    audit_date = now or datetime.now(UTC)
    recent = change_detection.get_recent_changes(aggregate, AUDIT_WINDOW_DAYS, audit_date)
    found = anomalies.detect_anomalies(aggregate.history)

    summary = (
        f"{aggregate.domain} has been monitored {aggregate.scan_count} times since "
        f"{aggregate.first_seen.date().isoformat()}. "
        f"Current privacy risk score: {aggregate.score}/100. "
        f"{len(recent)} significant changes detected in the last {AUDIT_WINDOW_DAYS} days."
    )

    return report.AuditReport(
        domain=aggregate.domain,
        audit_date=audit_date,
        current_risk_score=aggregate.score,
        risk_level=aggregate.risk_level,
        total_trackers=aggregate.tracker_count,
        first_detected=aggregate.first_seen,
        last_scanned=aggregate.last_scanned,
        scan_count=aggregate.scan_count,
        score_history=list(aggregate.history),
        recent_changes=recent,
        anomalies=found.anomalies,
        compliance_notes=report.ComplianceNotes(
            gdpr_relevant=aggregate.tracker_count > 0,
            ccpa_relevant=aggregate.third_party_count > 0,
            evidence_collected=len(aggregate.history),
            timestamped_audit_trail=True,
        ),
        summary=summary,
    )
