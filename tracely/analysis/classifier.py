"""Tracker classification.

Pure, deterministic enrichment of a reported tracker domain:
descriptive tags, the third-party flag relative to the
first-party site, and a heuristic fingerprinting flag derived
from the metadata the extension attaches to each report.
"""

from __future__ import annotations

from collections.abc import Mapping

from tracely.analysis import tracker_patterns
from tracely.models import observation
from tracely.utils import logger, url

log = logger.create_logger("Classifier")

DEFAULT_TRACKER_INFO = observation.TrackerInfo(category="other", tracker_type="other", risk="low")


def classify(tracker_domain: str) -> observation.TrackerInfo:
    """Return the category, tracker type and risk of a tracker domain.

    Unknown domains get :data:`DEFAULT_TRACKER_INFO` rather
    than an error.
    """
    host = url.normalize_host(tracker_domain)
    for rule in tracker_patterns.CLASSIFICATION_RULES:
        if rule.pattern.search(host):
            return observation.TrackerInfo(
                category=rule.category,
                tracker_type=rule.tracker_type,
                risk=rule.risk,
            )
    log.debug("Unclassified tracker domain", {"trackerDomain": host})
    return DEFAULT_TRACKER_INFO


def is_third_party(tracker_domain: str, first_party_domain: str) -> bool:
    """True when the tracker and the site have different registrable domains."""
    return url.is_third_party(tracker_domain, first_party_domain)


def detect_fingerprinting(metadata: Mapping[str, object] | None) -> bool:
    """Heuristically decide whether a report indicates fingerprinting.

    A metadata key naming a fingerprinting surface (canvas,
    WebGL, audio context, font enumeration, ...) with a truthy
    value, or any string value mentioning fingerprinting, marks
    the observation.  Nested mappings are searched as well.
    """
    if not metadata:
        return False

    for key, value in metadata.items():
        if isinstance(value, Mapping):
            if detect_fingerprinting(value):
                return True
            continue
        if tracker_patterns.FINGERPRINT_METADATA_KEY_COMBINED.search(str(key)) and value:
            return True
        if isinstance(value, str) and tracker_patterns.FINGERPRINT_VALUE_PATTERN.search(value):
            return True
    return False
