"""
Known tracker classification patterns.

Ordered, compiled regex rules that map a tracker hostname to a
category, a tracker type and a risk tag, plus the metadata key
patterns used to spot browser fingerprinting.  Rules are matched
top to bottom and the first hit wins, so the most specific and
most invasive families come first.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from tracely.models import observation


class ClassificationRule(NamedTuple):
    """One hostname pattern and the tags it assigns."""

    pattern: re.Pattern[str]
    category: observation.TrackerCategory
    tracker_type: observation.TrackerType
    risk: observation.TrackerRisk


def _rule(
    pattern: str,
    category: observation.TrackerCategory,
    tracker_type: observation.TrackerType,
    risk: observation.TrackerRisk,
) -> ClassificationRule:
    return ClassificationRule(re.compile(pattern, re.I), category, tracker_type, risk)


# ============================================================================
# Hostname Classification Rules
# ============================================================================

FINGERPRINTING_RULES: list[ClassificationRule] = [
    _rule(r"fingerprint|fpjs|fpcdn", "fingerprinting", "fingerprint", "high"),
    _rule(r"threatmetrix|online-metrix", "fingerprinting", "fingerprint", "high"),
    _rule(r"iovation|deviceprint", "fingerprinting", "fingerprint", "high"),
]

SESSION_REPLAY_RULES: list[ClassificationRule] = [
    _rule(r"hotjar", "session-replay", "script", "high"),
    _rule(r"fullstory", "session-replay", "script", "high"),
    _rule(r"logrocket", "session-replay", "script", "high"),
    _rule(r"clarity\.ms", "session-replay", "script", "high"),
    _rule(r"mouseflow", "session-replay", "script", "high"),
    _rule(r"smartlook", "session-replay", "script", "high"),
    _rule(r"luckyorange", "session-replay", "script", "high"),
    _rule(r"inspectlet", "session-replay", "script", "high"),
]

DATA_BROKER_RULES: list[ClassificationRule] = [
    _rule(r"bluekai", "data-broker", "cookie", "high"),
    _rule(r"liveramp|rlcdn\.com", "data-broker", "cookie", "high"),
    _rule(r"acxiom", "data-broker", "cookie", "high"),
    _rule(r"lotame|crwdcntrl\.net", "data-broker", "cookie", "high"),
    _rule(r"tapad", "data-broker", "cookie", "high"),
    _rule(r"id5-sync|id5\.io", "data-broker", "cookie", "high"),
    _rule(r"adsrvr\.org|thetradedesk", "data-broker", "cookie", "high"),
]

ADVERTISING_RULES: list[ClassificationRule] = [
    _rule(r"doubleclick\.net", "advertising", "cookie", "high"),
    _rule(r"googlesyndication|googleadservices", "advertising", "script", "high"),
    _rule(r"amazon-adsystem", "advertising", "cookie", "high"),
    _rule(r"criteo", "advertising", "cookie", "high"),
    _rule(r"adnxs|appnexus", "advertising", "cookie", "high"),
    _rule(r"rubiconproject|magnite", "advertising", "cookie", "high"),
    _rule(r"pubmatic", "advertising", "cookie", "high"),
    _rule(r"openx\.net", "advertising", "cookie", "medium"),
    _rule(r"casalemedia|indexexchange", "advertising", "cookie", "medium"),
    _rule(r"adroll", "advertising", "cookie", "medium"),
    _rule(r"bat\.bing", "advertising", "pixel", "medium"),
    _rule(r"taboola", "advertising", "script", "medium"),
    _rule(r"outbrain", "advertising", "script", "medium"),
    _rule(r"(^|\.)media\.net$", "advertising", "script", "medium"),
    _rule(r"ads-twitter|analytics\.tiktok", "advertising", "pixel", "medium"),
]

SOCIAL_RULES: list[ClassificationRule] = [
    _rule(r"facebook\.(net|com)|fbcdn", "social", "pixel", "high"),
    _rule(r"connect\.facebook", "social", "pixel", "high"),
    _rule(r"snap\.licdn|linkedin", "social", "pixel", "medium"),
    _rule(r"twitter\.com$|(^|\.)x\.com$", "social", "script", "medium"),
    _rule(r"pinterest|pinimg", "social", "pixel", "medium"),
    _rule(r"tiktok", "social", "pixel", "medium"),
    _rule(r"addthis|sharethis|addtoany", "social", "script", "medium"),
]

ANALYTICS_RULES: list[ClassificationRule] = [
    _rule(r"google-analytics|analytics\.google", "analytics", "script", "medium"),
    _rule(r"scorecardresearch|comscore", "analytics", "beacon", "medium"),
    _rule(r"segment\.(com|io)", "analytics", "script", "medium"),
    _rule(r"amplitude", "analytics", "script", "medium"),
    _rule(r"mixpanel", "analytics", "script", "medium"),
    _rule(r"heap\.io|heapanalytics", "analytics", "script", "medium"),
    _rule(r"chartbeat", "analytics", "beacon", "low"),
    _rule(r"parsely|parse\.ly", "analytics", "beacon", "low"),
    _rule(r"matomo|piwik", "analytics", "script", "low"),
    _rule(r"quantserve|quantcount", "analytics", "pixel", "medium"),
    _rule(r"newrelic|nr-data", "analytics", "beacon", "low"),
]

TAG_MANAGER_RULES: list[ClassificationRule] = [
    _rule(r"googletagmanager", "tag-manager", "script", "medium"),
    _rule(r"tealium|tiqcdn", "tag-manager", "script", "medium"),
    _rule(r"ensighten", "tag-manager", "script", "medium"),
]

# Most invasive families first; the first matching rule wins.
CLASSIFICATION_RULES: list[ClassificationRule] = (
    FINGERPRINTING_RULES
    + SESSION_REPLAY_RULES
    + DATA_BROKER_RULES
    + ADVERTISING_RULES
    + SOCIAL_RULES
    + ANALYTICS_RULES
    + TAG_MANAGER_RULES
)

# ============================================================================
# Fingerprinting Metadata Patterns
# ============================================================================
# Keys reported by the extension's content script when a page
# probes browser surfaces that are only useful for fingerprinting.

FINGERPRINT_METADATA_KEY_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"fingerprint", re.I),
    re.compile(r"canvas", re.I),
    re.compile(r"web.?gl", re.I),
    re.compile(r"audio.?context|audio.?fingerprint", re.I),
    re.compile(r"font.?(enum|list|detect|probe)", re.I),
    re.compile(r"device.?memory", re.I),
    re.compile(r"hardware.?concurrency", re.I),
    re.compile(r"plugin.?(enum|list)", re.I),
    re.compile(r"media.?devices", re.I),
    re.compile(r"battery", re.I),
]

FINGERPRINT_VALUE_PATTERN: re.Pattern[str] = re.compile(r"fingerprint|fpjs", re.I)


def _combine(patterns: list[re.Pattern[str]]) -> re.Pattern[str]:
    """Merge a list of compiled patterns into one alternation regex."""
    combined = "|".join(f"(?:{p.pattern})" for p in patterns)
    return re.compile(combined, re.IGNORECASE)


FINGERPRINT_METADATA_KEY_COMBINED: re.Pattern[str] = _combine(FINGERPRINT_METADATA_KEY_PATTERNS)
