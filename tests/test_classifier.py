"""Tests for tracely.analysis.classifier — tracker tagging and fingerprint heuristics."""

from __future__ import annotations

import pytest

from tracely.analysis import classifier, tracker_patterns


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        ("domain", "category", "tracker_type", "risk"),
        [
            ("stats.g.doubleclick.net", "advertising", "cookie", "high"),
            ("www.google-analytics.com", "analytics", "script", "medium"),
            ("static.hotjar.com", "session-replay", "script", "high"),
            ("connect.facebook.net", "social", "pixel", "high"),
            ("fpcdn.io", "fingerprinting", "fingerprint", "high"),
            ("www.googletagmanager.com", "tag-manager", "script", "medium"),
            ("sb.scorecardresearch.com", "analytics", "beacon", "medium"),
            ("tags.bluekai.com", "data-broker", "cookie", "high"),
        ],
    )
    def test_known_trackers(self, domain: str, category: str, tracker_type: str, risk: str) -> None:
        info = classifier.classify(domain)
        assert info.category == category
        assert info.tracker_type == tracker_type
        assert info.risk == risk

    def test_unknown_domain_gets_default(self) -> None:
        assert classifier.classify("cdn.unlisted-vendor.test") == classifier.DEFAULT_TRACKER_INFO

    def test_default_tags(self) -> None:
        info = classifier.DEFAULT_TRACKER_INFO
        assert (info.category, info.tracker_type, info.risk) == ("other", "other", "low")

    def test_case_insensitive(self) -> None:
        assert classifier.classify("STATIC.HOTJAR.COM").category == "session-replay"

    def test_x_com_does_not_match_substrings(self) -> None:
        assert classifier.classify("www.netflix.com") == classifier.DEFAULT_TRACKER_INFO

    def test_x_com_matches_itself(self) -> None:
        assert classifier.classify("api.x.com").category == "social"

    def test_first_matching_rule_wins(self) -> None:
        # Matches both a fingerprinting and an analytics-looking rule.
        assert classifier.classify("fingerprint.google-analytics.com").category == "fingerprinting"

    def test_deterministic(self) -> None:
        assert classifier.classify("criteo.com") == classifier.classify("criteo.com")


class TestIsThirdParty:
    """Tests for is_third_party()."""

    def test_other_domain(self) -> None:
        assert classifier.is_third_party("doubleclick.net", "example.com")

    def test_same_site_subdomain(self) -> None:
        assert not classifier.is_third_party("metrics.example.com", "www.example.com")


class TestDetectFingerprinting:
    """Tests for detect_fingerprinting()."""

    def test_none_metadata(self) -> None:
        assert classifier.detect_fingerprinting(None) is False

    def test_empty_metadata(self) -> None:
        assert classifier.detect_fingerprinting({}) is False

    @pytest.mark.parametrize(
        "key",
        ["canvasRead", "webglRenderer", "audioContext", "fontEnumeration", "deviceMemory", "hardwareConcurrency"],
    )
    def test_surface_keys_with_truthy_value(self, key: str) -> None:
        assert classifier.detect_fingerprinting({key: True})

    def test_surface_key_with_falsy_value(self) -> None:
        assert classifier.detect_fingerprinting({"canvasRead": False}) is False

    def test_value_mentions_fingerprinting(self) -> None:
        assert classifier.detect_fingerprinting({"script": "https://cdn.test/fpjs.min.js"})

    def test_nested_mapping(self) -> None:
        assert classifier.detect_fingerprinting({"probes": {"webgl": 1}})

    def test_ordinary_metadata(self) -> None:
        assert classifier.detect_fingerprinting({"method": "GET", "status": 200}) is False


class TestPatterns:
    """Tests for the compiled pattern tables."""

    def test_combined_key_pattern_covers_every_pattern(self) -> None:
        for pattern in tracker_patterns.FINGERPRINT_METADATA_KEY_PATTERNS:
            assert pattern.pattern in tracker_patterns.FINGERPRINT_METADATA_KEY_COMBINED.pattern

    def test_every_rule_is_compiled(self) -> None:
        assert all(rule.pattern.flags & 2 for rule in tracker_patterns.CLASSIFICATION_RULES)
