"""Tests for the HTTP API — routes, envelopes and error mapping."""

from __future__ import annotations

from unittest import mock

import pytest
from fastapi import testclient

from tracely import config, main
from tracely.storage import base, memory
from tracely.utils import errors

IDENTITY = {"X-Tracely-Identity": "alice"}


def _client(store: base.Store) -> testclient.TestClient:
    with mock.patch.dict("os.environ", {}, clear=True):
        settings = config.Settings()
    return testclient.TestClient(main.create_app(settings=settings, store=store))


@pytest.fixture()
def client() -> testclient.TestClient:
    """Client for an app backed by a fresh in-memory store."""
    return _client(memory.MemoryStore())


def _report(client: testclient.TestClient, tracker: str, headers: dict[str, str] | None = None, **extra):
    body = {"domain": "Example.com", "requestUrl": "https://example.com/p?uid=1", "trackerDomain": tracker, **extra}
    return client.post("/api/events", json=body, headers=headers or {})


# ── Events ──────────────────────────────────────────────────────


class TestReportEvent:
    """POST /api/events."""

    def test_first_report(self, client) -> None:
        response = _report(client, "stats.g.doubleclick.net")
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        event = body["data"]["event"]
        assert event["trackerDomain"] == "stats.g.doubleclick.net"
        assert event["category"] == "advertising"
        assert event["sourceURL"] == "https://example.com/p"
        assert event["scope"] == {"kind": "anonymous", "domain": "example.com"}
        assert "changeDetection" not in body["data"]

    def test_change_detection_on_new_tracker(self, client) -> None:
        _report(client, "a.test")
        body = _report(client, "b.test").json()
        detection = body["data"]["changeDetection"]
        assert detection["hasChanges"] is True
        assert detection["changeReason"] == "new_tracker"
        assert detection["trackersAdded"] == ["b.test"]

    def test_identity_header_scopes_event(self, client) -> None:
        event = _report(client, "a.test", IDENTITY).json()["data"]["event"]
        assert event["scope"]["kind"] == "identified"
        assert event["scope"]["identity"] == "alice"

    def test_missing_domain(self, client) -> None:
        response = client.post("/api/events", json={"trackerDomain": "a.test"})
        assert response.status_code == 400
        assert response.json() == {"error": "Domain is required"}

    def test_missing_tracker_domain(self, client) -> None:
        response = client.post("/api/events", json={"domain": "example.com", "trackerDomain": "  "})
        assert response.status_code == 400
        assert response.json() == {"error": "Tracker domain is required"}

    def test_malformed_body(self, client) -> None:
        response = client.post("/api/events", json=[1, 2, 3])
        assert response.status_code == 400
        assert "error" in response.json()

    def test_storage_unavailable(self) -> None:
        class Offline(memory.MemoryStore):
            def append_observation(self, obs) -> None:
                raise errors.StorageError("connection refused")

        response = _report(_client(Offline()), "a.test")
        assert response.status_code == 503
        assert response.json() == {"error": "Storage unavailable"}


# ── Site reads ──────────────────────────────────────────────────


class TestSiteReads:
    """GET /api/site/{domain}/..."""

    def test_score_not_found(self, client) -> None:
        response = client.get("/api/site/nowhere.test/score")
        assert response.status_code == 404
        assert response.json() == {"error": "Site not found"}

    def test_score(self, client) -> None:
        for tracker in ("doubleclick.net", "criteo.com", "a.test", "b.test"):
            _report(client, tracker)
        data = client.get("/api/site/example.com/score").json()["data"]
        assert data["domain"] == "example.com"
        assert data["score"] == 18
        assert data["riskLevel"] == "low"
        assert data["trackerCount"] == 4
        assert data["cookieCount"] == 2

    def test_domain_is_case_insensitive(self, client) -> None:
        _report(client, "a.test")
        assert client.get("/api/site/EXAMPLE.com/score").status_code == 200

    def test_identity_falls_back_to_anonymous(self, client) -> None:
        _report(client, "a.test")
        response = client.get("/api/site/example.com/score", headers=IDENTITY)
        assert response.status_code == 200
        assert response.json()["data"]["trackerCount"] == 1

    def test_identity_reads_own_scope(self, client) -> None:
        _report(client, "a.test")
        _report(client, "b.test", IDENTITY)
        _report(client, "c.test", IDENTITY)
        assert client.get("/api/site/example.com/score", headers=IDENTITY).json()["data"]["trackerCount"] == 2
        assert client.get("/api/site/example.com/score").json()["data"]["trackerCount"] == 1

    def test_details(self, client) -> None:
        _report(client, "doubleclick.net")
        _report(client, "a.test")
        data = client.get("/api/site/example.com/details").json()["data"]
        assert data["domain"] == "example.com"
        assert data["trackerCount"] == 2
        assert data["scanCount"] == 2
        assert "(Low Risk) with 2 trackers detected." in data["summary"]
        assert {t["domain"] for t in data["trackers"]} == {"doubleclick.net", "a.test"}
        assert {"category", "trackerType", "risk", "observedAt"} <= set(data["trackers"][0])
        assert "riskTrend" not in data

    def test_details_identity_lists_own_trackers(self, client) -> None:
        _report(client, "a.test")
        data = client.get("/api/site/example.com/details", headers=IDENTITY).json()["data"]
        assert data["trackerCount"] == 1
        assert data["trackers"] == []

    def test_details_not_found(self, client) -> None:
        response = client.get("/api/site/nowhere.test/details")
        assert response.status_code == 404
        assert response.json() == {"error": "Site not found"}

    def test_history(self, client) -> None:
        for tracker in ("a.test", "b.test", "c.test"):
            _report(client, tracker)
        data = client.get("/api/site/example.com/history").json()["data"]
        assert len(data["scoreHistory"]) == 3
        assert data["scoreHistory"][0]["changeReason"] == "first_scan"
        assert data["currentScore"] == data["scoreHistory"][-1]["score"]

    def test_changes(self, client) -> None:
        _report(client, "a.test")
        _report(client, "b.test")
        data = client.get("/api/site/example.com/changes?days=7").json()["data"]
        assert data["timeframe"] == "Last 7 days"
        assert data["changeCount"] == 2
        assert [c["reason"] for c in data["changes"]] == ["first_scan", "new_tracker"]

    def test_changes_default_window(self, client) -> None:
        _report(client, "a.test")
        assert client.get("/api/site/example.com/changes").json()["data"]["timeframe"] == "Last 30 days"

    def test_anomalies(self, client) -> None:
        _report(client, "a.test")
        data = client.get("/api/site/example.com/anomalies").json()["data"]
        assert data == {"domain": "example.com", "hasAnomalies": False, "anomalies": []}

    def test_audit_report(self, client) -> None:
        _report(client, "a.test")
        data = client.get("/api/site/example.com/audit-report").json()["data"]
        assert data["summary"].startswith("example.com has been monitored 1 times since ")
        assert data["complianceNotes"]["gdprRelevant"] is True

    def test_evidence(self, client) -> None:
        _report(client, "a.test")
        _report(client, "a.test")
        data = client.get("/api/site/example.com/evidence?limit=10").json()["data"]
        assert data["observations"][0]["trackerDomain"] == "a.test"
        assert data["observations"][0]["count"] == 2
        assert data["observations"][0]["samplePath"] == "/p"
        assert len(data["timeline"]) == 2

    def test_evidence_empty_for_unknown_domain(self, client) -> None:
        data = client.get("/api/site/nowhere.test/evidence").json()["data"]
        assert data["observations"] == []

    def test_global_view(self, client) -> None:
        _report(client, "a.test")
        _report(client, "b.test", IDENTITY)
        data = client.get("/api/site/example.com/global").json()["data"]
        assert {s["scope"]["kind"] for s in data["scopes"]} == {"anonymous", "identified"}

    def test_global_view_not_found(self, client) -> None:
        assert client.get("/api/site/nowhere.test/global").status_code == 404


# ── Listings ────────────────────────────────────────────────────


class TestListings:
    """GET /api/sites and /api/sites/global/stats."""

    def test_personal_sites_require_identity(self, client) -> None:
        response = client.get("/api/sites")
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required to view personal sites"}

    def test_personal_sites(self, client) -> None:
        _report(client, "a.test")
        _report(client, "b.test", IDENTITY)
        body = client.get("/api/sites", headers=IDENTITY).json()
        assert body["mode"] == "personal"
        assert [s["domain"] for s in body["data"]] == ["example.com"]
        assert body["data"][0]["trackerCount"] == 1

    def test_global_stats(self, client) -> None:
        _report(client, "a.test")
        _report(client, "b.test", IDENTITY)
        _report(client, "c.test", IDENTITY)
        body = client.get("/api/sites/global/stats").json()
        assert body["mode"] == "global"
        assert [s["trackerCount"] for s in body["data"]] == [2, 1]


# ── Trackers & health ───────────────────────────────────────────


class TestTrackers:
    """GET /api/trackers."""

    def test_list_sorted_by_sightings(self, client) -> None:
        _report(client, "a.test")
        _report(client, "criteo.com")
        _report(client, "criteo.com", IDENTITY)
        data = client.get("/api/trackers").json()["data"]
        assert [t["domain"] for t in data] == ["criteo.com", "a.test"]
        assert data[0]["sightingCount"] == 2

    def test_get_tracker(self, client) -> None:
        _report(client, "criteo.com")
        data = client.get("/api/trackers/Criteo.com").json()["data"]
        assert data["category"] == "advertising"

    def test_unknown_tracker(self, client) -> None:
        response = client.get("/api/trackers/nothing.test")
        assert response.status_code == 404
        assert response.json() == {"error": "Tracker not found"}


class TestHealth:
    def test_health(self, client) -> None:
        assert client.get("/api/health").json() == {"status": "ok"}
