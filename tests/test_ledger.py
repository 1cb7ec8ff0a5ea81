"""Tests for tracely.services.ledger — dual-scope reads and listings."""

from __future__ import annotations

import pytest

from tracely.models import scope
from tracely.services import ledger as ledger_service
from tracely.utils import errors


@pytest.fixture()
def ledger(store) -> ledger_service.Ledger:
    """Ledger over the shared in-memory store."""
    return ledger_service.Ledger(store)


class TestFind:
    """Tests for Ledger.find() and Ledger.read()."""

    def test_identity_falls_back_to_anonymous(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        found = ledger.find(alice)
        assert found is not None
        assert found.scope == anonymous

    def test_identity_prefers_own_aggregate(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        pipeline.submit(alice, "https://example.com/", "b.test")
        assert ledger.find(alice).scope == alice

    def test_anonymous_never_reads_identity_data(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(alice, "https://example.com/", "b.test")
        assert ledger.find(anonymous) is None

    def test_read_raises_not_found(self, ledger, anonymous) -> None:
        with pytest.raises(errors.NotFoundError, match="Site not found"):
            ledger.read(anonymous)


class TestObservationsFor:
    """Tests for Ledger.observations_for()."""

    def test_identity_sees_only_its_own(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        pipeline.submit(alice, "https://example.com/", "b.test")
        assert [o.tracker_domain for o in ledger.observations_for(alice)] == ["b.test"]

    def test_anonymous_sees_every_scope(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        pipeline.submit(alice, "https://example.com/", "b.test")
        assert {o.tracker_domain for o in ledger.observations_for(anonymous)} == {"a.test", "b.test"}


class TestListings:
    """Tests for global and personal listings."""

    def test_global_view_keeps_scopes_separate(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        pipeline.submit(alice, "https://example.com/", "b.test")
        pipeline.submit(alice, "https://example.com/", "c.test")

        view = ledger.global_view("Example.com")
        assert view.domain == "example.com"
        counts = {a.scope.key: a.tracker_count for a in view.scopes}
        assert counts == {anonymous.key: 1, alice.key: 2}

    def test_personal_sites_sorted_by_score(self, ledger, pipeline, anonymous) -> None:
        quiet = scope.IdentifiedScope(domain="quiet.test", identity="alice")
        busy = scope.IdentifiedScope(domain="busy.test", identity="alice")
        pipeline.submit(quiet, "https://quiet.test/", "a.test")
        for i in range(10):
            pipeline.submit(busy, "https://busy.test/", f"t{i}.test")
        pipeline.submit(anonymous, "https://example.com/", "a.test")

        sites = ledger.personal_sites("alice")
        assert [s.domain for s in sites] == ["busy.test", "quiet.test"]

    def test_personal_sites_exclude_other_identities(self, ledger, pipeline) -> None:
        pipeline.submit(scope.IdentifiedScope(domain="x.test", identity="bob"), "https://x.test/", "a.test")
        assert ledger.personal_sites("alice") == []

    def test_global_stats_sorted_by_tracker_count(self, ledger, pipeline, anonymous, alice) -> None:
        pipeline.submit(anonymous, "https://example.com/", "a.test")
        for _ in range(3):
            pipeline.submit(alice, "https://example.com/", "b.test")
        stats = ledger.global_stats()
        assert [s.tracker_count for s in stats] == [3, 1]

    def test_global_stats_limit(self, ledger, pipeline) -> None:
        for i in range(5):
            pipeline.submit(scope.AnonymousScope(domain=f"s{i}.test"), "", "a.test")
        assert len(ledger.global_stats(limit=2)) == 2
