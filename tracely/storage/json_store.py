"""JSON-file storage backend.

Layout under the configured data directory::

    observations/<domain>__<scope hash>.jsonl   one observation per line
    aggregates/<domain>__<scope hash>.json      one aggregate per scope
    trackers.json                               the global tracker catalog

File names use the sanitised domain plus a hash of the full
scope key, so identities never appear in paths.  Documents are
written to a temporary file and moved into place with
``os.replace`` so readers never see a partial file.  Each
primitive runs under a single lock.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import os
import pathlib
import tempfile
import threading
from datetime import datetime

import pydantic

from tracely.analysis import aggregation, change_detection
from tracely.models import observation, site, tracker
from tracely.storage import base
from tracely.utils import errors, logger

log = logger.create_logger("JsonStore")

_TRACKER_FILE = "trackers.json"


def _safe_domain(domain: str) -> str:
    safe = domain.lower().removeprefix("www.")
    return "".join(c if c.isalnum() or c in ".-" else "_" for c in safe)[:100]


def _scope_stem(target: base.ScopeType) -> str:
    digest = hashlib.md5(target.key.encode("utf-8")).hexdigest()[:16]
    return f"{_safe_domain(target.domain)}__{digest}"


class JsonFileStore(base.Store):
    """File-backed store for single-node deployments."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = pathlib.Path(root)
        self._lock = threading.Lock()
        self._observations_dir = self._root / "observations"
        self._aggregates_dir = self._root / "aggregates"
        try:
            self._observations_dir.mkdir(parents=True, exist_ok=True)
            self._aggregates_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise errors.StorageError(f"Cannot create data directory {self._root}: {exc}") from exc
        log.info("JSON store ready", {"path": str(self._root)})

    # ── File helpers ────────────────────────────────────────────

    def _write_atomic(self, path: pathlib.Path, text: str) -> None:
        tmp: str | None = None
        try:
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, path)
        except OSError as exc:
            if tmp is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp)
            raise errors.StorageError(f"Failed to write {path.name}: {exc}") from exc

    def _read_aggregate(self, path: pathlib.Path) -> site.SiteAggregate | None:
        if not path.exists():
            return None
        try:
            return site.SiteAggregate.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, pydantic.ValidationError) as exc:
            raise errors.StorageError(f"Failed to read aggregate {path.name}: {exc}") from exc

    def _write_aggregate(self, path: pathlib.Path, aggregate: site.SiteAggregate) -> None:
        self._write_atomic(path, aggregate.model_dump_json(by_alias=True, indent=2))

    def _read_observation_file(self, path: pathlib.Path) -> list[observation.Observation]:
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                return [observation.Observation.model_validate_json(line) for line in f if line.strip()]
        except (OSError, pydantic.ValidationError) as exc:
            raise errors.StorageError(f"Failed to read observations {path.name}: {exc}") from exc

    def _read_trackers(self) -> dict[str, tracker.TrackerCatalogEntry]:
        path = self._root / _TRACKER_FILE
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return {k: tracker.TrackerCatalogEntry.model_validate(v) for k, v in raw.items()}
        except (OSError, json.JSONDecodeError, pydantic.ValidationError) as exc:
            raise errors.StorageError(f"Failed to read tracker catalog: {exc}") from exc

    # ── Observations ────────────────────────────────────────────

    def append_observation(self, obs: observation.Observation) -> None:
        path = self._observations_dir / f"{_scope_stem(obs.scope)}.jsonl"
        line = obs.model_dump_json(by_alias=True) + "\n"
        with self._lock:
            try:
                with open(path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as exc:
                raise errors.StorageError(f"Failed to append observation: {exc}") from exc

    def fetch_observations(self, target: base.ScopeType) -> list[observation.Observation]:
        with self._lock:
            return self._read_observation_file(self._observations_dir / f"{_scope_stem(target)}.jsonl")

    def fetch_domain_observations(self, domain: str) -> list[observation.Observation]:
        with self._lock:
            found: list[observation.Observation] = []
            for path in sorted(self._observations_dir.glob(f"{_safe_domain(domain)}__*.jsonl")):
                found.extend(o for o in self._read_observation_file(path) if o.scope.domain == domain)
            return sorted(found, key=lambda o: o.observed_at)

    # ── Aggregates ──────────────────────────────────────────────

    def get_aggregate(self, target: base.ScopeType) -> site.SiteAggregate | None:
        with self._lock:
            return self._read_aggregate(self._aggregates_dir / f"{_scope_stem(target)}.json")

    def list_aggregates(self, *, domain: str | None = None, identity: str | None = None) -> list[site.SiteAggregate]:
        pattern = f"{_safe_domain(domain)}__*.json" if domain else "*.json"
        with self._lock:
            found: list[site.SiteAggregate] = []
            for path in sorted(self._aggregates_dir.glob(pattern)):
                aggregate = self._read_aggregate(path)
                if aggregate is not None and base.matches(aggregate, domain, identity):
                    found.append(aggregate)
            return found

    def upsert_aggregate(self, update: site.AggregateUpdate) -> site.SiteAggregate:
        path = self._aggregates_dir / f"{_scope_stem(update.scope)}.json"
        with self._lock:
            stored = aggregation.apply_update(self._read_aggregate(path), update)
            self._write_aggregate(path, stored)
            return stored

    def append_history(
        self,
        target: base.ScopeType,
        snapshot: site.Snapshot,
        capacity: int = site.HISTORY_CAPACITY,
    ) -> site.SiteAggregate:
        path = self._aggregates_dir / f"{_scope_stem(target)}.json"
        with self._lock:
            current = self._read_aggregate(path)
            if current is None:
                raise errors.NotFoundError(f"No aggregate for scope {target.key}")
            if change_detection.is_stale_snapshot(current.history, snapshot):
                return current
            stored = current.model_copy(
                update={"history": change_detection.append_bounded(current.history, snapshot, capacity)}
            )
            self._write_aggregate(path, stored)
            return stored

    # ── Tracker catalog ─────────────────────────────────────────

    def upsert_tracker(
        self,
        domain: str,
        info: observation.TrackerInfo,
        seen_at: datetime,
    ) -> tracker.TrackerCatalogEntry:
        with self._lock:
            catalog = self._read_trackers()
            entry = base.apply_tracker_upsert(catalog.get(domain), domain, info, seen_at)
            catalog[domain] = entry
            payload = {k: v.model_dump(by_alias=True, mode="json") for k, v in catalog.items()}
            self._write_atomic(self._root / _TRACKER_FILE, json.dumps(payload, indent=2))
            return entry

    def get_tracker(self, domain: str) -> tracker.TrackerCatalogEntry | None:
        with self._lock:
            return self._read_trackers().get(domain)

    def list_trackers(self) -> list[tracker.TrackerCatalogEntry]:
        with self._lock:
            return list(self._read_trackers().values())
