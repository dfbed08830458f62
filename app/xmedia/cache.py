import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from app.xmedia.errors import PersistFailure
from app.xmedia.shapes import NormalizedRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheSnapshot:
    fetched_at: float = 0.0
    records: tuple[NormalizedRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PersistResult:
    """Outcome of a best-effort snapshot write."""

    ok: bool
    path: str
    record_count: int = 0
    error: str | None = None


class CacheStore:
    """Owns the in-memory snapshot and its durable JSON file.

    Readers get an immutable `CacheSnapshot`; `replace` swaps the whole object,
    so a reader never sees records from one refresh paired with the timestamp of
    another. Writes to the snapshot and to the file are serialized.
    """

    def __init__(self, cache_path: str | os.PathLike | None = None) -> None:
        path = cache_path or os.getenv("CACHE_FILE") or "videos.json"
        self._path = Path(path)
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._snapshot = CacheSnapshot()

    @property
    def path(self) -> Path:
        return self._path

    def current(self) -> CacheSnapshot:
        return self._snapshot

    def is_stale(self, now: float, ttl: float) -> bool:
        if ttl <= 0:
            return True
        return (now - self._snapshot.fetched_at) >= ttl

    def replace(self, records: Iterable[NormalizedRecord], now: float | None = None) -> CacheSnapshot:
        snapshot = CacheSnapshot(
            fetched_at=time.time() if now is None else float(now),
            records=tuple(records),
        )
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def load_from_durable(self, path: str | os.PathLike | None = None) -> CacheSnapshot | None:
        """Read a previously persisted snapshot; missing or malformed files yield None.

        The file carries no timestamp, so its modification time stands in for
        `fetched_at`.
        """
        source = Path(path) if path is not None else self._path
        try:
            if not source.exists():
                return None
            payload = json.loads(source.read_text(encoding="utf-8"))
            fetched_at = source.stat().st_mtime
        except (OSError, ValueError) as exc:
            logger.warning("[cache] Ignoring unreadable snapshot %s: %s", source, exc)
            return None
        if not isinstance(payload, list):
            logger.warning("[cache] Ignoring snapshot %s: expected a JSON array", source)
            return None
        records = [record for record in map(NormalizedRecord.from_dict, payload) if record is not None]
        return CacheSnapshot(fetched_at=fetched_at, records=tuple(records))

    def load(self) -> CacheSnapshot:
        """Initialize the in-memory snapshot from the durable file when present."""
        snapshot = self.load_from_durable()
        if snapshot is not None:
            with self._lock:
                self._snapshot = snapshot
            logger.info("[cache] Loaded %d items from %s", len(snapshot.records), self._path)
        return self._snapshot

    def _write_locked(self, target: Path, snapshot: CacheSnapshot) -> None:
        items = [record.to_dict() for record in snapshot.records]
        tmp_path = target.with_suffix(f"{target.suffix}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Escaped output keeps lone surrogates from upstream text writable.
            tmp_path.write_text(json.dumps(items, ensure_ascii=True, indent=2), encoding="utf-8")
            tmp_path.replace(target)
        except (OSError, ValueError) as exc:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            raise PersistFailure(f"Failed to write {target}: {exc}") from exc

    def persist(
        self,
        snapshot: CacheSnapshot | None = None,
        path: str | os.PathLike | None = None,
    ) -> PersistResult:
        target = Path(path) if path is not None else self._path
        snapshot = snapshot if snapshot is not None else self._snapshot
        with self._write_lock:
            try:
                self._write_locked(target, snapshot)
            except PersistFailure as exc:
                logger.exception("[cache] Failed to write cache file")
                return PersistResult(ok=False, path=str(target), error=str(exc))
        logger.info("[cache] Saved %d items to %s", len(snapshot.records), target)
        return PersistResult(ok=True, path=str(target), record_count=len(snapshot.records))
