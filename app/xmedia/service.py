import logging
import threading
import time
from typing import Any, Callable

from app.xmedia.cache import CacheStore
from app.xmedia.client import FetchQuery
from app.xmedia.errors import ConfigurationIncomplete, ExtractionEmpty, XMediaError
from app.xmedia.shapes import NormalizedRecord, ShapeExtractor

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600

FetchCallable = Callable[[FetchQuery], Any]


class RefreshController:
    """Serve cached records and refresh them from upstream when stale.

    Refresh failures never reach the caller: the previous snapshot is returned
    instead. At most one upstream fetch runs at a time; callers that arrive
    while one is in flight wait for it and reuse its outcome.
    """

    def __init__(
        self,
        store: CacheStore,
        fetch: FetchCallable,
        query: FetchQuery,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        extractor: ShapeExtractor | None = None,
        overwrite_on_empty: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.query = query
        self.ttl_seconds = ttl_seconds
        self.extractor = extractor or ShapeExtractor()
        self.overwrite_on_empty = overwrite_on_empty
        self._fetch = fetch
        self._clock = clock
        self._refresh_lock = threading.Lock()
        self._completed_attempts = 0
        self.last_outcome: str | None = None

    def _cached(self) -> list[NormalizedRecord]:
        return list(self.store.current().records)

    def get_records(self, force_refresh: bool = False) -> list[NormalizedRecord]:
        if not force_refresh and not self.store.is_stale(self._clock(), self.ttl_seconds):
            return self._cached()

        try:
            self.query.validate()
        except ConfigurationIncomplete as exc:
            logger.debug("[XMEDIA] refresh skipped: %s", exc)
            self.last_outcome = exc.reason
            return self._cached()

        seen_attempts = self._completed_attempts
        with self._refresh_lock:
            if self._completed_attempts != seen_attempts:
                logger.debug("[XMEDIA] reusing refresh completed while waiting")
                return self._cached()
            if not force_refresh and not self.store.is_stale(self._clock(), self.ttl_seconds):
                return self._cached()
            try:
                return self._refresh_locked()
            finally:
                self._completed_attempts += 1

    def _refresh_locked(self) -> list[NormalizedRecord]:
        previous = self.store.current()
        try:
            raw = self._fetch(self.query)
            records = self.extractor.extract(raw)
            if not records and not self.overwrite_on_empty:
                raise ExtractionEmpty("no shape strategy matched the response")
        except XMediaError as exc:
            logger.warning(
                "[XMEDIA] refresh failed reason=%s error=%s; serving %d cached items",
                exc.reason,
                exc,
                len(previous.records),
            )
            self.last_outcome = exc.reason
            return list(previous.records)
        except Exception:
            logger.exception("[XMEDIA] unexpected refresh error; serving cached items")
            self.last_outcome = "unexpected_error"
            return list(previous.records)

        snapshot = self.store.replace(records, now=self._clock())
        result = self.store.persist(snapshot)
        if not result.ok:
            logger.warning("[XMEDIA] serving refreshed items without a durable copy")
        logger.info("[XMEDIA] refreshed %d items", len(snapshot.records))
        self.last_outcome = "refreshed"
        return list(snapshot.records)

    def health(self) -> dict[str, Any]:
        snapshot = self.store.current()
        return {
            "ok": True,
            "cached_count": len(snapshot.records),
            "fetched_at": snapshot.fetched_at,
            "last_outcome": self.last_outcome,
        }
