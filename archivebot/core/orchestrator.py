from __future__ import annotations

"""Batch orchestration: cache lookup, archive.org resolution and history.

The orchestrator works on plain data only.  It returns one record, one error
slot and one history slot per input URL, in input order, so callers can zip
them with the original URL list when building a reply.
"""

import concurrent.futures
import logging
import threading
import uuid
from typing import List, Optional

from archivebot.core.archive_client import WaybackClient
from archivebot.core.cache import ArchiveCache
from archivebot.core.errors import ArchiveCancelled, ArchiveError, HistoryUnavailable, PersistenceError
from archivebot.core.models import ArchiveRecord, BatchRequest, BatchResult, RetryPolicy, SnapshotHistory
from archivebot.core.sparkline import SnapshotHistoryReader
from archivebot.core.url_extractor import require_urls
from archivebot.infra.repositories.base import AbstractRepository

logger = logging.getLogger(__name__)

RATE_LIMIT_HINT = (
    "I was unable to get any Wayback Machine URLs. "
    "Most of the time, this is due to rate-limiting by Archive.org. "
    "Please try again"
)


class ArchiveOrchestrator:
    """Resolve a batch of URLs to Wayback Machine snapshots."""

    def __init__(
        self,
        repo: AbstractRepository,
        client: WaybackClient | None = None,
        history: SnapshotHistoryReader | None = None,
        max_workers: int = 1,
    ) -> None:
        self._repo = repo
        self._cache = ArchiveCache(repo)
        self._client = client or WaybackClient()
        self._history = history or SnapshotHistoryReader()
        self._max_workers = max(max_workers, 1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def archive_text(
        self,
        text: str,
        policy: RetryPolicy,
        *,
        fresh: bool = False,
        server_id: str = "",
        server_name: str = "",
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """Extract URLs from *text* and resolve them; raises ``NoUrlsFound``."""
        request = BatchRequest(
            urls=require_urls(text),
            fresh_snapshot_requested=fresh,
            server_id=server_id,
            server_name=server_name,
        )
        return self.run(request, policy, cancel)

    def run(self, request: BatchRequest, policy: RetryPolicy, cancel: threading.Event | None = None) -> BatchResult:
        group_id = uuid.uuid4()
        fresh = request.fresh_snapshot_requested
        records = [
            self._cache.lookup(
                url,
                fresh,
                group_id=group_id,
                server_id=request.server_id,
                server_name=request.server_name,
            )
            for url in request.urls
        ]

        snapshot_first = policy.always_snapshot_first or fresh
        errors = self._map(lambda r: self._resolve(r, policy.attempts, snapshot_first, cancel), records)
        histories = self._map(self._read_history, records)

        result = BatchResult(records=records, errors=errors, histories=histories)
        if result.resolved_count < result.url_count:
            logger.error(
                f"resolved {result.resolved_count} of {result.url_count} URLs in batch {group_id}"
            )
        if result.no_links_resolved:
            logger.error("did not receive any Archive.org links")
        return result

    def persist(self, result: BatchResult) -> int:
        """Write the batch in one insert; raises ``PersistenceError`` on a row-count mismatch."""
        if not result.records:
            return 0
        affected = self._repo.add_records(result.records)
        if affected != len(result.records):
            raise PersistenceError(len(result.records), affected)
        return affected

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _map(self, fn, records: List[ArchiveRecord]) -> list:  # noqa: ANN001
        if self._max_workers == 1 or len(records) < 2:
            return [fn(r) for r in records]
        # Executor.map yields results in submission order
        with concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            return list(pool.map(fn, records))

    def _resolve(
        self,
        record: ArchiveRecord,
        attempts: int,
        snapshot_first: bool,
        cancel: threading.Event | None,
    ) -> Optional[Exception]:
        if record.from_cache:
            return None
        logger.debug(f"need to call archive.org api for {record.request_url}")
        try:
            snapshot = self._client.resolve(
                record.request_url,
                attempts=attempts,
                snapshot_first=snapshot_first,
                cancel=cancel,
            )
        except ArchiveCancelled:
            raise
        except ArchiveError as exc:
            logger.error(f"error archiving url {record.request_url}: {exc}")
            return exc
        record.response_url = snapshot.url
        record.response_domain = snapshot.domain
        return None

    def _read_history(self, record: ArchiveRecord) -> Optional[SnapshotHistory]:
        if not record.resolved:
            return None
        try:
            return self._history.read(record.request_url)
        except HistoryUnavailable as exc:
            logger.warning(str(exc))
            return None
