from __future__ import annotations

"""Wayback Machine client.

Resolves one URL to a permanent snapshot using the public availability API
and, when needed, the authenticated Save Page Now API:

    availability check -> save request -> job status polling

The whole sequence is retried as a unit with a fixed delay; job polling has
its own, progressively backing-off, loop because a live capture routinely
takes tens of seconds.
"""

import logging
import threading
from typing import Callable, Optional
from urllib.parse import urljoin

import requests

from archivebot.core.errors import (
    JobFailed,
    JobStillPending,
    NonRetryableDeclined,
    ProtocolError,
    RateLimited,
    RetriesExhausted,
    RetryableTransportError,
)
from archivebot.core.models import ResolvedSnapshot
from archivebot.core.retry import backoff_delay, call_with_retry, fixed_delay
from archivebot.core.url_extractor import get_domain_name
from archivebot.settings import settings

logger = logging.getLogger(__name__)

DECLINED_STATUS_CODES = frozenset({520, 523})
REDIRECT_STATUS_CODES = frozenset({301, 302})
RATE_LIMITED = 429


class WaybackClient:
    """Speak the archive.org availability / save / status protocol."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        api: str | None = None,
        archive_root: str | None = None,
        cookie: str | None = None,
        timeout: float | None = None,
        retry_delay: float | None = None,
        poll_attempts: int | None = None,
        poll_initial_delay: float = 1.0,
        poll_max_delay: float | None = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = settings.user_agent
        self._session = session
        self.api = (api or settings.archive_api).rstrip("/")
        self.archive_root = (archive_root or settings.archive_root).rstrip("/")
        self._cookie = settings.archive_cookie if cookie is None else cookie
        self._timeout = settings.request_timeout if timeout is None else timeout
        self._retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self._poll_attempts = poll_attempts or settings.pending_poll_attempts
        self._poll_initial_delay = poll_initial_delay
        self._poll_max_delay = settings.pending_poll_max_delay if poll_max_delay is None else poll_max_delay
        self._sleep = sleep

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def resolve(
        self,
        url: str,
        *,
        attempts: int = 1,
        snapshot_first: bool = False,
        cancel: threading.Event | None = None,
    ) -> ResolvedSnapshot:
        """Return the snapshot for *url*, capturing the page if necessary.

        ``attempts`` is the server's retry budget; ``0`` and ``1`` both mean a
        single try.  Declines and failed jobs are raised immediately, transient
        failures are raised as :class:`RetriesExhausted` once the budget is
        spent.
        """
        snapshot_url = call_with_retry(
            lambda: self._resolve_once(url, snapshot_first, cancel),
            attempts=attempts,
            wait=fixed_delay(self._retry_delay),
            cancel=cancel,
            sleep=self._sleep,
            label=f"archive {url}",
        )
        if snapshot_url.startswith("http://"):
            snapshot_url = "https://" + snapshot_url[len("http://"):]
        return ResolvedSnapshot(url=snapshot_url, domain=get_domain_name(snapshot_url))

    def check_available(self, url: str) -> Optional[str]:
        """Return the closest existing snapshot URL, or ``None``."""
        data = self._get_json(f"{self.api}/wayback/available", {"url": url}, "wayback")
        closest = (data.get("archived_snapshots") or {}).get("closest") or {}
        if closest.get("available") is False:
            return None
        return closest.get("url") or None

    def request_snapshot(self, url: str, cancel: threading.Event | None = None) -> str:
        """Ask archive.org to capture *url* and wait for the job to finish."""
        params = {"capture_all": "1", "url": url}
        try:
            resp = self._session.post(
                f"{self.api}/save/",
                params=params,
                data=params,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Cookie": self._cookie,
                },
                allow_redirects=False,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise RetryableTransportError(f"error calling archive.org: {exc}") from exc

        if resp.status_code in REDIRECT_STATUS_CODES:
            location = resp.headers.get("Location")
            if not location:
                raise ProtocolError("archive.org did not reply with a location header")
            # archive.org sometimes answers with a path only
            return urljoin(self.archive_root + "/", location)
        if resp.status_code in DECLINED_STATUS_CODES:
            raise NonRetryableDeclined(resp.status_code)
        if resp.status_code == RATE_LIMITED:
            raise RateLimited("save")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        job_id = body.get("job_id") if isinstance(body, dict) else None
        if not job_id:
            message = (body.get("message") if isinstance(body, dict) else None) or resp.text
            raise ProtocolError(f"archive.org did not respond with a job_id: {message}")

        logger.debug(f"archive.org accepted capture of {url} as job {job_id}")
        return self.wait_for_job(job_id, url, cancel)

    def wait_for_job(self, job_id: str, url: str, cancel: threading.Event | None = None) -> str:
        try:
            status = call_with_retry(
                lambda: self._poll_once(job_id),
                attempts=self._poll_attempts,
                wait=backoff_delay(self._poll_initial_delay, self._poll_max_delay),
                cancel=cancel,
                sleep=self._sleep,
                label=f"job {job_id}",
            )
        except RetriesExhausted as exc:
            last = exc.last_error
            if isinstance(last, RetryableTransportError) and not isinstance(last, JobStillPending):
                # the status endpoint itself kept failing
                raise last from None
            # Still pending after the poll budget; let the outer loop decide.
            raise JobStillPending(job_id) from exc

        timestamp = status.get("timestamp")
        if not timestamp:
            raise ProtocolError(f"archive.org job {job_id} succeeded without a timestamp")
        # Snapshot URLs are predictable, no need for another round-trip.
        return f"{self.archive_root}/{timestamp}/{url}"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_once(self, url: str, snapshot_first: bool, cancel: threading.Event | None) -> str:
        if not snapshot_first:
            closest = self.check_available(url)
            if closest:
                logger.debug(f"existing snapshot for {url}: {closest}")
                return closest
        return self.request_snapshot(url, cancel)

    def _poll_once(self, job_id: str) -> dict:
        status = self._get_json(f"{self.api}/save/status/{job_id}", None, "status")
        state = status.get("status")
        if state == "pending":
            raise JobStillPending(job_id)
        if state != "success":
            raise JobFailed(job_id, str(state), status.get("message") or status.get("status_ext"))
        return status

    def _get_json(self, url: str, params: dict | None, endpoint: str) -> dict:
        try:
            resp = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise RetryableTransportError(f"error calling archive.org {endpoint} api: {exc}") from exc
        if resp.status_code == RATE_LIMITED:
            raise RateLimited(endpoint)
        if not resp.ok:
            raise RetryableTransportError(f"archive.org {endpoint} api returned http {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProtocolError(f"error unmarshalling json from {endpoint} api: {resp.text[:200]}") from exc
        if not isinstance(data, dict):
            raise ProtocolError(f"unexpected {endpoint} api payload: {data!r}")
        return data
