from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import requests

from archivebot.core.errors import HistoryUnavailable
from archivebot.core.models import SnapshotHistory
from archivebot.settings import settings

logger = logging.getLogger(__name__)

TIMESTAMP_LAYOUT = "%Y%m%d%H%M%S"


def parse_timestamp(value: str) -> datetime:
    """Parse a 14-digit archive.org timestamp as UTC."""
    if not value or len(value) != 14 or not value.isdigit():
        raise ValueError(f"not an archive.org timestamp: {value!r}")
    return datetime.strptime(value, TIMESTAMP_LAYOUT).replace(tzinfo=timezone.utc)


def project(moment: datetime, sign: str, offset_hours: int) -> datetime:
    """Express *moment* in a fixed ``UTC{sign}{offset_hours}`` zone."""
    factor = -1 if sign == "-" else 1
    return moment.astimezone(timezone(timedelta(hours=factor * offset_hours)))


class SnapshotHistoryReader:
    """Read the Wayback Machine sparkline (snapshot counts) for an original URL."""

    def __init__(self, session: requests.Session | None = None, *, api: str | None = None,
                 timeout: float | None = None) -> None:
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = settings.user_agent
        self._session = session
        self.api = (api or settings.archive_api).rstrip("/")
        self._timeout = settings.request_timeout if timeout is None else timeout

    def close(self) -> None:
        self._session.close()

    def read(self, url: str) -> SnapshotHistory:
        params = {"collection": "web", "output": "json", "url": url}
        try:
            resp = self._session.get(f"{self.api}/__wb/sparkline/", params=params, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise HistoryUnavailable(f"unable to get sparkline for url {url}: {exc}") from exc

        if not isinstance(data, dict):
            raise HistoryUnavailable(f"unexpected sparkline payload for url {url}")
        years = data.get("years") or {}
        first_ts = data.get("first_ts") or ""
        last_ts = data.get("last_ts") or ""
        if not years or not first_ts or not last_ts:
            raise HistoryUnavailable(f"no snapshot history for url {url}")

        try:
            first = parse_timestamp(first_ts)
            last = parse_timestamp(last_ts)
            counts = {str(year): [int(c) for c in months] for year, months in years.items()}
        except (TypeError, ValueError, AttributeError) as exc:
            raise HistoryUnavailable(f"unable to parse sparkline for url {url}: {exc}") from exc

        return SnapshotHistory(
            first_timestamp=first,
            last_timestamp=last,
            first_ts=first_ts,
            last_ts=last_ts,
            years=counts,
        )
