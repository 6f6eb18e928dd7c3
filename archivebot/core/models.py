from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArchiveRecord(SQLModel, table=True):
    """One request URL and the snapshot it resolved to (if any)."""

    id: uuid.UUID | None = Field(default_factory=uuid.uuid4, primary_key=True)
    group_id: uuid.UUID = Field(default_factory=uuid.uuid4, index=True)

    origin_server_id: str = Field(default="", index=True)
    origin_server_name: str = ""

    request_url: str = Field(index=True)
    request_domain: str = Field(default="", index=True)
    response_url: str = ""
    response_domain: str = Field(default="", index=True)

    from_cache: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def resolved(self) -> bool:
        return bool(self.response_url)


class ServerConfig(SQLModel, table=True):
    """Per-server settings. ``None`` means unset; see ``server_settings.DEFAULTS``."""

    server_id: str = Field(primary_key=True)
    name: str = ""

    archive_enabled: Optional[bool] = None
    always_snapshot_first: Optional[bool] = None
    show_details: Optional[bool] = None
    remove_retry: Optional[bool] = None
    retry_attempts: Optional[int] = None
    remove_retries_delay: Optional[int] = None
    utc_offset: Optional[int] = None
    utc_sign: Optional[str] = None

    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Transient values passed through the pipeline
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class RetryPolicy:
    attempts: int = 1
    always_snapshot_first: bool = False


@dataclass(slots=True)
class BatchRequest:
    urls: List[str]
    fresh_snapshot_requested: bool = False
    server_id: str = ""
    server_name: str = ""


@dataclass(slots=True, frozen=True)
class ResolvedSnapshot:
    url: str
    domain: str


@dataclass(slots=True)
class SnapshotHistory:
    first_timestamp: datetime
    last_timestamp: datetime
    first_ts: str
    last_ts: str
    years: Dict[str, List[int]] = field(default_factory=dict)

    @property
    def total_snapshots(self) -> int:
        # each year holds 12 monthly counts
        return sum(sum(months) for months in self.years.values())


@dataclass(slots=True)
class BatchResult:
    records: List[ArchiveRecord]
    errors: List[Optional[Exception]]
    histories: List[Optional[SnapshotHistory]]

    @property
    def url_count(self) -> int:
        return len(self.records)

    @property
    def resolved_count(self) -> int:
        return sum(1 for r in self.records if r.resolved)

    @property
    def no_links_resolved(self) -> bool:
        return self.url_count > 0 and self.resolved_count == 0
