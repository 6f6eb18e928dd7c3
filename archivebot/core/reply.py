from __future__ import annotations

"""Turn a :class:`BatchResult` into platform-neutral reply items.

A chat adapter renders each item as one embed/card; nothing here knows about
a particular chat platform.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from archivebot.core import server_settings
from archivebot.core.models import BatchResult, ServerConfig, SnapshotHistory
from archivebot.core.orchestrator import RATE_LIMIT_HINT
from archivebot.core.sparkline import project
from archivebot.settings import settings

REPLY_TITLE = "🏛️ Archive.org Snapshot"
REPLY_FOOTER = "⚙️ Customize this message with /settings"
DETAILS_UNAVAILABLE = (
    "Snapshot details are not currently available, "
    "most of the time this is because the link was just archived."
)
RFC1123Z = "%a, %d %b %Y %H:%M:%S %z"


@dataclass(slots=True)
class ReplyField:
    name: str
    value: str
    inline: bool = False


@dataclass(slots=True)
class ReplyItem:
    title: str
    description: str
    url: Optional[str] = None
    fields: List[ReplyField] = field(default_factory=list)
    footer: Optional[str] = None


def _detail_fields(history: SnapshotHistory, original_url: str, config: ServerConfig | None,
                   now: datetime) -> List[ReplyField]:
    root = settings.archive_root.rstrip("/")
    sign = server_settings.resolve(config, "utc_sign")
    offset = int(server_settings.resolve(config, "utc_offset"))
    oldest = project(history.first_timestamp, sign, offset).strftime(RFC1123Z)
    newest = project(history.last_timestamp, sign, offset).strftime(RFC1123Z)
    return [
        ReplyField("Oldest Archived Copy", f"[{oldest}]({root}/{history.first_ts}/{original_url})", inline=True),
        ReplyField("Newest Archived Copy", f"[{newest}]({root}/{history.last_ts}/{original_url})", inline=True),
        ReplyField(
            "Total Number of Snapshots",
            f"[{history.total_snapshots}]({root}/{now.year}0000000000*/{original_url})",
        ),
    ]


def build_reply(result: BatchResult, config: ServerConfig | None = None,
                now: datetime | None = None) -> List[ReplyItem]:
    """One item per input URL, or a single hint when nothing resolved."""
    if result.no_links_resolved:
        return [ReplyItem(title=REPLY_TITLE, description=RATE_LIMIT_HINT)]

    now = now or datetime.now(timezone.utc)
    show_details = bool(server_settings.resolve(config, "show_details"))
    items: List[ReplyItem] = []
    for record, error, history in zip(result.records, result.errors, result.histories):
        item = ReplyItem(
            title=REPLY_TITLE,
            description=record.response_url or f"Error: {error}",
            url=record.request_url,
            footer=REPLY_FOOTER,
        )
        if record.resolved and show_details:
            if history is None:
                item.fields = [ReplyField("Details", DETAILS_UNAVAILABLE)]
            else:
                item.fields = _detail_fields(history, record.request_url, config, now)
        items.append(item)
    return items
