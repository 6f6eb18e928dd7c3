from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from archivebot.infra.repositories.base import AbstractRepository


@dataclass(slots=True)
class BotStats:
    archive_requests: int = 0
    calls_to_archive_org: int = 0
    urls_archived: int = 0
    top_domains: str = "none"
    servers_configured: int = 0


@dataclass(frozen=True)
class StatField:
    attr: str
    label: str
    inline: bool = True
    global_only: bool = False


# Display order of the stats reply
STAT_FIELDS: Tuple[StatField, ...] = (
    StatField("archive_requests", "Times the bot has been called"),
    StatField("calls_to_archive_org", "Calls to Archive.org"),
    StatField("urls_archived", "URLs Archived"),
    StatField("top_domains", "Top 5 Domains", inline=False),
    StatField("servers_configured", "Configured servers", global_only=True),
)


def _format_top_domains(domains: List[Tuple[str, int]]) -> str:
    lines = [f"{domain}: {count}" for domain, count in domains[:5] if domain]
    return "\n".join(lines) if lines else "none"


def collect_stats(repo: AbstractRepository, server_id: Optional[str] = None) -> BotStats:
    """Usage numbers for one server, or for every server when *server_id* is None."""
    return BotStats(
        archive_requests=repo.count_batches(server_id),
        calls_to_archive_org=repo.count_records(server_id, from_cache=False),
        urls_archived=repo.count_records(server_id),
        top_domains=_format_top_domains(repo.top_domains(server_id, limit=5)),
        servers_configured=repo.count_server_configs() if server_id is None else 0,
    )


def to_display_fields(stats: BotStats, global_view: bool) -> List[dict]:
    return [
        {"name": f.label, "value": str(getattr(stats, f.attr)), "inline": f.inline}
        for f in STAT_FIELDS
        if global_view or not f.global_only
    ]
