from __future__ import annotations

import uuid

from archivebot.core.models import ArchiveRecord, ServerConfig
from archivebot.core.stats import BotStats, collect_stats, to_display_fields


def _record(server_id, url, group, from_cache=False):
    return ArchiveRecord(
        group_id=group,
        origin_server_id=server_id,
        request_url=url,
        request_domain=url.split("/")[2],
        from_cache=from_cache,
    )


def test_collect_stats_per_server_and_global(memory_repo):
    g1, g2, g3 = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    memory_repo.add_records([
        _record("s1", "https://a.com/1", g1),
        _record("s1", "https://b.com/1", g1),
        _record("s1", "https://a.com/1", g2, from_cache=True),
        _record("s2", "https://c.com/1", g3),
    ])
    memory_repo.save_server_config(ServerConfig(server_id="s1"))

    scoped = collect_stats(memory_repo, "s1")
    assert scoped.archive_requests == 2
    assert scoped.calls_to_archive_org == 2
    assert scoped.urls_archived == 3
    assert scoped.top_domains == "a.com: 2\nb.com: 1"
    assert scoped.servers_configured == 0

    overall = collect_stats(memory_repo)
    assert overall.archive_requests == 3
    assert overall.urls_archived == 4
    assert overall.servers_configured == 1


def test_empty_repository_has_no_top_domains(memory_repo):
    assert collect_stats(memory_repo).top_domains == "none"


def test_display_fields_hide_global_only_values():
    stats = BotStats(archive_requests=1, calls_to_archive_org=2, urls_archived=3, servers_configured=4)

    scoped = to_display_fields(stats, global_view=False)
    overall = to_display_fields(stats, global_view=True)

    assert [f["name"] for f in scoped] == [
        "Times the bot has been called",
        "Calls to Archive.org",
        "URLs Archived",
        "Top 5 Domains",
    ]
    assert overall[-1] == {"name": "Configured servers", "value": "4", "inline": True}
    assert scoped[3]["inline"] is False
