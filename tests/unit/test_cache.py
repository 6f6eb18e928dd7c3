from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from archivebot.core.cache import ArchiveCache
from archivebot.core.models import ArchiveRecord

URL = "https://www.example.com/a"


def _stored(response_url: str, *, from_cache: bool = False, age: int = 0) -> ArchiveRecord:
    return ArchiveRecord(
        request_url=URL,
        request_domain="example.com",
        response_url=response_url,
        response_domain="web.archive.org" if response_url else "",
        from_cache=from_cache,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) - timedelta(days=age),
    )


def test_miss_returns_unresolved_stub(memory_repo):
    group = uuid.uuid4()
    record = ArchiveCache(memory_repo).lookup(URL, group_id=group, server_id="s1", server_name="Guild")

    assert record.group_id == group
    assert record.request_domain == "example.com"
    assert record.origin_server_id == "s1"
    assert not record.resolved
    assert not record.from_cache


def test_hit_copies_latest_resolved_snapshot(memory_repo):
    memory_repo.add_records([
        _stored("https://web.archive.org/web/old/x", age=10),
        _stored("https://web.archive.org/web/new/x", age=1),
        _stored(""),
    ])

    record = ArchiveCache(memory_repo).lookup(URL, group_id=uuid.uuid4())

    assert record.from_cache
    assert record.response_url == "https://web.archive.org/web/new/x"
    assert record.response_domain == "web.archive.org"


def test_cached_rows_are_never_a_cache_source(memory_repo):
    memory_repo.add_records([_stored("https://web.archive.org/web/1/x", from_cache=True)])

    record = ArchiveCache(memory_repo).lookup(URL, group_id=uuid.uuid4())

    assert not record.from_cache
    assert not record.resolved


def test_fresh_request_bypasses_cache(memory_repo):
    memory_repo.add_records([_stored("https://web.archive.org/web/1/x")])

    record = ArchiveCache(memory_repo).lookup(URL, True, group_id=uuid.uuid4())

    assert not record.from_cache
    assert not record.resolved


def test_unparseable_domain_is_left_empty(memory_repo):
    record = ArchiveCache(memory_repo).lookup("https://", group_id=uuid.uuid4())
    assert record.request_domain == ""
