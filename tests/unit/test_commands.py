from __future__ import annotations

from archivebot.core import commands
from archivebot.core.commands import CommandContext, CommandKind, dispatch
from archivebot.core.models import ServerConfig


def _ctx(memory_repo, orchestrator, **kwargs):
    return CommandContext(repo=memory_repo, orchestrator=orchestrator, server_id="s1", server_name="Guild", **kwargs)


def test_archive_replies_and_persists(memory_repo, orchestrator):
    result = dispatch(CommandKind.archive, _ctx(memory_repo, orchestrator, text="see https://a.com/ and https://fail.com/"))

    assert result.submitted == 2
    assert result.resolved == 1
    assert result.persisted
    assert len(result.items) == 2
    stored = memory_repo.list_records()
    assert len(stored) == 2
    assert {r.origin_server_name for r in stored} == {"Guild"}


def test_archive_uses_cache_on_second_request(memory_repo, orchestrator, stub_wayback):
    ctx = _ctx(memory_repo, orchestrator, text="https://a.com/")
    dispatch(CommandKind.archive, ctx)
    dispatch(CommandKind.archive, ctx)

    assert len(stub_wayback.calls) == 1
    assert [r.from_cache for r in memory_repo.list_records()] == [False, True]


def test_archive_without_links(memory_repo, orchestrator):
    result = dispatch(CommandKind.archive, _ctx(memory_repo, orchestrator, text="no links"))
    assert result.message == commands.NO_URLS_MESSAGE
    assert memory_repo.list_records() == []


def test_archive_disabled(memory_repo, orchestrator, stub_wayback):
    memory_repo.save_server_config(ServerConfig(server_id="s1", archive_enabled=False))
    result = dispatch(CommandKind.archive, _ctx(memory_repo, orchestrator, text="https://a.com/"))
    assert result.message == commands.DISABLED_MESSAGE
    assert stub_wayback.calls == []


def test_archive_uses_server_retry_budget(memory_repo, orchestrator, stub_wayback):
    memory_repo.save_server_config(ServerConfig(server_id="s1", retry_attempts=4))
    dispatch(CommandKind.archive, _ctx(memory_repo, orchestrator, text="https://a.com/"))
    assert stub_wayback.calls == [("https://a.com/", 4, False)]


def test_retry_snapshots_original_url(memory_repo, orchestrator, stub_wayback):
    link = "https://web.archive.org/web/20200101000000/https://a.com/page"
    result = dispatch(CommandKind.retry, _ctx(memory_repo, orchestrator, text=link))

    assert stub_wayback.calls == [("https://a.com/page", 1, True)]
    assert result.resolved == 1


def test_retry_with_nested_archive_link(memory_repo, orchestrator, stub_wayback):
    link = "https://web.archive.org/web/2023/https://web.archive.org/web/2022/https://a.com"
    result = dispatch(CommandKind.retry, _ctx(memory_repo, orchestrator, text=link))
    assert result.message == commands.NO_ORIGINAL_MESSAGE
    assert stub_wayback.calls == []


def test_retry_falls_back_to_plain_links(memory_repo, orchestrator, stub_wayback):
    text = "try https://a.com/page and https://b.com/"
    result = dispatch(CommandKind.retry, _ctx(memory_repo, orchestrator, text=text))

    assert stub_wayback.calls == [("https://a.com/page/", 1, True), ("https://b.com/", 1, True)]
    assert result.submitted == 2


def test_retry_without_any_link(memory_repo, orchestrator):
    result = dispatch(CommandKind.retry, _ctx(memory_repo, orchestrator, text="nothing"))
    assert result.message == commands.NO_URLS_MESSAGE


def test_stats_and_settings(memory_repo, orchestrator):
    dispatch(CommandKind.archive, _ctx(memory_repo, orchestrator, text="https://a.com/"))

    stats = dispatch(CommandKind.stats, _ctx(memory_repo, orchestrator))
    assert stats.fields[0] == {"name": "Times the bot has been called", "value": "1", "inline": True}

    overall = dispatch(CommandKind.stats, CommandContext(repo=memory_repo, orchestrator=orchestrator))
    assert overall.fields[-1]["name"] == "Configured servers"

    described = dispatch(CommandKind.settings, _ctx(memory_repo, orchestrator))
    assert described.settings["retries"] == 1


def test_help(memory_repo, orchestrator):
    result = dispatch(CommandKind.help, _ctx(memory_repo, orchestrator))
    assert "/archive" in result.message
    assert result.message.endswith(commands.HELP_FOOTER)
