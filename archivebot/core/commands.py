from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from archivebot.core import server_settings
from archivebot.core.errors import NoUrlsFound, PersistenceError
from archivebot.core.models import BatchRequest, BatchResult, ServerConfig
from archivebot.core.orchestrator import ArchiveOrchestrator
from archivebot.core.reply import ReplyItem, build_reply
from archivebot.core.stats import collect_stats, to_display_fields
from archivebot.core.url_extractor import (
    is_archive_link,
    original_url_from_archive_link,
    require_urls,
    with_trailing_slash,
)
from archivebot.infra.repositories.base import AbstractRepository

logger = logging.getLogger(__name__)

HELP_TEXT = """**Usage**
React to a message that has links with 🏛 (the "classical building" emoji) and the bot will \
respond with an archive.org link for the link(s). It saves the page to archive.org if needed.
You can also use "Get snapshots" on a message to get snapshots only you can see.

Configure the bot: `/settings`
Get a snapshot for one URL: `/archive`
Get stats for the bot: `/stats`
Get this help message: `/help`"""
HELP_FOOTER = (
    "It can take up to a few minutes for archive.org to save a page, "
    "so if you don't get a link immediately, please be patient."
)
NO_URLS_MESSAGE = "I couldn't find any links in that message."
DISABLED_MESSAGE = "Archiving is disabled on this server."
NO_ORIGINAL_MESSAGE = "I couldn't find the original link in that reply."


class CommandKind(str, enum.Enum):
    archive = "archive"
    retry = "retry"
    stats = "stats"
    settings = "settings"
    help = "help"


@dataclass
class CommandContext:
    repo: AbstractRepository
    orchestrator: ArchiveOrchestrator
    server_id: str = ""
    server_name: str = ""
    user_id: str = ""
    text: str = ""
    fresh: bool = False
    cancel: Optional[threading.Event] = None


@dataclass
class CommandResult:
    kind: CommandKind
    message: Optional[str] = None
    items: List[ReplyItem] = field(default_factory=list)
    fields: List[dict] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)
    resolved: int = 0
    submitted: int = 0
    persisted: bool = False


def _config(ctx: CommandContext) -> ServerConfig:
    return server_settings.get_or_default(ctx.repo, ctx.server_id, ctx.server_name)


def _finish(ctx: CommandContext, kind: CommandKind, result: BatchResult, config: ServerConfig) -> CommandResult:
    persisted = True
    try:
        ctx.orchestrator.persist(result)
    except PersistenceError as exc:
        # the reply still goes out
        logger.error(str(exc))
        persisted = False
    return CommandResult(
        kind=kind,
        items=build_reply(result, config),
        resolved=result.resolved_count,
        submitted=result.url_count,
        persisted=persisted,
    )


def handle_archive(ctx: CommandContext) -> CommandResult:
    config = _config(ctx)
    if not server_settings.resolve(config, "archive_enabled"):
        logger.info("URLs were not archived because archiving is not enabled")
        return CommandResult(kind=CommandKind.archive, message=DISABLED_MESSAGE)
    try:
        result = ctx.orchestrator.archive_text(
            ctx.text,
            server_settings.retry_policy(config),
            fresh=ctx.fresh,
            server_id=ctx.server_id,
            server_name=ctx.server_name,
            cancel=ctx.cancel,
        )
    except NoUrlsFound:
        return CommandResult(kind=CommandKind.archive, message=NO_URLS_MESSAGE)
    return _finish(ctx, CommandKind.archive, result, config)


def handle_retry(ctx: CommandContext) -> CommandResult:
    """Take a new snapshot of the URL behind a previously sent reply."""
    config = _config(ctx)
    if not server_settings.resolve(config, "archive_enabled"):
        return CommandResult(kind=CommandKind.retry, message=DISABLED_MESSAGE)
    if is_archive_link(ctx.text):
        original = original_url_from_archive_link(ctx.text)
        if original is None:
            return CommandResult(kind=CommandKind.retry, message=NO_ORIGINAL_MESSAGE)
        urls = [original]
    else:
        try:
            urls = [with_trailing_slash(url) for url in require_urls(ctx.text)]
        except NoUrlsFound:
            return CommandResult(kind=CommandKind.retry, message=NO_URLS_MESSAGE)
    request = BatchRequest(
        urls=urls,
        fresh_snapshot_requested=True,
        server_id=ctx.server_id,
        server_name=ctx.server_name,
    )
    result = ctx.orchestrator.run(request, server_settings.retry_policy(config), ctx.cancel)
    return _finish(ctx, CommandKind.retry, result, config)


def handle_stats(ctx: CommandContext) -> CommandResult:
    global_view = not ctx.server_id
    stats = collect_stats(ctx.repo, None if global_view else ctx.server_id)
    return CommandResult(kind=CommandKind.stats, fields=to_display_fields(stats, global_view))


def handle_settings(ctx: CommandContext) -> CommandResult:
    return CommandResult(kind=CommandKind.settings, settings=server_settings.describe(_config(ctx)))


def handle_help(ctx: CommandContext) -> CommandResult:  # noqa: ARG001
    return CommandResult(kind=CommandKind.help, message=f"{HELP_TEXT}\n\n{HELP_FOOTER}")


COMMANDS: Dict[CommandKind, Callable[[CommandContext], CommandResult]] = {
    CommandKind.archive: handle_archive,
    CommandKind.retry: handle_retry,
    CommandKind.stats: handle_stats,
    CommandKind.settings: handle_settings,
    CommandKind.help: handle_help,
}


def dispatch(kind: CommandKind, ctx: CommandContext) -> CommandResult:
    return COMMANDS[kind](ctx)
