from __future__ import annotations

from fastapi import Depends

from archivebot.core.archive_client import WaybackClient
from archivebot.core.orchestrator import ArchiveOrchestrator
from archivebot.core.sparkline import SnapshotHistoryReader
from archivebot.infra.repositories.base import AbstractRepository
from archivebot.settings import settings

# Repository backend choice – SQL database or in-memory
if str(settings.database_url).startswith("memory"):
    from archivebot.infra.repositories.memory_repo import InMemoryRepository  # noqa: WPS433

    repo: AbstractRepository = InMemoryRepository()
else:
    from archivebot.infra.repositories.sql_repo import SQLRepository  # noqa: WPS433

    repo = SQLRepository()

# One HTTP session each for the whole process, shared by every request
wayback = WaybackClient()
history_reader = SnapshotHistoryReader()


def get_repo() -> AbstractRepository:
    return repo


def get_orchestrator(repo: AbstractRepository = Depends(get_repo)) -> ArchiveOrchestrator:
    return ArchiveOrchestrator(
        repo,
        client=wayback,
        history=history_reader,
        max_workers=settings.max_concurrent_archives,
    )
