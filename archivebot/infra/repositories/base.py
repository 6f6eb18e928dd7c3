from __future__ import annotations

import abc
from typing import Iterable, List, Optional, Tuple

from archivebot.core import models


class AbstractRepository(abc.ABC):
    """Repository interface abstracting persistence backend."""

    # ArchiveRecord

    @abc.abstractmethod
    def find_latest_resolved(self, url: str) -> models.ArchiveRecord | None:  # noqa: D401
        """Newest record for exactly *url* that was resolved by archive.org itself.

        Records that were themselves cache hits are ignored.
        """
        ...

    @abc.abstractmethod
    def add_records(self, records: Iterable[models.ArchiveRecord]) -> int:
        """Insert a batch of records in one go and return the number of rows written."""
        ...

    @abc.abstractmethod
    def list_records(self, group_id=None) -> List[models.ArchiveRecord]:  # noqa: ANN001
        ...

    # Stats

    @abc.abstractmethod
    def count_records(self, server_id: Optional[str] = None, from_cache: Optional[bool] = None) -> int:
        ...

    @abc.abstractmethod
    def count_batches(self, server_id: Optional[str] = None) -> int:
        ...

    @abc.abstractmethod
    def top_domains(self, server_id: Optional[str] = None, limit: int = 5) -> List[Tuple[str, int]]:
        ...

    # ServerConfig

    @abc.abstractmethod
    def get_server_config(self, server_id: str) -> models.ServerConfig | None:
        ...

    @abc.abstractmethod
    def save_server_config(self, config: models.ServerConfig) -> None:
        ...

    @abc.abstractmethod
    def count_server_configs(self) -> int:
        ...

    # Health

    @abc.abstractmethod
    def ping(self) -> None:
        """Raise if the backend cannot be reached."""
        ...
