from __future__ import annotations

import uuid
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from archivebot.core import models
from archivebot.infra.repositories.base import AbstractRepository


class InMemoryRepository(AbstractRepository):
    """Thread-unsafe in-memory repository for development/testing."""

    def __init__(self) -> None:
        self._records: List[models.ArchiveRecord] = []
        self._configs: Dict[str, models.ServerConfig] = {}

    # ArchiveRecord methods
    def find_latest_resolved(self, url: str) -> models.ArchiveRecord | None:
        matches = [
            r for r in self._records
            if r.request_url == url and not r.from_cache and r.response_url and r.response_domain
        ]
        if not matches:
            return None
        return max(matches, key=lambda r: r.created_at)

    def add_records(self, records: Iterable[models.ArchiveRecord]) -> int:
        added = 0
        for record in records:
            if record.id is None:
                record.id = uuid.uuid4()
            self._records.append(record)
            added += 1
        return added

    def list_records(self, group_id: uuid.UUID | None = None) -> List[models.ArchiveRecord]:
        if group_id is None:
            return list(self._records)
        return [r for r in self._records if r.group_id == group_id]

    # Stats
    def _scoped(self, server_id: Optional[str]) -> List[models.ArchiveRecord]:
        if server_id is None:
            return self._records
        return [r for r in self._records if r.origin_server_id == server_id]

    def count_records(self, server_id: Optional[str] = None, from_cache: Optional[bool] = None) -> int:
        return sum(1 for r in self._scoped(server_id) if from_cache is None or r.from_cache == from_cache)

    def count_batches(self, server_id: Optional[str] = None) -> int:
        return len({r.group_id for r in self._scoped(server_id)})

    def top_domains(self, server_id: Optional[str] = None, limit: int = 5) -> List[Tuple[str, int]]:
        counts = Counter(r.request_domain for r in self._scoped(server_id))
        return counts.most_common(limit)

    # ServerConfig methods
    def get_server_config(self, server_id: str) -> models.ServerConfig | None:
        return self._configs.get(server_id)

    def save_server_config(self, config: models.ServerConfig) -> None:
        self._configs[config.server_id] = config

    def count_server_configs(self) -> int:
        return len(self._configs)

    def ping(self) -> None:  # noqa: D401 – always reachable
        return None
