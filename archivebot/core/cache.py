from __future__ import annotations

import logging
import uuid

from archivebot.core.errors import LookupFailed
from archivebot.core.models import ArchiveRecord
from archivebot.core.url_extractor import get_domain_name
from archivebot.infra.repositories.base import AbstractRepository

logger = logging.getLogger(__name__)


class ArchiveCache:
    """Decide per URL whether a previously stored snapshot can be reused.

    Only records that archive.org resolved directly are considered, so a cache
    hit is never derived from another cache hit.  This class only reads from
    the repository; it never talks to the network.
    """

    def __init__(self, repo: AbstractRepository) -> None:
        self._repo = repo

    def lookup(
        self,
        url: str,
        fresh_required: bool = False,
        *,
        group_id: uuid.UUID,
        server_id: str = "",
        server_name: str = "",
    ) -> ArchiveRecord:
        try:
            request_domain = get_domain_name(url)
        except LookupFailed as exc:
            logger.error(str(exc))
            request_domain = ""

        record = ArchiveRecord(
            group_id=group_id,
            origin_server_id=server_id,
            origin_server_name=server_name,
            request_url=url,
            request_domain=request_domain,
        )
        if fresh_required:
            logger.debug(f"fresh snapshot requested, skipping cache for {url}")
            return record

        cached = self._repo.find_latest_resolved(url)
        if cached is None:
            logger.debug(f"url was not cached: {url}")
            return record

        logger.debug(f"url was already cached: {url}")
        record.response_url = cached.response_url
        record.response_domain = cached.response_domain
        record.from_cache = True
        return record
