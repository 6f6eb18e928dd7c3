from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from archivebot.core import models
from archivebot.infra.repositories.base import AbstractRepository
from archivebot.settings import settings

logger = logging.getLogger(__name__)


class SQLRepository(AbstractRepository):
    """SQLModel-powered repository supporting SQLite/Postgres."""

    def __init__(self, database_url: str | None = None) -> None:
        db_url = database_url or str(settings.database_url)
        kwargs: dict = {}
        if db_url.startswith("sqlite"):
            if ":memory:" in db_url or db_url.rstrip("/") == "sqlite:":
                # a single shared connection, otherwise every thread sees an empty db
                kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
            else:
                # sqlite:///absolute/path OR sqlite:///./relative/path
                file_path = urlparse(db_url).path
                if file_path:
                    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
                kwargs = {"connect_args": {"check_same_thread": False}}

        self.engine = create_engine(db_url, echo=False, **kwargs)
        SQLModel.metadata.create_all(self.engine)

    def _session(self) -> Session:  # context manager alias
        return Session(self.engine, expire_on_commit=False)

    # ArchiveRecord
    def find_latest_resolved(self, url: str) -> models.ArchiveRecord | None:  # noqa: D401
        with self._session() as session:
            statement = (
                select(models.ArchiveRecord)
                .where(models.ArchiveRecord.request_url == url)
                .where(models.ArchiveRecord.from_cache == False)  # noqa: E712
                .where(models.ArchiveRecord.response_url != "")
                .where(models.ArchiveRecord.response_domain != "")
                .order_by(models.ArchiveRecord.created_at.desc())
            )
            return session.exec(statement).first()

    def add_records(self, records: Iterable[models.ArchiveRecord]) -> int:
        to_add = list(records)
        with self._session() as session:
            try:
                session.add_all(to_add)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error(f"failed to insert {len(to_add)} archive records: {exc}")
                return 0
        return len(to_add)

    def list_records(self, group_id: uuid.UUID | None = None) -> List[models.ArchiveRecord]:
        with self._session() as session:
            stmt = select(models.ArchiveRecord)
            if group_id is not None:
                stmt = stmt.where(models.ArchiveRecord.group_id == group_id)
            return list(session.exec(stmt.order_by(models.ArchiveRecord.created_at)).all())

    # Stats
    @staticmethod
    def _scope(stmt, server_id: Optional[str]):  # noqa: ANN001
        if server_id is None:
            return stmt
        return stmt.where(models.ArchiveRecord.origin_server_id == server_id)

    def count_records(self, server_id: Optional[str] = None, from_cache: Optional[bool] = None) -> int:
        with self._session() as session:
            stmt = self._scope(select(func.count()).select_from(models.ArchiveRecord), server_id)
            if from_cache is not None:
                stmt = stmt.where(models.ArchiveRecord.from_cache == from_cache)
            return session.exec(stmt).one()

    def count_batches(self, server_id: Optional[str] = None) -> int:
        with self._session() as session:
            stmt = select(func.count(func.distinct(models.ArchiveRecord.group_id))).select_from(models.ArchiveRecord)
            return session.exec(self._scope(stmt, server_id)).one()

    def top_domains(self, server_id: Optional[str] = None, limit: int = 5) -> List[Tuple[str, int]]:
        count = func.count(models.ArchiveRecord.request_domain).label("count")
        with self._session() as session:
            stmt = self._scope(select(models.ArchiveRecord.request_domain, count), server_id)
            stmt = stmt.group_by(models.ArchiveRecord.request_domain).order_by(count.desc()).limit(limit)
            return [(domain, n) for domain, n in session.exec(stmt).all()]

    # ServerConfig
    def get_server_config(self, server_id: str) -> models.ServerConfig | None:
        with self._session() as session:
            return session.get(models.ServerConfig, server_id)

    def save_server_config(self, config: models.ServerConfig) -> None:
        with self._session() as session:
            session.merge(config)
            session.commit()

    def count_server_configs(self) -> int:
        with self._session() as session:
            return session.exec(select(func.count()).select_from(models.ServerConfig)).one()

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
