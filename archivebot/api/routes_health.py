from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from archivebot.api.deps import get_repo
from archivebot.infra.repositories.base import AbstractRepository

router = APIRouter(tags=["health"])


@router.get("/healthcheck", response_class=PlainTextResponse, include_in_schema=False)
def healthcheck(repo: AbstractRepository = Depends(get_repo)) -> PlainTextResponse:  # noqa: D401
    try:
        repo.ping()
    except SQLAlchemyError as exc:
        return PlainTextResponse(f"Error pinging db: {exc}", status_code=500)
    return PlainTextResponse("Healthy")
