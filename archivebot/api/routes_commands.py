from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from archivebot.api.deps import get_orchestrator, get_repo
from archivebot.api.schemas import CommandRequest, CommandResponse
from archivebot.core.commands import CommandContext, CommandKind, dispatch
from archivebot.core.orchestrator import ArchiveOrchestrator
from archivebot.infra.repositories.base import AbstractRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["commands"])


@router.post("/commands/{kind}", response_model=CommandResponse)
def run_command(  # noqa: D401
    kind: str,
    req: CommandRequest,
    repo: AbstractRepository = Depends(get_repo),
    orchestrator: ArchiveOrchestrator = Depends(get_orchestrator),
) -> CommandResponse:
    """Run a bot command on behalf of a chat adapter and return the reply data.

    Declared sync so the blocking archive.org calls run in the threadpool.
    """
    try:
        command = CommandKind(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown command: {kind}")

    logger.info(f"{command.value} called by {req.user_id or 'unknown user'} on server {req.server_id or '-'}")
    ctx = CommandContext(
        repo=repo,
        orchestrator=orchestrator,
        server_id=req.server_id,
        server_name=req.server_name,
        user_id=req.user_id,
        text=req.text,
        fresh=req.fresh,
    )
    result = dispatch(command, ctx)
    return CommandResponse.model_validate(result)
