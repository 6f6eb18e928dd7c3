from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from archivebot.api.deps import get_repo
from archivebot.api.schemas import ReplyFieldDTO, SettingsResponse, SettingUpdate, StatsResponse
from archivebot.core import server_settings
from archivebot.core.errors import InvalidSetting
from archivebot.core.stats import collect_stats, to_display_fields
from archivebot.infra.repositories.base import AbstractRepository

router = APIRouter(prefix="/api/v1", tags=["servers"])


@router.get("/servers/{server_id}/settings", response_model=SettingsResponse)
def get_settings(server_id: str, repo: AbstractRepository = Depends(get_repo)) -> SettingsResponse:  # noqa: D401
    config = repo.get_server_config(server_id)
    return SettingsResponse(server_id=server_id, settings=server_settings.describe(config))


@router.put("/servers/{server_id}/settings/{kind}", response_model=SettingsResponse)
def update_setting(  # noqa: D401
    server_id: str,
    kind: str,
    body: SettingUpdate,
    repo: AbstractRepository = Depends(get_repo),
) -> SettingsResponse:
    try:
        setting = server_settings.SettingKind(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown setting: {kind}")
    if not server_settings.is_administrator(body.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can change settings")

    try:
        config = server_settings.apply_setting(repo, server_id, setting, body.value)
    except InvalidSetting as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return SettingsResponse(server_id=server_id, settings=server_settings.describe(config))


@router.get("/stats", response_model=StatsResponse)
def global_stats(repo: AbstractRepository = Depends(get_repo)) -> StatsResponse:  # noqa: D401
    fields = to_display_fields(collect_stats(repo), global_view=True)
    return StatsResponse(fields=[ReplyFieldDTO(**f) for f in fields])


@router.get("/servers/{server_id}/stats", response_model=StatsResponse)
def server_stats(server_id: str, repo: AbstractRepository = Depends(get_repo)) -> StatsResponse:  # noqa: D401
    fields = to_display_fields(collect_stats(repo, server_id), global_view=False)
    return StatsResponse(fields=[ReplyFieldDTO(**f) for f in fields])
