from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from archivebot.core.commands import CommandKind


class CommandRequest(BaseModel):
    server_id: str = ""
    server_name: str = ""
    user_id: str = ""
    text: str = ""
    fresh: bool = False


class ReplyFieldDTO(BaseModel):
    name: str
    value: str
    inline: bool = False

    model_config = ConfigDict(from_attributes=True)


class ReplyItemDTO(BaseModel):
    title: str
    description: str
    url: Optional[str] = None
    fields: List[ReplyFieldDTO] = Field(default_factory=list)
    footer: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CommandResponse(BaseModel):
    kind: CommandKind
    message: Optional[str] = None
    items: List[ReplyItemDTO] = Field(default_factory=list)
    fields: List[ReplyFieldDTO] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    resolved: int = 0
    submitted: int = 0
    persisted: bool = False

    model_config = ConfigDict(from_attributes=True)


class SettingUpdate(BaseModel):
    user_id: str
    value: Any


class SettingsResponse(BaseModel):
    server_id: str
    settings: Dict[str, Any]


class StatsResponse(BaseModel):
    fields: List[ReplyFieldDTO]
