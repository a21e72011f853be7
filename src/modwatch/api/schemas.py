"""Request and response bodies of the moderation queue and statistics API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modwatch.datatypes.flag_datatypes import FlagType, QueueAction


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploaderModel(BaseModel):
    id: str
    username: Optional[str] = None
    avatar: Optional[str] = None


class ArtworkModel(BaseModel):
    id: str
    title: Optional[str] = None
    published: bool
    user: Optional[UploaderModel] = None


class FlagModel(_CamelModel):
    id: str
    artwork_id: Optional[str] = Field(default=None, alias="artworkId")
    message_id: Optional[str] = Field(default=None, alias="messageId")
    content: str
    flag_type: FlagType = Field(alias="flagType")
    severity: float = Field(ge=0.0, le=1.0)
    api_response: Dict[str, Any] = Field(default_factory=dict, alias="apiResponse")
    resolved: bool
    resolved_by: Optional[str] = Field(default=None, alias="resolvedBy")
    resolved_at: Optional[str] = Field(default=None, alias="resolvedAt")
    created_at: str = Field(alias="createdAt")
    artwork: Optional[ArtworkModel] = None


class PaginationModel(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class QueueListResponse(BaseModel):
    flags: List[FlagModel]
    pagination: PaginationModel


class QueueActionRequest(_CamelModel):
    flag_id: Optional[str] = Field(default=None, alias="flagId")
    action: Optional[str] = None


class QueueActionResponse(BaseModel):
    success: bool = True
    action: QueueAction


class ErrorResponse(BaseModel):
    error: str


class CurrentGuildModel(_CamelModel):
    name: str
    icon: Optional[str] = None
    member_count: int = Field(alias="memberCount")
    online_count: int = Field(alias="onlineCount")
    messages_per_minute: float = Field(alias="messagesPerMinute")


class StatsSummaryModel(_CamelModel):
    average_online: int = Field(alias="averageOnline")
    total_messages_24h: int = Field(alias="totalMessages24h")
    peak_online: int = Field(alias="peakOnline")


class ModerationSummaryModel(BaseModel):
    last24h: Dict[str, int]


class HistoryPointModel(_CamelModel):
    timestamp: str
    member_count: int = Field(alias="memberCount")
    online_count: int = Field(alias="onlineCount")
    message_count: int = Field(alias="messageCount")


class StatsResponse(BaseModel):
    current: CurrentGuildModel
    stats: StatsSummaryModel
    moderation: ModerationSummaryModel
    history: List[HistoryPointModel]
