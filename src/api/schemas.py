from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.components.views import RecordReason


# --- Recording ---
class RecordViewRequest(BaseModel):
    content_id: UUID
    creator_id: UUID | None = None


class RecordViewResponse(BaseModel):
    ok: bool
    reason: RecordReason
    viewed_at: datetime | None = None


# --- Queries ---
class ViewCountResponse(BaseModel):
    content_id: UUID
    count: int


class ViewStatusResponse(BaseModel):
    content_id: UUID
    has_viewed: bool
    viewed_at: datetime | None = None


class ContentSummaryModel(BaseModel):
    id: UUID
    title: str
    type: str
    creator_id: UUID | None = None
    price: float | None = None
    url: str | None = None
    thumbnail_url: str | None = None


class CreatorSummaryModel(BaseModel):
    id: UUID
    name: str
    photo_url: str | None = None


class ViewHistoryItemModel(BaseModel):
    content_id: UUID
    viewed_at: datetime
    content: ContentSummaryModel | None = None
    creator: CreatorSummaryModel | None = None


class ViewHistoryResponse(BaseModel):
    items: list[ViewHistoryItemModel] = Field(default_factory=list)
