"""
View Recording API Routes.

Server side of the view tracker: the client runs signal normalization and
dwell confirmation, then posts the confirmed view here.

Key behaviors:
- Recording is idempotent per (viewer, content)
- Anonymous requests are answered with ok=false, reason=not_authenticated
- Persistence failures map to 503 so the client may retry on a later view
- Read endpoints never fail on ledger errors beyond a 503
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.deps import get_aggregator, get_current_viewer_id, get_recorder
from src.api.schemas import (
    ContentSummaryModel,
    CreatorSummaryModel,
    RecordViewRequest,
    RecordViewResponse,
    ViewCountResponse,
    ViewHistoryItemModel,
    ViewHistoryResponse,
    ViewStatusResponse,
)
from src.components.views import (
    ERROR_NOT_AUTHENTICATED,
    RecordReason,
    ViewAggregator,
    ViewError,
    ViewRecorder,
)

router = APIRouter()


def _unavailable(errors: list[ViewError]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "ok": False,
            "errors": [{"code": e.code, "message": e.message} for e in errors],
        },
    )


def _require_viewer(viewer_id: UUID | None) -> UUID:
    if viewer_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"ok": False, "errors": [{"code": ERROR_NOT_AUTHENTICATED}]},
        )
    return viewer_id


@router.post("/record", response_model=RecordViewResponse)
async def record_view(
    body: RecordViewRequest,
    viewer_id: UUID | None = Depends(get_current_viewer_id),
    recorder: ViewRecorder = Depends(get_recorder),
) -> RecordViewResponse:
    """Record a confirmed view for the current viewer."""
    result = await recorder.record(viewer_id, body.content_id, body.creator_id)

    if result.reason == RecordReason.PERSISTENCE_FAILURE:
        raise _unavailable(result.errors)

    return RecordViewResponse(
        ok=result.success,
        reason=result.reason,
        viewed_at=result.record.viewed_at if result.record else None,
    )


@router.get("/history", response_model=ViewHistoryResponse)
async def view_history(
    limit: int | None = Query(None, ge=1),
    viewer_id: UUID | None = Depends(get_current_viewer_id),
    aggregator: ViewAggregator = Depends(get_aggregator),
) -> ViewHistoryResponse:
    """Views by the current viewer, newest first."""
    result = await aggregator.list_for_viewer(_require_viewer(viewer_id), limit)
    if not result.success:
        raise _unavailable(result.errors)

    return ViewHistoryResponse(
        items=[
            ViewHistoryItemModel(
                content_id=item.record.content_id,
                viewed_at=item.record.viewed_at,
                content=(
                    ContentSummaryModel(
                        id=item.content.id,
                        title=item.content.title,
                        type=item.content.type,
                        creator_id=item.content.creator_id,
                        price=item.content.price,
                        url=item.content.url,
                        thumbnail_url=item.content.thumbnail_url,
                    )
                    if item.content
                    else None
                ),
                creator=(
                    CreatorSummaryModel(
                        id=item.creator.id,
                        name=item.creator.name,
                        photo_url=item.creator.photo_url,
                    )
                    if item.creator
                    else None
                ),
            )
            for item in result.items
        ]
    )


@router.get("/{content_id}/count", response_model=ViewCountResponse)
async def view_count(
    content_id: UUID,
    aggregator: ViewAggregator = Depends(get_aggregator),
) -> ViewCountResponse:
    result = await aggregator.count(content_id)
    if not result.success:
        raise _unavailable(result.errors)
    return ViewCountResponse(content_id=content_id, count=result.count)


@router.get("/{content_id}/status", response_model=ViewStatusResponse)
async def view_status(
    content_id: UUID,
    viewer_id: UUID | None = Depends(get_current_viewer_id),
    aggregator: ViewAggregator = Depends(get_aggregator),
) -> ViewStatusResponse:
    """Whether the current viewer has a recorded view of the content."""
    result = await aggregator.has_viewed(_require_viewer(viewer_id), content_id)
    if not result.success:
        raise _unavailable(result.errors)
    return ViewStatusResponse(
        content_id=content_id,
        has_viewed=result.has_viewed,
        viewed_at=result.viewed_at,
    )
