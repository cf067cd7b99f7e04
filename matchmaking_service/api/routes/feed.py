"""
Connected-users feed route
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from ...application.feed import FeedAggregator
from ...config import settings
from ...dependencies import get_current_user, get_feed_aggregator
from ...schemas import FeedMetadata, FeedPagination, FeedResponse, User


router = APIRouter(prefix="/api/v1/feed", tags=["Feed"])


@router.get("", response_model=FeedResponse)
async def get_feed(
    limit: int = Query(settings.DEFAULT_FEED_LIMIT, description="Casts per page"),
    cursor: Optional[str] = Query(None, description="Cursor from the previous page"),
    current_user: User = Depends(get_current_user),
    aggregator: FeedAggregator = Depends(get_feed_aggregator),
):
    """
    Get casts from mutually connected users, newest first
    """
    page = await aggregator.feed(current_user.fid, limit=limit, cursor=cursor)

    return FeedResponse(
        items=page.items,
        pagination=FeedPagination(
            has_more=page.has_more,
            next_cursor=page.next_cursor,
            total_connections=page.mutual_connections_count,
            items_returned=len(page.items),
            total_items_available=page.total_items_available,
        ),
        metadata=FeedMetadata(
            mutual_connections_count=page.mutual_connections_count,
            api_calls_made=page.api_calls_made,
            batches_used=page.batches_used,
            total_items_fetched=page.total_items_fetched,
        ),
    )
