"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


# Request Schemas
class SwipeRequest(BaseModel):
    """Swipe on another user"""

    target_fid: int = Field(..., description="FID of the user being swiped on")
    action: str = Field(..., description="Action: 'like' or 'reject'")


class RequestDecisionBody(BaseModel):
    """Accept or reject a received connection request"""

    action: str = Field(..., description="Action: 'accept' or 'reject'")


# Response Schemas
class ErrorResponse(BaseModel):
    """Typed failure"""

    code: str
    message: str


class ActionResponse(BaseModel):
    """Stored swipe"""

    actor_fid: int
    target_fid: int
    action: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SwipeResponse(BaseModel):
    """Response after a swipe or a request decision"""

    success: bool
    message: str
    swipe: ActionResponse
    is_match: bool


class UserSummary(BaseModel):
    """Public Farcaster profile"""

    fid: int
    username: Optional[str] = None
    display_name: Optional[str] = None
    pfp_url: Optional[str] = None
    bio_text: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0
    power_badge: bool = False
    score: Optional[float] = None

    class Config:
        from_attributes = True


class PendingUser(BaseModel):
    """One side of a pending connection"""

    fid: int
    requested_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class PendingGroup(BaseModel):
    users: List[PendingUser]
    count: int


class ConnectedGroup(BaseModel):
    fids: List[int]
    users: List[UserSummary] = []
    count: int


class ConnectionsResponse(BaseModel):
    """Sent requests, received requests and mutual connections"""

    requests_sent: PendingGroup
    requests_received: PendingGroup
    connected: ConnectedGroup


class ConnectionStateResponse(BaseModel):
    """Derived state between current user and another user"""

    fid: int
    other_fid: int
    state: str
    is_mutual: bool


class MatchingKeywords(BaseModel):
    interests: List[str] = []
    projects: List[str] = []
    themes: List[str] = []
    channels: List[str] = []


class CandidateResponse(BaseModel):
    """Ranked candidate"""

    fid: int
    match_score: float
    matching_keywords: MatchingKeywords
    is_backfill: bool
    persona_summary: Optional[str] = None
    expertise_level: Optional[str] = None
    engagement_style: Optional[str] = None
    user: Optional[UserSummary] = None


class RankPagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class MatchesResponse(BaseModel):
    """Page of ranked candidates"""

    matches: List[CandidateResponse]
    pagination: RankPagination


class FeedPagination(BaseModel):
    has_more: bool
    next_cursor: Optional[str] = None
    total_connections: int
    items_returned: int
    total_items_available: int


class FeedMetadata(BaseModel):
    mutual_connections_count: int
    api_calls_made: int
    batches_used: int
    total_items_fetched: int


class FeedResponse(BaseModel):
    """Page of casts from mutual connections"""

    items: List[Dict[str, Any]]
    pagination: FeedPagination
    metadata: FeedMetadata


# Internal Models
class User(BaseModel):
    """Authenticated user"""

    fid: int
    username: Optional[str] = None
