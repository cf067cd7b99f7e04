"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from enum import Enum


class ActionKind(str, Enum):
    """Directional disposition of one user toward another"""
    LIKE = "like"
    REJECT = "reject"


class RequestDecision(str, Enum):
    """Answer to a received connection request"""
    ACCEPT = "accept"
    REJECT = "reject"


class ConnectionState(str, Enum):
    """Derived state of an ordered pair (user, other)"""
    NONE = "none"
    SENT_PENDING = "sent_pending"
    RECEIVED_PENDING = "received_pending"
    MUTUAL = "mutual"


class ExpertiseLevel(str, Enum):
    """Ordered expertise scale used for partial credit"""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


@dataclass
class Action:
    """One swipe from actor to target; unique per ordered pair"""
    actor_fid: int
    target_fid: int
    kind: ActionKind
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_like(self) -> bool:
        return self.kind == ActionKind.LIKE


@dataclass
class UserProfile:
    """Public Farcaster profile stored in the users table"""
    fid: int
    username: Optional[str] = None
    display_name: Optional[str] = None
    pfp_url: Optional[str] = None
    bio_text: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0
    power_badge: bool = False
    score: Optional[float] = None


@dataclass
class PendingConnection:
    """A one-sided like, annotated with when it was sent"""
    fid: int
    requested_at: Optional[datetime] = None
    user: Optional[UserProfile] = None


@dataclass
class ConnectionsOverview:
    """All three relations of a user at call time"""
    fid: int
    sent: List[PendingConnection] = field(default_factory=list)
    received: List[PendingConnection] = field(default_factory=list)
    connected: List[int] = field(default_factory=list)
    connected_users: List[UserProfile] = field(default_factory=list)


@dataclass
class Persona:
    """Externally generated attribute bag describing a user"""
    fid: int
    core_interests: List[str] = field(default_factory=list)
    projects: List[str] = field(default_factory=list)
    content_themes: List[str] = field(default_factory=list)
    channels: List[str] = field(default_factory=list)
    expertise_level: Optional[str] = None
    engagement_style: Optional[str] = None
    summary: Optional[str] = None


@dataclass
class MatchScore:
    """Similarity between two personas with per-category evidence"""
    score: float
    evidence: Dict[str, List[str]]


@dataclass
class Candidate:
    """A ranked candidate for discovery"""
    fid: int
    score: float
    evidence: Dict[str, List[str]]
    is_backfill: bool = False
    summary: Optional[str] = None
    expertise_level: Optional[str] = None
    engagement_style: Optional[str] = None
    user: Optional[UserProfile] = None


@dataclass
class RankedCandidates:
    """One page of ranked candidates"""
    candidates: List[Candidate]
    page: int
    page_size: int
    total: int
    total_pages: int


@dataclass
class FeedPage:
    """One page of the connected-users feed"""
    items: List[Dict[str, Any]]
    has_more: bool
    next_cursor: Optional[str]
    total_items_available: int
    mutual_connections_count: int
    api_calls_made: int
    batches_used: int
    total_items_fetched: int
