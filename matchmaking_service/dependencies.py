"""
FastAPI dependencies for authentication and service wiring
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
import logging

from .config import settings
from .schemas import User
from .application.actions import ActionStore
from .application.connections import ConnectionGraph
from .application.feed import FeedAggregator
from .application.ranking import CandidateRanker
from .application.swipes import SwipeService
from .application.users import UserDirectory
from .domain.repositories import (
    IActionRepository,
    IContentSource,
    IProfileRepository,
    IUserRepository,
)
from .infrastructure.cache import RedisCache, get_cache
from .infrastructure.content_client import get_content_source
from .infrastructure.database.connection import Database, get_db
from .infrastructure.database.repositories import (
    ActionRepository,
    ProfileRepository,
    UserRepository,
)
from .infrastructure.kafka_producer import KafkaProducerManager, get_kafka_producer
from .infrastructure.throttle import NotificationThrottle

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Shared across requests so cooldowns survive between calls
notification_throttle = NotificationThrottle()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """
    Validate JWT token and return current user

    The token subject is the user's fid.
    """
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    try:
        fid = int(subject)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return User(fid=fid, username=payload.get("username"))


async def get_action_repository(db: Database = Depends(get_db)) -> IActionRepository:
    """Get swipe repository dependency"""
    return ActionRepository(db)


async def get_profile_repository(db: Database = Depends(get_db)) -> IProfileRepository:
    """Get persona repository dependency"""
    return ProfileRepository(db)


async def get_user_repository(db: Database = Depends(get_db)) -> IUserRepository:
    """Get public user profile repository dependency"""
    return UserRepository(db)


async def get_user_directory(
    repo: IUserRepository = Depends(get_user_repository),
) -> UserDirectory:
    return UserDirectory(repo)


async def get_notification_throttle() -> NotificationThrottle:
    return notification_throttle


async def get_action_store(
    repo: IActionRepository = Depends(get_action_repository),
    cache: RedisCache = Depends(get_cache),
) -> ActionStore:
    return ActionStore(repo, cache)


async def get_connection_graph(
    store: ActionStore = Depends(get_action_store),
    repo: IActionRepository = Depends(get_action_repository),
    cache: RedisCache = Depends(get_cache),
    users: UserDirectory = Depends(get_user_directory),
) -> ConnectionGraph:
    return ConnectionGraph(store, repo, cache, users)


async def get_swipe_service(
    store: ActionStore = Depends(get_action_store),
    graph: ConnectionGraph = Depends(get_connection_graph),
    kafka: KafkaProducerManager = Depends(get_kafka_producer),
    throttle: NotificationThrottle = Depends(get_notification_throttle),
) -> SwipeService:
    return SwipeService(store, graph, kafka, throttle)


async def get_candidate_ranker(
    store: ActionStore = Depends(get_action_store),
    profiles: IProfileRepository = Depends(get_profile_repository),
    users: UserDirectory = Depends(get_user_directory),
) -> CandidateRanker:
    return CandidateRanker(store, profiles, users=users)


async def get_feed_aggregator(
    graph: ConnectionGraph = Depends(get_connection_graph),
    content_source: IContentSource = Depends(get_content_source),
) -> FeedAggregator:
    return FeedAggregator(graph, content_source)
