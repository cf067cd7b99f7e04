"""
Connection graph - relations derived on demand from the action store
"""
from dataclasses import replace
from typing import List, Optional, Set
import asyncio
import logging

from ..domain.models import (
    ActionKind,
    ConnectionState,
    ConnectionsOverview,
    PendingConnection,
)
from ..domain.repositories import IActionRepository
from ..infrastructure.cache import RedisCache
from .actions import ActionStore
from .users import UserDirectory

logger = logging.getLogger(__name__)


class ConnectionGraph:
    """Read-only view of sent, received and mutual connections"""

    def __init__(
        self,
        action_store: ActionStore,
        repository: IActionRepository,
        cache: Optional[RedisCache] = None,
        users: Optional[UserDirectory] = None,
    ):
        self.actions = action_store
        self.repo = repository
        self.cache = cache
        self.users = users

    async def _liked_by(self, fid: int) -> Set[int]:
        """Users that fid liked"""
        likes = await self.repo.list_by_actor(fid, ActionKind.LIKE)
        return {action.target_fid for action in likes}

    async def _likers_of(self, fid: int) -> Set[int]:
        """Users that liked fid"""
        likes = await self.repo.list_by_target(fid, ActionKind.LIKE)
        return {action.actor_fid for action in likes}

    async def mutual_connections_of(self, fid: int) -> Set[int]:
        """
        Users that fid liked and who liked fid back

        Returns an unordered set; callers sort as needed.
        """
        version = None
        if self.cache:
            cached = await self.cache.get_mutual_connections(fid)
            if cached is not None:
                return cached
            version = await self.cache.mutual_version(fid)

        liked, likers = await asyncio.gather(self._liked_by(fid), self._likers_of(fid))
        mutual = liked & likers

        if version is not None:
            await self.cache.set_mutual_connections(fid, mutual, version)

        return mutual

    async def sent_pending_of(self, fid: int) -> List[PendingConnection]:
        """Likes fid sent that were not reciprocated, newest first"""
        likes = await self.repo.list_by_actor(fid, ActionKind.LIKE)
        mutual = await self.mutual_connections_of(fid)
        return [
            PendingConnection(fid=action.target_fid, requested_at=action.created_at)
            for action in likes
            if action.target_fid not in mutual
        ]

    async def received_pending_of(self, fid: int) -> List[PendingConnection]:
        """Likes fid received and has not answered with a like, newest first"""
        received = await self.repo.list_by_target(fid, ActionKind.LIKE)
        liked = await self._liked_by(fid)
        mutual = await self.mutual_connections_of(fid)
        return [
            PendingConnection(fid=action.actor_fid, requested_at=action.created_at)
            for action in received
            if action.actor_fid not in liked and action.actor_fid not in mutual
        ]

    async def are_mutual(self, fid: int, other_fid: int) -> bool:
        """True iff both users liked each other"""
        forward, backward = await asyncio.gather(
            self.actions.has_liked(fid, other_fid),
            self.actions.has_liked(other_fid, fid),
        )
        return forward and backward

    async def state_between(self, fid: int, other_fid: int) -> ConnectionState:
        """State of the ordered pair as seen from fid"""
        forward, backward = await asyncio.gather(
            self.actions.has_liked(fid, other_fid),
            self.actions.has_liked(other_fid, fid),
        )
        if forward and backward:
            return ConnectionState.MUTUAL
        if forward:
            return ConnectionState.SENT_PENDING
        if backward:
            return ConnectionState.RECEIVED_PENDING
        return ConnectionState.NONE

    async def connections_overview(self, fid: int) -> ConnectionsOverview:
        """
        Sent, received and mutual relations fetched concurrently

        With a user directory, every entry carries its public profile and
        fids without one are left out of all three lists.
        """
        sent, received, mutual = await asyncio.gather(
            self.sent_pending_of(fid),
            self.received_pending_of(fid),
            self.mutual_connections_of(fid),
        )
        overview = ConnectionsOverview(
            fid=fid,
            sent=sent,
            received=received,
            connected=sorted(mutual),
        )
        if self.users:
            overview = await self._attach_users(overview)
        return overview

    async def _attach_users(self, overview: ConnectionsOverview) -> ConnectionsOverview:
        fids = [p.fid for p in overview.sent] + [p.fid for p in overview.received]
        profiles = await self.users.lookup(fids + overview.connected)

        def known(pending: List[PendingConnection]) -> List[PendingConnection]:
            return [replace(p, user=profiles[p.fid]) for p in pending if p.fid in profiles]

        connected = [other for other in overview.connected if other in profiles]
        return ConnectionsOverview(
            fid=overview.fid,
            sent=known(overview.sent),
            received=known(overview.received),
            connected=connected,
            connected_users=[profiles[other] for other in connected],
        )
