"""Shared fixtures and in-memory collaborators for tests."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytest

from matchmaking_service.application.actions import ActionStore
from matchmaking_service.application.connections import ConnectionGraph
from matchmaking_service.domain.models import Action, ActionKind, Persona, UserProfile
from matchmaking_service.domain.repositories import (
    IActionRepository,
    IContentSource,
    IProfileRepository,
    IUserRepository,
)
from matchmaking_service.infrastructure.cache import RedisCache


# ============================================================================
# In-memory collaborators
# ============================================================================

class InMemoryActionRepository(IActionRepository):
    """Swipe store keyed by (actor, target); every write advances a fake clock."""

    def __init__(self):
        self.actions: Dict[tuple, Action] = {}
        self._now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now

    async def upsert(self, actor_fid: int, target_fid: int, kind: ActionKind) -> Action:
        now = self._tick()
        existing = self.actions.get((actor_fid, target_fid))
        action = Action(
            actor_fid=actor_fid,
            target_fid=target_fid,
            kind=kind,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.actions[(actor_fid, target_fid)] = action
        return action

    async def find(self, actor_fid: int, target_fid: int) -> Optional[Action]:
        return self.actions.get((actor_fid, target_fid))

    def _newest_first(self, actions: Iterable[Action]) -> List[Action]:
        return sorted(actions, key=lambda a: a.created_at, reverse=True)

    async def list_by_actor(self, actor_fid: int, kind: Optional[ActionKind] = None) -> List[Action]:
        return self._newest_first(
            a for a in self.actions.values()
            if a.actor_fid == actor_fid and (kind is None or a.kind == kind)
        )

    async def list_by_target(self, target_fid: int, kind: Optional[ActionKind] = None) -> List[Action]:
        return self._newest_first(
            a for a in self.actions.values()
            if a.target_fid == target_fid and (kind is None or a.kind == kind)
        )


class InMemoryProfileRepository(IProfileRepository):
    """Persona source; set `should_fail` to simulate an outage."""

    def __init__(self, personas: Iterable[Persona] = ()):
        self.personas: Dict[int, Persona] = {p.fid: p for p in personas}
        self.should_fail = False

    def add(self, persona: Persona):
        self.personas[persona.fid] = persona

    async def get_profile(self, fid: int) -> Optional[Persona]:
        if self.should_fail:
            raise ConnectionError("persona store down")
        return self.personas.get(fid)

    async def list_profiles(self, excluding_fid: int) -> List[Persona]:
        if self.should_fail:
            raise ConnectionError("persona store down")
        return [p for fid, p in self.personas.items() if fid != excluding_fid]


class InMemoryUserRepository(IUserRepository):
    """Users table stand-in; `lookups` records every batch requested."""

    def __init__(self, fids: Iterable[int] = ()):
        self.users: Dict[int, UserProfile] = {}
        self.lookups: List[List[int]] = []
        self.should_fail = False
        for fid in fids:
            self.add(fid)

    def add(self, fid: int, **fields) -> UserProfile:
        fields.setdefault("username", f"user{fid}")
        profile = UserProfile(fid=fid, **fields)
        self.users[fid] = profile
        return profile

    async def get_users(self, fids: List[int]) -> Dict[int, UserProfile]:
        self.lookups.append(list(fids))
        if self.should_fail:
            raise ConnectionError("users table unavailable")
        return {fid: self.users[fid] for fid in fids if fid in self.users}


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.before_setex = None

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.before_setex:
            hook, self.before_setex = self.before_setex, None
            await hook()
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])


class FakeContentSource(IContentSource):
    """
    Cast source backed by a dict of author fid -> casts.

    `failing_fids` makes any batch containing one of them raise.
    `extra_casts` are appended to every response (embeds from strangers).
    """

    def __init__(self, casts_by_author: Optional[Dict[int, List[Dict[str, Any]]]] = None):
        self.casts_by_author = casts_by_author or {}
        self.failing_fids: set = set()
        self.extra_casts: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []

    async def fetch_casts(self, author_fids, viewer_fid=None, limit=100):
        self.calls.append({"fids": list(author_fids), "viewer_fid": viewer_fid, "limit": limit})
        if self.failing_fids.intersection(author_fids):
            raise RuntimeError("upstream 500")
        casts = []
        for fid in author_fids:
            casts.extend(self.casts_by_author.get(fid, []))
        casts.extend(self.extra_casts)
        return casts[:limit]


def make_cast(fid: int, cast_hash: str, timestamp: Optional[str], **extra) -> Dict[str, Any]:
    cast = {"hash": cast_hash, "author": {"fid": fid}, "text": f"gm from {fid}"}
    if timestamp is not None:
        cast["timestamp"] = timestamp
    cast.update(extra)
    return cast


async def connect(store: ActionStore, fid: int, other_fid: int):
    """Make two users mutually connected."""
    await store.record_action(fid, other_fid, "like")
    await store.record_action(other_fid, fid, "like")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def action_repo() -> InMemoryActionRepository:
    return InMemoryActionRepository()


@pytest.fixture
def action_store(action_repo) -> ActionStore:
    return ActionStore(action_repo)


@pytest.fixture
def graph(action_store, action_repo) -> ConnectionGraph:
    return ConnectionGraph(action_store, action_repo)


@pytest.fixture
def profiles() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def content_source() -> FakeContentSource:
    return FakeContentSource()


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def redis_cache() -> RedisCache:
    cache = RedisCache()
    cache.redis = FakeRedis()
    return cache
