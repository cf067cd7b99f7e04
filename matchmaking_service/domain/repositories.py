"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from .models import Action, ActionKind, Persona, UserProfile


class IActionRepository(ABC):
    """Swipe storage with atomic upsert per (actor, target) pair"""

    @abstractmethod
    async def upsert(self, actor_fid: int, target_fid: int, kind: ActionKind) -> Action:
        """Insert the action or overwrite kind and updated_at of the existing one"""
        pass

    @abstractmethod
    async def find(self, actor_fid: int, target_fid: int) -> Optional[Action]:
        """Find the action for an ordered pair"""
        pass

    @abstractmethod
    async def list_by_actor(
        self, actor_fid: int, kind: Optional[ActionKind] = None
    ) -> List[Action]:
        """List actions issued by a user"""
        pass

    @abstractmethod
    async def list_by_target(
        self, target_fid: int, kind: Optional[ActionKind] = None
    ) -> List[Action]:
        """List actions received by a user"""
        pass


class IProfileRepository(ABC):
    """Read-only persona source"""

    @abstractmethod
    async def get_profile(self, fid: int) -> Optional[Persona]:
        """Get a user's persona, None if it was never generated"""
        pass

    @abstractmethod
    async def list_profiles(self, excluding_fid: int) -> List[Persona]:
        """List every persona except the given user's"""
        pass


class IUserRepository(ABC):
    """Read-only source of public user profiles"""

    @abstractmethod
    async def get_users(self, fids: List[int]) -> Dict[int, UserProfile]:
        """Profiles keyed by fid; fids without a row are absent from the result"""
        pass


class IContentSource(ABC):
    """External cast source accepting a bounded list of author ids per call"""

    @abstractmethod
    async def fetch_casts(
        self,
        author_fids: List[int],
        viewer_fid: Optional[int] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Fetch recent casts authored by the given users"""
        pass
