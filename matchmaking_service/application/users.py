"""
Public profile lookups for fids returned by the graph and the ranker
"""
from typing import Dict, Iterable
import logging

from ..domain.models import UserProfile
from ..domain.repositories import IUserRepository
from ..exceptions import ProfileSourceUnavailable

logger = logging.getLogger(__name__)


class UserDirectory:
    """Batch lookup of public profiles; unknown fids are simply missing"""

    def __init__(self, repository: IUserRepository):
        self.repo = repository

    async def lookup(self, fids: Iterable[int]) -> Dict[int, UserProfile]:
        """
        Fetch profiles for the given fids in one call

        Raises:
            ProfileSourceUnavailable: If the users table cannot be read
        """
        unique = list(dict.fromkeys(fids))
        if not unique:
            return {}

        try:
            profiles = await self.repo.get_users(unique)
        except Exception as e:
            logger.error(f"User lookup failed for {len(unique)} fids: {e}")
            raise ProfileSourceUnavailable("User profile source is unavailable") from e

        missing = len(unique) - len(profiles)
        if missing:
            logger.info(f"{missing} of {len(unique)} fids have no user profile")
        return profiles
