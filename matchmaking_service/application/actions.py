"""
Action store - the single point of mutation for swipes
"""
from typing import Dict, Optional, Union
import logging

from ..domain.models import Action, ActionKind
from ..domain.repositories import IActionRepository
from ..exceptions import InvalidActionKind, SelfActionError
from ..infrastructure.cache import RedisCache

logger = logging.getLogger(__name__)


def parse_action_kind(kind: Union[str, ActionKind]) -> ActionKind:
    """Coerce user input to an ActionKind"""
    if isinstance(kind, ActionKind):
        return kind
    try:
        return ActionKind(str(kind).lower())
    except ValueError:
        raise InvalidActionKind(
            f'action must be either "like" or "reject", got "{kind}"'
        )


class ActionStore:
    """Validated access to the swipe repository"""

    def __init__(self, repository: IActionRepository, cache: Optional[RedisCache] = None):
        self.repo = repository
        self.cache = cache

    async def record_action(
        self, actor_fid: int, target_fid: int, kind: Union[str, ActionKind]
    ) -> Action:
        """
        Record a swipe, overwriting any prior swipe for the same pair

        Args:
            actor_fid: User who swipes
            target_fid: User being swiped on
            kind: 'like' or 'reject'

        Returns:
            The stored action with its temporal fields

        Raises:
            InvalidActionKind: If kind is not like/reject
            SelfActionError: If actor and target are the same user
        """
        action_kind = parse_action_kind(kind)
        if actor_fid == target_fid:
            raise SelfActionError("User cannot swipe on themselves")

        action = await self.repo.upsert(actor_fid, target_fid, action_kind)
        logger.info(f"Recorded {action_kind.value} from {actor_fid} to {target_fid}")

        if self.cache:
            await self.cache.invalidate_pair(actor_fid, target_fid)

        return action

    async def actions_by(self, actor_fid: int) -> Dict[int, ActionKind]:
        """Targets the user already decided on, with the decision"""
        actions = await self.repo.list_by_actor(actor_fid)
        return {action.target_fid: action.kind for action in actions}

    async def has_liked(self, actor_fid: int, target_fid: int) -> bool:
        """Point lookup used by mutual-match checks"""
        action = await self.repo.find(actor_fid, target_fid)
        return action is not None and action.is_like
