"""
Swipe workflow - recording swipes and answering connection requests
"""
from dataclasses import dataclass
from typing import Optional, Union
import logging

from ..domain.models import Action, ActionKind, RequestDecision
from ..exceptions import InvalidDecision, NoPendingRequest, SelfActionError
from ..infrastructure.kafka_producer import KafkaProducerManager
from ..infrastructure.throttle import NotificationThrottle
from .actions import ActionStore
from .connections import ConnectionGraph

logger = logging.getLogger(__name__)

CONNECTION_REQUEST = "connection_request"
CONNECTION_MATCHED = "connection_matched"


@dataclass
class SwipeResult:
    """Stored action plus whether it completed a mutual match"""
    action: Action
    is_match: bool


class SwipeService:
    """Business logic for swipes and connection requests"""

    def __init__(
        self,
        action_store: ActionStore,
        graph: ConnectionGraph,
        kafka: Optional[KafkaProducerManager] = None,
        throttle: Optional[NotificationThrottle] = None,
    ):
        self.actions = action_store
        self.graph = graph
        self.kafka = kafka
        self.throttle = throttle

    async def swipe(
        self, actor_fid: int, target_fid: int, kind: Union[str, ActionKind]
    ) -> SwipeResult:
        """
        Record a swipe and report whether it formed a connection

        Raises:
            InvalidActionKind: If kind is not like/reject
            SelfActionError: If actor and target are the same user
        """
        action = await self.actions.record_action(actor_fid, target_fid, kind)

        is_match = False
        if action.is_like:
            is_match = await self.graph.are_mutual(actor_fid, target_fid)

        await self._publish(action, is_match)
        return SwipeResult(action=action, is_match=is_match)

    async def respond_to_request(
        self, fid: int, requester_fid: int, decision: Union[str, RequestDecision]
    ) -> SwipeResult:
        """
        Accept or reject a received connection request

        Args:
            fid: User answering the request
            requester_fid: User who sent the like
            decision: 'accept' or 'reject'

        Raises:
            InvalidDecision: If decision is not accept/reject
            SelfActionError: If the user answers themselves
            NoPendingRequest: If requester has no pending like toward fid
        """
        try:
            decision = RequestDecision(str(getattr(decision, "value", decision)).lower())
        except ValueError:
            raise InvalidDecision('action must be either "accept" or "reject"')

        if fid == requester_fid:
            raise SelfActionError("User cannot handle request from themselves")

        pending = await self.graph.received_pending_of(fid)
        if not any(request.fid == requester_fid for request in pending):
            raise NoPendingRequest("No pending request found from this user")

        kind = ActionKind.LIKE if decision == RequestDecision.ACCEPT else ActionKind.REJECT
        return await self.swipe(fid, requester_fid, kind)

    def _allowed(self, notification_type: str, fid: int, related_fid: int) -> bool:
        if self.throttle is None:
            return True
        return self.throttle.try_acquire(notification_type, fid, related_fid)

    async def _publish(self, action: Action, is_match: bool):
        """Hand swipe events to the notification pipeline"""
        if not self.kafka:
            return

        await self.kafka.publish_swipe_event(
            action.actor_fid, action.target_fid, action.kind.value
        )

        actor, target = action.actor_fid, action.target_fid
        if is_match:
            # both participants are notified; publish unless both are cooling down
            allowed = [
                self._allowed(CONNECTION_MATCHED, actor, target),
                self._allowed(CONNECTION_MATCHED, target, actor),
            ]
            if not any(allowed):
                logger.info(f"Connection matched notification for {actor} and {target} throttled")
                return
            await self.kafka.publish_connection_matched_event(actor, target)
        elif action.is_like:
            if not self._allowed(CONNECTION_REQUEST, target, actor):
                logger.info(
                    f"Connection request notification to {target} from {actor} throttled"
                )
                return
            await self.kafka.publish_connection_request_event(actor, target)
