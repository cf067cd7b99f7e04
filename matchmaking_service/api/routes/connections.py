"""
Connection graph routes
"""
from fastapi import APIRouter, Depends

from ...application.connections import ConnectionGraph
from ...dependencies import get_connection_graph, get_current_user
from ...domain.models import ConnectionState, PendingConnection
from ...schemas import (
    ConnectedGroup,
    ConnectionStateResponse,
    ConnectionsResponse,
    ErrorResponse,
    PendingGroup,
    PendingUser,
    User,
    UserSummary,
)


router = APIRouter(prefix="/api/v1/connections", tags=["Connections"])


def _pending_user(pending: PendingConnection) -> PendingUser:
    return PendingUser(
        fid=pending.fid,
        requested_at=pending.requested_at,
        user=UserSummary.model_validate(pending.user) if pending.user else None,
    )


@router.get("", response_model=ConnectionsResponse, responses={503: {"model": ErrorResponse}})
async def get_connections(
    current_user: User = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_connection_graph),
):
    """
    Get requests sent, requests received and mutual connections
    """
    overview = await graph.connections_overview(current_user.fid)

    sent = [_pending_user(p) for p in overview.sent]
    received = [_pending_user(p) for p in overview.received]
    connected = [UserSummary.model_validate(u) for u in overview.connected_users]

    return ConnectionsResponse(
        requests_sent=PendingGroup(users=sent, count=len(sent)),
        requests_received=PendingGroup(users=received, count=len(received)),
        connected=ConnectedGroup(
            fids=overview.connected, users=connected, count=len(overview.connected)
        ),
    )


@router.get("/{other_fid}", response_model=ConnectionStateResponse)
async def get_connection_state(
    other_fid: int,
    current_user: User = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_connection_graph),
):
    """
    Get the connection state between current user and another user

    - mutual: both users liked each other
    - sent_pending: current user liked the other user
    - received_pending: the other user liked current user
    - none: no like in either direction
    """
    state = await graph.state_between(current_user.fid, other_fid)
    return ConnectionStateResponse(
        fid=current_user.fid,
        other_fid=other_fid,
        state=state.value,
        is_mutual=state == ConnectionState.MUTUAL,
    )
