"""
Swipe and connection request routes
"""
from fastapi import APIRouter, Depends

from ...application.swipes import SwipeResult, SwipeService
from ...dependencies import get_current_user, get_swipe_service
from ...schemas import (
    ActionResponse,
    ErrorResponse,
    RequestDecisionBody,
    SwipeRequest,
    SwipeResponse,
    User,
)


router = APIRouter(prefix="/api/v1", tags=["Swipes"])


def _to_response(result: SwipeResult, message: str) -> SwipeResponse:
    action = result.action
    return SwipeResponse(
        success=True,
        message=message,
        swipe=ActionResponse(
            actor_fid=action.actor_fid,
            target_fid=action.target_fid,
            action=action.kind.value,
            created_at=action.created_at,
            updated_at=action.updated_at,
        ),
        is_match=result.is_match,
    )


@router.post("/swipes", response_model=SwipeResponse, responses={400: {"model": ErrorResponse}})
async def record_swipe(
    body: SwipeRequest,
    current_user: User = Depends(get_current_user),
    service: SwipeService = Depends(get_swipe_service),
):
    """
    Like or reject another user

    Swiping again on the same user overwrites the previous swipe.
    """
    result = await service.swipe(current_user.fid, body.target_fid, body.action)
    return _to_response(result, f"Swipe recorded: {result.action.kind.value}")


@router.post(
    "/requests/{requester_fid}",
    response_model=SwipeResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def respond_to_request(
    requester_fid: int,
    body: RequestDecisionBody,
    current_user: User = Depends(get_current_user),
    service: SwipeService = Depends(get_swipe_service),
):
    """
    Accept or reject a received connection request

    - action: 'accept' or 'reject'
    """
    result = await service.respond_to_request(current_user.fid, requester_fid, body.action)
    if result.is_match:
        message = "You are now connected!"
    elif result.action.is_like:
        message = "Request accepted. Waiting for their response."
    else:
        message = "Request rejected."
    return _to_response(result, message)
