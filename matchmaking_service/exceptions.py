"""
Typed failures raised by the matchmaking core

Every error carries a machine-readable ``kind`` and a human-readable
``message``; the API layer renders them as ``{"code": kind, "message": message}``.
"""
from fastapi import status


class MatchmakingError(Exception):
    """Base class for matchmaking failures"""

    kind: str = "matchmaking_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.kind, "message": self.message}


# Validation errors
class InvalidActionKind(MatchmakingError):
    kind = "invalid_action_kind"


class SelfActionError(MatchmakingError):
    kind = "self_action"


class InvalidDecision(MatchmakingError):
    kind = "invalid_decision"


class InvalidPage(MatchmakingError):
    kind = "invalid_page"


class InvalidPageSize(MatchmakingError):
    kind = "invalid_page_size"


class ProfileRequired(MatchmakingError):
    kind = "profile_required"
    status_code = status.HTTP_404_NOT_FOUND


class NoPendingRequest(MatchmakingError):
    kind = "no_pending_request"
    status_code = status.HTTP_404_NOT_FOUND


# Collaborator errors
class ProfileSourceUnavailable(MatchmakingError):
    kind = "profile_source_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ContentSourceError(MatchmakingError):
    kind = "content_source_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
