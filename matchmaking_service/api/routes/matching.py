"""
Candidate ranking routes
"""
from fastapi import APIRouter, Depends, Query

from ...application.ranking import CandidateRanker
from ...config import settings
from ...dependencies import get_candidate_ranker, get_current_user
from ...schemas import (
    CandidateResponse,
    ErrorResponse,
    MatchesResponse,
    MatchingKeywords,
    RankPagination,
    User,
    UserSummary,
)


router = APIRouter(prefix="/api/v1/matches", tags=["Matching"])


@router.get(
    "",
    response_model=MatchesResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def get_matches(
    page: int = Query(1, description="Page number (1-indexed)"),
    limit: int = Query(settings.DEFAULT_RANK_PAGE_SIZE, description="Candidates per page"),
    current_user: User = Depends(get_current_user),
    ranker: CandidateRanker = Depends(get_candidate_ranker),
):
    """
    Get candidates ranked by persona similarity

    Short pages are filled with random candidates that share no attributes
    (match_score 0, is_backfill true).
    """
    ranked = await ranker.rank(current_user.fid, page, limit)

    return MatchesResponse(
        matches=[
            CandidateResponse(
                fid=candidate.fid,
                match_score=candidate.score,
                matching_keywords=MatchingKeywords(**candidate.evidence),
                is_backfill=candidate.is_backfill,
                persona_summary=candidate.summary,
                expertise_level=candidate.expertise_level,
                engagement_style=candidate.engagement_style,
                user=UserSummary.model_validate(candidate.user) if candidate.user else None,
            )
            for candidate in ranked.candidates
        ],
        pagination=RankPagination(
            page=ranked.page,
            limit=ranked.page_size,
            total=ranked.total,
            total_pages=ranked.total_pages,
        ),
    )
