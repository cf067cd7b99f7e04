"""
Candidate ranking for discovery
"""
from dataclasses import replace
from typing import List, Optional
import logging
import math
import random

from ..config import settings
from ..domain.models import Candidate, Persona, RankedCandidates
from ..domain.repositories import IProfileRepository
from ..exceptions import (
    InvalidPage,
    InvalidPageSize,
    ProfileRequired,
    ProfileSourceUnavailable,
)
from .actions import ActionStore
from .scoring import DEFAULT_WEIGHTS, ScoringWeights, empty_evidence, score
from .users import UserDirectory

logger = logging.getLogger(__name__)


class CandidateRanker:
    """Ranks profiled users by persona similarity, backfilling with unscored ones"""

    def __init__(
        self,
        action_store: ActionStore,
        profiles: IProfileRepository,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        max_page_size: int = settings.MAX_RANK_PAGE_SIZE,
        rng: Optional[random.Random] = None,
        users: Optional[UserDirectory] = None,
    ):
        self.actions = action_store
        self.profiles = profiles
        self.weights = weights
        self.max_page_size = max_page_size
        self.rng = rng or random.Random()
        self.users = users

    def _validate(self, page: int, page_size: int):
        if page < 1:
            raise InvalidPage("Page must be a positive number")
        if page_size < 1 or page_size > self.max_page_size:
            raise InvalidPageSize(
                f"Page size must be between 1 and {self.max_page_size}"
            )

    async def _load_universe(self, fid: int):
        """Viewer persona plus every other persona, or fail the whole call"""
        try:
            persona = await self.profiles.get_profile(fid)
            if persona is None:
                return None, []
            others = await self.profiles.list_profiles(excluding_fid=fid)
        except Exception as e:
            logger.error(f"Profile source unavailable while ranking for {fid}: {e}")
            raise ProfileSourceUnavailable("Profile source is unavailable") from e
        return persona, others

    async def rank(self, fid: int, page: int = 1, page_size: int = 10) -> RankedCandidates:
        """
        Rank candidates for a user

        Matches (score > 0) come first, by score descending and fid ascending
        on ties. A short page is filled with a fresh random sample of unscored
        candidates, so repeated calls may return different fill.
        With a user directory, each candidate carries its public profile and
        candidates without one are left out of the page.

        Args:
            fid: Viewing user
            page: Page number (1-indexed)
            page_size: Candidates per page

        Returns:
            RankedCandidates page

        Raises:
            InvalidPage, InvalidPageSize: On out-of-range pagination
            ProfileRequired: If the user has no persona yet
            ProfileSourceUnavailable: If personas or user profiles cannot be loaded
        """
        self._validate(page, page_size)

        persona, others = await self._load_universe(fid)
        if persona is None:
            raise ProfileRequired("User persona not found. Please create persona first.")

        decided = await self.actions.actions_by(fid)
        universe = [
            other for other in others
            if other.fid != fid and other.fid not in decided
        ]

        matches: List[Candidate] = []
        unscored: List[Persona] = []
        for other in universe:
            result = score(persona, other, self.weights)
            if result.score > 0:
                matches.append(self._candidate(other, result.score, result.evidence))
            else:
                unscored.append(other)

        matches.sort(key=lambda c: (-c.score, c.fid))

        offset = (page - 1) * page_size
        selected = matches[offset:offset + page_size]

        if len(selected) < page_size:
            chosen = {candidate.fid for candidate in selected}
            pool = [other for other in unscored if other.fid not in chosen]
            self.rng.shuffle(pool)
            for other in pool[: page_size - len(selected)]:
                selected.append(
                    self._candidate(other, 0.0, empty_evidence(), is_backfill=True)
                )

        if self.users:
            selected = await self._attach_users(selected)

        total = len(matches) + len(unscored)
        logger.info(
            f"Ranked {len(universe)} candidates for {fid}: "
            f"{len(matches)} matches, {len(unscored)} unscored"
        )

        return RankedCandidates(
            candidates=selected,
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        )

    async def _attach_users(self, candidates: List[Candidate]) -> List[Candidate]:
        """Attach public profiles, dropping candidates without a users row"""
        profiles = await self.users.lookup(c.fid for c in candidates)
        return [
            replace(candidate, user=profiles[candidate.fid])
            for candidate in candidates
            if candidate.fid in profiles
        ]

    @staticmethod
    def _candidate(
        persona: Persona, value: float, evidence, is_backfill: bool = False
    ) -> Candidate:
        return Candidate(
            fid=persona.fid,
            score=value,
            evidence=evidence,
            is_backfill=is_backfill,
            summary=persona.summary,
            expertise_level=persona.expertise_level,
            engagement_style=persona.engagement_style,
        )
