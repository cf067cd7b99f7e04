"""
Repository implementations - Data access layer
"""
from typing import Any, Dict, List, Optional
import json

from ...domain.models import Action, ActionKind, Persona, UserProfile
from ...domain.repositories import IActionRepository, IProfileRepository, IUserRepository
from .connection import Database


_ACTION_COLUMNS = "user_fid, target_fid, action, created_at, updated_at"

_PERSONA_COLUMNS = """
    farcaster_fid, core_interests, projects_protocols, content_themes,
    top_channels, expertise_level, engagement_style, summary
"""

_USER_COLUMNS = """
    fid, username, display_name, pfp_url, bio_text,
    follower_count, following_count, power_badge, score
"""


class ActionRepository(IActionRepository):
    """Swipe repository implementation over the user_swipes table"""

    def __init__(self, db: Database):
        self.db = db

    def _row_to_action(self, row: Optional[Dict[str, Any]]) -> Optional[Action]:
        """Convert database row to Action model"""
        if not row:
            return None
        return Action(
            actor_fid=row["user_fid"],
            target_fid=row["target_fid"],
            kind=ActionKind(row["action"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def upsert(self, actor_fid: int, target_fid: int, kind: ActionKind) -> Action:
        """Insert the swipe, or flip the existing one in place"""
        row = await self.db.fetch_one(
            f"""
            INSERT INTO user_swipes (user_fid, target_fid, action, created_at, updated_at)
            VALUES ($1, $2, $3, NOW(), NOW())
            ON CONFLICT (user_fid, target_fid)
            DO UPDATE SET action = EXCLUDED.action, updated_at = NOW()
            RETURNING {_ACTION_COLUMNS}
            """,
            actor_fid,
            target_fid,
            kind.value,
        )
        return self._row_to_action(row)

    async def find(self, actor_fid: int, target_fid: int) -> Optional[Action]:
        """Find the swipe for an ordered pair"""
        row = await self.db.fetch_one(
            f"""
            SELECT {_ACTION_COLUMNS}
            FROM user_swipes
            WHERE user_fid = $1 AND target_fid = $2
            """,
            actor_fid,
            target_fid,
        )
        return self._row_to_action(row)

    async def list_by_actor(
        self, actor_fid: int, kind: Optional[ActionKind] = None
    ) -> List[Action]:
        """List swipes issued by a user, newest first"""
        if kind is None:
            rows = await self.db.fetch_all(
                f"""
                SELECT {_ACTION_COLUMNS}
                FROM user_swipes
                WHERE user_fid = $1
                ORDER BY created_at DESC
                """,
                actor_fid,
            )
        else:
            rows = await self.db.fetch_all(
                f"""
                SELECT {_ACTION_COLUMNS}
                FROM user_swipes
                WHERE user_fid = $1 AND action = $2
                ORDER BY created_at DESC
                """,
                actor_fid,
                kind.value,
            )
        return [self._row_to_action(row) for row in rows]

    async def list_by_target(
        self, target_fid: int, kind: Optional[ActionKind] = None
    ) -> List[Action]:
        """List swipes received by a user, newest first"""
        if kind is None:
            rows = await self.db.fetch_all(
                f"""
                SELECT {_ACTION_COLUMNS}
                FROM user_swipes
                WHERE target_fid = $1
                ORDER BY created_at DESC
                """,
                target_fid,
            )
        else:
            rows = await self.db.fetch_all(
                f"""
                SELECT {_ACTION_COLUMNS}
                FROM user_swipes
                WHERE target_fid = $1 AND action = $2
                ORDER BY created_at DESC
                """,
                target_fid,
                kind.value,
            )
        return [self._row_to_action(row) for row in rows]


def _json_list(value: Any) -> List[str]:
    """Decode a JSONB array column; asyncpg hands JSONB back as text"""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


class ProfileRepository(IProfileRepository):
    """Persona repository implementation over the personas table"""

    def __init__(self, db: Database):
        self.db = db

    def _row_to_persona(self, row: Optional[Dict[str, Any]]) -> Optional[Persona]:
        """Convert database row to Persona model"""
        if not row:
            return None
        return Persona(
            fid=row["farcaster_fid"],
            core_interests=_json_list(row["core_interests"]),
            projects=_json_list(row["projects_protocols"]),
            content_themes=_json_list(row["content_themes"]),
            channels=_json_list(row["top_channels"]),
            expertise_level=row["expertise_level"],
            engagement_style=row["engagement_style"],
            summary=row["summary"],
        )

    async def get_profile(self, fid: int) -> Optional[Persona]:
        """Get persona by fid"""
        row = await self.db.fetch_one(
            f"SELECT {_PERSONA_COLUMNS} FROM personas WHERE farcaster_fid = $1",
            fid,
        )
        return self._row_to_persona(row)

    async def list_profiles(self, excluding_fid: int) -> List[Persona]:
        """List every persona except the given user's"""
        rows = await self.db.fetch_all(
            f"SELECT {_PERSONA_COLUMNS} FROM personas WHERE farcaster_fid != $1",
            excluding_fid,
        )
        return [self._row_to_persona(row) for row in rows]


class UserRepository(IUserRepository):
    """Public profile repository over the users table"""

    def __init__(self, db: Database):
        self.db = db

    def _row_to_user(self, row: Dict[str, Any]) -> UserProfile:
        """Convert database row to UserProfile model"""
        score = row["score"]
        return UserProfile(
            fid=row["fid"],
            username=row["username"],
            display_name=row["display_name"],
            pfp_url=row["pfp_url"],
            bio_text=row["bio_text"],
            follower_count=row["follower_count"] or 0,
            following_count=row["following_count"] or 0,
            power_badge=bool(row["power_badge"]),
            score=float(score) if score is not None else None,
        )

    async def get_users(self, fids: List[int]) -> Dict[int, UserProfile]:
        """Fetch profiles for many fids in one query"""
        if not fids:
            return {}
        rows = await self.db.fetch_all(
            f"SELECT {_USER_COLUMNS} FROM users WHERE fid = ANY($1::bigint[])",
            list(fids),
        )
        return {row["fid"]: self._row_to_user(row) for row in rows}
