"""
Connected-users feed aggregation
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set
import asyncio
import copy
import logging
import time

from ..config import settings
from ..domain.models import FeedPage
from ..domain.repositories import IContentSource
from .connections import ConnectionGraph
from .cursor import decode_cursor, encode_cursor

logger = logging.getLogger(__name__)


def parse_cast_timestamp(cast: Dict[str, Any]) -> float:
    """Epoch seconds from `timestamp` or `created_at`; 0.0 when neither parses"""
    for field_name in ("timestamp", "created_at"):
        value = cast.get(field_name)
        if not value:
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    return 0.0


def cast_author_fid(cast: Dict[str, Any]) -> Optional[int]:
    author = cast.get("author")
    if not isinstance(author, dict):
        return None
    fid = author.get("fid")
    if isinstance(fid, bool):
        return None
    try:
        return int(fid) if fid is not None else None
    except (TypeError, ValueError):
        return None


def _explicit_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_engagement(cast: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of the cast with likes, recasts and reply counters always present

    An explicit count from the source is authoritative; otherwise the count
    is the length of the accompanying array, else 0.
    """
    normalized = dict(cast)

    reactions = cast.get("reactions")
    reactions = copy.copy(reactions) if isinstance(reactions, dict) else {}
    for name in ("likes", "recasts"):
        count = _explicit_count(reactions.get(f"{name}_count"))
        entries = reactions.get(name)
        if count is None:
            count = len(entries) if isinstance(entries, list) else 0
        reactions[f"{name}_count"] = count
        if not isinstance(entries, list):
            reactions[name] = []
    normalized["reactions"] = reactions

    replies = cast.get("replies")
    if isinstance(replies, dict):
        replies = dict(replies)
        count = _explicit_count(replies.get("count"))
        replies["count"] = count if count is not None else 0
    elif isinstance(replies, list):
        replies = {"count": len(replies)}
    else:
        replies = {"count": 0}
    normalized["replies"] = replies

    return normalized


class FeedAggregator:
    """Merges casts of a user's mutual connections into one paginated timeline"""

    def __init__(
        self,
        graph: ConnectionGraph,
        content_source: IContentSource,
        batch_cap: int = settings.FEED_BATCH_CAP,
        source_page_size: int = settings.CONTENT_SOURCE_MAX_PAGE_SIZE,
        max_concurrent_batches: int = settings.FEED_MAX_CONCURRENT_BATCHES,
        pacing_factor: float = settings.FEED_PACING_FACTOR,
        max_pacing_delay: float = settings.FEED_MAX_PACING_DELAY,
        max_limit: int = settings.MAX_FEED_LIMIT,
    ):
        self.graph = graph
        self.content_source = content_source
        self.batch_cap = batch_cap
        self.source_page_size = source_page_size
        self.max_concurrent_batches = max(1, max_concurrent_batches)
        self.pacing_factor = pacing_factor
        self.max_pacing_delay = max_pacing_delay
        self.max_limit = max_limit

    def _batches(self, fids: List[int]) -> List[List[int]]:
        return [fids[i:i + self.batch_cap] for i in range(0, len(fids), self.batch_cap)]

    async def _pace(self, delay: float):
        await asyncio.sleep(delay)

    async def _fetch_batches(
        self, batches: List[List[int]], viewer_fid: int
    ) -> List[List[Dict[str, Any]]]:
        """
        Fetch every batch concurrently

        While batches are still queued behind full slots, a slot waits a delay
        proportional to its last call's latency before handing over. The last
        calls, with nobody waiting, return immediately. A failed batch
        contributes an empty list.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_batches)
        waiting = len(batches)

        async def fetch_one(index: int, batch: List[int]) -> List[Dict[str, Any]]:
            nonlocal waiting
            async with semaphore:
                waiting -= 1
                started = time.monotonic()
                try:
                    return await self.content_source.fetch_casts(
                        batch, viewer_fid=viewer_fid, limit=self.source_page_size
                    )
                except Exception as e:
                    logger.error(
                        f"Feed batch {index + 1}/{len(batches)} for {viewer_fid} failed: {e}"
                    )
                    return []
                finally:
                    if waiting > 0 and semaphore.locked():
                        latency = time.monotonic() - started
                        await self._pace(
                            min(latency * self.pacing_factor, self.max_pacing_delay)
                        )

        return await asyncio.gather(
            *(fetch_one(index, batch) for index, batch in enumerate(batches))
        )


    def _merge(self, results: List[List[Dict[str, Any]]], connections: Set[int]):
        merged: List[Dict[str, Any]] = []
        seen_hashes: Set[str] = set()
        dropped = 0

        for casts in results:
            for cast in casts or []:
                if not isinstance(cast, dict):
                    continue
                if cast_author_fid(cast) not in connections:
                    dropped += 1
                    continue
                cast_hash = cast.get("hash") or cast.get("thread_hash")
                if not cast_hash or cast_hash in seen_hashes:
                    continue
                seen_hashes.add(cast_hash)
                merged.append(cast)

        if dropped:
            logger.info(f"Filtered out {dropped} casts from non-connected authors")

        merged.sort(key=parse_cast_timestamp, reverse=True)
        return [normalize_engagement(cast) for cast in merged]

    async def feed(
        self, fid: int, limit: int = settings.DEFAULT_FEED_LIMIT, cursor: Optional[str] = None
    ) -> FeedPage:
        """
        Build one page of the connected-users feed

        Args:
            fid: Viewing user
            limit: Casts per page, clamped to [1, MAX_FEED_LIMIT]
            cursor: Opaque cursor from a previous page; invalid cursors restart at the top

        Returns:
            FeedPage with casts and diagnostic metadata
        """
        limit = min(max(1, limit), self.max_limit)

        connections = await self.graph.mutual_connections_of(fid)
        if not connections:
            return FeedPage(
                items=[],
                has_more=False,
                next_cursor=None,
                total_items_available=0,
                mutual_connections_count=0,
                api_calls_made=0,
                batches_used=0,
                total_items_fetched=0,
            )

        batches = self._batches(sorted(connections))
        results = await self._fetch_batches(batches, fid)
        casts = self._merge(results, connections)

        start = decode_cursor(cursor)
        end = start + limit
        page = casts[start:end]
        has_more = end < len(casts)

        logger.info(
            f"Feed for {fid}: {len(connections)} connections, {len(batches)} batches, "
            f"{len(casts)} casts, returning {len(page)} from offset {start}"
        )

        return FeedPage(
            items=page,
            has_more=has_more,
            next_cursor=encode_cursor(end) if has_more else None,
            total_items_available=len(casts),
            mutual_connections_count=len(connections),
            api_calls_made=len(batches),
            batches_used=len(batches),
            total_items_fetched=len(casts),
        )
