"""
Neynar feed API client - the external cast source
"""
import httpx
from typing import Any, Dict, List, Optional
import logging

from ..config import settings
from ..domain.repositories import IContentSource
from ..exceptions import ContentSourceError

logger = logging.getLogger(__name__)


class NeynarClient(IContentSource):
    """HTTP client for the Neynar filtered feed endpoint"""

    def __init__(self):
        self.timeout = httpx.Timeout(settings.NEYNAR_TIMEOUT_SECONDS, connect=5.0)
        self.client: Optional[httpx.AsyncClient] = None

    async def start(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize HTTP client"""
        self.client = httpx.AsyncClient(
            base_url=settings.NEYNAR_API_URL,
            timeout=self.timeout,
            transport=transport,
            headers={
                "x-api-key": settings.NEYNAR_API_KEY,
                "Content-Type": "application/json",
            },
        )
        logger.info("Neynar client initialized")

    async def stop(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            logger.info("Neynar client closed")

    async def fetch_casts(
        self,
        author_fids: List[int],
        viewer_fid: Optional[int] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Fetch recent casts from up to FEED_BATCH_CAP authors in one call

        Args:
            author_fids: Authors to fetch casts from
            viewer_fid: Viewer fid for personalized reaction context
            limit: Casts per call; callers pass the source's maximum

        Returns:
            Raw cast dictionaries as returned by Neynar

        Raises:
            ContentSourceError: If the client is not started or the call fails
        """
        if not author_fids:
            return []

        if not self.client:
            raise ContentSourceError("Neynar client not initialized")

        if len(author_fids) > settings.FEED_BATCH_CAP:
            raise ContentSourceError(
                f"At most {settings.FEED_BATCH_CAP} fids are accepted per call, got {len(author_fids)}"
            )

        params: Dict[str, Any] = {
            "feed_type": "filter",
            "filter_type": "fids",
            "fids": ",".join(str(fid) for fid in author_fids),
            "limit": limit,
            "with_recasts": "true",
        }
        if viewer_fid is not None:
            params["viewer_fid"] = viewer_fid

        try:
            response = await self.client.get("/v2/farcaster/feed", params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Neynar API error {e.response.status_code}: {e.response.text}")
            raise ContentSourceError(
                f"Neynar API error: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Neynar request failed: {e}")
            raise ContentSourceError(f"Failed to fetch casts: {e}") from e

        return data.get("casts") or []


# Global client instance
neynar_client = NeynarClient()


async def get_content_source() -> NeynarClient:
    """Dependency for getting the content source"""
    return neynar_client
