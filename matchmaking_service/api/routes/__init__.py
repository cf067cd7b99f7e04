from .swipes import router as swipes_router
from .connections import router as connections_router
from .matching import router as matching_router
from .feed import router as feed_router


__all__ = [
    "swipes_router",
    "connections_router",
    "matching_router",
    "feed_router",
]
