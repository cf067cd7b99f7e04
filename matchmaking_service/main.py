"""
FastAPI application for Matchmaking Service
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .config import settings
from .exceptions import MatchmakingError
from .infrastructure.cache import cache
from .infrastructure.content_client import neynar_client
from .infrastructure.database.connection import db
from .infrastructure.kafka_producer import kafka_producer
from .api.routes import (
    connections_router,
    feed_router,
    matching_router,
    swipes_router,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Matchmaking Service...")

    await db.connect()
    logger.info("Database connected")

    await cache.connect()
    logger.info("Redis cache initialized")

    await kafka_producer.start()
    logger.info("Kafka producer started")

    await neynar_client.start()

    logger.info(f"Matchmaking Service started successfully on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Matchmaking Service...")

    await neynar_client.stop()
    await kafka_producer.stop()
    await cache.disconnect()
    await db.disconnect()

    logger.info("Matchmaking Service shut down successfully")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Matchmaking Service - swipes, mutual connections, persona ranking and connected-users feed",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MatchmakingError)
async def matchmaking_exception_handler(request: Request, exc: MatchmakingError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(swipes_router)
app.include_router(connections_router)
app.include_router(matching_router)
app.include_router(feed_router)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": settings.APP_NAME}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "matchmaking_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
