# mentorship_hub/main.py
import logging
from typing import Optional
from fastapi import FastAPI

from .config import Settings, get_settings
from .core.change_feed import ChangeFeed, RedisChangeFeed
from .database import create_db_and_tables, get_engine, make_session_factory
from .routers import mentorship_router, message_router, notification_router, connection_router, ws_router

def configure_logging(settings: Settings):
    logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

logger = logging.getLogger(__name__)

def build_change_feed(settings: Settings) -> ChangeFeed:
    """Redis-backed when REDIS_URL is set, otherwise local to this process."""
    if settings.REDIS_URL:
        return RedisChangeFeed.from_url(
            settings.REDIS_URL,
            buffer_size=settings.CHANGE_FEED_BUFFER_SIZE,
            channel_prefix=settings.CHANGE_FEED_CHANNEL_PREFIX,
        )
    logger.info("REDIS_URL not set; change feed is local to this process.")
    return ChangeFeed(buffer_size=settings.CHANGE_FEED_BUFFER_SIZE)

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Builds the application with its own engine, session factory and change feed."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Mentorship Hub API",
        description="Mentorship requests, conversations and notifications for students and alumni.",
        version="1.0.0",
    )

    engine = get_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.change_feed = build_change_feed(settings)

    app.include_router(mentorship_router.router)
    app.include_router(message_router.router)
    app.include_router(notification_router.router)
    app.include_router(connection_router.router)
    app.include_router(ws_router.router)

    @app.on_event("startup")
    async def startup_event():
        """Initialize application on startup"""
        logger.info("Application startup event triggered.")
        try:
            create_db_and_tables(app.state.engine)
            logger.info("Startup sequence completed successfully.")
        except Exception as e:
            logger.critical(f"Critical error during startup: {e}", exc_info=True)

    @app.on_event("shutdown")
    async def shutdown_event():
        app.state.change_feed.close()
        app.state.engine.dispose()
        logger.info("Application shutdown complete.")

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "live_subscriptions": app.state.change_feed.subscriber_count(),
        }

    return app

app = create_app()
