# mentorship_hub/database.py
import logging
from typing import Optional
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .config import Settings, get_settings

logger = logging.getLogger(__name__)

# Base class for declarative models
Base = declarative_base()

def get_engine(settings: Optional[Settings] = None) -> Engine:
    settings = settings or get_settings()
    if settings.DATABASE_URL:
        if settings.DATABASE_URL.startswith("sqlite"):
            # In-memory sqlite must share a single connection across threads
            return create_engine(
                settings.DATABASE_URL,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        database_url = settings.DATABASE_URL
    else:
        database_url = URL.create(
            "postgresql+psycopg2",
            username=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            host=settings.POSTGRES_HOST,
            port=settings.POSTGRES_PORT,
            database=settings.POSTGRES_DB,
        )
    return create_engine(
        database_url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )

def make_session_factory(engine: Engine) -> sessionmaker:
    """Creates the Session class bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

def create_db_and_tables(engine: Engine):
    """Creates all defined database tables."""
    # Register models on the metadata before creating
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created or already exist.")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_db_and_tables(get_engine())
