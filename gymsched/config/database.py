"""Database configuration and connection setup"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from gymsched.config.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # Local development only; pooling options do not apply.
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=False,
    )


# Create database engine with connection pooling
engine = _build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all schedule tables (development helper, migrations live in alembic/)"""
    from gymsched.models import Base

    logger.info("Creating all tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")


if __name__ == "__main__":
    create_tables()
