"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from .config import get_settings

settings = get_settings()

if settings.database_url.startswith("sqlite"):
    # SQLite is used for local development; FastAPI may hand the session to another thread
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,          # Verify connections before using
        pool_size=3,
        max_overflow=7,
        pool_recycle=3600,
        pool_timeout=30,
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables directly for SQLite development databases.

    PostgreSQL deployments are migrated with Alembic instead.
    """
    from .models import Base

    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
