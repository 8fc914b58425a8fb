"""
Database session management - SQLAlchemy engine and session factory.
This module provides the database connection and session dependency for FastAPI.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from aura.core.config import settings
from aura.db.base import Base

# ---------------------------------------------------------------------------
# DATABASE ENGINE
# ---------------------------------------------------------------------------
# pool_pre_ping=True: check a pooled connection is alive before using it
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)

# ---------------------------------------------------------------------------
# SESSION FACTORY
# ---------------------------------------------------------------------------
# SessionLocal is a class (factory), not an instance. Call SessionLocal() to get a session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create any missing tables. Called from the app lifespan."""
    # Import models so their tables are registered on Base.metadata
    from aura import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/events")
        def list_events(db: Session = Depends(get_db)):
            ...

    The session is always closed after the request, even if the route raises.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
