"""Database engine and session management."""
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pm_api.core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Request-scoped database session.

    Nothing is committed here; endpoints commit once their unit of work has
    succeeded. Closing an uncommitted session rolls it back.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
