"""
Database session management.
"""
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from ratings_api.core.config import get_settings
from ratings_api.core.errors import StoreError

settings = get_settings()

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a read-then-write unit of work as one transaction.

    Commits on success. Any exception rolls back everything done inside the
    block, so partial writes are never observable; SQLAlchemy failures are
    re-raised as ``StoreError``, domain errors propagate unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Database operation failed: {e}") from e
    except Exception:
        db.rollback()
        raise
