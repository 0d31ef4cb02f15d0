"""
Database session and engine.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from blane_checkout.config import settings
from blane_checkout.db.base import Base


def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_size=4,
        max_overflow=4,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
    )


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(bind: Engine | None = None) -> None:
    """Create checkout tables without alembic (local dev, tests). Production uses migrations."""
    import blane_checkout.models  # noqa: F401  (register models on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
