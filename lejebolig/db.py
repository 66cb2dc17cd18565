from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from typing import Generator
import os

# DATABASE_URL defaults to a local SQLite file at ./data.db (relative to the process working directory).
# Override via the DATABASE_URL environment variable for staging/production (e.g. postgresql+psycopg://...).
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data.db")


def is_sqlite(url: str = DATABASE_URL) -> bool:
    return url.startswith("sqlite")


# Build the SQLAlchemy engine with backend-specific settings.
# - SQLite (dev/local): allow cross-thread access; FastAPI runs sync handlers in a threadpool.
# - Server DBs: pool with pre-ping so stale connections are replaced transparently.
if is_sqlite():
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_recycle=280,
        pool_size=int(os.getenv("DB_POOL_MAX", "10")),
        max_overflow=20,
        pool_timeout=2,
    )

# Session factory: one session per request; autocommit and autoflush disabled for explicit transaction control
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models declared via SQLAlchemy's declarative API
Base = declarative_base()


def get_db() -> Generator:
    """
    FastAPI dependency.

    Yields a database session for the lifetime of the request and guarantees it
    is closed afterwards, even if an exception is raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
