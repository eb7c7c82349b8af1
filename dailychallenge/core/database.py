"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support (SQLite in-memory)
- Table definitions for challenges, participants and daily entries
"""
from typing import Optional, Generator
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, Float, String, Date, DateTime, Boolean, JSON, Text, Index, ForeignKey, UniqueConstraint, select
from sqlalchemy.engine import make_url
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.sql import func, true, false
import logging
import os

from dailychallenge.core.config import settings

logger = logging.getLogger("dailychallenge")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.
    
    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url
    
    return settings.DATABASE_URL


def _is_in_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return False
    return parsed.database in (None, "", ":memory:") or parsed.query.get("mode") == "memory"


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.
    
    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal
    
    url = database_url or get_database_url()
    
    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if _is_in_memory_sqlite(url):
        # One shared connection so the in-memory database survives across sessions
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    elif url.startswith("sqlite"):
        # File databases get a connection per session so transactions stay separate
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )
    
    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )
    
    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Everything executed inside the block is one transaction: committed when
    the block exits normally, rolled back when it raises.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI-friendly DB dependency that yields a Session and closes it."""
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_all_tables():
    """
    Create all tables defined in metadata.
    
    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.
    
    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def reset_database():
    """
    Reset the database by dropping and recreating all tables.
    
    WARNING: This is destructive! Only use in tests.
    """
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    """
    Check if database connection is available.
    
    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(select(1))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


# Challenges: metric definitions are stored as a JSON list
challenges = Table(
    'challenges',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('creator_id', String(100), nullable=False, index=True),
    Column('name', String(100), nullable=False),
    Column('description', Text, nullable=True),
    Column('starts_at', Date, nullable=False),
    Column('ends_at', Date, nullable=False),
    Column('duration_days', Integer, nullable=False),
    Column('is_public', Boolean, nullable=False, server_default=true()),
    Column('invite_code', String(32), nullable=True, unique=True),
    Column('lock_entries_after_day', Boolean, nullable=False, server_default=false()),
    Column('failure_mode', String(20), nullable=False, server_default='flexible'),
    Column('metrics', JSON, nullable=False),
    Column('enable_streak_bonus', Boolean, nullable=False, server_default=false()),
    Column('streak_bonus_points', Float, nullable=True),
    Column('enable_perfect_day_bonus', Boolean, nullable=False, server_default=false()),
    Column('perfect_day_bonus_points', Float, nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index('idx_challenges_public_starts', 'is_public', 'starts_at'),
)

# One row per (challenge, user); streak and point state live here
challenge_participants = Table(
    'challenge_participants',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('challenge_id', String(100), ForeignKey('challenges.id', ondelete='CASCADE'), nullable=False, index=True),
    Column('user_id', String(100), nullable=False, index=True),
    Column('status', String(20), nullable=False, server_default='active'),
    Column('joined_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('current_streak', Integer, nullable=False, server_default='0'),
    Column('longest_streak', Integer, nullable=False, server_default='0'),
    Column('total_points', Integer, nullable=False, server_default='0'),
    UniqueConstraint('challenge_id', 'user_id', name='uq_challenge_participants_challenge_user'),
)

# Daily entries: at most one per participant per calendar date
daily_entries = Table(
    'daily_entries',
    metadata,
    Column('id', String(100), primary_key=True),
    Column('participant_id', String(100), ForeignKey('challenge_participants.id', ondelete='CASCADE'), nullable=False, index=True),
    Column('entry_date', Date, nullable=False),
    Column('metric_data', JSON, nullable=False),
    Column('is_completed', Boolean, nullable=False, server_default=false()),
    Column('is_locked', Boolean, nullable=False, server_default=false()),
    Column('notes', Text, nullable=True),
    Column('points_earned', Integer, nullable=False, server_default='0'),
    Column('bonus_points', Integer, nullable=False, server_default='0'),
    Column('submitted_at', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    UniqueConstraint('participant_id', 'entry_date', name='uq_daily_entries_participant_date'),
    # Streak walks read completed dates newest first
    Index('idx_daily_entries_participant_completed_date', 'participant_id', 'is_completed', 'entry_date'),
)
