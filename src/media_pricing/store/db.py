"""
Database utility functions for the media pricing backend.
"""
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import get_settings
from .models import Base

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def make_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections may be shared across request threads."""
    if database_url.startswith('sqlite'):
        connect_args = kwargs.pop('connect_args', {})
        connect_args.setdefault('check_same_thread', False)
        kwargs['connect_args'] = connect_args
    return create_engine(database_url, echo=False, **kwargs)


def get_engine() -> Engine:
    """Get the process-wide engine built from settings."""
    global _engine
    if _engine is None:
        _engine = make_engine(get_settings().database_url)
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine())
    return _session_factory


def get_session() -> Iterator[Session]:
    """
    Yield a database session for one request.

    Used as a FastAPI dependency; the session is closed when the request ends.
    """
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def init_db(engine: Optional[Engine] = None):
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(engine or get_engine())


def drop_db(engine: Optional[Engine] = None):
    """Drop all tables from the database."""
    Base.metadata.drop_all(engine or get_engine())
