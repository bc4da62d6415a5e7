"""
Database engine and per-request sessions.

The engine is built lazily from Settings so importing models never opens
a connection (tests bind their own SQLite engine).
"""
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from workhub.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for profiles, identities and reports."""


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = get_settings().get_sqlalchemy_url()
        # postgresql+psycopg for DATABASE_URL=postgresql://...
        _engine = create_engine(url, pool_pre_ping=True)
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Session:
    """FastAPI dependency: one session per request, always closed."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection(engine: Engine | None = None) -> None:
    """
    Readiness probe: run SELECT 1 through the application engine.

    Raises:
        sqlalchemy.exc.OperationalError: database unreachable
    """
    with (engine or get_engine()).connect() as conn:
        conn.execute(text("SELECT 1"))
