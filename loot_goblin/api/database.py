"""
SQLAlchemy engine and sessions for the adventure service.
Adventures live in a local SQLite file unless DATABASE_URL points somewhere else (e.g. Postgres).
"""

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

SQLITE_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "adventures.db")


def database_url() -> str:
    """DATABASE_URL from the environment, normalized for SQLAlchemy 2.x; SQLite file otherwise."""
    url = os.environ.get("DATABASE_URL")
    if not url:
        return f"sqlite:///{SQLITE_PATH}"
    # Some hosts still hand out the legacy postgres:// scheme
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


DATABASE_URL = database_url()
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        # adventures.created_by references players.id
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the players and adventures tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready (%s)", engine.url.get_backend_name())
