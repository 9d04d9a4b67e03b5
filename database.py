"""
Database Configuration
Handles the SQLAlchemy engine backing the key-value store
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL


# Single-slot records (active session, rest timer, profile, per-exercise progress)
# live in kv_store; append-only records (workout history, historical lifts) in record_log.
SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS kv_store (
        key VARCHAR(200) PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS record_log (
        id VARCHAR(64) PRIMARY KEY,
        kind VARCHAR(40) NOT NULL,
        subject VARCHAR(200),
        payload TEXT NOT NULL,
        recorded_at VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_record_log_kind_subject ON record_log (kind, subject)",
]


def build_engine(url: str = DATABASE_URL) -> Engine:
    """
    Create an engine for the given URL.

    - SQLite: the background writer thread shares connections, so
      check_same_thread is disabled; in-memory databases use a StaticPool
      so every connection sees the same data.
    - Anything else: pool_pre_ping tests connections before using them.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10
    )


def init_schema(engine: Engine) -> None:
    """Create the storage tables if they do not exist yet"""
    with engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))


# Create SQLAlchemy engine
engine = build_engine()


def build_session_factory(bind: Engine) -> sessionmaker:
    """Session factory used by the storage service"""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)
