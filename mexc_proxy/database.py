"""SQLModel database engine and session management."""

import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from mexc_proxy.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine; SQLite gets the options it needs to serve FastAPI."""
    connect_args = {}
    kwargs = {}
    # SQLite needs check_same_thread=False; PostgreSQL does not
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # An in-memory database lives only as long as its single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        **kwargs,
    )


engine = build_engine(settings.database_url)


def create_db_and_tables():
    """Create all tables. Called on startup."""
    import mexc_proxy.models  # noqa: F401  (registers tables on the metadata)

    SQLModel.metadata.create_all(engine)
    logger.info(f"Database ready ({engine.dialect.name})")


def get_session() -> Session:
    """Dependency that yields a database session."""
    with Session(engine) as session:
        yield session
