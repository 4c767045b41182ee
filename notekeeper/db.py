import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from notekeeper.errors import ConfigError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _normalize_sqlalchemy_postgres_url(url: str) -> str:
    """
    Normalize a Postgres URL into a SQLAlchemy psycopg2 URL.

    Accepts:
    - postgresql://...
    - postgresql+psycopg2://...

    Returns:
    - postgresql+psycopg2://...
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return url


# PUBLIC_INTERFACE
def make_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the notes database.

    SQLite connections are shared with worker threads (the SQL driver runs its
    session work off the event loop), so `check_same_thread` is disabled. An
    in-memory SQLite URL gets a StaticPool: every connection must see the same
    database, otherwise each new connection would start empty.
    """
    try:
        url = make_url(_normalize_sqlalchemy_postgres_url(database_url))
    except ArgumentError as exc:
        raise ConfigError(f"Invalid database URL: {database_url!r}") from exc

    kwargs = {"echo": echo, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool

    logger.debug("Creating engine for %s", url.render_as_string(hide_password=True))
    return create_engine(url, **kwargs)


# PUBLIC_INTERFACE
def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to `engine`; objects stay readable after commit."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


# PUBLIC_INTERFACE
def create_schema(engine: Engine) -> None:
    """Create the notes table if it does not exist."""
    # Import for its side effect of registering the table on Base.metadata.
    from notekeeper import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Notes schema ready on %s", engine.url.render_as_string(hide_password=True))
