"""
Database connection and session management
"""
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Base class for models
Base = declarative_base()


class Database:
    """
    Owns one engine and its session factory.

    Constructed once by the process entry point (or by a test) and passed
    to every component that needs the store.
    """

    def __init__(self, url: str, echo: bool = False, engine: Optional[Engine] = None):
        self.url = url
        self.engine = engine or self._create_engine(url, echo)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if not url.startswith("sqlite"):
            return create_engine(url, pool_pre_ping=True, echo=echo)

        kwargs = {"echo": echo, "connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)

        # pysqlite issues its own BEGIN lazily and breaks SAVEPOINT; take over
        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    def session(self) -> Session:
        """Bare session; the caller owns commit and close"""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Unit of work: commit on success, rollback on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        # Import models so every table is registered on Base.metadata
        import adtier.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def dialect_insert(session: Session, model):
    """INSERT construct with on_conflict_do_update support for the bound dialect"""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Upsert is not supported on {dialect}")
    return insert(model)
