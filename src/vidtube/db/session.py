import logging

from fastapi import Depends, Request
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

logger = logging.getLogger("db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Store handle owning the engine and its connection pool.

    Built once at process start, opened in the application lifespan and
    disposed on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        if not url:
            raise RuntimeError("DATABASE_URL must be set in the environment")
        engine_kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in {"sqlite://", "sqlite:///:memory:"}:
                engine_kwargs["poolclass"] = StaticPool
        self.url = url
        self.engine = create_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

    def open(self, create_tables: bool = False) -> None:
        """Initialize database schema in local/dev when explicitly enabled.

        Prefer running Alembic migrations in non-dev environments. To enable
        automatic table creation for local development, set DB_AUTO_CREATE=1.
        """
        # Register table metadata before create_all.
        from vidtube.db import models  # noqa: F401

        if create_tables:
            SQLModel.metadata.create_all(self.engine)
        logger.info("Database opened: %s", self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Database closed")

    def session(self) -> Session:
        return Session(self.engine)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(database: Database = Depends(get_database)):
    with database.session() as session:
        try:
            yield session
        except SQLAlchemyError:
            session.rollback()
            raise
