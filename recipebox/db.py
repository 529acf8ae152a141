from __future__ import annotations

from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session


class Base(DeclarativeBase):
    pass


class Database:
    """Engine plus session factory, created at startup and disposed at shutdown."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_url(cls, database_url: str) -> "Database":
        return cls(create_engine(database_url, pool_pre_ping=True))

    def session(self) -> Session:
        return self._session_factory()

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not initialised; is the app lifespan running?")
    return database


def get_db(request: Request) -> Iterator[Session]:
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
