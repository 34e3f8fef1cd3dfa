"""Database configuration and session helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator

from fastapi import Request
from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine


def create_db_engine(database_url: str) -> Engine:
    """Create the engine for ``database_url``, preparing the SQLite data dir."""

    if database_url.startswith("sqlite"):
        db_path = database_url.split("///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).resolve().parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


def get_session(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""

    with Session(request.app.state.engine) as session:
        yield session


def _dialect_insert(session: Session, table: Table):
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert(table)
    if dialect == "postgresql":
        return postgresql.insert(table)
    raise RuntimeError(f"Unsupported database dialect: {dialect}")  # pragma: no cover


def insert_if_absent(session: Session, table: Table, values: Dict[str, Any]) -> bool:
    """Insert a row unless its primary key already exists.

    Runs as one statement so concurrent callers racing on the same key all
    succeed without raising. Returns whether this call inserted the row.
    """

    stmt = _dialect_insert(session, table).values(**values).on_conflict_do_nothing()
    return session.execute(stmt).rowcount == 1


def upsert(
    session: Session,
    table: Table,
    values: Dict[str, Any],
    update_columns: Iterable[str],
) -> None:
    """Insert a row, or overwrite ``update_columns`` when its key exists."""

    stmt = _dialect_insert(session, table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[column.name for column in table.primary_key.columns],
        set_={name: stmt.excluded[name] for name in update_columns},
    )
    session.execute(stmt)


__all__ = ["create_db_engine", "get_session", "insert_if_absent", "upsert"]
