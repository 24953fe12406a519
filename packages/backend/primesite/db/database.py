from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from ..config import get_settings


def _expand_sqlite_url(url: str) -> str:
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        return url
    raw_path = url[len(prefix):]
    if not raw_path or raw_path == ":memory:":
        return url
    path = Path(raw_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"{prefix}{path}"


class Database:
    def __init__(self, url: Optional[str] = None) -> None:
        settings = get_settings()
        resolved_url = _expand_sqlite_url(url or settings.database_url)
        connect_args = {}
        if resolved_url.startswith("sqlite"):
            connect_args = {"check_same_thread": False, "timeout": 30}
        self.url = resolved_url
        self.engine = create_engine(
            self.url,
            connect_args=connect_args,
            pool_pre_ping=True,
            future=True,
        )
        if resolved_url.startswith("sqlite"):
            @event.listens_for(self.engine, "connect")
            def _set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
                cursor = dbapi_connection.cursor()
                try:
                    cursor.execute("PRAGMA journal_mode=WAL;")
                    cursor.execute("PRAGMA synchronous=NORMAL;")
                    cursor.execute("PRAGMA busy_timeout=30000;")
                finally:
                    cursor.close()
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            future=True,
        )

    def session(self):
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


_database: Optional[Database] = None
_drafts_database: Optional[Database] = None


def get_database() -> Database:
    """Remote record store database (multi-device, user-scoped)."""
    global _database
    if _database is None:
        _database = Database()
    return _database


def get_drafts_database() -> Database:
    """Device-local draft database."""
    global _drafts_database
    if _drafts_database is None:
        _drafts_database = Database(get_settings().local_drafts_url)
    return _drafts_database


def reset_database() -> None:
    global _database, _drafts_database
    for database in (_database, _drafts_database):
        if database is not None:
            database.dispose()
    _database = None
    _drafts_database = None


__all__ = ["Database", "get_database", "get_drafts_database", "reset_database"]
