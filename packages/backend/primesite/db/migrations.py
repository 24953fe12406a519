from __future__ import annotations

from .base import Base
from .database import Database, get_database, get_drafts_database
from .models import DraftBase


def init_db(database: Database | None = None) -> None:
    db_instance = database or get_database()
    Base.metadata.create_all(bind=db_instance.engine)


def init_drafts_db(database: Database | None = None) -> None:
    db_instance = database or get_drafts_database()
    DraftBase.metadata.create_all(bind=db_instance.engine)


__all__ = ["init_db", "init_drafts_db"]
