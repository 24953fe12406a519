from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from ..exceptions import TrackedError
from .database import Database


@contextmanager
def store_session(
    database: Database,
    error_type: Type[TrackedError],
    action: str,
    *,
    commit: bool = False,
) -> Generator[DbSession, None, None]:
    """Session for a single store operation.

    Database failures are rolled back and re-raised as ``error_type`` with
    the message ``Failed to <action>: <cause>``.
    """
    session = database.session()
    try:
        yield session
        if commit:
            session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise error_type(f"Failed to {action}: {exc}") from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["store_session"]
