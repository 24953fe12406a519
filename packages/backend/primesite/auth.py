"""Explicit authentication context.

Every component that needs to know who is acting receives an ``AuthContext``
argument. The CLI persists the context between runs through ``SessionStore``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from .config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @classmethod
    def anonymous(cls) -> AuthContext:
        return cls()


class SessionStore:
    """Persists the signed-in ``AuthContext`` to a JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        raw = path or get_settings().session_file
        self.path = Path(raw).expanduser()

    def restore(self) -> AuthContext:
        if not self.path.exists():
            return AuthContext.anonymous()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, exc)
            return AuthContext.anonymous()
        if not isinstance(payload, dict):
            return AuthContext.anonymous()
        return AuthContext(user_id=payload.get("user_id") or None, email=payload.get("email") or None)

    def persist(self, auth: AuthContext) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(auth)), encoding="utf-8")

    def sign_out(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return


__all__ = ["AuthContext", "SessionStore"]
