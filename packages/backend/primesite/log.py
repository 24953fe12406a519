"""Structured JSON logging for the PrimeSite backend.

Logs deployments, uploads, publish runs and best-effort failures as JSON
lines so they can be grepped in production.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Merge extra structured data
        if hasattr(record, "data"):
            entry["data"] = record.data  # type: ignore[attr-defined]
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | str = logging.INFO,
) -> logging.Logger:
    """Configure structured logging for the ``primesite`` package.

    Args:
        log_dir: Directory for log files. If None, logs to stderr only.
        level: Logging level (name or number).

    Returns:
        The root 'primesite' logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("primesite")
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return logger

    fmt = JSONFormatter()

    if log_dir:
        directory = Path(log_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(directory / "primesite.jsonl", encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    sh.setLevel(level)
    logger.addHandler(sh)

    return logger


__all__ = ["JSONFormatter", "setup_logging"]
