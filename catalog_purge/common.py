from __future__ import annotations

import logging
import sys
import uuid
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Optional

RUN_ID = uuid.uuid4().hex[:12]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text:
        return repr(text)
    return text


class PrintLogger:
    """Key/value job logger printing to stdout and, optionally, a rotating file."""

    def __init__(
        self,
        job_name: str,
        file_path: Optional[str] = None,
        level: str = "INFO",
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ) -> None:
        self.job_name = job_name
        self.file_path = file_path
        self._logger = logging.getLogger(f"catalog_purge.{job_name}.{uuid.uuid4().hex[:8]}")
        self._logger.setLevel(_LEVELS.get(str(level).upper(), logging.INFO))
        self._logger.propagate = False
        self._handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if file_path:
            Path(file_path).parent.mkdir(parents=True, exist_ok=True)
            self._handlers.append(
                RotatingFileHandler(file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
            )
        for handler in self._handlers:
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    def log(self, level: str, msg: str, **fields: Any) -> None:
        level_name = str(level).upper()
        if level_name == "WARNING":
            level_name = "WARN"
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        parts = [f"[{timestamp}]", f"[{level_name}]", f"job={self.job_name}", f"run_id={RUN_ID}", msg]
        parts.extend(f"{key}={_format_value(value)}" for key, value in fields.items())
        self._logger.log(_LEVELS.get(level_name, logging.INFO), " ".join(parts))

    def debug(self, msg: str, **fields: Any) -> None:
        self.log("DEBUG", msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self.log("INFO", msg, **fields)

    def warn(self, msg: str, **fields: Any) -> None:
        self.log("WARN", msg, **fields)

    def error(self, msg: str, **fields: Any) -> None:
        self.log("ERROR", msg, **fields)

    def close(self) -> None:
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []


__all__ = ["PrintLogger", "RUN_ID"]
