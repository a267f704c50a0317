from __future__ import annotations

from typing import Any, Optional

from .common import PrintLogger


def emit_log(logger: Optional[PrintLogger], *, level: str, msg: str, **fields: Any) -> None:
    """Log ``msg`` with the non-empty ``fields``; a missing logger is a no-op."""

    if logger is None:
        return
    payload = {key: value for key, value in fields.items() if value is not None}
    logger.log(level, msg, **payload)


__all__ = ["emit_log"]
