from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from ..common import PrintLogger
from .base import DirectoryClient

ClientBuilder = Callable[[Dict[str, Any], Optional[PrintLogger]], DirectoryClient]


class DirectoryRegistry:
    """Registry of directory adapters keyed by the ``directory.adapter`` config value."""

    def __init__(self) -> None:
        self._builders: Dict[str, ClientBuilder] = {}

    def register(self, name: str, builder: ClientBuilder) -> None:
        self._builders[name.lower()] = builder

    def get(self, name: str) -> Optional[ClientBuilder]:
        return self._builders.get(name.lower())

    def names(self) -> List[str]:
        return sorted(self._builders)


REGISTRY = DirectoryRegistry()


def _build_sqlalchemy(directory_cfg: Dict[str, Any], logger: Optional[PrintLogger]) -> DirectoryClient:
    # Imported lazily so configurations using other adapters do not need SQLAlchemy
    from .sqlalchemy import SQLAlchemyDirectoryClient

    return SQLAlchemyDirectoryClient(logger=logger)


REGISTRY.register("sqlalchemy", _build_sqlalchemy)


def build_directory_client(cfg: Dict[str, Any], logger: Optional[PrintLogger] = None) -> DirectoryClient:
    directory_cfg = cfg.get("directory", {}) or {}
    adapter = str(directory_cfg.get("adapter", "sqlalchemy")).strip().lower()
    builder = REGISTRY.get(adapter)
    if builder is None:
        raise ValueError(f"Unsupported directory adapter: {adapter} (known: {', '.join(REGISTRY.names())})")
    return builder(directory_cfg, logger)


__all__ = ["REGISTRY", "DirectoryRegistry", "build_directory_client"]
