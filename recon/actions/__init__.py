from .base import RowAction, registry
from .builtin import CatalogDeleteAction

__all__ = ["CatalogDeleteAction", "RowAction", "registry"]
