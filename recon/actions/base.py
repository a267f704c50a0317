from __future__ import annotations

import abc
from typing import Dict, List, Optional, Type

from ..context import RowContext
from ..results import RowError, RowOutcome


class ActionRegistry:
    """Registry of available row actions."""

    def __init__(self) -> None:
        self._by_type: Dict[str, Type["RowAction"]] = {}

    def register(self, action_cls: Type["RowAction"]) -> Type["RowAction"]:
        self._by_type[action_cls.type_name()] = action_cls
        return action_cls

    def get(self, action_type: str) -> Optional[Type["RowAction"]]:
        return self._by_type.get(action_type.lower())

    def names(self) -> List[str]:
        return sorted(self._by_type)


registry = ActionRegistry()


class RowAction(abc.ABC):
    """Work performed against the directory for one row with valid keys."""

    @classmethod
    def type_name(cls) -> str:
        return getattr(cls, "_TYPE", cls.__name__.lower())

    def run(self, context: RowContext) -> RowOutcome:
        try:
            return self._execute(context)
        except Exception as exc:
            return RowError(message=str(exc) or type(exc).__name__)

    @abc.abstractmethod
    def _execute(self, context: RowContext) -> RowOutcome:
        ...
