from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, TypeVar

from catalog_purge.common import PrintLogger
from catalog_purge.directory.base import DirectoryClient, Resource, Session
from catalog_purge.events import emit_log
from catalog_purge.sanitize import SanitizedKey, escape_literal

R = TypeVar("R", bound=Resource)


class RunResources:
    """Tracks the session and the directory handles a run still holds.

    Actions hand a handle back through ``release`` as soon as they are done
    with it. ``release_all`` releases whatever is still held, newest first,
    then closes the session. Later calls are no-ops, so teardown happens
    exactly once per run.
    """

    def __init__(self, client: DirectoryClient, session: Session, logger: Optional[PrintLogger] = None) -> None:
        self.client = client
        self.session = session
        self.logger = logger
        self._resources: Dict[int, Resource] = {}
        self._released = False

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def released(self) -> bool:
        return self._released

    def track(self, resource: Optional[R]) -> Optional[R]:
        if resource is None:
            return None
        if self._released:
            raise RuntimeError("Run resources have already been released")
        self._resources.setdefault(id(resource), resource)
        return resource

    def release(self, resource: Optional[Resource]) -> None:
        if resource is None or self._resources.pop(id(resource), None) is None:
            return
        self.client.release(resource)

    def release_all(self) -> None:
        if self._released:
            return
        self._released = True
        resources = list(self._resources.values())
        self._resources = {}
        failures = 0
        for resource in reversed(resources):
            try:
                self.client.release(resource)
            except Exception as exc:  # pragma: no cover - defensive
                failures += 1
                emit_log(
                    self.logger,
                    level="ERROR",
                    msg="resource_release_failed",
                    resource=type(resource).__name__,
                    err=str(exc),
                )
        try:
            self.client.close(self.session)
        except Exception as exc:  # pragma: no cover - defensive
            failures += 1
            emit_log(self.logger, level="ERROR", msg="session_close_failed", err=str(exc))
        emit_log(self.logger, level="DEBUG", msg="run_resources_released", handles=len(resources), failures=failures)


@dataclass
class RowContext:
    """Execution context passed to row actions."""

    row_index: int
    card_key: SanitizedKey
    item_key: SanitizedKey
    client: DirectoryClient
    resources: RunResources
    logger: Optional[PrintLogger] = None

    @property
    def session(self) -> Session:
        return self.resources.session

    def track(self, resource: Optional[R]) -> Optional[R]:
        return self.resources.track(resource)

    def release(self, resource: Optional[Resource]) -> None:
        self.resources.release(resource)

    @staticmethod
    def escape(key: str) -> str:
        return escape_literal(key)
