from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from ..query.plan import RecordSet

_SECRET_FIELDS = ("db_password", "password")


@dataclass(frozen=True)
class ConnectionSettings:
    server: str = ""
    db_server_type: str = "dst_HANADB"
    company_db: str = ""
    db_user: str = ""
    db_password: str = ""
    user_name: str = ""
    password: str = ""
    license_server: str = ""
    sld_server: str = ""
    url: Optional[str] = None
    engine_options: Dict[str, Any] = field(default_factory=dict)

    def redacted(self) -> Dict[str, Any]:
        data = {
            "server": self.server,
            "db_server_type": self.db_server_type,
            "company_db": self.company_db,
            "db_user": self.db_user,
            "user_name": self.user_name,
            "license_server": self.license_server,
            "sld_server": self.sld_server,
            "url_configured": bool(self.url),
        }
        for key in _SECRET_FIELDS:
            data[key] = "***" if getattr(self, key) else ""
        return data


class Session:
    """Opaque handle to an open directory connection."""

    def __init__(self) -> None:
        self.closed = False
        self.last_error: Tuple[int, str] = (0, "")


@dataclass
class CatalogHandle:
    item_key: str
    card_key: str
    substitute: str
    session: Optional[Session] = None
    released: bool = False

    def release(self) -> None:
        self.session = None
        self.released = True


Resource = Union[RecordSet, CatalogHandle]


class DirectoryClient(abc.ABC):
    """Operations the reconciliation engine needs from an external directory."""

    @abc.abstractmethod
    def open(self, settings: ConnectionSettings) -> Session:
        ...

    @abc.abstractmethod
    def query(self, session: Session, sql: str) -> RecordSet:
        ...

    @abc.abstractmethod
    def find_catalog_entry(
        self,
        session: Session,
        item_key: str,
        card_key: str,
        substitute: str,
    ) -> Optional[CatalogHandle]:
        ...

    @abc.abstractmethod
    def delete(self, handle: CatalogHandle) -> int:
        """Delete the entry behind ``handle``; 0 on success, else an error code."""

    @abc.abstractmethod
    def close(self, session: Session) -> None:
        ...

    def last_error(self, session: Session) -> Tuple[int, str]:
        return session.last_error

    def release(self, resource: Resource) -> None:
        if not resource.released:
            resource.release()


__all__ = ["CatalogHandle", "ConnectionSettings", "DirectoryClient", "Resource", "Session"]
