from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

try:
    from sqlalchemy import create_engine, text
    from sqlalchemy.engine import Connection, Engine, URL
    from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError
except ImportError as exc:  # pragma: no cover - dependency guard
    raise RuntimeError("SQLAlchemy directory support requires the 'sqlalchemy' package") from exc

from ..common import PrintLogger
from ..events import emit_log
from ..query.plan import RecordSet, quote_identifier
from .base import CatalogHandle, ConnectionSettings, DirectoryClient, Session
from .errors import (
    AUTHENTICATION_FAILED,
    CONNECTION_FAILED,
    DATABASE_NOT_FOUND,
    DELETE_REJECTED,
    DRIVER_UNAVAILABLE,
    ENTRY_NOT_FOUND,
    INVALID_SETTINGS,
    DirectoryConnectionError,
    DirectoryError,
)

DIALECTS: Dict[str, str] = {
    "dst_HANADB": "hana",
    "dst_MSSQL": "mssql+pyodbc",
    "dst_MSSQL2005": "mssql+pyodbc",
    "dst_MSSQL2008": "mssql+pyodbc",
    "dst_MSSQL2012": "mssql+pyodbc",
    "dst_MSSQL2014": "mssql+pyodbc",
    "dst_MSSQL2016": "mssql+pyodbc",
    "dst_MSSQL2017": "mssql+pyodbc",
    "dst_MSSQL2019": "mssql+pyodbc",
    "dst_DB_2": "db2+ibm_db",
}

_AUTH_MARKERS = ("password", "authentication", "login failed", "access denied", "invalid user")
_MISSING_DB_MARKERS = ("unknown database", "does not exist", "unable to open database", "cannot open database")


def _split_server(server: str) -> Tuple[Optional[str], Optional[int]]:
    if not server:
        return None, None
    host, sep, port = server.rpartition(":")
    if sep and port.isdigit():
        return host or None, int(port)
    return server, None


def build_url(settings: ConnectionSettings) -> URL:
    drivername = DIALECTS.get(settings.db_server_type)
    if drivername is None:
        raise DirectoryConnectionError(
            INVALID_SETTINGS,
            f"No SQL dialect registered for database server type {settings.db_server_type!r}",
        )
    host, port = _split_server(settings.server)
    if not host or not settings.company_db:
        raise DirectoryConnectionError(INVALID_SETTINGS, "server and company_db are required")
    return URL.create(
        drivername,
        username=settings.db_user or None,
        password=settings.db_password or None,
        host=host,
        port=port,
        database=settings.company_db,
    )


def classify_error(exc: BaseException) -> int:
    if isinstance(exc, (NoSuchModuleError, ImportError)):
        return DRIVER_UNAVAILABLE
    if isinstance(exc, ArgumentError):
        return INVALID_SETTINGS
    detail = str(getattr(exc, "orig", None) or exc).lower()
    if any(marker in detail for marker in _AUTH_MARKERS):
        return AUTHENTICATION_FAILED
    if any(marker in detail for marker in _MISSING_DB_MARKERS):
        return DATABASE_NOT_FOUND
    return CONNECTION_FAILED


class SQLAlchemySession(Session):
    def __init__(self, engine: Engine, connection: Connection) -> None:
        super().__init__()
        self.engine = engine
        self.connection = connection


class SQLAlchemyDirectoryClient(DirectoryClient):
    """Directory whose catalog table lives in a SQL database reachable through SQLAlchemy."""

    def __init__(
        self,
        catalog_table: str = "OSCN",
        card_column: str = "CardCode",
        item_column: str = "ItemCode",
        substitute_column: str = "Substitute",
        logger: Optional[PrintLogger] = None,
    ) -> None:
        self.catalog_table = catalog_table
        self.card_column = card_column
        self.item_column = item_column
        self.substitute_column = substitute_column
        self.logger = logger

    def open(self, settings: ConnectionSettings) -> SQLAlchemySession:
        url = settings.url or build_url(settings)
        engine: Optional[Engine] = None
        try:
            engine = create_engine(url, **dict(settings.engine_options))
            connection = engine.connect()
        except (SQLAlchemyError, ImportError) as exc:
            if engine is not None:
                engine.dispose()
            code = classify_error(exc)
            message = str(getattr(exc, "orig", None) or exc)
            emit_log(
                self.logger,
                level="ERROR",
                msg="directory_connect_failed",
                code=code,
                err=message,
                **settings.redacted(),
            )
            raise DirectoryConnectionError(code, message) from exc
        emit_log(self.logger, level="INFO", msg="directory_connected", company_db=settings.company_db or None)
        return SQLAlchemySession(engine, connection)

    def query(self, session: Session, sql: str) -> RecordSet:
        connection = self._connection(session)
        try:
            result = connection.execute(text(sql))
            return RecordSet.from_records(dict(row._mapping) for row in result)
        except SQLAlchemyError:
            connection.rollback()
            raise

    def find_catalog_entry(
        self,
        session: Session,
        item_key: str,
        card_key: str,
        substitute: str,
    ) -> Optional[CatalogHandle]:
        connection = self._connection(session)
        sql = (
            f"SELECT {quote_identifier(self.substitute_column)} FROM {quote_identifier(self.catalog_table)}"
            f" WHERE {self._key_predicate()}"
        )
        try:
            row = connection.execute(text(sql), self._key_params(item_key, card_key, substitute)).first()
        except SQLAlchemyError:
            connection.rollback()
            raise
        if row is None:
            return None
        return CatalogHandle(item_key=item_key, card_key=card_key, substitute=substitute, session=session)

    def delete(self, handle: CatalogHandle) -> int:
        if handle.released or handle.session is None:
            raise DirectoryError(INVALID_SETTINGS, "Catalog handle has already been released")
        session = handle.session
        connection = self._connection(session)
        sql = f"DELETE FROM {quote_identifier(self.catalog_table)} WHERE {self._key_predicate()}"
        params = self._key_params(handle.item_key, handle.card_key, handle.substitute)
        try:
            result = connection.execute(text(sql), params)
            if result.rowcount == 0:
                connection.rollback()
                session.last_error = (ENTRY_NOT_FOUND, "Catalog entry no longer exists")
                return ENTRY_NOT_FOUND
            connection.commit()
        except SQLAlchemyError as exc:
            connection.rollback()
            session.last_error = (DELETE_REJECTED, str(getattr(exc, "orig", None) or exc))
            return DELETE_REJECTED
        session.last_error = (0, "")
        return 0

    def close(self, session: Session) -> None:
        if session.closed:
            return
        session.closed = True
        if not isinstance(session, SQLAlchemySession):
            return
        try:
            session.connection.close()
        finally:
            session.engine.dispose()
        emit_log(self.logger, level="INFO", msg="directory_disconnected")

    def _connection(self, session: Session) -> Connection:
        if not isinstance(session, SQLAlchemySession):
            raise TypeError(f"Expected a SQLAlchemy session, got {type(session).__name__}")
        if session.closed:
            raise DirectoryError(CONNECTION_FAILED, "Directory session is closed")
        return session.connection

    def _key_predicate(self) -> str:
        return (
            f"{quote_identifier(self.item_column)} = :item_key"
            f" AND {quote_identifier(self.card_column)} = :card_key"
            f" AND {quote_identifier(self.substitute_column)} = :substitute"
        )

    @staticmethod
    def _key_params(item_key: str, card_key: str, substitute: str) -> Dict[str, Any]:
        return {"item_key": item_key, "card_key": card_key, "substitute": substitute}


__all__ = ["DIALECTS", "SQLAlchemyDirectoryClient", "SQLAlchemySession", "build_url", "classify_error"]
