import re
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from catalog_purge.directory.base import CatalogHandle, ConnectionSettings, DirectoryClient, Session
from catalog_purge.query.plan import RecordSet
from catalog_purge.tables import InputRow

_CARD_RE = re.compile(r"\"CardCode\" = '((?:[^']|'')*)'")
_ITEM_RE = re.compile(r"\"ItemCode\" = '((?:[^']|'')*)'")


class RecordingLogger:
    def __init__(self) -> None:
        self.records: List[Tuple[str, str, Dict[str, object]]] = []

    def log(self, level, msg, **fields):
        self.records.append((level, msg, fields))

    def messages(self) -> List[str]:
        return [msg for _, msg, _ in self.records]


class FakeDirectoryClient(DirectoryClient):
    """In-memory directory keyed by (card, item) -> substitute."""

    def __init__(
        self,
        entries: Optional[Dict[Tuple[str, str], str]] = None,
        *,
        open_error: Optional[Exception] = None,
        query_hook: Optional[Callable[[str, str], None]] = None,
        unresolvable: Optional[set] = None,
        delete_errors: Optional[Dict[Tuple[str, str], Tuple[int, str]]] = None,
    ) -> None:
        self.entries = dict(entries or {})
        self.open_error = open_error
        self.query_hook = query_hook
        self.unresolvable = set(unresolvable or ())
        self.delete_errors = dict(delete_errors or {})
        self.sessions: List[Session] = []
        self.queries: List[str] = []
        self.acquired: list = []
        self.release_calls: list = []
        self.close_calls = 0
        self.deleted: List[Tuple[str, str]] = []

    def open(self, settings: ConnectionSettings) -> Session:
        if self.open_error is not None:
            raise self.open_error
        session = Session()
        self.sessions.append(session)
        return session

    def query(self, session: Session, sql: str) -> RecordSet:
        self.queries.append(sql)
        card = _CARD_RE.search(sql).group(1).replace("''", "'")
        item = _ITEM_RE.search(sql).group(1).replace("''", "'")
        if self.query_hook is not None:
            self.query_hook(card, item)
        substitute = self.entries.get((card, item))
        records = RecordSet.from_records([{"Substitute": substitute}] if substitute is not None else [])
        self.acquired.append(records)
        return records

    def find_catalog_entry(self, session, item_key, card_key, substitute):
        if (card_key, item_key) in self.unresolvable:
            return None
        if self.entries.get((card_key, item_key)) != substitute:
            return None
        handle = CatalogHandle(item_key=item_key, card_key=card_key, substitute=substitute, session=session)
        self.acquired.append(handle)
        return handle

    def delete(self, handle: CatalogHandle) -> int:
        key = (handle.card_key, handle.item_key)
        if key in self.delete_errors:
            handle.session.last_error = self.delete_errors[key]
            return -1
        del self.entries[key]
        self.deleted.append(key)
        return 0

    def release(self, resource) -> None:
        self.release_calls.append(resource)
        super().release(resource)

    def close(self, session: Session) -> None:
        self.close_calls += 1
        session.closed = True


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def fake_client_factory():
    return FakeDirectoryClient


@pytest.fixture
def settings():
    return ConnectionSettings(server="hana:30015", company_db="SBODEMO", db_user="SYSTEM", db_password="secret")


def make_rows(*pairs) -> List[InputRow]:
    return [InputRow(index=position, card_key=card, item_key=item) for position, (card, item) in enumerate(pairs, start=1)]


@pytest.fixture
def rows_factory():
    return make_rows
