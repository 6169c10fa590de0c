"""
Document store abstraction over Firestore, SQL and an in-memory test double.

Paths follow Firestore conventions: documents live at
"collection/docId[/subcollection/docId...]" and a collection path is the
document path minus its last segment.
"""

from __future__ import annotations

import contextlib
import copy
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, Literal, Optional, Protocol, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    StorePermissionError,
)


@dataclass(frozen=True)
class Increment:
    """Update value that adds `amount` to the stored number atomically."""

    amount: int | float


@dataclass(frozen=True)
class Write:
    path: str
    data: dict
    op: Literal["set", "update"] = "set"


class DocumentStore(Protocol):
    """Interface for the hosted document database."""

    def get_document(self, path: str) -> Optional[dict]:
        ...

    def set_document(self, path: str, data: dict) -> None:
        ...

    def update_document(self, path: str, partial: dict) -> None:
        ...

    def add_document(self, collection_path: str, data: dict) -> str:
        ...

    def query_collection(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        ...

    def create_if_absent(
        self, path: str, data: dict, children: Optional[Dict[str, dict]] = None
    ) -> tuple[dict, bool]:
        ...

    def commit(self, writes: Sequence[Write]) -> None:
        ...


def split_path(path: str) -> tuple[str, str]:
    """Returns (collection_path, doc_id) for a document path."""
    collection_path, _, doc_id = path.rpartition("/")
    if not collection_path or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection_path, doc_id


def _resolve_set(data: dict) -> dict:
    return {
        key: (value.amount if isinstance(value, Increment) else copy.deepcopy(value))
        for key, value in data.items()
    }


def _apply_update(existing: dict, partial: dict) -> dict:
    updated = dict(existing)
    for key, value in partial.items():
        if isinstance(value, Increment):
            updated[key] = (updated.get(key) or 0) + value.amount
        else:
            updated[key] = copy.deepcopy(value)
    return updated


def _sort_and_limit(
    items: Iterable[tuple[str, dict]],
    order_by: Optional[str],
    descending: bool,
    limit: Optional[int],
) -> list[tuple[str, dict]]:
    items = list(items)
    if order_by:
        # Like Firestore, documents without the ordering field are excluded.
        items = [item for item in items if item[1].get(order_by) is not None]
        items.sort(key=lambda item: item[1][order_by], reverse=descending)
    else:
        items.sort(key=lambda item: item[0])
    if limit is not None:
        items = items[:limit]
    return items


class InMemoryDocumentStore:
    """
    Lock-guarded in-memory store for development, tests and offline mode.

    A read-only store raises ConfigurationError on every write, which is how
    the service behaves when Firebase credentials are missing.
    """

    def __init__(self, read_only: bool = False, missing_keys: Sequence[str] = ()):
        self.documents: Dict[str, dict] = {}
        self.read_only = read_only
        self.missing_keys = list(missing_keys)
        self._lock = threading.RLock()

    def _check_writable(self) -> None:
        if self.read_only:
            raise ConfigurationError(self.missing_keys)

    def get_document(self, path: str) -> Optional[dict]:
        with self._lock:
            doc = self.documents.get(path)
            return copy.deepcopy(doc) if doc is not None else None

    def set_document(self, path: str, data: dict) -> None:
        self._check_writable()
        with self._lock:
            self.documents[path] = _resolve_set(data)

    def update_document(self, path: str, partial: dict) -> None:
        self._check_writable()
        with self._lock:
            existing = self.documents.get(path)
            if existing is None:
                raise DocumentNotFoundError(path)
            self.documents[path] = _apply_update(existing, partial)

    def add_document(self, collection_path: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set_document(f"{collection_path}/{doc_id}", data)
        return doc_id

    def query_collection(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        with self._lock:
            items = [
                (split_path(doc_path)[1], copy.deepcopy(data))
                for doc_path, data in self.documents.items()
                if split_path(doc_path)[0] == path
            ]
        return _sort_and_limit(items, order_by, descending, limit)

    def create_if_absent(
        self, path: str, data: dict, children: Optional[Dict[str, dict]] = None
    ) -> tuple[dict, bool]:
        self._check_writable()
        with self._lock:
            existing = self.documents.get(path)
            if existing is not None:
                return copy.deepcopy(existing), False
            self.documents[path] = _resolve_set(data)
            for child_path, child_data in (children or {}).items():
                self.documents[child_path] = _resolve_set(child_data)
            return copy.deepcopy(self.documents[path]), True

    def commit(self, writes: Sequence[Write]) -> None:
        self._check_writable()
        with self._lock:
            snapshot = copy.deepcopy(self.documents)
            try:
                for write in writes:
                    if write.op == "update":
                        self.update_document(write.path, write.data)
                    else:
                        self.set_document(write.path, write.data)
            except Exception:
                self.documents = snapshot
                raise

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.documents.clear()


@contextlib.contextmanager
def _translate_errors(action: str, path: str):
    try:
        yield
    except google_exceptions.PermissionDenied as e:
        raise StorePermissionError(action) from e
    except google_exceptions.NotFound as e:
        raise DocumentNotFoundError(path) from e


def _to_firestore(data: dict) -> dict:
    return {
        key: (firestore.Increment(value.amount) if isinstance(value, Increment) else value)
        for key, value in data.items()
    }


class FirestoreDocumentStore:
    """Cloud Firestore implementation built on the firebase_admin client."""

    def __init__(self, client=None):
        self._client = client or firestore.client()

    def get_document(self, path: str) -> Optional[dict]:
        with _translate_errors("Read", path):
            snapshot = self._client.document(path).get()
        return snapshot.to_dict() if snapshot.exists else None

    def set_document(self, path: str, data: dict) -> None:
        with _translate_errors("Write", path):
            self._client.document(path).set(_to_firestore(data))

    def update_document(self, path: str, partial: dict) -> None:
        with _translate_errors("Update", path):
            self._client.document(path).update(_to_firestore(partial))

    def add_document(self, collection_path: str, data: dict) -> str:
        with _translate_errors("Submission", collection_path):
            _, doc_ref = self._client.collection(collection_path).add(
                _to_firestore(data)
            )
        return doc_ref.id

    def query_collection(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        query = self._client.collection(path)
        if order_by:
            direction = (
                firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by, direction=direction)
        if limit is not None:
            query = query.limit(limit)
        with _translate_errors("Read", path):
            return [(snapshot.id, snapshot.to_dict()) for snapshot in query.stream()]

    def create_if_absent(
        self, path: str, data: dict, children: Optional[Dict[str, dict]] = None
    ) -> tuple[dict, bool]:
        transaction = self._client.transaction()
        doc_ref = self._client.document(path)

        @firestore.transactional
        def _create_doc_transaction(transaction, doc_ref):
            snapshot = doc_ref.get(transaction=transaction)
            if snapshot.exists:
                return snapshot.to_dict(), False

            transaction.set(doc_ref, _to_firestore(data))
            for child_path, child_data in (children or {}).items():
                transaction.set(
                    self._client.document(child_path), _to_firestore(child_data)
                )
            return _resolve_set(data), True

        with _translate_errors("Creation", path):
            return _create_doc_transaction(transaction, doc_ref)

    def commit(self, writes: Sequence[Write]) -> None:
        batch = self._client.batch()
        for write in writes:
            doc_ref = self._client.document(write.path)
            if write.op == "update":
                batch.update(doc_ref, _to_firestore(write.data))
            else:
                batch.set(doc_ref, _to_firestore(write.data))
        with _translate_errors("Write", writes[0].path if writes else ""):
            batch.commit()


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    path = Column(String, primary_key=True)
    collection = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation for self-hosted deployments. Accepts any
    SQLAlchemy URL (e.g., Postgres, or SQLite for tests).

    Documents are JSON rows keyed by path; the primary key makes
    create_if_absent a real conditional write.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _new_row(path: str, data: dict) -> DocumentRow:
        return DocumentRow(
            path=path,
            collection=split_path(path)[0],
            data=_resolve_set(data),
            updated_at=time.time(),
        )

    def _set(self, session: Session, path: str, data: dict) -> None:
        row = session.get(DocumentRow, path)
        if row:
            row.data = _resolve_set(data)
            row.updated_at = time.time()
        else:
            session.add(self._new_row(path, data))

    def _update(self, session: Session, path: str, partial: dict) -> None:
        row = session.get(DocumentRow, path)
        if not row:
            raise DocumentNotFoundError(path)
        # Assign a new dict so SQLAlchemy detects the JSON change.
        row.data = _apply_update(row.data, partial)
        row.updated_at = time.time()

    def get_document(self, path: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, path)
            return dict(row.data) if row else None

    def set_document(self, path: str, data: dict) -> None:
        with self.Session() as session:
            self._set(session, path, data)
            session.commit()

    def update_document(self, path: str, partial: dict) -> None:
        with self.Session() as session:
            self._update(session, path, partial)
            session.commit()

    def add_document(self, collection_path: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex
        self.set_document(f"{collection_path}/{doc_id}", data)
        return doc_id

    def query_collection(
        self,
        path: str,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[tuple[str, dict]]:
        with self.Session() as session:
            stmt = select(DocumentRow).where(DocumentRow.collection == path)
            rows = session.execute(stmt).scalars().all()
            items = [(split_path(row.path)[1], dict(row.data)) for row in rows]
        return _sort_and_limit(items, order_by, descending, limit)

    def create_if_absent(
        self, path: str, data: dict, children: Optional[Dict[str, dict]] = None
    ) -> tuple[dict, bool]:
        with self.Session() as session:
            existing = session.get(DocumentRow, path)
            if existing:
                return dict(existing.data), False
            session.add(self._new_row(path, data))
            for child_path, child_data in (children or {}).items():
                session.add(self._new_row(child_path, child_data))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.get(DocumentRow, path)
                if existing is None:
                    # The collision was on a child path, not the document.
                    raise
                # Another writer created the document first.
                return dict(existing.data), False
            return _resolve_set(data), True

    def commit(self, writes: Sequence[Write]) -> None:
        with self.Session() as session:
            for write in writes:
                if write.op == "update":
                    self._update(session, write.path, write.data)
                else:
                    self._set(session, write.path, write.data)
                # Later writes in the batch must see earlier ones.
                session.flush()
            session.commit()
