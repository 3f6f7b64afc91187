"""Shared pytest fixtures: an in-memory stand-in for the Firestore client."""

import itertools
import threading
from datetime import datetime, timezone
from typing import Any

import pytest
from google.api_core import exceptions as api_exceptions
from google.cloud import firestore

from firestore_tool.docstore.core.client import FirestoreClient

_auto_ids = itertools.count(1)


class FakeWriteResult:
    def __init__(self) -> None:
        self.update_time = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeSnapshot:
    def __init__(self, reference: "FakeDocumentRef", data: dict[str, Any] | None):
        self.reference = reference
        self.id = reference.id
        self.exists = data is not None
        self._data = data
        self.create_time = datetime(2024, 1, 1, tzinfo=timezone.utc) if data is not None else None
        self.update_time = self.create_time

    def to_dict(self) -> dict[str, Any] | None:
        return None if self._data is None else dict(self._data)


class FakeDocumentRef:
    def __init__(self, db: "FakeFirestore", collection: str, document_id: str):
        self._db = db
        self.id = document_id
        self.path = f"{collection}/{document_id}"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FakeDocumentRef) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)

    def get(self, transaction: Any = None) -> FakeSnapshot:
        with self._db.lock:
            return FakeSnapshot(self, self._db.docs.get(self.path))

    def set(self, data: dict[str, Any], merge: bool = False) -> FakeWriteResult:
        self._db.apply_set(self.path, data, merge)
        return FakeWriteResult()

    def create(self, data: dict[str, Any]) -> FakeWriteResult:
        with self._db.lock:
            if self.path in self._db.docs:
                raise api_exceptions.AlreadyExists(f"{self.path} exists")
        self._db.apply_set(self.path, data, merge=False)
        return FakeWriteResult()

    def update(self, data: dict[str, Any]) -> FakeWriteResult:
        self._db.apply_update(self.path, data)
        return FakeWriteResult()

    def delete(self) -> FakeWriteResult:
        self._db.apply_delete(self.path)
        return FakeWriteResult()


class FakeQuery:
    def __init__(self, collection: "FakeCollection", count: int):
        self._collection = collection
        self._count = count

    def stream(self):
        db = self._collection._db
        with db.lock:
            db.list_calls += 1
            if db.fail_list_on == db.list_calls:
                raise api_exceptions.ServiceUnavailable("listing unavailable")
            prefix = f"{self._collection.path}/"
            paths = sorted(
                p for p in db.docs if p.startswith(prefix) and "/" not in p[len(prefix):]
            )[: self._count]
        for path in paths:
            ref = FakeDocumentRef(db, self._collection.path, path.rsplit("/", 1)[1])
            yield FakeSnapshot(ref, {})


class FakeCollection:
    def __init__(self, db: "FakeFirestore", path: str):
        self._db = db
        self.path = path
        self._path = tuple(path.split("/"))
        self.id = self._path[-1]

    def document(self, document_id: str | None = None) -> FakeDocumentRef:
        if document_id is None:
            document_id = f"auto{next(_auto_ids):06d}"
        return FakeDocumentRef(self._db, self.path, document_id)

    def limit(self, count: int) -> FakeQuery:
        return FakeQuery(self, count)


class FakeBatch:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self.writes: list[tuple[str, Any, Any]] = []
        self.committed = False

    def set(self, ref: FakeDocumentRef, data: dict[str, Any], merge: bool = False) -> None:
        self.writes.append(("merge" if merge else "set", ref, data))

    def update(self, ref: FakeDocumentRef, data: dict[str, Any]) -> None:
        self.writes.append(("update", ref, data))

    def delete(self, ref: FakeDocumentRef) -> None:
        self.writes.append(("delete", ref, None))

    def commit(self) -> list[FakeWriteResult]:
        assert not self.committed, "batch committed twice"
        db = self._db
        with db.lock:
            db.commit_calls += 1
            db.committed_batches.append(self)
            if db.fail_commit_on == db.commit_calls:
                raise api_exceptions.ServiceUnavailable("commit unavailable")
        for action, ref, data in self.writes:
            if action == "delete":
                db.apply_delete(ref.path)
            elif action == "update":
                db.apply_update(ref.path, data)
            else:
                db.apply_set(ref.path, data, merge=action == "merge")
        self.committed = True
        if db.on_commit is not None:
            db.on_commit(self)
        return [FakeWriteResult() for _ in self.writes]


class FakeTransaction:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self.updates: list[tuple[FakeDocumentRef, dict[str, Any]]] = []

    def update(self, ref: FakeDocumentRef, data: dict[str, Any]) -> None:
        self.updates.append((ref, data))

    def commit(self) -> None:
        for ref, data in self.updates:
            self._db.apply_update(ref.path, data)


class FakeFirestore:
    """Just enough of google.cloud.firestore.Client for the operations under test."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.lock = threading.RLock()
        self.list_calls = 0
        self.commit_calls = 0
        self.committed_batches: list[FakeBatch] = []
        self.fail_list_on: int | None = None
        self.fail_commit_on: int | None = None
        self.on_commit: Any = None

    def collection(self, path: str) -> FakeCollection:
        return FakeCollection(self, path)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)

    def seed(self, collection: str, count: int) -> None:
        for i in range(count):
            self.docs[f"{collection}/doc{i:04d}"] = {"n": i}

    def count(self, collection: str) -> int:
        prefix = f"{collection}/"
        return sum(1 for p in self.docs if p.startswith(prefix) and "/" not in p[len(prefix):])

    def apply_set(self, path: str, data: dict[str, Any], merge: bool) -> None:
        with self.lock:
            if merge and path in self.docs:
                self.docs[path] = _merge(dict(self.docs[path]), data)
            else:
                self.docs[path] = _merge({}, data)

    def apply_update(self, path: str, data: dict[str, Any]) -> None:
        with self.lock:
            if path not in self.docs:
                raise api_exceptions.NotFound(f"No document to update: {path}")
            doc = self.docs[path]
            for field_path, value in data.items():
                parts = _split_field_path(field_path)
                target = doc
                for part in parts[:-1]:
                    target = target.setdefault(part, {})
                if value is firestore.DELETE_FIELD:
                    target.pop(parts[-1], None)
                else:
                    target[parts[-1]] = value

    def apply_delete(self, path: str) -> None:
        with self.lock:
            self.docs.pop(path, None)


def _split_field_path(field_path: str) -> list[str]:
    # Dots separate segments except inside backticks; backslash escapes in quotes
    parts: list[str] = []
    current = ""
    quoted = escaped = False
    for char in field_path:
        if escaped:
            current += char
            escaped = False
        elif quoted and char == "\\":
            escaped = True
        elif char == "`":
            quoted = not quoted
        elif char == "." and not quoted:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


def _merge(target: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    for name, value in data.items():
        if value is firestore.DELETE_FIELD:
            target.pop(name, None)
        elif isinstance(value, dict) and isinstance(target.get(name), dict):
            target[name] = _merge(dict(target[name]), value)
        else:
            target[name] = value
    return target


class FakeFirestoreClient(FirestoreClient):
    """FirestoreClient over FakeFirestore; transactions run the callback directly."""

    def __init__(self, db: FakeFirestore):
        super().__init__(project="test-project", db=db)

    def run_transaction(self, callback, max_attempts=5):
        transaction = FakeTransaction(self.db)
        result = callback(transaction)
        transaction.commit()
        return result


@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def client(fake_db: FakeFirestore) -> FakeFirestoreClient:
    return FakeFirestoreClient(fake_db)
