"""
In-memory stand-in for the parts of the Firestore client the gateway uses.
"""
import threading
import time
import uuid
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import AlreadyExists, NotFound, ServiceUnavailable
from google.cloud import firestore


class FakeSnapshot:
    def __init__(self, reference: "FakeDocument", data: Optional[Dict[str, Any]]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, store: "FakeFirestore", collection: str, document_id: str):
        self._store = store
        self._collection = collection
        self.id = document_id

    def get(self) -> FakeSnapshot:
        self._store.touch(self._collection)
        return FakeSnapshot(self, self._store.read(self._collection, self.id))

    def set(self, data: Dict[str, Any]) -> None:
        self._store.touch(self._collection)
        self._store.write(self._collection, self.id, dict(data))

    def create(self, data: Dict[str, Any]) -> None:
        self._store.touch(self._collection)
        with self._store.lock:
            if self._store.read(self._collection, self.id) is not None:
                raise AlreadyExists(f"Document already exists: {self._collection}/{self.id}")
            self._store.write(self._collection, self.id, dict(data))

    def update(self, data: Dict[str, Any]) -> None:
        self._store.touch(self._collection)
        with self._store.lock:
            current = self._store.read(self._collection, self.id)
            if current is None:
                raise NotFound(f"No document to update: {self._collection}/{self.id}")
            current.update(data)

    def delete(self) -> None:
        self._store.touch(self._collection)
        self._store.remove(self._collection, self.id)


class FakeAggregationResult:
    def __init__(self, alias: str, value: int):
        self.alias = alias
        self.value = value


class FakeCountQuery:
    def __init__(self, query: "FakeQuery", alias: str):
        self._query = query
        self._alias = alias

    def get(self) -> List[List[FakeAggregationResult]]:
        return [[FakeAggregationResult(self._alias, len(list(self._query.stream())))]]


class FakeQuery:
    def __init__(self, store: "FakeFirestore", collection: str, filters=(), orders=(), limit=None):
        self._store = store
        self._collection = collection
        self._filters = filters
        self._orders = orders
        self._limit = limit

    def where(self, filter) -> "FakeQuery":
        return FakeQuery(self._store, self._collection, self._filters + (filter,), self._orders, self._limit)

    def order_by(self, field_path: str, direction: str = firestore.Query.ASCENDING) -> "FakeQuery":
        return FakeQuery(
            self._store, self._collection, self._filters, self._orders + ((field_path, direction),), self._limit
        )

    def limit(self, count: int) -> "FakeQuery":
        return FakeQuery(self._store, self._collection, self._filters, self._orders, count)

    def count(self, alias: Optional[str] = None) -> FakeCountQuery:
        return FakeCountQuery(self, alias or "count")

    def _matches(self, data: Dict[str, Any]) -> bool:
        for f in self._filters:
            value = data.get(f.field_path)
            if f.op_string == "==" and value != f.value:
                return False
            if f.op_string == "in" and value not in f.value:
                return False
        return True

    def stream(self):
        self._store.touch(self._collection)
        with self._store.lock:
            rows = list(self._store.data.get(self._collection, {}).items())

        rows = [(doc_id, data) for doc_id, data in rows if self._matches(data)]
        for field_path, direction in reversed(self._orders):
            rows.sort(key=lambda row: row[1].get(field_path), reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            rows = rows[:self._limit]

        for doc_id, data in rows:
            yield FakeSnapshot(FakeDocument(self._store, self._collection, doc_id), dict(data))


class FakeCollection(FakeQuery):
    def __init__(self, store: "FakeFirestore", name: str):
        super().__init__(store, name)

    def document(self, document_id: Optional[str] = None) -> FakeDocument:
        return FakeDocument(self._store, self._collection, document_id or uuid.uuid4().hex[:20])


class FakeWriteBatch:
    def __init__(self, store: "FakeFirestore"):
        self._store = store
        self._deletes: List[FakeDocument] = []

    def delete(self, reference: FakeDocument) -> None:
        self._deletes.append(reference)

    def commit(self) -> None:
        with self._store.lock:
            for reference in self._deletes:
                reference.delete()


class FakeFirestore:
    """
    Collections are plain dicts of document id to data. Collections listed in
    ``failing`` raise ``failure`` (ServiceUnavailable by default) on every
    access; ``delay`` slows every access down by that many seconds.
    """

    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.lock = threading.RLock()
        self.failing = set()
        self.failure: Optional[Exception] = None
        self.delay = 0.0

    def touch(self, collection: str) -> None:
        if self.delay:
            time.sleep(self.delay)
        if collection in self.failing:
            raise self.failure or ServiceUnavailable(f"{collection} is unavailable")

    def read(self, collection: str, document_id: str) -> Optional[Dict[str, Any]]:
        return self.data.get(collection, {}).get(document_id)

    def write(self, collection: str, document_id: str, data: Dict[str, Any]) -> None:
        with self.lock:
            self.data.setdefault(collection, {})[document_id] = data

    def remove(self, collection: str, document_id: str) -> None:
        with self.lock:
            self.data.get(collection, {}).pop(document_id, None)

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def get_all(self, references):
        for reference in references:
            yield reference.get()

    def batch(self) -> FakeWriteBatch:
        return FakeWriteBatch(self)

    def documents(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return dict(self.data.get(collection, {}))
