"""In-memory database implementation."""
from uuid import uuid4
from threading import Lock
from typing import Dict, Any, Optional, List

from utils.logger import get_logger

logger = get_logger("database")


class InMemoryStore:
    """A tiny thread-safe in-memory document store for a single chat session.

    - Collections: arbitrary string keys (e.g. 'messages')
    - Each collection is an insertion-ordered dict of id -> document
    - Documents are plain dicts; insert_one assigns an 'id' when missing
    - find supports simple equality matching across top-level keys
    - Nothing is written to disk; state lives as long as the process
    """

    def __init__(self):
        self._lock = Lock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        # caller must hold the lock
        return self._collections.setdefault(name, {})

    @staticmethod
    def _matches(doc: Dict[str, Any], filter: Optional[Dict[str, Any]]) -> bool:
        if not filter:
            return True
        return all(doc.get(k) == v for k, v in filter.items())

    def insert_one(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a document into a collection."""
        with self._lock:
            doc = dict(document)
            if "id" not in doc:
                doc["id"] = str(uuid4())
            coll = self._collection(collection)
            if doc["id"] in coll:
                raise ValueError(f"duplicate id in {collection}: {doc['id']}")
            coll[doc["id"]] = doc
            return dict(doc)

    def find(self, collection: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Find documents matching the filter, in insertion order."""
        with self._lock:
            return [dict(doc) for doc in self._collection(collection).values() if self._matches(doc, filter)]

    def find_one(self, collection: str, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Find a single document matching the filter."""
        res = self.find(collection, filter)
        return res[0] if res else None

    def update_one(self, collection: str, filter: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
        """Update a single document matching the filter in place."""
        with self._lock:
            for doc in self._collection(collection).values():
                if self._matches(doc, filter):
                    doc.update(patch)
                    return dict(doc)
        raise KeyError("document not found")

    def delete_one(self, collection: str, filter: Dict[str, Any]) -> Dict[str, Any]:
        """Delete a single document matching the filter."""
        with self._lock:
            coll = self._collection(collection)
            for id_, doc in list(coll.items()):
                if self._matches(doc, filter):
                    return dict(coll.pop(id_))
        raise KeyError("document not found")

    def drop(self, collection: str) -> int:
        """Remove every document of a collection. Returns how many were removed."""
        with self._lock:
            removed = len(self._collections.pop(collection, {}))
        logger.debug(f"Dropped {removed} documents from {collection}")
        return removed


db = InMemoryStore()
