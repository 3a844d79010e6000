"""In-memory document collection.

Notes:
- Per-process only: documents are lost on restart and not shared between workers.
- Thread-safe: every operation runs under the collection lock, and callers
  only ever receive deep copies.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Iterable, Mapping

from app.adapters.documents.base import AbstractCollection, Document, new_document_id

logger = logging.getLogger(__name__)


class InMemoryCollection(AbstractCollection):
    """Dict-backed collection keyed by ``_id``.

    Attributes:
        name: Collection name, used in logs.
    """

    def __init__(
        self,
        name: str,
        *,
        initial_documents: Iterable[Mapping[str, Any]] | None = None,
        id_factory: Callable[[], str] = new_document_id,
    ) -> None:
        self.name = name
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._documents: dict[str, Document] = {}
        for document in initial_documents or ():
            self.insert(document)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryCollection(name={self.name!r}, size={len(self._documents)})"

    def find_one(self, doc_id: str) -> Document | None:
        with self._lock:
            document = self._documents.get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def find(self, selector: Mapping[str, Any] | None = None) -> list[Document]:
        selector = selector or {}
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._documents.values()
                if all(document.get(field) == value for field, value in selector.items())
            ]

    def insert(self, document: Mapping[str, Any]) -> str:
        stored = copy.deepcopy(dict(document))
        with self._lock:
            doc_id = stored.setdefault("_id", self._id_factory())
            if doc_id in self._documents:
                raise ValueError(f"Duplicate _id '{doc_id}' in collection '{self.name}'")
            self._documents[doc_id] = stored

        logger.debug("collection.insert", extra={"collection": self.name, "doc_id": doc_id})
        return doc_id

    def update(self, doc_id: str, set_fields: Mapping[str, Any]) -> int:
        if "_id" in set_fields:
            raise ValueError("_id is immutable")

        with self._lock:
            document = self._documents.get(doc_id)
            if document is None:
                return 0
            document.update(copy.deepcopy(dict(set_fields)))

        logger.debug(
            "collection.update",
            extra={"collection": self.name, "doc_id": doc_id, "fields": sorted(set_fields)},
        )
        return 1

    def remove(self, doc_id: str) -> int:
        with self._lock:
            removed = self._documents.pop(doc_id, None)

        if removed is None:
            return 0
        logger.debug("collection.remove", extra={"collection": self.name, "doc_id": doc_id})
        return 1

    def count(self) -> int:
        with self._lock:
            return len(self._documents)
