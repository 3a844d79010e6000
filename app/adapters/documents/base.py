"""Document collection interface.

Documents are plain dicts keyed by ``_id``. Every operation touches a single
document and must be atomic with respect to other operations on the same
collection; multi-step read-then-write sequences are the caller's concern.
"""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from typing import Any, Mapping

Document = dict[str, Any]

# Same alphabet and length as the ids generated by the client libraries
_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTWXYZabcdefghijkmnopqrstuvwxyz"
_ID_LENGTH = 17


def new_document_id() -> str:
    """Return a random 17-character document id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class AbstractCollection(ABC):
    """Interface for a named collection of documents."""

    name: str

    @abstractmethod
    def find_one(self, doc_id: str) -> Document | None:
        """Return a copy of the document with ``_id == doc_id``, or None."""
        raise NotImplementedError

    @abstractmethod
    def find(self, selector: Mapping[str, Any] | None = None) -> list[Document]:
        """Return copies of all documents whose fields equal ``selector``'s."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, document: Mapping[str, Any]) -> str:
        """Store a new document and return its id.

        An ``_id`` is generated unless the document carries one.

        Raises:
            ValueError: If a document with the same ``_id`` already exists.
        """
        raise NotImplementedError

    @abstractmethod
    def update(self, doc_id: str, set_fields: Mapping[str, Any]) -> int:
        """Set ``set_fields`` on one document; return the number updated (0 or 1)."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, doc_id: str) -> int:
        """Delete one document; return the number removed (0 or 1)."""
        raise NotImplementedError

    def count(self) -> int:
        return len(self.find())
