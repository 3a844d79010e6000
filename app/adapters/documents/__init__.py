"""Document collection adapters.

Handlers talk to collections through ``AbstractCollection`` so the
in-memory store can later be replaced by MongoDB or another document
database without touching the services.
"""

from app.adapters.documents.base import AbstractCollection, Document, new_document_id
from app.adapters.documents.in_memory import InMemoryCollection

__all__ = [
    "AbstractCollection",
    "Document",
    "InMemoryCollection",
    "new_document_id",
]
