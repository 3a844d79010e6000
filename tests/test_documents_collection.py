"""Unit tests for the in-memory document collection."""

import pytest

from app.adapters.documents.base import new_document_id
from app.adapters.documents.in_memory import InMemoryCollection


def test_new_document_id_shape() -> None:
    doc_id = new_document_id()

    assert len(doc_id) == 17
    assert doc_id.isalnum()
    assert new_document_id() != doc_id


def test_insert_generates_id_and_find_one_returns_document() -> None:
    collection = InMemoryCollection("todos")

    doc_id = collection.insert({"text": "Buy milk"})

    assert collection.find_one(doc_id) == {"_id": doc_id, "text": "Buy milk"}
    assert collection.count() == 1


def test_insert_keeps_explicit_id_and_rejects_duplicates() -> None:
    collection = InMemoryCollection("lists", initial_documents=[{"_id": "abc", "name": "A"}])

    with pytest.raises(ValueError):
        collection.insert({"_id": "abc", "name": "B"})

    assert collection.find_one("abc")["name"] == "A"


def test_returned_documents_are_copies() -> None:
    source = {"tags": ["a"]}
    collection = InMemoryCollection("todos")
    doc_id = collection.insert(source)

    source["tags"].append("mutated-source")
    found = collection.find_one(doc_id)
    found["tags"].append("mutated-result")

    assert collection.find_one(doc_id)["tags"] == ["a"]


def test_find_one_missing_returns_none() -> None:
    assert InMemoryCollection("todos").find_one("nope") is None


def test_find_filters_by_field_equality() -> None:
    collection = InMemoryCollection(
        "todos",
        initial_documents=[
            {"_id": "1", "listId": "L1", "checked": True},
            {"_id": "2", "listId": "L1", "checked": False},
            {"_id": "3", "listId": "L2", "checked": True},
        ],
    )

    assert {d["_id"] for d in collection.find({"listId": "L1"})} == {"1", "2"}
    assert {d["_id"] for d in collection.find({"listId": "L1", "checked": True})} == {"1"}
    assert len(collection.find()) == 3


def test_update_sets_fields_on_one_document() -> None:
    collection = InMemoryCollection(
        "todos",
        initial_documents=[{"_id": "1", "text": "a", "checked": False}, {"_id": "2", "text": "b"}],
    )

    assert collection.update("1", {"checked": True}) == 1

    assert collection.find_one("1") == {"_id": "1", "text": "a", "checked": True}
    assert collection.find_one("2") == {"_id": "2", "text": "b"}


def test_update_missing_document_returns_zero() -> None:
    assert InMemoryCollection("todos").update("nope", {"text": "x"}) == 0


def test_update_rejects_id_change() -> None:
    collection = InMemoryCollection("todos", initial_documents=[{"_id": "1"}])

    with pytest.raises(ValueError):
        collection.update("1", {"_id": "2"})


def test_remove_deletes_exactly_one_document() -> None:
    collection = InMemoryCollection("todos", initial_documents=[{"_id": "1"}, {"_id": "2"}])

    assert collection.remove("1") == 1
    assert collection.remove("1") == 0

    assert collection.find_one("1") is None
    assert collection.find_one("2") == {"_id": "2"}
