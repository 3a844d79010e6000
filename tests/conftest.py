"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the settings
singleton picks them up.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.documents.in_memory import InMemoryCollection
from app.core.app_factory import create_app

PUBLIC_LIST_ID = "PublicList0000001"
PRIVATE_LIST_ID = "PrivateList000001"
OWNER_ID = "alice"
OTHER_USER_ID = "mallory"


@pytest.fixture
def lists() -> InMemoryCollection:
    """One public list and one private list owned by OWNER_ID."""
    return InMemoryCollection(
        "lists",
        initial_documents=[
            {"_id": PUBLIC_LIST_ID, "name": "Groceries"},
            {"_id": PRIVATE_LIST_ID, "name": "Diary", "userId": OWNER_ID},
        ],
    )


@pytest.fixture
def todos() -> InMemoryCollection:
    return InMemoryCollection("todos")


@pytest.fixture
def make_todo(todos: InMemoryCollection):
    """Insert a todo document directly and return its id."""

    def _make(list_id: str = PUBLIC_LIST_ID, **fields) -> str:
        document = {
            "listId": list_id,
            "text": "Write report",
            "checked": False,
            "createdAt": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "pomosEstimated": 4,
            "pomosCompleted": 0,
        }
        document.update(fields)
        return todos.insert(document)

    return _make


@pytest.fixture
def api_app(todos: InMemoryCollection, lists: InMemoryCollection) -> FastAPI:
    return create_app(todos=todos, lists=lists)


@pytest.fixture
def client(api_app: FastAPI) -> TestClient:
    return TestClient(api_app)


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}
