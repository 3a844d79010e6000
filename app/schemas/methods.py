"""Pydantic schemas for the method-call transport."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class MethodCallResponse(BaseModel):
    """Successful method call outcome."""

    result: Any = Field(
        default=None,
        description="Value returned by the method (e.g. the new todo id for todos.insert); null for most methods.",
    )


class MethodListResponse(BaseModel):
    """Names of the methods callable through the API."""

    methods: list[str] = Field(..., description="Registered method names, sorted.")
