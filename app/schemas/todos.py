"""Pydantic schemas for todo/list documents and todo method arguments.

Wire and storage field names are camelCase (``listId``, ``pomosCompleted``);
Python attributes are snake_case via an alias generator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Non-negative, finite counter of pomodoro sessions
PomoCount = Annotated[int, Field(ge=0)] | Annotated[float, Field(ge=0)]


class _DocumentModel(BaseModel):
    """Base for models read from a document collection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TodoList(_DocumentModel):
    """Owning container for todos.

    A list with an owner (``userId``) is private; without one it is public.
    """

    id: str = Field(..., alias="_id")
    name: str | None = Field(default=None, description="Display name of the list.")
    user_id: str | None = Field(
        default=None,
        description="Owner of a private list; absent for public lists.",
    )

    def is_private(self) -> bool:
        return bool(self.user_id)

    def editable_by(self, user_id: str | None) -> bool:
        """Public lists are editable by anyone, private ones only by their owner."""
        if not self.is_private():
            return True
        return self.user_id == user_id


class Todo(_DocumentModel):
    """A single checklist item with pomodoro estimate/progress counters."""

    id: str = Field(..., alias="_id")
    list_id: str = Field(..., description="Id of the owning list.")
    text: str
    checked: bool = False
    created_at: datetime
    pomos_estimated: int | float = 0
    # Older documents may lack the counter entirely
    pomos_completed: int | float | None = None


class _MethodArgs(BaseModel):
    """Base for method argument objects.

    Strict: no coercion between strings, numbers and booleans; every field
    is required and unknown fields are rejected.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        strict=True,
        extra="forbid",
        allow_inf_nan=False,
    )


class InsertTodoArgs(_MethodArgs):
    list_id: str
    text: str
    pomos_estimated: PomoCount


class SetCheckedStatusArgs(_MethodArgs):
    todo_id: str
    new_checked_status: bool


class UpdateTextArgs(_MethodArgs):
    todo_id: str
    new_text: str


class UpdatePomosArgs(_MethodArgs):
    """Arguments for methods that overwrite a pomodoro counter."""

    todo_id: str
    new_number: PomoCount


class TodoIdArgs(_MethodArgs):
    todo_id: str
