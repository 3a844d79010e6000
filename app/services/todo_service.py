"""Todo mutations with ownership checks.

Each operation reads the referenced documents, checks that the caller may
edit the owning list, and applies exactly one write. Reads and writes are
separate collection operations, so two concurrent edits of the same todo
can overwrite each other (last write wins).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from app.adapters.documents.base import AbstractCollection
from app.core.errors import AccessDeniedAppError, ErrorDetails, NotFoundAppError
from app.core.logging import hash_identifier
from app.schemas.todos import Todo, TodoList

logger = logging.getLogger(__name__)

EDIT_DENIED_MESSAGE = "Cannot edit todos in a private list that is not yours"
INSERT_DENIED_MESSAGE = "Cannot add todos to a private list that is not yours"
CHECKED_DENIED_MESSAGE = "Cannot edit checked status in a private list that is not yours"
REMOVE_DENIED_MESSAGE = "Cannot remove todos in a private list that is not yours"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _access_denied(operation: str, message: str, details: ErrorDetails) -> AccessDeniedAppError:
    return AccessDeniedAppError(
        code=f"api.todos.{operation}.accessDenied",
        message=message,
        details=details,
    )


class TodoService:
    """Applies todo mutations on behalf of a calling user.

    Args:
        todos: Collection holding todo documents.
        lists: Collection holding list documents.
        clock: Source of creation timestamps (UTC).
    """

    def __init__(
        self,
        todos: AbstractCollection,
        lists: AbstractCollection,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._todos = todos
        self._lists = lists
        self._clock = clock

    def get_todo(self, todo_id: str) -> Todo:
        """Load a todo.

        Raises:
            NotFoundAppError: ``api.todos.notFound`` if it does not exist.
        """
        document = self._todos.find_one(todo_id)
        if document is None:
            raise NotFoundAppError(
                code="api.todos.notFound",
                message=f"Todo '{todo_id}' not found",
                details={"todo_id": todo_id},
            )
        return Todo.model_validate(document)

    def get_list(self, list_id: str) -> TodoList:
        """Load a list.

        Raises:
            NotFoundAppError: ``api.lists.notFound`` if it does not exist.
        """
        document = self._lists.find_one(list_id)
        if document is None:
            raise NotFoundAppError(
                code="api.lists.notFound",
                message=f"List '{list_id}' not found",
                details={"list_id": list_id},
            )
        return TodoList.model_validate(document)

    def _get_editable_todo(
        self,
        todo_id: str,
        user_id: str | None,
        *,
        operation: str,
        message: str = EDIT_DENIED_MESSAGE,
    ) -> Todo:
        todo = self.get_todo(todo_id)
        self._ensure_editable(todo, user_id, operation=operation, message=message)
        return todo

    def _ensure_editable(self, todo: Todo, user_id: str | None, *, operation: str, message: str) -> None:
        todo_list = self.get_list(todo.list_id)
        if not todo_list.editable_by(user_id):
            logger.warning(
                "todos.access_denied",
                extra={
                    "operation": operation,
                    "todo_id": todo.id,
                    "list_id": todo.list_id,
                    "user_hash": hash_identifier(user_id),
                },
            )
            raise _access_denied(operation, message, {"todo_id": todo.id, "list_id": todo.list_id})

    def insert(self, user_id: str | None, *, list_id: str, text: str, pomos_estimated: float) -> str:
        """Create an unchecked todo under ``list_id`` and return its id.

        Raises:
            NotFoundAppError: If the list does not exist.
            AccessDeniedAppError: If the list is private and not the caller's.
        """
        todo_list = self.get_list(list_id)

        if todo_list.is_private() and todo_list.user_id != user_id:
            logger.warning(
                "todos.access_denied",
                extra={
                    "operation": "insert",
                    "list_id": list_id,
                    "user_hash": hash_identifier(user_id),
                },
            )
            raise _access_denied("insert", INSERT_DENIED_MESSAGE, {"list_id": list_id})

        todo_id = self._todos.insert(
            {
                "listId": list_id,
                "text": text,
                "checked": False,
                "createdAt": self._clock(),
                "pomosEstimated": pomos_estimated,
                "pomosCompleted": 0,
            }
        )
        logger.info("todos.insert", extra={"todo_id": todo_id, "list_id": list_id})
        return todo_id

    def set_checked_status(self, user_id: str | None, *, todo_id: str, new_checked_status: bool) -> None:
        """Check or uncheck a todo.

        Nothing is written, and ownership is not checked, when the todo
        already has the requested status.
        """
        todo = self.get_todo(todo_id)

        if todo.checked == new_checked_status:
            logger.debug("todos.set_checked_status.noop", extra={"todo_id": todo_id})
            return

        self._ensure_editable(
            todo,
            user_id,
            operation="setCheckedStatus",
            message=CHECKED_DENIED_MESSAGE,
        )
        self._todos.update(todo_id, {"checked": new_checked_status})
        logger.info(
            "todos.set_checked_status",
            extra={"todo_id": todo_id, "checked": new_checked_status},
        )

    def update_text(self, user_id: str | None, *, todo_id: str, new_text: str) -> None:
        """Replace a todo's text.

        Args:
            user_id: Calling user, or None when anonymous.
            todo_id: Id of the todo to edit.
            new_text: Replacement text.

        Raises:
            NotFoundAppError: If the todo or its list does not exist.
            AccessDeniedAppError: If the list is private and not the caller's.
        """
        self._get_editable_todo(todo_id, user_id, operation="updateText")
        self._todos.update(todo_id, {"text": new_text})
        logger.info("todos.update_text", extra={"todo_id": todo_id})

    def update_pomos_estimated(self, user_id: str | None, *, todo_id: str, new_number: float) -> None:
        """Set the number of pomodoros a todo is expected to take.

        Raises:
            NotFoundAppError: If the todo or its list does not exist.
            AccessDeniedAppError: If the list is private and not the caller's.
        """
        self._get_editable_todo(todo_id, user_id, operation="updatePomosEstimated")
        self._todos.update(todo_id, {"pomosEstimated": new_number})
        logger.info(
            "todos.update_pomos_estimated",
            extra={"todo_id": todo_id, "pomos_estimated": new_number},
        )

    def pomos_completed_plus_plus(self, user_id: str | None, *, todo_id: str) -> None:
        """Record one more completed pomodoro; a missing or zero counter becomes 1."""
        todo = self._get_editable_todo(todo_id, user_id, operation="pomosCompletedPlusPlus")

        new_number = todo.pomos_completed + 1 if todo.pomos_completed else 1

        self._todos.update(todo_id, {"pomosCompleted": new_number})
        logger.info(
            "todos.pomos_completed_plus_plus",
            extra={"todo_id": todo_id, "pomos_completed": new_number},
        )

    def update_pomos_completed(self, user_id: str | None, *, todo_id: str, new_number: float) -> None:
        """Overwrite the completed pomodoro counter with ``new_number``."""
        self._get_editable_todo(todo_id, user_id, operation="updatePomosCompleted")
        self._todos.update(todo_id, {"pomosCompleted": new_number})
        logger.info(
            "todos.update_pomos_completed",
            extra={"todo_id": todo_id, "pomos_completed": new_number},
        )

    def remove(self, user_id: str | None, *, todo_id: str) -> None:
        """Delete a todo.

        Args:
            user_id: Calling user, or None when anonymous.
            todo_id: Id of the todo to delete.

        Raises:
            NotFoundAppError: If the todo or its list does not exist.
            AccessDeniedAppError: If the list is private and not the caller's.
        """
        self._get_editable_todo(
            todo_id,
            user_id,
            operation="remove",
            message=REMOVE_DENIED_MESSAGE,
        )
        self._todos.remove(todo_id)
        logger.info("todos.remove", extra={"todo_id": todo_id})
