"""The ``todos.*`` remote methods and their rate limit rule."""

from __future__ import annotations

from app.adapters.rate_limit.factory import create_rate_limiter
from app.core.config import settings
from app.core.rate_limit import MethodRateLimiter, MethodRateLimitRule
from app.schemas.todos import (
    InsertTodoArgs,
    SetCheckedStatusArgs,
    TodoIdArgs,
    UpdatePomosArgs,
    UpdateTextArgs,
)
from app.services.methods import MethodInvocation, MethodRegistry, ValidatedMethod
from app.services.todo_service import TodoService

TODOS_RATE_LIMIT_RULE = "todos"


def build_todo_methods(service: TodoService) -> list[ValidatedMethod]:
    """Bind each todo method name to its argument model and service call."""

    def insert(invocation: MethodInvocation, args: InsertTodoArgs) -> str:
        return service.insert(
            invocation.user_id,
            list_id=args.list_id,
            text=args.text,
            pomos_estimated=args.pomos_estimated,
        )

    def set_checked_status(invocation: MethodInvocation, args: SetCheckedStatusArgs) -> None:
        service.set_checked_status(
            invocation.user_id,
            todo_id=args.todo_id,
            new_checked_status=args.new_checked_status,
        )

    def update_text(invocation: MethodInvocation, args: UpdateTextArgs) -> None:
        service.update_text(invocation.user_id, todo_id=args.todo_id, new_text=args.new_text)

    def update_pomos_estimated(invocation: MethodInvocation, args: UpdatePomosArgs) -> None:
        service.update_pomos_estimated(invocation.user_id, todo_id=args.todo_id, new_number=args.new_number)

    def pomos_completed_plus_plus(invocation: MethodInvocation, args: TodoIdArgs) -> None:
        service.pomos_completed_plus_plus(invocation.user_id, todo_id=args.todo_id)

    def update_pomos_completed(invocation: MethodInvocation, args: UpdatePomosArgs) -> None:
        service.update_pomos_completed(invocation.user_id, todo_id=args.todo_id, new_number=args.new_number)

    def remove(invocation: MethodInvocation, args: TodoIdArgs) -> None:
        service.remove(invocation.user_id, todo_id=args.todo_id)

    return [
        ValidatedMethod("todos.insert", InsertTodoArgs, insert),
        ValidatedMethod("todos.makeChecked", SetCheckedStatusArgs, set_checked_status),
        ValidatedMethod("todos.updateText", UpdateTextArgs, update_text),
        ValidatedMethod("todos.updatePomosEstimated", UpdatePomosArgs, update_pomos_estimated),
        ValidatedMethod("todos.pomosCompletedPlusPlus", TodoIdArgs, pomos_completed_plus_plus),
        ValidatedMethod("todos.updatePomosCompleted", UpdatePomosArgs, update_pomos_completed),
        ValidatedMethod("todos.remove", TodoIdArgs, remove),
    ]


def register_todo_methods(registry: MethodRegistry, service: TodoService) -> list[str]:
    """Register every todo method; return their names."""
    methods = build_todo_methods(service)
    for method in methods:
        registry.register(method)
    return [method.name for method in methods]


def install_todos_rate_limit(rate_limiter: MethodRateLimiter, method_names: list[str]) -> MethodRateLimitRule:
    """Allow each connection a shared budget of todo method calls per window.

    Defaults to 5 calls per rolling second.
    """
    limiter = create_rate_limiter(
        strategy=settings.app.rate_limit_strategy,
        limit=settings.app.rate_limit_requests,
        window_seconds=settings.app.rate_limit_window_ms / 1000,
    )
    return rate_limiter.add_rule(TODOS_RATE_LIMIT_RULE, method_names, limiter)
