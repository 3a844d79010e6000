from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
the method/rate-limit wiring) so tests can build isolated instances.
"""

from fastapi import FastAPI

from app.adapters.documents.base import AbstractCollection
from app.adapters.documents.in_memory import InMemoryCollection
from app.api.routes import health_router, methods_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import MethodRateLimiter
from app.services.methods import MethodRegistry
from app.services.todo_methods import install_todos_rate_limit, register_todo_methods
from app.services.todo_service import TodoService


def create_app(
    *,
    todos: AbstractCollection | None = None,
    lists: AbstractCollection | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        todos: Todo collection; a fresh in-memory one when omitted.
        lists: List collection; a fresh in-memory one when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Todos API",
        debug=settings.app.debug,
        description=(
            "Remote methods for a to-do list application: add todos to lists, "
            "check them off, edit their text and track pomodoro estimates and "
            "progress. Private lists are editable only by their owner. Calls "
            "are rate limited per connection."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.todos = todos if todos is not None else InMemoryCollection("todos")
    app.state.lists = lists if lists is not None else InMemoryCollection("lists")
    app.state.todo_service = TodoService(app.state.todos, app.state.lists)

    app.state.method_registry = MethodRegistry()
    todo_method_names = register_todo_methods(app.state.method_registry, app.state.todo_service)

    # Rules are installed once per app, at startup
    app.state.rate_limiter = MethodRateLimiter()
    install_todos_rate_limit(app.state.rate_limiter, todo_method_names)

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(methods_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
