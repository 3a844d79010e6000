"""Named, schema-validated remote methods and their registry.

A ``ValidatedMethod`` pairs a method name with a strict argument model and
a run handler. Calling it validates the raw argument object first, so a
handler only ever sees well-formed arguments. The handler also receives a
``MethodInvocation`` describing who is calling (user and connection).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from app.core.errors import NotFoundAppError, ValidationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodInvocation:
    """Context of a single method call.

    Attributes:
        name: Name of the method being invoked.
        user_id: Calling user, or None when anonymous.
        connection_id: Client connection the call arrived on.
        request_id: Correlation id of the transport request.
    """

    name: str
    user_id: str | None = None
    connection_id: str | None = None
    request_id: str | None = None


@dataclass(frozen=True)
class ValidatedMethod:
    """A remote method: name, argument model and run handler."""

    name: str
    args_model: type[BaseModel]
    run: Callable[[MethodInvocation, Any], Any]

    def validate(self, raw_args: Any) -> BaseModel:
        """Parse ``raw_args`` with the argument model.

        Raises:
            ValidationAppError: ``validation-error`` listing the failing
                fields; input values are never echoed back.
        """
        try:
            return self.args_model.model_validate(raw_args)
        except ValidationError as exc:
            errors = [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in exc.errors(include_url=False, include_context=False, include_input=False)
            ]
            raise ValidationAppError(
                code="validation-error",
                message=f"Invalid arguments for method '{self.name}'",
                details={"method": self.name, "errors": errors},
            ) from exc

    def call(self, invocation: MethodInvocation, raw_args: Any) -> Any:
        args = self.validate(raw_args)
        return self.run(invocation, args)


class MethodRegistry:
    """Process-wide table of callable methods keyed by name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._methods: dict[str, ValidatedMethod] = {}

    def register(self, method: ValidatedMethod) -> ValidatedMethod:
        """Add a method.

        Raises:
            ValueError: If a method with the same name is already registered.
        """
        with self._lock:
            if method.name in self._methods:
                raise ValueError(f"Method '{method.name}' is already registered")
            self._methods[method.name] = method
        return method

    def get(self, name: str) -> ValidatedMethod:
        """Look a method up by name.

        Raises:
            NotFoundAppError: ``method-not-found`` for unknown names.
        """
        with self._lock:
            method = self._methods.get(name)
        if method is None:
            raise NotFoundAppError(
                code="method-not-found",
                message=f"Method '{name}' not found",
                details={"method": name},
            )
        return method

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._methods)

    def call(self, name: str, raw_args: Any, invocation: MethodInvocation) -> Any:
        """Resolve, validate and run a method, logging the outcome.

        Errors raised by validation or the handler propagate unchanged.
        """
        method = self.get(name)
        start = time.perf_counter()
        outcome = "error"
        try:
            result = method.call(invocation, raw_args)
            outcome = "ok"
            return result
        finally:
            logger.info(
                "method.called",
                extra={
                    "method": name,
                    "outcome": outcome,
                    "user_hash": hash_identifier(invocation.user_id),
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
