from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from app.core.auth import get_current_user_id, verify_api_key
from app.core.logging import get_request_id
from app.core.rate_limit import enforce_method_rate_limit, get_connection_id
from app.schemas.methods import MethodCallResponse, MethodListResponse
from app.services.methods import MethodInvocation, MethodRegistry

router = APIRouter(tags=["Methods"])


def get_method_registry(request: Request) -> MethodRegistry:
    return request.app.state.method_registry


@router.get(
    "/methods",
    response_model=MethodListResponse,
    dependencies=[Depends(verify_api_key)],
)
def list_methods(
    registry: Annotated[MethodRegistry, Depends(get_method_registry)],
) -> MethodListResponse:
    """List the names of all callable methods."""
    return MethodListResponse(methods=registry.names())


@router.post(
    "/methods/{method_name}",
    response_model=MethodCallResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_method_rate_limit)],
)
def call_method(
    method_name: str,
    request: Request,
    registry: Annotated[MethodRegistry, Depends(get_method_registry)],
    user_id: Annotated[str | None, Depends(get_current_user_id)],
    args: Annotated[Any, Body(description="Argument object for the method, e.g. {\"todoId\": \"...\"}.")] = None,
) -> MethodCallResponse:
    """Invoke a remote method by name.

    The rate limit dependency runs first, so throttled calls never reach
    validation or the handler. Errors raised by the method (validation,
    access denied, not found) are rendered by the global exception handlers.

    Args:
        method_name: Registered method name, e.g. ``todos.insert``.
        args: JSON object with the method's arguments.

    Returns:
        MethodCallResponse: ``{"result": ...}`` with the handler's return value.
    """
    invocation = MethodInvocation(
        name=method_name,
        user_id=user_id,
        connection_id=get_connection_id(request),
        request_id=get_request_id(),
    )
    result = registry.call(method_name, {} if args is None else args, invocation)
    return MethodCallResponse(result=result)
