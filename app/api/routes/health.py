from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check.

    Reports how many methods are registered so a deploy that failed to
    wire them up is visible to load balancers and monitors.
    """

    return {"status": "ok", "methods": len(request.app.state.method_registry.names())}
