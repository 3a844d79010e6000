from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.methods import router as methods_router

__all__ = ["health_router", "methods_router"]
