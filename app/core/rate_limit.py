"""Per-connection rate limiting of remote methods.

Rules match calls by method name and hold their own limiter, so methods
sharing a rule share one budget per connection. The HTTP layer only sees
``enforce_method_rate_limit``; rules are installed once when the app is
built and live on ``app.state.rate_limiter``.

Connection identity is the ``X-Connection-ID`` header (configurable) when
the client sends one, falling back to the socket's ``host:port``.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterable

from fastapi import HTTPException, Request, status

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.core.config import settings
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MethodRateLimitRule:
    """A named limit shared by a set of method names.

    Attributes:
        name: Rule identifier; also namespaces limiter keys.
        method_names: Method names this rule applies to.
        limiter: Limiter tracking per-connection usage for the rule.
    """

    name: str
    method_names: frozenset[str]
    limiter: AbstractRateLimiter

    def matches(self, method_name: str) -> bool:
        return method_name in self.method_names


class MethodRateLimiter:
    """Ordered set of method rate limit rules."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rules: dict[str, MethodRateLimitRule] = {}

    def add_rule(
        self,
        name: str,
        method_names: Iterable[str],
        limiter: AbstractRateLimiter,
    ) -> MethodRateLimitRule:
        """Install a rule once; re-adding a rule name returns the existing rule."""
        with self._lock:
            existing = self._rules.get(name)
            if existing is not None:
                return existing
            rule = MethodRateLimitRule(
                name=name,
                method_names=frozenset(method_names),
                limiter=limiter,
            )
            self._rules[name] = rule
            logger.info(
                "rate_limit.rule_installed",
                extra={"rule": name, "methods": sorted(rule.method_names)},
            )
            return rule

    def rules(self) -> list[MethodRateLimitRule]:
        with self._lock:
            return list(self._rules.values())

    def check(self, method_name: str, connection_id: str) -> tuple[MethodRateLimitRule, RateLimitResult] | None:
        """Consume budget from every rule matching ``method_name``.

        Returns:
            The first (rule, result) pair that blocked the call, or None if
            the call is allowed by all matching rules.
        """
        for rule in self.rules():
            if not rule.matches(method_name):
                continue
            result = rule.limiter.consume(f"{rule.name}:connection:{connection_id}")
            if not result.allowed:
                return rule, result
        return None


def get_connection_id(request: Request) -> str:
    """Resolve the connection identity used as the rate limit key."""
    connection_id = request.headers.get(settings.app.connection_id_header)
    if connection_id and connection_id.strip():
        return connection_id.strip()

    if request.client is None:
        return "unknown"
    return f"{request.client.host}:{request.client.port}"


async def enforce_method_rate_limit(request: Request, method_name: str) -> None:
    """FastAPI dependency enforcing method rate limits.

    Runs before argument validation and the method handler, so throttled
    calls have no effect.

    Args:
        request: FastAPI request (gives access to ``app.state.rate_limiter``).
        method_name: Method name taken from the route path.

    Raises:
        HTTPException: 429 Too Many Requests when a matching rule is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return

    rate_limiter: MethodRateLimiter = request.app.state.rate_limiter
    connection_id = get_connection_id(request)

    blocked = rate_limiter.check(method_name, connection_id)
    if blocked is None:
        return

    rule, result = blocked
    retry_after = max(1, math.ceil(result.retry_after_seconds or 0))
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "rule": rule.name,
            "method": method_name,
            "connection_hash": hash_identifier(connection_id),
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(math.ceil(result.reset_at))

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )
