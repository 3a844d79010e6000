"""Factory for creating rate limiter instances."""

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemorySlidingWindowRateLimiter,
)
from app.core.errors import ValidationAppError


def create_rate_limiter(
    *,
    strategy: str,
    limit: int,
    window_seconds: float,
) -> AbstractRateLimiter:
    """Instantiate a limiter for the configured window strategy.

    Args:
        strategy: ``"sliding"`` (rolling window) or ``"fixed"``.
        limit: Maximum calls per window.
        window_seconds: Window length in seconds.

    Returns:
        AbstractRateLimiter: Configured limiter instance.

    Raises:
        ValidationAppError: If the strategy is unknown.
    """
    strategy = strategy.lower()

    if strategy == "sliding":
        return InMemorySlidingWindowRateLimiter(limit=limit, window_seconds=window_seconds)

    if strategy == "fixed":
        return InMemoryFixedWindowRateLimiter(limit=limit, window_seconds=window_seconds)

    raise ValidationAppError(
        code="rate_limit_unknown_strategy",
        message=f"Unknown rate limit strategy: '{strategy}'. Supported strategies: sliding, fixed",
    )
