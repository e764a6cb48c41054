"""
Circuit breaker guarding the ESPN site API.

Five consecutive failed fetches open the breaker; for the next minute
every fetch fails fast with CircuitBreakerError. The ESPN service treats
that like any other failed fetch (no data), so projections fall back to
neutral factor scores rather than queueing behind dead requests. After
the timeout one trial call is let through (half-open) and its outcome
decides whether the breaker closes again.
"""
from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

from app.core.logging import get_logger

logger = get_logger(__name__)

ESPN_FAIL_MAX = 5
ESPN_RESET_TIMEOUT = 60  # seconds


class _StateLogger(CircuitBreakerListener):
    """Log every breaker transition; an open breaker means degraded picks."""

    def state_change(self, cb, old_state, new_state):
        old_name = getattr(old_state, "name", old_state)
        new_name = getattr(new_state, "name", new_state)
        log = logger.error if new_name == "open" else logger.info
        log(f"Circuit '{cb.name}' {old_name} -> {new_name}", extra={"breaker": cb.name})


espn_api_breaker = CircuitBreaker(
    fail_max=ESPN_FAIL_MAX,
    reset_timeout=ESPN_RESET_TIMEOUT,
    listeners=[_StateLogger()],
    name="espn_api",
)


def get_breaker_state(breaker: CircuitBreaker = espn_api_breaker) -> str:
    """'closed', 'open' or 'half-open'."""
    return breaker.current_state


def reset_breaker(breaker: CircuitBreaker = espn_api_breaker) -> None:
    """Force the breaker closed, e.g. once ESPN is known to be back."""
    breaker.close()
    logger.warning(f"Circuit '{breaker.name}' closed manually")


__all__ = [
    "CircuitBreakerError",
    "espn_api_breaker",
    "get_breaker_state",
    "reset_breaker",
]
