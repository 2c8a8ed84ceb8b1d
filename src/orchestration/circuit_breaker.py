"""Circuit breaker for structured-extraction provider calls.

Implements the circuit breaker pattern so a failing provider is not hammered
with requests while it is down. State lives in a pybreaker
CircuitMemoryStorage, one per breaker, held in a module-level registry.

Configuration (defaults from settings):
    - fail_max: consecutive failures to open circuit
    - reset_timeout: seconds before entering half-open state
    - success_threshold: 2 successes in half-open to close circuit
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from enum import Enum
from functools import wraps
from typing import ParamSpec, TypeVar

import pybreaker
import structlog

from src.core.config import settings

logger = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """Exception raised when circuit breaker is open."""

    def __init__(self, circuit_name: str, state: CircuitState):
        self.circuit_name = circuit_name
        self.state = state
        super().__init__(f"Circuit '{circuit_name}' is {state.value}")


_STATES: dict[str, CircuitState] = {
    pybreaker.STATE_CLOSED: CircuitState.CLOSED,
    pybreaker.STATE_OPEN: CircuitState.OPEN,
    pybreaker.STATE_HALF_OPEN: CircuitState.HALF_OPEN,
}


class CircuitBreaker:
    """Async circuit breaker backed by pybreaker's in-memory storage.

    Opens after fail_max consecutive failures, enters half-open after
    reset_timeout seconds, and closes after success_threshold successes.

    Usage:
        breaker = CircuitBreaker("structured-provider")

        # Using the call method
        result = await breaker.call(provider.extract, content, model_id)

        # Using the protect decorator
        @breaker.protect
        async def my_function():
            ...

    Attributes:
        name: Circuit breaker name for identification
        fail_max: Number of consecutive failures before opening
        reset_timeout: Seconds before entering half-open state
        success_threshold: Successes needed in half-open to close
    """

    DEFAULT_SUCCESS_THRESHOLD = 2

    def __init__(
        self,
        name: str,
        fail_max: int | None = None,
        reset_timeout: int | None = None,
        success_threshold: int = DEFAULT_SUCCESS_THRESHOLD,
    ):
        """Initialize circuit breaker with in-memory storage.

        Args:
            name: Unique name for this circuit breaker
            fail_max: Consecutive failures to open circuit
                (default: settings.provider_fail_max)
            reset_timeout: Seconds before half-open state
                (default: settings.provider_reset_timeout)
            success_threshold: Successes in half-open to close (default: 2)
        """
        self.name = name
        self.fail_max = fail_max if fail_max is not None else settings.provider_fail_max
        self.reset_timeout = (
            reset_timeout if reset_timeout is not None else settings.provider_reset_timeout
        )
        self.success_threshold = success_threshold
        self._storage = pybreaker.CircuitMemoryStorage(pybreaker.STATE_CLOSED)
        self._storage.opened_at = None

    @property
    def state(self) -> CircuitState:
        """Return the current circuit state."""
        return _STATES.get(self._storage.state, CircuitState.CLOSED)

    @property
    def failure_count(self) -> int:
        """Return the current counter (failures, or successes while half-open)."""
        return self._storage.counter

    def _transition(self, new_state: str) -> None:
        old_state = self.state
        self._storage.state = new_state
        self._storage.reset_counter()
        if new_state == pybreaker.STATE_OPEN:
            self._storage.opened_at = time.time()
        elif new_state == pybreaker.STATE_CLOSED:
            self._storage.opened_at = None
        logger.info(
            "circuit_breaker_state_change",
            circuit=self.name,
            old_state=old_state.value,
            new_state=self.state.value,
        )

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Call an async function through the circuit breaker.

        Args:
            func: Async function to call
            *args: Positional arguments for the function
            **kwargs: Keyword arguments for the function

        Returns:
            The result of the function call

        Raises:
            CircuitBreakerError: If the circuit is open
            Exception: Any exception from the wrapped function
        """
        if self.state == CircuitState.OPEN and not self._should_try_reset():
            logger.warning(
                "circuit_breaker_rejected",
                circuit=self.name,
                state=self.state.value,
            )
            raise CircuitBreakerError(self.name, self.state)

        try:
            result = await func(*args, **kwargs)
        except CircuitBreakerError:
            raise
        except Exception:
            self._on_failure()
            raise

        self._on_success()
        return result

    def _should_try_reset(self) -> bool:
        """Check if we should attempt a reset (transition to half-open)."""
        opened_at = self._storage.opened_at
        if opened_at is None:
            return True

        elapsed = time.time() - opened_at
        if elapsed >= self.reset_timeout:
            self._transition(pybreaker.STATE_HALF_OPEN)
            logger.info(
                "circuit_breaker_half_open",
                circuit=self.name,
                elapsed_seconds=elapsed,
            )
            return True

        return False

    def _on_success(self) -> None:
        """Handle a successful call."""
        if self.state == CircuitState.HALF_OPEN:
            self._storage.increment_counter()
            success_count = self._storage.counter
            if success_count >= self.success_threshold:
                self._transition(pybreaker.STATE_CLOSED)
                logger.info(
                    "circuit_breaker_closed",
                    circuit=self.name,
                    success_count=success_count,
                )
        else:
            self._storage.reset_counter()

    def _on_failure(self) -> None:
        """Handle a failed call."""
        if self.state == CircuitState.HALF_OPEN:
            # Failure in half-open reopens the circuit
            self._transition(pybreaker.STATE_OPEN)
            logger.warning("circuit_breaker_reopened", circuit=self.name)
            return

        self._storage.increment_counter()
        failure_count = self._storage.counter
        if failure_count >= self.fail_max:
            self._transition(pybreaker.STATE_OPEN)
            logger.warning(
                "circuit_breaker_opened",
                circuit=self.name,
                failure_count=failure_count,
            )

    def protect(self, func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        """Decorator to protect an async function with this circuit breaker.

        Usage:
            @breaker.protect
            async def my_api_call():
                ...
        """

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await self.call(func, *args, **kwargs)

        return wrapper

    def reset(self) -> None:
        """Reset the circuit breaker to closed state with zero failures."""
        self._storage.state = pybreaker.STATE_CLOSED
        self._storage.reset_counter()
        self._storage.opened_at = None
        logger.info("circuit_breaker_reset", circuit=self.name)


# Module-level registry for circuit breakers
_circuit_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    fail_max: int | None = None,
    reset_timeout: int | None = None,
    success_threshold: int = CircuitBreaker.DEFAULT_SUCCESS_THRESHOLD,
) -> CircuitBreaker:
    """Get or create a circuit breaker by name.

    Returns the existing instance when one is registered under the name;
    the tuning arguments only apply on creation.
    """
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(
            name=name,
            fail_max=fail_max,
            reset_timeout=reset_timeout,
            success_threshold=success_threshold,
        )
    return _circuit_breakers[name]


def reset_all_breakers() -> None:
    """Reset all circuit breakers and clear the registry."""
    for breaker in _circuit_breakers.values():
        breaker.reset()
    _circuit_breakers.clear()
    logger.info("all_circuit_breakers_reset")


__all__ = [
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitState",
    "get_circuit_breaker",
    "reset_all_breakers",
]
