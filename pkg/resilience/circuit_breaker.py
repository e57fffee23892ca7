"""
Circuit Breaker implementation.

Guards calls to the store catalog so that a failing store is not hammered
by every admin page action.
"""
import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from pkg.logger.logger import get_logger


logger = get_logger(__name__)


T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, rejecting calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreakerError(Exception):
    """Exception raised when circuit breaker is open."""

    def __init__(self, message: str = "Circuit breaker is open") -> None:
        self.message = message
        super().__init__(self.message)


class CircuitBreaker:
    """
    Circuit Breaker implementation.

    States:
    - CLOSED: Normal operation, calls pass through.
    - OPEN: Service is failing, calls are rejected immediately.
    - HALF_OPEN: Testing if service has recovered.

    Exceptions listed in ``excluded_exceptions`` propagate without counting
    as failures (e.g. a product that does not exist is not an outage).
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        half_open_max_calls: int = 1,
        name: str = "default",
        excluded_exceptions: Tuple[Type[BaseException], ...] = (),
    ) -> None:
        """
        Initialize the circuit breaker.

        Args:
            failure_threshold: Number of consecutive failures to open circuit.
            recovery_timeout: Seconds before attempting recovery.
            half_open_max_calls: Max test calls in half-open state.
            name: Circuit breaker name for logging.
            excluded_exceptions: Exception types that do not count as failures.
        """
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout
        self._half_open_max_calls = half_open_max_calls
        self._name = name
        self._excluded = excluded_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._half_open_calls = 0
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        """Get circuit name."""
        return self._name

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        return self._state

    @property
    def failure_count(self) -> int:
        """Get current failure count."""
        return self._failure_count

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Execute an async function through the circuit breaker.

        Raises:
            CircuitBreakerError: If circuit is open.
        """
        async with self._lock:
            self._maybe_half_open()

            if self._state == CircuitState.OPEN:
                logger.warning(
                    "Circuit breaker is open, rejecting call",
                    circuit=self._name,
                )
                raise CircuitBreakerError(
                    f"Circuit breaker '{self._name}' is open"
                )

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self._half_open_max_calls:
                    raise CircuitBreakerError(
                        f"Circuit breaker '{self._name}' is half-open, max calls reached"
                    )
                self._half_open_calls += 1

        try:
            result = await func(*args, **kwargs)
        except self._excluded:
            await self._on_success()
            raise
        except Exception:
            await self._on_failure()
            raise
        await self._on_success()
        return result

    def _maybe_half_open(self) -> None:
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return
        elapsed = time.monotonic() - self._opened_at
        if elapsed >= self._recovery_timeout:
            logger.info(
                "Circuit breaker transitioning to half-open",
                circuit=self._name,
                elapsed=round(elapsed, 3),
            )
            self._state = CircuitState.HALF_OPEN
            self._half_open_calls = 0

    async def _on_success(self) -> None:
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                logger.info(
                    "Circuit breaker closing after successful recovery",
                    circuit=self._name,
                )
                self._state = CircuitState.CLOSED

            self._failure_count = 0
            self._half_open_calls = 0

    async def _on_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(
                    "Circuit breaker opening after failed recovery attempt",
                    circuit=self._name,
                )
                self._open()
            elif self._failure_count >= self._failure_threshold:
                logger.warning(
                    "Circuit breaker opening after threshold exceeded",
                    circuit=self._name,
                    failures=self._failure_count,
                    threshold=self._failure_threshold,
                )
                self._open()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = time.monotonic()

    def reset(self) -> None:
        """Reset the circuit breaker to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None
        self._half_open_calls = 0
        logger.info("Circuit breaker reset", circuit=self._name)
