"""
Outbound call gateway for the LLM providers and Supabase Auth.

Every call passes a per-service circuit breaker, a concurrency cap and a
timeout. Nothing is retried: the first provider error reaches the caller
as-is, and a failed sign-up is never replayed against Supabase.

Usage:
    message = await get_gateway().execute("anthropic", client.messages.create, **kwargs)
"""
import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from app.utils.logger import logger
from app.utils.metrics import inc, observe


@dataclass(frozen=True)
class ServiceLimits:
    max_concurrent: int = 10
    timeout_seconds: float = 90.0
    failure_threshold: int = 5
    recovery_seconds: float = 30.0


# A 12-week plan at 4000 tokens can take most of a minute on Haiku
LLM_LIMITS = ServiceLimits(max_concurrent=10, timeout_seconds=90.0)

GATEWAY_CONFIG: Dict[str, ServiceLimits] = {
    "anthropic": LLM_LIMITS,
    "openai": LLM_LIMITS,
    "supabase": ServiceLimits(max_concurrent=20, timeout_seconds=15.0),
}


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """The service failed repeatedly; calls are rejected until it recovers."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"{service} is temporarily unavailable, please try again shortly")


class CircuitBreaker:
    """
    Opens after `failure_threshold` consecutive failures, lets a probe through
    after `recovery_seconds`, and closes again after two successful probes.
    """

    PROBES_TO_CLOSE = 2

    def __init__(self, service: str, limits: ServiceLimits):
        self.service = service
        self.limits = limits
        self.state = CircuitState.CLOSED
        self.failures = 0
        self.opened_at = 0.0
        self.probe_successes = 0

    def _transition(self, state: CircuitState) -> None:
        self.state = state
        log_fn = logger.warning if state == CircuitState.OPEN else logger.info
        log_fn(
            f"[Gateway] {self.service} circuit {state.value}",
            extra={"service": self.service, "circuit_state": state.value, "count": self.failures},
        )

    def allow_request(self) -> bool:
        if self.state != CircuitState.OPEN:
            return True
        if time.monotonic() - self.opened_at < self.limits.recovery_seconds:
            return False
        self.probe_successes = 0
        self._transition(CircuitState.HALF_OPEN)
        return True

    def record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            self.probe_successes += 1
            if self.probe_successes >= self.PROBES_TO_CLOSE:
                self.failures = 0
                self._transition(CircuitState.CLOSED)
            return
        self.failures = 0

    def record_failure(self) -> None:
        self.failures += 1
        if self.state == CircuitState.HALF_OPEN or self.failures >= self.limits.failure_threshold:
            self.opened_at = time.monotonic()
            if self.state != CircuitState.OPEN:
                self._transition(CircuitState.OPEN)


def _status_code(exc: Exception) -> Optional[int]:
    """HTTP status from SDK errors (status_code) or httpx errors (response.status_code)"""
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    return int(status) if status is not None else None


def _counts_as_failure(exc: Exception) -> bool:
    """A 4xx other than 429 means the provider answered; it is not down."""
    status = _status_code(exc)
    return status is None or not (400 <= status < 500) or status == 429


class ServiceGateway:
    def __init__(self) -> None:
        self._circuits = {name: CircuitBreaker(name, limits) for name, limits in GATEWAY_CONFIG.items()}
        self._semaphores = {name: asyncio.Semaphore(limits.max_concurrent) for name, limits in GATEWAY_CONFIG.items()}

    async def execute(self, service: str, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Run fn(*args, **kwargs) once under the service's breaker, cap and timeout"""
        limits = GATEWAY_CONFIG.get(service)
        if limits is None:
            return await fn(*args, **kwargs)

        circuit = self._circuits[service]
        if not circuit.allow_request():
            inc(f"{service}.rejected")
            raise CircuitOpenError(service)

        start = time.monotonic()
        try:
            async with self._semaphores[service]:
                result = await asyncio.wait_for(fn(*args, **kwargs), timeout=limits.timeout_seconds)
        except Exception as exc:
            if _counts_as_failure(exc):
                circuit.record_failure()
            inc(f"{service}.error")
            logger.error(
                f"[Gateway] {service} call failed: {type(exc).__name__}",
                extra={"service": service, "error": str(exc)[:200], "error_type": type(exc).__name__},
            )
            raise

        circuit.record_success()
        inc(f"{service}.success")
        observe(f"{service}.duration_ms", (time.monotonic() - start) * 1000)
        return result

    def get_circuit_states(self) -> Dict[str, str]:
        return {name: circuit.state.value for name, circuit in self._circuits.items()}


_gateway: Optional[ServiceGateway] = None


def get_gateway() -> ServiceGateway:
    global _gateway
    if _gateway is None:
        _gateway = ServiceGateway()
    return _gateway


def reset_gateway() -> None:
    """Drop the singleton (tests)"""
    global _gateway
    _gateway = None
