"""
In-process metrics served as JSON at /metrics.

Counters cover gateway outcomes ({service}.success / .error / .rejected) and
model output recovery (json_recovery.direct / .repaired / .truncated / .failed).
Histograms keep the last few hundred durations per name.
"""
import time
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from typing import Any, Deque, Dict

from app.utils.logger import logger

HISTOGRAM_WINDOW = 500

_counters: Dict[str, int] = defaultdict(int)
_histograms: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=HISTOGRAM_WINDOW))


def inc(name: str, value: int = 1) -> None:
    _counters[name] += value


def observe(name: str, value: float) -> None:
    _histograms[name].append(value)


@asynccontextmanager
async def track_duration(service: str, operation: str = "call"):
    """
    Time an LLM operation and count its outcome as
    `{service}.{operation}.success` or `.error`.
    """
    started = time.monotonic()
    outcome = "error"
    try:
        yield
        outcome = "success"
    finally:
        elapsed_ms = (time.monotonic() - started) * 1000
        observe(f"{service}.{operation}.duration_ms", elapsed_ms)
        inc(f"{service}.{operation}.{outcome}")
        (logger.info if outcome == "success" else logger.warning)(
            f"[LLM] {service} {operation} {outcome} in {elapsed_ms:.0f}ms",
            extra={"service": service, "endpoint": operation, "duration_ms": round(elapsed_ms, 1)},
        )


def _summary(samples) -> Dict[str, float]:
    ordered = sorted(samples)

    def pct(fraction: float) -> float:
        return round(ordered[min(int(len(ordered) * fraction), len(ordered) - 1)], 1)

    return {"count": len(ordered), "p50": pct(0.5), "p95": pct(0.95), "p99": pct(0.99), "max": round(ordered[-1], 1)}


def get_snapshot() -> Dict[str, Any]:
    return {
        "counters": dict(_counters),
        "histograms": {name: _summary(samples) for name, samples in _histograms.items() if samples},
    }


def reset() -> None:
    """Clear everything (tests)"""
    _counters.clear()
    _histograms.clear()
