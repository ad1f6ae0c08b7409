"""
eth_interfaces.metrics
----------------------

Prometheus metrics for verification, session construction and capability
calls. Metrics are registered on the default `prometheus_client` registry;
exposing them (HTTP endpoint, push gateway) is up to the embedding service.

Tracks:
- verifications by outcome (ok / mismatch / connection_error)
- individual probes by outcome (returned / reverted / absent / shape_mismatch)
- verification latency
- sessions built by kind (base / composed)
- call errors by capability label
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

_NS = "eth_interfaces"


def _m(name: str) -> str:
    return f"{_NS}_{name}"


VERIFY_TOTAL = Counter(
    _m("verify_total"),
    "Capability set verifications by outcome.",
    labelnames=("outcome",),
)

PROBE_TOTAL = Counter(
    _m("probe_total"),
    "Trial calls issued during verification, by outcome.",
    labelnames=("outcome",),
)

SESSIONS_TOTAL = Counter(
    _m("sessions_total"),
    "Sessions successfully built.",
    labelnames=("kind",),
)

CALL_ERRORS_TOTAL = Counter(
    _m("call_errors_total"),
    "Capability invocations that failed after verification.",
    labelnames=("capability",),
)

_LAT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

VERIFY_SECONDS = Histogram(
    _m("verify_seconds"),
    "Wall time to verify one capability set.",
    buckets=_LAT_BUCKETS,
)


@contextmanager
def time_verification() -> Iterator[None]:
    t0 = time.perf_counter()
    try:
        yield
    finally:
        VERIFY_SECONDS.observe(time.perf_counter() - t0)


__all__ = [
    "VERIFY_TOTAL",
    "PROBE_TOTAL",
    "SESSIONS_TOTAL",
    "CALL_ERRORS_TOTAL",
    "VERIFY_SECONDS",
    "time_verification",
]
