"""Prometheus metrics for engine computations and degraded results"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from pennypath_engine.domain.diagnostics import Diagnostic

# Engine metrics
computation_counter = Counter(
    "pennypath_computation_total",
    "Engine computations performed",
    ["component"],  # forecast | upcoming | budgets | bnpl | arrangement | account | dashboard | transactions | ...
)

degraded_result_counter = Counter(
    "pennypath_degraded_result_total",
    "Records skipped or clamped while computing",
    ["kind"],  # diagnostic kind
)

computation_latency_histogram = Histogram(
    "pennypath_computation_seconds",
    "Engine computation time",
    ["component"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_computation(component: str, diagnostics: Iterable[Diagnostic], duration_seconds: float) -> None:
    """Record one computation and every degraded record it reported"""
    computation_counter.labels(component=component).inc()
    computation_latency_histogram.labels(component=component).observe(duration_seconds)
    for diagnostic in diagnostics:
        degraded_result_counter.labels(kind=diagnostic.kind.value).inc()
